from enum import Enum


class Channel(str, Enum):
    INAPP_CUSTOMER = "inapp_customer"
    INAPP_RESTAURANT = "inapp_restaurant"
    INAPP_DRIVER = "inapp_driver"
