from app.models.region import Region
from app.models.user import User, UserRole
from app.models.restaurant import Restaurant
from app.models.menu_item import MenuItem
from app.models.order_item import OrderItem
from app.models.order import Order, OrderStatus, PaymentMethod
from app.models.promotion import Promotion, DiscountType
from app.models.wallet_transaction import WalletTransaction, TransactionType
from app.models.delivery_tracking import DeliveryTracking, DeliveryStatus
from app.models.review import Review
from app.models.notifications import Notification, NotificationType, RecipientRole
from app.models.order_event import OrderEvent

# add ALL models here
