import os
import tempfile
from decimal import Decimal

# configure before anything imports app.config
_DB_DIR = tempfile.mkdtemp(prefix="foodtime-tests-")
os.environ["SQLALCHEMY_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["ENV"] = "test"
os.environ["LOCK_TIMEOUT_SECONDS"] = "10"
os.environ["TX_RETRY_BACKOFF_INITIAL"] = "0.001"
os.environ["TX_RETRY_BACKOFF_MAX"] = "0.01"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel

import app.models  # noqa: F401
from app.database import engine, new_session
from app.main import app as fastapi_app
from app.models import (
    DiscountType,
    MenuItem,
    Promotion,
    Region,
    Restaurant,
    User,
    UserRole,
)


@pytest.fixture(autouse=True)
def database():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield engine


@pytest.fixture
def session():
    with new_session() as session:
        yield session


@pytest.fixture
def client():
    return TestClient(fastapi_app)


def _save(obj):
    with new_session() as session:
        session.add(obj)
        session.commit()
        session.refresh(obj)
    return obj


@pytest.fixture
def make_region():
    def factory(name="Damascus", parent_id=None, **fields):
        return _save(Region(name=name, parent_id=parent_id, **fields))
    return factory


@pytest.fixture
def make_user():
    counter = {"n": 0}

    def factory(role=UserRole.customer, **fields):
        counter["n"] += 1
        defaults = {
            "email": f"user{counter['n']}@example.com",
            "first_name": "Test",
            "last_name": f"User{counter['n']}",
            "role": role,
        }
        defaults.update(fields)
        return _save(User(**defaults))
    return factory


@pytest.fixture
def make_restaurant(make_region, make_user):
    def factory(**fields):
        defaults = {
            "name": "Shawarma House",
            "address": "Main street 1",
            "region_id": make_region().id,
            "owner_id": make_user(role=UserRole.restaurant_owner).id,
            "delivery_fee": Decimal("3000.00"),
            "minimum_order": Decimal("0.00"),
        }
        defaults.update(fields)
        return _save(Restaurant(**defaults))
    return factory


@pytest.fixture
def make_menu_item():
    def factory(restaurant, price="10000.00", **fields):
        defaults = {"name": "Chicken shawarma", "price": Decimal(price)}
        defaults.update(fields)
        return _save(MenuItem(restaurant_id=restaurant.id, **defaults))
    return factory


@pytest.fixture
def make_promotion():
    def factory(**fields):
        defaults = {
            "title": "Ten percent off",
            "discount_type": DiscountType.percentage,
            "discount_value": Decimal("10.00"),
            "minimum_order": Decimal("15000.00"),
            "maximum_discount": Decimal("3000.00"),
            "promo_code": "SAVE10",
        }
        defaults.update(fields)
        return _save(Promotion(**defaults))
    return factory


@pytest.fixture
def customer(make_user):
    return make_user()


@pytest.fixture
def worker(make_user):
    return make_user(role=UserRole.delivery_worker)


@pytest.fixture
def restaurant(make_restaurant):
    return make_restaurant()


@pytest.fixture
def menu_item(make_menu_item, restaurant):
    return make_menu_item(restaurant)


@pytest.fixture
def place(customer, restaurant, menu_item):
    """Place an order for two of ``menu_item`` (subtotal 20000)."""
    from app.models import PaymentMethod
    from app.services.order_service import OrderLine, place_order

    def factory(quantity=2, payment_method=PaymentMethod.cash, promo_code=None, **fields):
        kwargs = {
            "customer_id": customer.id,
            "restaurant_id": restaurant.id,
            "items": [OrderLine(menu_item_id=menu_item.id, quantity=quantity)],
            "payment_method": payment_method,
            "promo_code": promo_code,
            "delivery_address": "Al-Mazzeh, building 4",
            "customer_phone": "0999000000",
            "customer_name": "Test Customer",
        }
        kwargs.update(fields)
        return place_order(**kwargs)
    return factory
