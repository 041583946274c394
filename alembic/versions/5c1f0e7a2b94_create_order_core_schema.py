"""create order core schema

Revision ID: 5c1f0e7a2b94
Revises:
Create Date: 2026-10-19 10:12:41.503126

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5c1f0e7a2b94'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


user_role = sa.Enum(
    "customer", "restaurant_owner", "delivery_worker", "local_agent", "admin", name="userrole"
)
order_status = sa.Enum(
    "pending", "confirmed", "preparing", "ready", "out_for_delivery", "delivered", "cancelled",
    name="orderstatus",
)
payment_method = sa.Enum("cash", "wallet", "card", "bank_transfer", name="paymentmethod")
delivery_status = sa.Enum("assigned", "picked_up", "on_the_way", "delivered", name="deliverystatus")
discount_type = sa.Enum("percentage", "fixed", "buy_one_get_one", name="discounttype")
transaction_type = sa.Enum("credit", "debit", "refund", name="transactiontype")
recipient_role = sa.Enum("customer", "restaurant_owner", "delivery_worker", name="recipientrole")
notification_type = sa.Enum("info", "order", "wallet", "delivery", name="notificationtype")


def _timestamps(updated=True):
    columns = [sa.Column("created_at", sa.DateTime(), nullable=False)]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(), nullable=False))
    return columns


def upgrade():
    op.create_table(
        "regions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("parent_id", sa.Uuid(), sa.ForeignKey("regions.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_regions_parent_id", "regions", ["parent_id"])

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("wallet_balance", sa.Numeric(10, 2), nullable=False),
        sa.Column("region_id", sa.Uuid(), sa.ForeignKey("regions.id"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "restaurants",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=False),
        sa.Column("region_id", sa.Uuid(), sa.ForeignKey("regions.id"), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("cuisine_type", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_open", sa.Boolean(), nullable=False),
        sa.Column("delivery_fee", sa.Numeric(8, 2), nullable=False),
        sa.Column("minimum_order", sa.Numeric(8, 2), nullable=False),
        sa.Column("average_rating", sa.Numeric(3, 2), nullable=False),
        sa.Column("total_reviews", sa.Integer(), nullable=False),
        sa.Column("estimated_delivery_time", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_restaurants_region_id", "restaurants", ["region_id"])
    op.create_index("ix_restaurants_is_active", "restaurants", ["is_active"])

    op.create_table(
        "menu_items",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("restaurant_id", sa.Uuid(), sa.ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("price", sa.Numeric(8, 2), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False),
        sa.Column("preparation_time", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_menu_items_restaurant_id", "menu_items", ["restaurant_id"])

    op.create_table(
        "promotions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("restaurant_id", sa.Uuid(), sa.ForeignKey("restaurants.id"), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("discount_type", discount_type, nullable=False),
        sa.Column("discount_value", sa.Numeric(8, 2), nullable=False),
        sa.Column("minimum_order", sa.Numeric(8, 2), nullable=True),
        sa.Column("maximum_discount", sa.Numeric(8, 2), nullable=True),
        sa.Column("promo_code", sa.String(50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        sa.Column("usage_limit", sa.Integer(), nullable=True),
        sa.Column("used_count", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_promotions_promo_code", "promotions", ["promo_code"], unique=True)

    op.create_table(
        "orders",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("customer_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("restaurant_id", sa.Uuid(), sa.ForeignKey("restaurants.id"), nullable=False),
        sa.Column("delivery_worker_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("promotion_id", sa.Uuid(), sa.ForeignKey("promotions.id"), nullable=True),
        sa.Column("status", order_status, nullable=False),
        sa.Column("payment_method", payment_method, nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("delivery_fee", sa.Numeric(8, 2), nullable=False),
        sa.Column("discount_amount", sa.Numeric(8, 2), nullable=False),
        sa.Column("final_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("delivery_address", sa.String(), nullable=False),
        sa.Column("customer_phone", sa.String(20), nullable=False),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("cancellation_reason", sa.String(), nullable=True),
        sa.Column("estimated_delivery_time", sa.DateTime(), nullable=True),
        sa.Column("delivered_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_orders_customer_id", "orders", ["customer_id"])
    op.create_index("ix_orders_restaurant_id", "orders", ["restaurant_id"])
    op.create_index("ix_orders_status", "orders", ["status"])
    op.create_index("ix_orders_created_at", "orders", ["created_at"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("order_id", sa.Uuid(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("menu_item_id", sa.Uuid(), sa.ForeignKey("menu_items.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(8, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(8, 2), nullable=False),
        sa.Column("special_instructions", sa.String(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])

    op.create_table(
        "wallet_transactions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("order_id", sa.Uuid(), sa.ForeignKey("orders.id"), nullable=True),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("transaction_type", transaction_type, nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("balance_before", sa.Numeric(10, 2), nullable=False),
        sa.Column("balance_after", sa.Numeric(10, 2), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("reference_number", sa.String(100), nullable=True),
        *_timestamps(updated=False),
        sa.UniqueConstraint("user_id", "sequence", name="uq_wallet_transactions_user_sequence"),
    )
    op.create_index("ix_wallet_transactions_user_id", "wallet_transactions", ["user_id"])
    op.create_index("ix_wallet_transactions_order_id", "wallet_transactions", ["order_id"])

    op.create_table(
        "delivery_tracking",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("order_id", sa.Uuid(), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("delivery_worker_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", delivery_status, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("current_location_lat", sa.Numeric(10, 8), nullable=True),
        sa.Column("current_location_lng", sa.Numeric(11, 8), nullable=True),
        sa.Column("estimated_arrival", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_delivery_tracking_order_id", "delivery_tracking", ["order_id"])
    op.create_index("ix_delivery_tracking_delivery_worker_id", "delivery_tracking", ["delivery_worker_id"])

    op.create_table(
        "reviews",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("order_id", sa.Uuid(), sa.ForeignKey("orders.id"), nullable=False, unique=True),
        sa.Column("customer_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("restaurant_id", sa.Uuid(), sa.ForeignKey("restaurants.id"), nullable=False),
        sa.Column("delivery_worker_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("restaurant_rating", sa.Integer(), nullable=False),
        sa.Column("delivery_rating", sa.Integer(), nullable=False),
        sa.Column("food_quality_rating", sa.Integer(), nullable=False),
        sa.Column("restaurant_comment", sa.String(), nullable=True),
        sa.Column("delivery_comment", sa.String(), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_reviews_restaurant_id", "reviews", ["restaurant_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("recipient_role", recipient_role, nullable=False),
        sa.Column("order_id", sa.Uuid(), sa.ForeignKey("orders.id"), nullable=True),
        sa.Column("trigger_source", sa.String(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.String(), nullable=False),
        sa.Column("type", notification_type, nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    op.create_table(
        "order_events",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("order_id", sa.Uuid(), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column("label", sa.String(), nullable=False),
        sa.Column("meta", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("created_by", sa.String(50), nullable=False),
        sa.UniqueConstraint("order_id", "sequence", name="uq_order_events_order_sequence"),
    )

    # indexes for fast timeline queries
    op.create_index("ix_order_events_order_id", "order_events", ["order_id"])
    op.create_index("ix_order_events_event_type", "order_events", ["event_type"])


def downgrade():
    for table in (
        "order_events",
        "notifications",
        "reviews",
        "delivery_tracking",
        "wallet_transactions",
        "order_items",
        "orders",
        "promotions",
        "menu_items",
        "restaurants",
        "users",
        "regions",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in (
        notification_type, recipient_role, transaction_type, discount_type,
        delivery_status, payment_method, order_status, user_role,
    ):
        enum.drop(bind, checkfirst=True)
