"""Initial CRM schema

Revision ID: 0001_initial_crm_schema
Revises:
Create Date: 2025-08-01 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial_crm_schema"
down_revision = None
branch_labels = None
depends_on = None


user_role = sa.Enum("ADMIN", "RESTAURANT_ADMIN", "STAFF", "API_CLIENT", name="userrole")
customer_level = sa.Enum("REGULAR", "BRONZE", "SILVER", "GOLD", "PLATINUM", name="customerlevel")
campaign_type = sa.Enum(
    "DISCOUNT", "PRODUCT_BASED", "LOYALTY_POINTS", "TIME_BASED", "BIRTHDAY_SPECIAL", "COMBO_DEAL",
    name="campaigntype",
)
discount_type = sa.Enum(
    "PERCENTAGE", "FIXED_AMOUNT", "FREE_ITEM", "BUY_ONE_GET_ONE", name="discounttype"
)
transaction_status = sa.Enum("COMPLETED", "CANCELLED", "REFUNDED", name="transactionstatus")
payment_method = sa.Enum("CASH", "CARD", "MOBILE", name="paymentmethod")
point_type = sa.Enum("EARNED", "SPENT", "EXPIRED", name="pointtype")
point_source = sa.Enum("PURCHASE", "REWARD", "BONUS", "MANUAL", "CAMPAIGN", name="pointsource")
notification_type = sa.Enum("CAMPAIGN", "REWARD", "BROADCAST", "INFO", name="notificationtype")
target_type = sa.Enum("ALL", "SEGMENT", "TIER", "CUSTOM", name="targettype")
delivery_status = sa.Enum("SENT", "FAILED", "READ", name="deliverystatus")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade():
    op.create_table(
        "restaurants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_restaurants_id", "restaurants", ["id"])

    op.create_table(
        "admin_users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("restaurant_id", sa.Integer(), sa.ForeignKey("restaurants.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_admin_users_id", "admin_users", ["id"])
    op.create_index("ix_admin_users_email", "admin_users", ["email"], unique=True)
    op.create_index("ix_admin_users_restaurant_id", "admin_users", ["restaurant_id"])

    op.create_table(
        "loyalty_tiers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("restaurant_id", sa.Integer(), sa.ForeignKey("restaurants.id"), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("point_multiplier", sa.Numeric(5, 2), nullable=False),
        sa.Column("discount_percent", sa.Numeric(5, 2), nullable=False),
        sa.Column("min_points", sa.Integer(), nullable=False),
        sa.Column("color", sa.String(7), nullable=True),
        sa.Column("special_features", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("restaurant_id", "name", name="uq_loyalty_tiers_restaurant_name"),
    )
    op.create_index("ix_loyalty_tiers_id", "loyalty_tiers", ["id"])
    op.create_index("ix_loyalty_tiers_restaurant_id", "loyalty_tiers", ["restaurant_id"])

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("restaurant_id", sa.Integer(), sa.ForeignKey("restaurants.id"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("level", customer_level, nullable=False),
        sa.Column("tier_id", sa.Integer(), sa.ForeignKey("loyalty_tiers.id"), nullable=True),
        sa.Column("total_spent", sa.Numeric(12, 2), nullable=False),
        sa.Column("visit_count", sa.Integer(), nullable=False),
        sa.Column("last_visit", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_customers_id", "customers", ["id"])
    op.create_index("ix_customers_restaurant_id", "customers", ["restaurant_id"])
    op.create_index("ix_customers_email", "customers", ["email"], unique=True)
    op.create_index("ix_customers_phone", "customers", ["phone"])
    op.create_index("ix_customers_level", "customers", ["level"])
    op.create_index("ix_customers_tier_id", "customers", ["tier_id"])
    op.create_index("ix_customers_restaurant_level", "customers", ["restaurant_id", "level"])

    op.create_table(
        "segments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("restaurant_id", sa.Integer(), sa.ForeignKey("restaurants.id"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_automatic", sa.Boolean(), nullable=False),
        sa.Column("criteria", sa.JSON(), nullable=True),
        sa.Column("member_count", sa.Integer(), nullable=False),
        sa.Column("last_refreshed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("restaurant_id", "name", name="uq_segments_restaurant_name"),
    )
    op.create_index("ix_segments_id", "segments", ["id"])
    op.create_index("ix_segments_restaurant_id", "segments", ["restaurant_id"])

    op.create_table(
        "customer_segments",
        sa.Column("customer_id", sa.Integer(),
                  sa.ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("segment_id", sa.Integer(),
                  sa.ForeignKey("segments.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("added_at", sa.DateTime(), nullable=True),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("restaurant_id", sa.Integer(), sa.ForeignKey("restaurants.id"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_products_id", "products", ["id"])
    op.create_index("ix_products_restaurant_id", "products", ["restaurant_id"])
    op.create_index("ix_products_category", "products", ["category"])

    op.create_table(
        "campaigns",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("restaurant_id", sa.Integer(), sa.ForeignKey("restaurants.id"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("type", campaign_type, nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("valid_hours", sa.JSON(), nullable=True),
        sa.Column("valid_days", sa.JSON(), nullable=True),
        sa.Column("discount_type", discount_type, nullable=False),
        sa.Column("discount_value", sa.Numeric(12, 2), nullable=False),
        sa.Column("min_purchase", sa.Numeric(12, 2), nullable=True),
        sa.Column("target_products", sa.JSON(), nullable=True),
        sa.Column("free_products", sa.JSON(), nullable=True),
        sa.Column("buy_quantity", sa.Integer(), nullable=True),
        sa.Column("max_usage", sa.Integer(), nullable=True),
        sa.Column("max_usage_per_customer", sa.Integer(), nullable=True),
        sa.Column("points_multiplier", sa.Numeric(5, 2), nullable=False),
        sa.Column("points_required", sa.Integer(), nullable=True),
        sa.Column("send_notification", sa.Boolean(), nullable=False),
        sa.Column("notification_title", sa.String(200), nullable=True),
        sa.Column("notification_message", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("restaurant_id", "name", name="uq_campaigns_restaurant_name"),
    )
    op.create_index("ix_campaigns_id", "campaigns", ["id"])
    op.create_index("ix_campaigns_restaurant_id", "campaigns", ["restaurant_id"])
    op.create_index("ix_campaigns_type", "campaigns", ["type"])
    op.create_index("ix_campaigns_start_date", "campaigns", ["start_date"])
    op.create_index("ix_campaigns_end_date", "campaigns", ["end_date"])
    op.create_index("ix_campaigns_is_active", "campaigns", ["is_active"])
    op.create_index(
        "ix_campaigns_active_window", "campaigns", ["is_active", "start_date", "end_date"]
    )

    op.create_table(
        "campaign_segments",
        sa.Column("campaign_id", sa.Integer(),
                  sa.ForeignKey("campaigns.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("segment_id", sa.Integer(),
                  sa.ForeignKey("segments.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("restaurant_id", sa.Integer(), sa.ForeignKey("restaurants.id"), nullable=False),
        sa.Column("customer_id", sa.Integer(),
                  sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("order_number", sa.String(50), nullable=False),
        sa.Column("status", transaction_status, nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("final_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("points_earned", sa.Integer(), nullable=False),
        sa.Column("points_used", sa.Integer(), nullable=False),
        sa.Column("tier_id", sa.Integer(), sa.ForeignKey("loyalty_tiers.id", ondelete="SET NULL"), nullable=True),
        sa.Column("payment_method", payment_method, nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("transaction_date", sa.DateTime(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_transactions_id", "transactions", ["id"])
    op.create_index("ix_transactions_restaurant_id", "transactions", ["restaurant_id"])
    op.create_index("ix_transactions_customer_id", "transactions", ["customer_id"])
    op.create_index("ix_transactions_order_number", "transactions", ["order_number"], unique=True)
    op.create_index("ix_transactions_status", "transactions", ["status"])
    op.create_index("ix_transactions_transaction_date", "transactions", ["transaction_date"])
    op.create_index(
        "ix_transactions_customer_date", "transactions", ["customer_id", "transaction_date"]
    )
    op.create_index(
        "ix_transactions_restaurant_date", "transactions", ["restaurant_id", "transaction_date"]
    )

    op.create_table(
        "transaction_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("transaction_id", sa.Integer(),
                  sa.ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", sa.Integer(),
                  sa.ForeignKey("products.id", ondelete="SET NULL"), nullable=True),
        sa.Column("product_name", sa.String(200), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("is_free", sa.Boolean(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_transaction_items_id", "transaction_items", ["id"])
    op.create_index("ix_transaction_items_transaction_id", "transaction_items", ["transaction_id"])
    op.create_index("ix_transaction_items_product_id", "transaction_items", ["product_id"])

    op.create_table(
        "applied_campaigns",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("transaction_id", sa.Integer(),
                  sa.ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("campaign_id", sa.Integer(), sa.ForeignKey("campaigns.id"), nullable=False),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("points_earned", sa.Integer(), nullable=False),
    )
    op.create_index("ix_applied_campaigns_id", "applied_campaigns", ["id"])
    op.create_index("ix_applied_campaigns_transaction_id", "applied_campaigns", ["transaction_id"])
    op.create_index("ix_applied_campaigns_campaign_id", "applied_campaigns", ["campaign_id"])

    op.create_table(
        "campaign_usages",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("campaign_id", sa.Integer(),
                  sa.ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False),
        sa.Column("customer_id", sa.Integer(),
                  sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("transaction_id", sa.Integer(),
                  sa.ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("used_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_campaign_usages_id", "campaign_usages", ["id"])
    op.create_index("ix_campaign_usages_campaign_id", "campaign_usages", ["campaign_id"])
    op.create_index("ix_campaign_usages_customer_id", "campaign_usages", ["customer_id"])
    op.create_index(
        "ix_campaign_usages_campaign_customer", "campaign_usages", ["campaign_id", "customer_id"]
    )

    op.create_table(
        "point_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.Integer(),
                  sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("type", point_type, nullable=False),
        sa.Column("source", point_source, nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("transaction_id", sa.Integer(),
                  sa.ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True),
        sa.Column("balance_after", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.Integer(),
                  sa.ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_point_history_id", "point_history", ["id"])
    op.create_index("ix_point_history_customer_id", "point_history", ["customer_id"])
    op.create_index("ix_point_history_type", "point_history", ["type"])
    op.create_index("ix_point_history_source", "point_history", ["source"])
    op.create_index("ix_point_history_transaction_id", "point_history", ["transaction_id"])
    op.create_index("ix_point_history_created_at", "point_history", ["created_at"])
    op.create_index(
        "ix_point_history_customer_created", "point_history", ["customer_id", "created_at"]
    )

    op.create_table(
        "push_subscriptions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.Integer(),
                  sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("endpoint", sa.String(500), nullable=False),
        sa.Column("p256dh", sa.String(255), nullable=True),
        sa.Column("auth", sa.String(255), nullable=True),
        sa.Column("user_agent", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "customer_id", "endpoint", name="uq_push_subscriptions_customer_endpoint"
        ),
    )
    op.create_index("ix_push_subscriptions_id", "push_subscriptions", ["id"])
    op.create_index("ix_push_subscriptions_customer_id", "push_subscriptions", ["customer_id"])

    op.create_table(
        "notification_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("restaurant_id", sa.Integer(), sa.ForeignKey("restaurants.id"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", notification_type, nullable=False),
        sa.Column("target_type", target_type, nullable=False),
        sa.Column("target_filters", sa.JSON(), nullable=True),
        sa.Column("target_customer_ids", sa.JSON(), nullable=True),
        sa.Column("campaign_id", sa.Integer(),
                  sa.ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True),
        sa.Column("sent_count", sa.Integer(), nullable=False),
        sa.Column("failed_count", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.Integer(),
                  sa.ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_notification_logs_id", "notification_logs", ["id"])
    op.create_index("ix_notification_logs_restaurant_id", "notification_logs", ["restaurant_id"])
    op.create_index("ix_notification_logs_created_at", "notification_logs", ["created_at"])

    op.create_table(
        "customer_notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.Integer(),
                  sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("log_id", sa.Integer(),
                  sa.ForeignKey("notification_logs.id", ondelete="SET NULL"), nullable=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", notification_type, nullable=False),
        sa.Column("status", delivery_status, nullable=False),
        sa.Column("failure_reason", sa.String(255), nullable=True),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("sent_at", sa.DateTime(), nullable=False),
        sa.Column("read_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_customer_notifications_id", "customer_notifications", ["id"])
    op.create_index(
        "ix_customer_notifications_customer_id", "customer_notifications", ["customer_id"]
    )
    op.create_index("ix_customer_notifications_log_id", "customer_notifications", ["log_id"])
    op.create_index(
        "ix_customer_notifications_customer_sent",
        "customer_notifications",
        ["customer_id", "sent_at"],
    )


def downgrade():
    op.drop_table("customer_notifications")
    op.drop_table("notification_logs")
    op.drop_table("push_subscriptions")
    op.drop_table("point_history")
    op.drop_table("campaign_usages")
    op.drop_table("applied_campaigns")
    op.drop_table("transaction_items")
    op.drop_table("transactions")
    op.drop_table("campaign_segments")
    op.drop_table("campaigns")
    op.drop_table("products")
    op.drop_table("customer_segments")
    op.drop_table("segments")
    op.drop_table("customers")
    op.drop_table("loyalty_tiers")
    op.drop_table("admin_users")
    op.drop_table("restaurants")

    bind = op.get_bind()
    for enum in (
        delivery_status, target_type, notification_type, point_source, point_type,
        payment_method, transaction_status, discount_type, campaign_type,
        customer_level, user_role,
    ):
        enum.drop(bind, checkfirst=True)
