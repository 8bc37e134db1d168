#!/usr/bin/env python3
"""
Seed a fresh AirCRM database with a platform admin, one restaurant, default
loyalty tiers, the standard segments, a few products and sample campaigns.

Safe to run more than once: records that already exist are left alone.
"""

import os
import sys
from datetime import datetime, timedelta
from decimal import Decimal

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

os.environ.setdefault("ENVIRONMENT", "development")

from sqlalchemy.orm import Session  # noqa: E402

import app.models  # noqa: E402,F401
from core.auth import get_password_hash  # noqa: E402
from core.auth_context import RequestContext, UserRole  # noqa: E402
from core.database import SessionLocal  # noqa: E402
from core.error_handling import ConflictError  # noqa: E402
from modules.auth.models.user_models import AdminUser  # noqa: E402
from modules.campaigns.models.campaign_models import Campaign, CampaignType, DiscountType  # noqa: E402
from modules.campaigns.schemas.campaign_schemas import CampaignCreate  # noqa: E402
from modules.campaigns.services.campaign_service import CampaignService  # noqa: E402
from modules.customers.schemas.customer_schemas import LoyaltyTierCreate  # noqa: E402
from modules.customers.schemas.segment_schemas import SegmentCreate  # noqa: E402
from modules.customers.services.segment_service import SegmentService  # noqa: E402
from modules.customers.services.tier_service import TierService  # noqa: E402
from modules.products.models.product_models import Product  # noqa: E402
from modules.restaurants.models.restaurant_models import Restaurant  # noqa: E402

ADMIN_EMAIL = os.environ.get("SEED_ADMIN_EMAIL", "admin@aircrm.com")
ADMIN_PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD", "admin123")

DEFAULT_TIERS = [
    # name, display name, level, multiplier, min lifetime points, colour
    ("bronze", "Bronze", 1, Decimal("1.00"), 0, "#CD7F32"),
    ("silver", "Silver", 2, Decimal("1.25"), 500, "#C0C0C0"),
    ("gold", "Gold", 3, Decimal("1.50"), 2000, "#FFD700"),
    ("platinum", "Platinum", 4, Decimal("2.00"), 5000, "#E5E4E2"),
]

DEFAULT_SEGMENTS = [
    {
        "name": "VIP Müşteriler",
        "description": "Frequent high-value customers",
        "is_automatic": True,
        "criteria": {
            "averageOrderValue": {"min": 700},
            "purchaseCount": {"min": 20},
            "period": "last_90_days",
        },
    },
    {
        "name": "Yeni Müşteriler",
        "description": "Customers registered in the last 30 days",
        "is_automatic": False,
    },
    {
        "name": "Aktif Müşteriler",
        "description": "Customers who visited in the last 7 days",
        "is_automatic": True,
        "criteria": {"daysSinceLastPurchase": {"max": 7}, "period": "last_30_days"},
    },
]

DEFAULT_PRODUCTS = [
    ("Türk Kahvesi", "Coffee", Decimal("45.00")),
    ("Latte", "Coffee", Decimal("65.00")),
    ("Cheesecake", "Dessert", Decimal("120.00")),
    ("Simit", "Bakery", Decimal("25.00")),
]


def create_admin(db: Session) -> AdminUser:
    print("Creating platform admin...")
    admin = db.query(AdminUser).filter(AdminUser.email == ADMIN_EMAIL).first()
    if admin:
        print(f"  {ADMIN_EMAIL} already exists")
        return admin
    admin = AdminUser(
        email=ADMIN_EMAIL,
        name="Admin User",
        hashed_password=get_password_hash(ADMIN_PASSWORD),
        role=UserRole.ADMIN,
        is_active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def create_restaurant(db: Session) -> Restaurant:
    print("Creating restaurant...")
    restaurant = db.query(Restaurant).filter(Restaurant.name == "Air Restaurant").first()
    if restaurant:
        return restaurant
    restaurant = Restaurant(
        name="Air Restaurant",
        address="İstanbul, Türkiye",
        phone="0212 123 45 67",
        is_active=True,
    )
    db.add(restaurant)
    db.commit()
    db.refresh(restaurant)
    return restaurant


def create_tiers(db: Session, context: RequestContext):
    print("Creating loyalty tiers...")
    service = TierService(db, context)
    for name, display_name, level, multiplier, min_points, color in DEFAULT_TIERS:
        try:
            service.create_tier(LoyaltyTierCreate(
                name=name,
                display_name=display_name,
                level=level,
                point_multiplier=multiplier,
                min_points=min_points,
                color=color,
            ))
        except ConflictError:
            print(f"  tier {name} already exists")


def create_segments(db: Session, context: RequestContext):
    print("Creating segments...")
    service = SegmentService(db, context)
    for data in DEFAULT_SEGMENTS:
        try:
            service.create_segment(SegmentCreate(**data))
        except ConflictError:
            print(f"  segment {data['name']} already exists")


def create_products(db: Session, restaurant: Restaurant):
    print("Creating products...")
    for name, category, price in DEFAULT_PRODUCTS:
        exists = (
            db.query(Product.id)
            .filter(Product.restaurant_id == restaurant.id, Product.name == name)
            .first()
        )
        if not exists:
            db.add(Product(restaurant_id=restaurant.id, name=name, category=category,
                           price=price, is_active=True))
    db.commit()


def create_campaigns(db: Session, context: RequestContext, restaurant: Restaurant):
    print("Creating campaigns...")
    now = datetime.utcnow()
    campaigns = [
        CampaignCreate(
            name="Yaz İndirimi",
            description="Summer discount on every order over 100",
            type=CampaignType.DISCOUNT,
            start_date=now,
            end_date=now + timedelta(days=30),
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("20"),
            min_purchase=Decimal("100"),
            max_usage_per_customer=3,
            send_notification=False,
        ),
        CampaignCreate(
            name="Happy Hour",
            description="Thirty percent off between 14:00 and 17:00",
            type=CampaignType.TIME_BASED,
            start_date=now,
            end_date=now + timedelta(days=60),
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("30"),
            valid_hours={"start": "14:00", "end": "17:00"},
            max_usage_per_customer=1,
            send_notification=False,
        ),
        CampaignCreate(
            name="VIP Özel",
            description="Fixed discount for large orders",
            type=CampaignType.DISCOUNT,
            start_date=now,
            end_date=now + timedelta(days=90),
            discount_type=DiscountType.FIXED_AMOUNT,
            discount_value=Decimal("50"),
            min_purchase=Decimal("200"),
            max_usage_per_customer=5,
            send_notification=False,
        ),
    ]
    service = CampaignService(db, context)
    for data in campaigns:
        exists = (
            db.query(Campaign.id)
            .filter(Campaign.restaurant_id == restaurant.id, Campaign.name == data.name)
            .first()
        )
        if exists:
            print(f"  campaign {data.name} already exists")
            continue
        service.create_campaign(data)


def main():
    """Run all seeding functions."""
    print("Starting AirCRM seeding...")
    print("=" * 50)

    db = SessionLocal()
    try:
        admin = create_admin(db)
        restaurant = create_restaurant(db)
        context = RequestContext(
            user_id=admin.id,
            role=UserRole.ADMIN,
            restaurant_id=restaurant.id,
            email=admin.email,
        )
        create_tiers(db, context)
        create_segments(db, context)
        create_products(db, restaurant)
        create_campaigns(db, context, restaurant)

        print("\n" + "=" * 50)
        print("Seeding completed successfully!")
        print(f"\nPlatform admin: {ADMIN_EMAIL} / {ADMIN_PASSWORD}")
        print(f"Restaurant ID: {restaurant.id}")
    except Exception as e:
        print(f"\nError seeding data: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
