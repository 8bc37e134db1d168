from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings
from core.exceptions import register_exception_handlers
from app.startup import configure_startup_logging, run_startup_checks

# Register every mapper before the first request
import app.models  # noqa: F401

# ========== Authentication ==========
from modules.auth.routes.auth_routes import router as auth_router

# ========== Restaurants ==========
from modules.restaurants.routers.restaurant_router import router as restaurant_router

# ========== Customer Management ==========
from modules.customers.routers.customer_router import router as customer_router
from modules.customers.routers.segment_router import router as segment_router
from modules.customers.routers.tier_router import router as tier_router

# ========== Campaigns & Products ==========
from modules.campaigns.routers.campaign_router import router as campaign_router
from modules.products.routers.product_router import router as product_router

# ========== Sales & Loyalty ==========
from modules.transactions.routers.transaction_router import router as transaction_router
from modules.loyalty.routers.point_history_router import router as point_history_router

# ========== Notifications ==========
from modules.notifications.routers.notification_router import router as notification_router

# ========== Dashboard & Mobile ==========
from modules.dashboard.routers.dashboard_router import router as dashboard_router
from modules.mobile.routers.mobile_router import router as mobile_router

configure_startup_logging()
settings = get_settings()

app = FastAPI(
    title="AirCRM - Restaurant CRM API",
    description="""
    Restaurant customer relationship management API.

    ## Features

    * **Customers** - Profiles, loyalty tiers and statistics
    * **Segments** - Manual and automatic customer segments
    * **Campaigns** - Discount, product, points, time based and birthday campaigns
    * **Transactions** - Sales with campaign discounts and loyalty points
    * **Points Ledger** - Append-only point history with balance audit
    * **Notifications** - Targeted customer notifications and push subscriptions
    * **Mobile** - Customer loyalty card with stamp cards

    ## Authentication

    Admin endpoints require a JWT from `/api/v1/auth/login`. Mobile and POS
    clients may use the static API bearer token.
    """,
    version="1.0.0",
)

# Register exception handlers
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(restaurant_router)
app.include_router(customer_router)
app.include_router(segment_router)
app.include_router(tier_router)
app.include_router(campaign_router)
app.include_router(product_router)
app.include_router(transaction_router)
app.include_router(point_history_router)
app.include_router(notification_router)
app.include_router(dashboard_router)
app.include_router(mobile_router)


@app.on_event("startup")
async def startup_event():
    """Run startup validation checks"""
    run_startup_checks()


@app.get("/")
def read_root():
    return {"message": "AirCRM backend is running"}


@app.get("/health", tags=["Health"])
def health_check():
    return {"status": "ok", "environment": settings.environment}
