"""
Pytest configuration file for backend testing.
"""
import os
import sys
from pathlib import Path

# Add the backend directory to Python path so imports work correctly
backend_dir = Path(__file__).parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# Settings are read once at import time, so the test environment must be in
# place before anything under core/ is imported.
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["API_BEARER_TOKEN"] = "test-api-token"
os.environ["DEFAULT_LOCALE"] = "en"
os.environ["POINTS_CURRENCY_DIVISOR"] = "10"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

# Import all models to register them with SQLAlchemy
import app.models  # noqa: E402,F401
from core.auth import create_access_token  # noqa: E402
from core.auth_context import RequestContext, UserRole  # noqa: E402
from core.database import Base, engine, get_db  # noqa: E402
from tests.factories import AdminUserFactory, RestaurantFactory  # noqa: E402
from tests.factories.base import TestSession  # noqa: E402

API_TOKEN = "test-api-token"


@pytest.fixture
def db_session():
    """Fresh schema per test on the shared in-memory engine"""
    Base.metadata.create_all(bind=engine)
    session = TestSession()
    try:
        yield session
    finally:
        TestSession.remove()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def restaurant(db_session):
    return RestaurantFactory(name="Kahve Durağı")


@pytest.fixture
def other_restaurant(db_session):
    return RestaurantFactory(name="Other Bistro")


@pytest.fixture
def admin_context(restaurant):
    """Restaurant admin acting on ``restaurant``"""
    return RequestContext(
        user_id=None,
        role=UserRole.RESTAURANT_ADMIN,
        restaurant_id=restaurant.id,
    )


@pytest.fixture
def platform_context():
    return RequestContext(user_id=None, role=UserRole.ADMIN)


@pytest.fixture
def client(db_session):
    from app.main import app as fastapi_app

    fastapi_app.dependency_overrides[get_db] = lambda: db_session
    try:
        yield TestClient(fastapi_app)
    finally:
        fastapi_app.dependency_overrides.clear()


@pytest.fixture
def admin_user(restaurant):
    return AdminUserFactory(
        email="manager@example.com",
        role=UserRole.RESTAURANT_ADMIN,
        restaurant=restaurant,
    )


def bearer(user) -> dict:
    token = create_access_token(
        {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role.value,
            "restaurant_id": user.restaurant_id,
        }
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(admin_user):
    return bearer(admin_user)


@pytest.fixture
def api_headers():
    return {"Authorization": f"Bearer {API_TOKEN}"}


@pytest.fixture
def headers_for():
    """Bearer headers for any admin user"""
    return bearer
