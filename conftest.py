import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Optional local overrides for the test run
env_test_path = os.path.join(os.path.dirname(__file__), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=True)

# Settings are read at import time, so the test environment has to be in place
# before any application module is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")
os.environ.setdefault("RAZORPAY_WEBHOOK_SECRET", "rzp_test_webhook_secret")

from libs.common.config import get_settings  # noqa: E402

# Clear cached settings to reload with new env vars
get_settings.cache_clear()
settings = get_settings()

from libs.auth.dependencies import get_current_user, require_admin  # noqa: E402
from libs.auth.models import AuthUser  # noqa: E402
from libs.db.base import Base  # noqa: E402
from libs.db.session import get_async_db  # noqa: E402
from services.store_service import models as _store_models  # noqa: E402,F401
from services.store_service.app.main import app  # noqa: E402
from services.store_service.clients.cart_client import get_cart_client  # noqa: E402
from services.store_service.clients.geocoding_client import (  # noqa: E402
    get_geocoding_client,
)
from services.store_service.routers._helpers import (  # noqa: E402
    get_distance_resolver,
    get_payment_gateway,
)
from services.store_service.services.distance import DistanceResolver  # noqa: E402
from services.store_service.services.pricing import get_delivery_settings  # noqa: E402
from tests.fakes import (  # noqa: E402
    FakeCartClient,
    FakeGateway,
    FakeGeocodingClient,
    FakeRoutingClient,
    make_delivery_settings,
)

MEMBER_AUTH_ID = "member-auth-1"
ADMIN_AUTH_ID = "admin-auth-1"


@pytest_asyncio.fixture
async def test_engine():
    """
    Fresh in-memory SQLite database per test.
    StaticPool keeps the single connection alive so every session sees the tables.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session configured like the application's."""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def delivery_settings():
    return make_delivery_settings()


@pytest.fixture
def routing_client():
    return FakeRoutingClient(distance_meters=3000.0)


@pytest.fixture
def resolver(routing_client):
    return DistanceResolver(routing_client, timeout=1.0)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def cart_client():
    return FakeCartClient()


@pytest.fixture
def geocoder():
    return FakeGeocodingClient()


@pytest.fixture
def member_user() -> AuthUser:
    return AuthUser(user_id=MEMBER_AUTH_ID, email="member@example.com", role="authenticated")


@pytest.fixture
def admin_user() -> AuthUser:
    return AuthUser(user_id=ADMIN_AUTH_ID, email="admin@example.com", role="admin")


def _override_collaborators(db_session, resolver, gateway, cart_client, geocoder, delivery_settings):
    app.dependency_overrides[get_async_db] = lambda: db_session
    app.dependency_overrides[get_distance_resolver] = lambda: resolver
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_cart_client] = lambda: cart_client
    app.dependency_overrides[get_geocoding_client] = lambda: geocoder
    app.dependency_overrides[get_delivery_settings] = lambda: delivery_settings


@pytest_asyncio.fixture
async def client(
    db_session, resolver, gateway, cart_client, geocoder, delivery_settings, member_user
) -> AsyncGenerator[AsyncClient, None]:
    """
    AsyncClient authenticated as a regular member, with external providers faked.
    """
    _override_collaborators(
        db_session, resolver, gateway, cart_client, geocoder, delivery_settings
    )
    app.dependency_overrides[get_current_user] = lambda: member_user

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin_client(
    db_session, resolver, gateway, cart_client, geocoder, delivery_settings, admin_user
) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient authenticated as a store admin."""
    _override_collaborators(
        db_session, resolver, gateway, cart_client, geocoder, delivery_settings
    )
    app.dependency_overrides[get_current_user] = lambda: admin_user
    app.dependency_overrides[require_admin] = lambda: admin_user

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict:
    """
    Headers for the mocked user. Auth itself is handled by dependency
    overrides; the header only satisfies the bearer scheme.
    """
    return {"Authorization": "Bearer mock-token"}
