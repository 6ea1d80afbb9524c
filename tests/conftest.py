import pytest
from types import SimpleNamespace
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from main import app
from app.core.database import get_async_session
from app.core.security import get_password_hash, create_access_token
from app.models.base import Base
from app.models.auth.user import User
from app.models.inventory.product import Product
from app.models.inventory.stock_level import StockLevel
from app.models.organization.location import Location
from app.models.shared.enums import UserRoleType
from app.services.notification.notification_hub import NotificationHub, get_notification_hub
from app.services.notification.notification_service import NotificationService
from app.services.inventory.stock_taking_service import StockTakingService

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "Demo123!"
# Hashed once and shared by every test user
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest.fixture
async def engine():
    """Fresh in-memory database per test"""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest.fixture
def hub() -> NotificationHub:
    return NotificationHub()


@pytest.fixture
def notification_service(db_session, hub) -> NotificationService:
    return NotificationService(db_session, hub)


@pytest.fixture
def stock_taking_service(db_session, notification_service) -> StockTakingService:
    return StockTakingService(db_session, notification_service)


@pytest.fixture
async def seed(db_session):
    """
    One admin, two workers, a location stocking three products
    (100 / 50 / 25 units) and an empty location.
    """
    admin = User(email="admin@demo.com", full_name="Alice Admin", role=UserRoleType.ADMIN,
                 hashed_password=TEST_PASSWORD_HASH, is_active=True)
    worker1 = User(email="worker1@demo.com", full_name="Bob Worker", role=UserRoleType.WORKER,
                   hashed_password=TEST_PASSWORD_HASH, is_active=True)
    worker2 = User(email="worker2@demo.com", full_name="Carol Worker", role=UserRoleType.WORKER,
                   hashed_password=TEST_PASSWORD_HASH, is_active=True)

    location = Location(code="WH-A", name="Warehouse A - Main Storage")
    empty_location = Location(code="RET-1", name="Returns Processing")

    products = [
        Product(sku="ELEC-001", name="Wireless Mouse", category="Electronics"),
        Product(sku="OFFICE-003", name="Notebook A5", category="Office"),
        Product(sku="TOOL-002", name="Measuring Tape", category="Tools"),
    ]

    db_session.add_all([admin, worker1, worker2, location, empty_location, *products])
    await db_session.flush()

    stock_levels = [
        StockLevel(product_id=product.id, location_id=location.id, quantity=quantity)
        for product, quantity in zip(products, (100, 50, 25))
    ]
    db_session.add_all(stock_levels)
    await db_session.commit()

    return SimpleNamespace(
        admin=admin,
        worker1=worker1,
        worker2=worker2,
        location=location,
        empty_location=empty_location,
        products=products,
        stock_levels=stock_levels,
    )


def _auth_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(seed) -> dict:
    return _auth_headers(seed.admin)


@pytest.fixture
def worker1_headers(seed) -> dict:
    return _auth_headers(seed.worker1)


@pytest.fixture
def worker2_headers(seed) -> dict:
    return _auth_headers(seed.worker2)


@pytest.fixture
async def client(session_maker, hub) -> AsyncGenerator[AsyncClient, None]:
    """Test client bound to the per-test database and hub"""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_db
    app.dependency_overrides[get_notification_hub] = lambda: hub

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
