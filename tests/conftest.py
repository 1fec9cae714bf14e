import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import datetime
from decimal import Decimal

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.api.deps import get_current_user
from app.database import Base, get_db
from app.main import app
from app.models import Order, OrderStatus, User

TEST_USER = User(
    id="user-0001",
    email="admin@school.test",
    password="not-a-real-hash",
    name="Test Admin",
    school_id="S1",
    role="school",
)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_transaction(db):
    """Insert an order and, unless ``with_status`` is False, its status row."""

    async def _make(
        school_id: str = "S1",
        created_at: datetime = datetime(2024, 1, 15, 10, 0),
        gateway_name: str | None = "Edviron",
        with_status: bool = True,
        order_amount: Decimal | None = Decimal("100.00"),
        transaction_amount: Decimal | None = Decimal("0"),
        status: str | None = "PENDING",
        bank_reference: str | None = None,
        order_id: str | None = None,
    ) -> Order:
        order = Order(school_id=school_id, gateway_name=gateway_name, created_at=created_at)
        if order_id:
            order.id = order_id
        db.add(order)
        await db.flush()
        if with_status:
            db.add(OrderStatus(
                collect_id=order.id,
                order_amount=order_amount,
                transaction_amount=transaction_amount,
                status=status,
                bank_reference=bank_reference,
            ))
        await db.commit()
        return order

    return _make


def _override_db(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session
    return override_get_db


@pytest.fixture
async def anon_client(session_factory):
    """Client with the test database but real bearer-token authentication."""
    app.dependency_overrides[get_db] = _override_db(session_factory)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def client(session_factory):
    app.dependency_overrides[get_db] = _override_db(session_factory)
    app.dependency_overrides[get_current_user] = lambda: TEST_USER
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
