"""
Pytest configuration and fixtures.
"""

import os
import sys
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock, MagicMock

# Settings are read at import time
os.environ["DATABASE_URL"] = ""
os.environ["REDIS_URL"] = "redis://localhost:6379/15"
os.environ["ONDAPAY_CLIENT_ID"] = "test-client-id"
os.environ["ONDAPAY_CLIENT_SECRET"] = "test-client-secret"
os.environ["ONDAPAY_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["WEBHOOK_URL"] = "https://shop.example.com/ondapay-webhook"
os.environ["ADMIN_API_KEY"] = "test-admin-key"
os.environ["APP_ENV"] = "development"

sys.path.append(os.getcwd())

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import Base
from app.fsm.states import PurchaseStatus
from app.models import PurchaseRecord
from app.services.ondapay_client import ChargeResult
from app.services.validation import ValidatedPurchase

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

VALID_CPF = "529.982.247-25"
OTHER_VALID_CPF = "111.444.777-35"


@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for a test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def gateway() -> MagicMock:
    """OndaPay client stand-in returning a fixed charge."""
    client = MagicMock()
    client.create_charge = AsyncMock(
        return_value=ChargeResult(
            external_transaction_id="abc123",
            qr_code="00020126pix-copy-paste",
            qr_code_base64="iVBORw0KGgo=",
        )
    )
    return client


@pytest.fixture
def notifier() -> MagicMock:
    push = MagicMock()
    push.notify_new_attempt = AsyncMock(return_value=1)
    push.notify_payment_confirmed = AsyncMock(return_value=1)
    return push


@pytest.fixture
def purchase() -> ValidatedPurchase:
    return ValidatedPurchase(
        customer_name="Maria Silva",
        phone_number="11987654321",
        cpf="52998224725",
        email="m@x.com",
        amount_minor=1000,
        product_title="Plano Premium",
        product_description="Acesso mensal",
    )


@pytest.fixture
def make_purchase(session_factory):
    """Insert a purchase record directly, bypassing the gateway."""

    async def _make(
        phone_number: str = "11987654321",
        created_at: Optional[datetime] = None,
        status: PurchaseStatus = PurchaseStatus.GENERATED,
        external_transaction_id: Optional[str] = None,
        customer_name: str = "Maria Silva",
    ) -> PurchaseRecord:
        async with session_factory() as session:
            record = PurchaseRecord(
                customer_name=customer_name,
                phone_number=phone_number,
                amount_paid=1000,
                status=status.value,
                external_transaction_id=external_transaction_id,
                created_at=created_at or datetime.now(timezone.utc),
            )
            session.add(record)
            await session.commit()
            return record

    return _make


@pytest_asyncio.fixture
async def client(session_factory, gateway, notifier) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with the test database and mocked collaborators."""
    from app.main import app
    from app.database import get_db, get_session_factory

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.state.gateway_client = gateway
    app.state.notifier = notifier

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
