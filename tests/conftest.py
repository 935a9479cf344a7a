"""
Shared fixtures.

The environment is configured before `qrmenu` is imported: a throwaway
SQLite database, development services and no email confirmation step.
"""

import asyncio
import os
import tempfile
import uuid
from datetime import datetime, timezone
from decimal import Decimal

_TMP = tempfile.mkdtemp(prefix="qrmenu-tests-")

os.environ["ENV_MODE"] = "development"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP}/test.db"
os.environ["REQUIRE_EMAIL_CONFIRMATION"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-0123456789abcdef0123456789"
os.environ["UPLOADS_DIR"] = os.path.join(_TMP, "uploads")
os.environ["TIMEZONE"] = "UTC"
os.environ["PUBLIC_MENU_BASE_URL"] = "https://menu.example.com"

import httpx  # noqa: E402
import pytest  # noqa: E402

from qrmenu.database import Base, async_session_maker, engine  # noqa: E402
from qrmenu.models import (  # noqa: E402
    OrderStatus,
    Owner,
    PaymentMethod,
    Product,
    Profile,
    RestaurantTable,
    SubscriptionPlan,
)
from qrmenu.schemas import OrderEvent, OrderSummary  # noqa: E402
from qrmenu.services.notifications import get_notification_service, reset_notification_service  # noqa: E402
from qrmenu.services.realtime import get_order_feed, reset_order_feed  # noqa: E402
from qrmenu.services.tables import new_qr_token  # noqa: E402

PASSWORD = "s3cret-pass"


def event_for(owner_id: str, table_number: int = 1, total: str = "100") -> OrderEvent:
    """An `order_created` event for an order that exists only in the event."""
    now = datetime.now(timezone.utc)
    return OrderEvent(
        owner_id=owner_id,
        order=OrderSummary(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            table_id=None,
            table_number=table_number,
            status=OrderStatus.PENDING,
            payment_method=PaymentMethod.CASH,
            customer_note=None,
            total=Decimal(total),
            created_at=now,
            updated_at=now,
        ),
    )


async def _recreate_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture(autouse=True)
def fresh_state():
    """Empty database and fresh in-process services for every test."""
    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(_recreate_schema())
    finally:
        loop.close()
    reset_order_feed()
    reset_notification_service()
    yield
    reset_order_feed()
    reset_notification_service()


@pytest.fixture
def feed():
    return get_order_feed()


@pytest.fixture
def outbox():
    return get_notification_service().outbox


@pytest.fixture
async def session():
    async with async_session_maker() as db:
        yield db


@pytest.fixture
def make_owner(session):
    """Create a confirmed owner with a profile directly in the database."""

    async def _make_owner(
        email: str = "owner@pizza.bar",
        restaurant_name: str = "Pizza Bar",
        plan: SubscriptionPlan = SubscriptionPlan.BASIC,
    ) -> Owner:
        owner = Owner(
            email=email,
            password_hash="not-used",
            restaurant_name=restaurant_name,
            subscription_plan=plan,
            confirmed=True,
        )
        session.add(owner)
        await session.flush()
        session.add(Profile(owner_id=owner.id, restaurant_name=restaurant_name, subscription_plan=plan))
        await session.commit()
        return owner

    return _make_owner


@pytest.fixture
def make_product(session):
    async def _make_product(owner: Owner, name: str, price, available: bool = True, category_id=None) -> Product:
        product = Product(
            owner_id=owner.id,
            name=name,
            price=Decimal(str(price)),
            available=available,
            category_id=category_id,
        )
        session.add(product)
        await session.commit()
        return product

    return _make_product


@pytest.fixture
def make_table(session):
    async def _make_table(owner: Owner, number: int) -> RestaurantTable:
        table = RestaurantTable(owner_id=owner.id, number=number, qr_token=new_qr_token())
        session.add(table)
        await session.commit()
        return table

    return _make_table


# =============================================================================
# API
# =============================================================================

@pytest.fixture
async def client():
    from qrmenu.main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest.fixture
def sign_up_owner(client):
    """Sign an owner up and in through the API; returns bearer headers."""

    async def _sign_up(
        email: str = "owner@pizza.bar",
        restaurant_name: str = "Pizza Bar",
        plan: str = "basic",
    ) -> dict[str, str]:
        response = await client.post("/api/auth/sign-up", json={
            "email": email,
            "password": PASSWORD,
            "restaurant_name": restaurant_name,
            "subscription_plan": plan,
        })
        assert response.status_code == 201, response.text

        response = await client.post("/api/auth/sign-in", json={"email": email, "password": PASSWORD})
        assert response.status_code == 200, response.text
        client.cookies.clear()
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _sign_up
