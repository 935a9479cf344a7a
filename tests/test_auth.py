import re
from urllib.parse import parse_qs, urlparse

import pytest
from sqlalchemy import select

from qrmenu.core.config import get_settings
from qrmenu.core.exceptions import AuthenticationError, ConflictError
from qrmenu.core.security import create_access_token
from qrmenu.models import MenuTheme, Profile, SubscriptionPlan
from qrmenu.services.auth import AuthService

from tests.conftest import PASSWORD


def confirmation_token(body: str) -> str:
    url = re.search(r"https?://\S+", body).group(0)
    return parse_qs(urlparse(url).query)["token"][0]


@pytest.fixture
def require_confirmation(monkeypatch):
    monkeypatch.setattr(get_settings(), "require_email_confirmation", True)


async def test_sign_up_waits_for_confirmation(session, outbox, require_confirmation):
    auth = AuthService(session)

    result = await auth.sign_up("Owner@Pizza.Bar", PASSWORD, "Pizza Bar", SubscriptionPlan.PREMIUM)

    assert result.status == "pending_confirmation"
    assert result.owner.email == "owner@pizza.bar"
    assert result.owner.confirmed is False
    assert len(outbox) == 1
    assert outbox[0].to_email == "owner@pizza.bar"
    assert "/api/auth/confirm?token=" in outbox[0].body_text

    with pytest.raises(AuthenticationError):
        await auth.sign_in("owner@pizza.bar", PASSWORD)


async def test_confirmed_owner_gets_a_profile_from_sign_up_data(session, outbox, require_confirmation):
    auth = AuthService(session)
    await auth.sign_up("owner@pizza.bar", PASSWORD, "Pizza Bar", SubscriptionPlan.PREMIUM)

    await auth.confirm(confirmation_token(outbox[0].body_text))
    result = await auth.sign_in("owner@pizza.bar", PASSWORD)

    assert result.profile.restaurant_name == "Pizza Bar"
    assert result.profile.subscription_plan == SubscriptionPlan.PREMIUM
    assert result.profile.menu_theme == MenuTheme.DEFAULT
    assert (await auth.current_owner(result.access_token)).id == result.owner.id


async def test_sign_in_keeps_an_edited_profile(session):
    auth = AuthService(session)
    await auth.sign_up("owner@pizza.bar", PASSWORD, "Pizza Bar")
    first = await auth.sign_in("owner@pizza.bar", PASSWORD)
    first.profile.restaurant_name = "Pizza Bar & Grill"
    await session.commit()

    await auth.sign_in("owner@pizza.bar", PASSWORD)

    profiles = (await session.execute(select(Profile))).scalars().all()
    assert [p.restaurant_name for p in profiles] == ["Pizza Bar & Grill"]


async def test_without_confirmation_step_sign_in_works_at_once(session, outbox):
    result = await AuthService(session).sign_up("owner@pizza.bar", PASSWORD, "Pizza Bar")

    assert result.status == "confirmed"
    assert outbox == []


async def test_wrong_password_is_rejected(session):
    auth = AuthService(session)
    await auth.sign_up("owner@pizza.bar", PASSWORD, "Pizza Bar")

    with pytest.raises(AuthenticationError):
        await auth.sign_in("owner@pizza.bar", "wrong-password")
    with pytest.raises(AuthenticationError):
        await auth.sign_in("nobody@pizza.bar", PASSWORD)


async def test_duplicate_email_is_a_conflict(session):
    auth = AuthService(session)
    await auth.sign_up("owner@pizza.bar", PASSWORD, "Pizza Bar")

    with pytest.raises(ConflictError):
        await auth.sign_up("OWNER@pizza.bar", PASSWORD, "Another Bar")


async def test_confirmation_token_is_not_an_access_token(session, outbox, require_confirmation):
    auth = AuthService(session)
    await auth.sign_up("owner@pizza.bar", PASSWORD, "Pizza Bar")
    token = confirmation_token(outbox[0].body_text)

    with pytest.raises(AuthenticationError):
        await auth.current_owner(token)
    with pytest.raises(AuthenticationError):
        await auth.confirm("not-a-token")


async def test_unconfirmed_owner_cannot_use_an_access_token(session, require_confirmation):
    auth = AuthService(session)
    result = await auth.sign_up("owner@pizza.bar", PASSWORD, "Pizza Bar")

    with pytest.raises(AuthenticationError):
        await auth.current_owner(create_access_token(result.owner.id))
    with pytest.raises(AuthenticationError):
        await auth.current_owner(None)
