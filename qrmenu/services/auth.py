"""
Auth Service

Owner accounts: sign-up with email confirmation, sign-in issuing a bearer
access token, and resolving the current owner from a token. Every
owner-scoped service receives the owner id resolved here.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
from urllib.parse import urlencode

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.core.config import get_settings
from qrmenu.core.exceptions import (
    AuthenticationError,
    ConflictError,
    StoreWriteError,
    ValidationFailedError,
)
from qrmenu.core.security import (
    ACCESS_PURPOSE,
    CONFIRM_PURPOSE,
    create_access_token,
    create_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from qrmenu.models import Owner, Profile, SubscriptionPlan
from qrmenu.services.notifications import BaseNotificationService, get_notification_service
from qrmenu.services.profile import ProfileService

logger = logging.getLogger(__name__)


@dataclass
class SignUpResult:
    owner: Owner
    status: str  # "pending_confirmation" or "confirmed"


@dataclass
class SignInResult:
    owner: Owner
    profile: Profile
    access_token: str


class AuthService:
    """
    Example:
        >>> auth = AuthService(db)
        >>> await auth.sign_up("owner@pizza.bar", "s3cretpass", "Pizza Bar")
        >>> result = await auth.sign_in("owner@pizza.bar", "s3cretpass")
        >>> result.access_token
    """

    def __init__(
        self,
        session: AsyncSession,
        notifier: Optional[BaseNotificationService] = None,
    ):
        self.session = session
        self.notifier = notifier or get_notification_service()

    async def _find_by_email(self, email: str) -> Optional[Owner]:
        return await self.session.scalar(
            select(Owner).where(Owner.email == email.strip().lower())
        )

    async def sign_up(
        self,
        email: str,
        password: str,
        restaurant_name: str,
        subscription_plan: SubscriptionPlan = SubscriptionPlan.BASIC,
    ) -> SignUpResult:
        """
        Register an owner.

        With REQUIRE_EMAIL_CONFIRMATION the account stays unconfirmed and a
        confirmation link is emailed; otherwise it can sign in right away.
        """
        settings = get_settings()
        email = email.strip().lower()
        if not restaurant_name.strip():
            raise ValidationFailedError("Restaurant name is required")
        if await self._find_by_email(email) is not None:
            raise ConflictError("An account with this email already exists")

        owner = Owner(
            email=email,
            password_hash=get_password_hash(password),
            restaurant_name=restaurant_name.strip(),
            subscription_plan=SubscriptionPlan(subscription_plan),
            confirmed=not settings.require_email_confirmation,
        )
        self.session.add(owner)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError("An account with this email already exists") from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Sign-up of {email} failed: {e}")
            raise StoreWriteError("Could not create the account") from e

        logger.info(f"Owner {email} signed up ({owner.subscription_plan.value})")

        if owner.confirmed:
            return SignUpResult(owner=owner, status="confirmed")

        await self._send_confirmation(owner)
        return SignUpResult(owner=owner, status="pending_confirmation")

    def confirmation_url(self, owner: Owner) -> str:
        settings = get_settings()
        token = create_token(
            owner.id,
            CONFIRM_PURPOSE,
            timedelta(hours=settings.confirmation_token_expire_hours),
        )
        base = settings.app_base_url.rstrip("/")
        return f"{base}/api/auth/confirm?{urlencode({'token': token})}"

    async def _send_confirmation(self, owner: Owner) -> None:
        result = await self.notifier.send_signup_confirmation(
            to_email=owner.email,
            restaurant_name=owner.restaurant_name,
            confirm_url=self.confirmation_url(owner),
        )
        if not result.success:
            logger.warning(f"Confirmation email to {owner.email} not sent: {result.error_message}")

    async def confirm(self, token: str) -> Owner:
        owner_id = decode_token(token, CONFIRM_PURPOSE)
        if owner_id is None:
            raise AuthenticationError("Confirmation link is invalid or has expired")

        owner = await self.session.get(Owner, owner_id)
        if owner is None:
            raise AuthenticationError("Confirmation link is invalid or has expired")

        if not owner.confirmed:
            owner.confirmed = True
            try:
                await self.session.commit()
            except SQLAlchemyError as e:
                await self.session.rollback()
                raise StoreWriteError("Could not confirm the account") from e
            logger.info(f"Owner {owner.email} confirmed")
        return owner

    async def sign_in(self, email: str, password: str) -> SignInResult:
        """Check credentials, make sure the profile exists and issue a token."""
        owner = await self._find_by_email(email)
        if owner is None or not verify_password(password, owner.password_hash):
            logger.info(f"Failed sign-in for {email}")
            raise AuthenticationError("Invalid email or password")
        if not owner.confirmed:
            raise AuthenticationError(
                "Email not confirmed",
                detail="Open the confirmation link we emailed you.",
            )

        profile = await ProfileService(self.session, owner.id).ensure_profile(owner)
        logger.info(f"Owner {owner.email} signed in")
        return SignInResult(
            owner=owner,
            profile=profile,
            access_token=create_access_token(owner.id),
        )

    async def current_owner(self, token: Optional[str]) -> Owner:
        """Owner for an access token, or AuthenticationError."""
        owner_id = decode_token(token, ACCESS_PURPOSE) if token else None
        if owner_id is None:
            raise AuthenticationError("Not authenticated")

        owner = await self.session.get(Owner, owner_id)
        if owner is None or not owner.confirmed:
            raise AuthenticationError("Not authenticated")
        return owner
