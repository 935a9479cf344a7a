"""
Profile / Branding

Per-owner restaurant name, description, logo and menu theme, plus the
subscription plan that gates premium capabilities. The gate is checked
here, on the server, before a premium-only operation runs.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.core.exceptions import (
    NotFoundError,
    PlanRequiredError,
    StoreWriteError,
    ValidationFailedError,
)
from qrmenu.models import MenuTheme, Owner, Profile, SubscriptionPlan

logger = logging.getLogger(__name__)

_PLAN_RANK = {
    SubscriptionPlan.BASIC: 0,
    SubscriptionPlan.PREMIUM: 1,
}


def has_plan(profile: Profile, plan: SubscriptionPlan) -> bool:
    return _PLAN_RANK[SubscriptionPlan(profile.subscription_plan)] >= _PLAN_RANK[plan]


def require_plan(
    profile: Profile,
    plan: SubscriptionPlan = SubscriptionPlan.PREMIUM,
    feature: str = "This feature",
) -> None:
    """
    Raise PlanRequiredError unless the profile's plan includes `plan`.

    Example:
        >>> require_plan(profile, SubscriptionPlan.PREMIUM, "Analytics")
    """
    if not has_plan(profile, plan):
        logger.info(f"{feature} refused for {profile.owner_id}: {plan.value} plan required")
        raise PlanRequiredError(plan.value, feature)


class ProfileService:
    """Branding of one owner."""

    def __init__(self, session: AsyncSession, owner_id: str):
        self.session = session
        self.owner_id = owner_id

    async def _commit(self, action: str) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Profile write failed ({action}) for {self.owner_id}: {e}")
            raise StoreWriteError(f"Could not {action}") from e

    async def find_profile(self) -> Optional[Profile]:
        result = await self.session.execute(
            select(Profile).where(Profile.owner_id == self.owner_id)
        )
        return result.scalar_one_or_none()

    async def get_profile(self) -> Profile:
        profile = await self.find_profile()
        if profile is None:
            raise NotFoundError("Profile not found", detail="Sign in again to create it.")
        return profile

    async def ensure_profile(self, owner: Owner) -> Profile:
        """
        Create the profile from sign-up metadata if it does not exist yet.

        An existing profile is left as the owner last edited it.
        """
        profile = await self.find_profile()
        if profile is not None:
            return profile

        profile = Profile(
            owner_id=owner.id,
            restaurant_name=owner.restaurant_name,
            subscription_plan=owner.subscription_plan,
            menu_theme=MenuTheme.DEFAULT,
        )
        self.session.add(profile)
        await self._commit("create profile")
        logger.info(f"Profile created for {owner.email} ({profile.subscription_plan.value})")
        return profile

    async def update_profile(
        self,
        restaurant_name: Optional[str] = None,
        restaurant_description: Optional[str] = None,
    ) -> Profile:
        profile = await self.get_profile()
        if restaurant_name is not None:
            if not restaurant_name.strip():
                raise ValidationFailedError("Restaurant name is required")
            profile.restaurant_name = restaurant_name.strip()
        if restaurant_description is not None:
            profile.restaurant_description = restaurant_description.strip() or None
        await self._commit("update profile")
        return profile

    async def set_logo(self, logo_url: str) -> Profile:
        profile = await self.get_profile()
        profile.logo_url = logo_url
        await self._commit("update logo")
        return profile

    async def set_theme(self, theme: MenuTheme) -> Profile:
        """Change the public menu theme (premium only)."""
        profile = await self.get_profile()
        require_plan(profile, SubscriptionPlan.PREMIUM, "Menu themes")
        profile.menu_theme = MenuTheme(theme)
        await self._commit("update theme")
        logger.info(f"Menu theme of {self.owner_id} set to {profile.menu_theme.value}")
        return profile
