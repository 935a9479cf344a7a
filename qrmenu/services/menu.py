"""
Public Menu

The unauthenticated path: a customer's QR token resolves to a table, the
owner's branding and the owner's available products. Orders submitted
from that menu are priced from the catalog, never from the client.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.core.config import get_settings
from qrmenu.core.exceptions import MenuNotFoundError
from qrmenu.models import Category, Order, PaymentMethod, Product, Profile, RestaurantTable
from qrmenu.schemas import (
    MenuProfile,
    MenuResponse,
    MenuSection,
    OrderLine,
    ProductResponse,
)
from qrmenu.services.catalog import CatalogStore
from qrmenu.services.ordering import Cart, OrderWorkflow
from qrmenu.services.realtime import BaseOrderFeed

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Other"


@dataclass
class PublicMenu:
    table: RestaurantTable
    profile: Profile
    categories: list[Category]
    products: list[Product]

    def sections(self) -> list[MenuSection]:
        """Products grouped by category in display order; empty categories are skipped."""
        known = {c.id for c in self.categories}
        sections = []
        for category in self.categories:
            products = [p for p in self.products if p.category_id == category.id]
            if products:
                sections.append(self._section(category.id, category.name, products))

        loose = [p for p in self.products if p.category_id not in known]
        if loose:
            sections.append(self._section(None, UNCATEGORIZED, loose))
        return sections

    @staticmethod
    def _section(category_id: Optional[str], name: str, products: list[Product]) -> MenuSection:
        return MenuSection(
            category_id=category_id,
            name=name,
            products=[ProductResponse.model_validate(p) for p in products],
        )

    def to_response(self) -> MenuResponse:
        return MenuResponse(
            table_number=self.table.number,
            currency=get_settings().currency,
            profile=MenuProfile(
                restaurant_name=self.profile.restaurant_name,
                restaurant_description=self.profile.restaurant_description,
                logo_url=self.profile.logo_url,
                menu_theme=self.profile.menu_theme,
            ),
            sections=self.sections(),
        )


async def resolve_menu(session: AsyncSession, token: str) -> PublicMenu:
    """
    Look up the menu a QR token points at.

    Raises:
        MenuNotFoundError: unknown token, or a table whose owner has no profile
    """
    table = await session.scalar(
        select(RestaurantTable).where(RestaurantTable.qr_token == token)
    )
    if table is None:
        logger.info(f"Menu lookup for unknown token {token[:6]}…")
        raise MenuNotFoundError(token)

    profile = await session.scalar(
        select(Profile).where(Profile.owner_id == table.owner_id)
    )
    if profile is None:
        logger.warning(f"Table {table.number} of {table.owner_id} has no profile")
        raise MenuNotFoundError(token)

    catalog = CatalogStore(session, table.owner_id)
    return PublicMenu(
        table=table,
        profile=profile,
        categories=await catalog.list_categories(),
        products=await catalog.list_products(available_only=True),
    )


def selection_from_lines(lines: Iterable[OrderLine]) -> dict[str, int]:
    """Merge submitted lines into `{product_id: quantity}`."""
    selection: dict[str, int] = {}
    for line in lines:
        selection[line.product_id] = selection.get(line.product_id, 0) + line.quantity
    return selection


async def submit_order(
    session: AsyncSession,
    token: str,
    selection: dict[str, int],
    payment_method: PaymentMethod = PaymentMethod.CASH,
    customer_note: Optional[str] = None,
    feed: Optional[BaseOrderFeed] = None,
) -> Order:
    """Place an order from the menu behind `token`."""
    menu = await resolve_menu(session, token)
    cart = Cart.from_selection(menu.products, selection)
    return await OrderWorkflow(session, feed).submit(
        menu.table,
        cart,
        payment_method=payment_method,
        customer_note=customer_note,
    )
