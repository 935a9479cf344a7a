"""
Catalog Store

Owner-scoped CRUD for categories and products. Every query filters on the
owner id the store was created with; ids belonging to another owner behave
as if they did not exist.

Products keep a weak reference to their category, and order items keep a
weak reference to their product: deleting either clears the reference and
leaves the referencing rows (and their snapshots) in place.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.core.exceptions import NotFoundError, StoreWriteError, ValidationFailedError
from qrmenu.models import Category, OrderItem, Product

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = {"name", "description", "price", "category_id", "available", "sort_order"}


class CatalogStore:
    """Categories and products of one owner."""

    def __init__(self, session: AsyncSession, owner_id: str):
        self.session = session
        self.owner_id = owner_id

    async def _commit(self, action: str) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Catalog write failed ({action}) for {self.owner_id}: {e}")
            raise StoreWriteError(f"Could not {action}") from e

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    async def list_categories(self) -> list[Category]:
        result = await self.session.execute(
            select(Category)
            .where(Category.owner_id == self.owner_id)
            .order_by(Category.sort_order, Category.created_at)
        )
        return list(result.scalars().all())

    async def get_category(self, category_id: str) -> Category:
        result = await self.session.execute(
            select(Category).where(
                Category.id == category_id,
                Category.owner_id == self.owner_id,
            )
        )
        category = result.scalar_one_or_none()
        if category is None:
            raise NotFoundError(f"Category {category_id} not found")
        return category

    async def add_category(self, name: str) -> Category:
        name = name.strip()
        if not name:
            raise ValidationFailedError("Category name is required")

        position = await self.session.scalar(
            select(func.count(Category.id)).where(Category.owner_id == self.owner_id)
        )
        category = Category(owner_id=self.owner_id, name=name, sort_order=position or 0)
        self.session.add(category)
        await self._commit("add category")
        logger.info(f"Category '{name}' added for {self.owner_id}")
        return category

    async def update_category(
        self,
        category_id: str,
        name: Optional[str] = None,
        sort_order: Optional[int] = None,
    ) -> Category:
        category = await self.get_category(category_id)
        if name is not None:
            if not name.strip():
                raise ValidationFailedError("Category name is required")
            category.name = name.strip()
        if sort_order is not None:
            category.sort_order = sort_order
        await self._commit("update category")
        return category

    async def delete_category(self, category_id: str) -> None:
        """Delete a category; its products become uncategorized."""
        category = await self.get_category(category_id)
        await self.session.execute(
            update(Product)
            .where(Product.category_id == category.id, Product.owner_id == self.owner_id)
            .values(category_id=None)
        )
        await self.session.delete(category)
        await self._commit("delete category")
        logger.info(f"Category '{category.name}' deleted for {self.owner_id}")

    # =========================================================================
    # PRODUCTS
    # =========================================================================

    async def list_products(self, available_only: bool = False) -> list[Product]:
        query = select(Product).where(Product.owner_id == self.owner_id)
        if available_only:
            query = query.where(Product.available.is_(True))
        result = await self.session.execute(
            query.order_by(Product.sort_order, Product.created_at)
        )
        return list(result.scalars().all())

    async def get_product(self, product_id: str) -> Product:
        result = await self.session.execute(
            select(Product).where(
                Product.id == product_id,
                Product.owner_id == self.owner_id,
            )
        )
        product = result.scalar_one_or_none()
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    async def _check_category(self, category_id: Optional[str]) -> None:
        if category_id is not None:
            await self.get_category(category_id)

    async def add_product(
        self,
        name: str,
        price: Decimal,
        description: Optional[str] = None,
        category_id: Optional[str] = None,
        available: bool = True,
    ) -> Product:
        if not name.strip():
            raise ValidationFailedError("Product name is required")
        if Decimal(price) < 0:
            raise ValidationFailedError("Price must not be negative")
        await self._check_category(category_id)

        position = await self.session.scalar(
            select(func.count(Product.id)).where(Product.owner_id == self.owner_id)
        )
        product = Product(
            owner_id=self.owner_id,
            category_id=category_id,
            name=name.strip(),
            description=description,
            price=Decimal(price),
            available=available,
            sort_order=position or 0,
        )
        self.session.add(product)
        await self._commit("add product")
        logger.info(f"Product '{product.name}' ({product.price}) added for {self.owner_id}")
        return product

    async def update_product(self, product_id: str, changes: dict[str, Any]) -> Product:
        """
        Apply a partial update. Keys absent from `changes` are left alone;
        `category_id=None` uncategorizes the product.

        Existing order items are untouched: they carry their own name and
        price snapshot.
        """
        unknown = set(changes) - PRODUCT_FIELDS
        if unknown:
            raise ValidationFailedError(f"Unknown product fields: {sorted(unknown)}")

        product = await self.get_product(product_id)
        if "category_id" in changes:
            await self._check_category(changes["category_id"])
        if "price" in changes and (changes["price"] is None or Decimal(changes["price"]) < 0):
            raise ValidationFailedError("Price must not be negative")
        if "name" in changes and not (changes["name"] or "").strip():
            raise ValidationFailedError("Product name is required")

        for field, value in changes.items():
            if field == "name":
                value = value.strip()
            elif field == "price":
                value = Decimal(value)
            elif field in ("available", "sort_order") and value is None:
                continue
            setattr(product, field, value)

        await self._commit("update product")
        return product

    async def set_product_image(self, product_id: str, image_url: str) -> Product:
        product = await self.get_product(product_id)
        product.image_url = image_url
        await self._commit("update product image")
        return product

    async def delete_product(self, product_id: str) -> None:
        """Delete a product; order items keep their snapshot without the reference."""
        product = await self.get_product(product_id)
        await self.session.execute(
            update(OrderItem)
            .where(OrderItem.product_id == product.id)
            .values(product_id=None)
        )
        await self.session.delete(product)
        await self._commit("delete product")
        logger.info(f"Product '{product.name}' deleted for {self.owner_id}")
