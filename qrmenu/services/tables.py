"""
Table Registry

Bulk generation and deletion of an owner's tables, plus the QR code that
points customers at a table's public menu.

Numbering continues from the owner's highest existing table number. The
(owner_id, number) unique constraint turns a concurrent generation from a
second session into a conflict instead of duplicate numbers.

Author: Khalil Bannouri
Version: 1.0.0
"""

import io
import logging
import secrets

import qrcode
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.core.config import get_settings
from qrmenu.core.exceptions import (
    NotFoundError,
    StoreWriteError,
    TableNumberConflictError,
    ValidationFailedError,
)
from qrmenu.models import Order, RestaurantTable

logger = logging.getLogger(__name__)


def new_qr_token() -> str:
    """Unguessable, URL-safe table token."""
    return secrets.token_urlsafe(24)


def menu_url(table: RestaurantTable) -> str:
    """Public menu address encoded in the table's QR code."""
    base = get_settings().public_menu_base_url.rstrip("/")
    return f"{base}/menu/{table.qr_token}"


def qr_png(table: RestaurantTable, box_size: int = 10, border: int = 4) -> bytes:
    """Render the table's menu URL as a PNG QR code."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(menu_url(table))
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


class TableRegistry:
    """Tables of one owner."""

    def __init__(self, session: AsyncSession, owner_id: str):
        self.session = session
        self.owner_id = owner_id

    async def list_tables(self) -> list[RestaurantTable]:
        result = await self.session.execute(
            select(RestaurantTable)
            .where(RestaurantTable.owner_id == self.owner_id)
            .order_by(RestaurantTable.number)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        total = await self.session.scalar(
            select(func.count(RestaurantTable.id)).where(RestaurantTable.owner_id == self.owner_id)
        )
        return total or 0

    async def get(self, table_id: str) -> RestaurantTable:
        result = await self.session.execute(
            select(RestaurantTable).where(
                RestaurantTable.id == table_id,
                RestaurantTable.owner_id == self.owner_id,
            )
        )
        table = result.scalar_one_or_none()
        if table is None:
            raise NotFoundError(f"Table {table_id} not found")
        return table

    async def generate(self, count: int) -> list[RestaurantTable]:
        """
        Create `count` tables numbered after the owner's highest table.

        Raises:
            ValidationFailedError: count outside 1..MAX_TABLES_PER_BATCH
            TableNumberConflictError: another session took the same numbers;
                nothing was created
        """
        limit = get_settings().max_tables_per_batch
        if count < 1 or count > limit:
            raise ValidationFailedError(f"Number of tables must be between 1 and {limit}")

        highest = await self.session.scalar(
            select(func.max(RestaurantTable.number)).where(RestaurantTable.owner_id == self.owner_id)
        )
        start = (highest or 0) + 1
        tables = [
            RestaurantTable(owner_id=self.owner_id, number=number, qr_token=new_qr_token())
            for number in range(start, start + count)
        ]
        self.session.add_all(tables)

        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(f"Table numbers {start}..{start + count - 1} already taken for {self.owner_id}")
            raise TableNumberConflictError(
                "Table numbers changed while generating",
                detail="Another session created tables at the same time. Reload and try again.",
            ) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Table generation failed for {self.owner_id}: {e}")
            raise StoreWriteError("Could not create tables") from e

        logger.info(f"Generated tables {start}..{start + count - 1} for {self.owner_id}")
        return tables

    async def delete(self, table_id: str) -> None:
        """
        Delete a table. Its orders stay, keeping their table number snapshot
        but losing the reference; the QR token stops resolving.
        """
        table = await self.get(table_id)
        number = table.number
        await self.session.execute(
            update(Order)
            .where(Order.table_id == table.id, Order.owner_id == self.owner_id)
            .values(table_id=None)
        )
        await self.session.delete(table)

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Deleting table {number} failed for {self.owner_id}: {e}")
            raise StoreWriteError("Could not delete table") from e

        logger.info(f"Table {number} deleted for {self.owner_id}")
