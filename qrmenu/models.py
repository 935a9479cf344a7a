"""
SQLAlchemy Database Models

Relational store for the QR menu service:
- Owners and their Profile (branding, subscription plan)
- Catalog: Categories and Products
- Tables addressed by an unguessable QR token
- Orders with snapshotted Order Items

Every owner-scoped table carries `owner_id`; services always filter on it.

Author: Khalil Bannouri
Version: 1.0.0
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from qrmenu.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, enum.Enum):
    """Order status workflow (see services.ordering.status for the graph)."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    """Recorded on the order; payments are settled at the table."""
    CASH = "cash"
    CARD = "card"


class SubscriptionPlan(str, enum.Enum):
    BASIC = "basic"
    PREMIUM = "premium"


class MenuTheme(str, enum.Enum):
    DEFAULT = "default"
    DARK = "dark"
    WARM = "warm"
    OCEAN = "ocean"


def _enum(enum_cls, name: str) -> Enum:
    # Persist the lowercase values, not the member names
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


PLAN_TYPE = _enum(SubscriptionPlan, "subscription_plan")


class Owner(Base):
    """
    A registered restaurant operator account.

    Sign-up metadata (restaurant name, chosen plan) lives here until the
    first sign-in copies it into the Profile.
    """
    __tablename__ = "owners"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    restaurant_name = Column(String(100), nullable=False, default="")
    subscription_plan = Column(
        PLAN_TYPE,
        default=SubscriptionPlan.BASIC,
        nullable=False,
    )
    confirmed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self):
        return f"<Owner {self.email}>"


class Profile(Base):
    """Per-owner branding consumed by the public menu."""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=_uuid)
    owner_id = Column(
        String(36),
        ForeignKey("owners.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    # =========================================================================
    # BRANDING
    # =========================================================================
    restaurant_name = Column(String(100), nullable=False, default="")
    restaurant_description = Column(Text, nullable=True)
    logo_url = Column(String(500), nullable=True)
    menu_theme = Column(
        _enum(MenuTheme, "menu_theme"),
        default=MenuTheme.DEFAULT,
        nullable=False,
    )

    # =========================================================================
    # PLAN
    # =========================================================================
    subscription_plan = Column(
        PLAN_TYPE,
        default=SubscriptionPlan.BASIC,
        nullable=False,
    )

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self):
        return f"<Profile {self.restaurant_name} ({self.subscription_plan.value})>"


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=_uuid)
    owner_id = Column(String(36), ForeignKey("owners.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self):
        return f"<Category {self.name}>"


class Product(Base):
    """
    A menu entry. Only available products are shown on the public menu.

    `category_id` is a weak reference: deleting the category leaves the
    product uncategorized.
    """
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=_uuid)
    owner_id = Column(String(36), ForeignKey("owners.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(
        String(36),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    available = Column(Boolean, nullable=False, default=True)
    image_url = Column(String(500), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self):
        return f"<Product {self.name} {self.price}>"


class RestaurantTable(Base):
    """
    A physical table. `qr_token` is issued once and is the only key the
    public menu is resolved by.
    """
    __tablename__ = "restaurant_tables"
    __table_args__ = (
        UniqueConstraint("owner_id", "number", name="uq_restaurant_tables_owner_number"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    owner_id = Column(String(36), ForeignKey("owners.id", ondelete="CASCADE"), nullable=False, index=True)
    number = Column(Integer, nullable=False)
    qr_token = Column(String(64), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self):
        return f"<Table {self.number}>"


class Order(Base):
    """
    A customer order placed from a table's menu.

    `table_number` and `total` are snapshots taken at submission and are
    never recomputed; `table_id` is cleared when the table is deleted.
    """
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_uuid)
    owner_id = Column(String(36), ForeignKey("owners.id", ondelete="CASCADE"), nullable=False, index=True)

    # =========================================================================
    # TABLE
    # =========================================================================
    table_id = Column(
        String(36),
        ForeignKey("restaurant_tables.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    table_number = Column(Integer, nullable=True)

    # =========================================================================
    # ORDER DETAILS
    # =========================================================================
    status = Column(
        _enum(OrderStatus, "order_status"),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True,
    )
    payment_method = Column(
        _enum(PaymentMethod, "payment_method"),
        default=PaymentMethod.CASH,
        nullable=False,
    )
    customer_note = Column(Text, nullable=True)
    total = Column(Numeric(12, 2), nullable=False, default=0)

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="OrderItem.position",
    )

    def __repr__(self):
        return f"<Order #{self.id[:8]} - Table {self.table_number} - {self.status.value}>"


class OrderItem(Base):
    """
    One line of an order. Name and unit price are copied from the product
    at submission so later catalog edits never rewrite history.
    """
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(
        String(36),
        ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    product_name = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(12, 2), nullable=False, default=0)
    position = Column(Integer, nullable=False, default=0)

    order = relationship("Order", back_populates="items")

    @property
    def line_total(self):
        return self.unit_price * self.quantity

    def __repr__(self):
        return f"<OrderItem {self.quantity}x {self.product_name}>"
