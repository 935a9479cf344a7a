"""
Pydantic Schemas for Request/Response Validation

Covers:
- Auth (sign-up, sign-in)
- Profile / branding
- Catalog (categories, products) and tables
- Public menu and order submission
- Orders, realtime events and dashboard statistics

Author: Khalil Bannouri
Version: 1.0.0
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from qrmenu.models import MenuTheme, OrderStatus, PaymentMethod, SubscriptionPlan


# =============================================================================
# AUTH SCHEMAS
# =============================================================================

class SignUpRequest(BaseModel):
    """Owner registration. Plan and restaurant name become the Profile."""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    restaurant_name: str = Field(..., min_length=1, max_length=100, examples=["Pizza Bar"])
    subscription_plan: SubscriptionPlan = SubscriptionPlan.BASIC


class SignUpResponse(BaseModel):
    success: bool = True
    owner_id: str
    status: Literal["pending_confirmation", "confirmed"]
    message: str


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    owner_id: str


# =============================================================================
# PROFILE SCHEMAS
# =============================================================================

class ProfileResponse(BaseModel):
    owner_id: str
    restaurant_name: str
    restaurant_description: Optional[str]
    logo_url: Optional[str]
    subscription_plan: SubscriptionPlan
    menu_theme: MenuTheme

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    restaurant_name: Optional[str] = Field(None, min_length=1, max_length=100)
    restaurant_description: Optional[str] = Field(None, max_length=1000)


class ThemeUpdate(BaseModel):
    menu_theme: MenuTheme


class MeResponse(BaseModel):
    owner_id: str
    email: str
    profile: ProfileResponse


# =============================================================================
# CATALOG SCHEMAS
# =============================================================================

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Pizza"])

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Category name must not be blank")
        return v


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    sort_order: Optional[int] = Field(None, ge=0)


class CategoryResponse(BaseModel):
    id: str
    name: str
    sort_order: int

    model_config = ConfigDict(from_attributes=True)


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Margherita"])
    description: Optional[str] = Field(None, max_length=1000)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2, examples=[800])
    category_id: Optional[str] = None
    available: bool = True

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Product name must not be blank")
        return v


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    category_id: Optional[str] = None
    available: Optional[bool] = None
    sort_order: Optional[int] = Field(None, ge=0)


class ProductResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    price: Decimal
    category_id: Optional[str]
    available: bool
    image_url: Optional[str]
    sort_order: int

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# TABLE SCHEMAS
# =============================================================================

class TableGenerateRequest(BaseModel):
    count: int = Field(..., ge=1, examples=[5])


class TableResponse(BaseModel):
    id: str
    number: int
    qr_token: str
    menu_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class TableListResponse(BaseModel):
    total: int
    tables: List[TableResponse]


# =============================================================================
# PUBLIC MENU SCHEMAS
# =============================================================================

class MenuProfile(BaseModel):
    restaurant_name: str
    restaurant_description: Optional[str]
    logo_url: Optional[str]
    menu_theme: MenuTheme


class MenuSection(BaseModel):
    category_id: Optional[str]
    name: str
    products: List[ProductResponse]


class MenuResponse(BaseModel):
    """What a customer sees after scanning a table's QR code."""
    table_number: int
    currency: str
    profile: MenuProfile
    sections: List[MenuSection]


class OrderLine(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1, le=99)


class OrderSubmitRequest(BaseModel):
    """
    Customer order submission.

    Only product ids and quantities are accepted; names and prices are
    taken from the current catalog on the server.
    """
    items: List[OrderLine] = Field(..., min_length=1)
    payment_method: PaymentMethod = PaymentMethod.CASH
    customer_note: Optional[str] = Field(None, max_length=500)

    @field_validator("customer_note")
    @classmethod
    def blank_note_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()


# =============================================================================
# ORDER SCHEMAS
# =============================================================================

class OrderItemResponse(BaseModel):
    id: str
    product_id: Optional[str]
    product_name: str
    quantity: int
    unit_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderSummary(BaseModel):
    """Order row as pushed by the realtime feed (no items)."""
    id: str
    owner_id: str
    table_id: Optional[str]
    table_number: Optional[int]
    status: OrderStatus
    payment_method: PaymentMethod
    customer_note: Optional[str]
    total: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderResponse(OrderSummary):
    items: List[OrderItemResponse] = []


class OrderCreateResponse(BaseModel):
    """Response after successfully submitting an order."""
    success: bool
    message: str
    order_id: str
    table_number: Optional[int]
    total: Decimal
    status: OrderStatus


class OrderListResponse(BaseModel):
    total: int
    orders: List[OrderResponse]


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderStatusResponse(BaseModel):
    order_id: str
    status: OrderStatus
    next_statuses: List[OrderStatus]


# =============================================================================
# REALTIME / DASHBOARD SCHEMAS
# =============================================================================

class OrderEvent(BaseModel):
    """Insert event delivered to the owner's dashboard subscriptions."""
    type: Literal["order_created"] = "order_created"
    owner_id: str
    order: OrderSummary


class DashboardStats(BaseModel):
    today_revenue: Decimal
    avg_order_value: Decimal
    today_order_count: int
    completed_order_count: int
    status_counts: Dict[OrderStatus, int]
    currency: str


# =============================================================================
# GENERIC RESPONSES
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    code: str = "error"
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    realtime: str
    storage: str
    email: str
    timestamp: datetime
