"""
Pydantic Schemas for Request/Response Validation

Request bodies use the camelCase field names admin and customer
screens already send (customerName, itemId, categoryId, ...);
snake_case is accepted too. Responses mirror the stored rows.

Prices leave the API in integer minor units (price_cents). Prices
coming in from admins are given in major units and converted once by
the catalog.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from orderdesk.models import OrderStatus


class RequestModel(BaseModel):
    """Accepts both camelCase and snake_case keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# CATALOG REQUEST SCHEMAS
# =============================================================================

class CategoryCreate(RequestModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Burgers"])
    sort_order: int = Field(default=0, examples=[1])


class MenuItemCreate(RequestModel):
    """New menu item. ``price`` is in major currency units (e.g. 85.00)."""
    category_id: int = Field(..., examples=[1])
    name: str = Field(..., min_length=1, max_length=100, examples=["Classic Burger"])
    description: str = Field(default="", examples=["150g beef patty, lettuce, tomato"])
    price: Decimal = Field(
        ...,
        ge=0,
        validation_alias=AliasChoices("price", "priceZAR"),
        examples=[85.0],
    )
    available: bool = True


class MenuItemUpdate(RequestModel):
    """Partial update; omitted fields keep their current value."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(
        None,
        ge=0,
        validation_alias=AliasChoices("price", "priceZAR"),
    )


class AvailabilityUpdate(RequestModel):
    available: bool


# =============================================================================
# ORDER REQUEST SCHEMAS
# =============================================================================

class OrderLineRequest(RequestModel):
    """
    One requested item. ``qty`` is left loose on purpose: anything
    missing or unparseable is normalized to 1 by the pricing engine.
    """
    item_id: Optional[int] = Field(None, examples=[1])
    qty: Any = Field(default=None, examples=[2])


class OrderCreate(RequestModel):
    """Request schema for placing a new order. Prices are never accepted."""
    customer_name: str = Field(..., max_length=100, examples=["Thandi"])
    phone: str = Field(..., max_length=30, examples=["0821234567"])
    items: List[OrderLineRequest]


class StatusUpdate(RequestModel):
    status: str = Field(..., examples=["PREPARING"])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class MenuItemRead(BaseModel):
    id: int
    category_id: int
    name: str
    description: str
    price_cents: int
    available: bool

    model_config = ConfigDict(from_attributes=True)


class CategoryRead(BaseModel):
    id: int
    name: str
    sort_order: int
    items: List[MenuItemRead] = []

    model_config = ConfigDict(from_attributes=True)


class MenuResponse(BaseModel):
    currency: str
    categories: List[CategoryRead]


class ItemCreateResponse(BaseModel):
    ok: bool = True
    id: int
    item: MenuItemRead


class ItemResponse(BaseModel):
    ok: bool = True
    item: MenuItemRead


class CategoryCreateResponse(BaseModel):
    ok: bool = True
    id: int
    category: CategoryRead


class LineItemRead(BaseModel):
    """
    Line item as shown to staff.

    ``current_name`` is the live menu name when the item still exists;
    ``name`` falls back to the snapshot otherwise.
    """
    id: int
    item_id: int
    qty: int
    item_name_snapshot: str
    price_cents_snapshot: int
    line_total_cents: int
    current_name: Optional[str] = None
    name: str


class OrderRead(BaseModel):
    """Fully hydrated order, also used as the event payload."""
    id: int
    customer_name: str
    phone: str
    total_cents: int
    status: OrderStatus
    created_at: datetime
    items: List[LineItemRead]


class OrderCreateResponse(BaseModel):
    ok: bool = True
    order_id: int = Field(..., alias="orderId")
    order: OrderRead

    model_config = ConfigDict(populate_by_name=True)


class OrderListResponse(BaseModel):
    total: int
    orders: List[OrderRead]


class StatusUpdateResponse(BaseModel):
    ok: bool = True
    order: OrderRead


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    message: Optional[str] = None
    detail: Optional[Any] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    broadcaster: str
    observers: int
    timestamp: datetime
