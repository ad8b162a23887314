# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")

DiscountKind = Literal["percentage", "fixed"]
PaymentStatus = Literal["pending", "completed", "failed"]
OrderStatus = Literal["processing", "shipped", "delivered", "cancelled"]

# stripped and uppercased before the length check
DiscountCode = Annotated[
    str,
    StringConstraints(strip_whitespace=True, to_upper=True, min_length=3, max_length=20),
]


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    data: T


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    next: Optional[int] = None
    prev: Optional[int] = None


class PagedResponse(CamelModel, Generic[T]):
    success: bool = True
    count: int
    pagination: Pagination
    data: List[T]


class MessageResponse(CamelModel):
    success: bool = True
    message: str


# --- catalog ---

class ProductCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(..., ge=0, decimal_places=2)
    stock: int = Field(0, ge=0)


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)


class ProductOut(CamelModel):
    id: int
    name: str
    price: Decimal
    stock: int


# --- cart ---

class ItemIn(CamelModel):
    """Body for adding a product to the cart."""

    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1)


class ItemUpdateIn(CamelModel):
    # productId is accepted for compatibility, the line is addressed by itemId
    product_id: Optional[int] = Field(None, gt=0)
    quantity: int = Field(..., ge=1)


class DiscountCodeIn(CamelModel):
    code: str = Field(..., min_length=1)


class CartItemOut(CamelModel):
    id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class AppliedDiscountOut(CamelModel):
    code: str
    amount: Decimal


class CartOut(CamelModel):
    id: int
    owner_user_id: int
    items: List[CartItemOut]
    applied_discount: Optional[AppliedDiscountOut] = None
    subtotal: Decimal
    total: Decimal
    total_items: int


# --- discounts ---

class DiscountBase(CamelModel):
    description: str = ""
    kind: DiscountKind
    value: Decimal = Field(..., ge=0)
    max_discount_amount: Optional[Decimal] = Field(None, ge=0)
    min_purchase: Decimal = Field(Decimal("0"), ge=0)
    usage_limit: Optional[int] = Field(None, ge=1)
    is_active: bool = True
    valid_from: Optional[datetime] = None
    valid_until: datetime


class DiscountCreate(DiscountBase):
    code: DiscountCode

    @model_validator(mode="after")
    def check_kind_fields(self):
        if self.kind == "percentage" and self.value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if self.kind == "fixed" and self.max_discount_amount is not None:
            raise ValueError("maxDiscountAmount applies to percentage discounts only")
        return self


class DiscountUpdate(CamelModel):
    code: Optional[DiscountCode] = None
    description: Optional[str] = None
    kind: Optional[DiscountKind] = None
    value: Optional[Decimal] = Field(None, ge=0)
    max_discount_amount: Optional[Decimal] = Field(None, ge=0)
    min_purchase: Optional[Decimal] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None


class DiscountValidateIn(CamelModel):
    code: str = Field(..., min_length=1)
    cart_total: Optional[Decimal] = Field(None, ge=0)


class DiscountOut(CamelModel):
    id: int
    code: str
    description: str
    kind: DiscountKind
    value: Decimal
    max_discount_amount: Optional[Decimal] = None
    min_purchase: Decimal
    usage_limit: Optional[int] = None
    usage_count: int
    is_active: bool
    valid_from: datetime
    valid_until: datetime
    created_by: Optional[int] = None


# --- orders ---

class ShippingAddress(CamelModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)


class OrderItemIn(CamelModel):
    product: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1)


class OrderCreate(CamelModel):
    """Order from an explicit item list."""

    items: List[OrderItemIn] = Field(..., min_length=1)
    shipping_address: ShippingAddress
    payment_method: str = Field(..., min_length=1)


class CheckoutIn(CamelModel):
    """Order from the caller's cart."""

    shipping_address: ShippingAddress
    payment_method: str = Field(..., min_length=1)


class OrderStatusUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    order_status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None


class OrderItemOut(CamelModel):
    product_id: int
    quantity: int
    unit_price_at_purchase: Decimal


class OrderOut(CamelModel):
    id: int
    owner_user_id: int
    items: List[OrderItemOut]
    total_amount: Decimal
    discount_code: Optional[str] = None
    discount_amount: Optional[Decimal] = None
    shipping_address: ShippingAddress
    payment_method: str
    payment_status: PaymentStatus
    order_status: OrderStatus
    created_at: datetime
