# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from storefront.domain.coupon_rules import DiscountType


def _as_number(value: Decimal) -> int | float:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


#percentages can be fractional, JSON gets a plain number instead of a string
DiscountValue = Annotated[Decimal, PlainSerializer(_as_number, when_used="json")]


class CamelModel(BaseModel):
    """Wire format is camelCase, python side is snake_case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =====================================================
# CART
# =====================================================
class VariantSelection(CamelModel):
    """Variant chosen for a line item. Its price overrides the item price."""

    id: str
    name: str
    color: str | None = None
    size: str | None = None
    unit_price: int = Field(..., ge=0)


class LineItem(CamelModel):
    """Purchasable unit inside a cart or a checkout payload."""

    id: str | None = None
    product_id: str
    name: str = ""
    unit_price: int = Field(..., ge=0)
    image: str = ""
    quantity: int = Field(1, ge=1)
    variant: VariantSelection | None = None

    @property
    def effective_unit_price(self) -> int:
        if self.variant is not None:
            return self.variant.unit_price
        return self.unit_price

    @property
    def line_total(self) -> int:
        return self.effective_unit_price * self.quantity


class AppliedCoupon(CamelModel):
    """
    Coupon attached to a cart. Only the rule terms are kept, the discount
    amount is always recomputed from the current subtotal.
    """

    code: str
    discount_type: DiscountType
    discount_value: DiscountValue | None = None


class Cart(CamelModel):
    items: List[LineItem] = Field(default_factory=list)
    coupon: AppliedCoupon | None = None

    @property
    def item_count(self) -> int:
        return sum(i.quantity for i in self.items)

    @property
    def total(self) -> int:
        return sum(i.line_total for i in self.items)


# =====================================================
# COUPONS
# =====================================================
class CouponValidateIn(CamelModel):
    code: str | None = None
    cart_total: int = Field(0, ge=0)


class CouponOut(CamelModel):
    code: str
    discount_type: DiscountType
    discount_value: DiscountValue | None = None
    discount_amount: int
    description: str | None = None


class CouponValidateOut(CamelModel):
    valid: bool = True
    coupon: CouponOut


# =====================================================
# ORDERS
# =====================================================
OrderStatusName = Literal["pending", "processing", "shipped", "delivered", "cancelled", "refunded"]
PaymentStatusName = Literal["pending", "paid", "failed", "refunded"]
PaymentMethodName = Literal["mercado_pago", "transfer", "cod"]


class CustomerIn(CamelModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    phone: str | None = None


class AddressIn(CamelModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    country: str = "Argentina"


class BillingAddressIn(CamelModel):
    same_as_shipping: bool = True
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None


class OrderCouponIn(CamelModel):
    """Coupon as sent by the client. Only the code is trusted."""

    code: str
    discount_type: DiscountType | None = None
    discount_value: DiscountValue | None = None
    discount_amount: int | None = None


class OrderCreate(CamelModel):
    """Checkout payload. Monetary fields are informational, totals are recomputed."""

    customer: CustomerIn | None = None
    shipping_address: AddressIn | None = None
    billing_address: BillingAddressIn | None = None
    items: List[LineItem] = Field(default_factory=list)
    coupon: OrderCouponIn | None = None

    subtotal: int | None = None
    shipping: int | None = None
    tax: int | None = None
    total: int | None = None

    payment_method: PaymentMethodName | None = None
    notes: str | None = None
    order_number: str | None = None


class OrderRef(CamelModel):
    id: str
    order_number: str


class OrderCreated(CamelModel):
    success: bool = True
    order: OrderRef


class OrderItemOut(CamelModel):
    product_id: str
    variant_id: str | None = None
    variant: str | None = None
    name: str
    quantity: int
    price: int
    total: int


class OrderOut(CamelModel):
    id: str
    order_number: str
    customer: dict
    shipping_address: dict
    billing_address: dict
    items: List[OrderItemOut]
    subtotal: int
    coupon: dict | None = None
    discount: int
    shipping: int
    tax: int
    total: int
    status: OrderStatusName
    payment_status: PaymentStatusName
    payment_method: PaymentMethodName | None = None
    notes: str | None = None
    created_at: datetime


class OrderStatusUpdate(CamelModel):
    status: OrderStatusName


# =====================================================
# CATALOG
# =====================================================
class CategoryOut(CamelModel):
    id: str
    name: str
    slug: str
    description: str | None = None


class VariantOut(CamelModel):
    id: str
    name: str
    sku: str
    color: str | None = None
    size: str | None = None
    price: int
    stock: int


class ProductOut(CamelModel):
    id: str
    name: str
    slug: str
    price: int
    compare_at_price: int | None = None
    product_type: Literal["simple", "variable"]
    simple_stock: int
    sku: str | None = None
    status: str
    featured: bool
    category: CategoryOut | None = None
    variants: List[VariantOut] = Field(default_factory=list)


class ProductList(CamelModel):
    docs: List[ProductOut]
    total_docs: int
