# storefront/domain/pricing.py
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from storefront.domain.coupon_rules import DiscountType, compute_discount, round_half_up
from storefront.utils.settings import FLAT_SHIPPING_COST, FREE_SHIPPING_THRESHOLD, TAX_RATE


@dataclass(frozen=True)
class PricingPolicy:
    free_shipping_threshold: int = FREE_SHIPPING_THRESHOLD
    flat_shipping_cost: int = FLAT_SHIPPING_COST
    tax_rate: Decimal = TAX_RATE


DEFAULT_POLICY = PricingPolicy()


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: int
    discount: int
    shipping: int
    tax: int
    total: int
    is_free_shipping: bool


def calculate_totals(items: Iterable, coupon=None, policy: PricingPolicy = DEFAULT_POLICY) -> PriceBreakdown:
    """
    Price a set of line items with an optional coupon.

    ``items`` need ``effective_unit_price`` and ``quantity``; ``coupon`` needs
    ``discount_type`` and ``discount_value``. Steps run in a fixed order:
    subtotal, discount, free shipping, shipping, tax, total. Tax is charged
    on the subtotal before the discount.
    """
    subtotal = sum(i.effective_unit_price * i.quantity for i in items)

    discount = 0
    coupon_free_shipping = False
    if coupon is not None:
        discount = compute_discount(coupon.discount_type, coupon.discount_value, subtotal)
        coupon_free_shipping = DiscountType(coupon.discount_type) is DiscountType.FREE_SHIPPING

    is_free_shipping = subtotal > policy.free_shipping_threshold or coupon_free_shipping
    shipping = 0 if is_free_shipping else policy.flat_shipping_cost

    tax = round_half_up(Decimal(subtotal) * policy.tax_rate)

    total = subtotal - discount + shipping + tax

    return PriceBreakdown(
        subtotal=subtotal,
        discount=discount,
        shipping=shipping,
        tax=tax,
        total=total,
        is_free_shipping=is_free_shipping,
    )
