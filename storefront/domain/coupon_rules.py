# storefront/domain/coupon_rules.py
"""
Coupon rule evaluation.

Pure functions, no I/O. The same discount computation is used by the
coupon validation endpoint, the client cart summary and the order
assembler, so a coupon always yields the same amount for the same
subtotal.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREE_SHIPPING = "free_shipping"


class CouponRejection(str, Enum):
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"
    USAGE_LIMIT_REACHED = "usage_limit_reached"
    BELOW_MINIMUM = "below_minimum"


@dataclass(frozen=True)
class CouponEvaluation:
    valid: bool
    discount_amount: int = 0
    reason: CouponRejection | None = None
    message: str | None = None
    minimum_purchase: int | None = None


def normalize_code(code: str) -> str:
    return code.strip().upper()


def round_half_up(value) -> int:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_discount(discount_type, discount_value, subtotal: int) -> int:
    """
    Discount amount for a coupon type/value against a subtotal.

    percentage -> round_half_up(subtotal * value / 100)
    fixed -> value, never more than the subtotal
    free_shipping -> 0, applied to shipping instead
    """
    kind = DiscountType(discount_type)
    if kind is DiscountType.FREE_SHIPPING:
        return 0

    value = Decimal(str(discount_value or 0))
    if kind is DiscountType.PERCENTAGE:
        return round_half_up(Decimal(subtotal) * value / Decimal(100))

    return min(round_half_up(value), subtotal)


def _as_utc(moment: datetime) -> datetime:
    #sqlite drops tzinfo, stored values are UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _reject(reason: CouponRejection, message: str, **extra) -> CouponEvaluation:
    return CouponEvaluation(valid=False, reason=reason, message=message, **extra)


def evaluate(coupon: Any | None, cart_subtotal: int, now: datetime) -> CouponEvaluation:
    """
    Check a coupon record against a cart subtotal at a given moment.

    Rules run in a fixed order and the first failing one wins. ``coupon``
    is any object with the coupon attributes (ORM row or plain record);
    ``None`` means no coupon matched the submitted code.
    """
    if coupon is None:
        return _reject(CouponRejection.NOT_FOUND, "Coupon is invalid or does not exist")

    if not coupon.active:
        return _reject(CouponRejection.INACTIVE, "This coupon is not active")

    now = _as_utc(now)

    if now < _as_utc(coupon.valid_from):
        return _reject(CouponRejection.NOT_YET_VALID, "This coupon is not valid yet")

    if coupon.valid_until is not None and now > _as_utc(coupon.valid_until):
        return _reject(CouponRejection.EXPIRED, "This coupon has expired")

    #0 or unset means unlimited
    if coupon.usage_limit and coupon.usage_count >= coupon.usage_limit:
        return _reject(CouponRejection.USAGE_LIMIT_REACHED, "This coupon has reached its usage limit")

    if coupon.minimum_purchase and cart_subtotal < coupon.minimum_purchase:
        return _reject(
            CouponRejection.BELOW_MINIMUM,
            f"This coupon requires a minimum purchase of ${coupon.minimum_purchase}",
            minimum_purchase=coupon.minimum_purchase,
        )

    return CouponEvaluation(
        valid=True,
        discount_amount=compute_discount(coupon.discount_type, coupon.discount_value, cart_subtotal),
    )
