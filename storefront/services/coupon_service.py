# storefront/services/coupon_service.py
from datetime import datetime, timezone
from typing import Any, Callable, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.domain.coupon_rules import CouponEvaluation, CouponRejection, evaluate
from storefront.domain.errors import BusinessRuleViolation, NotFoundError, PersistenceError, ValidationError
from storefront.repos.coupon_repo import CouponRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def rejection_error(result: CouponEvaluation):
    """Map a failed evaluation to the error raised to the caller."""
    if result.reason is CouponRejection.NOT_FOUND:
        return NotFoundError(result.message, reason=result.reason.value)

    extra = {}
    if result.minimum_purchase is not None:
        extra["minimumPurchase"] = result.minimum_purchase
    return BusinessRuleViolation(result.message, reason=result.reason.value, **extra)


class CouponService:
    def __init__(self, db: Session, clock: Callable[[], datetime] = utc_now):
        self.repo = CouponRepo(db)
        self.clock = clock

    def validate_coupon(self, code: str | None, cart_total: int) -> Dict[str, Any]:
        """
        Use Case: validate a coupon code against a cart subtotal (Query).

        Read only, usage is counted when an order is placed.
        """
        if not code or not code.strip():
            raise ValidationError("Coupon code is required", reason="missing_code")

        try:
            coupon = self.repo.find_by_code(code)
        except SQLAlchemyError as e:
            logger.error(f"Error validating coupon {code!r}: {e}")
            raise PersistenceError("Error validating coupon") from e

        result = evaluate(coupon, cart_total, self.clock())

        if not result.valid:
            logger.info(f"Coupon {code!r} rejected: {result.reason.value}")
            raise rejection_error(result)

        logger.info(f"Coupon {coupon.code} valid, discount {result.discount_amount} on {cart_total}")

        return {
            "valid": True,
            "coupon": {
                "code": coupon.code,
                "discount_type": coupon.discount_type,
                "discount_value": coupon.discount_value,
                "discount_amount": result.discount_amount,
                "description": coupon.description,
            },
        }
