# storefront/api/routers/coupons.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.schemas import CouponValidateIn, CouponValidateOut
from storefront.services.coupon_service import CouponService

router = APIRouter(prefix="/coupons", tags=["coupons"])


def get_service(db: Session):
    return CouponService(db)


@router.post("/validate", response_model=CouponValidateOut)
def validate_coupon(payload: CouponValidateIn, db: Session = Depends(get_db)):
    """
    Checks a coupon code against the cart subtotal and returns the discount.
    Does not count a use, that happens when the order is placed.
    """
    svc = get_service(db)
    return svc.validate_coupon(payload.code, payload.cart_total)
