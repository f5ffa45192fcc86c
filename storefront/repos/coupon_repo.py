# storefront/repos/coupon_repo.py
from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from storefront.data.models.coupon import CouponModel
from storefront.domain.coupon_rules import normalize_code


class CouponRepo:
    def __init__(self, db: Session):
        self.db = db

    def find_by_code(self, code: str) -> CouponModel | None:
        return self.db.execute(
            select(CouponModel).where(CouponModel.code == normalize_code(code))
        ).scalar_one_or_none()

    def create(self, coupon: CouponModel) -> CouponModel:
        coupon.code = normalize_code(coupon.code)
        self.db.add(coupon)
        self.db.flush()
        return coupon

    def increment_usage(self, coupon_id: str) -> int:
        """Count one use, only while the limit still allows it. Returns rowcount."""
        stmt = (
            update(CouponModel)
            .where(
                CouponModel.id == coupon_id,
                or_(
                    CouponModel.usage_limit.is_(None),
                    CouponModel.usage_limit == 0,
                    CouponModel.usage_count < CouponModel.usage_limit,
                ),
            )
            .values(usage_count=CouponModel.usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount
