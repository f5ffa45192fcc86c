from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text

from storefront.data.database import Base
from storefront.data.models.ids import new_id


class CouponModel(Base):
    __tablename__ = "coupons"

    id = Column(String(32), primary_key=True, default=new_id)
    code = Column(String, nullable=False, unique=True)  # always uppercase
    description = Column(Text, nullable=False, default="")

    discount_type = Column(String, nullable=False, default="percentage")  # percentage, fixed, free_shipping
    discount_value = Column(Numeric(12, 2), nullable=True)
    minimum_purchase = Column(Integer, nullable=True)

    usage_limit = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)

    valid_from = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    valid_until = Column(DateTime(timezone=True), nullable=True)

    active = Column(Boolean, nullable=False, default=True)
    show_on_site = Column(Boolean, nullable=False, default=False)
