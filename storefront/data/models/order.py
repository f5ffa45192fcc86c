from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models.ids import new_id


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=new_id)
    order_number = Column(String, nullable=False, unique=True)
    idempotency_key = Column(String, nullable=True, unique=True)

    customer = Column(JSON, nullable=False)
    shipping_address = Column(JSON, nullable=False)
    billing_address = Column(JSON, nullable=False)
    coupon = Column(JSON, nullable=True)

    subtotal = Column(Integer, nullable=False)
    discount = Column(Integer, nullable=False, default=0)
    shipping = Column(Integer, nullable=False, default=0)
    tax = Column(Integer, nullable=False, default=0)
    total = Column(Integer, nullable=False)

    status = Column(String, nullable=False, default="pending")  # pending, processing, shipped, delivered, cancelled, refunded
    payment_status = Column(String, nullable=False, default="pending")  # pending, paid, failed, refunded
    payment_method = Column(String, nullable=True)  # mercado_pago, transfer, cod
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.position",
    )
