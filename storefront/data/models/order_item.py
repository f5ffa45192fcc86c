from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(String(32), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    product_id = Column(String, nullable=False)
    variant_id = Column(String, nullable=True)
    variant = Column(String, nullable=True)  # e.g. "Roja-m"
    name = Column(String, nullable=False, default="")

    quantity = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False)
    total = Column(Integer, nullable=False)

    order = relationship("OrderModel", back_populates="items")
