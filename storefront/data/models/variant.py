from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models.ids import new_id


class VariantModel(Base):
    __tablename__ = "product_variants"
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_variant_stock_non_negative"),)

    id = Column(String(32), primary_key=True, default=new_id)
    product_id = Column(String(32), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    name = Column(String, nullable=False)
    sku = Column(String, nullable=False, unique=True)
    color = Column(String, nullable=True)
    size = Column(String, nullable=True)

    price = Column(Integer, nullable=False)
    stock = Column(Integer, nullable=False, default=0)

    product = relationship("ProductModel", back_populates="variants")
