# storefront/data/models/product.py
from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models.ids import new_id


class ProductModel(Base):
    __tablename__ = "products"
    __table_args__ = (CheckConstraint("simple_stock >= 0", name="ck_product_stock_non_negative"),)

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)

    price = Column(Integer, nullable=False)
    compare_at_price = Column(Integer, nullable=True)

    product_type = Column(String, nullable=False, default="simple")  # simple, variable
    simple_stock = Column(Integer, nullable=False, default=0)
    sku = Column(String, nullable=True, unique=True)

    status = Column(String, nullable=False, default="active")  # active, inactive, out_of_stock
    featured = Column(Boolean, nullable=False, default=False)

    category_id = Column(String(32), ForeignKey("categories.id"), nullable=True)

    category = relationship("CategoryModel", back_populates="products")
    variants = relationship(
        "VariantModel",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="VariantModel.sku",
    )
