from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models.ids import new_id


class CategoryModel(Base):
    __tablename__ = "categories"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)

    products = relationship("ProductModel", back_populates="category")
