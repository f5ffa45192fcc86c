# storefront/repos/catalog_repo.py
from sqlalchemy import case, select, update
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.category import CategoryModel
from storefront.data.models.product import ProductModel
from storefront.data.models.variant import VariantModel


class CatalogRepo:
    def __init__(self, db: Session):
        self.db = db

    # ---------------- queries ----------------
    def find_products(self, category_slug: str | None = None, status: str | None = "active", limit: int = 100):
        stmt = (
            select(ProductModel)
            .options(selectinload(ProductModel.variants), selectinload(ProductModel.category))
            .order_by(ProductModel.name)
            .limit(limit)
        )
        if status:
            stmt = stmt.where(ProductModel.status == status)
        if category_slug:
            stmt = stmt.join(ProductModel.category).where(CategoryModel.slug == category_slug)
        return self.db.execute(stmt).scalars().all()

    def find_product_by_id(self, product_id: str) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def find_variant(self, product_id: str, variant_id: str) -> VariantModel | None:
        return self.db.execute(
            select(VariantModel).where(
                VariantModel.id == variant_id,
                VariantModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def find_categories(self):
        return self.db.execute(select(CategoryModel).order_by(CategoryModel.name)).scalars().all()

    # ---------------- commands ----------------
    def create(self, entity):
        self.db.add(entity)
        self.db.flush()
        return entity

    #single UPDATE statements, the database serializes concurrent decrements
    def decrement_simple_stock(self, product_id: str, quantity: int) -> int:
        stmt = (
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(
                simple_stock=case(
                    (ProductModel.simple_stock >= quantity, ProductModel.simple_stock - quantity),
                    else_=0,
                )
            )
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def decrement_variant_stock(self, variant_id: str, quantity: int) -> int:
        stmt = (
            update(VariantModel)
            .where(VariantModel.id == variant_id)
            .values(
                stock=case(
                    (VariantModel.stock >= quantity, VariantModel.stock - quantity),
                    else_=0,
                )
            )
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def decrement_simple_stock_if_sufficient(self, product_id: str, quantity: int) -> int:
        stmt = (
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.simple_stock >= quantity)
            .values(simple_stock=ProductModel.simple_stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def decrement_variant_stock_if_sufficient(self, variant_id: str, quantity: int) -> int:
        stmt = (
            update(VariantModel)
            .where(VariantModel.id == variant_id, VariantModel.stock >= quantity)
            .values(stock=VariantModel.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
