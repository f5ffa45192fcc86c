# storefront/services/catalog_service.py
from sqlalchemy.orm import Session

from storefront.domain.errors import NotFoundError
from storefront.domain.schemas import CategoryOut, ProductList, ProductOut
from storefront.repos.catalog_repo import CatalogRepo


class CatalogService:
    def __init__(self, db: Session):
        self.repo = CatalogRepo(db)

    def list_products(self, category: str | None = None) -> ProductList:
        #"all" comes from the storefront category filter
        slug = None if category in (None, "", "all") else category
        products = self.repo.find_products(category_slug=slug)
        docs = [ProductOut.model_validate(p) for p in products]
        return ProductList(docs=docs, total_docs=len(docs))

    def get_product(self, product_id: str) -> ProductOut:
        product = self.repo.find_product_by_id(product_id)
        if not product:
            raise NotFoundError("Product not found")
        return ProductOut.model_validate(product)

    def list_categories(self) -> list[CategoryOut]:
        return [CategoryOut.model_validate(c) for c in self.repo.find_categories()]
