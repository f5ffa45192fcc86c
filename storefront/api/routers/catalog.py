# storefront/api/routers/catalog.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.schemas import CategoryOut, ProductList, ProductOut
from storefront.services.catalog_service import CatalogService

router = APIRouter(tags=["catalog"])


def get_service(db: Session):
    return CatalogService(db)


@router.get("/products", response_model=ProductList)
def list_products(category: str | None = Query(None), db: Session = Depends(get_db)):
    svc = get_service(db)
    return svc.list_products(category)


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: str, db: Session = Depends(get_db)):
    svc = get_service(db)
    return svc.get_product(product_id)


@router.get("/categories", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    svc = get_service(db)
    return svc.list_categories()
