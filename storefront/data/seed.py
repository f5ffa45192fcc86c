# storefront/data/seed.py
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.data.database import SessionLocal, init_db
from storefront.data.models.category import CategoryModel
from storefront.data.models.coupon import CouponModel
from storefront.data.models.product import ProductModel
from storefront.data.models.variant import VariantModel
from storefront.repos.catalog_repo import CatalogRepo
from storefront.repos.coupon_repo import CouponRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _demo_catalog():
    remeras = CategoryModel(name="Remeras", slug="remeras", description="Remeras de algodon")
    buzos = CategoryModel(name="Buzos", slug="buzos")
    accesorios = CategoryModel(name="Accesorios", slug="accesorios")

    remera = ProductModel(
        name="Remera Basica",
        slug="remera-basica",
        price=12999,
        compare_at_price=15999,
        product_type="variable",
        category=remeras,
        featured=True,
        variants=[
            VariantModel(name="Roja M", sku="REM-ROJ-M", color="Roja", size="m", price=12999, stock=5),
            VariantModel(name="Roja L", sku="REM-ROJ-L", color="Roja", size="l", price=12999, stock=3),
            VariantModel(name="Azul M", sku="REM-AZU-M", color="Azul", size="m", price=12999, stock=4),
        ],
    )
    buzo = ProductModel(
        name="Buzo Oversize",
        slug="buzo-oversize",
        price=18999,
        product_type="variable",
        category=buzos,
        variants=[
            VariantModel(name="Negro S", sku="BUZ-NEG-S", color="Negro", size="s", price=18999, stock=10),
            VariantModel(name="Negro M", sku="BUZ-NEG-M", color="Negro", size="m", price=18999, stock=8),
        ],
    )
    gorra = ProductModel(
        name="Gorra Clasica",
        slug="gorra-clasica",
        price=7999,
        product_type="simple",
        simple_stock=20,
        sku="GOR-CLA",
        category=accesorios,
    )
    return [remeras, buzos, accesorios], [remera, buzo, gorra]


def _demo_coupons():
    since = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [
        CouponModel(
            code="WELCOME15",
            description="15% off your first purchase",
            discount_type="percentage",
            discount_value=Decimal("15"),
            valid_from=since,
            show_on_site=True,
        ),
        CouponModel(
            code="FREESHIPPING",
            description="Free shipping on purchases over $20.000",
            discount_type="free_shipping",
            minimum_purchase=20000,
            valid_from=since,
        ),
        CouponModel(
            code="FIJO5000",
            description="$5.000 off",
            discount_type="fixed",
            discount_value=Decimal("5000"),
            usage_limit=100,
            valid_from=since,
        ),
    ]


def seed(db: Session | None = None) -> bool:
    """Seed demo catalog and coupons. Does nothing when products already exist."""
    own_session = db is None
    db = db or SessionLocal()
    try:
        catalog = CatalogRepo(db)
        # not forcing: only seed if empty
        if catalog.find_products(status=None, limit=1):
            logger.info("Catalog not empty, skipping seed")
            return False

        categories, products = _demo_catalog()
        for entity in [*categories, *products]:
            catalog.create(entity)

        coupons = CouponRepo(db)
        demo_coupons = _demo_coupons()
        for coupon in demo_coupons:
            coupons.create(coupon)

        db.commit()
        logger.info(f"Seeded {len(products)} products and {len(demo_coupons)} coupons")
        return True
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    init_db()
    seed()
