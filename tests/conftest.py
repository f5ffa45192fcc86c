"""Pytest fixtures for storefront tests."""

import os

#must happen before storefront modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["INVENTORY_STRICT"] = "false"

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.data.database import get_db, init_db
from storefront.data.models.category import CategoryModel
from storefront.data.models.coupon import CouponModel
from storefront.data.models.product import ProductModel
from storefront.data.models.variant import VariantModel
from storefront.main import app

SINCE = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def catalog(db):
    """Two categories, a variable product, a simple product and an inactive one."""
    remeras = CategoryModel(id="c-remeras", name="Remeras", slug="remeras")
    accesorios = CategoryModel(id="c-accesorios", name="Accesorios", slug="accesorios")

    remera = ProductModel(
        id="p-remera",
        name="Remera Basica",
        slug="remera-basica",
        price=12999,
        product_type="variable",
        category=remeras,
        variants=[
            VariantModel(id="v-roja-m", name="Roja M", sku="REM-ROJ-M", color="Roja", size="m", price=12999, stock=5),
            VariantModel(id="v-azul-l", name="Azul L", sku="REM-AZU-L", color="Azul", size="l", price=13999, stock=1),
        ],
    )
    gorra = ProductModel(
        id="p-gorra",
        name="Gorra Clasica",
        slug="gorra-clasica",
        price=7999,
        product_type="simple",
        simple_stock=20,
        sku="GOR-CLA",
        category=accesorios,
    )
    discontinued = ProductModel(
        id="p-old",
        name="Campera Vieja",
        slug="campera-vieja",
        price=30000,
        product_type="simple",
        simple_stock=0,
        status="inactive",
        category=accesorios,
    )

    db.add_all([remeras, accesorios, remera, gorra, discontinued])
    db.commit()
    return {"remera": remera, "gorra": gorra, "discontinued": discontinued}


def make_coupon_row(code, **overrides):
    data = dict(
        code=code,
        description=f"{code} coupon",
        discount_type="percentage",
        discount_value=Decimal("10"),
        valid_from=SINCE,
        active=True,
        usage_count=0,
    )
    data.update(overrides)
    return CouponModel(**data)


@pytest.fixture
def coupons(db):
    rows = [
        make_coupon_row("SAVE10"),
        make_coupon_row("FIJO5000", discount_type="fixed", discount_value=Decimal("5000")),
        make_coupon_row("ENVIOGRATIS", discount_type="free_shipping", discount_value=None),
        make_coupon_row("MIN30000", minimum_purchase=30000),
        make_coupon_row("OFF", active=False),
        make_coupon_row("FUTURE", valid_from=datetime(2999, 1, 1, tzinfo=timezone.utc)),
        make_coupon_row("OLD", valid_until=datetime(2025, 1, 1, tzinfo=timezone.utc)),
        make_coupon_row("USEDUP", usage_limit=5, usage_count=5),
        make_coupon_row("ONCE", usage_limit=1, usage_count=0),
    ]
    db.add_all(rows)
    db.commit()
    return {row.code: row for row in rows}
