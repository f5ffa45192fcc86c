# storefront/api/__init__.py
from fastapi import FastAPI

from storefront.api.errors import register_exception_handlers
from storefront.api.routers import catalog, coupons, health, orders


def create_app(lifespan=None) -> FastAPI:
    app = FastAPI(
        title="Storefront Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(catalog.router)
    app.include_router(coupons.router)
    app.include_router(orders.router)

    return app
