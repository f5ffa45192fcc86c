# storefront/services/inventory_service.py
from typing import Iterable

from sqlalchemy.orm import Session

from storefront.domain.errors import BusinessRuleViolation, NotFoundError
from storefront.domain.schemas import LineItem
from storefront.repos.catalog_repo import CatalogRepo
from storefront.utils.settings import INVENTORY_STRICT
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class InventoryService:
    """
    Decrements stock for purchased line items.

    Runs inside the caller's transaction and never commits. Every
    decrement is one conditional UPDATE, there is no read-modify-write.

    best effort (default): stock is clamped at 0, unknown products or
    variants are logged and skipped so checkout is never blocked.
    strict: stock must cover the quantity, anything unresolved raises and
    the caller rolls the whole order back.
    """

    def __init__(self, db: Session, strict: bool = INVENTORY_STRICT):
        self.repo = CatalogRepo(db)
        self.strict = strict

    def adjust(self, items: Iterable[LineItem]) -> None:
        for item in items:
            self._adjust_item(item)

    def _adjust_item(self, item: LineItem):
        product = self.repo.find_product_by_id(item.product_id)

        if product is None:
            self._unresolved(f"Product {item.product_id} not found")
            return

        if product.product_type == "variable":
            if item.variant is None:
                self._unresolved(f"Product {product.id} is variable but the line has no variant")
                return

            variant = self.repo.find_variant(product.id, item.variant.id)
            if variant is None:
                self._unresolved(f"Variant {item.variant.id} of product {product.id} not found")
                return

            self._decrement(
                label=f"variant {variant.sku}",
                available=variant.stock,
                quantity=item.quantity,
                clamp=lambda: self.repo.decrement_variant_stock(variant.id, item.quantity),
                conditional=lambda: self.repo.decrement_variant_stock_if_sufficient(variant.id, item.quantity),
            )
            return

        self._decrement(
            label=f"product {product.id}",
            available=product.simple_stock,
            quantity=item.quantity,
            clamp=lambda: self.repo.decrement_simple_stock(product.id, item.quantity),
            conditional=lambda: self.repo.decrement_simple_stock_if_sufficient(product.id, item.quantity),
        )

    def _decrement(self, label, available, quantity, clamp, conditional):
        if self.strict:
            if conditional() == 0:
                raise BusinessRuleViolation(
                    f"Insufficient stock for {label}",
                    reason="insufficient_stock",
                )
            logger.info(f"Stock of {label} decremented by {quantity}")
            return

        #available is only a hint for the log, the UPDATE itself clamps
        if available is not None and available < quantity:
            logger.warning(f"Oversell on {label}: requested {quantity}, available {available}, clamping to 0")
        clamp()
        logger.info(f"Stock of {label} decremented by {quantity}")

    def _unresolved(self, message: str):
        if self.strict:
            raise NotFoundError(message, reason="product_not_found")
        logger.warning(f"{message}, skipping stock adjustment")
