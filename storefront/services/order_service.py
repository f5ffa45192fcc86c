# storefront/services/order_service.py
import secrets
import string
import time
from datetime import datetime
from decimal import Decimal
from typing import Callable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.coupon_rules import CouponRejection, evaluate
from storefront.domain.errors import (
    BusinessRuleViolation,
    NotFoundError,
    PersistenceError,
    StorefrontError,
    ValidationError,
)
from storefront.domain.order_status import can_transition
from storefront.domain.pricing import DEFAULT_POLICY, PricingPolicy, calculate_totals
from storefront.domain.schemas import BillingAddressIn, LineItem, OrderCreate, OrderOut
from storefront.repos.catalog_repo import CatalogRepo
from storefront.repos.coupon_repo import CouponRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.coupon_service import rejection_error, utc_now
from storefront.services.inventory_service import InventoryService
from storefront.services.notification_service import NotificationService
from storefront.utils.settings import INVENTORY_STRICT
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_BASE36 = string.digits + string.ascii_uppercase


def generate_order_number() -> str:
    """ORD-<epoch millis>-<5 uppercase base36 chars>"""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"ORD-{millis}-{suffix}"


def variant_label(item: LineItem) -> str | None:
    if item.variant is None:
        return None
    return f"{item.variant.color or ''}-{item.variant.size or ''}".strip()


def _json_number(value: Decimal | None):
    if value is None:
        return None
    if value == value.to_integral_value():
        return int(value)
    return float(value)


class OrderService:
    """
    Checkout domain, separate from the cart.

    Totals are always recomputed here from catalog prices and the stored
    coupon; whatever the client sent as subtotal/shipping/tax/total is
    only compared and logged.
    """

    def __init__(
        self,
        db: Session,
        notification_service: NotificationService | None = None,
        strict_inventory: bool = INVENTORY_STRICT,
        policy: PricingPolicy = DEFAULT_POLICY,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.catalog = CatalogRepo(db)
        self.coupons = CouponRepo(db)
        self.inventory = InventoryService(db, strict=strict_inventory)
        self.notification_service = notification_service or NotificationService()
        self.strict = strict_inventory
        self.policy = policy
        self.clock = clock

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_order(self, payload: OrderCreate, idempotency_key: str | None = None):
        """
        Use Case: place an order from a checkout payload (Command).

        1. Validates required fields
        2. Returns the existing order for a repeated idempotency key
        3. Prices lines from the catalog, evaluates the coupon
        4. Counts coupon usage, decrements stock, stores the order
           (one transaction)
        5. Sends the confirmation notification (async)
        """
        if not payload.customer or not payload.shipping_address or not payload.items:
            raise ValidationError("Missing required fields", reason="missing_fields")

        if idempotency_key:
            existing = self.repo.get_by_idempotency_key(idempotency_key)
            if existing:
                logger.info(f"Idempotency key {idempotency_key} already used by order {existing.order_number}")
                return self._ref(existing)

        try:
            order = self._assemble(payload, idempotency_key)
            self.repo.commit()

        except StorefrontError:
            self.repo.rollback()
            raise

        except IntegrityError as e:
            self.repo.rollback()
            #two requests with the same key, the other one won
            if idempotency_key:
                existing = self.repo.get_by_idempotency_key(idempotency_key)
                if existing:
                    return self._ref(existing)
            logger.error(f"Failed to create order: {e}")
            raise PersistenceError("Failed to create order") from e

        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Failed to create order: {e}")
            raise PersistenceError("Failed to create order") from e

        logger.info(f"Order {order.order_number} created, total {order.total}")

        self._notify(order)

        return self._ref(order)

    def update_order_status(self, order_id: str, status: str) -> OrderOut:
        """
        Use Case: move an order along its lifecycle (Command).
        pending -> processing -> shipped -> delivered, cancel/refund from
        any non-terminal state.
        """
        order = self.repo.get_order(order_id)

        if not order:
            raise NotFoundError("Order not found")

        if not can_transition(order.status, status):
            raise BusinessRuleViolation(
                f"Cannot change order status from {order.status} to {status}",
                reason="invalid_status_transition",
            )

        try:
            updated = self.repo.update_order_status(order_id, status)
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Failed to update order {order_id}: {e}")
            raise PersistenceError("Failed to update order") from e

        logger.info(f"Order {updated.order_number} status {status}")
        return OrderOut.model_validate(updated)

    # =====================================================
    # QUERY
    # =====================================================
    def get_order(self, order_id: str) -> OrderOut:
        order = self.repo.get_order(order_id)

        if not order:
            raise NotFoundError("Order not found")

        return OrderOut.model_validate(order)

    # =====================================================
    # HELPERS
    # =====================================================
    def _assemble(self, payload: OrderCreate, idempotency_key: str | None) -> OrderModel:
        lines = [self._price_line(item) for item in payload.items]
        subtotal = sum(line.line_total for line in lines)

        coupon = None
        if payload.coupon:
            coupon = self.coupons.find_by_code(payload.coupon.code)
            result = evaluate(coupon, subtotal, self.clock())
            if not result.valid:
                #checkout answers 400 for every coupon rejection
                if result.reason is CouponRejection.NOT_FOUND:
                    raise BusinessRuleViolation(result.message, reason=result.reason.value)
                raise rejection_error(result)

        totals = calculate_totals(lines, coupon, self.policy)

        if payload.total is not None and payload.total != totals.total:
            logger.warning(
                f"Client total {payload.total} differs from recomputed total {totals.total}, "
                f"using the recomputed one"
            )

        if coupon is not None and self.coupons.increment_usage(coupon.id) == 0:
            raise BusinessRuleViolation(
                "This coupon has reached its usage limit",
                reason=CouponRejection.USAGE_LIMIT_REACHED.value,
            )

        self.inventory.adjust(lines)

        billing = payload.billing_address or BillingAddressIn()

        order = OrderModel(
            order_number=payload.order_number or generate_order_number(),
            idempotency_key=idempotency_key,
            customer={
                "email": str(payload.customer.email),
                "firstName": payload.customer.first_name,
                "lastName": payload.customer.last_name,
                "phone": payload.customer.phone or "",
            },
            shipping_address=payload.shipping_address.model_dump(by_alias=True),
            billing_address=billing.model_dump(by_alias=True, exclude_none=True),
            coupon=(
                {
                    "code": coupon.code,
                    "discountType": coupon.discount_type,
                    "discountValue": _json_number(coupon.discount_value),
                    "discountAmount": totals.discount,
                }
                if coupon is not None
                else None
            ),
            subtotal=totals.subtotal,
            discount=totals.discount,
            shipping=totals.shipping,
            tax=totals.tax,
            total=totals.total,
            status="pending",
            payment_status="pending",
            payment_method=payload.payment_method,
            notes=payload.notes,
            items=[
                OrderItemModel(
                    position=position,
                    product_id=line.product_id,
                    variant_id=line.variant.id if line.variant else None,
                    variant=variant_label(line),
                    name=line.name,
                    quantity=line.quantity,
                    price=line.effective_unit_price,
                    total=line.line_total,
                )
                for position, line in enumerate(lines)
            ],
        )

        return self.repo.create_order(order)

    def _price_line(self, item: LineItem) -> LineItem:
        """Copy of the line with the catalog price instead of the client one."""
        product = self.catalog.find_product_by_id(item.product_id)

        if product is None:
            return self._unpriced(item, f"Product {item.product_id} not found")

        name = item.name or product.name

        if product.product_type != "variable":
            #simple products have no variants, a client supplied one is dropped
            return item.model_copy(update={"name": name, "unit_price": product.price, "variant": None})

        if item.variant is None:
            return item.model_copy(update={"name": name, "unit_price": product.price})

        variant = self.catalog.find_variant(product.id, item.variant.id)
        if variant is None:
            raise ValidationError(
                f"Variant {item.variant.id} of product {product.id} not found",
                reason="invalid_variant",
            )

        return item.model_copy(
            update={
                "name": name,
                "unit_price": product.price,
                "variant": item.variant.model_copy(update={"unit_price": variant.price}),
            }
        )

    def _unpriced(self, item: LineItem, message: str) -> LineItem:
        if self.strict:
            raise NotFoundError(message, reason="product_not_found")
        logger.warning(f"{message}, keeping client price {item.effective_unit_price}")
        return item

    def _notify(self, order: OrderModel):
        try:
            self.notification_service.send_order_notification(order.order_number, order.customer["email"])
        except Exception as e:
            #order is already committed, a failed notification must not fail checkout
            logger.warning(f"Failed to enqueue notification for order {order.order_number}: {e}")

    @staticmethod
    def _ref(order: OrderModel):
        return {"success": True, "order": {"id": order.id, "order_number": order.order_number}}
