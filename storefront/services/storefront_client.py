# storefront/services/storefront_client.py
import uuid
from typing import Any, Dict

import requests

from storefront.domain.errors import BusinessRuleViolation, NotFoundError, StorefrontError, ValidationError
from storefront.domain.schemas import AddressIn, AppliedCoupon, CustomerIn
from storefront.services.cart_store import CartStore
from storefront.utils.retry import http_retry
from storefront.utils.settings import STOREFRONT_API_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_VALIDATION_REASONS = {"missing_code", "missing_fields", "invalid_request", "invalid_variant"}


class StorefrontClient:
    """
    Client side of the checkout: validates coupons for a CartStore and
    submits the cart as an order.
    """

    def __init__(self, base_url: str | None = None, timeout: int = 5, session: requests.Session | None = None):
        self.base_url = (base_url or STOREFRONT_API_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @http_retry()
    def _post(self, path: str, body: dict, headers: dict | None = None) -> requests.Response:
        url = f"{self.base_url}{path}"
        logger.info(f"StorefrontClient POST {url}")
        return self.session.post(url, json=body, headers=headers, timeout=self.timeout)

    def _raise_for_error(self, resp: requests.Response):
        if resp.status_code < 400:
            return

        if resp.status_code >= 500:
            resp.raise_for_status()

        try:
            body = resp.json()
        except requests.JSONDecodeError:
            body = {"error": resp.text or "Request failed"}

        message = body.get("error", "Request failed")
        reason = body.get("reason")
        extra = {k: v for k, v in body.items() if k not in ("error", "reason")}

        if resp.status_code == 404:
            raise NotFoundError(message, reason=reason, **extra)
        if reason in _VALIDATION_REASONS:
            raise ValidationError(message, reason=reason, **extra)
        if resp.status_code == 400:
            raise BusinessRuleViolation(message, reason=reason, **extra)
        raise StorefrontError(message, reason=reason, **extra)

    def validate_coupon(self, code: str, cart_total: int) -> Dict[str, Any]:
        resp = self._post("/coupons/validate", {"code": code.upper(), "cartTotal": cart_total})
        self._raise_for_error(resp)
        return resp.json()["coupon"]

    def apply_coupon(self, store: CartStore, code: str):
        """Validate ``code`` against the cart subtotal and attach it to the cart."""
        data = self.validate_coupon(code, store.total)
        coupon = AppliedCoupon(
            code=data["code"],
            discount_type=data["discountType"],
            discount_value=data.get("discountValue"),
        )
        return store.apply_coupon(coupon)

    def checkout(
        self,
        store: CartStore,
        customer: CustomerIn,
        shipping_address: AddressIn,
        payment_method: str | None = None,
        idempotency_key: str | None = None,
    ) -> Dict[str, Any]:
        """
        Submit the cart as an order. The same idempotency key is reused on
        retries so a lost response never creates a second order.
        """
        if not store.cart.items:
            raise ValidationError("Cart is empty", reason="missing_fields")

        summary = store.summary()
        cart = store.cart

        body = {
            "customer": customer.model_dump(mode="json", by_alias=True),
            "shippingAddress": shipping_address.model_dump(mode="json", by_alias=True),
            "items": [i.model_dump(mode="json", by_alias=True) for i in cart.items],
            "coupon": cart.coupon.model_dump(mode="json", by_alias=True) if cart.coupon else None,
            "subtotal": summary.subtotal,
            "shipping": summary.shipping,
            "tax": summary.tax,
            "total": summary.total,
            "paymentMethod": payment_method,
        }
        headers = {"Idempotency-Key": idempotency_key or uuid.uuid4().hex}

        resp = self._post("/orders", body, headers=headers)
        self._raise_for_error(resp)

        order = resp.json()["order"]
        logger.info(f"Order {order['orderNumber']} placed, clearing cart")
        store.clear_cart()
        return order
