"""Tests for the client-side checkout flow."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from storefront.data.models.variant import VariantModel
from storefront.domain.errors import BusinessRuleViolation, NotFoundError, StorefrontError, ValidationError
from storefront.domain.schemas import AddressIn, CustomerIn, LineItem, VariantSelection
from storefront.repos.cart_storage import InMemoryCartStorage
from storefront.services.cart_store import CartStore
from storefront.services.storefront_client import StorefrontClient

CUSTOMER = CustomerIn(email="ana@example.com", first_name="Ana", last_name="Perez")
ADDRESS = AddressIn(street="Av. Pellegrini 1200", city="Rosario", state="Santa Fe", zip_code="2000")


def remera(quantity=2):
    return LineItem(
        product_id="p-remera",
        name="Remera Basica",
        unit_price=12999,
        quantity=quantity,
        variant=VariantSelection(id="v-roja-m", name="Roja M", color="Roja", size="m", unit_price=12999),
    )


def response(status_code, body):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = body
    return resp


@pytest.fixture
def store():
    store = CartStore(InMemoryCartStorage())
    store.add_item(remera(), 2)
    return store


class TestWithMockedHttp:
    def test_apply_coupon(self, store):
        session = MagicMock()
        session.post.return_value = response(
            200,
            {
                "valid": True,
                "coupon": {
                    "code": "SAVE10",
                    "discountType": "percentage",
                    "discountValue": 10,
                    "discountAmount": 2600,
                    "description": "10% off",
                },
            },
        )
        client = StorefrontClient(base_url="http://shop", session=session)

        cart = client.apply_coupon(store, "save10")

        session.post.assert_called_once_with(
            "http://shop/coupons/validate",
            json={"code": "SAVE10", "cartTotal": 25998},
            headers=None,
            timeout=5,
        )
        assert cart.coupon.code == "SAVE10"
        assert cart.coupon.discount_value == Decimal("10")
        assert store.summary().discount == 2600

    def test_unknown_coupon(self, store):
        session = MagicMock()
        session.post.return_value = response(404, {"error": "Coupon is invalid or does not exist", "reason": "not_found"})

        with pytest.raises(NotFoundError):
            StorefrontClient(base_url="http://shop", session=session).apply_coupon(store, "NOPE")
        assert store.cart.coupon is None

    def test_below_minimum_keeps_minimum(self, store):
        session = MagicMock()
        session.post.return_value = response(
            400,
            {"error": "This coupon requires a minimum purchase of $30000", "reason": "below_minimum", "minimumPurchase": 30000},
        )

        with pytest.raises(BusinessRuleViolation) as exc:
            StorefrontClient(base_url="http://shop", session=session).validate_coupon("MIN30000", 100)

        assert exc.value.extra == {"minimumPurchase": 30000}

    def test_non_json_error_page(self, store):
        resp = response(403, None)
        resp.json.side_effect = requests.JSONDecodeError("Expecting value", "<html>Forbidden</html>", 0)
        resp.text = "<html>Forbidden</html>"
        session = MagicMock()
        session.post.return_value = resp

        with pytest.raises(StorefrontError) as exc:
            StorefrontClient(base_url="http://shop", session=session).validate_coupon("SAVE10", 100)

        assert exc.value.message == "<html>Forbidden</html>"

    def test_checkout_sends_cart_and_clears_it(self, store):
        session = MagicMock()
        session.post.return_value = response(200, {"success": True, "order": {"id": "o1", "orderNumber": "ORD-1-ABCDE"}})
        client = StorefrontClient(base_url="http://shop", session=session)

        order = client.checkout(store, CUSTOMER, ADDRESS, payment_method="cod", idempotency_key="k-1")

        assert order == {"id": "o1", "orderNumber": "ORD-1-ABCDE"}
        kwargs = session.post.call_args.kwargs
        assert kwargs["headers"] == {"Idempotency-Key": "k-1"}
        assert kwargs["json"]["total"] == 36458
        assert kwargs["json"]["items"][0]["productId"] == "p-remera"
        assert kwargs["json"]["shippingAddress"]["zipCode"] == "2000"
        assert store.cart.items == []

    def test_checkout_empty_cart(self):
        client = StorefrontClient(base_url="http://shop", session=MagicMock())

        with pytest.raises(ValidationError):
            client.checkout(CartStore(InMemoryCartStorage()), CUSTOMER, ADDRESS)

    def test_failed_checkout_keeps_cart(self, store):
        session = MagicMock()
        session.post.return_value = response(400, {"error": "This coupon has expired", "reason": "expired"})

        with pytest.raises(BusinessRuleViolation):
            StorefrontClient(base_url="http://shop", session=session).checkout(store, CUSTOMER, ADDRESS)

        assert store.item_count == 2


def test_end_to_end_against_api(client, db, catalog, coupons):
    """Cart preview and server side totals agree."""
    store = CartStore(InMemoryCartStorage())
    store.add_item(remera(), 2)
    api = StorefrontClient(base_url="http://testserver", session=client)

    api.apply_coupon(store, "save10")
    preview = store.summary()
    order = api.checkout(store, CUSTOMER, ADDRESS, payment_method="transfer")

    saved = client.get(f"/orders/{order['id']}").json()
    assert (saved["subtotal"], saved["discount"], saved["shipping"], saved["tax"], saved["total"]) == (
        preview.subtotal,
        preview.discount,
        preview.shipping,
        preview.tax,
        preview.total,
    )
    assert saved["total"] == 33858
    db.expire_all()
    assert db.get(VariantModel, "v-roja-m").stock == 3
