"""Tests for the order assembler."""

import re
from unittest.mock import MagicMock

import pytest

from storefront.data.models.coupon import CouponModel
from storefront.data.models.order import OrderModel
from storefront.data.models.variant import VariantModel
from storefront.domain.errors import BusinessRuleViolation, NotFoundError, ValidationError
from storefront.domain.schemas import OrderCreate
from storefront.services.order_service import OrderService, generate_order_number


def payload(**overrides):
    body = {
        "customer": {"email": "ana@example.com", "firstName": "Ana", "lastName": "Perez"},
        "shippingAddress": {"street": "Av. Pellegrini 1200", "city": "Rosario", "state": "Santa Fe", "zipCode": "2000"},
        "items": [
            {
                "id": "line-1",
                "productId": "p-remera",
                "name": "Remera Basica",
                "unitPrice": 12999,
                "quantity": 2,
                "variant": {"id": "v-roja-m", "name": "Roja M", "color": "Roja", "size": "m", "unitPrice": 12999},
            }
        ],
        "paymentMethod": "transfer",
    }
    body.update(overrides)
    return OrderCreate.model_validate(body)


@pytest.fixture
def notifier():
    return MagicMock()


@pytest.fixture
def service(db, notifier):
    return OrderService(db, notification_service=notifier, strict_inventory=False)


def test_order_number_shape():
    assert re.fullmatch(r"ORD-\d{13}-[0-9A-Z]{5}", generate_order_number())


def test_creates_order_with_recomputed_totals(db, catalog, service, notifier):
    res = service.create_order(payload(subtotal=1, shipping=0, tax=0, total=1))

    order = db.get(OrderModel, res["order"]["id"])
    assert order.order_number == res["order"]["order_number"]
    assert (order.subtotal, order.shipping, order.tax, order.total) == (25998, 5000, 5460, 36458)
    assert order.status == "pending"
    assert order.payment_status == "pending"
    assert order.customer["phone"] == ""
    assert order.shipping_address["country"] == "Argentina"
    assert order.billing_address == {"sameAsShipping": True}
    notifier.send_order_notification.assert_called_once_with(order.order_number, "ana@example.com")


def test_line_prices_come_from_catalog(db, catalog, service):
    body = payload()
    body.items[0].variant.unit_price = 1

    res = service.create_order(body)

    line = db.get(OrderModel, res["order"]["id"]).items[0]
    assert (line.price, line.total, line.variant, line.variant_id) == (12999, 25998, "Roja-m", "v-roja-m")


def test_unknown_product_keeps_client_price(db, catalog, service):
    res = service.create_order(
        payload(items=[{"productId": "p-ghost", "name": "Ghost", "unitPrice": 1000, "quantity": 1}])
    )
    assert db.get(OrderModel, res["order"]["id"]).subtotal == 1000


def test_variant_on_simple_product_is_ignored(db, catalog, service):
    res = service.create_order(
        payload(
            items=[
                {
                    "productId": "p-gorra",
                    "unitPrice": 1,
                    "quantity": 2,
                    "variant": {"id": "made-up", "name": "Made up", "unitPrice": 1},
                }
            ]
        )
    )

    order = db.get(OrderModel, res["order"]["id"])
    line = order.items[0]
    assert (line.price, line.total, line.variant, line.variant_id) == (7999, 15998, None, None)
    assert order.subtotal == 15998
    db.expire_all()
    assert catalog["gorra"].simple_stock == 18


def test_unknown_variant_is_rejected(db, catalog, service, notifier):
    items = [
        {
            "productId": "p-remera",
            "unitPrice": 1,
            "quantity": 1,
            "variant": {"id": "nope", "name": "Nope", "unitPrice": 1},
        }
    ]

    with pytest.raises(ValidationError) as exc:
        service.create_order(payload(items=items))

    assert exc.value.reason == "invalid_variant"
    db.expire_all()
    assert db.query(OrderModel).count() == 0
    notifier.send_order_notification.assert_not_called()


def test_supplied_order_number_is_kept(db, catalog, service):
    res = service.create_order(payload(orderNumber="ORD-CUSTOM-1"))
    assert res["order"]["order_number"] == "ORD-CUSTOM-1"


@pytest.mark.parametrize(
    "overrides",
    [
        {"customer": None},
        {"shippingAddress": None},
        {"items": []},
    ],
)
def test_missing_fields(db, catalog, service, overrides):
    with pytest.raises(ValidationError) as exc:
        service.create_order(payload(**overrides))
    assert exc.value.reason == "missing_fields"


def test_coupon_counts_one_use(db, catalog, coupons, service):
    res = service.create_order(payload(coupon={"code": "save10", "discountAmount": 99999}))

    order = db.get(OrderModel, res["order"]["id"])
    assert order.discount == 2600
    assert order.total == 33858
    assert order.coupon == {"code": "SAVE10", "discountType": "percentage", "discountValue": 10, "discountAmount": 2600}

    db.expire_all()
    assert db.get(CouponModel, coupons["SAVE10"].id).usage_count == 1


def test_rejected_coupon_leaves_no_trace(db, catalog, coupons, service, notifier):
    with pytest.raises(BusinessRuleViolation) as exc:
        service.create_order(payload(coupon={"code": "OLD"}))

    assert exc.value.reason == "expired"
    db.expire_all()
    assert db.query(OrderModel).count() == 0
    assert db.get(VariantModel, "v-roja-m").stock == 5
    notifier.send_order_notification.assert_not_called()


def test_unknown_coupon(db, catalog, coupons, service):
    with pytest.raises(BusinessRuleViolation) as exc:
        service.create_order(payload(coupon={"code": "NOPE"}))
    assert exc.value.reason == "not_found"


def test_idempotency_key_returns_same_order(db, catalog, service):
    first = service.create_order(payload(), idempotency_key="key-1")
    second = service.create_order(payload(), idempotency_key="key-1")

    assert first == second
    db.expire_all()
    assert db.query(OrderModel).count() == 1
    assert db.get(VariantModel, "v-roja-m").stock == 3


def test_strict_inventory_rolls_back(db, catalog, coupons, notifier):
    service = OrderService(db, notification_service=notifier, strict_inventory=True)
    items = [
        {"productId": "p-gorra", "unitPrice": 7999, "quantity": 1},
        {
            "productId": "p-remera",
            "unitPrice": 13999,
            "quantity": 3,
            "variant": {"id": "v-azul-l", "name": "Azul L", "unitPrice": 13999},
        },
    ]

    with pytest.raises(BusinessRuleViolation):
        service.create_order(payload(items=items, coupon={"code": "SAVE10"}))

    db.expire_all()
    assert db.query(OrderModel).count() == 0
    assert catalog["gorra"].simple_stock == 20
    assert db.get(CouponModel, coupons["SAVE10"].id).usage_count == 0


def test_notification_failure_does_not_fail_checkout(db, catalog, service, notifier):
    notifier.send_order_notification.side_effect = RuntimeError("broker down")

    res = service.create_order(payload())

    assert res["success"] is True


class TestStatus:
    def test_forward_transitions(self, db, catalog, service):
        order_id = service.create_order(payload())["order"]["id"]

        for status in ("processing", "shipped", "delivered"):
            assert service.update_order_status(order_id, status).status == status

    def test_cannot_skip_steps(self, db, catalog, service):
        order_id = service.create_order(payload())["order"]["id"]

        with pytest.raises(BusinessRuleViolation) as exc:
            service.update_order_status(order_id, "delivered")
        assert exc.value.reason == "invalid_status_transition"

    def test_cancel_is_terminal(self, db, catalog, service):
        order_id = service.create_order(payload())["order"]["id"]
        service.update_order_status(order_id, "cancelled")

        with pytest.raises(BusinessRuleViolation):
            service.update_order_status(order_id, "refunded")

    def test_unknown_order(self, db, service):
        with pytest.raises(NotFoundError):
            service.get_order("missing")
