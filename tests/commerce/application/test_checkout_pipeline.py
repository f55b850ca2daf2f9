"""Application tests for the full checkout pipeline."""

from datetime import UTC, datetime, timedelta

import pytest
from commerce.catalog.item import CatalogItem
from commerce.checkout.pipeline import CheckoutRequest, place_order
from commerce.coupon.coupon import Coupon
from commerce.errors import CouponInvalid, CouponRejection, ItemUnavailable, PaymentIntentFailed
from commerce.order.order import Order, OrderStatus
from commerce.payment.intent import open_payment_intent
from commerce.payment.payment import Payment, PaymentStatus
from commerce.pricing.resolver import CartLine
from protean import current_domain
from protean.exceptions import ValidationError


def _request(item, address, quantity=1, payment_method="Online", **overrides):
    kwargs = {
        "customer_id": "cust-001",
        "lines": [CartLine(str(item.id), quantity)],
        "shipping_address": address,
        "payment_method": payment_method,
    }
    kwargs.update(overrides)
    return CheckoutRequest(**kwargs)


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestOnlineCheckout:
    def test_discounted_order_totals(self, make_item, save20, address, gateway):
        gpu = make_item(price=50000.0, stock_quantity=5)

        result = place_order(_request(gpu, address, coupon_code="SAVE20"))

        assert result.pricing.subtotal == 50000.0
        assert result.pricing.discount == 5000.0
        assert result.pricing.shipping_charge == 0.0
        assert result.pricing.tax == 8100.0
        assert result.pricing.grand_total == 53100.0
        assert result.status == OrderStatus.PENDING.value
        assert result.payment_status == PaymentStatus.PENDING.value

    def test_order_is_committed_with_snapshot(self, make_item, save20, address, gateway):
        gpu = make_item(price=50000.0, stock_quantity=5)

        result = place_order(_request(gpu, address, coupon_code="SAVE20"))

        order = _order(result.order_id)
        assert order.order_number == result.order_number
        assert order.pricing.grand_total == 53100.0
        assert order.pricing.coupon_code == "SAVE20"
        assert current_domain.repository_for(CatalogItem).get(gpu.id).stock_quantity == 4
        assert current_domain.repository_for(Coupon).get("SAVE20").usage_count == 1

    def test_payment_intent_is_opened(self, make_item, address, gateway):
        gpu = make_item(price=50000.0)

        result = place_order(_request(gpu, address))

        intent = result.payment_intent
        assert intent.amount == result.pricing.grand_total
        assert intent.amount_minor == int(round(result.pricing.grand_total * 100))
        assert intent.key_id == "fake_key"
        assert gateway.calls[0]["receipt"] == result.order_number
        assert _order(result.order_id).payment_intent_id == intent.intent_id

    def test_snapshot_survives_catalog_price_change(self, make_item, address, gateway):
        gpu = make_item(price=50000.0)
        result = place_order(_request(gpu, address))

        item = current_domain.repository_for(CatalogItem).get(gpu.id)
        item.reprice(10.0)
        current_domain.repository_for(CatalogItem).add(item)

        order = _order(result.order_id)
        assert order.items[0].unit_price == 50000.0
        assert order.pricing.subtotal == 50000.0

    def test_lower_case_coupon_code(self, make_item, save20, address, gateway):
        gpu = make_item(price=50000.0)
        assert place_order(_request(gpu, address, coupon_code="save20")).pricing.discount == 5000.0

    def test_small_prepaid_order_pays_shipping(self, make_item, address, gateway):
        cable = make_item(name="HDMI Cable", price=500.0, weight_kg=0.2)
        result = place_order(_request(cable, address))
        assert result.pricing.shipping_charge == 49.0
        assert result.pricing.tax == 90.0
        assert result.pricing.grand_total == 639.0

    def test_bad_postal_code_falls_back_to_default_charge(self, make_item, address, gateway):
        cable = make_item(name="HDMI Cable", price=500.0, weight_kg=0.2)
        result = place_order(_request(cable, address | {"postal_code": "ABCDEF"}))
        assert result.shipping.used_fallback
        assert result.pricing.shipping_charge == 99.0


class TestCashOnDelivery:
    def test_cod_order_is_confirmed(self, make_item, address, gateway):
        kb = make_item(name="Keyboard", price=3000.0, weight_kg=0.9)

        result = place_order(_request(kb, address, payment_method="COD"))

        assert result.status == OrderStatus.CONFIRMED.value
        assert result.payment_status == PaymentStatus.PENDING_COD.value
        assert result.payment_intent is None
        assert result.pricing.shipping_charge == 149.0
        assert gateway.calls == []

        titles = [entry.title for entry in _order(result.order_id).history()]
        assert titles == ["Order Placed", "Order Confirmed"]

    def test_cod_above_threshold_still_pays_shipping(self, make_item, address, gateway):
        gpu = make_item(price=50000.0, weight_kg=1.5)
        result = place_order(_request(gpu, address, payment_method="COD"))
        assert result.pricing.shipping_charge == 149.0
        assert result.pricing.grand_total == 50000.0 + 149.0 + 9000.0


class TestRejectedCheckout:
    def test_expired_coupon(self, make_item, make_coupon, address, gateway):
        make_coupon("OLD10", discount_value=10, ends_at=datetime.now(UTC) - timedelta(days=1))
        gpu = make_item(stock_quantity=5)

        with pytest.raises(CouponInvalid) as exc:
            place_order(_request(gpu, address, coupon_code="OLD10"))

        assert exc.value.reason == CouponRejection.EXPIRED
        assert current_domain.repository_for(CatalogItem).get(gpu.id).stock_quantity == 5
        assert current_domain.repository_for(Order)._dao.query.all().items == []

    def test_unknown_coupon(self, make_item, address, gateway):
        gpu = make_item()
        with pytest.raises(CouponInvalid) as exc:
            place_order(_request(gpu, address, coupon_code="NOPE"))
        assert exc.value.reason == CouponRejection.NOT_FOUND

    def test_out_of_stock(self, make_item, address, gateway):
        gpu = make_item(stock_quantity=1)
        with pytest.raises(ItemUnavailable):
            place_order(_request(gpu, address, quantity=2))
        assert gateway.calls == []

    def test_unknown_payment_method(self, make_item, address):
        with pytest.raises(ValidationError):
            place_order(_request(make_item(), address, payment_method="Barter"))

    def test_incomplete_address(self, make_item, address):
        gpu = make_item(stock_quantity=1)
        incomplete = {k: v for k, v in address.items() if k != "city"}
        with pytest.raises(ValidationError):
            place_order(_request(gpu, incomplete))
        assert current_domain.repository_for(CatalogItem).get(gpu.id).stock_quantity == 1


class TestGatewayFailure:
    def test_order_survives_and_payment_can_be_retried(self, make_item, address, gateway):
        gpu = make_item(price=50000.0)
        gateway.configure(should_succeed=False, failure_reason="Gateway timeout")

        with pytest.raises(PaymentIntentFailed) as exc:
            place_order(_request(gpu, address))

        order_id = exc.value.order_id
        order = _order(order_id)
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.FAILED.value
        assert exc.value.to_dict()["order_id"] == order_id

        gateway.configure(should_succeed=True)
        intent = open_payment_intent(order_id)

        assert intent.success
        assert _order(order_id).payment_status == PaymentStatus.PENDING.value
        payment = current_domain.repository_for(Payment).find_by_intent(intent.intent_id)
        assert payment.amount == order.pricing.grand_total
