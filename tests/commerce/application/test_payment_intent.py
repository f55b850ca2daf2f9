import pytest
from commerce.checkout.pipeline import CheckoutRequest, place_order
from commerce.errors import PaymentIntentFailed
from commerce.order.status import ChangeOrderStatus
from commerce.payment.intent import open_payment_intent
from commerce.payment.payment import Payment, PaymentStatus
from commerce.payment.verification import verify_payment
from commerce.pricing.resolver import CartLine
from protean import current_domain
from protean.exceptions import ValidationError


def _checkout(make_item, address, payment_method="Online"):
    item = make_item(price=2500.0, weight_kg=1.0)
    return place_order(
        CheckoutRequest(
            customer_id="cust-001",
            lines=[CartLine(str(item.id), 2)],
            shipping_address=address,
            payment_method=payment_method,
        )
    )


class TestOpenPaymentIntent:
    def test_reopening_returns_the_same_intent(self, make_item, address, gateway):
        result = _checkout(make_item, address)

        again = open_payment_intent(result.order_id)

        assert again.intent_id == result.payment_intent.intent_id
        assert again.payment_id == result.payment_intent.payment_id
        assert len([c for c in gateway.calls if c["method"] == "create_intent"]) == 1

    def test_amount_matches_grand_total(self, make_item, address, gateway):
        result = _checkout(make_item, address)

        # 5000 + 99 shipping + 900 tax
        assert result.pricing.grand_total == 5999.0
        assert result.payment_intent.amount_minor == 599900
        assert result.payment_intent.currency == "INR"

        payment = current_domain.repository_for(Payment).get(result.payment_intent.payment_id)
        assert payment.status == PaymentStatus.PENDING.value
        assert payment.gateway_name == "fake"

    def test_cod_order_cannot_take_online_payment(self, make_item, address, gateway):
        result = _checkout(make_item, address, payment_method="COD")

        with pytest.raises(ValidationError):
            open_payment_intent(result.order_id)

    def test_paid_order_cannot_reopen(self, make_item, address, gateway):
        result = _checkout(make_item, address)
        intent_id = result.payment_intent.intent_id
        verify_payment(intent_id, "pay_001", gateway.sign(intent_id, "pay_001"))

        with pytest.raises(ValidationError):
            open_payment_intent(result.order_id)

    def test_cancelled_order_cannot_take_payment(self, make_item, address, gateway):
        gateway.configure(should_succeed=False, failure_reason="Gateway timeout")
        with pytest.raises(PaymentIntentFailed) as exc:
            _checkout(make_item, address)
        order_id = exc.value.order_id

        current_domain.process(ChangeOrderStatus(order_id=order_id, status="Cancelled"), asynchronous=False)
        gateway.configure(should_succeed=True)

        with pytest.raises(ValidationError) as rejected:
            open_payment_intent(order_id)

        assert "status" in rejected.value.messages
        assert len([c for c in gateway.calls if c["method"] == "create_intent"]) == 1
