from unittest.mock import patch

import pytest
from commerce.checkout.pipeline import CheckoutRequest, place_order
from commerce.domain import commerce
from commerce.errors import InvalidSignature
from commerce.order.order import Order, OrderStatus
from commerce.payment.payment import Payment, PaymentStatus
from commerce.payment.verification import VerificationOutcome, verify_payment
from commerce.pricing.resolver import CartLine
from protean import current_domain
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError


def _place_online_order(make_item, address):
    item = make_item(price=50000.0)
    return place_order(
        CheckoutRequest(
            customer_id="cust-001",
            lines=[CartLine(str(item.id), 1)],
            shipping_address=address,
            payment_method="Online",
        )
    )


class TestVerifyPayment:
    def test_valid_callback_confirms_order(self, make_item, address, gateway):
        result = _place_online_order(make_item, address)
        intent_id = result.payment_intent.intent_id

        outcome = verify_payment(intent_id, "pay_001", gateway.sign(intent_id, "pay_001"))

        assert outcome.order_status == OrderStatus.CONFIRMED.value
        assert outcome.payment_status == PaymentStatus.PAID.value
        assert not outcome.already_settled

        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.settlement_id == "pay_001"
        assert order.paid_at is not None
        assert order.history()[-1].title == "Payment Successful"

        payment = current_domain.repository_for(Payment).get(outcome.payment_id)
        assert payment.status == PaymentStatus.PAID.value
        assert payment.settlement_id == "pay_001"

    def test_tampered_signature_changes_nothing(self, make_item, address, gateway):
        result = _place_online_order(make_item, address)
        intent_id = result.payment_intent.intent_id

        with pytest.raises(InvalidSignature):
            verify_payment(intent_id, "pay_001", gateway.sign(intent_id, "pay_002"))

        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value
        payment = current_domain.repository_for(Payment).find_by_intent(intent_id)
        assert payment.status == PaymentStatus.PENDING.value

    def test_signature_from_another_secret_is_rejected(self, make_item, address, gateway):
        from commerce.payment.signature import compute_signature

        result = _place_online_order(make_item, address)
        intent_id = result.payment_intent.intent_id

        with pytest.raises(InvalidSignature):
            verify_payment(intent_id, "pay_001", compute_signature("other-secret", intent_id, "pay_001"))

    def test_duplicate_callback_is_acknowledged(self, make_item, address, gateway):
        result = _place_online_order(make_item, address)
        intent_id = result.payment_intent.intent_id
        signature = gateway.sign(intent_id, "pay_001")
        verify_payment(intent_id, "pay_001", signature)

        outcome = verify_payment(intent_id, "pay_001", signature)

        assert outcome.already_settled
        assert outcome.order_status == OrderStatus.CONFIRMED.value
        order = current_domain.repository_for(Order).get(result.order_id)
        assert [e.title for e in order.history()] == ["Order Placed", "Payment Successful"]

    def test_unknown_intent(self, gateway):
        with pytest.raises(ObjectNotFoundError):
            verify_payment("fake_intent_missing", "pay_001", gateway.sign("fake_intent_missing", "pay_001"))

    def test_payment_for_cancelled_order_is_recorded(self, make_item, address, gateway):
        result = _place_online_order(make_item, address)
        intent_id = result.payment_intent.intent_id

        repo = current_domain.repository_for(Order)
        order = repo.get(result.order_id)
        order.transition_to(OrderStatus.CANCELLED)
        repo.add(order)

        outcome = verify_payment(intent_id, "pay_001", gateway.sign(intent_id, "pay_001"))

        assert outcome.order_status == OrderStatus.CANCELLED.value
        assert outcome.payment_status == PaymentStatus.PAID.value


class TestInterleavedCallbacks:
    def test_simultaneous_callbacks_settle_once(self, make_item, address, gateway, rendezvous, run_concurrently):
        result = _place_online_order(make_item, address)
        intent_id = result.payment_intent.intent_id
        signature = gateway.sign(intent_id, "pay_001")
        rendezvous(Payment, "settle")

        outcomes, errors = run_concurrently(
            lambda: verify_payment(intent_id, "pay_001", signature),
            lambda: verify_payment(intent_id, "pay_001", signature),
        )

        assert errors == []
        assert sorted(outcome.already_settled for outcome in outcomes) == [False, True]
        assert {outcome.order_status for outcome in outcomes} == {OrderStatus.CONFIRMED.value}

        order = current_domain.repository_for(Order).get(result.order_id)
        assert [e.title for e in order.history()].count("Payment Successful") == 1
        assert [e.status for e in order.history()] == ["Pending", "Confirmed"]


class TestVerifyRetry:
    def test_retries_once_on_conflict(self):
        outcome = VerificationOutcome("o-1", "p-1", "Confirmed", "Paid")
        with patch.object(commerce, "process", side_effect=[ExpectedVersionError("stale"), outcome]) as process:
            assert verify_payment("i-1", "s-1", "sig") is outcome
        assert process.call_count == 2

    def test_gives_up_after_second_conflict(self):
        with patch.object(commerce, "process", side_effect=ExpectedVersionError("stale")) as process:
            with pytest.raises(ExpectedVersionError):
                verify_payment("i-1", "s-1", "sig")
        assert process.call_count == 2
