"""Opening a gateway payment intent for an online order — command and handler.

Opening is idempotent per order: while a Pending payment exists its intent
is handed back instead of creating a second one. A gateway failure marks
the order's payment as Failed so the shopper can retry.
"""

from dataclasses import dataclass

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.errors import PaymentIntentFailed
from commerce.order.order import Order
from commerce.payment.gateway import get_gateway
from commerce.payment.payment import Payment
from commerce.pricing.money import to_minor_units

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PaymentIntentHandle:
    """What the storefront needs to open the gateway's payment sheet."""

    order_id: str
    success: bool
    payment_id: str | None = None
    intent_id: str | None = None
    amount: float | None = None
    amount_minor: int | None = None
    currency: str | None = None
    key_id: str | None = None
    failure_reason: str | None = None

    def raise_for_failure(self) -> None:
        if not self.success:
            raise PaymentIntentFailed(self.order_id, failure_reason=self.failure_reason)


@commerce.command(part_of="Payment")
class OpenPaymentIntent:
    order_id = Identifier(required=True)


def _handle_for(payment, key_id):
    return PaymentIntentHandle(
        order_id=str(payment.order_id),
        success=True,
        payment_id=str(payment.id),
        intent_id=payment.intent_id,
        amount=payment.amount,
        amount_minor=to_minor_units(payment.amount),
        currency=payment.currency,
        key_id=key_id,
    )


@commerce.command_handler(part_of=Payment)
class OpenPaymentIntentHandler:
    @handle(OpenPaymentIntent)
    def open_payment_intent(self, command):
        orders = current_domain.repository_for(Order)
        payments = current_domain.repository_for(Payment)
        gateway = get_gateway()

        order = orders.get(command.order_id)
        order.assert_awaiting_online_payment()
        existing = payments.find_open_for_order(order.id)
        if existing is not None:
            logger.info("payment_intent_reused", order_id=command.order_id, intent_id=existing.intent_id)
            return _handle_for(existing, gateway.key_id)

        result = gateway.create_intent(
            amount=order.pricing.grand_total,
            currency=order.pricing.currency,
            receipt=order.order_number,
            notes={"order_id": str(order.id), "order_number": order.order_number},
        )
        if not result.success:
            logger.error(
                "payment_intent_failed",
                order_id=command.order_id,
                gateway=gateway.name,
                reason=result.failure_reason,
            )
            order.record_payment_failure()
            orders.add(order)
            return PaymentIntentHandle(order_id=str(order.id), success=False, failure_reason=result.failure_reason)

        payment = Payment.open(
            order_id=str(order.id),
            amount=order.pricing.grand_total,
            currency=order.pricing.currency,
            intent_id=result.intent_id,
            gateway_name=gateway.name,
        )
        order.attach_payment_intent(payment.intent_id)
        payments.add(payment)
        orders.add(order)

        logger.info("payment_intent_opened", order_id=command.order_id, intent_id=payment.intent_id)
        return _handle_for(payment, gateway.key_id)


def open_payment_intent(order_id) -> PaymentIntentHandle:
    """Open (or reuse) the order's payment intent, raising ``PaymentIntentFailed`` on gateway failure."""
    handle_ = current_domain.process(OpenPaymentIntent(order_id=order_id), asynchronous=False)
    handle_.raise_for_failure()
    return handle_
