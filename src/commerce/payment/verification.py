"""Payment verification — the gateway's signed callback.

The signature is checked before anything is read or written; a mismatch is
logged and rejected with no state change. A valid callback settles the
Payment and confirms the Order in one unit of work. Repeated callbacks for
an already settled payment are acknowledged without changing anything.
"""

from dataclasses import dataclass

import structlog
from protean import handle
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError
from protean.fields import String
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.errors import InvalidSignature
from commerce.order.order import Order
from commerce.payment.gateway import get_gateway
from commerce.payment.payment import Payment

logger = structlog.get_logger(__name__)

VERIFY_ATTEMPTS = 2


@dataclass(frozen=True)
class VerificationOutcome:
    order_id: str
    payment_id: str
    order_status: str
    payment_status: str
    already_settled: bool = False


@commerce.command(part_of="Payment")
class VerifyPayment:
    intent_id = String(required=True, max_length=255)
    settlement_id = String(required=True, max_length=255)
    signature = String(required=True, max_length=255)


@commerce.command_handler(part_of=Payment)
class VerifyPaymentHandler:
    @handle(VerifyPayment)
    def verify_payment(self, command):
        if not get_gateway().verify_signature(command.intent_id, command.settlement_id, command.signature):
            logger.error(
                "payment_signature_invalid",
                intent_id=command.intent_id,
                settlement_id=command.settlement_id,
            )
            raise InvalidSignature(command.intent_id)

        payments = current_domain.repository_for(Payment)
        orders = current_domain.repository_for(Order)

        payment = payments.find_by_intent(command.intent_id)
        if payment is None:
            raise ObjectNotFoundError(f"No payment for intent {command.intent_id}")
        order = orders.get(payment.order_id)

        if payment.is_settled:
            if payment.settlement_id != command.settlement_id:
                logger.warning(
                    "payment_settlement_mismatch",
                    intent_id=command.intent_id,
                    recorded_settlement_id=payment.settlement_id,
                    received_settlement_id=command.settlement_id,
                )
            logger.info("payment_callback_duplicate", intent_id=command.intent_id, order_id=str(order.id))
            return VerificationOutcome(
                order_id=str(order.id),
                payment_id=str(payment.id),
                order_status=order.status,
                payment_status=order.payment_status,
                already_settled=True,
            )

        payment.settle(command.settlement_id, command.signature)
        confirmed = order.record_payment(command.settlement_id, paid_at=payment.paid_at)
        if not confirmed:
            logger.warning("payment_for_non_pending_order", order_id=str(order.id), order_status=order.status)

        payments.add(payment)
        orders.add(order)

        logger.info(
            "payment_verified",
            order_id=str(order.id),
            intent_id=command.intent_id,
            settlement_id=command.settlement_id,
        )
        return VerificationOutcome(
            order_id=str(order.id),
            payment_id=str(payment.id),
            order_status=order.status,
            payment_status=order.payment_status,
        )


def verify_payment(intent_id, settlement_id, signature) -> VerificationOutcome:
    """Process ``VerifyPayment``; a callback that loses a race re-reads and sees the settled payment."""
    for attempt in range(1, VERIFY_ATTEMPTS + 1):
        try:
            return current_domain.process(
                VerifyPayment(intent_id=intent_id, settlement_id=settlement_id, signature=signature),
                asynchronous=False,
            )
        except ExpectedVersionError:
            if attempt == VERIFY_ATTEMPTS:
                raise
            logger.info("payment_callback_conflict", intent_id=intent_id, attempt=attempt)
