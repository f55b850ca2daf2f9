"""Payment aggregate — one gateway payment intent for an order.

State Machine:
    PENDING → PAID

An order has at most one open (Pending) payment at a time. Settlement is
one-way: once Paid, repeated gateway callbacks are recognised and ignored.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String

from commerce.domain import commerce
from commerce.payment.events import PaymentIntentOpened, PaymentSettled


class PaymentMethod(Enum):
    COD = "COD"
    ONLINE = "Online"


class PaymentStatus(Enum):
    PENDING = "Pending"
    PENDING_COD = "Pending_COD"
    PAID = "Paid"
    FAILED = "Failed"
    REFUNDED = "Refunded"


@commerce.aggregate
class Payment:
    order_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="INR")
    gateway_name = String(max_length=50)
    intent_id = String(required=True, max_length=255)
    settlement_id = String(max_length=255)
    signature = String(max_length=255)
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    paid_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def open(cls, order_id, amount, currency, intent_id, gateway_name):
        now = datetime.now(UTC)
        payment = cls(
            order_id=order_id,
            amount=amount,
            currency=currency,
            intent_id=intent_id,
            gateway_name=gateway_name,
            created_at=now,
            updated_at=now,
        )
        payment.raise_(
            PaymentIntentOpened(
                payment_id=str(payment.id),
                order_id=str(order_id),
                intent_id=intent_id,
                gateway_name=gateway_name,
                amount=amount,
                currency=currency,
                opened_at=now,
            )
        )
        return payment

    @property
    def is_settled(self) -> bool:
        return self.status == PaymentStatus.PAID.value

    @property
    def is_open(self) -> bool:
        return self.status == PaymentStatus.PENDING.value

    def settle(self, settlement_id, signature):
        if not self.is_open:
            raise ValidationError({"status": [f"Cannot settle a payment in {self.status} state"]})

        now = datetime.now(UTC)
        self.status = PaymentStatus.PAID.value
        self.settlement_id = settlement_id
        self.signature = signature
        self.paid_at = now
        self.updated_at = now

        self.raise_(
            PaymentSettled(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                intent_id=self.intent_id,
                settlement_id=settlement_id,
                amount=self.amount,
                currency=self.currency,
                paid_at=now,
            )
        )


@commerce.repository(part_of=Payment)
class PaymentRepository:
    def find_by_intent(self, intent_id) -> Payment | None:
        matches = self._dao.query.filter(intent_id=intent_id).all().items
        return matches[0] if matches else None

    def find_open_for_order(self, order_id) -> Payment | None:
        matches = self._dao.query.filter(order_id=str(order_id), status=PaymentStatus.PENDING.value).all().items
        return matches[0] if matches else None
