"""Domain events for the Payment aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from commerce.domain import commerce


@commerce.event(part_of="Payment")
class PaymentIntentOpened:
    """A gateway-side payment intent was created for an order."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    intent_id = String(required=True, max_length=255)
    gateway_name = String(max_length=50)
    amount = Float(required=True)
    currency = String(max_length=3, required=True)
    opened_at = DateTime(required=True)


@commerce.event(part_of="Payment")
class PaymentSettled:
    """The gateway callback was verified and the money is captured."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    intent_id = String(required=True, max_length=255)
    settlement_id = String(required=True, max_length=255)
    amount = Float(required=True)
    currency = String(max_length=3, required=True)
    paid_at = DateTime(required=True)
