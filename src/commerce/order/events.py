"""Domain events for the Order aggregate.

Raised inside the same unit of work that persists the order, so they are
published only when the order change itself commits.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from commerce.domain import commerce


@commerce.event(part_of="Order")
class OrderPlaced:
    """Stock was reserved, the coupon redeemed and the order persisted."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=30)
    customer_id = Identifier()
    payment_method = String(required=True, max_length=20)
    item_count = Integer(required=True)
    grand_total = Float(required=True)
    currency = String(max_length=3, required=True)
    coupon_code = String(max_length=50)
    placed_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderStatusChanged:
    """The order moved to a new lifecycle status."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=30)
    previous_status = String(required=True, max_length=30)
    new_status = String(required=True, max_length=30)
    forced = Boolean(default=False)
    actor = String(max_length=100)
    changed_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderPaid:
    """A verified online payment was recorded against the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=30)
    settlement_id = String(required=True, max_length=255)
    amount = Float(required=True)
    currency = String(max_length=3, required=True)
    paid_at = DateTime(required=True)
