"""Domain events for the Coupon aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from commerce.domain import commerce


@commerce.event(part_of="Coupon")
class CouponRedeemed:
    """A coupon was consumed by a committed order."""

    __version__ = 1

    code = String(required=True, max_length=50)
    customer_id = Identifier()
    order_id = Identifier(required=True)
    usage_count = Integer(required=True)
    redeemed_at = DateTime(required=True)
