"""Coupon preview — shows the shopper what a code would save, without redeeming it."""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from commerce.coupon.coupon import Coupon, normalize_code
from commerce.coupon.engine import evaluate_coupon
from commerce.domain import commerce
from commerce.pricing.resolver import CartLine, resolve_cart


def find_coupon(code):
    """Load a coupon by code (case-insensitive), or None."""
    try:
        return current_domain.repository_for(Coupon).get(normalize_code(code))
    except ObjectNotFoundError:
        return None


@commerce.command(part_of="Coupon")
class PreviewCoupon:
    code = String(required=True, max_length=50)
    customer_id = Identifier()
    items = Text(required=True)  # JSON: list of {item_id, variant_id, quantity}


@commerce.command_handler(part_of=Coupon)
class PreviewCouponHandler:
    @handle(PreviewCoupon)
    def preview_coupon(self, command):
        lines = [CartLine.from_dict(line) for line in json.loads(command.items)]
        cart = resolve_cart(lines)
        coupon = find_coupon(command.code)
        return evaluate_coupon(coupon, command.customer_id, cart, code=command.code)
