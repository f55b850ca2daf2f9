"""Coupon aggregate — discount codes with usage accounting.

A coupon is identified by its upper-cased code. Redemptions are recorded on
the aggregate itself, so the global usage count and the per-customer count
are checked and incremented in the same write as the order that uses them.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text

from commerce.coupon.events import CouponRedeemed
from commerce.domain import commerce
from commerce.errors import CouponExhausted


class DiscountKind(Enum):
    PERCENTAGE = "Percentage"
    FIXED = "Fixed"


class CouponScope(Enum):
    ALL_ITEMS = "All_Items"
    RESTRICTED = "Restricted"


def normalize_code(code) -> str:
    return (code or "").strip().upper()


@commerce.entity(part_of="Coupon")
class CouponRedemption:
    customer_id = Identifier()
    order_id = Identifier(required=True)
    redeemed_at = DateTime(required=True)


@commerce.aggregate
class Coupon:
    code = String(identifier=True, max_length=50)
    description = String(max_length=500)
    discount_kind = String(choices=DiscountKind, required=True)
    discount_value = Float(required=True, min_value=0.0)
    min_order_amount = Float(min_value=0.0)
    max_discount = Float(min_value=0.0)
    usage_limit = Integer(min_value=1)  # None: unlimited
    usage_count = Integer(default=0, min_value=0)
    per_user_limit = Integer(min_value=1)  # None: unlimited
    scope = String(choices=CouponScope, default=CouponScope.ALL_ITEMS.value)
    eligible_item_ids = Text()  # JSON list, used when scope is Restricted
    is_active = Boolean(default=True)
    starts_at = DateTime()
    ends_at = DateTime()
    redemptions = HasMany(CouponRedemption)

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_kind == DiscountKind.PERCENTAGE.value and (self.discount_value or 0) > 100:
            raise ValidationError({"discount_value": ["Percentage discount cannot exceed 100"]})

    @invariant.post
    def restricted_coupon_needs_items(self):
        if self.scope == CouponScope.RESTRICTED.value and not self.eligible_items:
            raise ValidationError({"eligible_item_ids": ["Restricted coupons must name at least one item"]})

    @classmethod
    def create(cls, code, discount_kind, discount_value, eligible_item_ids=None, **options):
        scope = CouponScope.RESTRICTED.value if eligible_item_ids else CouponScope.ALL_ITEMS.value
        return cls(
            code=normalize_code(code),
            discount_kind=discount_kind,
            discount_value=discount_value,
            scope=scope,
            eligible_item_ids=json.dumps([str(i) for i in eligible_item_ids]) if eligible_item_ids else None,
            **options,
        )

    @property
    def eligible_items(self) -> set[str]:
        return set(json.loads(self.eligible_item_ids)) if self.eligible_item_ids else set()

    @property
    def is_restricted(self) -> bool:
        return self.scope == CouponScope.RESTRICTED.value

    def redemptions_by(self, customer_id) -> int:
        if customer_id is None:
            return 0
        return sum(1 for r in self.redemptions if str(r.customer_id) == str(customer_id))

    def usage_exhausted(self) -> bool:
        return self.usage_limit is not None and self.usage_count >= self.usage_limit

    def customer_exhausted(self, customer_id) -> bool:
        return self.per_user_limit is not None and self.redemptions_by(customer_id) >= self.per_user_limit

    def redeem(self, customer_id, order_id):
        """Consume one use of the coupon for an order.

        Re-checks both limits against the freshly loaded aggregate; another
        checkout may have used the last redemption since the coupon was
        evaluated.
        """
        if self.usage_exhausted() or self.customer_exhausted(customer_id):
            raise CouponExhausted(self.code, customer_id=customer_id)

        now = datetime.now(UTC)
        self.usage_count += 1
        self.add_redemptions(CouponRedemption(customer_id=customer_id, order_id=order_id, redeemed_at=now))

        self.raise_(
            CouponRedeemed(
                code=self.code,
                customer_id=customer_id,
                order_id=order_id,
                usage_count=self.usage_count,
                redeemed_at=now,
            )
        )

    def deactivate(self):
        self.is_active = False
