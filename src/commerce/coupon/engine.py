"""Coupon engine — validates a coupon against a priced cart.

Checks run in a fixed order and the first failure wins, so the shopper
always sees the same reason for the same cart:

    1. exists and is active       NotFound
    2. inside its validity window NotStarted / Expired
    3. cart meets the minimum     BelowMinimum
    4. global usage remaining     UsageLimitReached
    5. per-customer usage left    PerUserLimitReached
    6. scope matches some line    NotApplicable

Evaluation never mutates the coupon; redemption happens later, inside the
order commit.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from commerce.coupon.coupon import Coupon, DiscountKind, normalize_code
from commerce.errors import CouponInvalid, CouponRejection
from commerce.pricing.money import round_money, to_decimal
from commerce.pricing.resolver import PricedCart


@dataclass(frozen=True)
class CouponDecision:
    code: str
    discount: float = 0.0
    eligible_subtotal: float = 0.0
    rejection: CouponRejection | None = None
    min_order_amount: float | None = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None

    def raise_for_rejection(self) -> None:
        if self.rejection is not None:
            raise CouponInvalid(self.code, self.rejection, min_order_amount=self.min_order_amount)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "valid": self.accepted,
            "discount": self.discount,
            "eligible_subtotal": self.eligible_subtotal,
            "reason": self.rejection.value if self.rejection else None,
        }


def _aware(moment):
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def compute_discount(kind, value, eligible_subtotal, max_discount=None) -> float:
    """Discount over the eligible subtotal, capped by ``max_discount`` and never above the subtotal."""
    eligible = to_decimal(eligible_subtotal)
    if DiscountKind(kind) == DiscountKind.PERCENTAGE:
        discount = eligible * to_decimal(value) / 100
    else:
        discount = to_decimal(value)

    if max_discount is not None:
        discount = min(discount, to_decimal(max_discount))
    return round_money(max(min(discount, eligible), 0))


def evaluate_coupon(
    coupon: Coupon | None,
    customer_id,
    cart: PricedCart,
    now: datetime | None = None,
    code: str | None = None,
) -> CouponDecision:
    code = normalize_code(code or (coupon.code if coupon else ""))
    now = _aware(now) or datetime.now(UTC)

    if coupon is None or not coupon.is_active:
        return CouponDecision(code=code, rejection=CouponRejection.NOT_FOUND)

    if coupon.starts_at and _aware(coupon.starts_at) > now:
        return CouponDecision(code=code, rejection=CouponRejection.NOT_STARTED)
    if coupon.ends_at and _aware(coupon.ends_at) < now:
        return CouponDecision(code=code, rejection=CouponRejection.EXPIRED)

    if coupon.min_order_amount and cart.subtotal < coupon.min_order_amount:
        return CouponDecision(
            code=code,
            rejection=CouponRejection.BELOW_MINIMUM,
            min_order_amount=coupon.min_order_amount,
        )

    if coupon.usage_exhausted():
        return CouponDecision(code=code, rejection=CouponRejection.USAGE_LIMIT_REACHED)
    if customer_id is not None and coupon.customer_exhausted(customer_id):
        return CouponDecision(code=code, rejection=CouponRejection.PER_USER_LIMIT_REACHED)

    if coupon.is_restricted:
        eligible_ids = coupon.eligible_items & cart.item_ids
        if not eligible_ids:
            return CouponDecision(code=code, rejection=CouponRejection.NOT_APPLICABLE)
        eligible_subtotal = cart.subtotal_for(eligible_ids)
    else:
        eligible_subtotal = cart.subtotal

    discount = compute_discount(
        coupon.discount_kind,
        coupon.discount_value,
        eligible_subtotal,
        max_discount=coupon.max_discount,
    )
    return CouponDecision(code=code, discount=discount, eligible_subtotal=eligible_subtotal)
