"""Typed failures raised along the checkout and payment path.

Every error carries a stable ``code`` plus details that name the offending
line item, coupon or order, so the storefront can tell the shopper what to
fix. ``InvalidAddress`` and ``ShippingUnserviceable`` are soft: the shipping
calculator logs them and falls back to the default charge.
"""

from enum import Enum


class UnavailableReason(Enum):
    NOT_FOUND = "NotFound"
    UNPUBLISHED = "Unpublished"
    INSUFFICIENT_STOCK = "InsufficientStock"


class CouponRejection(Enum):
    NOT_FOUND = "NotFound"
    NOT_STARTED = "NotStarted"
    EXPIRED = "Expired"
    BELOW_MINIMUM = "BelowMinimum"
    USAGE_LIMIT_REACHED = "UsageLimitReached"
    PER_USER_LIMIT_REACHED = "PerUserLimitReached"
    NOT_APPLICABLE = "NotApplicable"


_COUPON_MESSAGES = {
    CouponRejection.NOT_FOUND: "Invalid coupon code",
    CouponRejection.NOT_STARTED: "This coupon is not yet active",
    CouponRejection.EXPIRED: "This coupon has expired",
    CouponRejection.BELOW_MINIMUM: "Cart total is below the minimum order amount for this coupon",
    CouponRejection.USAGE_LIMIT_REACHED: "This coupon has reached its usage limit",
    CouponRejection.PER_USER_LIMIT_REACHED: "You have already used this coupon",
    CouponRejection.NOT_APPLICABLE: "This coupon does not apply to any item in your cart",
}


class CommerceError(Exception):
    """Base class for checkout errors that are safe to show to a shopper."""

    code = "commerce_error"
    default_message = "Something went wrong with your order"

    def __init__(self, message: str | None = None, **details) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, **self.details}


class ItemUnavailable(CommerceError):
    code = "item_unavailable"
    default_message = "An item in your cart is no longer available"

    def __init__(
        self,
        item_id: str,
        reason: UnavailableReason,
        variant_id: str | None = None,
        requested: int | None = None,
        available: int | None = None,
    ) -> None:
        self.item_id = item_id
        self.reason = reason
        super().__init__(
            item_id=item_id,
            variant_id=variant_id,
            reason=reason.value,
            requested=requested,
            available=available,
        )


class CouponInvalid(CommerceError):
    code = "coupon_invalid"

    def __init__(self, coupon_code: str, reason: CouponRejection, min_order_amount: float | None = None) -> None:
        self.coupon_code = coupon_code
        self.reason = reason
        details = {"coupon_code": coupon_code, "reason": reason.value}
        if min_order_amount is not None:
            details["min_order_amount"] = min_order_amount
        super().__init__(_COUPON_MESSAGES[reason], **details)


class CouponExhausted(CommerceError):
    code = "coupon_exhausted"
    default_message = "This coupon was used up while your order was being placed"

    def __init__(self, coupon_code: str, customer_id: str | None = None) -> None:
        self.coupon_code = coupon_code
        super().__init__(coupon_code=coupon_code, customer_id=customer_id)


class InvalidAddress(CommerceError):
    code = "invalid_address"
    default_message = "Enter a valid 6-digit postal code"

    def __init__(self, postal_code: str | None) -> None:
        self.postal_code = postal_code
        super().__init__(postal_code=postal_code)


class ShippingUnserviceable(CommerceError):
    code = "shipping_unserviceable"
    default_message = "We do not deliver to this postal code yet"

    def __init__(self, postal_code: str) -> None:
        self.postal_code = postal_code
        super().__init__(postal_code=postal_code)


class PaymentIntentFailed(CommerceError):
    code = "payment_intent_failed"
    default_message = "Payment could not be started, please retry"

    def __init__(self, order_id: str, failure_reason: str | None = None) -> None:
        self.order_id = order_id
        self.failure_reason = failure_reason
        super().__init__(order_id=order_id)


class InvalidSignature(CommerceError):
    code = "invalid_signature"
    default_message = "Payment could not be confirmed, please retry"

    def __init__(self, intent_id: str) -> None:
        self.intent_id = intent_id
        super().__init__(intent_id=intent_id)


class InvalidTransition(CommerceError):
    code = "invalid_transition"

    def __init__(self, order_id: str, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot move order from {current} to {target}",
            order_id=order_id,
            current_status=current,
            target_status=target,
        )


class CheckoutConflict(CommerceError):
    code = "checkout_conflict"
    default_message = "Your order could not be placed because the cart changed, please retry"

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(attempts=attempts)
