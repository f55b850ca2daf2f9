"""Checkout pipeline — from a submitted cart to a committed order.

    resolve prices → evaluate coupon → quote shipping → snapshot totals
    → commit (stock + coupon + order, retried on conflicts)
    → confirm COD, or open a payment intent for online payment

Everything before the commit is read-only, so a rejected checkout leaves
no trace. The payment step runs after the commit: if the gateway fails the
order stays PENDING and the shopper can retry payment for it.
"""

import json
from dataclasses import dataclass
from datetime import datetime

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from commerce.catalog.port import CatalogPort
from commerce.coupon.coupon import normalize_code
from commerce.coupon.engine import CouponDecision, evaluate_coupon
from commerce.coupon.preview import find_coupon
from commerce.errors import CommerceError
from commerce.order.assembly import commit_order, generate_order_number
from commerce.order.order import Order, ShippingAddress
from commerce.payment.cod import ConfirmCashOnDelivery
from commerce.payment.intent import PaymentIntentHandle, open_payment_intent
from commerce.payment.payment import PaymentMethod
from commerce.pricing.resolver import CartLine, resolve_cart
from commerce.pricing.snapshot import PriceSnapshot, build_price_snapshot
from commerce.shipping.calculator import ShippingQuote, calculate_shipping
from commerce.utils.logging import bind_checkout_context

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CheckoutRequest:
    lines: list[CartLine]
    shipping_address: dict
    payment_method: str
    customer_id: str | None = None
    billing_address: dict | None = None
    coupon_code: str | None = None
    customer_notes: str | None = None


@dataclass(frozen=True)
class CheckoutResult:
    order_id: str
    order_number: str
    status: str
    payment_method: str
    payment_status: str
    pricing: PriceSnapshot
    shipping: ShippingQuote
    coupon: CouponDecision | None = None
    payment_intent: PaymentIntentHandle | None = None


def _payment_method(value) -> PaymentMethod:
    try:
        return PaymentMethod(value)
    except ValueError as exc:
        raise ValidationError({"payment_method": [f"Unsupported payment method: {value}"]}) from exc


def place_order(request: CheckoutRequest, catalog: CatalogPort | None = None, now: datetime | None = None):
    """Run the checkout pipeline and return a ``CheckoutResult``.

    Raises ``ItemUnavailable``, ``CouponInvalid``, ``CouponExhausted`` or
    ``CheckoutConflict`` when no order was created, and
    ``PaymentIntentFailed`` (carrying the order id) when the order exists
    but the gateway could not open a payment.
    """
    method = _payment_method(request.payment_method)
    # Validates required address fields before any work is done
    ShippingAddress(**request.shipping_address)
    bind_checkout_context(customer_id=request.customer_id)

    try:
        cart = resolve_cart(request.lines, catalog=catalog)

        decision = None
        if request.coupon_code:
            code = normalize_code(request.coupon_code)
            decision = evaluate_coupon(find_coupon(code), request.customer_id, cart, now=now, code=code)
            decision.raise_for_rejection()
        discount = decision.discount if decision else 0.0

        quote = calculate_shipping(
            request.shipping_address.get("postal_code"),
            cart.total_weight_kg,
            method.value,
            discounted_subtotal=cart.subtotal - discount,
        )
        snapshot = build_price_snapshot(
            subtotal=cart.subtotal,
            discount=discount,
            shipping_charge=quote.charge,
            coupon_code=decision.code if decision else None,
        )

        order_number = generate_order_number()
        bind_checkout_context(order_number=order_number)
        order_id = commit_order(
            order_number=order_number,
            customer_id=request.customer_id,
            items=json.dumps([line.to_dict() for line in cart.lines]),
            shipping_address=json.dumps(request.shipping_address),
            billing_address=json.dumps(request.billing_address) if request.billing_address else None,
            payment_method=method.value,
            subtotal=snapshot.subtotal,
            discount=snapshot.discount,
            coupon_code=snapshot.coupon_code,
            shipping_charge=snapshot.shipping_charge,
            tax=snapshot.tax,
            grand_total=snapshot.grand_total,
            currency=snapshot.currency,
            customer_notes=request.customer_notes,
        )
    except CommerceError as exc:
        logger.info("checkout_rejected", error=exc.code, **exc.details)
        raise

    intent = None
    if method == PaymentMethod.COD:
        current_domain.process(ConfirmCashOnDelivery(order_id=order_id), asynchronous=False)
    else:
        intent = open_payment_intent(order_id)

    order = current_domain.repository_for(Order).get(order_id)
    logger.info(
        "checkout_completed",
        order_id=order_id,
        order_number=order.order_number,
        grand_total=snapshot.grand_total,
        payment_method=method.value,
    )
    return CheckoutResult(
        order_id=order_id,
        order_number=order.order_number,
        status=order.status,
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        pricing=snapshot,
        shipping=quote,
        coupon=decision,
        payment_intent=intent,
    )
