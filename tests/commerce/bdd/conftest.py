"""Shared BDD fixtures and step definitions for the commerce domain."""

from datetime import UTC, datetime, timedelta

import pytest
from commerce.coupon.coupon import Coupon, DiscountKind
from commerce.errors import InvalidTransition
from commerce.order.order import Order
from commerce.pricing.resolver import PricedCart, PricedLine
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for the failure raised by a When step."""
    return {"exc": None}


@pytest.fixture()
def customer_id():
    return "cust-001"


# ---------------------------------------------------------------------------
# Given steps: Order
# ---------------------------------------------------------------------------
@given(parsers.cfparse("a {payment_method} order was placed for {amount:g}"), target_fixture="order")
@given(parsers.cfparse("an {payment_method} order was placed for {amount:g}"), target_fixture="order")
def placed_order(payment_method, amount, customer_id):
    order = Order.place(
        order_number="ORDBDD0001",
        customer_id=customer_id,
        lines=[
            {
                "item_id": "item-1",
                "variant_id": None,
                "name": "Graphics Card",
                "sku": "GPU-01",
                "unit_price": amount,
                "quantity": 1,
                "line_total": amount,
            }
        ],
        shipping_address={
            "full_name": "Asha Rao",
            "line1": "12 MG Road",
            "city": "Bengaluru",
            "state": "Karnataka",
            "postal_code": "560001",
        },
        pricing={
            "subtotal": amount,
            "discount": 0.0,
            "shipping_charge": 0.0,
            "tax": 0.0,
            "grand_total": amount,
            "currency": "INR",
        },
        payment_method=payment_method,
    )
    order._events.clear()
    return order


@given(parsers.cfparse('the order was moved to "{status}"'), target_fixture="order")
def order_moved_to(order, status):
    order.transition_to(status, forced=True, actor="Admin")
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# Given steps: Coupon and cart
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a {percent:d}% coupon "{code}" capped at {cap:g}'), target_fixture="coupon")
def percentage_coupon(percent, code, cap):
    return Coupon.create(code, DiscountKind.PERCENTAGE.value, percent, max_discount=cap)


@given(parsers.cfparse('a flat {value:g} coupon "{code}"'), target_fixture="coupon")
def flat_coupon(value, code):
    return Coupon.create(code, DiscountKind.FIXED.value, value)


@given(parsers.cfparse("the coupon needs a minimum order of {amount:g}"), target_fixture="coupon")
def coupon_minimum(coupon, amount):
    coupon.min_order_amount = amount
    return coupon


@given("the coupon expired yesterday", target_fixture="coupon")
def coupon_expired(coupon):
    coupon.ends_at = datetime.now(UTC) - timedelta(days=1)
    return coupon


@given(parsers.cfparse("the coupon can be used {limit:d} time per customer"), target_fixture="coupon")
def coupon_per_user(coupon, limit):
    coupon.per_user_limit = limit
    return coupon


@given("the customer already used the coupon", target_fixture="coupon")
def coupon_already_used(coupon, customer_id):
    coupon.redeem(customer_id, "ord-earlier")
    coupon._events.clear()
    return coupon


@given(parsers.cfparse("a cart worth {amount:g}"), target_fixture="cart")
def cart_worth(amount):
    return PricedCart(
        lines=[
            PricedLine(
                item_id="item-1",
                variant_id=None,
                name="Graphics Card",
                sku="GPU-01",
                unit_price=amount,
                quantity=1,
            )
        ]
    )


# ---------------------------------------------------------------------------
# Then steps: shared
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == status


@then(parsers.cfparse('the order payment status is "{status}"'))
def order_payment_status_is(order, status):
    assert order.payment_status == status


@then("the action is rejected as an invalid transition")
def rejected_transition(error):
    assert isinstance(error["exc"], InvalidTransition), f"Expected InvalidTransition, got {error['exc']!r}"


@then("the action fails with a validation error")
def rejected_validation(error):
    assert isinstance(error["exc"], ValidationError), f"Expected ValidationError, got {error['exc']!r}"


@then("the action succeeds")
def action_succeeds(error):
    assert error["exc"] is None, f"Unexpected failure: {error['exc']!r}"
