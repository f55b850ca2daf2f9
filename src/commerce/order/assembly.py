"""Order assembly — the single unit of work that commits a checkout.

Inside one transaction, in this order:
    (a) re-read each catalog item and decrement its stock
    (b) redeem the coupon, re-checking its limits
    (c) persist the order with its items, price snapshot and first timeline entry

Any failure rolls back all three. A concurrent writer on any touched
aggregate surfaces as ``ExpectedVersionError``; ``commit_order`` retries
the whole unit a bounded number of times before giving up.
"""

import json
import os
import secrets
import time

import structlog
from protean import handle
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from commerce.catalog.item import CatalogItem
from commerce.coupon.coupon import Coupon
from commerce.domain import commerce
from commerce.errors import (
    CheckoutConflict,
    CouponInvalid,
    CouponRejection,
    ItemUnavailable,
    UnavailableReason,
)
from commerce.order.order import Order

logger = structlog.get_logger(__name__)

DEFAULT_COMMIT_ATTEMPTS = 3
_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _base36(number: int) -> str:
    digits = ""
    while number:
        number, remainder = divmod(number, 36)
        digits = _BASE36[remainder] + digits
    return digits or "0"


def generate_order_number() -> str:
    """Human-facing order reference: ``ORD`` + base-36 milliseconds + 4 random characters."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"ORD{_base36(int(time.time() * 1000))}{suffix}"


@commerce.command(part_of="Order")
class AssembleOrder:
    """Commit a priced cart as an order."""

    order_number = String(required=True, max_length=30)
    customer_id = Identifier()
    items = Text(required=True)  # JSON: list of priced line dicts
    shipping_address = Text(required=True)  # JSON: address dict
    billing_address = Text()  # JSON: address dict
    payment_method = String(required=True, max_length=20)
    subtotal = Float(required=True)
    discount = Float(default=0.0)
    coupon_code = String(max_length=50)
    shipping_charge = Float(default=0.0)
    tax = Float(default=0.0)
    grand_total = Float(required=True)
    currency = String(max_length=3, default="INR")
    customer_notes = Text()


@commerce.command_handler(part_of=Order)
class AssembleOrderHandler:
    @handle(AssembleOrder)
    def assemble_order(self, command):
        lines = json.loads(command.items)

        catalog_repo = current_domain.repository_for(CatalogItem)
        touched_items = {}
        for line in lines:
            item = touched_items.get(line["item_id"])
            if item is None:
                try:
                    item = catalog_repo.get(line["item_id"])
                except ObjectNotFoundError as exc:
                    raise ItemUnavailable(line["item_id"], UnavailableReason.NOT_FOUND) from exc
                touched_items[line["item_id"]] = item
            item.take_stock(line["quantity"], variant_id=line.get("variant_id"))

        order = Order.place(
            order_number=command.order_number,
            customer_id=command.customer_id,
            lines=lines,
            shipping_address=json.loads(command.shipping_address),
            billing_address=json.loads(command.billing_address) if command.billing_address else None,
            pricing={
                "subtotal": command.subtotal,
                "discount": command.discount,
                "coupon_code": command.coupon_code,
                "shipping_charge": command.shipping_charge,
                "tax": command.tax,
                "grand_total": command.grand_total,
                "currency": command.currency,
            },
            payment_method=command.payment_method,
            customer_notes=command.customer_notes,
        )

        coupon = None
        if command.coupon_code:
            coupon_repo = current_domain.repository_for(Coupon)
            try:
                coupon = coupon_repo.get(command.coupon_code)
            except ObjectNotFoundError as exc:
                raise CouponInvalid(command.coupon_code, CouponRejection.NOT_FOUND) from exc
            coupon.redeem(command.customer_id, str(order.id))

        for item in touched_items.values():
            catalog_repo.add(item)
        if coupon is not None:
            coupon_repo.add(coupon)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_committed",
            order_id=str(order.id),
            order_number=order.order_number,
            grand_total=order.pricing.grand_total,
            coupon_code=command.coupon_code,
        )
        return str(order.id)


def commit_attempts() -> int:
    return int(os.getenv("CHECKOUT_COMMIT_ATTEMPTS", DEFAULT_COMMIT_ATTEMPTS))


def commit_order(attempts: int | None = None, **order_fields) -> str:
    """Process ``AssembleOrder`` and retry on optimistic-concurrency conflicts.

    Each attempt re-reads stock and coupon usage from scratch, so a retry
    sees the other writer's change and fails with a business error if the
    item or coupon has run out in the meantime.
    """
    attempts = attempts or commit_attempts()
    for attempt in range(1, attempts + 1):
        try:
            return current_domain.process(AssembleOrder(**order_fields), asynchronous=False)
        except ExpectedVersionError:
            logger.warning(
                "order_commit_conflict",
                order_number=order_fields.get("order_number"),
                attempt=attempt,
                max_attempts=attempts,
            )

    raise CheckoutConflict(attempts=attempts)
