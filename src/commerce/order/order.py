"""Order aggregate — the committed result of a checkout.

Line items and the price snapshot are frozen at creation; only status,
payment and courier details change afterwards. Every status change appends
an entry to the order's timeline.

State Machine:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → OUT_FOR_DELIVERY → DELIVERED
    CANCELLED / RETURNED / REFUNDED from any non-terminal main-path state
    RETURNED → CANCELLED / REFUNDED
    DELIVERED, CANCELLED and REFUNDED are terminal
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from commerce.domain import commerce
from commerce.errors import InvalidTransition
from commerce.order.events import OrderPaid, OrderPlaced, OrderStatusChanged
from commerce.payment.payment import PaymentMethod, PaymentStatus


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    OUT_FOR_DELIVERY = "Out_For_Delivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    RETURNED = "Returned"
    REFUNDED = "Refunded"


_EXITS = {OrderStatus.CANCELLED, OrderStatus.RETURNED, OrderStatus.REFUNDED}

ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED} | _EXITS,
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING} | _EXITS,
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED} | _EXITS,
    OrderStatus.SHIPPED: {OrderStatus.OUT_FOR_DELIVERY} | _EXITS,
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED} | _EXITS,
    OrderStatus.RETURNED: {OrderStatus.CANCELLED, OrderStatus.REFUNDED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.REFUNDED: set(),  # Terminal
}

TERMINAL_STATES = {status for status, targets in ALLOWED_TRANSITIONS.items() if not targets}

# Stock goes back on the shelf only if the parcel never left the warehouse
RESTOCKABLE_STATES = {OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PROCESSING}

STATUS_TITLES = {
    OrderStatus.PENDING: "Order Placed",
    OrderStatus.CONFIRMED: "Order Confirmed",
    OrderStatus.PROCESSING: "Order Processing",
    OrderStatus.SHIPPED: "Order Shipped",
    OrderStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    OrderStatus.DELIVERED: "Order Delivered",
    OrderStatus.CANCELLED: "Order Cancelled",
    OrderStatus.RETURNED: "Order Returned",
    OrderStatus.REFUNDED: "Order Refunded",
}

# First entry into these states is stamped on the order
_STATUS_TIMESTAMPS = {
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@commerce.value_object(part_of="Order")
class ShippingAddress:
    """Where the order goes (or is billed to), captured at checkout."""

    full_name = String(required=True, max_length=255)
    phone = String(max_length=20)
    line1 = String(required=True, max_length=255)
    line2 = String(max_length=255)
    landmark = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=10)
    country = String(max_length=100, default="India")


@commerce.value_object(part_of="Order")
class OrderPricing:
    """Money breakdown locked at checkout."""

    subtotal = Float(required=True, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    coupon_code = String(max_length=50)
    shipping_charge = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    grand_total = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="INR")

    @invariant.post
    def grand_total_adds_up(self):
        expected = self.subtotal - (self.discount or 0) + (self.shipping_charge or 0) + (self.tax or 0)
        if abs(expected - self.grand_total) > 0.005:
            raise ValidationError({"grand_total": ["Grand total must equal subtotal - discount + shipping + tax"]})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@commerce.entity(part_of="Order")
class OrderItem:
    """A purchased line, copied from the catalog at checkout time."""

    item_id = Identifier(required=True)
    variant_id = Identifier()
    name = String(required=True, max_length=255)
    sku = String(max_length=50)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    line_total = Float(required=True, min_value=0.0)


@commerce.entity(part_of="Order")
class OrderStatusEvent:
    """One entry in the order's customer-visible timeline."""

    sequence = Integer(required=True, min_value=1)
    status = String(choices=OrderStatus, required=True)
    previous_status = String(choices=OrderStatus)
    title = String(required=True, max_length=255)
    description = String(max_length=1000)
    location = String(max_length=255)
    forced = Boolean(default=False)
    actor = String(max_length=100)
    occurred_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@commerce.aggregate
class Order:
    order_number = String(required=True, max_length=30, unique=True)
    customer_id = Identifier()
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_method = String(choices=PaymentMethod, required=True)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    items = HasMany(OrderItem)
    timeline = HasMany(OrderStatusEvent)
    shipping_address = ValueObject(ShippingAddress, required=True)
    billing_address = ValueObject(ShippingAddress)
    pricing = ValueObject(OrderPricing, required=True)
    payment_intent_id = String(max_length=255)
    settlement_id = String(max_length=255)
    customer_notes = Text()
    admin_notes = Text()
    awb_number = String(max_length=100)
    courier_name = String(max_length=100)
    tracking_url = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()
    paid_at = DateTime()
    shipped_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        customer_id,
        lines,
        shipping_address,
        pricing,
        payment_method,
        billing_address=None,
        customer_notes=None,
    ):
        """Create a PENDING order from priced lines and a price snapshot.

        Args:
            lines: dicts with item_id, variant_id, name, sku, unit_price,
                   quantity, line_total.
            shipping_address / billing_address: address dicts.
            pricing: dict with subtotal, discount, coupon_code,
                     shipping_charge, tax, grand_total, currency.
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})

        method = PaymentMethod(payment_method)
        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            customer_id=customer_id,
            payment_method=method.value,
            payment_status=(
                PaymentStatus.PENDING_COD.value if method == PaymentMethod.COD else PaymentStatus.PENDING.value
            ),
            items=[OrderItem(**line) for line in lines],
            shipping_address=ShippingAddress(**shipping_address),
            billing_address=ShippingAddress(**(billing_address or shipping_address)),
            pricing=OrderPricing(**pricing),
            customer_notes=customer_notes,
            created_at=now,
            updated_at=now,
        )
        order._append_timeline(
            OrderStatus.PENDING,
            title=STATUS_TITLES[OrderStatus.PENDING],
            description="Your order has been placed successfully",
            actor="Customer",
            occurred_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                customer_id=customer_id,
                payment_method=method.value,
                item_count=sum(line["quantity"] for line in lines),
                grand_total=order.pricing.grand_total,
                currency=order.pricing.currency,
                coupon_code=order.pricing.coupon_code,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Timeline
    # -------------------------------------------------------------------
    def _append_timeline(
        self,
        status,
        title,
        previous_status=None,
        description=None,
        location=None,
        forced=False,
        actor=None,
        occurred_at=None,
    ):
        self.add_timeline(
            OrderStatusEvent(
                sequence=len(self.timeline) + 1,
                status=status.value,
                previous_status=previous_status.value if previous_status else None,
                title=title,
                description=description,
                location=location,
                forced=forced,
                actor=actor,
                occurred_at=occurred_at or datetime.now(UTC),
            )
        )

    def history(self):
        """Timeline entries, oldest first."""
        return sorted(self.timeline, key=lambda entry: entry.sequence)

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def can_transition_to(self, target) -> bool:
        return OrderStatus(target) in ALLOWED_TRANSITIONS[OrderStatus(self.status)]

    def transition_to(self, target, title=None, description=None, location=None, forced=False, actor=None):
        """Move to ``target`` and record it on the timeline.

        Returns False when the order is already in ``target``. ``forced``
        lets an operator skip steps on the main path, but nothing leaves a
        terminal state.
        """
        try:
            target = OrderStatus(target)
        except ValueError as exc:
            raise ValidationError({"status": [f"Unknown order status: {target}"]}) from exc

        current = OrderStatus(self.status)
        if target == current:
            return False
        if current in TERMINAL_STATES or (not forced and target not in ALLOWED_TRANSITIONS[current]):
            raise InvalidTransition(str(self.id), current.value, target.value)

        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        stamp = _STATUS_TIMESTAMPS.get(target)
        if stamp and getattr(self, stamp) is None:
            setattr(self, stamp, now)
        if target == OrderStatus.REFUNDED and self.payment_status == PaymentStatus.PAID.value:
            self.payment_status = PaymentStatus.REFUNDED.value

        self._append_timeline(
            target,
            title=title or STATUS_TITLES[target],
            previous_status=current,
            description=description,
            location=location,
            forced=forced,
            actor=actor,
            occurred_at=now,
        )
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=current.value,
                new_status=target.value,
                forced=forced,
                actor=actor,
                changed_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def confirm_cash_on_delivery(self):
        if self.payment_method != PaymentMethod.COD.value:
            raise ValidationError({"payment_method": ["Only cash-on-delivery orders are confirmed without payment"]})
        return self.transition_to(
            OrderStatus.CONFIRMED,
            description="Your COD order has been confirmed",
            actor="System",
        )

    def assert_awaiting_online_payment(self):
        if self.payment_method != PaymentMethod.ONLINE.value:
            raise ValidationError({"payment_method": ["Cash-on-delivery orders do not take online payment"]})
        if self.status != OrderStatus.PENDING.value:
            raise ValidationError({"status": [f"Order is {self.status}, only pending orders take payment"]})
        if self.payment_status == PaymentStatus.PAID.value:
            raise ValidationError({"payment_status": ["Order is already paid"]})

    def attach_payment_intent(self, intent_id):
        self.assert_awaiting_online_payment()
        self.payment_intent_id = intent_id
        self.payment_status = PaymentStatus.PENDING.value
        self.updated_at = datetime.now(UTC)

    def record_payment_failure(self):
        if self.payment_status == PaymentStatus.PAID.value:
            raise ValidationError({"payment_status": ["Order is already paid"]})
        self.payment_status = PaymentStatus.FAILED.value
        self.updated_at = datetime.now(UTC)

    def record_payment(self, settlement_id, paid_at):
        """Record a verified payment and confirm the order if it is still PENDING."""
        self.payment_status = PaymentStatus.PAID.value
        self.settlement_id = settlement_id
        self.paid_at = paid_at
        self.updated_at = paid_at

        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                order_number=self.order_number,
                settlement_id=settlement_id,
                amount=self.pricing.grand_total,
                currency=self.pricing.currency,
                paid_at=paid_at,
            )
        )

        if self.status != OrderStatus.PENDING.value:
            return False
        return self.transition_to(
            OrderStatus.CONFIRMED,
            title="Payment Successful",
            description=f"Payment received ({settlement_id})",
            actor="Payment Gateway",
        )

    # -------------------------------------------------------------------
    # Fulfilment details
    # -------------------------------------------------------------------
    def update_courier(self, awb_number=None, courier_name=None, tracking_url=None):
        for field_name, value in (
            ("awb_number", awb_number),
            ("courier_name", courier_name),
            ("tracking_url", tracking_url),
        ):
            if value is not None:
                setattr(self, field_name, value)
        self.updated_at = datetime.now(UTC)

    def set_admin_notes(self, notes):
        self.admin_notes = notes
        self.updated_at = datetime.now(UTC)
