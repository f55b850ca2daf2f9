"""FastAPI routes for the commerce API — checkout, payment callbacks and orders."""

import json

from fastapi import APIRouter
from protean.utils.globals import current_domain

from commerce.api.schemas import (
    AddressSchema,
    ChangeOrderStatusRequest,
    CheckoutRequestBody,
    CheckoutResponse,
    CouponPreviewRequest,
    CouponPreviewResponse,
    OrderItemSchema,
    OrderResponse,
    PaymentIntentSchema,
    PricingSchema,
    ShippingQuoteRequest,
    ShippingQuoteResponse,
    StatusChangeResponse,
    TimelineEntrySchema,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from commerce.checkout.pipeline import CheckoutRequest, place_order
from commerce.coupon.preview import PreviewCoupon
from commerce.order.lookup import find_order
from commerce.order.status import ChangeOrderStatus
from commerce.payment.intent import open_payment_intent
from commerce.payment.verification import verify_payment
from commerce.pricing.resolver import CartLine
from commerce.shipping.calculator import calculate_shipping


def _intent_schema(intent):
    if intent is None:
        return None
    return PaymentIntentSchema(
        order_id=intent.order_id,
        payment_id=intent.payment_id,
        intent_id=intent.intent_id,
        amount=intent.amount,
        amount_minor=intent.amount_minor,
        currency=intent.currency,
        key_id=intent.key_id,
    )


def _order_response(order) -> OrderResponse:
    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        customer_id=order.customer_id,
        status=order.status,
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        items=[
            OrderItemSchema(
                item_id=str(item.item_id),
                variant_id=item.variant_id,
                name=item.name,
                sku=item.sku,
                unit_price=item.unit_price,
                quantity=item.quantity,
                line_total=item.line_total,
            )
            for item in order.items
        ],
        shipping_address=AddressSchema(**order.shipping_address.to_dict()),
        pricing=PricingSchema(**order.pricing.to_dict()),
        timeline=[
            TimelineEntrySchema(
                status=entry.status,
                previous_status=entry.previous_status,
                title=entry.title,
                description=entry.description,
                location=entry.location,
                forced=entry.forced,
                actor=entry.actor,
                occurred_at=entry.occurred_at.isoformat(),
            )
            for entry in order.history()
        ],
        awb_number=order.awb_number,
        courier_name=order.courier_name,
        tracking_url=order.tracking_url,
        customer_notes=order.customer_notes,
    )


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutResponse)
async def checkout(body: CheckoutRequestBody) -> CheckoutResponse:
    result = place_order(
        CheckoutRequest(
            customer_id=body.customer_id,
            lines=[CartLine(item_id=line.item_id, variant_id=line.variant_id, quantity=line.quantity) for line in body.items],
            shipping_address=body.shipping_address.model_dump(),
            billing_address=body.billing_address.model_dump() if body.billing_address else None,
            payment_method=body.payment_method,
            coupon_code=body.coupon_code,
            customer_notes=body.customer_notes,
        )
    )
    return CheckoutResponse(
        order_id=result.order_id,
        order_number=result.order_number,
        status=result.status,
        payment_method=result.payment_method,
        payment_status=result.payment_status,
        pricing=PricingSchema(**result.pricing.to_dict()),
        estimated_delivery_days=result.shipping.estimated_days,
        payment_intent=_intent_schema(result.payment_intent),
    )


@checkout_router.post("/coupon", response_model=CouponPreviewResponse)
async def preview_coupon(body: CouponPreviewRequest) -> CouponPreviewResponse:
    command = PreviewCoupon(
        code=body.code,
        customer_id=body.customer_id,
        items=json.dumps([line.model_dump() for line in body.items]),
    )
    decision = current_domain.process(command, asynchronous=False)
    return CouponPreviewResponse(**decision.to_dict())


@checkout_router.post("/shipping", response_model=ShippingQuoteResponse)
async def quote_shipping(body: ShippingQuoteRequest) -> ShippingQuoteResponse:
    quote = calculate_shipping(body.postal_code, body.weight_kg, body.payment_method, body.cart_total)
    return ShippingQuoteResponse(
        postal_code=quote.postal_code,
        charge=quote.charge,
        base_charge=quote.base_charge,
        cod_charge=quote.cod_charge,
        is_free_shipping=quote.is_free_shipping,
        courier_name=quote.courier_name,
        estimated_days=quote.estimated_days,
    )


@checkout_router.post("/verify-payment", response_model=VerifyPaymentResponse)
async def verify_payment_callback(body: VerifyPaymentRequest) -> VerifyPaymentResponse:
    outcome = verify_payment(body.intent_id, body.settlement_id, body.signature)
    return VerifyPaymentResponse(
        order_id=outcome.order_id,
        order_status=outcome.order_status,
        payment_status=outcome.payment_status,
        already_settled=outcome.already_settled,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/{reference}", response_model=OrderResponse)
async def get_order(reference: str) -> OrderResponse:
    """Fetch an order by id or order number."""
    return _order_response(find_order(reference))


@order_router.post("/{order_id}/payment-intent", response_model=PaymentIntentSchema)
async def retry_payment_intent(order_id: str) -> PaymentIntentSchema:
    return _intent_schema(open_payment_intent(order_id))


@order_router.put("/{order_id}/status", response_model=StatusChangeResponse)
async def change_order_status(order_id: str, body: ChangeOrderStatusRequest) -> StatusChangeResponse:
    command = ChangeOrderStatus(order_id=order_id, **body.model_dump())
    changed = current_domain.process(command, asynchronous=False)
    order = find_order(order_id)
    return StatusChangeResponse(order_id=order_id, status=order.status, changed=changed)
