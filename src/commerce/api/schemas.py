"""Pydantic request/response schemas for the commerce API.

External contracts, kept separate from the internal Protean commands.
"""

from typing import Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    full_name: str
    phone: str | None = None
    line1: str
    line2: str | None = None
    landmark: str | None = None
    city: str
    state: str
    postal_code: str
    country: str = "India"


class CartLineSchema(BaseModel):
    item_id: str
    variant_id: str | None = None
    quantity: int = Field(ge=1, default=1)


class PricingSchema(BaseModel):
    subtotal: float
    discount: float
    coupon_code: str | None = None
    shipping_charge: float
    tax: float
    grand_total: float
    currency: str


class PaymentIntentSchema(BaseModel):
    order_id: str
    payment_id: str
    intent_id: str
    amount: float
    amount_minor: int
    currency: str
    key_id: str | None = None


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutRequestBody(BaseModel):
    customer_id: str | None = None
    items: list[CartLineSchema] = Field(min_length=1)
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    payment_method: Literal["COD", "Online"]
    coupon_code: str | None = None
    customer_notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "items": [{"item_id": "item-001", "quantity": 1}],
                    "shipping_address": {
                        "full_name": "Asha Rao",
                        "phone": "9876543210",
                        "line1": "12 MG Road",
                        "city": "Bengaluru",
                        "state": "Karnataka",
                        "postal_code": "560001",
                    },
                    "payment_method": "Online",
                    "coupon_code": "SAVE20",
                }
            ]
        }
    }


class CheckoutResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    payment_method: str
    payment_status: str
    pricing: PricingSchema
    estimated_delivery_days: str
    payment_intent: PaymentIntentSchema | None = None


class CouponPreviewRequest(BaseModel):
    code: str
    customer_id: str | None = None
    items: list[CartLineSchema] = Field(min_length=1)


class CouponPreviewResponse(BaseModel):
    code: str
    valid: bool
    discount: float
    eligible_subtotal: float
    reason: str | None = None


class ShippingQuoteRequest(BaseModel):
    postal_code: str
    payment_method: Literal["COD", "Online"]
    cart_total: float = Field(ge=0)
    weight_kg: float | None = Field(default=None, ge=0)


class ShippingQuoteResponse(BaseModel):
    postal_code: str | None
    charge: float
    base_charge: float
    cod_charge: float
    is_free_shipping: bool
    courier_name: str
    estimated_days: str


class VerifyPaymentRequest(BaseModel):
    intent_id: str
    settlement_id: str
    signature: str


class VerifyPaymentResponse(BaseModel):
    order_id: str
    order_status: str
    payment_status: str
    already_settled: bool


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class ChangeOrderStatusRequest(BaseModel):
    status: str | None = None
    title: str | None = None
    description: str | None = None
    location: str | None = None
    forced: bool = False
    actor: str = "Admin"
    awb_number: str | None = None
    courier_name: str | None = None
    tracking_url: str | None = None
    admin_notes: str | None = None


class StatusChangeResponse(BaseModel):
    order_id: str
    status: str
    changed: bool


class OrderItemSchema(BaseModel):
    item_id: str
    variant_id: str | None = None
    name: str
    sku: str | None = None
    unit_price: float
    quantity: int
    line_total: float


class TimelineEntrySchema(BaseModel):
    status: str
    previous_status: str | None = None
    title: str
    description: str | None = None
    location: str | None = None
    forced: bool = False
    actor: str | None = None
    occurred_at: str


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    customer_id: str | None = None
    status: str
    payment_method: str
    payment_status: str
    items: list[OrderItemSchema]
    shipping_address: AddressSchema
    pricing: PricingSchema
    timeline: list[TimelineEntrySchema]
    awb_number: str | None = None
    courier_name: str | None = None
    tracking_url: str | None = None
    customer_notes: str | None = None
