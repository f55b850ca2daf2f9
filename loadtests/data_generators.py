"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the API's Pydantic request
schemas and the domain's validation rules (6-digit postal codes, known
payment methods, at least one cart line).

Catalog item ids come from LOADTEST_ITEM_IDS (comma-separated), as printed
by ``python src/manage.py seed-demo``.
"""

import hashlib
import hmac
import os
import random
import uuid

from faker import Faker

fake = Faker("en_IN")

GATEWAY_SECRET = os.getenv("FAKE_GATEWAY_SECRET", "test-secret")


def seeded_item_ids() -> list[str]:
    raw = os.getenv("LOADTEST_ITEM_IDS", "")
    return [item_id.strip() for item_id in raw.split(",") if item_id.strip()]


def customer_id() -> str:
    return f"cust-lt-{uuid.uuid4().hex[:8]}"


def postal_code() -> str:
    """6 digits, never starting with 0."""
    return f"{random.randint(1, 9)}{random.randint(0, 99999):05d}"


def shipping_address() -> dict:
    """Generate an AddressSchema payload."""
    return {
        "full_name": fake.name()[:255],
        "phone": f"9{random.randint(100000000, 999999999)}",
        "line1": fake.street_address()[:255],
        "line2": None,
        "landmark": None,
        "city": fake.city()[:100],
        "state": fake.state()[:100],
        "postal_code": postal_code(),
        "country": "India",
    }


def cart_lines(item_ids: list[str], max_lines: int = 2) -> list[dict]:
    chosen = random.sample(item_ids, k=min(len(item_ids), random.randint(1, max_lines)))
    return [{"item_id": item_id, "quantity": 1} for item_id in chosen]


def checkout_data(
    item_ids: list[str],
    payment_method: str | None = None,
    coupon_code: str | None = None,
    guest: bool = False,
) -> dict:
    """Generate a CheckoutRequestBody payload."""
    return {
        "customer_id": None if guest else customer_id(),
        "items": cart_lines(item_ids),
        "shipping_address": shipping_address(),
        "payment_method": payment_method or random.choice(["COD", "Online"]),
        "coupon_code": coupon_code,
        "customer_notes": fake.sentence() if random.random() < 0.2 else None,
    }


def coupon_preview_data(item_ids: list[str], code: str = "SAVE20") -> dict:
    return {"code": code, "customer_id": customer_id(), "items": cart_lines(item_ids)}


def shipping_quote_data() -> dict:
    return {
        "postal_code": postal_code(),
        "payment_method": random.choice(["COD", "Online"]),
        "cart_total": round(random.uniform(200, 20000), 2),
        "weight_kg": round(random.uniform(0.1, 15), 2),
    }


def payment_callback_data(intent_id: str) -> dict:
    """Generate a VerifyPaymentRequest signed the way the fake gateway signs."""
    settlement_id = f"pay_lt_{uuid.uuid4().hex[:14]}"
    signature = hmac.new(
        GATEWAY_SECRET.encode(),
        f"{intent_id}|{settlement_id}".encode(),
        hashlib.sha256,
    ).hexdigest()
    return {"intent_id": intent_id, "settlement_id": settlement_id, "signature": signature}


def shipment_update(status: str = "Shipped") -> dict:
    """Generate a ChangeOrderStatusRequest that also records courier details."""
    awb = f"AWB{random.randint(10**9, 10**10 - 1)}"
    return {
        "status": status,
        "awb_number": awb,
        "courier_name": random.choice(["Delhivery", "BlueDart", "Ekart", "XpressBees"]),
        "tracking_url": f"https://track.example.com/{awb}",
    }
