"""Shipping calculator.

Rules, applied to the discounted subtotal:

    1. prepaid orders at or above the free-shipping threshold ship free
    2. otherwise the courier's base charge for the parcel weight applies
    3. cash-on-delivery adds a fixed surcharge

A bad postal code or an unserviceable destination never blocks checkout:
the calculator logs a warning and falls back to the default charge.
"""

import os
import re
from dataclasses import asdict, dataclass

import structlog

from commerce.errors import InvalidAddress, ShippingUnserviceable
from commerce.payment.payment import PaymentMethod
from commerce.pricing.money import round_money
from commerce.shipping import get_courier_rates
from commerce.shipping.port import CourierRates

logger = structlog.get_logger(__name__)

POSTAL_CODE_PATTERN = re.compile(r"^[1-9][0-9]{5}$")
DEFAULT_SHIPMENT_WEIGHT_KG = 2.0
DEFAULT_COURIER_NAME = "Standard Delivery"
DEFAULT_ESTIMATED_DAYS = "5-7"


def _setting(name: str, default: float) -> float:
    return float(os.getenv(name, default))


def free_shipping_threshold() -> float:
    return _setting("FREE_SHIPPING_THRESHOLD", 10000)


def default_shipping_charge() -> float:
    return _setting("DEFAULT_SHIPPING_CHARGE", 99)


def cod_surcharge() -> float:
    return _setting("COD_SURCHARGE", 50)


def pickup_postal_code() -> str:
    return os.getenv("PICKUP_POSTAL_CODE", "400001")


@dataclass(frozen=True)
class ShippingQuote:
    postal_code: str | None
    weight_kg: float
    payment_method: str
    base_charge: float
    cod_charge: float
    charge: float
    is_free_shipping: bool
    courier_name: str
    estimated_days: str
    used_fallback: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


def validate_postal_code(postal_code) -> str:
    code = (postal_code or "").strip()
    if not POSTAL_CODE_PATTERN.match(code):
        raise InvalidAddress(postal_code)
    return code


def calculate_shipping(
    postal_code,
    weight_kg,
    payment_method,
    discounted_subtotal,
    rates: CourierRates | None = None,
) -> ShippingQuote:
    method = PaymentMethod(payment_method)
    is_cod = method == PaymentMethod.COD
    weight = weight_kg if weight_kg and weight_kg > 0 else DEFAULT_SHIPMENT_WEIGHT_KG

    if not is_cod and discounted_subtotal >= free_shipping_threshold():
        return ShippingQuote(
            postal_code=postal_code,
            weight_kg=weight,
            payment_method=method.value,
            base_charge=0.0,
            cod_charge=0.0,
            charge=0.0,
            is_free_shipping=True,
            courier_name=DEFAULT_COURIER_NAME,
            estimated_days=DEFAULT_ESTIMATED_DAYS,
        )

    used_fallback = False
    try:
        destination = validate_postal_code(postal_code)
        courier = (rates or get_courier_rates()).quote(pickup_postal_code(), destination, weight, is_cod)
        base_charge = courier.charge
        courier_name, estimated_days = courier.courier_name, courier.estimated_days
    except (InvalidAddress, ShippingUnserviceable) as exc:
        logger.warning(
            "shipping_fallback_charge",
            postal_code=postal_code,
            reason=exc.code,
            charge=default_shipping_charge(),
        )
        used_fallback = True
        base_charge = default_shipping_charge()
        courier_name, estimated_days = DEFAULT_COURIER_NAME, DEFAULT_ESTIMATED_DAYS

    cod_charge = cod_surcharge() if is_cod else 0.0
    return ShippingQuote(
        postal_code=postal_code,
        weight_kg=weight,
        payment_method=method.value,
        base_charge=round_money(base_charge),
        cod_charge=round_money(cod_charge),
        charge=round_money(base_charge + cod_charge),
        is_free_shipping=False,
        courier_name=courier_name,
        estimated_days=estimated_days,
        used_fallback=used_fallback,
    )
