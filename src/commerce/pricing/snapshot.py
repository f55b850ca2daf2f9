"""Price snapshot — the frozen money breakdown stored on an order.

Tax is charged on the discounted subtotal; shipping is not taxed::

    tax         = round(( subtotal - discount ) * tax_rate, 2)
    grand_total = subtotal - discount + shipping_charge + tax
"""

import os
from dataclasses import asdict, dataclass

from commerce.pricing.money import round_money, to_decimal

DEFAULT_TAX_RATE = 0.18
DEFAULT_CURRENCY = "INR"


def configured_tax_rate() -> float:
    return float(os.getenv("TAX_RATE", DEFAULT_TAX_RATE))


def configured_currency() -> str:
    return os.getenv("CURRENCY", DEFAULT_CURRENCY)


@dataclass(frozen=True)
class PriceSnapshot:
    subtotal: float
    discount: float
    shipping_charge: float
    tax: float
    grand_total: float
    currency: str
    coupon_code: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def build_price_snapshot(
    subtotal: float,
    discount: float = 0.0,
    shipping_charge: float = 0.0,
    coupon_code: str | None = None,
    tax_rate: float | None = None,
    currency: str | None = None,
) -> PriceSnapshot:
    rate = configured_tax_rate() if tax_rate is None else tax_rate

    subtotal_d = to_decimal(round_money(subtotal))
    discount_d = min(to_decimal(round_money(discount)), subtotal_d)
    shipping_d = to_decimal(round_money(shipping_charge))
    tax_d = to_decimal(round_money((subtotal_d - discount_d) * to_decimal(rate)))

    return PriceSnapshot(
        subtotal=float(subtotal_d),
        discount=float(discount_d),
        shipping_charge=float(shipping_d),
        tax=float(tax_d),
        grand_total=round_money(subtotal_d - discount_d + shipping_d + tax_d),
        currency=currency or configured_currency(),
        coupon_code=coupon_code,
    )
