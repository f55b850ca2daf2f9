"""Courier rate factory.

SHIPPING_RATES selects the adapter:
- "table" (default): WeightTierRates
"""

import os

from commerce.shipping.port import CourierRates

_current_rates: CourierRates | None = None


def _build_rates() -> CourierRates:
    choice = os.getenv("SHIPPING_RATES", "table").lower()
    if choice == "table":
        from commerce.shipping.rate_table import WeightTierRates

        blocked = [p.strip() for p in os.getenv("UNSERVICEABLE_POSTAL_PREFIXES", "").split(",") if p.strip()]
        return WeightTierRates(unserviceable_prefixes=blocked)
    raise ValueError(f"Unknown SHIPPING_RATES adapter: {choice}")


def get_courier_rates() -> CourierRates:
    global _current_rates
    if _current_rates is None:
        _current_rates = _build_rates()
    return _current_rates


def set_courier_rates(rates: CourierRates) -> None:
    """Override the active courier rates (useful for tests)."""
    global _current_rates
    _current_rates = rates


def reset_courier_rates() -> None:
    global _current_rates
    _current_rates = None
