"""Rounding helpers for rupee amounts."""

from decimal import ROUND_HALF_UP, Decimal

_PAISE = Decimal("0.01")


def to_decimal(amount) -> Decimal:
    return Decimal(str(amount or 0))


def round_money(amount) -> float:
    """Round half-up to two decimal places and return a float."""
    return float(to_decimal(amount).quantize(_PAISE, rounding=ROUND_HALF_UP))


def to_minor_units(amount) -> int:
    """Convert rupees to paise, the unit gateways charge in."""
    return int((to_decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
