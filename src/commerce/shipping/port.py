"""Courier rate port (abstract interface).

Adapters quote a base charge for a parcel of a given weight between the
pickup and destination postal codes. They raise ``ShippingUnserviceable``
when no courier covers the destination.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class CourierQuote:
    courier_name: str
    charge: float
    estimated_days: str


class CourierRates(ABC):
    """Abstract courier rate interface."""

    @abstractmethod
    def quote(
        self,
        pickup_postal_code: str,
        destination_postal_code: str,
        weight_kg: float,
        cash_on_delivery: bool,
    ) -> CourierQuote:
        """Return the base delivery charge for a parcel."""
        ...
