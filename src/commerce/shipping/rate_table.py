"""Weight-tier rate table adapter.

Prices parcels from a static table instead of calling a courier
aggregator. Suitable for development, tests and stores with flat-rate
agreements.
"""

from commerce.errors import ShippingUnserviceable
from commerce.shipping.port import CourierQuote, CourierRates

# (max weight in kg, charge)
DEFAULT_TIERS = (
    (0.5, 49.0),
    (2.0, 99.0),
    (5.0, 149.0),
    (10.0, 249.0),
)
PER_KG_ABOVE_TABLE = 25.0


class WeightTierRates(CourierRates):
    """Configurable weight-tier courier rates."""

    def __init__(
        self,
        tiers=DEFAULT_TIERS,
        per_kg_above_table: float = PER_KG_ABOVE_TABLE,
        unserviceable_prefixes=(),
        courier_name: str = "Standard Delivery",
        estimated_days: str = "5-7",
    ) -> None:
        self.tiers = tuple(sorted(tiers))
        self.per_kg_above_table = per_kg_above_table
        self.unserviceable_prefixes = tuple(unserviceable_prefixes)
        self.courier_name = courier_name
        self.estimated_days = estimated_days

    def quote(
        self,
        pickup_postal_code: str,
        destination_postal_code: str,
        weight_kg: float,
        cash_on_delivery: bool,
    ) -> CourierQuote:
        if destination_postal_code.startswith(self.unserviceable_prefixes):
            raise ShippingUnserviceable(destination_postal_code)

        return CourierQuote(
            courier_name=self.courier_name,
            charge=self._charge_for(weight_kg),
            estimated_days=self.estimated_days,
        )

    def _charge_for(self, weight_kg: float) -> float:
        for max_weight, charge in self.tiers:
            if weight_kg <= max_weight:
                return charge

        heaviest, top_charge = self.tiers[-1]
        extra_kg = -(-(weight_kg - heaviest) // 1)  # ceil
        return top_charge + extra_kg * self.per_kg_above_table
