"""Catalog lookup port.

The price resolver reads live prices and stock through this interface, so
it can be pointed at the domain repository or at an external catalog
service without touching pricing code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ItemQuote:
    """Live price and stock for one purchasable item (or one of its variants)."""

    item_id: str
    variant_id: str | None
    name: str
    sku: str | None
    unit_price: float
    available_stock: int
    is_published: bool
    weight_kg: float | None = None


class CatalogPort(ABC):
    """Abstract catalog interface."""

    @abstractmethod
    def get_item_price(self, item_id: str, variant_id: str | None = None) -> ItemQuote | None:
        """Return the current quote, or None when the item or variant does not exist."""
        ...
