"""Price resolver — re-prices a cart from the live catalog.

Client-supplied prices are never trusted: every line is looked up again and
checked for existence, publication and stock before anything else runs.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import ValidationError

from commerce.catalog import get_catalog
from commerce.catalog.port import CatalogPort
from commerce.errors import ItemUnavailable, UnavailableReason
from commerce.pricing.money import round_money

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CartLine:
    """What the shopper asked for: an item, optional variant and quantity."""

    item_id: str
    quantity: int
    variant_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        return cls(
            item_id=str(data["item_id"]),
            quantity=int(data.get("quantity", 1)),
            variant_id=data.get("variant_id"),
        )


@dataclass(frozen=True)
class PricedLine:
    item_id: str
    variant_id: str | None
    name: str
    sku: str | None
    unit_price: float
    quantity: int
    weight_kg: float | None = None

    @property
    def line_total(self) -> float:
        return round_money(self.unit_price * self.quantity)

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "variant_id": self.variant_id,
            "name": self.name,
            "sku": self.sku,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "line_total": self.line_total,
        }


@dataclass(frozen=True)
class PricedCart:
    lines: tuple[PricedLine, ...]

    @property
    def subtotal(self) -> float:
        return round_money(sum(line.line_total for line in self.lines))

    @property
    def item_ids(self) -> set[str]:
        return {line.item_id for line in self.lines}

    @property
    def total_weight_kg(self) -> float:
        """Sum of known line weights; 0.0 when no item declares one."""
        return round(sum((line.weight_kg or 0.0) * line.quantity for line in self.lines), 3)

    def subtotal_for(self, item_ids) -> float:
        """Subtotal of the lines whose item is in ``item_ids``."""
        wanted = {str(i) for i in item_ids}
        return round_money(sum(line.line_total for line in self.lines if line.item_id in wanted))


def _merge_lines(lines) -> list[CartLine]:
    merged: dict[tuple[str, str | None], int] = {}
    for line in lines:
        if line.quantity < 1:
            raise ValidationError({"quantity": [f"Quantity for item {line.item_id} must be at least 1"]})
        key = (line.item_id, line.variant_id)
        merged[key] = merged.get(key, 0) + line.quantity
    return [CartLine(item_id=item_id, variant_id=variant_id, quantity=qty) for (item_id, variant_id), qty in merged.items()]


def resolve_cart(lines, catalog: CatalogPort | None = None) -> PricedCart:
    """Price every cart line from the catalog or raise ``ItemUnavailable``.

    Repeated lines for the same item and variant are merged so the stock
    check sees the full requested quantity.
    """
    if not lines:
        raise ValidationError({"items": ["Cart is empty"]})

    catalog = catalog or get_catalog()
    priced = []
    for line in _merge_lines(lines):
        quote = catalog.get_item_price(line.item_id, line.variant_id)
        if quote is None:
            raise ItemUnavailable(line.item_id, UnavailableReason.NOT_FOUND, variant_id=line.variant_id)
        if not quote.is_published:
            raise ItemUnavailable(line.item_id, UnavailableReason.UNPUBLISHED, variant_id=line.variant_id)
        if quote.available_stock < line.quantity:
            raise ItemUnavailable(
                line.item_id,
                UnavailableReason.INSUFFICIENT_STOCK,
                variant_id=line.variant_id,
                requested=line.quantity,
                available=quote.available_stock,
            )

        priced.append(
            PricedLine(
                item_id=quote.item_id,
                variant_id=line.variant_id,
                name=quote.name,
                sku=quote.sku,
                unit_price=quote.unit_price,
                quantity=line.quantity,
                weight_kg=quote.weight_kg,
            )
        )

    cart = PricedCart(lines=tuple(priced))
    logger.debug("cart_resolved", line_count=len(priced), subtotal=cart.subtotal)
    return cart
