"""CatalogItem aggregate — sellable products and prebuilt bundles.

Holds the live price and stock the checkout re-reads on every order. Bundles
(prebuilt PCs, kits) are priced and stocked as a single item. Items with
variants carry price and stock per variant instead of on the item itself.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Integer, String

from commerce.domain import commerce
from commerce.errors import ItemUnavailable, UnavailableReason


class ItemKind(Enum):
    PRODUCT = "Product"
    BUNDLE = "Bundle"


@commerce.entity(part_of="CatalogItem")
class ItemVariant:
    name = String(required=True, max_length=255)
    sku = String(max_length=50)
    price = Float(required=True, min_value=0.0)
    stock_quantity = Integer(default=0, min_value=0)


@commerce.aggregate
class CatalogItem:
    name = String(required=True, max_length=255)
    sku = String(max_length=50)
    kind = String(choices=ItemKind, default=ItemKind.PRODUCT.value)
    price = Float(required=True, min_value=0.0)
    stock_quantity = Integer(default=0, min_value=0)
    weight_kg = Float(min_value=0.0)
    is_published = Boolean(default=True)
    variants = HasMany(ItemVariant)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        name,
        price,
        stock_quantity=0,
        sku=None,
        kind=ItemKind.PRODUCT.value,
        weight_kg=None,
        is_published=True,
    ):
        now = datetime.now(UTC)
        return cls(
            name=name,
            sku=sku,
            kind=kind,
            price=price,
            stock_quantity=stock_quantity,
            weight_kg=weight_kg,
            is_published=is_published,
            created_at=now,
            updated_at=now,
        )

    def add_variant(self, name, price, stock_quantity=0, sku=None):
        """Add a variant and return its id."""
        variant = ItemVariant(name=name, sku=sku, price=price, stock_quantity=stock_quantity)
        self.add_variants(variant)
        self.updated_at = datetime.now(UTC)
        return str(variant.id)

    def find_variant(self, variant_id):
        return next((v for v in self.variants if str(v.id) == str(variant_id)), None)

    def _stock_holder(self, variant_id):
        if variant_id is None:
            return self

        variant = self.find_variant(variant_id)
        if variant is None:
            raise ItemUnavailable(str(self.id), UnavailableReason.NOT_FOUND, variant_id=variant_id)
        return variant

    def quote(self, variant_id=None):
        """Return ``(unit_price, available_stock)`` for the item or one of its variants."""
        holder = self._stock_holder(variant_id)
        return holder.price, holder.stock_quantity

    def take_stock(self, quantity, variant_id=None):
        """Decrement stock for a committed order line."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if not self.is_published:
            raise ItemUnavailable(str(self.id), UnavailableReason.UNPUBLISHED, variant_id=variant_id)

        holder = self._stock_holder(variant_id)
        if holder.stock_quantity < quantity:
            raise ItemUnavailable(
                str(self.id),
                UnavailableReason.INSUFFICIENT_STOCK,
                variant_id=variant_id,
                requested=quantity,
                available=holder.stock_quantity,
            )

        holder.stock_quantity -= quantity
        self.updated_at = datetime.now(UTC)

    def return_stock(self, quantity, variant_id=None):
        """Put stock back, e.g. when an unshipped order is cancelled."""
        holder = self._stock_holder(variant_id)
        holder.stock_quantity += quantity
        self.updated_at = datetime.now(UTC)

    def reprice(self, price, variant_id=None):
        holder = self._stock_holder(variant_id)
        holder.price = price
        self.updated_at = datetime.now(UTC)

    def unpublish(self):
        self.is_published = False
        self.updated_at = datetime.now(UTC)
