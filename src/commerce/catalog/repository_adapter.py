"""Catalog adapter backed by the CatalogItem repository."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from commerce.catalog.item import CatalogItem
from commerce.catalog.port import CatalogPort, ItemQuote


class RepositoryCatalog(CatalogPort):
    def get_item_price(self, item_id: str, variant_id: str | None = None) -> ItemQuote | None:
        try:
            item = current_domain.repository_for(CatalogItem).get(item_id)
        except ObjectNotFoundError:
            return None

        if variant_id is None:
            name, sku, price, stock = item.name, item.sku, item.price, item.stock_quantity
        else:
            variant = item.find_variant(variant_id)
            if variant is None:
                return None
            name = f"{item.name} ({variant.name})"
            sku, price, stock = variant.sku or item.sku, variant.price, variant.stock_quantity

        return ItemQuote(
            item_id=str(item.id),
            variant_id=variant_id,
            name=name,
            sku=sku,
            unit_price=price,
            available_stock=stock,
            is_published=item.is_published,
            weight_kg=item.weight_kg,
        )
