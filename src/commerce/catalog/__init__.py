"""Catalog lookup factory.

get_catalog() / set_catalog() swap the catalog the price resolver reads:
- RepositoryCatalog (default) reads CatalogItem aggregates
- tests may install an in-memory CatalogPort
"""

from commerce.catalog.port import CatalogPort

_current_catalog: CatalogPort | None = None


def get_catalog() -> CatalogPort:
    global _current_catalog
    if _current_catalog is None:
        from commerce.catalog.repository_adapter import RepositoryCatalog

        _current_catalog = RepositoryCatalog()
    return _current_catalog


def set_catalog(catalog: CatalogPort) -> None:
    """Override the active catalog (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    global _current_catalog
    _current_catalog = None
