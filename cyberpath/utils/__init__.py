"""CyberPath utilities."""

from .catalog_loader import Catalog, load_catalog, load_catalog_data, DEFAULT_CATALOG

__all__ = [
    "Catalog",
    "load_catalog",
    "load_catalog_data",
    "DEFAULT_CATALOG",
]
