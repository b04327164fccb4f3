"""Message catalogs."""
from .localizer import CatalogLocalizer, describe_error

__all__ = ["CatalogLocalizer", "describe_error"]
