"""apivista - a catalog of API providers, their services, APIs and operations."""

from .errors import CatalogError, FieldError, NotFoundError, ValidationError
from .store import CatalogStore

__version__ = "0.1.0"

__all__ = [
    "CatalogError",
    "CatalogStore",
    "FieldError",
    "NotFoundError",
    "ValidationError",
]
