"""Catalog store module for apivista."""

from .catalog_store import CatalogStore

__all__ = ["CatalogStore"]
