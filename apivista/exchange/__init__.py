"""Catalog import and export."""

from .exporter import CatalogExporter, ExportFormat, ExportResult
from .seeder import CatalogSeeder, SAMPLE_CATALOG

__all__ = [
    "CatalogExporter",
    "CatalogSeeder",
    "ExportFormat",
    "ExportResult",
    "SAMPLE_CATALOG",
]
