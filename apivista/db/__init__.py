"""DuckDB data layer for the catalog."""

from .queries import CatalogQueries, EntityTable, JoinTable
from .relations import RelationAssembler
from .schema import create_schema, drop_schema, get_connection

__all__ = [
    "create_schema",
    "drop_schema",
    "get_connection",
    "CatalogQueries",
    "EntityTable",
    "JoinTable",
    "RelationAssembler",
]
