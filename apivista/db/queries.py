"""Predefined SQL queries for catalog rows."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Sequence

import duckdb

from ..models import (
    Api,
    Category,
    Endpoint,
    Environment,
    Operation,
    Parameter,
    Provider,
    Record,
    ResponseSchema,
    Service,
)


@dataclass(frozen=True)
class EntityTable:
    """A table holding one entity type."""

    name: str
    label: str
    model: type[Record]
    parent_column: str | None = None
    json_columns: frozenset[str] = field(default_factory=frozenset)
    order_by: str = "seq"

    @property
    def columns(self) -> list[str]:
        return list(self.model.model_fields)


@dataclass(frozen=True)
class JoinTable:
    """A category join table: one row per (owner, category) pair."""

    name: str
    owner_column: str


CATEGORIES = EntityTable("categories", "Category", Category, order_by="name, seq")
PROVIDERS = EntityTable(
    "providers", "Provider", Provider, json_columns=frozenset({"contact_info"})
)
ENVIRONMENTS = EntityTable("environments", "Environment", Environment, "provider_id")
SERVICES = EntityTable("services", "Service", Service, "provider_id")
APIS = EntityTable("apis", "API", Api, "service_id")
ENDPOINTS = EntityTable("endpoints", "Endpoint", Endpoint, "api_id")
OPERATIONS = EntityTable("operations", "Operation", Operation, "endpoint_id")
PARAMETERS = EntityTable("parameters", "Parameter", Parameter, "operation_id")
RESPONSE_SCHEMAS = EntityTable(
    "response_schemas",
    "Response schema",
    ResponseSchema,
    "operation_id",
    json_columns=frozenset({"schema_doc", "example"}),
)

PROVIDER_CATEGORIES = JoinTable("provider_categories", "provider_id")
API_CATEGORIES = JoinTable("api_categories", "api_id")


def _quote(column: str) -> str:
    return f'"{column}"'


def _placeholders(values: Sequence[Any]) -> str:
    return ", ".join("?" * len(values))


class CatalogQueries:
    """Row-level SQL over the catalog tables.

    Nothing here enforces relations; callers decide what to cascade.
    """

    def __init__(self, conn: duckdb.DuckDBPyConnection):
        self.conn = conn

    # ========== Rows ==========

    def insert(self, table: EntityTable, row: Record) -> None:
        """Insert a flat row, drawing its ``seq`` from the shared sequence."""
        data = self._encode(table, row.model_dump())
        columns = list(data)
        self.conn.execute(
            f"""
            INSERT INTO {table.name} (seq, {", ".join(map(_quote, columns))})
            VALUES (nextval('catalog_seq'), {_placeholders(columns)})
            """,
            [data[c] for c in columns],
        )

    def update(self, table: EntityTable, entity_id: str, values: dict[str, Any]) -> None:
        """Overwrite the given columns of one row."""
        if not values:
            return
        data = self._encode(table, values)
        assignments = ", ".join(f"{_quote(c)} = ?" for c in data)
        self.conn.execute(
            f"UPDATE {table.name} SET {assignments} WHERE id = ?",
            [*data.values(), entity_id],
        )

    def get(self, table: EntityTable, entity_id: str) -> Record | None:
        """Get a row by ID."""
        result = self.conn.execute(
            f"SELECT {self._select_list(table)} FROM {table.name} WHERE id = ?",
            [entity_id],
        ).fetchone()
        if result:
            return self._to_row(table, result)
        return None

    def exists(self, table: EntityTable, entity_id: str) -> bool:
        result = self.conn.execute(
            f"SELECT 1 FROM {table.name} WHERE id = ?", [entity_id]
        ).fetchone()
        return result is not None

    def find(
        self,
        table: EntityTable,
        column: str | None = None,
        value: Any = None,
    ) -> list[Record]:
        """Get all rows, or those whose ``column`` equals ``value``."""
        sql = f"SELECT {self._select_list(table)} FROM {table.name}"
        params: list[Any] = []
        if column is not None:
            sql += f" WHERE {_quote(column)} = ?"
            params.append(value)
        sql += f" ORDER BY {table.order_by}"
        result = self.conn.execute(sql, params).fetchall()
        return self._to_rows(table, result)

    def find_in(
        self, table: EntityTable, column: str, values: Sequence[Any]
    ) -> list[Record]:
        """Get rows whose ``column`` is one of ``values``."""
        if not values:
            return []
        result = self.conn.execute(
            f"""
            SELECT {self._select_list(table)} FROM {table.name}
            WHERE {_quote(column)} IN ({_placeholders(values)})
            ORDER BY {table.order_by}
            """,
            list(values),
        ).fetchall()
        return self._to_rows(table, result)

    def ids_in(
        self, table: EntityTable, column: str, values: Sequence[Any]
    ) -> list[str]:
        """Get IDs of rows whose ``column`` is one of ``values``."""
        if not values:
            return []
        result = self.conn.execute(
            f"""
            SELECT id FROM {table.name}
            WHERE {_quote(column)} IN ({_placeholders(values)})
            ORDER BY seq
            """,
            list(values),
        ).fetchall()
        return [row[0] for row in result]

    def delete_in(self, table: EntityTable, column: str, values: Sequence[Any]) -> None:
        """Delete rows whose ``column`` is one of ``values``."""
        if not values:
            return
        self.conn.execute(
            f"DELETE FROM {table.name} WHERE {_quote(column)} IN ({_placeholders(values)})",
            list(values),
        )

    def value_taken(
        self,
        table: EntityTable,
        column: str,
        value: Any,
        exclude_id: str | None = None,
    ) -> bool:
        """Check whether another row already holds ``value`` in ``column``."""
        sql = f"SELECT 1 FROM {table.name} WHERE {_quote(column)} = ?"
        params: list[Any] = [value]
        if exclude_id is not None:
            sql += " AND id <> ?"
            params.append(exclude_id)
        return self.conn.execute(sql, params).fetchone() is not None

    def search(
        self, table: EntityTable, columns: Sequence[str], query: str
    ) -> list[Record]:
        """Case-insensitive substring match against any of ``columns``.

        ``query`` must already be lowercased. It is matched literally, so
        ``%`` and ``_`` carry no wildcard meaning.
        """
        conditions = " OR ".join(
            f"contains(lower(coalesce({_quote(c)}, '')), ?)" for c in columns
        )
        result = self.conn.execute(
            f"""
            SELECT {self._select_list(table)} FROM {table.name}
            WHERE {conditions}
            ORDER BY {table.order_by}
            """,
            [query] * len(columns),
        ).fetchall()
        return self._to_rows(table, result)

    def count(
        self,
        table: EntityTable,
        column: str | None = None,
        value: Any = None,
    ) -> int:
        sql = f"SELECT COUNT(*) FROM {table.name}"
        params: list[Any] = []
        if column is not None:
            sql += f" WHERE {_quote(column)} = ?"
            params.append(value)
        return self.conn.execute(sql, params).fetchone()[0]

    # ========== Category joins ==========

    def joined_category_ids(self, join: JoinTable, owner_id: str) -> list[str]:
        """Get category IDs tagged on an owner, in tagging order."""
        result = self.conn.execute(
            f"SELECT category_id FROM {join.name} WHERE {join.owner_column} = ? ORDER BY seq",
            [owner_id],
        ).fetchall()
        return [row[0] for row in result]

    def insert_joins(
        self, join: JoinTable, owner_id: str, category_ids: Sequence[str]
    ) -> None:
        for category_id in category_ids:
            self.conn.execute(
                f"""
                INSERT INTO {join.name} (id, seq, {join.owner_column}, category_id)
                VALUES (?, nextval('catalog_seq'), ?, ?)
                """,
                [uuid.uuid4().hex, owner_id, category_id],
            )

    def delete_joins(self, join: JoinTable, owner_ids: Sequence[str]) -> None:
        """Delete every join row of the given owners."""
        if not owner_ids:
            return
        self.conn.execute(
            f"DELETE FROM {join.name} WHERE {join.owner_column} IN ({_placeholders(owner_ids)})",
            list(owner_ids),
        )

    def delete_joins_for_category(self, join: JoinTable, category_id: str) -> None:
        self.conn.execute(
            f"DELETE FROM {join.name} WHERE category_id = ?", [category_id]
        )

    # ========== Conversion ==========

    def _select_list(self, table: EntityTable) -> str:
        return ", ".join(map(_quote, table.columns))

    def _encode(self, table: EntityTable, values: dict[str, Any]) -> dict[str, Any]:
        """Serialize JSON columns; everything else maps to DuckDB natively."""
        data = dict(values)
        for column in table.json_columns & data.keys():
            if data[column] is not None:
                data[column] = json.dumps(data[column])
        return data

    def _to_row(self, table: EntityTable, row: tuple) -> Record:
        data = dict(zip(table.columns, row))
        for column in table.json_columns:
            if isinstance(data.get(column), str):
                data[column] = json.loads(data[column])
        return table.model.model_validate(data)

    def _to_rows(self, table: EntityTable, rows: list[tuple]) -> list[Record]:
        return [self._to_row(table, row) for row in rows]
