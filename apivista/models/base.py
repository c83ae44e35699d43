"""Base models for catalog entities."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CatalogModel(BaseModel):
    """Common configuration for all catalog models.

    Fields are snake_case in Python and camelCase when serialized
    (``shortCode``, ``createdAt``). Input accepts either spelling.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def to_dict(self) -> dict[str, Any]:
        """Dump to a JSON-compatible dict using camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")


class Record(CatalogModel):
    """Identifier and timestamps assigned by the store, never by callers."""

    id: str = Field(..., title="ID")
    created_at: datetime = Field(..., title="Created at")
    updated_at: datetime = Field(..., title="Updated at")


def field_aliases(model: type[BaseModel]) -> dict[str, str]:
    """Map every accepted input key (name or alias) to its field name."""
    mapping: dict[str, str] = {}
    for name, info in model.model_fields.items():
        mapping[name] = name
        if info.alias:
            mapping[info.alias] = name
    return mapping


def alias_of(model: type[BaseModel], name: str) -> str:
    """Return the serialized key for a field name."""
    info = model.model_fields.get(name)
    if info is not None and info.alias:
        return info.alias
    return name
