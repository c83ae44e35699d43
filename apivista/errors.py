"""Errors raised by the catalog store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class FieldError:
    """A single offending input field."""

    field: str
    message: str


class CatalogError(Exception):
    """Base exception for all catalog errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "CATALOG_ERROR"
        self.details = details or {}


class ValidationError(CatalogError):
    """Raised when input is malformed or missing required fields.

    The operation is never attempted; ``errors`` lists every offending field.
    """

    def __init__(self, entity_type: str, errors: list[FieldError]):
        fields = ", ".join(e.field for e in errors)
        super().__init__(
            message=f"Invalid {entity_type} data: {fields}",
            code="VALIDATION_ERROR",
            details={
                "entity_type": entity_type,
                "errors": [{"field": e.field, "message": e.message} for e in errors],
            },
        )
        self.entity_type = entity_type
        self.errors = errors

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]

    @classmethod
    def single(cls, entity_type: str, field: str, message: str) -> "ValidationError":
        return cls(entity_type, [FieldError(field, message)])


class NotFoundError(CatalogError):
    """Raised when an identifier does not name an existing entity."""

    def __init__(self, entity_type: str, entity_id: str):
        super().__init__(
            message=f"{entity_type} with id '{entity_id}' not found",
            code="NOT_FOUND",
            details={"entity_type": entity_type, "entity_id": str(entity_id)},
        )
        self.entity_type = entity_type
        self.entity_id = entity_id
