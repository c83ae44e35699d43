"""Operation, parameter and response schema models."""

from typing import Any, Literal

from pydantic import Field, field_validator

from .base import CatalogModel, Record

ParameterLocation = Literal["query", "path", "header", "body"]


class OperationBase(CatalogModel):
    """Fields accepted when creating or updating an operation."""

    endpoint_id: str = Field(..., min_length=1, title="Endpoint")
    method: str = Field(..., min_length=1, title="HTTP method")
    operation_id: str | None = Field(default=None, title="Operation ID")
    summary: str | None = None
    description: str | None = None

    # Security & rate limiting
    auth_required: bool = True
    scopes: list[str] | None = None
    rate_limit: str | None = None

    # Response details
    default_response_format: str | None = "json"
    cacheable: bool = False
    cache_time: int | None = Field(default=None, ge=0, description="Seconds")

    is_active: bool = True

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("HTTP method must not be blank")
        return value


class Operation(Record, OperationBase):
    """HTTP method bound to an endpoint."""


class ParameterBase(CatalogModel):
    """Fields accepted when creating or updating a parameter.

    Constraint fields are advisory metadata and are not enforced.
    """

    operation_id: str = Field(..., min_length=1, title="Operation")
    name: str = Field(..., min_length=1, title="Name")
    type: str = Field(
        ..., min_length=1, description="string, number, boolean, array, object"
    )
    location: ParameterLocation
    description: str | None = None
    required: bool = False
    default_value: str | None = None
    example: str | None = None
    format: str | None = Field(default=None, description="email, uuid, date-time, ...")
    pattern: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    minimum: int | None = None
    maximum: int | None = None
    enum: list[str] | None = None


class Parameter(Record, ParameterBase):
    """Input parameter of an operation."""


class ResponseSchemaBase(CatalogModel):
    """Fields accepted when creating or updating a response schema."""

    operation_id: str = Field(..., min_length=1, title="Operation")
    status_code: int = Field(..., ge=100, le=599, title="Status code")
    media_type: str | None = "application/json"
    # "schema" would shadow BaseModel.schema
    schema_doc: Any = Field(default=None, alias="schema")
    description: str | None = None
    example: Any = None


class ResponseSchema(Record, ResponseSchemaBase):
    """Documented response of an operation."""
