"""Endpoint entity model."""

from pydantic import Field

from .base import CatalogModel, Record


class EndpointBase(CatalogModel):
    """Fields accepted when creating or updating an endpoint."""

    api_id: str = Field(..., min_length=1, title="API")
    name: str = Field(..., min_length=1, title="Name")
    path: str = Field(..., min_length=1, title="Path")
    description: str | None = None
    is_active: bool = True


class Endpoint(Record, EndpointBase):
    """Path within an API."""
