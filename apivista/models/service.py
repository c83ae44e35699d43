"""Service entity model."""

from pydantic import Field

from .base import CatalogModel, Record


class ServiceBase(CatalogModel):
    """Fields accepted when creating or updating a service."""

    provider_id: str = Field(..., min_length=1, title="Provider")
    name: str = Field(..., min_length=1, title="Name")
    display_name: str = Field(..., min_length=1, title="Display name")
    description: str | None = None
    icon: str | None = None
    version: str | None = None
    is_active: bool = True


class Service(Record, ServiceBase):
    """Logical grouping of a provider's APIs."""
