"""Provider and environment entity models."""

from typing import Any

from pydantic import Field

from .base import CatalogModel, Record


class ProviderBase(CatalogModel):
    """Fields accepted when creating or updating a provider.

    Apart from name, short code and website, every attribute is free-form
    descriptive metadata and is stored as given.
    """

    name: str = Field(..., min_length=1, title="Name")
    short_code: str = Field(
        ..., min_length=1, title="Short code", description="Unique provider code"
    )
    website_url: str = Field(..., min_length=1, title="Website URL")
    description: str | None = Field(default=None, title="Description")
    logo_url: str | None = Field(default=None, title="Logo URL")
    documentation_url: str | None = Field(default=None, title="Documentation URL")

    # Coverage & technical
    geographic_coverage: str | None = None
    data_sources: list[str] | None = None
    historical_data_available: bool = False
    historical_data_depth: str | None = None
    realtime_latency: str | None = None
    data_granularity: str | None = None
    data_completeness: str | None = None
    data_refresh_rate: str | None = None

    # Quality & reliability
    uptime_guarantee: str | None = None
    service_level_agreement: str | None = None
    support_channels: list[str] | None = None
    maintenance_windows: str | None = None
    incident_response_time: str | None = None

    # Business & compliance
    pricing_model: str | None = None
    free_tier_available: bool = False
    compliance_standards: list[str] | None = None
    data_retention_policy: str | None = None
    privacy_policy: str | None = None
    terms_of_service: str | None = None

    # Contact & support
    contact_info: dict[str, Any] | None = None
    support_email: str | None = None
    sales_contact: str | None = None
    technical_contact: str | None = None

    is_active: bool = True


class Provider(Record, ProviderBase):
    """Organization exposing services and APIs."""


class EnvironmentBase(CatalogModel):
    """Fields accepted when creating or updating an environment."""

    provider_id: str = Field(..., min_length=1, title="Provider")
    name: str = Field(..., min_length=1, title="Name", description="dev, staging, prod")
    display_name: str = Field(..., min_length=1, title="Display name")
    base_url: str = Field(..., min_length=1, title="Base URL")
    description: str | None = None
    is_active: bool = True


class Environment(Record, EnvironmentBase):
    """Deployment target (sandbox, production, ...) of a provider."""
