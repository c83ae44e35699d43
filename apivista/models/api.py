"""API entity model."""

from pydantic import Field

from .base import CatalogModel, Record


class ApiBase(CatalogModel):
    """Fields accepted when creating or updating an API.

    ``provider_id`` is derived from the owning service. A caller may pass it,
    but it must agree with the service's provider.
    """

    service_id: str = Field(..., min_length=1, title="Service")
    provider_id: str | None = Field(default=None, title="Provider")
    name: str = Field(..., min_length=1, title="Name")
    display_name: str = Field(..., min_length=1, title="Display name")
    description: str | None = None
    version: str | None = None
    base_path: str | None = None

    # Technical details
    auth_type: str | None = Field(
        default=None, description="API Key, OAuth2, Bearer Token, ..."
    )
    rate_limit: str | None = None
    supported_formats: list[str] | None = None
    api_design_style: str | None = Field(default=None, description="REST, GraphQL, SOAP")

    # Documentation
    documentation_url: str | None = None
    swagger_url: str | None = None

    is_active: bool = True


class Api(Record, ApiBase):
    """API exposed by a service."""

    provider_id: str = Field(..., title="Provider")
