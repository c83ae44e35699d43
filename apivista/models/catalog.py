"""Assembled views over the catalog: relation trees, search results, snapshots."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from .api import Api
from .base import CatalogModel
from .category import Category
from .endpoint import Endpoint
from .operation import Operation, Parameter, ResponseSchema
from .provider import Environment, Provider
from .service import Service


# Nested trees. Children carry no back-references to their parents.


class OperationTree(Operation):
    """Operation with its parameters and response schemas."""

    parameters: list[Parameter] = Field(default_factory=list)
    response_schemas: list[ResponseSchema] = Field(default_factory=list)


class EndpointTree(Endpoint):
    """Endpoint with its operations."""

    operations: list[OperationTree] = Field(default_factory=list)


class ApiTree(Api):
    """API with its endpoints and category tags."""

    endpoints: list[EndpointTree] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)


class ServiceTree(Service):
    """Service with its APIs."""

    apis: list[ApiTree] = Field(default_factory=list)


class ProviderWithRelations(Provider):
    """Provider with its whole subtree and category tags.

    ``apis`` lists every API the provider owns across its services, the same
    trees that appear under ``services[].apis``.
    """

    environments: list[Environment] = Field(default_factory=list)
    services: list[ServiceTree] = Field(default_factory=list)
    apis: list[ApiTree] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)


# Flattened views carrying their lineage as flat parent rows.


class ServiceWithRelations(ServiceTree):
    """Service subtree plus its provider row."""

    provider: Provider | None = None


class ApiWithRelations(ApiTree):
    """API subtree plus its service and provider rows."""

    service: Service | None = None
    provider: Provider | None = None


class EndpointWithRelations(EndpointTree):
    """Endpoint subtree plus its API and provider rows."""

    api: Api | None = None
    provider: Provider | None = None


class OperationWithRelations(OperationTree):
    """Operation subtree plus its endpoint row."""

    endpoint: Endpoint | None = None


class SearchResults(CatalogModel):
    """Independent per-type matches for a free-text query."""

    providers: list[ProviderWithRelations] = Field(default_factory=list)
    services: list[ServiceWithRelations] = Field(default_factory=list)
    apis: list[ApiWithRelations] = Field(default_factory=list)
    operations: list[OperationWithRelations] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return (
            len(self.providers)
            + len(self.services)
            + len(self.apis)
            + len(self.operations)
        )

    def is_empty(self) -> bool:
        return self.total == 0


class CatalogSnapshot(CatalogModel):
    """Full catalog export."""

    exported_at: datetime
    categories: list[Category] = Field(default_factory=list)
    providers: list[ProviderWithRelations] = Field(default_factory=list)
    apis: list[ApiWithRelations] = Field(default_factory=list)
    endpoints: list[EndpointWithRelations] = Field(default_factory=list)


class CatalogSummary(CatalogModel):
    """Entity totals for dashboards."""

    categories: int = 0
    providers: int = 0
    active_providers: int = 0
    services: int = 0
    apis: int = 0
    endpoints: int = 0
    operations: int = 0
