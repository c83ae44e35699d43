"""Pydantic models for catalog entities."""

from .api import Api, ApiBase
from .base import CatalogModel, Record
from .catalog import (
    ApiTree,
    ApiWithRelations,
    CatalogSnapshot,
    CatalogSummary,
    EndpointTree,
    EndpointWithRelations,
    OperationTree,
    OperationWithRelations,
    ProviderWithRelations,
    SearchResults,
    ServiceTree,
    ServiceWithRelations,
)
from .category import Category, CategoryBase
from .endpoint import Endpoint, EndpointBase
from .operation import (
    Operation,
    OperationBase,
    Parameter,
    ParameterBase,
    ParameterLocation,
    ResponseSchema,
    ResponseSchemaBase,
)
from .provider import Environment, EnvironmentBase, Provider, ProviderBase
from .service import Service, ServiceBase

__all__ = [
    "CatalogModel",
    "Record",
    "Category",
    "CategoryBase",
    "Provider",
    "ProviderBase",
    "Environment",
    "EnvironmentBase",
    "Service",
    "ServiceBase",
    "Api",
    "ApiBase",
    "Endpoint",
    "EndpointBase",
    "Operation",
    "OperationBase",
    "Parameter",
    "ParameterBase",
    "ParameterLocation",
    "ResponseSchema",
    "ResponseSchemaBase",
    "OperationTree",
    "EndpointTree",
    "ApiTree",
    "ServiceTree",
    "ProviderWithRelations",
    "ServiceWithRelations",
    "ApiWithRelations",
    "EndpointWithRelations",
    "OperationWithRelations",
    "SearchResults",
    "CatalogSnapshot",
    "CatalogSummary",
]
