"""Assemble nested relation views from flat catalog rows."""

from __future__ import annotations

import logging

from ..models import (
    Api,
    ApiTree,
    ApiWithRelations,
    Category,
    Endpoint,
    EndpointTree,
    EndpointWithRelations,
    Operation,
    OperationTree,
    OperationWithRelations,
    Provider,
    ProviderWithRelations,
    Service,
    ServiceTree,
    ServiceWithRelations,
)
from .queries import (
    API_CATEGORIES,
    APIS,
    CATEGORIES,
    ENDPOINTS,
    ENVIRONMENTS,
    OPERATIONS,
    PARAMETERS,
    PROVIDER_CATEGORIES,
    PROVIDERS,
    RESPONSE_SCHEMAS,
    SERVICES,
    CatalogQueries,
    EntityTable,
    JoinTable,
)

logger = logging.getLogger(__name__)


class RelationAssembler:
    """Build relation trees by fanning out from a parent row.

    Each level filters its child table by the parent's ID and recurses until
    the leaves (parameters, response schemas). Nothing is cached; every call
    walks the whole subtree again.
    """

    def __init__(self, queries: CatalogQueries):
        self.queries = queries

    # ========== Nested trees ==========

    def operation_tree(self, operation: Operation) -> OperationTree:
        return OperationTree(
            **operation.model_dump(),
            parameters=self._children(PARAMETERS, operation.id),
            response_schemas=self._children(RESPONSE_SCHEMAS, operation.id),
        )

    def endpoint_tree(self, endpoint: Endpoint) -> EndpointTree:
        return EndpointTree(
            **endpoint.model_dump(),
            operations=self._operation_trees(endpoint.id),
        )

    def api_tree(self, api: Api) -> ApiTree:
        return ApiTree(
            **api.model_dump(),
            endpoints=self._endpoint_trees(api.id),
            categories=self.categories(API_CATEGORIES, api.id),
        )

    def service_tree(self, service: Service) -> ServiceTree:
        return ServiceTree(
            **service.model_dump(),
            apis=[self.api_tree(api) for api in self._children(APIS, service.id)],
        )

    def provider(self, provider: Provider) -> ProviderWithRelations:
        """Provider with environments, the service/API subtree and its tags.

        API trees are built once from ``apis.provider_id`` and shared between
        the provider's flat ``apis`` list and its services.
        """
        services: list[Service] = self.queries.find(SERVICES, "provider_id", provider.id)
        apis: list[Api] = self.queries.find(APIS, "provider_id", provider.id)
        api_trees = [self.api_tree(api) for api in apis]
        return ProviderWithRelations(
            **provider.model_dump(),
            environments=self.queries.find(ENVIRONMENTS, "provider_id", provider.id),
            services=[
                ServiceTree(
                    **service.model_dump(),
                    apis=[tree for tree in api_trees if tree.service_id == service.id],
                )
                for service in services
            ],
            apis=api_trees,
            categories=self.categories(PROVIDER_CATEGORIES, provider.id),
        )

    # ========== Flattened views with lineage ==========

    def service(self, service: Service) -> ServiceWithRelations:
        tree = self.service_tree(service)
        return ServiceWithRelations(
            **service.model_dump(),
            apis=tree.apis,
            provider=self.queries.get(PROVIDERS, service.provider_id),
        )

    def api(self, api: Api) -> ApiWithRelations:
        tree = self.api_tree(api)
        return ApiWithRelations(
            **api.model_dump(),
            endpoints=tree.endpoints,
            categories=tree.categories,
            service=self.queries.get(SERVICES, api.service_id),
            provider=self.queries.get(PROVIDERS, api.provider_id),
        )

    def endpoint(self, endpoint: Endpoint) -> EndpointWithRelations:
        api: Api | None = self.queries.get(APIS, endpoint.api_id)
        provider = self.queries.get(PROVIDERS, api.provider_id) if api else None
        return EndpointWithRelations(
            **endpoint.model_dump(),
            operations=self._operation_trees(endpoint.id),
            api=api,
            provider=provider,
        )

    def operation(self, operation: Operation) -> OperationWithRelations:
        return OperationWithRelations(
            **operation.model_dump(),
            parameters=self._children(PARAMETERS, operation.id),
            response_schemas=self._children(RESPONSE_SCHEMAS, operation.id),
            endpoint=self.queries.get(ENDPOINTS, operation.endpoint_id),
        )

    # ========== Category tags ==========

    def categories(self, join: JoinTable, owner_id: str) -> list[Category]:
        """Resolve an owner's category tags, ordered by category name.

        Join rows whose category no longer exists are dropped and logged.
        """
        category_ids = self.queries.joined_category_ids(join, owner_id)
        if not category_ids:
            return []

        categories: list[Category] = self.queries.find_in(CATEGORIES, "id", category_ids)
        found = {category.id for category in categories}
        for category_id in category_ids:
            if category_id not in found:
                logger.warning(
                    f"Dropping stale {join.name} row: {owner_id} -> {category_id}"
                )
        return categories

    # ========== Helpers ==========

    def _children(self, table: EntityTable, parent_id: str) -> list:
        return self.queries.find(table, table.parent_column, parent_id)

    def _operation_trees(self, endpoint_id: str) -> list[OperationTree]:
        operations: list[Operation] = self._children(OPERATIONS, endpoint_id)
        return [self.operation_tree(operation) for operation in operations]

    def _endpoint_trees(self, api_id: str) -> list[EndpointTree]:
        endpoints: list[Endpoint] = self._children(ENDPOINTS, api_id)
        return [self.endpoint_tree(endpoint) for endpoint in endpoints]
