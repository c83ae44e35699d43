"""The catalog store: sole owner and writer of all catalog entities."""

from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Iterator, Sequence

import duckdb
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..db import (
    CatalogQueries,
    EntityTable,
    JoinTable,
    RelationAssembler,
    create_schema,
    drop_schema,
    get_connection,
)
from ..db.queries import (
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
)
from ..errors import FieldError, NotFoundError, ValidationError
from ..models import (
    Api,
    ApiBase,
    ApiWithRelations,
    CatalogSnapshot,
    CatalogSummary,
    Category,
    CategoryBase,
    Endpoint,
    EndpointBase,
    EndpointWithRelations,
    Environment,
    EnvironmentBase,
    Operation,
    OperationBase,
    OperationWithRelations,
    Parameter,
    ParameterBase,
    Provider,
    ProviderBase,
    ProviderWithRelations,
    Record,
    ResponseSchema,
    ResponseSchemaBase,
    SearchResults,
    Service,
    ServiceBase,
    ServiceWithRelations,
)
from ..models.base import alias_of, field_aliases

if TYPE_CHECKING:
    from ..config import ApiVistaConfig

logger = logging.getLogger(__name__)

# Text fields scanned by search(), per entity type
PROVIDER_SEARCH_FIELDS = ("name", "short_code", "website_url")
SERVICE_SEARCH_FIELDS = ("name", "display_name", "description")
API_SEARCH_FIELDS = ("name", "display_name", "description")
OPERATION_SEARCH_FIELDS = ("method", "summary", "description")

# Text fields matched by list_providers(search=...)
PROVIDER_FILTER_FIELDS = ("name", "short_code", "description")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _field_errors(model: type[BaseModel], error: PydanticValidationError) -> list[FieldError]:
    """Collapse pydantic errors to one entry per offending field."""
    errors: dict[str, FieldError] = {}
    for item in error.errors():
        loc = item.get("loc") or ("__root__",)
        field = alias_of(model, str(loc[0]))
        if field not in errors:
            errors[field] = FieldError(field, item.get("msg", "Invalid value"))
    return list(errors.values())


class CatalogStore:
    """Owns every catalog collection and answers reads with assembled trees.

    All access goes through one re-entrant lock. Each write (the row, its
    join rows and any cascade) runs in a single DuckDB transaction, so a
    failed write leaves nothing behind.

    Usage:
        with CatalogStore() as store:
            aviation = store.create_category({"name": "Aviation"})
            fr24 = store.create_provider(
                {"name": "Flightradar24", "shortCode": "FR24",
                 "websiteUrl": "https://www.flightradar24.com"},
                category_ids=[aviation.id],
            )
    """

    def __init__(
        self,
        database: str = ":memory:",
        conn: duckdb.DuckDBPyConnection | None = None,
    ):
        self._database = database
        self._conn = conn or get_connection(database)
        create_schema(self._conn)
        self._queries = CatalogQueries(self._conn)
        self._assembler = RelationAssembler(self._queries)
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config: ApiVistaConfig) -> "CatalogStore":
        """Open the store described by the storage settings."""
        return cls(config.storage.database)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "CatalogStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def reset(self) -> None:
        """Drop every catalog row and recreate an empty schema."""
        with self._lock:
            drop_schema(self._conn)
            create_schema(self._conn)
        logger.info(f"Reset catalog database: {self._database}")

    # ========== Categories ==========

    def list_categories(self) -> list[Category]:
        """Get all categories ordered by name."""
        with self._lock:
            return self._queries.find(CATEGORIES)

    def get_category(self, category_id: str) -> Category | None:
        with self._lock:
            return self._queries.get(CATEGORIES, category_id)

    def create_category(self, fields: dict[str, Any]) -> Category:
        with self._lock:
            row = self._new_row(CATEGORIES, CategoryBase, fields)
            with self._transaction():
                self._queries.insert(CATEGORIES, row)
            logger.info(f"Created category {row.id} ({row.name})")
            return row

    def update_category(self, category_id: str, fields: dict[str, Any]) -> Category:
        with self._lock:
            current = self._require(CATEGORIES, category_id)
            _, changes = self._merge(CATEGORIES, CategoryBase, current, fields)
            with self._transaction():
                self._touch(CATEGORIES, category_id, changes)
            logger.info(f"Updated category {category_id}: {sorted(changes)}")
            return self._queries.get(CATEGORIES, category_id)

    def delete_category(self, category_id: str) -> None:
        """Delete a category and untag it from every provider and API."""
        with self._lock:
            self._require(CATEGORIES, category_id)
            with self._transaction():
                self._queries.delete_joins_for_category(PROVIDER_CATEGORIES, category_id)
                self._queries.delete_joins_for_category(API_CATEGORIES, category_id)
                self._queries.delete_in(CATEGORIES, "id", [category_id])
            logger.info(f"Deleted category {category_id}")

    # ========== Providers ==========

    def list_providers(self, search: str | None = None) -> list[ProviderWithRelations]:
        """Get all providers with relations, in creation order.

        Args:
            search: Optional case-insensitive filter on name, short code and
                description.
        """
        with self._lock:
            if search:
                providers = self._queries.search(
                    PROVIDERS, PROVIDER_FILTER_FIELDS, search.lower()
                )
            else:
                providers = self._queries.find(PROVIDERS)
            return [self._assembler.provider(p) for p in providers]

    def get_provider(self, provider_id: str) -> ProviderWithRelations | None:
        with self._lock:
            provider = self._queries.get(PROVIDERS, provider_id)
            if provider is None:
                logger.debug(f"Provider not found: {provider_id}")
                return None
            return self._assembler.provider(provider)

    def create_provider(
        self,
        fields: dict[str, Any],
        category_ids: Sequence[str] | None = None,
    ) -> ProviderWithRelations:
        with self._lock:
            row: Provider = self._new_row(PROVIDERS, ProviderBase, fields)
            if self._queries.value_taken(PROVIDERS, "short_code", row.short_code):
                raise ValidationError.single(
                    PROVIDERS.label, "shortCode", f"Short code '{row.short_code}' is already in use"
                )
            tags = self._check_categories(PROVIDERS, category_ids)
            with self._transaction():
                self._queries.insert(PROVIDERS, row)
                if tags:
                    self._queries.insert_joins(PROVIDER_CATEGORIES, row.id, tags)
            logger.info(f"Created provider {row.id} ({row.short_code})")
            return self.get_provider(row.id)

    def update_provider(
        self,
        provider_id: str,
        fields: dict[str, Any],
        category_ids: Sequence[str] | None = None,
    ) -> ProviderWithRelations:
        """Update a provider.

        Passing ``category_ids`` (even an empty list) replaces all of the
        provider's category tags; ``None`` leaves them untouched.
        """
        with self._lock:
            current = self._require(PROVIDERS, provider_id)
            _, changes = self._merge(PROVIDERS, ProviderBase, current, fields)
            if "short_code" in changes and self._queries.value_taken(
                PROVIDERS, "short_code", changes["short_code"], exclude_id=provider_id
            ):
                raise ValidationError.single(
                    PROVIDERS.label,
                    "shortCode",
                    f"Short code '{changes['short_code']}' is already in use",
                )
            tags = self._check_categories(PROVIDERS, category_ids)
            with self._transaction():
                self._touch(PROVIDERS, provider_id, changes)
                if tags is not None:
                    self._replace_tags(PROVIDER_CATEGORIES, provider_id, tags)
            logger.info(f"Updated provider {provider_id}: {sorted(changes)}")
            return self.get_provider(provider_id)

    def delete_provider(self, provider_id: str) -> None:
        """Delete a provider and everything it owns."""
        with self._lock:
            self._require(PROVIDERS, provider_id)
            with self._transaction():
                self._cascade_providers([provider_id])
            logger.info(f"Deleted provider {provider_id}")

    # ========== Environments ==========

    def list_environments(self, provider_id: str | None = None) -> list[Environment]:
        with self._lock:
            return self._list(ENVIRONMENTS, provider_id)

    def get_environment(self, environment_id: str) -> Environment | None:
        with self._lock:
            return self._queries.get(ENVIRONMENTS, environment_id)

    def create_environment(self, fields: dict[str, Any]) -> Environment:
        with self._lock:
            row: Environment = self._new_row(ENVIRONMENTS, EnvironmentBase, fields)
            self._check_parent(ENVIRONMENTS, "provider_id", PROVIDERS, row.provider_id)
            with self._transaction():
                self._queries.insert(ENVIRONMENTS, row)
            logger.info(f"Created environment {row.id} ({row.name}) for provider {row.provider_id}")
            return row

    def update_environment(self, environment_id: str, fields: dict[str, Any]) -> Environment:
        with self._lock:
            current = self._require(ENVIRONMENTS, environment_id)
            _, changes = self._merge(ENVIRONMENTS, EnvironmentBase, current, fields)
            if "provider_id" in changes:
                self._check_parent(ENVIRONMENTS, "provider_id", PROVIDERS, changes["provider_id"])
            with self._transaction():
                self._touch(ENVIRONMENTS, environment_id, changes)
            logger.info(f"Updated environment {environment_id}: {sorted(changes)}")
            return self._queries.get(ENVIRONMENTS, environment_id)

    def delete_environment(self, environment_id: str) -> None:
        with self._lock:
            self._require(ENVIRONMENTS, environment_id)
            with self._transaction():
                self._queries.delete_in(ENVIRONMENTS, "id", [environment_id])
            logger.info(f"Deleted environment {environment_id}")

    # ========== Services ==========

    def list_services(self, provider_id: str | None = None) -> list[ServiceWithRelations]:
        with self._lock:
            return [self._assembler.service(s) for s in self._list(SERVICES, provider_id)]

    def get_service(self, service_id: str) -> ServiceWithRelations | None:
        with self._lock:
            service = self._queries.get(SERVICES, service_id)
            return self._assembler.service(service) if service else None

    def create_service(self, fields: dict[str, Any]) -> ServiceWithRelations:
        with self._lock:
            row: Service = self._new_row(SERVICES, ServiceBase, fields)
            self._check_parent(SERVICES, "provider_id", PROVIDERS, row.provider_id)
            with self._transaction():
                self._queries.insert(SERVICES, row)
            logger.info(f"Created service {row.id} ({row.name}) for provider {row.provider_id}")
            return self.get_service(row.id)

    def update_service(self, service_id: str, fields: dict[str, Any]) -> ServiceWithRelations:
        """Update a service.

        Moving a service to another provider moves its APIs along with it.
        """
        with self._lock:
            current = self._require(SERVICES, service_id)
            _, changes = self._merge(SERVICES, ServiceBase, current, fields)
            if "provider_id" in changes:
                self._check_parent(SERVICES, "provider_id", PROVIDERS, changes["provider_id"])
            with self._transaction():
                self._touch(SERVICES, service_id, changes)
                if "provider_id" in changes:
                    for api_id in self._queries.ids_in(APIS, "service_id", [service_id]):
                        self._touch(APIS, api_id, {"provider_id": changes["provider_id"]})
            logger.info(f"Updated service {service_id}: {sorted(changes)}")
            return self.get_service(service_id)

    def delete_service(self, service_id: str) -> None:
        """Delete a service with its APIs, endpoints and operations."""
        with self._lock:
            self._require(SERVICES, service_id)
            with self._transaction():
                self._cascade_services([service_id])
            logger.info(f"Deleted service {service_id}")

    # ========== APIs ==========

    def list_apis(
        self,
        service_id: str | None = None,
        provider_id: str | None = None,
    ) -> list[ApiWithRelations]:
        """Get APIs, optionally filtered by service and/or provider."""
        with self._lock:
            apis: list[Api] = self._queries.find(APIS)
            if service_id is not None:
                apis = [a for a in apis if a.service_id == service_id]
            if provider_id is not None:
                apis = [a for a in apis if a.provider_id == provider_id]
            return [self._assembler.api(a) for a in apis]

    def get_api(self, api_id: str) -> ApiWithRelations | None:
        with self._lock:
            api = self._queries.get(APIS, api_id)
            return self._assembler.api(api) if api else None

    def create_api(
        self,
        fields: dict[str, Any],
        category_ids: Sequence[str] | None = None,
    ) -> ApiWithRelations:
        with self._lock:
            payload: ApiBase = self._validate(ApiBase, APIS.label, fields)
            service = self._check_parent(APIS, "service_id", SERVICES, payload.service_id)
            self._check_provider_agrees(payload.provider_id, service)
            row: Api = self._stamp(APIS, payload, provider_id=service.provider_id)
            tags = self._check_categories(APIS, category_ids)
            with self._transaction():
                self._queries.insert(APIS, row)
                if tags:
                    self._queries.insert_joins(API_CATEGORIES, row.id, tags)
            logger.info(f"Created API {row.id} ({row.name}) in service {row.service_id}")
            return self.get_api(row.id)

    def update_api(
        self,
        api_id: str,
        fields: dict[str, Any],
        category_ids: Sequence[str] | None = None,
    ) -> ApiWithRelations:
        """Update an API.

        Changing ``service_id`` re-derives ``provider_id``. Passing
        ``category_ids`` (even an empty list) replaces all category tags.
        """
        with self._lock:
            current: Api = self._require(APIS, api_id)
            partial = self._normalize(ApiBase, APIS, fields)
            supplied_provider = partial.pop("provider_id", None)
            _, changes = self._merge(APIS, ApiBase, current, partial)
            service = self._check_parent(
                APIS, "service_id", SERVICES, changes.get("service_id", current.service_id)
            )
            self._check_provider_agrees(supplied_provider, service)
            if service.provider_id != current.provider_id:
                changes["provider_id"] = service.provider_id
            tags = self._check_categories(APIS, category_ids)
            with self._transaction():
                self._touch(APIS, api_id, changes)
                if tags is not None:
                    self._replace_tags(API_CATEGORIES, api_id, tags)
            logger.info(f"Updated API {api_id}: {sorted(changes)}")
            return self.get_api(api_id)

    def delete_api(self, api_id: str) -> None:
        """Delete an API with its endpoints, operations and category tags."""
        with self._lock:
            self._require(APIS, api_id)
            with self._transaction():
                self._cascade_apis([api_id])
            logger.info(f"Deleted API {api_id}")

    # ========== Endpoints ==========

    def list_endpoints(self, api_id: str | None = None) -> list[EndpointWithRelations]:
        with self._lock:
            return [self._assembler.endpoint(e) for e in self._list(ENDPOINTS, api_id)]

    def get_endpoint(self, endpoint_id: str) -> EndpointWithRelations | None:
        with self._lock:
            endpoint = self._queries.get(ENDPOINTS, endpoint_id)
            return self._assembler.endpoint(endpoint) if endpoint else None

    def create_endpoint(self, fields: dict[str, Any]) -> EndpointWithRelations:
        with self._lock:
            row: Endpoint = self._new_row(ENDPOINTS, EndpointBase, fields)
            self._check_parent(ENDPOINTS, "api_id", APIS, row.api_id)
            with self._transaction():
                self._queries.insert(ENDPOINTS, row)
            logger.info(f"Created endpoint {row.id} ({row.path}) in API {row.api_id}")
            return self.get_endpoint(row.id)

    def update_endpoint(self, endpoint_id: str, fields: dict[str, Any]) -> EndpointWithRelations:
        with self._lock:
            current = self._require(ENDPOINTS, endpoint_id)
            _, changes = self._merge(ENDPOINTS, EndpointBase, current, fields)
            if "api_id" in changes:
                self._check_parent(ENDPOINTS, "api_id", APIS, changes["api_id"])
            with self._transaction():
                self._touch(ENDPOINTS, endpoint_id, changes)
            logger.info(f"Updated endpoint {endpoint_id}: {sorted(changes)}")
            return self.get_endpoint(endpoint_id)

    def delete_endpoint(self, endpoint_id: str) -> None:
        """Delete an endpoint with its operations."""
        with self._lock:
            self._require(ENDPOINTS, endpoint_id)
            with self._transaction():
                self._cascade_endpoints([endpoint_id])
            logger.info(f"Deleted endpoint {endpoint_id}")

    # ========== Operations ==========

    def list_operations(self, endpoint_id: str | None = None) -> list[OperationWithRelations]:
        with self._lock:
            return [self._assembler.operation(o) for o in self._list(OPERATIONS, endpoint_id)]

    def get_operation(self, operation_id: str) -> OperationWithRelations | None:
        with self._lock:
            operation = self._queries.get(OPERATIONS, operation_id)
            return self._assembler.operation(operation) if operation else None

    def create_operation(self, fields: dict[str, Any]) -> OperationWithRelations:
        with self._lock:
            row: Operation = self._new_row(OPERATIONS, OperationBase, fields)
            self._check_parent(OPERATIONS, "endpoint_id", ENDPOINTS, row.endpoint_id)
            with self._transaction():
                self._queries.insert(OPERATIONS, row)
            logger.info(f"Created operation {row.id} ({row.method}) on endpoint {row.endpoint_id}")
            return self.get_operation(row.id)

    def update_operation(self, operation_id: str, fields: dict[str, Any]) -> OperationWithRelations:
        with self._lock:
            current = self._require(OPERATIONS, operation_id)
            _, changes = self._merge(OPERATIONS, OperationBase, current, fields)
            if "endpoint_id" in changes:
                self._check_parent(OPERATIONS, "endpoint_id", ENDPOINTS, changes["endpoint_id"])
            with self._transaction():
                self._touch(OPERATIONS, operation_id, changes)
            logger.info(f"Updated operation {operation_id}: {sorted(changes)}")
            return self.get_operation(operation_id)

    def delete_operation(self, operation_id: str) -> None:
        """Delete an operation with its parameters and response schemas."""
        with self._lock:
            self._require(OPERATIONS, operation_id)
            with self._transaction():
                self._cascade_operations([operation_id])
            logger.info(f"Deleted operation {operation_id}")

    # ========== Parameters ==========

    def list_parameters(self, operation_id: str | None = None) -> list[Parameter]:
        with self._lock:
            return self._list(PARAMETERS, operation_id)

    def get_parameter(self, parameter_id: str) -> Parameter | None:
        with self._lock:
            return self._queries.get(PARAMETERS, parameter_id)

    def create_parameter(self, fields: dict[str, Any]) -> Parameter:
        with self._lock:
            row: Parameter = self._new_row(PARAMETERS, ParameterBase, fields)
            self._check_parent(PARAMETERS, "operation_id", OPERATIONS, row.operation_id)
            with self._transaction():
                self._queries.insert(PARAMETERS, row)
            logger.info(f"Created parameter {row.id} ({row.name}) on operation {row.operation_id}")
            return row

    def update_parameter(self, parameter_id: str, fields: dict[str, Any]) -> Parameter:
        with self._lock:
            current = self._require(PARAMETERS, parameter_id)
            _, changes = self._merge(PARAMETERS, ParameterBase, current, fields)
            if "operation_id" in changes:
                self._check_parent(PARAMETERS, "operation_id", OPERATIONS, changes["operation_id"])
            with self._transaction():
                self._touch(PARAMETERS, parameter_id, changes)
            logger.info(f"Updated parameter {parameter_id}: {sorted(changes)}")
            return self._queries.get(PARAMETERS, parameter_id)

    def delete_parameter(self, parameter_id: str) -> None:
        with self._lock:
            self._require(PARAMETERS, parameter_id)
            with self._transaction():
                self._queries.delete_in(PARAMETERS, "id", [parameter_id])
            logger.info(f"Deleted parameter {parameter_id}")

    # ========== Response schemas ==========

    def list_response_schemas(self, operation_id: str | None = None) -> list[ResponseSchema]:
        with self._lock:
            return self._list(RESPONSE_SCHEMAS, operation_id)

    def get_response_schema(self, schema_id: str) -> ResponseSchema | None:
        with self._lock:
            return self._queries.get(RESPONSE_SCHEMAS, schema_id)

    def create_response_schema(self, fields: dict[str, Any]) -> ResponseSchema:
        with self._lock:
            row: ResponseSchema = self._new_row(RESPONSE_SCHEMAS, ResponseSchemaBase, fields)
            self._check_parent(RESPONSE_SCHEMAS, "operation_id", OPERATIONS, row.operation_id)
            with self._transaction():
                self._queries.insert(RESPONSE_SCHEMAS, row)
            logger.info(
                f"Created response schema {row.id} ({row.status_code}) on operation {row.operation_id}"
            )
            return row

    def update_response_schema(self, schema_id: str, fields: dict[str, Any]) -> ResponseSchema:
        with self._lock:
            current = self._require(RESPONSE_SCHEMAS, schema_id)
            _, changes = self._merge(RESPONSE_SCHEMAS, ResponseSchemaBase, current, fields)
            if "operation_id" in changes:
                self._check_parent(
                    RESPONSE_SCHEMAS, "operation_id", OPERATIONS, changes["operation_id"]
                )
            with self._transaction():
                self._touch(RESPONSE_SCHEMAS, schema_id, changes)
            logger.info(f"Updated response schema {schema_id}: {sorted(changes)}")
            return self._queries.get(RESPONSE_SCHEMAS, schema_id)

    def delete_response_schema(self, schema_id: str) -> None:
        with self._lock:
            self._require(RESPONSE_SCHEMAS, schema_id)
            with self._transaction():
                self._queries.delete_in(RESPONSE_SCHEMAS, "id", [schema_id])
            logger.info(f"Deleted response schema {schema_id}")

    # ========== Search, export, summary ==========

    def search(self, query: str) -> SearchResults:
        """Case-insensitive substring search over providers, services, APIs
        and operations.

        Each type is matched independently: there is no ranking and no
        deduplication across the four lists.
        """
        if not isinstance(query, str) or not query.strip():
            raise ValidationError.single("search", "q", "Search query is required")
        needle = query.strip().lower()

        with self._lock:
            providers = self._queries.search(PROVIDERS, PROVIDER_SEARCH_FIELDS, needle)
            services = self._queries.search(SERVICES, SERVICE_SEARCH_FIELDS, needle)
            apis = self._queries.search(APIS, API_SEARCH_FIELDS, needle)
            operations = self._queries.search(OPERATIONS, OPERATION_SEARCH_FIELDS, needle)
            results = SearchResults(
                providers=[self._assembler.provider(p) for p in providers],
                services=[self._assembler.service(s) for s in services],
                apis=[self._assembler.api(a) for a in apis],
                operations=[self._assembler.operation(o) for o in operations],
            )
        logger.debug(f"Search '{needle}' matched {results.total} entities")
        return results

    def export_snapshot(self) -> CatalogSnapshot:
        """Materialize the whole catalog in one consistent read."""
        with self._lock:
            return CatalogSnapshot(
                exported_at=_utcnow(),
                categories=self.list_categories(),
                providers=self.list_providers(),
                apis=self.list_apis(),
                endpoints=self.list_endpoints(),
            )

    def count_summary(self) -> CatalogSummary:
        with self._lock:
            return CatalogSummary(
                categories=self._queries.count(CATEGORIES),
                providers=self._queries.count(PROVIDERS),
                active_providers=self._queries.count(PROVIDERS, "is_active", True),
                services=self._queries.count(SERVICES),
                apis=self._queries.count(APIS),
                endpoints=self._queries.count(ENDPOINTS),
                operations=self._queries.count(OPERATIONS),
            )

    def is_empty(self) -> bool:
        with self._lock:
            return (
                self._queries.count(CATEGORIES) == 0
                and self._queries.count(PROVIDERS) == 0
            )

    # ========== Cascades (call inside a transaction) ==========

    def _cascade_operations(self, operation_ids: list[str]) -> None:
        self._queries.delete_in(PARAMETERS, "operation_id", operation_ids)
        self._queries.delete_in(RESPONSE_SCHEMAS, "operation_id", operation_ids)
        self._queries.delete_in(OPERATIONS, "id", operation_ids)

    def _cascade_endpoints(self, endpoint_ids: list[str]) -> None:
        self._cascade_operations(self._queries.ids_in(OPERATIONS, "endpoint_id", endpoint_ids))
        self._queries.delete_in(ENDPOINTS, "id", endpoint_ids)

    def _cascade_apis(self, api_ids: list[str]) -> None:
        self._cascade_endpoints(self._queries.ids_in(ENDPOINTS, "api_id", api_ids))
        self._queries.delete_joins(API_CATEGORIES, api_ids)
        self._queries.delete_in(APIS, "id", api_ids)

    def _cascade_services(self, service_ids: list[str]) -> None:
        self._cascade_apis(self._queries.ids_in(APIS, "service_id", service_ids))
        self._queries.delete_in(SERVICES, "id", service_ids)

    def _cascade_providers(self, provider_ids: list[str]) -> None:
        self._cascade_services(self._queries.ids_in(SERVICES, "provider_id", provider_ids))
        # APIs are also owned directly through the denormalized provider_id
        self._cascade_apis(self._queries.ids_in(APIS, "provider_id", provider_ids))
        self._queries.delete_in(ENVIRONMENTS, "provider_id", provider_ids)
        self._queries.delete_joins(PROVIDER_CATEGORIES, provider_ids)
        self._queries.delete_in(PROVIDERS, "id", provider_ids)

    # ========== Helpers ==========

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Run the enclosed writes atomically. Not re-entrant."""
        with self._lock:
            self._conn.execute("BEGIN TRANSACTION")
            try:
                yield
            except BaseException:
                self._conn.execute("ROLLBACK")
                raise
            self._conn.execute("COMMIT")

    def _list(self, table: EntityTable, parent_id: str | None) -> list[Record]:
        if parent_id is None:
            return self._queries.find(table)
        return self._queries.find(table, table.parent_column, parent_id)

    def _require(self, table: EntityTable, entity_id: str) -> Record:
        row = self._queries.get(table, entity_id)
        if row is None:
            raise NotFoundError(table.label, entity_id)
        return row

    def _normalize(
        self, model: type[BaseModel], table: EntityTable, fields: dict[str, Any]
    ) -> dict[str, Any]:
        """Rekey input by field name. Unknown keys are kept so validation reports them."""
        if not isinstance(fields, dict):
            raise ValidationError.single(table.label, "__root__", "Expected an object")
        names = field_aliases(model)
        return {names.get(key, key): value for key, value in fields.items()}

    def _validate(self, model: type[BaseModel], label: str, data: dict[str, Any]) -> Any:
        if not isinstance(data, dict):
            raise ValidationError.single(label, "__root__", "Expected an object")
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(label, _field_errors(model, e)) from None

    def _stamp(self, table: EntityTable, payload: BaseModel, **derived: Any) -> Any:
        """Turn a validated payload into a row with a fresh ID and timestamps."""
        now = _utcnow()
        return table.model.model_validate(
            {
                **payload.model_dump(),
                **derived,
                "id": uuid.uuid4().hex,
                "created_at": now,
                "updated_at": now,
            }
        )

    def _new_row(
        self, table: EntityTable, model: type[BaseModel], fields: dict[str, Any]
    ) -> Any:
        return self._stamp(table, self._validate(model, table.label, fields))

    def _merge(
        self,
        table: EntityTable,
        model: type[BaseModel],
        current: Record,
        fields: dict[str, Any],
    ) -> tuple[Any, dict[str, Any]]:
        """Validate ``fields`` laid over the current row.

        Returns the validated payload and the changed columns (only those the
        caller supplied).
        """
        partial = self._normalize(model, table, fields)
        merged = {**current.model_dump(include=set(model.model_fields)), **partial}
        payload = self._validate(model, table.label, merged)
        changes = {
            name: getattr(payload, name) for name in partial if name in model.model_fields
        }
        return payload, changes

    def _touch(self, table: EntityTable, entity_id: str, changes: dict[str, Any]) -> None:
        self._queries.update(table, entity_id, {**changes, "updated_at": _utcnow()})

    def _check_parent(
        self,
        table: EntityTable,
        field: str,
        parent: EntityTable,
        parent_id: str,
    ) -> Any:
        row = self._queries.get(parent, parent_id)
        if row is None:
            raise ValidationError.single(
                table.label,
                alias_of(table.model, field),
                f"{parent.label} '{parent_id}' does not exist",
            )
        return row

    def _check_provider_agrees(self, provider_id: str | None, service: Service) -> None:
        if provider_id is not None and provider_id != service.provider_id:
            raise ValidationError.single(
                APIS.label,
                "providerId",
                f"Provider '{provider_id}' does not own service '{service.id}'",
            )

    def _check_categories(
        self, table: EntityTable, category_ids: Sequence[str] | None
    ) -> list[str] | None:
        """Validate category IDs, collapsing duplicates in first-seen order."""
        if category_ids is None:
            return None
        if isinstance(category_ids, str) or not all(
            isinstance(c, str) for c in category_ids
        ):
            raise ValidationError.single(
                table.label, "categoryIds", "Must be a list of category IDs"
            )
        unique = list(dict.fromkeys(category_ids))
        missing = [c for c in unique if not self._queries.exists(CATEGORIES, c)]
        if missing:
            raise ValidationError.single(
                table.label, "categoryIds", f"Unknown categories: {', '.join(missing)}"
            )
        return unique

    def _replace_tags(self, join: JoinTable, owner_id: str, category_ids: list[str]) -> None:
        """Delete all of the owner's join rows, then insert the new set."""
        self._queries.delete_joins(join, [owner_id])
        self._queries.insert_joins(join, owner_id, category_ids)
