from types import SimpleNamespace

import pytest

from apivista import CatalogStore


@pytest.fixture
def store():
    with CatalogStore() as catalog:
        yield catalog


@pytest.fixture
def aviation(store):
    return store.create_category({"name": "Aviation", "description": "Aviation data"})


@pytest.fixture
def tracking(store):
    return store.create_category({"name": "Tracking"})


@pytest.fixture
def fr24(store, aviation, tracking):
    """Flightradar24 with one service, two APIs and a full operation subtree."""
    provider = store.create_provider(
        {
            "name": "Flightradar24",
            "shortCode": "FR24",
            "websiteUrl": "https://www.flightradar24.com",
            "description": "Live flight tracker",
        },
        category_ids=[aviation.id, tracking.id],
    )
    environment = store.create_environment(
        {
            "providerId": provider.id,
            "name": "production",
            "displayName": "Production",
            "baseUrl": "https://api.flightradar24.com/v1",
        }
    )
    service = store.create_service(
        {"providerId": provider.id, "name": "flight-tracking", "displayName": "Flight Tracking"}
    )
    live = store.create_api(
        {
            "serviceId": service.id,
            "name": "live-flights",
            "displayName": "Live Flights API",
            "description": "Real-time flight positions",
        },
        category_ids=[tracking.id],
    )
    history = store.create_api(
        {"serviceId": service.id, "name": "flight-history", "displayName": "Flight History API"}
    )
    endpoint = store.create_endpoint({"apiId": live.id, "name": "flights", "path": "/flights"})
    operation = store.create_operation(
        {"endpointId": endpoint.id, "method": "get", "summary": "Get live flights"}
    )
    parameter = store.create_parameter(
        {"operationId": operation.id, "name": "bounds", "type": "string", "location": "query"}
    )
    schema = store.create_response_schema(
        {"operationId": operation.id, "statusCode": 200, "schema": {"type": "object"}}
    )
    return SimpleNamespace(
        provider=provider,
        environment=environment,
        service=service,
        live=live,
        history=history,
        endpoint=endpoint,
        operation=operation,
        parameter=parameter,
        schema=schema,
    )
