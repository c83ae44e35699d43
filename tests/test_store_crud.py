import pytest

from apivista import NotFoundError, ValidationError


class TestCategories:
    def test_create_assigns_id_and_timestamps(self, store):
        category = store.create_category({"name": "Aviation", "nameAr": "طيران"})
        assert category.id
        assert category.created_at == category.updated_at
        assert category.name_ar == "طيران"

    def test_list_is_ordered_by_name(self, store):
        for name in ["Tracking", "Aviation", "Data Analytics"]:
            store.create_category({"name": name})
        assert [c.name for c in store.list_categories()] == [
            "Aviation",
            "Data Analytics",
            "Tracking",
        ]

    def test_missing_name(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.create_category({"description": "no name"})
        assert exc_info.value.fields == ["name"]
        assert exc_info.value.code == "VALIDATION_ERROR"

    def test_update_merges_fields(self, store, aviation):
        updated = store.update_category(aviation.id, {"nameAr": "طيران"})
        assert updated.name == "Aviation"
        assert updated.description == "Aviation data"
        assert updated.name_ar == "طيران"
        assert updated.created_at == aviation.created_at
        assert updated.updated_at >= aviation.updated_at

    def test_update_unknown_id(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            store.update_category("missing", {"name": "X"})
        assert exc_info.value.entity_id == "missing"
        assert "not found" in exc_info.value.message

    def test_update_rejects_id_override(self, store, aviation):
        with pytest.raises(ValidationError) as exc_info:
            store.update_category(aviation.id, {"id": "other"})
        assert exc_info.value.fields == ["id"]

    def test_get_unknown_returns_none(self, store):
        assert store.get_category("missing") is None


class TestProviders:
    def test_create_with_categories(self, store, aviation, tracking):
        provider = store.create_provider(
            {"name": "FlightAware", "shortCode": "FA", "websiteUrl": "https://flightaware.com"},
            category_ids=[tracking.id, aviation.id],
        )
        assert [c.name for c in provider.categories] == ["Aviation", "Tracking"]
        assert provider.environments == []
        assert provider.services == []

    def test_missing_required_fields_are_all_reported(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.create_provider({"name": "FlightAware"})
        assert sorted(exc_info.value.fields) == ["shortCode", "websiteUrl"]

    def test_unknown_category_rejected(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.create_provider(
                {"name": "FA", "shortCode": "FA", "websiteUrl": "https://flightaware.com"},
                category_ids=["missing"],
            )
        assert exc_info.value.fields == ["categoryIds"]
        assert store.list_providers() == []

    def test_duplicate_category_ids_collapse(self, store, aviation):
        provider = store.create_provider(
            {"name": "FA", "shortCode": "FA", "websiteUrl": "https://flightaware.com"},
            category_ids=[aviation.id, aviation.id],
        )
        assert [c.id for c in provider.categories] == [aviation.id]

    def test_short_code_is_unique(self, store, fr24):
        with pytest.raises(ValidationError) as exc_info:
            store.create_provider(
                {"name": "Copy", "shortCode": "FR24", "websiteUrl": "https://example.com"}
            )
        assert exc_info.value.fields == ["shortCode"]

    def test_update_keeps_own_short_code(self, store, fr24):
        updated = store.update_provider(fr24.provider.id, {"shortCode": "FR24", "name": "FR 24"})
        assert updated.name == "FR 24"

    def test_update_to_taken_short_code(self, store, fr24):
        other = store.create_provider(
            {"name": "FA", "shortCode": "FA", "websiteUrl": "https://flightaware.com"}
        )
        with pytest.raises(ValidationError):
            store.update_provider(other.id, {"shortCode": "FR24"})

    def test_update_without_category_ids_keeps_tags(self, store, fr24):
        updated = store.update_provider(fr24.provider.id, {"description": "Changed"})
        assert [c.name for c in updated.categories] == ["Aviation", "Tracking"]

    def test_update_replaces_tags(self, store, fr24, aviation):
        updated = store.update_provider(fr24.provider.id, {}, category_ids=[aviation.id])
        assert [c.name for c in updated.categories] == ["Aviation"]

    def test_repeated_replacement_leaves_no_duplicates(self, store, fr24, aviation, tracking):
        for _ in range(2):
            store.update_provider(
                fr24.provider.id, {}, category_ids=[aviation.id, tracking.id]
            )
            provider = store.get_provider(fr24.provider.id)
            assert [c.id for c in provider.categories] == [aviation.id, tracking.id]
        count = store._conn.execute("SELECT COUNT(*) FROM provider_categories").fetchone()[0]
        assert count == 2

    def test_empty_category_ids_clears_tags(self, store, fr24):
        updated = store.update_provider(fr24.provider.id, {}, category_ids=[])
        assert updated.categories == []

    def test_contact_info_round_trips(self, store):
        provider = store.create_provider(
            {
                "name": "Planespotters",
                "shortCode": "PS",
                "websiteUrl": "https://www.planespotters.net",
                "contactInfo": {"headquarters": "Amsterdam", "email": "info@planespotters.net"},
                "dataSources": ["Community photos"],
            }
        )
        fetched = store.get_provider(provider.id)
        assert fetched.contact_info == {
            "headquarters": "Amsterdam",
            "email": "info@planespotters.net",
        }
        assert fetched.data_sources == ["Community photos"]

    def test_list_in_creation_order(self, store):
        for code in ["B", "A", "C"]:
            store.create_provider({"name": code, "shortCode": code, "websiteUrl": "https://x"})
        assert [p.short_code for p in store.list_providers()] == ["B", "A", "C"]

    def test_list_with_search(self, store, fr24):
        store.create_provider(
            {"name": "FlightAware", "shortCode": "FA", "websiteUrl": "https://flightaware.com"}
        )
        assert [p.short_code for p in store.list_providers(search="fr24")] == ["FR24"]
        assert [p.short_code for p in store.list_providers(search="TRACKER")] == ["FR24"]
        assert len(store.list_providers(search="flight")) == 2


class TestEnvironments:
    def test_unknown_provider(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.create_environment(
                {"providerId": "missing", "name": "prod", "displayName": "Prod", "baseUrl": "x"}
            )
        assert exc_info.value.fields == ["providerId"]

    def test_list_by_provider(self, store, fr24):
        assert [e.id for e in store.list_environments(fr24.provider.id)] == [fr24.environment.id]
        assert store.list_environments("other") == []

    def test_update_and_delete(self, store, fr24):
        updated = store.update_environment(fr24.environment.id, {"isActive": False})
        assert updated.is_active is False
        store.delete_environment(fr24.environment.id)
        assert store.get_environment(fr24.environment.id) is None
        with pytest.raises(NotFoundError):
            store.delete_environment(fr24.environment.id)


class TestServices:
    def test_view_carries_provider_and_apis(self, store, fr24):
        service = store.get_service(fr24.service.id)
        assert service.provider.id == fr24.provider.id
        assert [a.name for a in service.apis] == ["live-flights", "flight-history"]

    def test_unknown_provider(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.create_service({"providerId": "missing", "name": "s", "displayName": "S"})
        assert exc_info.value.fields == ["providerId"]

    def test_move_to_other_provider_moves_apis(self, store, fr24):
        other = store.create_provider(
            {"name": "FA", "shortCode": "FA", "websiteUrl": "https://flightaware.com"}
        )
        store.update_service(fr24.service.id, {"providerId": other.id})
        api = store.get_api(fr24.live.id)
        assert api.provider_id == other.id
        assert api.provider.short_code == "FA"
        assert api.updated_at > fr24.live.updated_at
        assert store.get_provider(other.id).apis[0].id == fr24.live.id
        assert store.get_provider(fr24.provider.id).apis == []


class TestApis:
    def test_provider_is_derived_from_service(self, store, fr24):
        api = store.get_api(fr24.live.id)
        assert api.provider_id == fr24.provider.id
        assert api.service.id == fr24.service.id
        assert api.provider.id == fr24.provider.id
        assert [c.name for c in api.categories] == ["Tracking"]

    def test_disagreeing_provider_rejected(self, store, fr24):
        other = store.create_provider(
            {"name": "FA", "shortCode": "FA", "websiteUrl": "https://flightaware.com"}
        )
        with pytest.raises(ValidationError) as exc_info:
            store.create_api(
                {
                    "serviceId": fr24.service.id,
                    "providerId": other.id,
                    "name": "x",
                    "displayName": "X",
                }
            )
        assert exc_info.value.fields == ["providerId"]

    def test_agreeing_provider_accepted(self, store, fr24):
        api = store.create_api(
            {
                "serviceId": fr24.service.id,
                "providerId": fr24.provider.id,
                "name": "airports",
                "displayName": "Airports API",
            }
        )
        assert api.provider_id == fr24.provider.id

    def test_unknown_service(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.create_api({"serviceId": "missing", "name": "x", "displayName": "X"})
        assert exc_info.value.fields == ["serviceId"]

    def test_changing_service_rederives_provider(self, store, fr24):
        other = store.create_provider(
            {"name": "FA", "shortCode": "FA", "websiteUrl": "https://flightaware.com"}
        )
        aeroapi = store.create_service(
            {"providerId": other.id, "name": "aeroapi", "displayName": "AeroAPI"}
        )
        api = store.update_api(fr24.history.id, {"serviceId": aeroapi.id})
        assert api.provider_id == other.id
        assert [a.id for a in store.list_apis(provider_id=fr24.provider.id)] == [fr24.live.id]

    def test_list_filters(self, store, fr24):
        assert len(store.list_apis()) == 2
        assert len(store.list_apis(service_id=fr24.service.id)) == 2
        assert store.list_apis(service_id="other") == []
        assert len(store.list_apis(provider_id=fr24.provider.id)) == 2

    def test_update_replaces_tags(self, store, fr24, aviation):
        api = store.update_api(fr24.live.id, {"version": "2.0"}, category_ids=[aviation.id])
        assert api.version == "2.0"
        assert [c.name for c in api.categories] == ["Aviation"]


class TestEndpointsAndOperations:
    def test_endpoint_lineage(self, store, fr24):
        endpoint = store.get_endpoint(fr24.endpoint.id)
        assert endpoint.api.id == fr24.live.id
        assert endpoint.provider.id == fr24.provider.id
        assert [o.method for o in endpoint.operations] == ["GET"]

    def test_unknown_api(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.create_endpoint({"apiId": "missing", "name": "x", "path": "/x"})
        assert exc_info.value.fields == ["apiId"]

    def test_operation_view(self, store, fr24):
        operation = store.get_operation(fr24.operation.id)
        assert operation.endpoint.id == fr24.endpoint.id
        assert [p.name for p in operation.parameters] == ["bounds"]
        assert operation.response_schemas[0].schema_doc == {"type": "object"}

    def test_unknown_endpoint(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.create_operation({"endpointId": "missing", "method": "GET"})
        assert exc_info.value.fields == ["endpointId"]

    def test_update_operation(self, store, fr24):
        operation = store.update_operation(fr24.operation.id, {"method": "post", "cacheTime": 30})
        assert operation.method == "POST"
        assert operation.cache_time == 30

    def test_negative_cache_time(self, store, fr24):
        with pytest.raises(ValidationError) as exc_info:
            store.update_operation(fr24.operation.id, {"cacheTime": -1})
        assert exc_info.value.fields == ["cacheTime"]
        assert store.get_operation(fr24.operation.id).cache_time is None


class TestParametersAndSchemas:
    def test_unknown_operation(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.create_parameter(
                {"operationId": "missing", "name": "q", "type": "string", "location": "query"}
            )
        assert exc_info.value.fields == ["operationId"]

    def test_update_parameter(self, store, fr24):
        parameter = store.update_parameter(fr24.parameter.id, {"required": True, "example": "1,2,3,4"})
        assert parameter.required is True
        assert parameter.name == "bounds"

    def test_update_schema_document(self, store, fr24):
        schema = store.update_response_schema(
            fr24.schema.id, {"schema": {"type": "array"}, "example": [1, 2]}
        )
        assert schema.schema_doc == {"type": "array"}
        assert schema.example == [1, 2]
        assert schema.media_type == "application/json"

    def test_delete_leaves(self, store, fr24):
        store.delete_parameter(fr24.parameter.id)
        store.delete_response_schema(fr24.schema.id)
        assert store.list_parameters(fr24.operation.id) == []
        assert store.list_response_schemas(fr24.operation.id) == []


class TestReset:
    def test_reset_empties_catalog(self, store, fr24):
        store.reset()
        assert store.is_empty()
        assert store.list_apis() == []
        assert store.create_category({"name": "Aviation"}).name == "Aviation"


class TestSummary:
    def test_count_summary(self, store, fr24):
        store.create_provider(
            {"name": "FA", "shortCode": "FA", "websiteUrl": "https://x", "isActive": False}
        )
        summary = store.count_summary()
        assert summary.categories == 2
        assert summary.providers == 2
        assert summary.active_providers == 1
        assert summary.services == 1
        assert summary.apis == 2
        assert summary.endpoints == 1
        assert summary.operations == 1

    def test_is_empty(self, store):
        assert store.is_empty()
        store.create_category({"name": "Aviation"})
        assert not store.is_empty()
