import pytest

from apivista import ValidationError


class TestSearch:
    def test_matches_across_types(self, store, fr24):
        results = store.search("flight")

        assert [p.id for p in results.providers] == [fr24.provider.id]
        assert [s.id for s in results.services] == [fr24.service.id]
        assert [a.id for a in results.apis] == [fr24.live.id, fr24.history.id]
        assert [o.id for o in results.operations] == [fr24.operation.id]

    def test_case_insensitive(self, store, fr24):
        assert store.search("FR24").providers[0].short_code == "FR24"
        assert store.search("fr24").total == store.search("FR24").total

    def test_operation_method_matches(self, store, fr24):
        results = store.search("get")
        assert [o.method for o in results.operations] == ["GET"]

    def test_website_matches_provider_only(self, store, fr24):
        results = store.search("flightradar24.com")
        assert [p.id for p in results.providers] == [fr24.provider.id]
        assert results.services == []
        assert results.apis == []

    def test_null_fields_never_match(self, store, fr24):
        assert store.search("none").is_empty()

    def test_no_matches(self, store, fr24):
        assert store.search("zeppelin").is_empty()

    def test_wildcards_are_literal(self, store, fr24):
        assert store.search("%").is_empty()
        assert store.search("_").total == 0

    def test_results_carry_relations(self, store, fr24):
        results = store.search("live flights")
        api = results.apis[0]
        assert api.provider.short_code == "FR24"
        assert api.service.name == "flight-tracking"
        assert results.operations[0].endpoint.path == "/flights"

    def test_query_is_stripped(self, store, fr24):
        assert store.search("  fr24  ").total == 1

    @pytest.mark.parametrize("query", ["", "   "])
    def test_empty_query_rejected(self, store, query):
        with pytest.raises(ValidationError) as exc_info:
            store.search(query)
        assert exc_info.value.fields == ["q"]
