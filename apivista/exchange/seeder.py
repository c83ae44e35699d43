"""Load a catalog document (YAML) into the store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..errors import FieldError, ValidationError
from ..models import CatalogSummary
from ..store import CatalogStore

logger = logging.getLogger(__name__)

SAMPLE_CATALOG = Path(__file__).resolve().parent.parent / "data" / "sample_catalog.yaml"

DOCUMENT = "catalog document"

# Child lists each entry kind may nest.
NESTED_KEYS: dict[str, tuple[str, ...]] = {
    "providers": ("environments", "services"),
    "services": ("apis",),
    "apis": ("endpoints",),
    "endpoints": ("operations",),
    "operations": ("parameters", "responseSchemas"),
}

TAGGED_KEYS = ("providers", "apis")


@dataclass
class DocumentCheck:
    """Structural checks run over a whole document before anything is written.

    Every list must hold mappings, category names must resolve against the
    stored categories plus the document's own, and provider short codes must
    be free in both.
    """

    category_names: set[str]
    short_codes: set[str]
    errors: list[FieldError] = field(default_factory=list)

    def run(self, document: dict[str, Any]) -> None:
        for entry in self.entries(document, "categories", ""):
            name = entry.get("name")
            if isinstance(name, str):
                self.category_names.add(name)
        self.entries(document, "providers", "")

    def entries(self, parent: dict[str, Any], key: str, path: str) -> list[dict[str, Any]]:
        items = parent.get(key) or []
        if not isinstance(items, list):
            self.errors.append(FieldError(f"{path}{key}", "Expected a list"))
            return []

        valid = []
        for index, entry in enumerate(items):
            where = f"{path}{key}[{index}]"
            if not isinstance(entry, dict):
                self.errors.append(FieldError(where, "Expected a mapping"))
                continue
            valid.append(entry)
            if key == "providers":
                self._check_short_code(entry, where)
            if key in TAGGED_KEYS:
                self._check_categories(entry, where)
            for child in NESTED_KEYS.get(key, ()):
                self.entries(entry, child, f"{where}.")
        return valid

    def _check_short_code(self, entry: dict[str, Any], where: str) -> None:
        code = entry.get("shortCode", entry.get("short_code"))
        if not isinstance(code, str):
            return
        if code in self.short_codes:
            self.errors.append(
                FieldError(f"{where}.shortCode", f"Short code '{code}' is already in use")
            )
        self.short_codes.add(code)

    def _check_categories(self, entry: dict[str, Any], where: str) -> None:
        names = entry.get("categories")
        if names is None:
            return
        if not isinstance(names, list):
            self.errors.append(FieldError(f"{where}.categories", "Expected a list of names"))
            return
        unknown = [
            str(name)
            for name in names
            if not isinstance(name, str) or name not in self.category_names
        ]
        if unknown:
            self.errors.append(
                FieldError(f"{where}.categories", f"Unknown categories: {', '.join(unknown)}")
            )


class CatalogSeeder:
    """Create catalog entities from a nested document.

    The document holds a ``categories`` list and a ``providers`` list. Each
    provider may nest ``environments`` and ``services``; services nest
    ``apis``, then ``endpoints``, ``operations``, and finally ``parameters``
    and ``responseSchemas``. Providers and APIs reference categories by name
    through a ``categories`` list. Parent IDs are filled in while walking
    down, so nested entries never carry them.

    The whole document is checked first (shape, category names, short codes),
    so those failures leave the catalog untouched. Categories whose name is
    already stored are reused rather than created again. Field validation
    still happens per entity through the store's public create operations;
    entities created before such a failure remain.
    """

    def __init__(self, store: CatalogStore):
        self._store = store

    def seed_sample_catalog(self) -> CatalogSummary:
        """Load the bundled aviation sample catalog."""
        return self.seed_from_file(SAMPLE_CATALOG)

    def seed_from_file(self, path: Path | str) -> CatalogSummary:
        """Load a catalog YAML file.

        Args:
            path: Path to the YAML document.

        Returns:
            Entity totals after seeding.

        Raises:
            ValidationError: If the file is not valid YAML or the document
                fails validation.
        """
        path = Path(path)
        with open(path, encoding="utf-8") as f:
            try:
                document = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValidationError.single(DOCUMENT, "__root__", f"Invalid YAML: {e}") from e
        logger.info(f"Seeding catalog from: {path}")
        return self.seed(document or {})

    def seed(self, document: dict[str, Any]) -> CatalogSummary:
        if not isinstance(document, dict):
            raise ValidationError.single(DOCUMENT, "__root__", "Expected a mapping")

        category_ids = {c.name: c.id for c in self._store.list_categories()}
        check = DocumentCheck(
            category_names=set(category_ids),
            short_codes={p.short_code for p in self._store.list_providers()},
        )
        check.run(document)
        if check.errors:
            raise ValidationError(DOCUMENT, check.errors)

        for entry in document.get("categories") or []:
            name = entry.get("name")
            if isinstance(name, str) and name in category_ids:
                logger.debug(f"Reusing existing category: {name}")
                continue
            category = self._store.create_category(entry)
            category_ids[category.name] = category.id

        for entry in document.get("providers") or []:
            self._seed_provider(dict(entry), category_ids)

        summary = self._store.count_summary()
        logger.info(
            f"Seeded catalog: {summary.categories} categories, "
            f"{summary.providers} providers, {summary.apis} APIs"
        )
        return summary

    def _seed_provider(self, entry: dict[str, Any], category_ids: dict[str, str]) -> None:
        environments = entry.pop("environments", None) or []
        services = entry.pop("services", None) or []
        tags = self._resolve_categories(entry.pop("categories", None), category_ids)

        provider = self._store.create_provider(entry, category_ids=tags)
        for environment in environments:
            self._store.create_environment({**environment, "providerId": provider.id})
        for service in services:
            self._seed_service(dict(service), provider.id, category_ids)

    def _seed_service(
        self, entry: dict[str, Any], provider_id: str, category_ids: dict[str, str]
    ) -> None:
        apis = entry.pop("apis", None) or []
        service = self._store.create_service({**entry, "providerId": provider_id})
        for api in apis:
            self._seed_api(dict(api), service.id, category_ids)

    def _seed_api(self, entry: dict[str, Any], service_id: str, category_ids: dict[str, str]) -> None:
        endpoints = entry.pop("endpoints", None) or []
        tags = self._resolve_categories(entry.pop("categories", None), category_ids)

        api = self._store.create_api({**entry, "serviceId": service_id}, category_ids=tags)
        for endpoint in endpoints:
            endpoint = dict(endpoint)
            operations = endpoint.pop("operations", None) or []
            created = self._store.create_endpoint({**endpoint, "apiId": api.id})
            for operation in operations:
                self._seed_operation(dict(operation), created.id)

    def _seed_operation(self, entry: dict[str, Any], endpoint_id: str) -> None:
        parameters = entry.pop("parameters", None) or []
        schemas = entry.pop("responseSchemas", None) or []

        operation = self._store.create_operation({**entry, "endpointId": endpoint_id})
        for parameter in parameters:
            self._store.create_parameter({**parameter, "operationId": operation.id})
        for schema in schemas:
            self._store.create_response_schema({**schema, "operationId": operation.id})

    @staticmethod
    def _resolve_categories(
        names: list[str] | None, category_ids: dict[str, str]
    ) -> list[str] | None:
        # Names were checked against category_ids before seeding started.
        if names is None:
            return None
        return [category_ids[name] for name in names]
