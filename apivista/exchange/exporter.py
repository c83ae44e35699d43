"""Whole-catalog export as a JSON document or a per-provider CSV table."""

from __future__ import annotations

import csv
import io
import json
import logging
from dataclasses import dataclass
from enum import Enum

from ..errors import ValidationError
from ..models import CatalogSnapshot
from ..store import CatalogStore

logger = logging.getLogger(__name__)

CSV_HEADER = ["Provider Name", "Short Code", "Website", "APIs Count", "Categories"]


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"

    @property
    def media_type(self) -> str:
        return "application/json" if self is ExportFormat.JSON else "text/csv"


@dataclass(frozen=True)
class ExportResult:
    """A rendered export ready to be written or served as an attachment."""

    filename: str
    media_type: str
    content: str

    @property
    def content_disposition(self) -> str:
        return f"attachment; filename={self.filename}"


class CatalogExporter:
    """Render a catalog snapshot in one of the supported formats."""

    def __init__(self, store: CatalogStore, filename_stem: str = "api-catalog"):
        self._store = store
        self._filename_stem = filename_stem

    def export(self, fmt: str | ExportFormat = ExportFormat.JSON) -> ExportResult:
        """Export the whole catalog.

        Args:
            fmt: ``json`` or ``csv``.

        Returns:
            ExportResult with filename, media type and rendered content.

        Raises:
            ValidationError: If the format is not supported.
        """
        try:
            export_format = ExportFormat(fmt)
        except ValueError:
            raise ValidationError.single(
                "export", "format", f"Unsupported export format: {fmt}"
            ) from None

        snapshot = self._store.export_snapshot()
        if export_format is ExportFormat.CSV:
            content = render_csv(snapshot)
        else:
            content = render_json(snapshot)

        filename = f"{self._filename_stem}.{export_format.value}"
        logger.info(
            f"Exported {len(snapshot.providers)} providers as {export_format.value} ({filename})"
        )
        return ExportResult(filename, export_format.media_type, content)


def render_json(snapshot: CatalogSnapshot) -> str:
    return json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False)


def render_csv(snapshot: CatalogSnapshot) -> str:
    """One row per provider: strings quoted, the API count left bare."""
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(CSV_HEADER)
    rows = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for provider in snapshot.providers:
        rows.writerow(
            [
                provider.name,
                provider.short_code,
                provider.website_url or "",
                len(provider.apis),
                ", ".join(category.name for category in provider.categories),
            ]
        )
    return buffer.getvalue()
