"""Configuration models for apivista."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

MEMORY_DATABASE = ":memory:"


class StorageSettings(BaseModel):
    """Where the catalog lives."""

    database: str = Field(
        default=MEMORY_DATABASE, description="DuckDB database file, or :memory:"
    )
    seed_sample_data: bool = Field(
        default=False, description="Load the bundled sample catalog when empty"
    )


class ExportSettings(BaseModel):
    """Export defaults."""

    default_format: Literal["json", "csv"] = Field(default="json")
    filename_stem: str = Field(default="api-catalog", min_length=1)


class ApiVistaConfig(BaseModel):
    """Root configuration model."""

    version: int = Field(default=1)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
