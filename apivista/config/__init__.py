"""Configuration module for apivista."""

from .loader import ConfigLoader, load_config
from .models import ApiVistaConfig, ExportSettings, StorageSettings

__all__ = [
    "ApiVistaConfig",
    "ConfigLoader",
    "ExportSettings",
    "StorageSettings",
    "load_config",
]
