"""Locate, read and write apivista.yaml."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import MEMORY_DATABASE, ApiVistaConfig

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Resolve apivista configuration for a project directory.

    The project's ``apivista.yaml`` wins over the user-level one in
    ``~/.apivista``. A relative ``storage.database`` is taken relative to the
    file that names it, so a project config keeps its catalog next to itself
    whatever the working directory.
    """

    CONFIG_FILENAME = "apivista.yaml"
    USER_CONFIG_DIR = Path.home() / ".apivista"

    def __init__(self, project_path: Path | None = None):
        self._project_path = project_path or Path.cwd()
        self.source: Path | None = None

    def candidates(self) -> list[Path]:
        return [
            self._project_path / self.CONFIG_FILENAME,
            self.USER_CONFIG_DIR / self.CONFIG_FILENAME,
        ]

    def get_config_path(self) -> Path | None:
        return next((path for path in self.candidates() if path.exists()), None)

    def target_path(self, user_level: bool = False) -> Path:
        """Where ``save`` writes: the project file, or the user-level one."""
        return self.candidates()[1 if user_level else 0]

    def load(self) -> ApiVistaConfig:
        """Load configuration, falling back to defaults.

        A missing file is silent; an unreadable or invalid one is logged and
        ignored. ``source`` records the file that was used, if any.
        """
        self.source = None
        config_path = self.get_config_path()
        if config_path is None:
            logger.debug("No apivista.yaml found, using defaults")
            return ApiVistaConfig()

        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            config = ApiVistaConfig.model_validate(data)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            logger.warning(f"Ignoring config {config_path}: {e}")
            return ApiVistaConfig()

        database = config.storage.database
        if database != MEMORY_DATABASE and not Path(database).is_absolute():
            config.storage.database = str(config_path.parent / database)

        self.source = config_path
        logger.debug(f"Loaded config from {config_path}")
        return config

    def save(self, config: ApiVistaConfig, user_level: bool = False) -> Path:
        """Write ``config`` as YAML and return the file written."""
        config_path = self.target_path(user_level)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(
            yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False),
            encoding="utf-8",
        )
        logger.info(f"Wrote config to {config_path}")
        return config_path


def load_config(project_path: Path | str | None = None) -> ApiVistaConfig:
    path = Path(project_path) if project_path else None
    return ConfigLoader(path).load()
