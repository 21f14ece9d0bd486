"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.config import (
    AppConfig,
    CatalogConfig,
    DeleteConfig,
    DuplicateConfig,
    ExtractionConfig,
    LoggingConfig,
)


class JsonSettings:
    """Lightweight JSON settings reader with dotted-key access."""

    def __init__(self, settings_path: str | Path) -> None:
        self._path = Path(settings_path)
        if not self._path.exists():
            raise FileNotFoundError(f"settings file not found: {self._path}")
        with self._path.open("r", encoding="utf-8") as f:
            self._data = json.load(f)

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node


def config_from_settings(settings: JsonSettings) -> AppConfig:
    """Build an `AppConfig`, falling back to defaults for absent keys."""
    defaults = AppConfig()

    extensions = settings.get("extraction.supported_extensions")
    if isinstance(extensions, list):
        supported = tuple(str(e).lower() for e in extensions)
    else:
        supported = defaults.extraction.supported_extensions

    return AppConfig(
        catalog=CatalogConfig(path=str(settings.get("catalog.path", defaults.catalog.path))),
        extraction=ExtractionConfig(
            supported_extensions=supported,
            skip_hidden=bool(
                settings.get("extraction.skip_hidden", defaults.extraction.skip_hidden)
            ),
        ),
        duplicates=DuplicateConfig(
            hash_algorithm=str(
                settings.get("duplicates.hash_algorithm", defaults.duplicates.hash_algorithm)
            ),
            chunk_size=int(settings.get("duplicates.chunk_size", defaults.duplicates.chunk_size)),
            default_strategy=str(
                settings.get("duplicates.default_strategy", defaults.duplicates.default_strategy)
            ),
            report_group_limit=int(
                settings.get(
                    "duplicates.report_group_limit", defaults.duplicates.report_group_limit
                )
            ),
        ),
        delete=DeleteConfig(
            use_trash=bool(settings.get("delete.use_trash", defaults.delete.use_trash)),
            audit_log_dir=settings.get("delete.audit_log_dir", defaults.delete.audit_log_dir),
        ),
        logging=LoggingConfig(
            level=str(settings.get("logging.level", defaults.logging.level)).upper(),
            dir=settings.get("logging.dir", defaults.logging.dir),
            console=bool(settings.get("logging.console", defaults.logging.console)),
        ),
    )


def load_config(settings_path: str | Path | None = None) -> AppConfig:
    """Load configuration from `settings_path`, or defaults when it is None.

    Raises:
        FileNotFoundError: If an explicit `settings_path` does not exist.
        ValueError: If the file is not valid JSON or the values fail validation.
    """
    if settings_path is None:
        config = AppConfig()
    else:
        try:
            config = config_from_settings(JsonSettings(settings_path))
        except json.JSONDecodeError as ex:
            raise ValueError(f"Invalid settings file {settings_path}: {ex}") from ex
    problems = config.validate()
    if problems:
        raise ValueError("Invalid configuration: " + "; ".join(problems))
    return config
