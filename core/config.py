"""Typed application configuration.

The configuration is built once at startup (see `infrastructure.settings`)
and each service receives the section it needs through its constructor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import hashlib

from core.models import RETENTION_STRATEGIES

# fmt: off
DEFAULT_SUPPORTED_EXTENSIONS: tuple[str, ...] = (
    # Standard formats
    ".jpg", ".jpeg", ".jpe", ".jfif",
    # Raw formats
    ".cr2", ".cr3", ".nef", ".nrw", ".arw", ".srf", ".sr2", ".orf", ".rw2",
    ".pef", ".ptx", ".raf", ".3fr", ".dcr", ".mrw", ".erf", ".mef", ".mos", ".x3f",
    # Adobe formats
    ".dng", ".psd", ".psb",
    # Other formats
    ".tiff", ".tif", ".png", ".webp", ".bmp", ".gif", ".ico", ".jp2", ".jpx",
    ".heic", ".heif",
    # Video formats (often contain metadata)
    ".mov", ".mp4", ".avi", ".mkv", ".mts", ".m2ts",
)
# fmt: on

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True)
class CatalogConfig:
    path: str = "photo-catalog.csv"


@dataclass(frozen=True)
class ExtractionConfig:
    supported_extensions: tuple[str, ...] = DEFAULT_SUPPORTED_EXTENSIONS
    skip_hidden: bool = True


@dataclass(frozen=True)
class DuplicateConfig:
    """Duplicate detection and removal settings.

    `hash_algorithm` names a `hashlib` algorithm. Stored content hashes are only
    comparable with hashes produced by the same algorithm.
    """

    hash_algorithm: str = "md5"
    chunk_size: int = 1024 * 1024
    default_strategy: str = "keep-newest"
    report_group_limit: int = 10


@dataclass(frozen=True)
class DeleteConfig:
    use_trash: bool = False
    audit_log_dir: str | None = None


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    dir: str | None = None
    console: bool = True


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object."""

    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    duplicates: DuplicateConfig = field(default_factory=DuplicateConfig)
    delete: DeleteConfig = field(default_factory=DeleteConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> list[str]:
        """Return a list of configuration problems; empty when valid."""
        errors: list[str] = []
        if not self.catalog.path:
            errors.append("Catalog path is required")
        if self.duplicates.chunk_size <= 0:
            errors.append("Hash chunk size must be greater than 0")
        algorithm = self.duplicates.hash_algorithm
        # shake_* digests need an explicit length
        if algorithm not in hashlib.algorithms_available or algorithm.startswith("shake_"):
            errors.append(f"Unknown hash algorithm: {self.duplicates.hash_algorithm}")
        if self.duplicates.default_strategy not in RETENTION_STRATEGIES:
            errors.append(
                f"Default strategy must be one of: {', '.join(RETENTION_STRATEGIES)}"
            )
        if self.duplicates.report_group_limit <= 0:
            errors.append("Report group limit must be greater than 0")
        if self.logging.level.upper() not in LOG_LEVELS:
            errors.append(f"Log level must be one of: {', '.join(LOG_LEVELS)}")
        return errors
