"""Core domain models for photo records, duplicate groups and run results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import os
from typing import Literal

HashKind = Literal["exact", "structural"]
RetentionStrategy = Literal["keep-first", "keep-newest", "keep-largest"]

RETENTION_STRATEGIES: tuple[str, ...] = ("keep-first", "keep-newest", "keep-largest")


@dataclass
class PhotoRecord:
    """A single cataloged photo, keyed by its absolute `file_path`."""

    file_path: str
    file_size_bytes: int
    modified_date: datetime
    file_name: str = ""
    capture_date: datetime | None = None
    camera: str | None = None
    pixel_width: int | None = None
    pixel_height: int | None = None
    # Filled by the fingerprint service
    content_hash: str | None = None
    structural_fingerprint: str | None = None

    def __post_init__(self) -> None:
        if not self.file_name:
            self.file_name = os.path.basename(self.file_path)

    @property
    def has_hashes(self) -> bool:
        """True when at least one duplicate-detection hash is present."""
        return bool(self.content_hash or self.structural_fingerprint)


@dataclass
class DuplicateGroup:
    """Records sharing one hash value of one kind.

    Member order is discovery order. Groups produced by the grouping service
    always hold at least two members.
    """

    hash: str
    kind: HashKind
    files: list[PhotoRecord] = field(default_factory=list)

    @property
    def total_size(self) -> int:
        return sum(f.file_size_bytes for f in self.files)

    @property
    def duplicate_count(self) -> int:
        # One member is treated as the original
        return max(len(self.files) - 1, 0)


@dataclass
class DetectionResult:
    """Aggregate outcome of one duplicate detection run.

    Attributes:
        total_files: Number of input records.
        unique_files: `total_files` minus all duplicate counts.
        duplicate_groups: Exact groups first, then structural ones.
        total_duplicates: Sum of `duplicate_count` over the groups.
        total_wasted_space: Average member size times duplicate count, summed.
        duration_ms: Wall-clock duration, never below 1.
        cancelled: Whether the run was stopped before grouping.
    """

    total_files: int
    unique_files: int
    duplicate_groups: list[DuplicateGroup]
    total_duplicates: int
    total_wasted_space: float
    duration_ms: int
    cancelled: bool = False


@dataclass
class RemovalOutcome:
    """Result of applying a retention strategy to duplicate groups.

    Attributes:
        removed: Paths deleted, or that would be deleted under dry-run.
        errors: One message per failed deletion.
        saved_space: Sum of sizes of the `removed` files.
        strategy: Retention strategy that was applied.
        dry_run: Whether the filesystem was left untouched.
        cancelled: Whether processing stopped before all files were handled.
        log_path: Optional path to the audit CSV written for a live run.
    """

    removed: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    saved_space: int = 0
    strategy: str = "keep-newest"
    dry_run: bool = True
    cancelled: bool = False
    log_path: str | None = None
