"""Core service interfaces and shared data structures.

This module defines the callback types, the removal plan dataclasses, and the
collaborator interfaces (metadata extraction, catalog storage, deletion) that
the duplicate services are written against.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from core.models import HashKind, PhotoRecord

ProgressCallback = Callable[[int, int, str], None]
CancelCheck = Callable[[], bool]


@dataclass
class ExtractionBatch:
    """Outcome of extracting metadata for a batch of paths.

    Attributes:
        records: Successfully extracted records, in input order.
        errors: Human-readable failure descriptions.
    """

    records: list[PhotoRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class GroupRemovalPlan:
    """Retention decision for a single duplicate group.

    Attributes:
        hash: Shared hash of the group.
        kind: Hash kind of the group.
        keep: Surviving record.
        remove: Records to delete, in deletion order.
    """

    hash: str
    kind: HashKind
    keep: PhotoRecord
    remove: list[PhotoRecord]


@dataclass
class RemovalPlan:
    """Planned removal across all groups for one strategy."""

    strategy: str
    groups: list[GroupRemovalPlan]

    @property
    def total_removals(self) -> int:
        return sum(len(g.remove) for g in self.groups)


class IMetadataExtractor:
    """Interface for turning file paths into photo records."""

    def extract_batch_metadata(self, paths: Iterable[str]) -> ExtractionBatch:
        """Extract records for `paths`; failures are reported, not raised."""
        raise NotImplementedError


class IPhotoStore:
    """Interface for the photo catalog storage."""

    def get_all_records_with_hashes(self) -> list[PhotoRecord]:
        """Return records that carry at least one hash field."""
        raise NotImplementedError

    def upsert_records(self, records: Iterable[PhotoRecord]) -> int:
        """Insert or replace records keyed by file path; return count written."""
        raise NotImplementedError


class IFileDeleter:
    """Interface for the file deletion primitive."""

    def delete_file(self, path: str) -> None:
        """Delete `path`, raising `OSError` on failure."""
        raise NotImplementedError
