"""Duplicate detection orchestration.

Drives hashing and grouping end to end and computes the aggregate statistics
reported to callers.
"""

from __future__ import annotations

from collections.abc import Iterable
import time

from loguru import logger

from core.config import DuplicateConfig
from core.models import DetectionResult, DuplicateGroup, PhotoRecord
from core.services.fingerprint_service import FingerprintService
from core.services.grouping_service import (
    find_exact_duplicates,
    find_similar_files,
    merge_groups,
)
from core.services.interfaces import CancelCheck, ProgressCallback


def wasted_space(groups: Iterable[DuplicateGroup]) -> float:
    """Approximate reclaimable bytes: average member size times extra copies."""
    total = 0.0
    for group in groups:
        if not group.files:
            continue
        total += (group.total_size / len(group.files)) * group.duplicate_count
    return total


def _elapsed_ms(start_ns: int) -> int:
    return max(1, (time.perf_counter_ns() - start_ns) // 1_000_000)


class DuplicateDetector:
    """Finds exact and structural duplicates in a photo collection."""

    def __init__(
        self,
        config: DuplicateConfig | None = None,
        fingerprints: FingerprintService | None = None,
    ) -> None:
        """Create a DuplicateDetector.

        Args:
            config: Duplicate settings (defaults to `DuplicateConfig()`).
            fingerprints: Hashing service (defaults to one built from `config`).
        """
        self._config = config or DuplicateConfig()
        self._fingerprints = fingerprints or FingerprintService(self._config)

    def detect_duplicates(
        self,
        records: Iterable[PhotoRecord],
        on_progress: ProgressCallback | None = None,
        should_cancel: CancelCheck | None = None,
    ) -> DetectionResult:
        """Hash, group and summarize `records`.

        Individual unreadable files never fail the run; they simply take part
        in no group. If `should_cancel` fires during hashing the result is
        flagged `cancelled` and carries no groups.
        """
        start = time.perf_counter_ns()
        items = list(records)
        total = len(items)

        if on_progress is not None:
            on_progress(0, total, "hashing")
        enriched = self._fingerprints.enrich(items, should_cancel=should_cancel)

        if len(enriched) < total:
            return DetectionResult(
                total_files=total,
                unique_files=total,
                duplicate_groups=[],
                total_duplicates=0,
                total_wasted_space=0.0,
                duration_ms=_elapsed_ms(start),
                cancelled=True,
            )

        if on_progress is not None:
            on_progress(total, total, "grouping")
        exact = find_exact_duplicates(enriched)
        structural = find_similar_files(enriched)
        groups = merge_groups(exact, structural)

        total_duplicates = sum(g.duplicate_count for g in groups)
        result = DetectionResult(
            total_files=total,
            unique_files=total - total_duplicates,
            duplicate_groups=groups,
            total_duplicates=total_duplicates,
            total_wasted_space=wasted_space(groups),
            duration_ms=_elapsed_ms(start),
        )
        logger.info(
            "Detected {} duplicate groups ({} exact, {} structural) in {} files, {} ms",
            len(groups),
            sum(1 for g in groups if g.kind == "exact"),
            sum(1 for g in groups if g.kind == "structural"),
            total,
            result.duration_ms,
        )
        return result
