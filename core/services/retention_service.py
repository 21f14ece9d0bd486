"""Retention selection and duplicate removal.

A retention strategy orders the members of each duplicate group; the first
member survives and the rest are removed. Removal can be simulated (dry run)
or executed against the filesystem, with failures collected per file.
"""

from __future__ import annotations

from collections.abc import Iterable
import os

from loguru import logger

from core.models import RETENTION_STRATEGIES, DuplicateGroup, PhotoRecord, RemovalOutcome
from core.services.interfaces import (
    CancelCheck,
    GroupRemovalPlan,
    IFileDeleter,
    ProgressCallback,
    RemovalPlan,
)


def check_strategy(strategy: str) -> None:
    """Raise `ValueError` if `strategy` is not a known retention strategy."""
    if strategy not in RETENTION_STRATEGIES:
        raise ValueError(
            f"Unknown retention strategy: {strategy!r} "
            f"(expected one of: {', '.join(RETENTION_STRATEGIES)})"
        )


def order_for_retention(files: Iterable[PhotoRecord], strategy: str) -> list[PhotoRecord]:
    """Return `files` ordered so the survivor comes first.

    Ties keep their input order. The input list is not modified.
    """
    check_strategy(strategy)
    if strategy == "keep-newest":
        return sorted(files, key=lambda r: r.modified_date, reverse=True)
    if strategy == "keep-largest":
        return sorted(files, key=lambda r: r.file_size_bytes, reverse=True)
    return list(files)


class _UnlinkDeleter(IFileDeleter):
    def delete_file(self, path: str) -> None:
        os.remove(path)


class DuplicateRemover:
    """Applies a retention strategy to duplicate groups."""

    def __init__(self, deleter: IFileDeleter | None = None) -> None:
        self._deleter = deleter or _UnlinkDeleter()

    def plan_removal(self, groups: Iterable[DuplicateGroup], strategy: str) -> RemovalPlan:
        """Decide the survivor of each group without touching any file.

        Groups with one member or fewer are skipped.
        """
        check_strategy(strategy)
        planned: list[GroupRemovalPlan] = []
        for group in groups:
            if len(group.files) <= 1:
                continue
            keep, *remove = order_for_retention(group.files, strategy)
            planned.append(
                GroupRemovalPlan(hash=group.hash, kind=group.kind, keep=keep, remove=remove)
            )
        return RemovalPlan(strategy=strategy, groups=planned)

    def execute_plan(
        self,
        plan: RemovalPlan,
        dry_run: bool = True,
        on_progress: ProgressCallback | None = None,
        should_cancel: CancelCheck | None = None,
    ) -> RemovalOutcome:
        """Delete (or simulate deleting) every file the plan marks for removal.

        A failed deletion is recorded in `errors` and processing moves on.
        """
        outcome = RemovalOutcome(strategy=plan.strategy, dry_run=dry_run)
        total = plan.total_removals
        processed = 0

        for group_plan in plan.groups:
            for record in group_plan.remove:
                if should_cancel is not None and should_cancel():
                    logger.info("Removal cancelled after {}/{} files", processed, total)
                    outcome.cancelled = True
                    return outcome

                processed += 1
                if on_progress is not None:
                    on_progress(processed, total, record.file_name)

                if not dry_run:
                    try:
                        self._deleter.delete_file(record.file_path)
                    except OSError as ex:
                        logger.error("Remove failed for {}: {}", record.file_path, ex)
                        outcome.errors.append(f"Failed to remove {record.file_path}: {ex}")
                        continue
                    logger.debug(
                        "Removed {} (kept {})", record.file_path, group_plan.keep.file_path
                    )

                outcome.removed.append(record.file_path)
                outcome.saved_space += record.file_size_bytes

        logger.info(
            "{} {} files using {} ({} bytes, {} errors)",
            "Would remove" if dry_run else "Removed",
            len(outcome.removed),
            plan.strategy,
            outcome.saved_space,
            len(outcome.errors),
        )
        return outcome

    def remove_duplicates(
        self,
        groups: Iterable[DuplicateGroup],
        strategy: str = "keep-newest",
        dry_run: bool = True,
        on_progress: ProgressCallback | None = None,
        should_cancel: CancelCheck | None = None,
    ) -> RemovalOutcome:
        """Plan and execute removal for `groups` under `strategy`.

        Raises:
            ValueError: If `strategy` is unknown; nothing is deleted in that case.
        """
        plan = self.plan_removal(groups, strategy)
        return self.execute_plan(
            plan, dry_run=dry_run, on_progress=on_progress, should_cancel=should_cancel
        )
