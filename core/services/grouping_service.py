"""Grouping of enriched records into exact and structural duplicate groups."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from core.models import DuplicateGroup, HashKind, PhotoRecord


def _group_by(
    records: Iterable[PhotoRecord],
    key: Callable[[PhotoRecord], str | None],
    kind: HashKind,
) -> list[DuplicateGroup]:
    # dict keeps first-seen order for buckets and members
    buckets: dict[str, list[PhotoRecord]] = {}
    for record in records:
        value = key(record)
        if not value:
            continue
        buckets.setdefault(value, []).append(record)

    groups = [
        DuplicateGroup(hash=value, kind=kind, files=files)
        for value, files in buckets.items()
        if len(files) > 1
    ]
    groups.sort(key=lambda g: g.total_size, reverse=True)
    return groups


def find_exact_duplicates(records: Iterable[PhotoRecord]) -> list[DuplicateGroup]:
    """Group records by content hash, largest total size first."""
    return _group_by(records, lambda r: r.content_hash, "exact")


def find_similar_files(records: Iterable[PhotoRecord]) -> list[DuplicateGroup]:
    """Group records by structural fingerprint, largest total size first."""
    return _group_by(records, lambda r: r.structural_fingerprint, "structural")


def merge_groups(
    exact: list[DuplicateGroup], structural: list[DuplicateGroup]
) -> list[DuplicateGroup]:
    """Combine both views, giving exact groups precedence.

    A structural group is dropped when any of its members already belongs to
    an exact group, so no file is reported under two hash kinds.
    """
    exact_paths = {f.file_path for g in exact for f in g.files}
    merged = list(exact)
    for group in structural:
        if any(f.file_path in exact_paths for f in group.files):
            continue
        merged.append(group)
    return merged
