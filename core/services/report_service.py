"""Plain-text rendering of detection and removal results."""

from __future__ import annotations

from core.models import DetectionResult, RemovalOutcome

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")
DEFAULT_GROUP_LIMIT = 10


def format_file_size(size_bytes: float) -> str:
    """Format a byte count with one decimal, e.g. 1536 -> "1.5 KB"."""
    size = float(size_bytes)
    unit_index = 0
    while size >= 1024 and unit_index < len(SIZE_UNITS) - 1:
        size /= 1024
        unit_index += 1
    return f"{size:.1f} {SIZE_UNITS[unit_index]}"


def generate_report(result: DetectionResult, group_limit: int = DEFAULT_GROUP_LIMIT) -> str:
    """Render a detection result as a human-readable report.

    Groups are listed in result order (largest first) up to `group_limit`;
    the first file of each group is marked as the original.
    """
    lines: list[str] = []
    lines.append("DUPLICATE DETECTION REPORT")
    lines.append("=" * 50)
    lines.append("")

    lines.append("SUMMARY")
    lines.append(f"Total files analyzed: {result.total_files:,}")
    lines.append(f"Unique files: {result.unique_files:,}")
    lines.append(f"Duplicate files: {result.total_duplicates:,}")
    lines.append(f"Duplicate groups: {len(result.duplicate_groups):,}")
    lines.append(f"Wasted space: {format_file_size(result.total_wasted_space)}")
    lines.append(f"Detection time: {result.duration_ms / 1000:.1f}s")
    if result.cancelled:
        lines.append("Detection was cancelled before completion.")
    lines.append("")

    if not result.duplicate_groups:
        lines.append("No duplicates found!")
        return "\n".join(lines)

    lines.append("DUPLICATE GROUPS")
    lines.append("-" * 30)
    for index, group in enumerate(result.duplicate_groups[:group_limit], start=1):
        lines.append("")
        lines.append(f"Group {index} ({group.kind} hash: {group.hash[:8]}...)")
        lines.append(f"  Files: {len(group.files)}, Duplicates: {group.duplicate_count}")
        lines.append(f"  Total size: {format_file_size(group.total_size)}")
        lines.append("  Files:")
        for file_index, record in enumerate(group.files):
            marker = "*" if file_index == 0 else "-"
            date_str = (
                record.capture_date.strftime("%Y-%m-%d") if record.capture_date else "Unknown date"
            )
            lines.append(
                f"    {marker} {record.file_name} "
                f"({format_file_size(record.file_size_bytes)}, {date_str})"
            )
            lines.append(f"      {record.file_path}")

    remaining = len(result.duplicate_groups) - group_limit
    if remaining > 0:
        lines.append("")
        lines.append(f"... and {remaining} more duplicate groups")
    return "\n".join(lines)


def generate_removal_report(outcome: RemovalOutcome) -> str:
    """Render a removal outcome; wording follows dry-run vs. live mode."""
    dry = outcome.dry_run
    lines = [
        f"Duplicate Removal {'Preview' if dry else 'Report'}",
        f"Strategy: {outcome.strategy}",
        f"{'Would remove' if dry else 'Removed'}: {len(outcome.removed)} files",
        f"{'Would save' if dry else 'Saved'}: {format_file_size(outcome.saved_space)}",
    ]
    if outcome.cancelled:
        lines.append("Removal was cancelled before completion.")
    lines.append("")
    lines.append(f"{'Files that would be removed' if dry else 'Removed files'}:")
    lines.extend(f"  - {path}" for path in outcome.removed)
    if outcome.errors:
        lines.append("")
        lines.append(f"Errors ({len(outcome.errors)}):")
        lines.extend(f"  - {error}" for error in outcome.errors)
    return "\n".join(lines)
