"""CSV persistence for the photo catalog.

Records are keyed by `FilePath`. Hash columns are stored as written by the
fingerprint service so later duplicate runs can skip re-reading files.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
import csv
from datetime import datetime
import os
from pathlib import Path
import tempfile

from loguru import logger

from core.models import PhotoRecord
from core.services.interfaces import IPhotoStore

CSV_HEADERS = [
    "FilePath",
    "FileName",
    "FileSize",
    "Modified Date",
    "Capture Date",
    "Camera",
    "PixelWidth",
    "PixelHeight",
    "ContentHash",
    "StructuralFingerprint",
]

# Catalogs written before timestamps kept microseconds
LEGACY_DT_FMT = "%Y-%m-%d %H:%M:%S"


def _parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp from CSV, falling back to `LEGACY_DT_FMT`.

    Returns None if the value is empty or invalid.
    """
    if not value:
        return None
    value = value.strip()
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.strptime(value, LEGACY_DT_FMT)
    except ValueError:
        logger.warning("Invalid datetime: {}", value)
        return None


def _format_datetime(dt: datetime | None) -> str:
    return dt.isoformat() if dt else ""


def _to_row(item: PhotoRecord) -> dict[str, object]:
    return {
        "FilePath": item.file_path,
        "FileName": item.file_name,
        "FileSize": item.file_size_bytes,
        "Modified Date": _format_datetime(item.modified_date),
        "Capture Date": _format_datetime(item.capture_date),
        "Camera": item.camera or "",
        "PixelWidth": item.pixel_width if item.pixel_width is not None else "",
        "PixelHeight": item.pixel_height if item.pixel_height is not None else "",
        "ContentHash": item.content_hash or "",
        "StructuralFingerprint": item.structural_fingerprint or "",
    }


def _parse_optional_int(value: str | None) -> int | None:
    value = (value or "").strip()
    return int(value) if value else None


class CsvPhotoRepository(IPhotoStore):
    """Load and save photo records in CSV format."""

    def __init__(self, csv_path: str | Path) -> None:
        self._path = Path(csv_path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Iterator[PhotoRecord]:
        """Yield `PhotoRecord` rows; a missing catalog yields nothing."""
        if not self._path.exists():
            return
        with self._path.open("r", encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)
            missing = [h for h in CSV_HEADERS if h not in (reader.fieldnames or [])]
            if missing:
                raise ValueError(f"CSV missing required headers: {missing}")

            for row in reader:
                try:
                    file_path = row.get("FilePath", "") or ""
                    if not file_path:
                        raise ValueError("empty FilePath")
                    modified_date = _parse_datetime(row.get("Modified Date"))
                    if modified_date is None:
                        raise ValueError("missing Modified Date")
                    yield PhotoRecord(
                        file_path=file_path,
                        file_name=row.get("FileName", "") or "",
                        file_size_bytes=int(row.get("FileSize", "0") or 0),
                        modified_date=modified_date,
                        capture_date=_parse_datetime(row.get("Capture Date")),
                        camera=row.get("Camera") or None,
                        pixel_width=_parse_optional_int(row.get("PixelWidth")),
                        pixel_height=_parse_optional_int(row.get("PixelHeight")),
                        content_hash=row.get("ContentHash") or None,
                        structural_fingerprint=row.get("StructuralFingerprint") or None,
                    )
                except (ValueError, TypeError) as ex:
                    logger.error("CSV row error: {} | row={} ", ex, row)
                    continue

    def save(self, records: Iterable[PhotoRecord]) -> None:
        """Write `records` to the catalog using canonical headers.

        Rows are written to a temporary file beside the catalog, which then
        replaces it. An interrupted write leaves the previous catalog intact.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                writer = csv.DictWriter(f, fieldnames=CSV_HEADERS)
                writer.writeheader()
                for item in records:
                    writer.writerow(_to_row(item))
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def upsert_records(self, records: Iterable[PhotoRecord]) -> int:
        """Insert or replace records by file path, keeping existing order."""
        by_path = {r.file_path: r for r in self.load()}
        count = 0
        for record in records:
            by_path[record.file_path] = record
            count += 1
        self.save(by_path.values())
        logger.info("Upserted {} records into {}", count, self._path)
        return count

    def get_all_records_with_hashes(self) -> list[PhotoRecord]:
        """Return records that carry a content hash or structural fingerprint."""
        return [r for r in self.load() if r.has_hashes]

    def get_records_by_content_hash(self, content_hash: str) -> list[PhotoRecord]:
        """Return records whose content hash equals `content_hash`."""
        return [r for r in self.load() if r.content_hash == content_hash]

    def remove_records(self, paths: Iterable[str]) -> int:
        """Drop catalog rows for `paths`; return the number removed."""
        to_remove = set(paths)
        if not to_remove:
            return 0
        items = list(self.load())
        kept = [r for r in items if r.file_path not in to_remove]
        self.save(kept)
        return len(items) - len(kept)
