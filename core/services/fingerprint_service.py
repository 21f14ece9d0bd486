"""Content hash and structural fingerprint computation.

The content hash is a digest of the full file bytes and drives exact duplicate
detection. The structural fingerprint is a short digest over dimensions,
capture date, camera and size; equal fingerprints only suggest that two files
are the same photo.
"""

from __future__ import annotations

from collections.abc import Iterable
import dataclasses
import hashlib

from loguru import logger

from core.config import DuplicateConfig
from core.models import PhotoRecord
from core.services.interfaces import CancelCheck

STRUCTURAL_FINGERPRINT_LENGTH = 16
_FIELD_SEPARATOR = "|"


def compute_structural_fingerprint(record: PhotoRecord) -> str | None:
    """Return the 16-hex-character structural fingerprint of `record`.

    Returns None when the pixel width or height is unknown.
    """
    if not record.pixel_width or not record.pixel_height:
        return None
    components = [
        str(record.pixel_width),
        str(record.pixel_height),
        record.capture_date.isoformat() if record.capture_date else "",
        record.camera or "",
        str(record.file_size_bytes),
    ]
    joined = _FIELD_SEPARATOR.join(components).encode("utf-8")
    return hashlib.md5(joined).hexdigest()[:STRUCTURAL_FINGERPRINT_LENGTH]


class FingerprintService:
    """Decorates photo records with duplicate-detection hashes."""

    def __init__(self, config: DuplicateConfig | None = None) -> None:
        self._config = config or DuplicateConfig()

    def compute_content_hash(self, path: str) -> str:
        """Hash the full contents of `path` as lowercase hex.

        Raises:
            OSError: If the file cannot be read.
        """
        digest = hashlib.new(self._config.hash_algorithm)
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(self._config.chunk_size), b""):
                digest.update(chunk)
        return digest.hexdigest()

    def enrich_record(self, record: PhotoRecord) -> PhotoRecord:
        """Return a copy of `record` with whatever hashes are computable.

        A record that already carries a content hash is not re-read. If the
        file cannot be read, both hash fields are left unset.
        """
        if record.content_hash:
            if record.structural_fingerprint:
                return record
            return dataclasses.replace(
                record, structural_fingerprint=compute_structural_fingerprint(record)
            )
        try:
            content_hash = self.compute_content_hash(record.file_path)
        except OSError as ex:
            logger.warning("Hashing failed for {}: {}", record.file_path, ex)
            return dataclasses.replace(record, content_hash=None, structural_fingerprint=None)
        return dataclasses.replace(
            record,
            content_hash=content_hash,
            structural_fingerprint=compute_structural_fingerprint(record),
        )

    def enrich(
        self, records: Iterable[PhotoRecord], should_cancel: CancelCheck | None = None
    ) -> list[PhotoRecord]:
        """Enrich `records` in order, one file at a time.

        Stops early and returns the records enriched so far when
        `should_cancel` returns True.
        """
        enriched: list[PhotoRecord] = []
        for record in records:
            if should_cancel is not None and should_cancel():
                logger.info("Hashing cancelled after {} records", len(enriched))
                break
            enriched.append(self.enrich_record(record))
        return enriched
