"""Metadata extraction from photo files (filesystem and EXIF).

Extraction is best-effort: files Pillow cannot decode (videos, most RAW
formats) still produce a record from filesystem properties alone. Only a
failure to stat the file is reported as an error.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
import os
from typing import Any

from PIL import Image
from loguru import logger
from pillow_heif import register_heif_opener

from core.config import ExtractionConfig
from core.models import PhotoRecord
from core.services.interfaces import ExtractionBatch, IMetadataExtractor

register_heif_opener()

# EXIF tags
_TAG_MAKE = 271
_TAG_MODEL = 272
_TAG_DATETIME = 306
_TAG_DATETIME_ORIGINAL = 36867
_EXIF_IFD = 0x8769


def parse_exif_datetime(value: Any) -> datetime | None:
    """Parse an EXIF timestamp such as "2024:05:01 10:20:30"; None on failure."""
    if not value:
        return None
    val_str = str(value).strip().rstrip("\x00")
    try:
        if len(val_str) >= 19 and val_str[4] == ":" and val_str[7] == ":":
            return datetime.strptime(val_str[:19], "%Y:%m:%d %H:%M:%S")
        return datetime.fromisoformat(val_str.replace("/", "-"))
    except ValueError:
        logger.debug("Unparseable EXIF datetime: {}", val_str)
        return None


def format_camera(make: Any, model: Any) -> str | None:
    """Join make and model, dropping the make when the model already has it."""
    make_str = str(make).strip().rstrip("\x00") if make else ""
    model_str = str(model).strip().rstrip("\x00") if model else ""
    if make_str and model_str:
        if model_str.lower().startswith(make_str.lower()):
            return model_str
        return f"{make_str} {model_str}"
    return make_str or model_str or None


class MetadataExtractor(IMetadataExtractor):
    """Reads file properties and EXIF into `PhotoRecord` objects."""

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self._config = config or ExtractionConfig()
        self._extensions = {e.lower() for e in self._config.supported_extensions}

    def is_supported_file(self, path: str) -> bool:
        """Return True if `path` has a supported extension."""
        return os.path.splitext(path)[1].lower() in self._extensions

    def get_photo_files(self, directory: str) -> list[str]:
        """Recursively list supported files under `directory`, sorted.

        Raises:
            OSError: If `directory` cannot be read.
        """
        files: list[str] = []
        with os.scandir(directory) as entries:
            for entry in entries:
                if self._config.skip_hidden and entry.name.startswith("."):
                    continue
                if entry.is_dir(follow_symlinks=False):
                    files.extend(self.get_photo_files(entry.path))
                elif entry.is_file() and self.is_supported_file(entry.path):
                    files.append(os.path.abspath(entry.path))
        return sorted(files)

    def _read_image_fields(self, path: str) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        try:
            with Image.open(path) as im:
                fields["pixel_width"], fields["pixel_height"] = im.size
                exif = im.getexif()
                if exif:
                    ifd = exif.get_ifd(_EXIF_IFD)
                    fields["capture_date"] = parse_exif_datetime(
                        ifd.get(_TAG_DATETIME_ORIGINAL) or exif.get(_TAG_DATETIME)
                    )
                    fields["camera"] = format_camera(exif.get(_TAG_MAKE), exif.get(_TAG_MODEL))
        except (OSError, ValueError, TypeError, Image.DecompressionBombError) as ex:
            logger.debug("Image read failed for {}: {}", path, ex)
        return fields

    def extract_metadata(self, path: str) -> PhotoRecord:
        """Extract a record for `path`.

        Raises:
            OSError: If the file cannot be stat'ed.
        """
        st = os.stat(path)
        return PhotoRecord(
            file_path=os.path.abspath(path),
            file_size_bytes=int(st.st_size),
            modified_date=datetime.fromtimestamp(st.st_mtime),
            **self._read_image_fields(path),
        )

    def extract_batch_metadata(self, paths: Iterable[str]) -> ExtractionBatch:
        """Extract records for `paths`, collecting failures as messages."""
        batch = ExtractionBatch()
        for path in paths:
            try:
                batch.records.append(self.extract_metadata(path))
            except OSError as ex:
                logger.warning("Metadata extraction failed for {}: {}", path, ex)
                batch.errors.append(f"Failed to extract metadata from {path}: {ex}")
        return batch
