from __future__ import annotations

from datetime import datetime

import pytest

from core.models import PhotoRecord


@pytest.fixture
def make_record():
    """Factory for `PhotoRecord` with sensible defaults."""

    def _make(
        path: str = "/photos/a.jpg",
        size: int = 1000,
        modified: datetime | None = None,
        **kwargs,
    ) -> PhotoRecord:
        return PhotoRecord(
            file_path=path,
            file_size_bytes=size,
            modified_date=modified or datetime(2025, 1, 15, 14, 30),
            **kwargs,
        )

    return _make
