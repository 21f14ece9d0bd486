from __future__ import annotations

from datetime import datetime

import pytest

from core.models import DuplicateGroup
from core.services.retention_service import DuplicateRemover
from infrastructure.csv_repository import CSV_HEADERS, CsvPhotoRepository


@pytest.fixture
def repo(tmp_path):
    return CsvPhotoRepository(tmp_path / "catalog" / "photos.csv")


def test_missing_catalog_loads_empty(repo):
    assert list(repo.load()) == []
    assert repo.get_all_records_with_hashes() == []


def test_save_and_load_preserves_fields(repo, make_record):
    record = make_record(
        "/p/IMG_0001.jpg",
        2048,
        datetime(2025, 1, 15, 14, 30, 5),
        capture_date=datetime(2025, 1, 15, 12, 0),
        camera="Canon EOS 7D",
        pixel_width=5184,
        pixel_height=3456,
        content_hash="abc",
        structural_fingerprint="0123456789abcdef",
    )

    repo.save([record])

    assert list(repo.load()) == [record]


def test_upsert_replaces_by_path(repo, make_record):
    repo.save([make_record("/p/a.jpg", 1), make_record("/p/b.jpg", 2)])

    count = repo.upsert_records(
        [make_record("/p/b.jpg", 20, content_hash="h"), make_record("/p/c.jpg", 3)]
    )

    records = list(repo.load())
    assert count == 2
    assert [(r.file_path, r.file_size_bytes) for r in records] == [
        ("/p/a.jpg", 1),
        ("/p/b.jpg", 20),
        ("/p/c.jpg", 3),
    ]


def test_hash_queries(repo, make_record):
    repo.save(
        [
            make_record("/p/a.jpg", content_hash="h1"),
            make_record("/p/b.jpg", structural_fingerprint="s1"),
            make_record("/p/c.jpg"),
            make_record("/p/d.jpg", content_hash="h1"),
        ]
    )

    with_hashes = repo.get_all_records_with_hashes()
    by_hash = repo.get_records_by_content_hash("h1")

    assert [r.file_path for r in with_hashes] == ["/p/a.jpg", "/p/b.jpg", "/p/d.jpg"]
    assert [r.file_path for r in by_hash] == ["/p/a.jpg", "/p/d.jpg"]


def test_remove_records(repo, make_record):
    repo.save([make_record("/p/a.jpg"), make_record("/p/b.jpg")])

    assert repo.remove_records(["/p/a.jpg", "/p/zzz.jpg"]) == 1
    assert [r.file_path for r in repo.load()] == ["/p/b.jpg"]


def test_bad_rows_are_skipped(repo):
    repo.path.parent.mkdir(parents=True)
    header = ",".join(f'"{h}"' for h in CSV_HEADERS)
    repo.path.write_text(
        header + "\n"
        "/p/ok.jpg,ok.jpg,10,2025-01-01 00:00:00,,,,,h,\n"
        "/p/bad.jpg,bad.jpg,notanumber,2025-01-01 00:00:00,,,,,h,\n"
        "/p/nodate.jpg,nodate.jpg,10,,,,,,h,\n",
        encoding="utf-8",
    )

    assert [r.file_path for r in repo.load()] == ["/p/ok.jpg"]


def test_missing_headers_rejected(repo):
    repo.path.parent.mkdir(parents=True)
    repo.path.write_text("FilePath,FileSize\n/p/a.jpg,1\n", encoding="utf-8")

    with pytest.raises(ValueError, match="missing required headers"):
        list(repo.load())


def test_sub_second_modified_dates_survive_reload(repo, make_record):
    older = make_record("/p/older.jpg", 100, datetime(2025, 1, 1, 12, 0, 0, 100000))
    newer = make_record("/p/newer.jpg", 100, datetime(2025, 1, 1, 12, 0, 0, 900000))
    repo.save([newer, older])

    reloaded = list(repo.load())
    group = DuplicateGroup("h", "exact", reloaded)
    outcome = DuplicateRemover().remove_duplicates([group], "keep-newest", dry_run=True)

    assert reloaded == [newer, older]
    assert outcome.removed == ["/p/older.jpg"]


def test_legacy_timestamps_still_load(repo):
    repo.path.parent.mkdir(parents=True)
    header = ",".join(CSV_HEADERS)
    repo.path.write_text(
        header + "\n/p/a.jpg,a.jpg,10,2025-01-01 08:30:00,2024:bad,,,,h,\n",
        encoding="utf-8",
    )

    [record] = repo.load()

    assert record.modified_date == datetime(2025, 1, 1, 8, 30)
    assert record.capture_date is None


def test_failed_save_keeps_previous_catalog(repo, make_record):
    repo.save([make_record("/p/a.jpg")])

    def broken_records():
        yield make_record("/p/b.jpg")
        raise OSError("disk full")

    with pytest.raises(OSError, match="disk full"):
        repo.save(broken_records())

    assert [r.file_path for r in repo.load()] == ["/p/a.jpg"]
    assert [p.name for p in repo.path.parent.iterdir()] == ["photos.csv"]
