from __future__ import annotations

import json

from loguru import logger
import pytest

from app.cli import main
from infrastructure.csv_repository import CsvPhotoRepository


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    # main() binds a sink to the captured stderr of the current test
    logger.remove()


@pytest.fixture
def library(tmp_path):
    photos = tmp_path / "photos"
    photos.mkdir()
    (photos / "a.jpg").write_bytes(b"same bytes")
    (photos / "b.jpg").write_bytes(b"same bytes")
    (photos / "c.jpg").write_bytes(b"different")
    return photos


def _run(catalog, *args):
    return main(["--catalog", str(catalog), *args])


def test_scan_then_report(tmp_path, library, capsys):
    catalog = tmp_path / "catalog.csv"
    report_path = tmp_path / "report.txt"

    assert _run(catalog, "scan", str(library)) == 0
    assert len(CsvPhotoRepository(catalog).get_all_records_with_hashes()) == 3

    assert _run(catalog, "duplicates", "--report", str(report_path)) == 0
    out = capsys.readouterr().out
    assert "Duplicate groups: 1" in out
    assert "Unique files: 2" in out
    assert "Duplicate groups: 1" in report_path.read_text(encoding="utf-8")


def test_remove_duplicates_dry_run_then_live(tmp_path, library, capsys):
    catalog = tmp_path / "catalog.csv"
    audit_dir = tmp_path / "audit"
    settings = tmp_path / "settings.json"
    settings.write_text(json.dumps({"delete": {"audit_log_dir": str(audit_dir)}}))
    _run(catalog, "scan", str(library))

    assert _run(catalog, "remove-duplicates", "--strategy", "keep-first", "--dry-run") == 0
    assert "Would remove: 1 files" in capsys.readouterr().out
    assert (library / "b.jpg").exists()

    code = main(
        [
            "--config",
            str(settings),
            "--catalog",
            str(catalog),
            "remove-duplicates",
            "-s",
            "keep-first",
        ]
    )

    assert code == 0
    assert "Removed: 1 files" in capsys.readouterr().out
    assert (library / "a.jpg").exists()
    assert not (library / "b.jpg").exists()
    remaining = [r.file_name for r in CsvPhotoRepository(catalog).load()]
    assert remaining == ["a.jpg", "c.jpg"]
    assert len(list(audit_dir.glob("delete_*.csv"))) == 1


def test_empty_catalog(tmp_path, capsys):
    assert _run(tmp_path / "none.csv", "duplicates") == 0
    assert "No photos found in catalog" in capsys.readouterr().out


def test_missing_config_is_an_argument_error(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path / "nope.json"), "duplicates"])
    assert excinfo.value.code == 2


def test_unreadable_scan_directory_fails(tmp_path):
    assert _run(tmp_path / "c.csv", "scan", str(tmp_path / "missing")) == 1
