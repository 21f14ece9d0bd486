from __future__ import annotations

import hashlib

from core.services.duplicate_service import DuplicateDetector, wasted_space


def test_detects_single_exact_group(make_record):
    records = [
        make_record("/p/1.jpg", 1000, content_hash="abc"),
        make_record("/p/2.jpg", 1000, content_hash="abc"),
        make_record("/p/3.jpg", 2000, content_hash="xyz"),
    ]

    result = DuplicateDetector().detect_duplicates(records)

    assert result.total_files == 3
    assert result.unique_files == 2
    assert result.total_duplicates == 1
    [group] = result.duplicate_groups
    assert group.hash == "abc"
    assert group.duplicate_count == 1
    assert group.total_size == 2000
    assert result.total_wasted_space == 1000
    assert not result.cancelled


def test_empty_input():
    result = DuplicateDetector().detect_duplicates([])

    assert result.total_files == 0
    assert result.unique_files == 0
    assert result.duplicate_groups == []
    assert result.total_duplicates == 0
    assert result.total_wasted_space == 0
    assert result.duration_ms >= 1


def test_reports_hashing_and_grouping_progress(make_record):
    records = [make_record(f"/p/{i}.jpg", content_hash=f"h{i}") for i in range(3)]
    calls = []

    DuplicateDetector().detect_duplicates(records, on_progress=lambda *a: calls.append(a))

    assert calls == [(0, 3, "hashing"), (3, 3, "grouping")]


def test_hashes_real_files_and_skips_unreadable(tmp_path, make_record):
    for name, data in (("a.jpg", b"same"), ("b.jpg", b"same"), ("c.jpg", b"other")):
        (tmp_path / name).write_bytes(data)
    records = [
        make_record(str(tmp_path / "a.jpg"), 4),
        make_record(str(tmp_path / "b.jpg"), 4),
        make_record(str(tmp_path / "c.jpg"), 5),
        make_record(str(tmp_path / "gone.jpg"), 4),
    ]

    result = DuplicateDetector().detect_duplicates(records)

    [group] = result.duplicate_groups
    assert group.hash == hashlib.md5(b"same").hexdigest()
    assert [f.file_name for f in group.files] == ["a.jpg", "b.jpg"]
    assert result.total_files == 4
    assert result.unique_files == 3


def test_wasted_space_uses_average_member_size(make_record):
    records = [
        make_record("/p/1.jpg", 1000, content_hash="h"),
        make_record("/p/2.jpg", 3000, content_hash="h"),
        make_record("/p/3.jpg", 2000, content_hash="h"),
    ]

    result = DuplicateDetector().detect_duplicates(records)

    assert result.total_wasted_space == 4000
    assert wasted_space(result.duplicate_groups) == 4000


def test_exact_matches_take_precedence_over_structural(make_record):
    a = make_record("/p/a.jpg", content_hash="h", structural_fingerprint="s-a")
    b = make_record("/p/b.jpg", content_hash="h", structural_fingerprint="s-a")
    c = make_record("/p/c.jpg", content_hash="h", structural_fingerprint="s-a")
    d = make_record("/p/d.jpg", content_hash="d-only", structural_fingerprint="s-a")

    result = DuplicateDetector().detect_duplicates([a, b, c, d])

    assert [(g.kind, len(g.files)) for g in result.duplicate_groups] == [("exact", 3)]
    assert result.unique_files + result.total_duplicates == result.total_files


def test_structural_groups_count_toward_totals(make_record):
    records = [
        make_record("/p/1.jpg", 100, content_hash="x1", structural_fingerprint="s"),
        make_record("/p/2.jpg", 100, content_hash="x2", structural_fingerprint="s"),
        make_record("/p/3.jpg", 100, content_hash="x3"),
    ]

    result = DuplicateDetector().detect_duplicates(records)

    [group] = result.duplicate_groups
    assert group.kind == "structural"
    assert result.total_duplicates == 1
    assert result.unique_files == 2


def test_detection_is_deterministic(make_record):
    records = [
        make_record("/p/1.jpg", 100, content_hash="a"),
        make_record("/p/2.jpg", 100, content_hash="a"),
        make_record("/p/3.jpg", 300, content_hash="b", structural_fingerprint="s"),
        make_record("/p/4.jpg", 300, content_hash="c", structural_fingerprint="s"),
    ]
    detector = DuplicateDetector()

    first = detector.detect_duplicates(records)
    second = detector.detect_duplicates(records)

    def shape(result):
        return [(g.kind, g.hash, [f.file_path for f in g.files]) for g in result.duplicate_groups]

    assert shape(first) == shape(second)
    assert first.total_wasted_space == second.total_wasted_space


def test_every_group_has_at_least_two_members(make_record):
    records = [
        make_record(
            f"/p/{i}.jpg", 10 * i, content_hash=f"h{i % 3}", structural_fingerprint=f"s{i % 4}"
        )
        for i in range(10)
    ]

    result = DuplicateDetector().detect_duplicates(records)

    for group in result.duplicate_groups:
        assert len(group.files) >= 2
        assert group.duplicate_count == len(group.files) - 1


def test_cancelled_detection_returns_no_groups(make_record):
    records = [make_record(f"/p/{i}.jpg", content_hash="same") for i in range(3)]

    result = DuplicateDetector().detect_duplicates(records, should_cancel=lambda: True)

    assert result.cancelled
    assert result.duplicate_groups == []
    assert result.total_files == 3
