"""Command line interface for cataloging photos and managing duplicates."""

from __future__ import annotations

import argparse
from collections.abc import Callable, Iterator
from contextlib import contextmanager
import dataclasses
from pathlib import Path

from loguru import logger
from tqdm import tqdm

from core.config import AppConfig, CatalogConfig
from core.models import RETENTION_STRATEGIES
from core.services.duplicate_service import DuplicateDetector
from core.services.fingerprint_service import FingerprintService
from core.services.interfaces import ProgressCallback
from core.services.report_service import generate_removal_report, generate_report
from core.services.retention_service import DuplicateRemover
from infrastructure.csv_repository import CsvPhotoRepository
from infrastructure.delete_service import DeleteService
from infrastructure.logging import init_logging
from infrastructure.metadata_extractor import MetadataExtractor
from infrastructure.settings import load_config


@contextmanager
def _progress(desc: str) -> Iterator[ProgressCallback]:
    """Yield a progress callback that drives a tqdm bar."""
    bar = tqdm(desc=desc, unit="file", leave=False)

    def update(current: int, total: int, label: str) -> None:
        bar.total = total
        bar.n = current
        bar.set_postfix_str(label, refresh=False)
        bar.refresh()

    try:
        yield update
    finally:
        bar.close()


def _write_report(path: str | None, text: str) -> None:
    if not path:
        return
    Path(path).write_text(text, encoding="utf-8")
    print(f"\nReport saved to: {path}")


def cmd_scan(args: argparse.Namespace, config: AppConfig) -> int:
    """Extract metadata and hashes for a directory and store them."""
    extractor = MetadataExtractor(config.extraction)
    fingerprints = FingerprintService(config.duplicates)
    repo = CsvPhotoRepository(config.catalog.path)

    paths = extractor.get_photo_files(args.directory)
    print(f"Found {len(paths)} photo files in {args.directory}")
    batch = extractor.extract_batch_metadata(
        tqdm(paths, desc="Extracting", unit="file", leave=False)
    )
    records = fingerprints.enrich(tqdm(batch.records, desc="Hashing", unit="file", leave=False))
    repo.upsert_records(records)

    hashed = sum(1 for r in records if r.content_hash)
    print(f"Cataloged {len(records)} files ({hashed} hashed) into {repo.path}")
    if batch.errors:
        print(f"\nErrors ({len(batch.errors)}):")
        for error in batch.errors[:5]:
            print(f"  - {error}")
        if len(batch.errors) > 5:
            print(f"  ... and {len(batch.errors) - 5} more errors")
    return 0


def cmd_duplicates(args: argparse.Namespace, config: AppConfig) -> int:
    """Detect duplicates among cataloged photos and print the report."""
    repo = CsvPhotoRepository(config.catalog.path)
    photos = repo.get_all_records_with_hashes()
    if not photos:
        print("No photos found in catalog")
        return 0

    detector = DuplicateDetector(config.duplicates)
    with _progress("Detecting duplicates") as on_progress:
        result = detector.detect_duplicates(photos, on_progress=on_progress)

    report = generate_report(result, group_limit=config.duplicates.report_group_limit)
    print(report)
    _write_report(args.report, report)
    return 0


def cmd_remove_duplicates(args: argparse.Namespace, config: AppConfig) -> int:
    """Detect duplicates and remove all but one file per group."""
    repo = CsvPhotoRepository(config.catalog.path)
    photos = repo.get_all_records_with_hashes()
    if not photos:
        print("No photos found in catalog")
        return 0

    result = DuplicateDetector(config.duplicates).detect_duplicates(photos)
    if not result.duplicate_groups:
        print("No duplicates found to remove")
        return 0

    strategy = args.strategy or config.duplicates.default_strategy
    deleter = DeleteService(config.delete)
    remover = DuplicateRemover(deleter)
    plan = remover.plan_removal(result.duplicate_groups, strategy)

    desc = "Analyzing duplicates" if args.dry_run else "Removing duplicates"
    with _progress(desc) as on_progress:
        outcome = remover.execute_plan(plan, dry_run=args.dry_run, on_progress=on_progress)

    if not args.dry_run:
        outcome.log_path = deleter.write_audit_log(plan, outcome)
        dropped = repo.remove_records(outcome.removed)
        logger.info("Dropped {} removed files from catalog", dropped)

    report = generate_removal_report(outcome)
    print(report)
    if outcome.log_path:
        print(f"\nAudit log: {outcome.log_path}")
    _write_report(args.report, report)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="photo-catalog",
        description="Catalog photos and find or remove duplicates.",
    )
    parser.add_argument("--config", help="Path to a JSON settings file")
    parser.add_argument("--catalog", help="Path to the catalog CSV (overrides settings)")
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Extract metadata and hashes into the catalog")
    scan.add_argument("directory", help="Directory to scan recursively")
    scan.set_defaults(handler=cmd_scan)

    dup = sub.add_parser("duplicates", help="Find duplicate photos")
    dup.add_argument("--report", help="Write the report to this file")
    dup.set_defaults(handler=cmd_duplicates)

    rm = sub.add_parser("remove-duplicates", help="Remove duplicate photos")
    rm.add_argument(
        "-s",
        "--strategy",
        choices=RETENTION_STRATEGIES,
        help="Which file of each group to keep (default from settings)",
    )
    rm.add_argument("--dry-run", action="store_true", help="Preview without deleting files")
    rm.add_argument("--report", help="Write the removal report to this file")
    rm.set_defaults(handler=cmd_remove_duplicates)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as ex:
        parser.error(str(ex))
    if args.catalog:
        config = dataclasses.replace(config, catalog=CatalogConfig(path=args.catalog))
    init_logging(config.logging)

    handler: Callable[[argparse.Namespace, AppConfig], int] = args.handler
    try:
        return handler(args, config)
    except (OSError, ValueError) as ex:
        logger.error("{} failed: {}", args.command, ex)
        print(f"Error: {ex}")
        return 1
