"""File deletion primitive and removal audit logging.

Deletes files either permanently or by moving them to the recycle bin, and
writes an audit CSV describing every planned removal and its result.
"""

from __future__ import annotations

import csv
from datetime import datetime
import os
from pathlib import Path

from loguru import logger
from send2trash import send2trash

from core.config import DeleteConfig
from core.models import RemovalOutcome
from core.services.interfaces import IFileDeleter, RemovalPlan

AUDIT_HEADERS = ["GroupHash", "HashKind", "FilePath", "Kept", "Success", "Reason"]


class DeleteService(IFileDeleter):
    """Deletes files and records what happened."""

    def __init__(self, config: DeleteConfig | None = None) -> None:
        self._config = config or DeleteConfig()

    def delete_file(self, path: str) -> None:
        """Delete `path` permanently or via the recycle bin.

        Raises:
            OSError: If the file is missing or cannot be removed.
        """
        normalized_path = os.path.normpath(path)
        if self._config.use_trash:
            # send2trash reports a missing file as OSError as well
            send2trash(normalized_path)
        else:
            os.remove(normalized_path)

    def write_audit_log(self, plan: RemovalPlan, outcome: RemovalOutcome) -> str | None:
        """Write the audit CSV for `plan`/`outcome` and return its path.

        Returns None when no audit directory is configured or the log could not
        be written; a log failure never affects the removal result.
        """
        if not self._config.audit_log_dir:
            return None
        try:
            base_dir = Path(os.path.expandvars(self._config.audit_log_dir))
            base_dir.mkdir(parents=True, exist_ok=True)
            ts = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_path = base_dir / f"delete_{ts}.csv"

            removed = set(outcome.removed)

            with log_path.open("w", encoding="utf-8", newline="") as f:
                writer = csv.writer(f)
                writer.writerow(AUDIT_HEADERS)
                for group in plan.groups:
                    writer.writerow([group.hash, group.kind, group.keep.file_path, 1, "", ""])
                    for record in group.remove:
                        p = record.file_path
                        if p in removed:
                            writer.writerow([group.hash, group.kind, p, 0, 1, ""])
                        else:
                            prefix = f"Failed to remove {p}:"
                            reason = next(
                                (e for e in outcome.errors if e.startswith(prefix)), "Not processed"
                            )
                            writer.writerow([group.hash, group.kind, p, 0, 0, reason])
            logger.info(
                "Delete log written: {} ({} success, {} failed)",
                log_path,
                len(outcome.removed),
                len(outcome.errors),
            )
            return str(log_path)
        except (OSError, ValueError) as ex:
            logger.error("Write delete log failed: {}", ex)
            return None
