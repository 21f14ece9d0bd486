"""Logging initialization utilities using loguru."""

from __future__ import annotations

from pathlib import Path
import sys

from loguru import logger

from core.config import LoggingConfig


def init_logging(config: LoggingConfig | None = None) -> None:
    """Configure console and rotating file sinks from `config`."""
    config = config or LoggingConfig()
    level = config.level.upper()

    logger.remove()
    if config.console:
        logger.add(sys.stderr, level=level, backtrace=False, diagnose=False)
    if config.dir:
        log_path = Path(config.dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_path / "photo_catalog_{time:YYYYMMDD}.log"),
            rotation="10 MB",
            retention="10 days",
            compression="zip",
            enqueue=True,
            backtrace=False,
            diagnose=False,
            level=level,
        )
