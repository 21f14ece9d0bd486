from __future__ import annotations

from loguru import logger

from core.config import LoggingConfig
from infrastructure.logging import init_logging


def test_file_sink_created_under_log_dir(tmp_path):
    log_dir = tmp_path / "logs"

    init_logging(LoggingConfig(level="debug", dir=str(log_dir), console=False))
    try:
        logger.info("hello")
        logger.complete()
        assert len(list(log_dir.glob("photo_catalog_*.log"))) == 1
    finally:
        logger.remove()
