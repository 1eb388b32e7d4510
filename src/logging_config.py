"""
Logging setup for the topology map viewer.

Console output carries the status lines a user cares about (topology
loaded, export written). The rotating log file additionally keeps the
debug trail of the src.topo_map package: skipped nodes and links during
ingestion, discarded stale loads, pan/zoom gestures and highlight timers.

Usage:
    from src.logging_config import setup_logging
    setup_logging()                              # defaults
    setup_logging(console_level=logging.DEBUG)   # what the CLI's -v does
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_DIR = Path(__file__).parent.parent / "logs"
LOG_FILE_NAME = "topo_map.log"
PACKAGE_LOGGER = "src.topo_map"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# A large topology logs one line per skipped entry; 2 MB x 3 keeps a few loads
MAX_LOG_SIZE_BYTES = 2 * 1024 * 1024
BACKUP_COUNT = 3


def _file_handler(log_dir: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=MAX_LOG_SIZE_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    log_dir: Optional[Path] = None,
) -> None:
    """
    Attach a stdout handler to the root logger and a rotating file
    handler to the viewer package logger.

    Safe to call more than once: handlers installed by an earlier call are
    replaced, not duplicated.

    Args:
        console_level: Threshold for the stdout handler
        file_level: Threshold for logs/topo_map.log
        log_dir: Directory for the log file (default: <project>/logs)
    """
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers.clear()
    package_logger.addHandler(_file_handler(log_dir or LOG_DIR, file_level, formatter))

    # asyncio logs every slow callback at DEBUG
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    root_logger.info(
        f"Logging ready (console {logging.getLevelName(console_level)}, "
        f"{LOG_FILE_NAME} {logging.getLevelName(file_level)})"
    )
