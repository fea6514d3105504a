"""
Logging configuration for the API and the import scripts.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

MAX_LOG_BYTES = 10 * 1024 * 1024  # 10MB
LOG_BACKUPS = 5

# Third-party loggers that are too chatty at DEBUG/INFO
LIBRARY_LEVELS = {
    "uvicorn": logging.INFO,
    "sqlalchemy.engine": logging.WARNING,
    "alembic": logging.INFO,
}


def _rotating_handler(path: Path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[Union[str, Path]] = None,
    log_to_file: bool = True,
) -> logging.Logger:
    """
    Configure the root logger: console output plus, optionally, rotating files.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for app.log / errors.log. Defaults to backend/logs.
        log_to_file: Console only when False (tests, one-off scripts)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_to_file:
        log_dir = Path(log_dir) if log_dir else Path(__file__).parent.parent.parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(_rotating_handler(log_dir / "app.log", logging.DEBUG))
        root_logger.addHandler(_rotating_handler(log_dir / "errors.log", logging.ERROR))

    for name, level in LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(level)

    root_logger.info(f"Logging initialized - Level: {log_level}")
    if log_to_file:
        root_logger.info(f"Log directory: {log_dir}")

    return root_logger
