"""Logging configuration with file rotation support.

Provides centralized logging setup with optional file output and rotation.

Log Level Precedence (deterministic resolution order):
1. Explicit parameter (log_level argument to setup_logging, e.g. from the CLI)
2. Environment variable (APP_LOG_LEVEL in the environment or .env)
3. Config defaults (config.app.log_level from config.py)
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import get_config

logger = logging.getLogger(__name__)

LOG_FILE_PREFIX = "tibia_lookup_"
MAX_LOG_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_RETENTION_COUNT = 7


def resolve_log_level(log_level: str | None = None) -> str:
    """Resolve the effective log level name using the precedence order."""
    if log_level is not None:
        return log_level
    env_level = os.environ.get("APP_LOG_LEVEL")
    if env_level:
        return env_level
    return get_config().app.log_level


def setup_logging(
    log_level: str | None = None,
    user_data_dir: Path | None = None,
    save_to_file: bool = True,
    retention_count: int = DEFAULT_RETENTION_COUNT,
) -> None:
    """Configure application logging with console and rotating file output.

    Args:
        log_level: Explicit logging level override (highest priority).
        user_data_dir: Directory for log files (defaults to config user_data_dir).
        save_to_file: Whether to also write logs under <user_data_dir>/logs.
        retention_count: Number of log files to keep.
    """
    resolved_level = resolve_log_level(log_level)
    numeric_level = getattr(logging, resolved_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(console_handler)

    if save_to_file:
        if user_data_dir is None:
            user_data_dir = get_config().app.user_data_dir

        log_dir = user_data_dir / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        log_file = (
            log_dir
            / f"{LOG_FILE_PREFIX}{datetime.now(UTC).strftime('%Y%m%d_%H%M%S')}.log"
        )
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=MAX_LOG_BYTES,
            backupCount=retention_count,
            encoding="utf-8",
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)

        _cleanup_old_logs(log_dir, retention_count)
        logger.info("Logging to file: %s", log_file)

    logger.info("Logging configured with level: %s", resolved_level)


def _cleanup_old_logs(log_dir: Path, keep_count: int) -> None:
    """Remove old log files, keeping only the most recent ones.

    Args:
        log_dir: Directory containing log files.
        keep_count: Number of most recent log files to keep.
    """
    try:
        log_files = sorted(
            log_dir.glob(f"{LOG_FILE_PREFIX}*.log*"),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
    except OSError as e:
        logger.warning("Failed to list old log files: %s", e)
        return

    for log_file in log_files[keep_count:]:
        try:
            log_file.unlink()
            logger.debug("Deleted old log file: %s", log_file)
        except OSError as e:
            logger.warning("Failed to delete old log file %s: %s", log_file, e)
