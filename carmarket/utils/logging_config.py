"""Logging configuration for the application."""

import logging
import logging.handlers
import os
import sys
from pathlib import Path

from carmarket.config import LOGS_DIR, LoggingSettings

logger = logging.getLogger(__name__)

LOG_FILE_NAME = "carmarket.log"

# Attributes every LogRecord has; anything else was passed through `extra=`
_RECORD_ATTRIBUTES = set(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "taskName"}


class ContextFormatter(logging.Formatter):
    """Appends the `extra=` fields of a record, e.g. rate-limit codes or skipped image indexes."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES and value is not None
        }
        if not context:
            return text
        fields = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return f"{text} [{fields}]"


def _prune_rotated_logs(log_dir: Path, keep: int) -> None:
    """Delete the oldest rotated files beyond `keep`.

    TimedRotatingFileHandler only prunes on rollover, so files left behind by
    earlier runs with a larger backup count would otherwise stay forever.
    """
    try:
        rotated = sorted(
            (path for path in log_dir.glob(f"{LOG_FILE_NAME}.*") if path.is_file()),
            key=lambda path: path.stat().st_mtime,
            reverse=True,
        )
    except OSError as e:
        logger.error(f"Could not list log files in {log_dir}: {e}")
        return

    for stale in rotated[keep:]:
        try:
            stale.unlink()
        except OSError as e:
            logger.error(f"Failed to delete old log file {stale}: {e}")


def setup_logging(settings: LoggingSettings, log_dir: Path = LOGS_DIR) -> None:
    """Console plus daily-rotating file logging on the root logger."""
    os.makedirs(log_dir, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # handlers filter
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(settings.log_level)
    console_handler.setFormatter(logging.Formatter(settings.format))
    root_logger.addHandler(console_handler)

    file_handler = logging.handlers.TimedRotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        when="midnight",
        backupCount=settings.backup_count,
        encoding="utf-8",
        delay=True,
    )
    file_handler.suffix = "%Y-%m-%d"
    file_handler.setLevel(settings.file_log_level)
    file_handler.setFormatter(ContextFormatter(settings.file_format))
    root_logger.addHandler(file_handler)

    _prune_rotated_logs(log_dir, settings.backup_count)

    for logger_name, level in settings.noisy_loggers.items():
        logging.getLogger(logger_name).setLevel(level)

    logger.debug(f"Logging to {log_dir / LOG_FILE_NAME}")
