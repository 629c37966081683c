"""
Structured logging for the chunked uploader.
Provides console logging plus optional rotating JSON file logs.
"""

import logging
import sys
from pathlib import Path
from logging.handlers import TimedRotatingFileHandler
from pythonjsonlogger import jsonlogger
from typing import Optional

CONSOLE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class UploaderJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps every record with level and component."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        if not log_record.get('timestamp'):
            log_record['timestamp'] = self.formatTime(record, self.datefmt)

        if log_record.get('level'):
            log_record['level'] = log_record['level'].upper()
        else:
            log_record['level'] = record.levelname

        log_record['component'] = 'chunked-uploader'


def setup_logger(
    name: str = "chunked_uploader",
    log_dir: Optional[Path] = None,
    log_level: str = "INFO",
    console: bool = True,
    json_logs: bool = True,
    backup_count: int = 7
) -> logging.Logger:
    """Setup logger with console and file handlers.

    Args:
        name: Logger name
        log_dir: Directory for log files (no file logging if None)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        console: Enable console logging
        json_logs: Use JSON format for file logs
        backup_count: Number of daily log files to keep

    Returns:
        Configured logger
    """
    level = getattr(logging, log_level.upper())
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Drop handlers from a previous setup call
    logger.handlers = []

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(console_handler)

    if log_dir:
        log_dir = Path(log_dir).expanduser()
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = TimedRotatingFileHandler(
            filename=log_dir / "chunked-uploader.log",
            when='midnight',
            interval=1,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(level)

        if json_logs:
            file_handler.setFormatter(
                UploaderJsonFormatter(fmt='%(timestamp)s %(level)s %(name)s %(message)s')
            )
        else:
            file_handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))

        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = "chunked_uploader") -> logging.Logger:
    """Get or create logger for a module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class UploadLogAdapter(logging.LoggerAdapter):
    """Logger adapter that stamps records with the upload they belong to.

    The bound fields (``file_name``, ``session_id``, ...) become attributes
    of each LogRecord, so the JSON file handler writes them as fields.
    """

    def process(self, msg, kwargs):
        kwargs['extra'] = {**self.extra, **kwargs.get('extra', {})}
        return msg, kwargs

    def bind(self, **fields) -> "UploadLogAdapter":
        """Return an adapter with ``fields`` added to the bound context."""
        return UploadLogAdapter(self.logger, {**self.extra, **fields})


def upload_context(logger: logging.Logger, **fields) -> UploadLogAdapter:
    """Wrap ``logger`` so every record carries ``fields``."""
    return UploadLogAdapter(logger, fields)
