"""
Logging setup for Sticker Dream.

Most of the interesting work happens off the request thread: the printer
watchdog polls CUPS once a second and every generated image is printed
from its own thread. Log lines therefore carry the thread name, so a
print job or a watchdog repair can be followed through the console
output without extra correlation fields.

Handlers:
    console        always, at the configured level
    app log        logs/sticker_dream.log (rotating, production only)
    error log      logs/sticker_dream_error.log, ERROR and above only

Example output:
    2026-10-19 10:15:30 [INFO    ] [MainThread] sticker_dream.app - Application initialized successfully
    2026-10-19 10:15:31 [WARNING ] [PrinterWatchdog] sticker_dream.services.printer_watchdog - Printer requires attention: Phomemo_PM2
    2026-10-19 10:15:32 [INFO    ] [Print-a1b2c3d4] sticker_dream.print.a1b2c3d4 - Print job submitted

Usage:
    from logging_config import setup_logging, get_logger

    setup_logging(log_level=logging.DEBUG, enable_file_logging=False)
    logger = get_logger(__name__)
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


APP_LOGGER_NAME = "sticker_dream"

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


# =============================================================================
# THREAD NAME FILTER
# =============================================================================

class ThreadContextFilter(logging.Filter):
    """Stamps ``thread_name`` onto every record for LOG_FORMAT."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.thread_name = threading.current_thread().name
        return True


def _build_handler(
    handler: logging.Handler,
    level: int,
    formatter: logging.Formatter,
    thread_filter: logging.Filter
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(thread_filter)
    return handler


def _rotating_file(path: Path) -> RotatingFileHandler:
    return RotatingFileHandler(
        filename=path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )


# =============================================================================
# SETUP
# =============================================================================

def setup_logging(
    app_name: str = APP_LOGGER_NAME,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
) -> logging.Logger:
    """
    Install handlers on the application logger.

    Calling this again replaces the previous handlers, so each app built
    by create_app() (tests build many) ends up with exactly one set.

    Args:
        app_name: Application logger name; module loggers hang below it
        log_level: Level for the logger, console and app log
        log_dir: Where log files go (default: logs/ next to this file)
        enable_file_logging: Add the rotating app and error logs

    Returns:
        The application logger
    """
    app_logger = logging.getLogger(app_name)
    app_logger.setLevel(log_level)
    app_logger.propagate = False
    app_logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    thread_filter = ThreadContextFilter()

    app_logger.addHandler(
        _build_handler(logging.StreamHandler(sys.stdout), log_level, formatter, thread_filter)
    )

    if enable_file_logging:
        log_dir = log_dir or Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        app_log = log_dir / f"{app_name}.log"
        app_logger.addHandler(
            _build_handler(_rotating_file(app_log), log_level, formatter, thread_filter)
        )
        app_logger.addHandler(
            _build_handler(
                _rotating_file(log_dir / f"{app_name}_error.log"),
                logging.ERROR,
                formatter,
                thread_filter,
            )
        )
        app_logger.info(f"Writing logs to {log_dir}")

    app_logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return app_logger


# =============================================================================
# LOGGER HELPERS
# =============================================================================

def get_logger(name: str) -> logging.Logger:
    """
    Module logger under the application namespace.

    get_logger("services.print_service") -> "sticker_dream.services.print_service"
    """
    if not name.startswith(APP_LOGGER_NAME):
        name = f"{APP_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def get_print_logger(job_id: str) -> logging.Logger:
    """Logger for one print job thread, keyed by the first 8 chars of its id."""
    return logging.getLogger(f"{APP_LOGGER_NAME}.print.{job_id[:8]}")


def set_thread_name(name: str) -> None:
    """Rename the current thread; the new name shows up in log lines."""
    threading.current_thread().name = name
