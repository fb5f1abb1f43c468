"""
Logging configuration for RecruiterHub API.

Console and rotating-file output for the whole process, plus a helper that
strips credentials, SMS codes and phone numbers from values before they are
logged.
"""
import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_NAME = "recruiterhub.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Compared against keys lowercased with "_" removed, so verification_id and
# verificationId both match
SENSITIVE_KEY_PARTS = (
    "password",
    "token",
    "secret",
    "session",
    "code",
    "verificationid",
    "phone",
    "databaseurl",
)
REDACTED = "***REDACTED***"

QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "sqlalchemy.engine", "passlib")


def setup_logging(log_level: str = "INFO", log_dir: str = "logs"):
    """
    Configure the root logger. Safe to call again; handlers are replaced.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for the rotating log file, created if missing
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    Path(log_dir).mkdir(parents=True, exist_ok=True)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))

    file_handler = RotatingFileHandler(
        Path(log_dir) / LOG_FILE_NAME,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
    )
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in (console_handler, file_handler):
        handler.setLevel(level)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _is_sensitive(key: Any) -> bool:
    normalized = str(key).lower().replace("_", "")
    return any(part in normalized for part in SENSITIVE_KEY_PARTS)


def sanitize_log_data(data: Any) -> Any:
    """
    Copy of ``data`` with sensitive values redacted, including nested
    dicts and lists (e.g. a mail template's data).
    """
    if isinstance(data, dict):
        return {
            key: REDACTED if _is_sensitive(key) else sanitize_log_data(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [sanitize_log_data(item) for item in data]
    return data
