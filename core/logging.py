import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

# --- Constants ---
MAX_BYTES = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5
ROOT_LOGGER_NAME = 'genai'
LOG_LEVEL_ENV = 'GENAI_LOG_LEVEL'
DEFAULT_LEVEL = 'warn'

# 'silent' sits above CRITICAL so nothing passes the filter.
SILENT = logging.CRITICAL + 10

LEVELS = {
    'silent': SILENT,
    'error': logging.ERROR,
    'warn': logging.WARNING,
    'warning': logging.WARNING,
    'info': logging.INFO,
    'debug': logging.DEBUG,
}


class JsonFormatter(logging.Formatter):
    """
    Formats log records as a JSON string.
    """
    def format(self, record):
        log_object = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_object['exc_info'] = self.formatException(record.exc_info)

        return json.dumps(log_object)


def resolve_level(level: Union[str, int, None] = None) -> int:
    """Turns a level name (or None, meaning the environment) into a logging level."""
    if isinstance(level, int):
        return level
    name = (level or os.getenv(LOG_LEVEL_ENV) or DEFAULT_LEVEL).strip().lower()
    if name not in LEVELS:
        return LEVELS[DEFAULT_LEVEL]
    return LEVELS[name]


def setup_logging(log_level: Union[str, int, None] = None, log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configures the 'genai' logger tree.
    - Console: Human-readable plain text.
    - File (optional): Machine-readable JSON, with rotation.
    """
    level = resolve_level(log_level)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    root_logger.propagate = False

    # --- Formatters ---
    plain_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(plain_formatter)

    # Clear existing handlers to avoid duplicates
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    # --- Rotating File Handler (JSON) ---
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(JsonFormatter())
        root_logger.addHandler(file_handler)

    return root_logger


def get_logger(name: str, level: Union[str, int, None] = None) -> logging.Logger:
    """
    Returns a child of the 'genai' logger.

    Components take one of these as an injected dependency; passing ``level``
    gives the child its own threshold independent of the tree.
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(resolve_level(level))
    return logger
