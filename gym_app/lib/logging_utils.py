"""
Logging utilities for the gym tracking core.

Provides category-based logging filtering and root logger setup.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s.%(msecs)03d [%(levelname)-8s] %(name)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class CategoryFilter(logging.Filter):
    """Filter log records by category prefix"""

    def __init__(self, categories: list[str]):
        super().__init__()
        self.categories = categories

    def filter(self, record: logging.LogRecord) -> bool:
        # If no categories specified, allow all
        if not self.categories:
            return True

        # Check if logger name starts with any allowed category
        return any(record.name.startswith(cat) for cat in self.categories)


def _configure_handler(handler: logging.Handler, level: int, log_categories: list[str]) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    if log_categories:
        handler.addFilter(CategoryFilter(log_categories))
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_categories: Optional[list[str]] = None,
    log_file: Optional[Path] = None
):
    """
    Configure logging for the application.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_categories: List of category prefixes to log (empty = all)
        log_file: Optional file receiving the same records as the console
    """
    if log_categories is None:
        log_categories = []
    level = getattr(logging, log_level.upper())

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    root_logger.handlers.clear()

    root_logger.addHandler(
        _configure_handler(logging.StreamHandler(sys.stdout), level, log_categories)
    )

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(
            _configure_handler(logging.FileHandler(log_file, encoding='utf-8'), level, log_categories)
        )


def setup_logging_from_settings(settings=None):
    """Configure logging from LOG_LEVEL, LOG_CATEGORIES and LOG_FILE."""
    if settings is None:
        from gym_app.config import get_settings
        settings = get_settings()
    setup_logging(settings.log_level, settings.log_categories, settings.log_file)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module/category.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
