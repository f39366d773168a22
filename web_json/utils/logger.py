import logging
import os
import sys
from typing import Optional

# Global logger instance
_logger = None

LOGGER_NAME = "web_json"

# ANSI color codes for console output
COLORS = {
    "reset": "\033[0m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "cyan": "\033[36m",
    "light_black": "\033[90m",
    "bold": "\033[1m",
}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Formatter that colorizes the level name based on severity."""

    LEVEL_COLORS = {
        logging.DEBUG: COLORS["light_black"],
        logging.INFO: COLORS["green"],
        logging.WARNING: COLORS["yellow"],
        logging.ERROR: COLORS["red"],
        logging.CRITICAL: COLORS["bold"] + COLORS["red"]
    }

    def format(self, record):
        levelname = record.levelname
        message = super().format(record)

        # Already colored upstream
        if any(color in message for color in COLORS.values()):
            return message

        color = self.LEVEL_COLORS.get(record.levelno, COLORS["reset"])
        formatted_level = f"{color}{levelname}{COLORS['reset']}"
        return message.replace(levelname, formatted_level, 1)


def setup_logger(log_level: str = "INFO", log_file: Optional[str] = None, enable_colors: bool = True) -> logging.Logger:
    """Set up and configure the package logger.

    The logger is configured once; later calls return the same instance.
    Use :func:`reset_logger` to configure it again.
    """
    global _logger

    if _logger is not None:
        return _logger

    level = getattr(logging, str(log_level).upper())

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    if logger.handlers:
        logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    if enable_colors:
        console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    else:
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        # Files never get ANSI codes
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)

    _logger = logger
    return logger


def setup_logger_from_config(config) -> logging.Logger:
    """Configure the logger from the ``logging`` section of a loaded config."""
    section = config.get("logging", {})
    return setup_logger(
        log_level=section.get("level", "INFO"),
        log_file=section.get("file"),
        enable_colors=section.get("colors", True),
    )


def get_logger() -> logging.Logger:
    """Get the global logger instance, initializing it if necessary."""
    global _logger

    if _logger is None:
        _logger = setup_logger()

    return _logger


def reset_logger():
    """Drop the configured handlers so the next setup_logger call starts fresh."""
    global _logger

    if _logger is not None:
        for handler in list(_logger.handlers):
            handler.close()
            _logger.removeHandler(handler)
        _logger.setLevel(logging.NOTSET)
        _logger.propagate = True
    _logger = None
