"""Logging configuration for Budgeteer.

One named logger shared by every module, writing to a dated file in the
configured log directory and, for interactive use, to the console. Anything
that looks like a JWT is masked before it reaches a handler.
"""

import logging
import re
from datetime import date
from config import Config

LOGGER_NAME = "budgeteer"

_JWT_PATTERN = re.compile(r"eyJ[\w-]+\.[\w-]+\.[\w-]+")


class TokenRedactingFilter(logging.Filter):
    """Replace bearer-token lookalikes in log records with a placeholder."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if _JWT_PATTERN.search(message):
            record.msg = _JWT_PATTERN.sub("<redacted-token>", message)
            record.args = None
        return True


def setup_logging(config: Config, console: bool = True) -> logging.Logger:
    """Attach file and console handlers to the application logger.

    Args:
        config: Application configuration containing log settings.
        console: Also log to stderr (CLI use).

    Returns:
        Configured logger instance.
    """
    config.log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(config.log_level)

    # Calling this twice must not duplicate output
    logger.handlers.clear()
    logger.filters.clear()
    logger.addFilter(TokenRedactingFilter())

    file_handler = logging.FileHandler(
        config.log_dir / f"{LOGGER_NAME}-{date.today().isoformat()}.log"
    )
    file_handler.setLevel(config.log_level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(config.log_level)
        console_handler.setFormatter(logging.Formatter("%(levelname)s - %(message)s"))
        logger.addHandler(console_handler)

    return logger


def get_logger() -> logging.Logger:
    """Get the application logger."""
    return logging.getLogger(LOGGER_NAME)
