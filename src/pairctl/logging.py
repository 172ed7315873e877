"""Logging configuration for pairctl.

Log records go to stderr through click, so they never mix with command
output on stdout and follow whatever stream click is bound to at the
time of the call. A log file gets the same records with timestamps.
"""

import logging
from pathlib import Path

import click

from pairctl.config import Config

LOGGER_NAME = "pairctl"

# Console lines stay short: "[WARNING] controller: Failed to create ..."
CONSOLE_FORMAT = "[%(levelname)s] %(shortname)s: %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_logger: logging.Logger | None = None


class ClickEchoHandler(logging.Handler):
    """Write records to stderr with click.echo."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


class _ShortNameFilter(logging.Filter):
    """Expose the module name without the package prefix as %(shortname)s."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.shortname = record.name.rsplit(".", 1)[-1]
        return True


def _resolve_level(name: str, verbose: bool) -> int:
    if verbose:
        return logging.DEBUG
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(config: Config, verbose: bool = False) -> logging.Logger:
    """Configure the pairctl logger once.

    Args:
        config: Configuration with log_level and log_file.
        verbose: Force DEBUG regardless of the configured level.

    Returns:
        The "pairctl" logger.
    """
    global _logger

    if _logger is not None:
        return _logger

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_resolve_level(config.log_level, verbose))
    logger.handlers.clear()

    console_handler = ClickEchoHandler()
    console_handler.addFilter(_ShortNameFilter())
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    if config.log_file:
        log_path = Path(config.log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(
            logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        logger.addHandler(file_handler)

    logger.propagate = False

    _logger = logger
    return logger


def reset_logging() -> None:
    """Reset logging state. Used for testing."""
    global _logger
    if _logger is not None:
        for handler in _logger.handlers:
            handler.close()
        _logger.handlers.clear()
        _logger.propagate = True
        _logger = None
