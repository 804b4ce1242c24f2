"""Logging setup for the command-line tools.

Console output goes to stderr as ``<level> [<component>] message`` where the
component is the logger name below the ``bayesian`` package (``classifier``,
``backends.file``...). File logs live under ``<root_dir>/logs``.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import typer

from .config import ConfigError, LoggingConfig

PACKAGE_LOGGER = "bayesian"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
MAIN_LOG_NAME = "bayesian.log"
DEBUG_LOG_NAME = "debug.log"
LOG_MAX_BYTES = 5_000_000
LOG_BACKUPS = 5

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class ConsoleFormatter(logging.Formatter):
    """Single-letter level marker plus the emitting component."""

    STYLES: dict[int, tuple[str, str]] = {
        logging.DEBUG: ("D", typer.colors.CYAN),
        logging.INFO: ("I", typer.colors.GREEN),
        logging.WARNING: ("!", typer.colors.YELLOW),
        logging.ERROR: ("X", typer.colors.RED),
        logging.CRITICAL: ("X", typer.colors.MAGENTA),
    }

    def __init__(self, use_color: bool) -> None:
        super().__init__("%(message)s")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        marker, color = self.STYLES.get(record.levelno, ("?", typer.colors.WHITE))
        if self.use_color:
            marker = typer.style(marker, fg=color, bold=record.levelno >= logging.ERROR)
        component = _component(record.name)
        message = super().format(record)
        if component:
            return f"{marker} [{component}] {message}"
        return f"{marker} {message}"


def configure_logging(
    logging_config: LoggingConfig,
    root_dir: Path | None = None,
    *,
    log_to_file: bool = True,
) -> None:
    """Install console and rotating file handlers on the root logger.

    File handlers are only added when ``root_dir`` is given and
    ``log_to_file`` is true. Repeated calls replace the previous handlers.
    """

    level = level_from_string(logging_config.level)
    handlers: list[logging.Handler] = [_console_handler()]
    if log_to_file and root_dir is not None:
        log_dir = (root_dir / "logs").expanduser()
        log_dir.mkdir(parents=True, exist_ok=True)
        files = [(MAIN_LOG_NAME, logging.INFO)]
        if logging_config.debug_file:
            files.append((DEBUG_LOG_NAME, logging.DEBUG))
        handlers.extend(_file_handler(log_dir / name, level=min_level) for name, min_level in files)

    logging.basicConfig(level=level, handlers=handlers, force=True)


def level_from_string(level: str) -> int:
    try:
        return LEVELS[level.strip().upper()]
    except KeyError as exc:
        raise ConfigError(f"Unknown log level: {level}") from exc


def _component(name: str) -> str:
    if name == PACKAGE_LOGGER:
        return ""
    prefix = PACKAGE_LOGGER + "."
    return name[len(prefix):] if name.startswith(prefix) else name


def _file_handler(path: Path, level: int) -> logging.Handler:
    handler = RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG)
    isatty = getattr(handler.stream, "isatty", None)
    handler.setFormatter(ConsoleFormatter(use_color=bool(isatty and isatty())))
    return handler


__all__ = ["ConsoleFormatter", "configure_logging", "level_from_string"]
