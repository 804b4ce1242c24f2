from __future__ import annotations

import logging
from pathlib import Path

import pytest

from bayesian.config import ConfigError, LoggingConfig
from bayesian.logging import ConsoleFormatter, configure_logging, level_from_string


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers = handlers
    root.setLevel(level)


def test_configure_logging_creates_log_files(tmp_path: Path) -> None:
    configure_logging(LoggingConfig(level="debug", debug_file=True), tmp_path)
    logging.getLogger("bayesian.test").info("hello")

    assert logging.getLogger().level == logging.DEBUG
    assert (tmp_path / "logs" / "bayesian.log").exists()
    assert (tmp_path / "logs" / "debug.log").exists()


def test_configure_logging_without_files(tmp_path: Path) -> None:
    configure_logging(LoggingConfig(level="warning"), tmp_path, log_to_file=False)

    assert logging.getLogger().level == logging.WARNING
    assert not (tmp_path / "logs").exists()


def test_unknown_level_is_a_config_error() -> None:
    with pytest.raises(ConfigError, match="Unknown log level"):
        level_from_string("chatty")


def test_console_formatter_marks_level_and_component() -> None:
    record = logging.LogRecord(
        "bayesian.backends.file", logging.WARNING, __file__, 1, "careful", None, None
    )

    assert ConsoleFormatter(use_color=False).format(record) == "! [backends.file] careful"
    assert ConsoleFormatter(use_color=True).format(record).endswith("[backends.file] careful")


def test_console_formatter_handles_package_root_and_foreign_loggers() -> None:
    package = logging.LogRecord("bayesian", logging.INFO, __file__, 1, "ready", None, None)
    foreign = logging.LogRecord("urllib3", logging.ERROR, __file__, 1, "boom", None, None)

    formatter = ConsoleFormatter(use_color=False)
    assert formatter.format(package) == "I ready"
    assert formatter.format(foreign) == "X [urllib3] boom"
