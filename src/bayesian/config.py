"""Configuration loading and validation."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .backends import BACKENDS, BackendConfig
from .backends.file import DEFAULT_FILENAME
from .types import DEFAULT_ASSUMED, DEFAULT_CATEGORY, DEFAULT_WEIGHT, ClassifierOptions

LOGGER = logging.getLogger(__name__)

CONFIG_ENV_VAR = "BAYESIAN_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/bayesian/config.yaml")
DEFAULT_ROOT_DIR = Path("~/.local/lib/bayesian")
DEFAULT_LOG_LEVEL = "info"
DEFAULT_BACKEND = "file"


class ConfigError(ValueError):
    """Raised when configuration is invalid or missing."""


@dataclass(frozen=True)
class LoggingConfig:
    """Logging-related configuration."""

    level: str = DEFAULT_LOG_LEVEL
    debug_file: bool = False


@dataclass(frozen=True)
class Config:
    """Fully parsed configuration."""

    root_dir: Path
    classifier: ClassifierOptions = field(default_factory=ClassifierOptions)
    backend: BackendConfig = field(default_factory=BackendConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    path: Path | None = None


def load_config(path: Path | str | None = None) -> Config:
    """Load and validate configuration from YAML.

    An explicitly requested file must exist. When no path is given and neither
    ``$BAYESIAN_CONFIG`` nor the default location has a file, defaults apply.
    """

    config_path = resolve_config_path(path)
    if not config_path.exists():
        if path is not None or os.environ.get(CONFIG_ENV_VAR):
            raise ConfigError(f"Config file not found: {config_path}")
        LOGGER.debug("No config at %s; using defaults", config_path)
        return _parse_config({}, None)

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("Configuration root must be a mapping.")

    return _parse_config(raw, config_path)


def resolve_config_path(explicit: Path | str | None) -> Path:
    if explicit:
        return Path(explicit).expanduser()
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


def _parse_config(raw: dict[str, Any], path: Path | None) -> Config:
    root_dir = Path(raw.get("rootdir") or raw.get("root_dir") or DEFAULT_ROOT_DIR).expanduser()
    return Config(
        root_dir=root_dir,
        classifier=_parse_classifier(raw.get("classifier")),
        backend=_parse_backend(raw.get("backend"), root_dir),
        logging=_parse_logging(raw.get("logging")),
        path=path,
    )


def _parse_classifier(value: Any) -> ClassifierOptions:
    if value is None:
        return ClassifierOptions()
    if not isinstance(value, dict):
        raise ConfigError("classifier must be a mapping.")

    unknown = set(value) - {"default", "weight", "assumed", "thresholds"}
    if unknown:
        raise ConfigError(f"Unknown classifier option(s): {', '.join(sorted(unknown))}")

    default = value.get("default", DEFAULT_CATEGORY)
    weight = _parse_number(value.get("weight", DEFAULT_WEIGHT), "classifier.weight")
    assumed = _parse_number(value.get("assumed", DEFAULT_ASSUMED), "classifier.assumed")
    thresholds = _parse_thresholds(value.get("thresholds"))
    try:
        return ClassifierOptions(
            default=default,
            weight=weight,
            assumed=assumed,
            thresholds=thresholds,
        )
    except ValueError as exc:
        raise ConfigError(f"Invalid classifier options: {exc}") from exc


def _parse_thresholds(value: Any) -> dict[Any, float]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError("classifier.thresholds must be a mapping of category to multiplier.")
    return {
        category: _parse_number(threshold, f"classifier.thresholds[{category!r}]")
        for category, threshold in value.items()
    }


def _parse_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{field_name} must be a number.")
    return float(value)


def _parse_backend(value: Any, root_dir: Path) -> BackendConfig:
    if value is None:
        value = {"type": DEFAULT_BACKEND}
    if isinstance(value, str):
        value = {"type": value}
    if not isinstance(value, dict):
        raise ConfigError("backend must be a mapping or a backend type name.")

    backend_type = str(value.get("type", DEFAULT_BACKEND)).strip().lower()
    if backend_type not in BACKENDS:
        known = ", ".join(sorted(BACKENDS))
        raise ConfigError(f"Unknown backend type '{backend_type}' (known: {known}).")

    options = value.get("options") or {}
    if not isinstance(options, Mapping):
        raise ConfigError("backend.options must be a mapping.")
    options = dict(options)
    if backend_type == "file":
        options["path"] = _resolve_under(root_dir, options.get("path", DEFAULT_FILENAME))
    return BackendConfig(type=backend_type, options=options)


def _resolve_under(root_dir: Path, value: Any) -> Path:
    if not isinstance(value, (str, Path)):
        raise ConfigError("backend.options.path must be a string path.")
    path = Path(value).expanduser()
    return path if path.is_absolute() else root_dir / path


def _parse_logging(value: Any) -> LoggingConfig:
    if value is None:
        return LoggingConfig()
    if not isinstance(value, dict):
        raise ConfigError("logging must be a mapping.")
    level = str(value.get("level", DEFAULT_LOG_LEVEL)).lower()
    debug_file = bool(value.get("debug_file", False))
    return LoggingConfig(level=level, debug_file=debug_file)


__all__ = [
    "CONFIG_ENV_VAR",
    "Config",
    "ConfigError",
    "LoggingConfig",
    "load_config",
    "resolve_config_path",
]
