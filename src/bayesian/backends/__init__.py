"""Count storage backends and the registry used to build them from config."""

from __future__ import annotations

import inspect
from collections.abc import Callable

from .base import (
    AsyncBackend,
    Backend,
    BackendConfig,
    BackendFailure,
    SyncBackend,
    build_snapshot,
    parse_snapshot,
)
from .file import FileBackend
from .memory import AsyncMemoryBackend, CountTable, MemoryBackend
from .redis_backend import RedisBackend

BACKENDS: dict[str, Callable[..., Backend]] = {
    MemoryBackend.name: MemoryBackend,
    FileBackend.name: FileBackend,
    AsyncMemoryBackend.name: AsyncMemoryBackend,
    RedisBackend.name: RedisBackend,
}


def create_backend(config: BackendConfig | None = None) -> Backend:
    """Instantiate the backend selected by ``config`` (memory when omitted)."""

    config = config or BackendConfig()
    key = config.type.strip().lower()
    try:
        factory = BACKENDS[key]
    except KeyError as exc:
        known = ", ".join(sorted(BACKENDS))
        raise ValueError(f"Unknown backend type '{config.type}' (known: {known})") from exc
    options = dict(config.options)
    try:
        inspect.signature(factory).bind(**options)
    except TypeError as exc:
        raise ValueError(f"Invalid options for backend '{key}': {exc}") from exc
    return factory(**options)


__all__ = [
    "AsyncBackend",
    "AsyncMemoryBackend",
    "BACKENDS",
    "Backend",
    "BackendConfig",
    "BackendFailure",
    "CountTable",
    "FileBackend",
    "MemoryBackend",
    "RedisBackend",
    "SyncBackend",
    "build_snapshot",
    "create_backend",
    "parse_snapshot",
]
