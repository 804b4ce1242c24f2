"""JSON-file backed count store for single-host persistence."""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..types import CategoryCounts, WordCounts
from .base import BackendFailure
from .memory import CountTable, MemoryBackend

LOGGER = logging.getLogger(__name__)
DEFAULT_FILENAME = "model.json"


class FileBackend(MemoryBackend):
    """Memory tables mirrored to a JSON file after every committed batch.

    Each write lands in a temporary sibling file which then replaces the target,
    so readers of the file never see a half-written snapshot. A batch only
    becomes visible in memory once it has been persisted.
    """

    name = "file"

    def __init__(self, path: Path | str = DEFAULT_FILENAME) -> None:
        super().__init__()
        self.path = Path(path).expanduser()
        self._table = self._load()

    def _commit_increments(self, categories: CategoryCounts, words: WordCounts) -> None:
        table = self._table.copy()
        table.apply(categories, words)
        self._persist(table)
        self._table = table

    def _commit_table(self, table: CountTable) -> None:
        self._persist(table)
        self._table = table

    def _load(self) -> CountTable:
        if not self.path.exists():
            return CountTable()
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
            return CountTable.from_snapshot(payload)
        except (OSError, ValueError, BackendFailure):
            LOGGER.warning(
                "Failed to load counts from %s; starting empty", self.path, exc_info=True
            )
            self._quarantine_corrupt_file()
            return CountTable()

    def _persist(self, table: CountTable) -> None:
        self._atomic_write(table.snapshot())

    def _atomic_write(self, payload: Mapping[str, Any]) -> None:
        tmp_path = self.path.with_name(f".{self.path.name}.{uuid.uuid4().hex}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(payload, handle, separators=(",", ":"))
            tmp_path.replace(self.path)
        except (OSError, TypeError, ValueError) as exc:
            raise BackendFailure(f"Failed to write counts to {self.path}: {exc}") from exc
        finally:
            if tmp_path.exists():
                tmp_path.unlink(missing_ok=True)

    def _quarantine_corrupt_file(self) -> None:
        if not self.path.exists():
            return
        suffix = ".corrupt"
        candidate = self.path.with_name(f"{self.path.name}{suffix}")
        counter = 1
        while candidate.exists():
            counter += 1
            candidate = self.path.with_name(f"{self.path.name}{suffix}{counter}")
        self.path.replace(candidate)


__all__ = ["DEFAULT_FILENAME", "FileBackend"]
