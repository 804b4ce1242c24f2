"""Loading labelled datasets from JSON, JSON-lines and YAML files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from .types import LabeledSample

LOGGER = logging.getLogger(__name__)
JSON_SUFFIXES = {".json"}
JSONL_SUFFIXES = {".jsonl", ".ndjson"}
YAML_SUFFIXES = {".yaml", ".yml"}


class DatasetError(ValueError):
    """Raised when a dataset file cannot be read or has the wrong shape."""


def load_dataset(path: Path | str) -> list[LabeledSample]:
    """Read ``{input, output}`` records from ``path``."""

    dataset_path = Path(path).expanduser()
    if not dataset_path.is_file():
        raise DatasetError(f"Dataset file not found: {dataset_path}")

    suffix = dataset_path.suffix.lower()
    try:
        text = dataset_path.read_text(encoding="utf-8")
        if suffix in JSONL_SUFFIXES:
            records = [json.loads(line) for line in text.splitlines() if line.strip()]
        elif suffix in YAML_SUFFIXES:
            records = yaml.safe_load(text) or []
        elif suffix in JSON_SUFFIXES:
            records = json.loads(text)
        else:
            raise DatasetError(f"Unsupported dataset format: {dataset_path.name}")
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise DatasetError(f"Failed to read dataset {dataset_path}: {exc}") from exc

    if not isinstance(records, list):
        raise DatasetError(f"Dataset {dataset_path} must contain a list of records.")
    samples = [_parse_record(record, index) for index, record in enumerate(records, start=1)]
    LOGGER.debug("Loaded %d sample(s) from %s", len(samples), dataset_path)
    return samples


def _parse_record(record: Any, index: int) -> LabeledSample:
    if not isinstance(record, dict):
        raise DatasetError(f"Record {index} must be a mapping.")
    if "input" not in record or "output" not in record:
        raise DatasetError(f"Record {index} requires 'input' and 'output'.")
    output = record["output"]
    if isinstance(output, (list, dict)):
        raise DatasetError(f"Record {index} output must be a scalar category.")
    return LabeledSample(input=record["input"], output=output)


__all__ = ["DatasetError", "load_dataset"]
