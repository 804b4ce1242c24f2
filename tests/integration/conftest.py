from __future__ import annotations

import json
from pathlib import Path

import pytest

from bayesian.types import LabeledSample

SPAM_SUBJECTS = [
    "cheap replica watches for sale",
    "win a free prize now",
    "cheap pills no prescription",
    "free offer limited time only",
    "claim your free prize today",
    "replica handbags cheap deal",
]
HAM_SUBJECTS = [
    "team meeting moved to thursday",
    "notes from the project review",
    "agenda for the planning meeting",
    "lunch with the project team",
    "review of the quarterly notes",
    "planning session for next quarter",
]


def corpus() -> list[LabeledSample]:
    """Return a small, balanced spam/ham corpus."""

    return [LabeledSample(input=text, output="spam") for text in SPAM_SUBJECTS] + [
        LabeledSample(input=text, output="ham") for text in HAM_SUBJECTS
    ]


@pytest.fixture
def labelled_corpus() -> list[LabeledSample]:
    return corpus()


@pytest.fixture
def corpus_file(tmp_path: Path) -> Path:
    path = tmp_path / "corpus.jsonl"
    path.write_text(
        "\n".join(json.dumps({"input": s.input, "output": s.output}) for s in corpus()) + "\n",
        encoding="utf-8",
    )
    return path


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Automatically mark tests in this package as integration."""

    package_root = Path(__file__).resolve().parent
    integration_mark = pytest.mark.integration
    for item in items:
        try:
            path = Path(item.fspath).resolve()
        except OSError:
            continue
        if package_root in path.parents:
            item.add_marker(integration_mark)
