from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from bayesian.backends import FileBackend
from bayesian.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def _write_config(tmp_path: Path, *, extra: str = "") -> Path:
    root = tmp_path / "state"
    config = tmp_path / "config.yaml"
    config.write_text(
        "\n".join(
            [
                f"root_dir: {root}",
                "classifier:",
                "  default: unsure",
                "backend:",
                "  type: file",
                "  options:",
                "    path: model.json",
                extra,
                "",
            ]
        ),
        encoding="utf-8",
    )
    return config


def _write_dataset(tmp_path: Path, records: list[dict[str, object]]) -> Path:
    path = tmp_path / "data.json"
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


SPAM_HAM = [
    {"input": "cheap replica watches", "output": "spam"},
    {"input": "I don't know if this works on windows replica", "output": "ham"},
]


def test_train_then_classify(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    dataset = _write_dataset(tmp_path, SPAM_HAM)

    trained = runner.invoke(app, ["-c", str(config_path), "train", str(dataset)])
    classified = runner.invoke(
        app, ["-c", str(config_path), "classify", "--scores", "free", "watches"]
    )

    assert trained.exit_code == 0, trained.output
    assert "Trained 2 sample(s)" in trained.stdout
    assert classified.exit_code == 0, classified.output
    assert "Category: spam" in classified.stdout
    assert "Scores:" in classified.stdout
    assert FileBackend(tmp_path / "state" / "model.json").get_categories() == {
        "spam": 1,
        "ham": 1,
    }


def test_classify_untrained_prints_default(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)

    result = runner.invoke(app, ["-c", str(config_path), "classify", "hello"])

    assert result.exit_code == 0
    assert "Category: unsure" in result.stdout


def test_test_command_reports_error_rate(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    dataset = _write_dataset(tmp_path, SPAM_HAM)
    runner.invoke(app, ["-c", str(config_path), "train", str(dataset)])

    result = runner.invoke(app, ["-c", str(config_path), "test", str(dataset)])

    assert result.exit_code == 0, result.output
    assert "Error rate: 0.0000" in result.stdout


def test_test_command_rejects_empty_dataset(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    dataset = _write_dataset(tmp_path, [])

    result = runner.invoke(app, ["-c", str(config_path), "test", str(dataset)])

    assert result.exit_code == 1


def test_cross_validate_command(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    records = [{"input": f"cheap offer {i}", "output": "spam"} for i in range(4)] + [
        {"input": f"meeting notes {i}", "output": "ham"} for i in range(4)
    ]
    dataset = _write_dataset(tmp_path, records)

    result = runner.invoke(
        app, ["-c", str(config_path), "cross-validate", str(dataset), "-k", "2", "--seed", "1"]
    )

    assert result.exit_code == 0, result.output
    assert "Folds: 2" in result.stdout
    assert "Error rate:" in result.stdout
    assert not (tmp_path / "state" / "model.json").exists()


def test_cross_validate_rejects_too_many_folds(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    dataset = _write_dataset(tmp_path, SPAM_HAM)

    result = runner.invoke(app, ["-c", str(config_path), "cross-validate", str(dataset), "-k", "5"])

    assert result.exit_code == 1


def test_export_and_import_round_trip(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    dataset = _write_dataset(tmp_path, SPAM_HAM)
    runner.invoke(app, ["-c", str(config_path), "train", str(dataset)])
    snapshot = tmp_path / "out" / "snapshot.json"

    exported = runner.invoke(app, ["-c", str(config_path), "export", str(snapshot)])
    other_root = tmp_path / "other"
    other_root.mkdir()
    other_config = _write_config(other_root)
    imported = runner.invoke(app, ["-c", str(other_config), "import", str(snapshot)])

    assert exported.exit_code == 0, exported.output
    assert imported.exit_code == 0, imported.output
    assert json.loads(snapshot.read_text(encoding="utf-8"))["cats"] == {'"spam"': 1, '"ham"': 1}
    assert FileBackend(other_root / "state" / "model.json").get_categories() == {
        "spam": 1,
        "ham": 1,
    }


def test_export_to_stdout(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)

    result = runner.invoke(app, ["-c", str(config_path), "export"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"cats": {}, "words": {}}


def test_import_rejects_bad_snapshot(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    snapshot = tmp_path / "bad.json"
    snapshot.write_text('{"cats": {"not-json": 1}}', encoding="utf-8")

    result = runner.invoke(app, ["-c", str(config_path), "import", str(snapshot)])

    assert result.exit_code == 1


def test_status_lists_categories(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    dataset = _write_dataset(tmp_path, SPAM_HAM)
    runner.invoke(app, ["-c", str(config_path), "train", str(dataset)])

    result = runner.invoke(app, ["-c", str(config_path), "status"])

    assert result.exit_code == 0
    assert "Backend: file" in result.stdout
    assert "spam: 1 document(s)" in result.stdout


def test_status_with_async_backend(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    config_path.write_text(
        f"root_dir: {tmp_path / 'state'}\nbackend: async-memory\n", encoding="utf-8"
    )

    result = runner.invoke(app, ["-c", str(config_path), "status"])

    assert result.exit_code == 0, result.output
    assert "Categories: none trained" in result.stdout


def test_invalid_config_exits_with_code_two(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("backend:\n  type: carrier-pigeon\n", encoding="utf-8")

    result = runner.invoke(app, ["-c", str(config_path), "status"])

    assert result.exit_code == 2


def test_missing_dataset_exits_with_code_one(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)

    result = runner.invoke(app, ["-c", str(config_path), "train", str(tmp_path / "nope.json")])

    assert result.exit_code == 1
