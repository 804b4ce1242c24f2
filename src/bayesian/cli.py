"""Bayesian command-line interface."""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer

from . import __version__
from .backends import BackendFailure, MemoryBackend
from .classifier import Bayesian, EmptyDatasetError
from .config import Config, ConfigError, load_config, resolve_config_path
from .crossval import DEFAULT_FOLDS, cross_validate
from .dataset import DatasetError, load_dataset
from .features import InvalidDocumentType
from .logging import configure_logging
from .types import LabeledSample

app = typer.Typer(help="Naive Bayes text classification utilities.")
LOGGER = logging.getLogger(__name__)


@dataclass
class CLIState:
    """Stores shared CLI options."""

    config_path: Path | None


@app.callback()
def _bayesian(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "-c",
            "--config",
            help="Path to config (env BAYESIAN_CONFIG or ~/.config/bayesian/config.yaml).",
        ),
    ] = None,
) -> None:
    """Capture global CLI options."""

    resolved = config.expanduser() if config else None
    ctx.obj = CLIState(config_path=resolved)


@app.command()
def train(
    ctx: typer.Context,
    dataset: Annotated[Path, typer.Argument(..., help="JSON, JSON-lines or YAML dataset.")],
) -> None:
    """Train the configured model on a labelled dataset."""

    config = _load_environment(_state(ctx))
    samples = _load_samples(dataset)
    _execute(config, lambda classifier: classifier.train_all(samples))
    typer.echo(f"Trained {len(samples)} sample(s) from {dataset}")


@app.command()
def classify(
    ctx: typer.Context,
    text: Annotated[list[str], typer.Argument(..., help="Document text to classify.")],
    scores: Annotated[
        bool,
        typer.Option("--scores", help="Also print the unnormalised score of every category."),
    ] = False,
) -> None:
    """Classify a document with the configured model."""

    config = _load_environment(_state(ctx))
    document = " ".join(text)

    async def _classify_async(classifier: Bayesian) -> tuple[Any, dict[Any, float]]:
        category_scores = await classifier.category_scores(document)
        return classifier.best_match(category_scores), category_scores

    def _classify(classifier: Bayesian) -> Any:
        if classifier.is_async:
            return _classify_async(classifier)
        category_scores = classifier.category_scores(document)
        return classifier.best_match(category_scores), category_scores

    category, category_scores = _execute(config, _classify)
    typer.echo(f"Category: {category}")
    if scores:
        typer.echo("Scores:")
        for name, value in sorted(category_scores.items(), key=lambda item: -item[1]):
            typer.echo(f"  {name}: {value:.6g}")


@app.command()
def test(
    ctx: typer.Context,
    dataset: Annotated[Path, typer.Argument(..., help="JSON, JSON-lines or YAML dataset.")],
) -> None:
    """Report the misclassification rate of the configured model on a dataset."""

    config = _load_environment(_state(ctx))
    samples = _load_samples(dataset)
    error = _execute(config, lambda classifier: classifier.test(samples))
    typer.echo(f"Samples: {len(samples)}")
    typer.echo(f"Error rate: {error:.4f}")


@app.command("cross-validate")
def cross_validate_command(
    ctx: typer.Context,
    dataset: Annotated[Path, typer.Argument(..., help="JSON, JSON-lines or YAML dataset.")],
    folds: Annotated[int, typer.Option("-k", "--folds", help="Number of folds.")] = DEFAULT_FOLDS,
    seed: Annotated[
        int | None,
        typer.Option("--seed", help="Shuffle seed for reproducible folds."),
    ] = None,
) -> None:
    """Cross-validate the configured classifier options on fresh in-memory models."""

    config = _load_environment(_state(ctx))
    samples = _load_samples(dataset)

    def factory() -> Bayesian:
        return Bayesian(config.classifier, backend=MemoryBackend())

    try:
        result = cross_validate(factory, samples, folds, random_state=seed)
    except ValueError as exc:
        _fail(str(exc), exc)
    typer.echo(f"Folds: {folds}")
    typer.echo(f"Train size: {result.train_size:.1f}")
    typer.echo(f"Test size: {result.test_size:.1f}")
    typer.echo(f"Error rate: {result.error:.4f}")
    typer.echo(f"Train time: {result.train_time:.4f}s")
    typer.echo(f"Test time: {result.test_time:.4f}s")


@app.command("export")
def export_command(
    ctx: typer.Context,
    output: Annotated[
        Path | None,
        typer.Argument(help="Write the snapshot here instead of stdout."),
    ] = None,
) -> None:
    """Dump the model counts as JSON."""

    config = _load_environment(_state(ctx))
    snapshot = _execute(config, lambda classifier: classifier.export_state())
    payload = json.dumps(snapshot, indent=2, sort_keys=True)
    if output is None:
        typer.echo(payload)
        return
    target = output.expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(payload + "\n", encoding="utf-8")
    typer.echo(f"Exported model to {target}")


@app.command("import")
def import_command(
    ctx: typer.Context,
    snapshot: Annotated[Path, typer.Argument(..., help="JSON snapshot produced by export.")],
) -> None:
    """Replace the model counts with a previously exported snapshot."""

    config = _load_environment(_state(ctx))
    source = snapshot.expanduser()
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        _fail(f"Failed to read snapshot {source}: {exc}", exc)
    _execute(config, lambda classifier: classifier.import_state(payload))
    typer.echo(f"Imported model from {source}")


@app.command()
def status(ctx: typer.Context) -> None:
    """Display configuration and trained category totals."""

    state = _state(ctx)
    config = _load_environment(state)
    categories = _execute(config, lambda classifier: classifier.backend.get_categories())

    typer.echo("→ Bayesian Status")
    typer.echo(f"Version: {__version__}")
    typer.echo(f"Config path: {resolve_config_path(state.config_path)}")
    typer.echo(f"Root dir: {config.root_dir}")
    typer.echo(f"Backend: {config.backend.type}")
    typer.echo(f"Default category: {config.classifier.default}")
    typer.echo("")
    if not categories:
        typer.echo("Categories: none trained")
        return
    typer.echo("Categories:")
    for name, count in sorted(categories.items(), key=lambda item: str(item[0])):
        typer.echo(f"  - {name}: {count} document(s)")


def _state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise RuntimeError("CLI state missing from context.")
    return state


def _load_environment(state: CLIState) -> Config:
    try:
        config = load_config(state.config_path)
        configure_logging(config.logging, config.root_dir)
    except ConfigError as exc:
        _config_failure(exc)
    return config


def _load_samples(path: Path) -> list[LabeledSample]:
    try:
        return load_dataset(path)
    except DatasetError as exc:
        _fail(str(exc), exc)


def _execute(config: Config, operation: Callable[[Bayesian], Any]) -> Any:
    """Run ``operation`` against a classifier built from config, awaiting if needed."""

    try:
        classifier = _build_classifier(config)
        if classifier.is_async:
            return asyncio.run(_execute_async(classifier, operation))
        try:
            return operation(classifier)
        finally:
            classifier.close()
    except BackendFailure as exc:
        _fail(f"Backend error: {exc}", exc)
    except (InvalidDocumentType, EmptyDatasetError) as exc:
        _fail(str(exc), exc)


async def _execute_async(classifier: Bayesian, operation: Callable[[Bayesian], Any]) -> Any:
    try:
        result = operation(classifier)
        if inspect.isawaitable(result):
            result = await result
        return result
    finally:
        await classifier.close()


def _build_classifier(config: Config) -> Bayesian:
    try:
        return Bayesian(config.classifier, backend_config=config.backend)
    except ValueError as exc:
        _config_failure(ConfigError(str(exc)))


def _config_failure(exc: ConfigError) -> NoReturn:
    typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(2) from exc


def _fail(message: str, exc: BaseException) -> NoReturn:
    LOGGER.debug("Command failed", exc_info=exc)
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(1) from exc

