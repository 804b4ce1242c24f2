"""Bayesian package initialisation."""

from importlib import metadata

from .classifier import Bayesian, EmptyDatasetError
from .features import InvalidDocumentType, extract_features
from .types import DEFAULT_CATEGORY, ClassifierOptions, LabeledSample, Sample


def _discover_version() -> str:
    """Return the installed package version, falling back to dev marker."""
    try:
        return metadata.version("bayesian-classifier")
    except metadata.PackageNotFoundError:  # pragma: no cover - occurs in source checkouts
        return "0.0.0"


__all__ = [
    "__version__",
    "Bayesian",
    "ClassifierOptions",
    "DEFAULT_CATEGORY",
    "EmptyDatasetError",
    "InvalidDocumentType",
    "LabeledSample",
    "Sample",
    "extract_features",
]
__version__ = _discover_version()
