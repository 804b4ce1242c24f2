"""Feature extraction: turn a document into a set of presence features."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from .types import Feature, FeatureSet

_NON_WORD = re.compile(r"\W+")


class InvalidDocumentType(TypeError):
    """Raised when a document is neither text, a keyed record, nor a feature sequence."""


def extract_features(doc: Any) -> FeatureSet:
    """Return the unique features of ``doc`` in first-seen order.

    Text is split on runs of non-word characters (case preserved, no stemming),
    mappings contribute their keys and sequences or sets their elements.
    """

    if isinstance(doc, str):
        return _unique(token for token in _NON_WORD.split(doc) if token)
    if isinstance(doc, Mapping):
        return _unique(doc.keys())
    if isinstance(doc, (list, tuple, set, frozenset)):
        return _unique(doc)
    raise InvalidDocumentType(f"Unknown document type: {type(doc).__name__}")


def _unique(features: Iterable[Feature]) -> FeatureSet:
    return tuple(dict.fromkeys(features))


__all__ = ["InvalidDocumentType", "extract_features"]
