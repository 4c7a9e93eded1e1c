"""Classifier registry for Notetasks.

Resolves a configured classifier name into a classifier instance. Unknown
or empty names yield the NoopClassifier, which sends every delegated task
to the fallback category rather than crashing the run.
"""

from __future__ import annotations

import os
from typing import Callable, Dict, Optional

from .base import BaseClassifier, ClassificationError, NoopClassifier

try:
    from .anthropic import AnthropicClassifier
except Exception:
    AnthropicClassifier = None  # type: ignore


_PROVIDER_FACTORIES: Dict[str, Callable[[], BaseClassifier]] = {}


def _register_defaults() -> None:
    if _PROVIDER_FACTORIES:
        return

    _PROVIDER_FACTORIES["noop"] = lambda: NoopClassifier()

    if AnthropicClassifier is not None:
        _PROVIDER_FACTORIES["anthropic"] = lambda: AnthropicClassifier()


def get_provider(name: Optional[str]) -> BaseClassifier:
    """Return a classifier for the given name (noop when unknown)."""

    _register_defaults()

    if not name:
        return NoopClassifier()

    factory = _PROVIDER_FACTORIES.get(name.strip().lower())
    if factory is None:
        return NoopClassifier()

    return factory()


def provider_from_env() -> BaseClassifier:
    """Resolve a classifier based on NOTETASKS_CLASSIFIER_PROVIDER.

    Defaults to "anthropic" when an ANTHROPIC_API_KEY is present and no
    provider is named explicitly.
    """

    name = os.environ.get("NOTETASKS_CLASSIFIER_PROVIDER", "").strip()
    if not name and os.environ.get("ANTHROPIC_API_KEY", "").strip():
        name = "anthropic"
    return get_provider(name or None)


__all__ = [
    "BaseClassifier",
    "ClassificationError",
    "NoopClassifier",
    "get_provider",
    "provider_from_env",
]
