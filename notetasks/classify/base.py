"""Base interface for Notetasks classifiers.

A classifier is a single-shot text completion: it receives a fully built
prompt and returns the raw answer. Prompt construction and validation of
the answer belong to notetasks.categorizer, not to the classifier.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ClassificationError(Exception):
    """Raised when a classifier cannot produce an answer at all."""


class BaseClassifier(ABC):
    """Abstract base class for classification providers."""

    name: str = "base"

    @abstractmethod
    def classify(self, prompt: str) -> str:
        """Return the model's raw answer for `prompt`.

        Implementations may raise ClassificationError (or anything else);
        callers treat every failure as "no usable answer".
        """
        raise NotImplementedError


class NoopClassifier(BaseClassifier):
    """A classifier that never answers.

    Every delegated task therefore lands in the fallback category. Useful
    when no API key is configured or for dry runs.
    """

    name: str = "noop"

    def classify(self, prompt: str) -> str:
        return ""
