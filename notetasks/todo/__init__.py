"""Todo provider registry for Notetasks.

This module wires together the base provider interface and concrete
implementations (Notion, Todoist) so that notetasks.py can resolve a
configured provider name into a provider instance.
"""

from __future__ import annotations

import os
from typing import Callable, Dict, Optional

from .base import BaseTodoProvider, NoopTodoProvider, TodoContext

try:
    from .notion import NotionProvider
except Exception:
    NotionProvider = None  # type: ignore

# Optional: needs unidecode for label flattening.
try:
    from .todoist import TodoistProvider
except Exception:  # ModuleNotFoundError or any import-time failure
    TodoistProvider = None  # type: ignore


_PROVIDER_FACTORIES: Dict[str, Callable[[], BaseTodoProvider]] = {}


def _register_defaults() -> None:
    """Populate the provider registry with built-in providers.

    This is kept lazy so that importing notetasks.todo does not
    immediately pull in all optional provider dependencies.
    """

    if _PROVIDER_FACTORIES:
        return

    # Always available: a no-op provider that marks tasks as skipped.
    _PROVIDER_FACTORIES["noop"] = lambda: NoopTodoProvider()

    if NotionProvider is not None:
        _PROVIDER_FACTORIES["notion"] = lambda: NotionProvider()

    if TodoistProvider is not None:
        _PROVIDER_FACTORIES["todoist"] = lambda: TodoistProvider()


def get_provider(name: Optional[str]) -> BaseTodoProvider:
    """Return a provider instance for the given name.

    If the name is None, empty, or unknown, a NoopTodoProvider is
    returned, so a misconfigured run files nothing and therefore removes
    nothing from the notes.
    """

    _register_defaults()

    if not name:
        return NoopTodoProvider()

    key = name.strip().lower()
    factory = _PROVIDER_FACTORIES.get(key)
    if factory is None:
        return NoopTodoProvider()

    return factory()


def provider_from_env() -> BaseTodoProvider:
    """Resolve a provider based on NOTETASKS_TODO_PROVIDER."""

    name = os.environ.get("NOTETASKS_TODO_PROVIDER", "").strip() or None
    return get_provider(name)


__all__ = [
    "BaseTodoProvider",
    "NoopTodoProvider",
    "TodoContext",
    "get_provider",
    "provider_from_env",
]
