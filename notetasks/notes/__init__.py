"""Note store registry for Notetasks.

This module wires together the base store interface and concrete
implementations (Apple Notes, a local folder) so that notetasks.py can
resolve a configured store name into a store instance.
"""

from __future__ import annotations

import os
from typing import Callable, Dict, Optional

from .base import BaseNoteStore, NoopNoteStore, NoteRef, NoteStoreError

try:
    from .apple import AppleNotesStore
except Exception:
    AppleNotesStore = None  # type: ignore

try:
    from .local import LocalNoteStore
except Exception:
    LocalNoteStore = None  # type: ignore


_PROVIDER_FACTORIES: Dict[str, Callable[[], BaseNoteStore]] = {}


def _register_defaults() -> None:
    """Populate the store registry with built-in stores."""

    if _PROVIDER_FACTORIES:
        return

    _PROVIDER_FACTORIES["noop"] = lambda: NoopNoteStore()

    if AppleNotesStore is not None:
        _PROVIDER_FACTORIES["apple"] = lambda: AppleNotesStore()

    if LocalNoteStore is not None:
        _PROVIDER_FACTORIES["local"] = lambda: LocalNoteStore()


def get_provider(name: Optional[str]) -> BaseNoteStore:
    """Return a note store instance for the given name.

    If the name is None or empty, defaults to "apple". Unknown names
    fall back to the noop store so that a typo never touches real notes.

    Args:
        name: Store name ("apple", "local", "noop")

    Returns:
        BaseNoteStore instance
    """

    _register_defaults()

    if not name:
        name = "apple"

    factory = _PROVIDER_FACTORIES.get(name.strip().lower())
    if factory is None:
        return NoopNoteStore()

    return factory()


def provider_from_env() -> BaseNoteStore:
    """Resolve a note store based on NOTETASKS_NOTE_PROVIDER."""

    name = os.environ.get("NOTETASKS_NOTE_PROVIDER", "").strip() or None
    return get_provider(name)


__all__ = [
    "BaseNoteStore",
    "NoopNoteStore",
    "NoteRef",
    "NoteStoreError",
    "get_provider",
    "provider_from_env",
]
