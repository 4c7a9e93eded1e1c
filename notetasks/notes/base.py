"""Base note store interface for Notetasks.

A note store is where the notes live (Apple Notes, a folder of text
files, ...). The pipeline only ever needs four things from it: find
candidate notes by title, read a note, overwrite a note's body and
rename a note. Each write replaces the whole note at once.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Sequence

from ..rewriter import render_html


class NoteStoreError(Exception):
    """Raised when the note store cannot be queried or written.

    `kind` is a short machine-friendly reason ("tool_missing",
    "tool_failed", "io_error", "not_found").
    """

    def __init__(self, kind: str, message: str):
        self.kind = kind
        super().__init__(message)


@dataclass(frozen=True)
class NoteRef:
    """A note found by list_candidate_notes."""

    id: str
    name: str


class BaseNoteStore(ABC):
    """Abstract base class for note stores."""

    name: str = "base"

    @abstractmethod
    def list_candidate_notes(self, title_filter: str, limit: int = 10) -> List[NoteRef]:
        """Return up to `limit` notes whose title contains `title_filter`.

        Raises NoteStoreError if the store can't be queried at all.
        """
        raise NotImplementedError

    @abstractmethod
    def fetch_note_body(self, note_id: str) -> str:
        """Return the full plain-text body of one note, title line included."""
        raise NotImplementedError

    @abstractmethod
    def update_note_body(self, note_id: str, body: str) -> None:
        """Overwrite a note's body with an already rendered body."""
        raise NotImplementedError

    @abstractmethod
    def update_note_title(self, note_id: str, title: str) -> None:
        raise NotImplementedError

    def render_body(self, header: str, lines: Sequence[str]) -> str:
        """Render rebuilt lines in this store's body format.

        Default is the editor's HTML form: a heading block, one block per
        line, and an explicit line break for blank lines.
        """
        return render_html(header, lines)


class NoopNoteStore(BaseNoteStore):
    """A note store with no notes that ignores writes.

    Useful for checking configuration without touching any notes.
    """

    name: str = "noop"

    def list_candidate_notes(self, title_filter: str, limit: int = 10) -> List[NoteRef]:
        return []

    def fetch_note_body(self, note_id: str) -> str:
        return ""

    def update_note_body(self, note_id: str, body: str) -> None:
        return None

    def update_note_title(self, note_id: str, title: str) -> None:
        return None
