"""Local folder note store for Notetasks.

Every *.md or *.txt file under a directory is a note. Like Apple Notes,
the first line of the file is the note's title, so renaming a note means
rewriting its first line and a rebuilt note starts with its header.

Configuration (via environment variables):
- NOTETASKS_NOTES_DIR: directory holding the notes (required).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence

from ..parser import split_lines
from ..rewriter import render_plain
from .base import BaseNoteStore, NoteRef, NoteStoreError

log = logging.getLogger(__name__)

NOTE_SUFFIXES = (".md", ".txt")


class LocalNoteStore(BaseNoteStore):
    """Note store backed by plain-text files in one directory tree."""

    name: str = "local"

    def __init__(self, root: Optional[Path] = None) -> None:
        raw = root if root is not None else os.environ.get("NOTETASKS_NOTES_DIR", "")
        self.root = Path(raw).expanduser() if raw else None

    def _require_root(self) -> Path:
        if self.root is None:
            raise NoteStoreError("io_error", "NOTETASKS_NOTES_DIR is not set")
        if not self.root.is_dir():
            raise NoteStoreError("io_error", f"notes directory does not exist: {self.root}")
        return self.root

    def _path(self, note_id: str) -> Path:
        root = self._require_root()
        path = (root / note_id).resolve()
        if root.resolve() not in path.parents:
            raise NoteStoreError("not_found", f"note id outside notes directory: {note_id}")
        return path

    @staticmethod
    def _title_of(path: Path, text: str) -> str:
        first = split_lines(text)[0].strip() if text else ""
        return first or path.stem

    def _read(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise NoteStoreError("io_error", f"cannot read {path}: {e}")

    def _write(self, path: Path, text: str) -> None:
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise NoteStoreError("io_error", f"cannot write {path}: {e}")

    def list_candidate_notes(self, title_filter: str, limit: int = 10) -> List[NoteRef]:
        root = self._require_root()
        needle = title_filter.casefold()
        notes: List[NoteRef] = []
        for path in sorted(p for p in root.rglob("*") if p.suffix.lower() in NOTE_SUFFIXES):
            if not path.is_file():
                continue
            try:
                title = self._title_of(path, self._read(path))
            except NoteStoreError as e:
                log.warning(f"skipping unreadable note file: {e}")
                continue
            if needle in title.casefold():
                notes.append(NoteRef(id=path.relative_to(root).as_posix(), name=title))
                if len(notes) >= limit:
                    break
        return notes

    def fetch_note_body(self, note_id: str) -> str:
        return self._read(self._path(note_id))

    def update_note_body(self, note_id: str, body: str) -> None:
        self._write(self._path(note_id), body)

    def update_note_title(self, note_id: str, title: str) -> None:
        path = self._path(note_id)
        lines = split_lines(self._read(path))
        lines[0] = title
        self._write(path, "\n".join(lines))

    def render_body(self, header: str, lines: Sequence[str]) -> str:
        return render_plain(header, lines)
