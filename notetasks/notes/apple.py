"""Apple Notes store for Notetasks.

Talks to Notes.app through `osascript`. Scripts are fed on stdin and the
note ids, titles and bodies travel as script arguments, so nothing has to
be escaped into AppleScript source.

Configuration (via environment variables):
- NOTETASKS_OSASCRIPT: optional path to the osascript binary.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from typing import List

from .base import BaseNoteStore, NoteRef, NoteStoreError

log = logging.getLogger(__name__)

LIST_SCRIPT = """
on run argv
    set titleFilter to item 1 of argv
    set maxNotes to (item 2 of argv) as integer
    set output to ""
    set noteCount to 0
    tell application "Notes"
        repeat with theNote in notes
            set noteName to name of theNote
            if noteName contains titleFilter then
                set output to output & (id of theNote) & tab & noteName & linefeed
                set noteCount to noteCount + 1
                if noteCount ≥ maxNotes then exit repeat
            end if
        end repeat
    end tell
    return output
end run
"""

FETCH_SCRIPT = """
on run argv
    tell application "Notes" to return plaintext of note id (item 1 of argv)
end run
"""

UPDATE_BODY_SCRIPT = """
on run argv
    tell application "Notes" to set body of note id (item 1 of argv) to (item 2 of argv)
end run
"""

UPDATE_TITLE_SCRIPT = """
on run argv
    tell application "Notes" to set name of note id (item 1 of argv) to (item 2 of argv)
end run
"""

# AppleEvent timed out / application not running yet
TRANSIENT_MARKERS = ("(-1712)", "(-600)")


def _strip_trailing_newline(s: str) -> str:
    return s[:-1] if s.endswith("\n") else s


class AppleNotesStore(BaseNoteStore):
    """Note store backed by Notes.app on macOS."""

    name: str = "apple"

    def __init__(self, retries: int = 2, initial_delay: float = 1.0) -> None:
        self._osascript = os.environ.get("NOTETASKS_OSASCRIPT") or "osascript"
        self._retries = retries
        self._initial_delay = initial_delay

    def run_script(self, script: str, *args: str) -> str:
        """Run an AppleScript with arguments and return its stdout.

        Retries with exponential backoff when Notes.app is slow to answer
        (AppleEvent timeouts, app still launching). Other failures are
        raised immediately as NoteStoreError.
        """
        cmd = [self._osascript, "-", *args]
        for attempt in range(self._retries + 1):
            try:
                result = subprocess.run(
                    cmd,
                    input=script,
                    capture_output=True,
                    text=True,
                    check=True,
                )
                return _strip_trailing_newline(result.stdout)
            except FileNotFoundError:
                raise NoteStoreError(
                    "tool_missing", f"{self._osascript} not found; Apple Notes needs macOS"
                )
            except subprocess.CalledProcessError as e:
                msg = (e.stderr or "").strip() or str(e)
                if any(m in msg for m in TRANSIENT_MARKERS) and attempt < self._retries:
                    delay = self._initial_delay * (2 ** attempt)
                    log.warning(
                        f"osascript transient failure (attempt {attempt + 1}/{self._retries}), "
                        f"retrying in {delay:.1f}s..."
                    )
                    time.sleep(delay)
                    continue
                raise NoteStoreError("tool_failed", msg)

        # unreachable
        raise NoteStoreError("tool_failed", "osascript retries exhausted")

    def list_candidate_notes(self, title_filter: str, limit: int = 10) -> List[NoteRef]:
        out = self.run_script(LIST_SCRIPT, title_filter, str(limit))
        notes: List[NoteRef] = []
        for line in out.splitlines():
            if "\t" not in line:
                continue
            note_id, name = line.split("\t", 1)
            notes.append(NoteRef(id=note_id.strip(), name=name))
        return notes

    def fetch_note_body(self, note_id: str) -> str:
        return self.run_script(FETCH_SCRIPT, note_id)

    def update_note_body(self, note_id: str, body: str) -> None:
        self.run_script(UPDATE_BODY_SCRIPT, note_id, body)

    def update_note_title(self, note_id: str, title: str) -> None:
        self.run_script(UPDATE_TITLE_SCRIPT, note_id, title)
