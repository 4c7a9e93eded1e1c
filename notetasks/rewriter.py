"""Rebuild a note after its tasks have been filed.

Only lines that produced a task which the todo provider confirmed as
created are removed, together with section hashtags and attachment
sentinels. Everything else survives verbatim and in order.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Set

from .parser import (
    DEFAULT_SECTION_TAGS,
    ExtractionMode,
    LineKind,
    LineRecord,
    TaskRecord,
    extract_tasks,
    scan_lines,
)


class RewriteMode(Enum):
    """What happens to a note once its tasks are filed."""

    NOOP = "noop"
    SELECTIVE_REBUILD = "selective-rebuild"


@dataclass
class RebuildResult:
    header: str
    kept: List[str] = field(default_factory=list)
    dropped: List[LineRecord] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.dropped)


def header_for_section(section: Optional[str], fallback: str = "") -> str:
    """Display form of a section tag: "#work" -> "Work"."""
    name = (section or "").strip().lstrip("#")
    if not name:
        return fallback.strip()
    return name[0].upper() + name[1:]


def rebuild_document(
    lines: Sequence[str],
    filed: Iterable[TaskRecord],
    header: str,
    title: str = "",
    section_tags: Sequence[str] = DEFAULT_SECTION_TAGS,
    mode: ExtractionMode = ExtractionMode.HASHTAG_SCOPED_BULLETS,
) -> RebuildResult:
    """Return the lines to keep after removing filed tasks.

    Only lines that `mode` would extract as tasks can be removed. A filed
    task removes the line at its own `line_no` when that line still yields
    the same text. Otherwise it removes the first remaining task line with
    equal text, so a note edited between extraction and rebuild still
    loses the right line. Tasks with no such line are reported in
    `unmatched`.
    """
    records = scan_lines(lines, title, section_tags)
    candidates = {t.line_no - 1: t.text for t in extract_tasks(records, mode)}

    consumed: Set[int] = set()
    relocate: List[str] = []
    for task in filed:
        index = task.line_no - 1
        if index not in consumed and candidates.get(index) == task.text:
            consumed.add(index)
        else:
            relocate.append(task.text)

    unmatched: List[str] = []
    for text in relocate:
        index = next(
            (i for i in sorted(candidates) if i not in consumed and candidates[i] == text),
            None,
        )
        if index is None:
            unmatched.append(text)
        else:
            consumed.add(index)

    result = RebuildResult(header=header, unmatched=sorted(unmatched))
    for rec in records:
        if rec.kind in (LineKind.SECTION_MARKER, LineKind.SENTINEL) or rec.index in consumed:
            result.dropped.append(rec)
        else:
            result.kept.append(rec.raw)
    return result


def render_html(header: str, lines: Sequence[str]) -> str:
    """Render kept lines as a note body in the editor's HTML form.

    One heading block, then one <div> per line; blank lines become an
    explicit <br>.
    """
    parts = [f"<div><h1>{html.escape(header)}</h1></div>"]
    for line in lines:
        if line.strip():
            parts.append(f"<div>{html.escape(line)}</div>")
        else:
            parts.append("<div><br></div>")
    return "\n".join(parts)


def render_plain(header: str, lines: Sequence[str]) -> str:
    """Plain-text counterpart of render_html: header line, then lines."""
    return "\n".join([header, *lines])
