"""Line scanner and task extractor for note bodies.

The scanner walks a note line by line and tags each line with what it
structurally is (section hashtag, bullet, comment, attachment sentinel,
...). The extractor then turns that annotated stream into TaskRecord
objects according to the configured extraction mode.

Nothing in here talks to a note store, a model or a todo provider.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence

# Placeholder glyph the note editor inserts where an attachment is embedded
# (U+FFFC OBJECT REPLACEMENT CHARACTER).
SENTINEL_CHAR = "\ufffc"

COMMENT_PREFIX = "//"

BULLET_CHARS = "•-*"

DEFAULT_SECTION_TAGS = ("work", "personal")

BULLET_RX = re.compile(rf"^(?:[{re.escape(BULLET_CHARS)}]|\d+\.\s)\s*(.*)$")


class LineKind(Enum):
    SENTINEL = "sentinel-line"
    SECTION_MARKER = "section-marker"
    COMMENT = "comment-line"
    TITLE_ECHO = "title-echo-line"
    BLANK = "blank-line"
    BULLET = "bullet-line"
    PLAIN = "plain-line"


class ExtractionMode(Enum):
    """Which lines of a note count as tasks."""

    HASHTAG_SCOPED_BULLETS = "hashtag-scoped-bullets"
    FLAT_NON_EMPTY_LINE = "flat-non-empty-line"


@dataclass(frozen=True)
class LineRecord:
    """One scanned line of a note."""

    index: int                 # 0-based position in the note
    raw: str                   # the line exactly as it appeared
    kind: LineKind
    text: str = ""             # bullet/plain content, already trimmed
    tag: Optional[str] = None  # "#work" style tag for section markers


@dataclass
class TaskRecord:
    """A unit of work pulled out of a note.

    `text` is also how the rewriter finds the originating line again, so
    it is kept exactly as extracted (trimmed, bullet marker stripped).
    `category` stays None until the categorizer has run.
    """

    text: str
    section: Optional[str]
    line_no: int
    category: Optional[str] = None


def normalize_tags(tags: Iterable[str]) -> tuple[str, ...]:
    """Return tags in "#name" case-folded form, without duplicates."""
    out: list[str] = []
    for tag in tags:
        t = tag.strip().lstrip("#").casefold()
        if t and f"#{t}" not in out:
            out.append(f"#{t}")
    return tuple(out)


def split_lines(body: str) -> list[str]:
    return body.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def classify_line(
    index: int,
    line: str,
    title: str = "",
    section_tags: Sequence[str] = DEFAULT_SECTION_TAGS,
) -> LineRecord:
    """Tag a single line. Rules are applied in priority order."""
    trimmed = line.strip()
    tags = normalize_tags(section_tags)

    if trimmed and trimmed[0] == SENTINEL_CHAR:
        return LineRecord(index, line, LineKind.SENTINEL)

    folded = trimmed.casefold()
    if folded in tags:
        return LineRecord(index, line, LineKind.SECTION_MARKER, tag=folded)

    if trimmed.startswith(COMMENT_PREFIX):
        return LineRecord(index, line, LineKind.COMMENT)

    title_folded = title.strip().casefold()
    if title_folded and folded == title_folded:
        return LineRecord(index, line, LineKind.TITLE_ECHO)

    if not trimmed:
        return LineRecord(index, line, LineKind.BLANK)

    m = BULLET_RX.match(trimmed)
    if m:
        return LineRecord(index, line, LineKind.BULLET, text=m.group(1).strip())

    return LineRecord(index, line, LineKind.PLAIN, text=trimmed)


def scan_lines(
    lines: Sequence[str],
    title: str = "",
    section_tags: Sequence[str] = DEFAULT_SECTION_TAGS,
) -> list[LineRecord]:
    return [classify_line(i, line, title, section_tags) for i, line in enumerate(lines)]


def scan_document(
    body: str,
    title: str = "",
    section_tags: Sequence[str] = DEFAULT_SECTION_TAGS,
) -> list[LineRecord]:
    """Split a note body into lines and scan them."""
    return scan_lines(split_lines(body), title, section_tags)


def section_from_title(title: str, section_tags: Sequence[str] = DEFAULT_SECTION_TAGS) -> Optional[str]:
    """Return the first recognized tag that appears as a word in a note title.

    Used by flat extraction, where the whole note belongs to one section.
    Both "#work" and a bare "work" count.
    """
    words = re.findall(r"#?[\w-]+", title.casefold())
    tags = normalize_tags(section_tags)
    for word in words:
        tag = word if word.startswith("#") else f"#{word}"
        if tag in tags:
            return tag
    return None


def extract_tasks(
    records: Iterable[LineRecord],
    mode: ExtractionMode,
    section: Optional[str] = None,
) -> List[TaskRecord]:
    """Turn scanned lines into task records, in note order.

    For HASHTAG_SCOPED_BULLETS, only bullets under a section marker count
    and each task takes the nearest preceding marker's tag. For
    FLAT_NON_EMPTY_LINE every bullet or plain line counts and all tasks
    take the fixed `section` passed in.
    """
    tasks: List[TaskRecord] = []

    if mode is ExtractionMode.HASHTAG_SCOPED_BULLETS:
        current: Optional[str] = None
        for rec in records:
            if rec.kind is LineKind.SECTION_MARKER:
                current = rec.tag
                continue
            if rec.kind is LineKind.BULLET and current and rec.text:
                tasks.append(TaskRecord(text=rec.text, section=current, line_no=rec.index + 1))
        return tasks

    if mode is ExtractionMode.FLAT_NON_EMPTY_LINE:
        for rec in records:
            if rec.kind in (LineKind.BULLET, LineKind.PLAIN) and rec.text:
                tasks.append(TaskRecord(text=rec.text, section=section, line_no=rec.index + 1))
        return tasks

    raise ValueError(f"Unsupported extraction mode: {mode!r}")
