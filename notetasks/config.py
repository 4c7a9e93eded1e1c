from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

from .parser import DEFAULT_SECTION_TAGS, ExtractionMode, normalize_tags
from .rewriter import RewriteMode

log = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    "🏃‍♂️ Physical Health",
    "🌱 Personal",
    "🍻 Interpersonal",
    "❤️ Mental Health",
    "🏠 Home",
]

DEFAULT_DETERMINISTIC = {"#work": "💼 Work"}

PERSIST_CONTINUE = "continue"
PERSIST_ABORT = "abort"


@dataclass(frozen=True)
class NoteTasksConfig:
    note_title_filter: str = "#Tasks"
    section_tags: tuple = tuple(normalize_tags(DEFAULT_SECTION_TAGS))
    extraction_mode: ExtractionMode = ExtractionMode.HASHTAG_SCOPED_BULLETS
    rewrite_mode: RewriteMode = RewriteMode.NOOP
    on_persist_failure: str = PERSIST_CONTINUE
    deterministic_categories: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_DETERMINISTIC)
    )
    categories: List[str] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    fallback_category: str = "🌱 Personal"
    context_path: Optional[Path] = None
    max_notes: int = 10
    task_status: str = "🔴 To Do"
    retitle_notes: bool = False


def _parse_mode(enum_cls, raw: str, what: str):
    try:
        return enum_cls(raw.strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise RuntimeError(f"Unknown {what} {raw!r} (expected one of: {allowed})")


def load_config(project_root: Optional[Path] = None) -> NoteTasksConfig:
    """
    Load configuration from .env and notetasks.config.json

    The JSON file is optional; every key falls back to its default. A few
    keys can also be overridden from the environment.
    """

    if project_root is None:
        # Assume this file is notetasks/config.py
        project_root = Path(__file__).resolve().parents[1]

    # 1) Load .env (never overrides variables already set)
    env_path = project_root / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    # 2) Optional JSON config
    config_path_env = os.getenv("NOTETASKS_CONFIG_PATH", "notetasks.config.json")
    config_path = (project_root / config_path_env).expanduser()

    raw: dict = {}
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
        log.debug(f"loaded config from {config_path}")
    elif os.getenv("NOTETASKS_CONFIG_PATH"):
        raise RuntimeError(f"Config file not found: {config_path}")

    extraction_raw = os.getenv("NOTETASKS_EXTRACTION_MODE") or raw.get(
        "extraction_mode", ExtractionMode.HASHTAG_SCOPED_BULLETS.value
    )
    rewrite_raw = os.getenv("NOTETASKS_REWRITE_MODE") or raw.get(
        "rewrite_mode", RewriteMode.NOOP.value
    )
    on_failure = (
        os.getenv("NOTETASKS_ON_PERSIST_FAILURE")
        or raw.get("on_persist_failure", PERSIST_CONTINUE)
    ).strip().lower()
    if on_failure not in {PERSIST_CONTINUE, PERSIST_ABORT}:
        raise RuntimeError(
            f"Unknown on_persist_failure {on_failure!r} (expected 'continue' or 'abort')"
        )

    section_tags = normalize_tags(raw.get("section_tags") or DEFAULT_SECTION_TAGS)
    if not section_tags:
        raise RuntimeError("section_tags must name at least one tag")

    deterministic = {
        normalize_tags([tag])[0]: category
        for tag, category in (raw.get("deterministic_categories") or DEFAULT_DETERMINISTIC).items()
        if tag.strip().lstrip("#")
    }

    categories = list(raw.get("categories") or DEFAULT_CATEGORIES)
    fallback = raw.get("fallback_category", "🌱 Personal")
    if fallback not in categories:
        raise RuntimeError(
            f"fallback_category {fallback!r} must be one of the configured categories"
        )
    overlap = [c for c in deterministic.values() if c in categories]
    if overlap:
        raise RuntimeError(
            f"deterministic categories must not be offered to the classifier: {overlap}"
        )

    context_raw = raw.get("context_path", "context.md")
    context_path = (project_root / context_raw).expanduser() if context_raw else None

    return NoteTasksConfig(
        note_title_filter=os.getenv("NOTETASKS_NOTE_TITLE_FILTER")
        or raw.get("note_title_filter", "#Tasks"),
        section_tags=section_tags,
        extraction_mode=_parse_mode(ExtractionMode, extraction_raw, "extraction_mode"),
        rewrite_mode=_parse_mode(RewriteMode, rewrite_raw, "rewrite_mode"),
        on_persist_failure=on_failure,
        deterministic_categories=deterministic,
        categories=categories,
        fallback_category=fallback,
        context_path=context_path,
        max_notes=int(raw.get("max_notes", 10)),
        task_status=raw.get("task_status", "🔴 To Do"),
        retitle_notes=bool(raw.get("retitle_notes", False)),
    )


def load_context(path: Optional[Path]) -> str:
    """Read the optional classification context block.

    A missing file is a normal setup, not an error.
    """
    if path is None:
        return ""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        log.info(f"no context file at {path}; create it to add classification context")
        return ""
    log.info(f"loaded context file {path}")
    return text.strip()
