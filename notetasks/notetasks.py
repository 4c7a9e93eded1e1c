from __future__ import annotations

import argparse
import datetime
import json
import logging
import os
import urllib.error
import urllib.request
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from . import storage
from .__version__ import __version__
from .categorizer import TaskCategorizer
from .classify import BaseClassifier, provider_from_env as classifier_from_env
from .config import PERSIST_ABORT, NoteTasksConfig, load_config, load_context
from .notes import BaseNoteStore, NoteRef, NoteStoreError, provider_from_env as note_store_from_env
from .notifications import (
    BaseNotificationProvider,
    NotificationPayload,
    NotificationSeverity,
    providers_from_env as notification_providers_from_env,
)
from .parser import ExtractionMode, TaskRecord, extract_tasks, scan_lines, section_from_title, split_lines
from .rewriter import RebuildResult, RewriteMode, header_for_section, rebuild_document
from .storage import TaskSyncResult
from .todo import BaseTodoProvider, TodoContext, provider_from_env as todo_provider_from_env

# Load environment variables from the project .env before reading them
ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(ENV_PATH)

# Determine verbose mode from environment variable NOTETASKS_VERBOSE
VERBOSE = os.environ.get("NOTETASKS_VERBOSE", "0") == "1"

# Notification mode: all, errors, none
_raw_notify_mode = os.environ.get("NOTETASKS_NOTIFICATIONS", "errors")
NOTIFY_MODE = _raw_notify_mode.strip().strip("'\"").lower()
if NOTIFY_MODE not in {"all", "errors", "none"}:
    NOTIFY_MODE = "errors"

HEALTHCHECK_URL = os.environ.get("NOTETASKS_HEALTHCHECK_URL")

_default_log_path = Path.home() / ".notetasks.log"
LOG_PATH = Path(os.environ["NOTETASKS_LOG_PATH"]) if os.environ.get("NOTETASKS_LOG_PATH") else _default_log_path

log = logging.getLogger("notetasks")


def setup_logging(verbose: bool) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    try:
        handlers.append(logging.FileHandler(LOG_PATH, encoding="utf-8"))
    except OSError as e:
        print(f"cannot open log file {LOG_PATH}: {e}")
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )


def ping_healthcheck(suffix: str = "") -> None:
    """Ping healthchecks.io (or compatible endpoint) if configured.

    Uses NOTETASKS_HEALTHCHECK_URL as the base; appends an optional suffix
    such as "/start" or "/fail". Network errors are logged at debug level
    and otherwise ignored so that healthcheck outages do not break a run.
    """
    if not HEALTHCHECK_URL:
        return
    url = HEALTHCHECK_URL.rstrip("/") + suffix
    try:
        with urllib.request.urlopen(url, timeout=5):
            pass
    except (urllib.error.URLError, OSError) as e:
        log.debug(f"healthcheck ping to {url} failed: {e}")


class PersistenceAborted(Exception):
    """Raised under the "abort" policy when a task could not be filed."""

    def __init__(self, task: TaskRecord, result: TaskSyncResult):
        self.task = task
        self.result = result
        super().__init__(f'could not file "{task.text}": {result.error}')


@dataclass
class RunStats:
    notes_found: int = 0
    notes_unreadable: int = 0
    tasks_found: int = 0
    tasks_created: int = 0
    tasks_failed: int = 0
    tasks_fallback: int = 0
    notes_rewritten: int = 0
    rewrites_failed: int = 0
    discovery_failed: bool = False
    aborted: bool = False

    @property
    def errorish(self) -> bool:
        return bool(self.discovery_failed or self.aborted or self.tasks_failed or self.rewrites_failed)


@dataclass
class NoteOutcome:
    note: NoteRef
    tasks: List[TaskRecord] = field(default_factory=list)
    results: List[TaskSyncResult] = field(default_factory=list)
    rebuilt: Optional[RebuildResult] = None
    rewrite_error: Optional[str] = None

    @property
    def persisted(self) -> List[TaskRecord]:
        return [t for t, r in zip(self.tasks, self.results) if r.persisted]


def _fetch_lines(note: NoteRef, note_store: BaseNoteStore, stats: RunStats) -> List[str]:
    try:
        body = note_store.fetch_note_body(note.id)
    except NoteStoreError as e:
        # Unreadable note: treated as empty, the run goes on.
        log.warning(f"[{note.name}] could not read note ({e.kind}): {e}")
        stats.notes_unreadable += 1
        body = ""
    return split_lines(body)


def _rewrite_note(
    outcome: NoteOutcome,
    lines: List[str],
    config: NoteTasksConfig,
    note_store: BaseNoteStore,
    stats: RunStats,
) -> None:
    note = outcome.note

    if config.rewrite_mode is RewriteMode.NOOP:
        log.info(f"[{note.name}] note left unchanged (rewrite mode: noop)")
        return

    persisted = outcome.persisted
    if not persisted:
        log.info(f"[{note.name}] nothing filed, note left unchanged")
        return

    header = header_for_section(persisted[0].section, fallback=note.name)
    rebuilt = rebuild_document(
        lines,
        persisted,
        header,
        title=note.name,
        section_tags=config.section_tags,
        mode=config.extraction_mode,
    )
    outcome.rebuilt = rebuilt
    if rebuilt.unmatched:
        log.warning(f"[{note.name}] filed task(s) not found in note: {rebuilt.unmatched}")

    try:
        note_store.update_note_body(note.id, note_store.render_body(header, rebuilt.kept))
        if config.retitle_notes:
            note_store.update_note_title(note.id, header)
    except NoteStoreError as e:
        # Filed tasks stay filed; the note still lists them until the next
        # successful rewrite.
        outcome.rewrite_error = str(e)
        stats.rewrites_failed += 1
        log.error(
            f"[{note.name}] note update failed ({e.kind}): {e}; "
            f"{len(persisted)} task(s) were already filed"
        )
        return

    stats.notes_rewritten += 1
    log.info(
        f"[{note.name}] rewrote note: removed {len(rebuilt.dropped)} line(s), "
        f"kept {len(rebuilt.kept)}"
    )


def process_note(
    note: NoteRef,
    config: NoteTasksConfig,
    note_store: BaseNoteStore,
    categorizer: TaskCategorizer,
    todo_provider: BaseTodoProvider,
    stats: RunStats,
    today: Optional[str] = None,
    ledger: bool = True,
) -> NoteOutcome:
    """Extract, categorize, file and (optionally) clean up one note.

    Raises PersistenceAborted under the "abort" policy, after the lines
    already filed from this note have been cleaned up.
    """
    log.info(f'[{note.name}] processing note "{note.name}"')
    outcome = NoteOutcome(note=note)

    lines = _fetch_lines(note, note_store, stats)
    records = scan_lines(lines, title=note.name, section_tags=config.section_tags)

    section = None
    if config.extraction_mode is ExtractionMode.FLAT_NON_EMPTY_LINE:
        section = section_from_title(note.name, config.section_tags)
    tasks = extract_tasks(records, config.extraction_mode, section=section)

    if not tasks:
        log.info(f"[{note.name}] no tasks found")
        return outcome

    log.info(f"[{note.name}] found {len(tasks)} task(s)")
    stats.tasks_found += len(tasks)

    ctx = TodoContext(
        note_id=note.id,
        note_title=note.name,
        due_date=today or datetime.date.today().isoformat(),
        status=config.task_status,
    )

    aborted: Optional[PersistenceAborted] = None
    for task in tasks:
        before = categorizer.fallbacks
        categorizer.categorize_task(task)
        stats.tasks_fallback += categorizer.fallbacks - before

        result = todo_provider.create_task(task, ctx)
        outcome.tasks.append(task)
        outcome.results.append(result)
        if ledger:
            storage.record_task_result(note.id, note.name, task, result)

        if result.persisted:
            stats.tasks_created += 1
            log.info(f'[{note.name}] created "{task.text}" as {task.category} ({result.provider})')
            continue

        if result.status == "skipped":
            log.info(f'[{note.name}] skipped "{task.text}": {result.error}')
            continue

        stats.tasks_failed += 1
        log.error(f'[{note.name}] failed to create "{task.text}": {result.error}')
        if config.on_persist_failure == PERSIST_ABORT:
            aborted = PersistenceAborted(task, result)
            break

    _rewrite_note(outcome, lines, config, note_store, stats)

    if aborted is not None:
        raise aborted
    return outcome


def run(
    config: NoteTasksConfig,
    note_store: BaseNoteStore,
    classifier: BaseClassifier,
    todo_provider: BaseTodoProvider,
    context: str = "",
    today: Optional[str] = None,
    ledger: bool = True,
) -> RunStats:
    """Process every candidate note, one at a time, in store order."""
    stats = RunStats()
    categorizer = TaskCategorizer(config, classifier, context)

    log.info(
        f"looking for notes titled with {config.note_title_filter!r} "
        f"(extraction: {config.extraction_mode.value}, rewrite: {config.rewrite_mode.value})"
    )

    try:
        notes = note_store.list_candidate_notes(config.note_title_filter, config.max_notes)
    except NoteStoreError as e:
        stats.discovery_failed = True
        log.error(f"could not list notes from {note_store.name} ({e.kind}): {e}")
        return stats

    stats.notes_found = len(notes)
    if not notes:
        log.info("no matching notes found, nothing to process")
        return stats

    log.info(f"found {len(notes)} note(s)")

    for note in notes:
        try:
            process_note(
                note,
                config,
                note_store,
                categorizer,
                todo_provider,
                stats,
                today=today,
                ledger=ledger,
            )
        except PersistenceAborted as e:
            stats.aborted = True
            log.error(f"[{note.name}] aborting run: {e}")
            break

    log.info(
        f"done: {stats.tasks_created}/{stats.tasks_found} task(s) filed, "
        f"{stats.tasks_failed} failed, {stats.notes_rewritten} note(s) rewritten"
    )
    return stats


def send_notifications(
    providers: List[BaseNotificationProvider],
    stats: RunStats,
    notify_mode: str = NOTIFY_MODE,
) -> None:
    """Send the run summary to every configured provider.

    notify_mode "all" always sends, "errors" only when something failed,
    "none" never.
    """
    if not providers:
        return

    should_send = notify_mode == "all" or (notify_mode == "errors" and stats.errorish)
    if not should_send:
        return

    payload = NotificationPayload(
        severity=NotificationSeverity.ERROR if stats.errorish else NotificationSeverity.INFO,
        timestamp=datetime.datetime.now().isoformat(timespec="seconds"),
        notes_found=stats.notes_found,
        notes_unreadable=stats.notes_unreadable,
        tasks_found=stats.tasks_found,
        tasks_created=stats.tasks_created,
        tasks_failed=stats.tasks_failed,
        tasks_fallback=stats.tasks_fallback,
        notes_rewritten=stats.notes_rewritten,
        rewrites_failed=stats.rewrites_failed,
        discovery_failed=stats.discovery_failed,
        aborted=stats.aborted,
    )

    for provider in providers:
        try:
            provider.send(payload)
        except Exception as e:
            # Providers should never raise, but catch just in case
            log.warning(f"notification provider {provider.name} raised exception: {e}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Notetasks: file task lines from notes into a task database"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Notetasks {__version__}",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging output",
    )
    parser.add_argument(
        "--extraction-mode",
        choices=[m.value for m in ExtractionMode],
        help="Override the configured extraction mode",
    )
    parser.add_argument(
        "--rewrite-mode",
        choices=[m.value for m in RewriteMode],
        help="Override the configured rewrite mode",
    )
    parser.add_argument(
        "--no-ledger",
        action="store_true",
        help="Do not record tasks and runs in the local SQLite ledger",
    )
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Print the resolved configuration as JSON and exit",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(VERBOSE or args.verbose)

    try:
        cfg = load_config()
    except (RuntimeError, ValueError) as e:
        log.error(f"invalid configuration: {e}")
        return 1

    overrides = {}
    if args.extraction_mode:
        overrides["extraction_mode"] = ExtractionMode(args.extraction_mode)
    if args.rewrite_mode:
        overrides["rewrite_mode"] = RewriteMode(args.rewrite_mode)
    if overrides:
        cfg = replace(cfg, **overrides)

    if args.show_config:
        data = asdict(cfg)
        data["extraction_mode"] = cfg.extraction_mode.value
        data["rewrite_mode"] = cfg.rewrite_mode.value
        data["context_path"] = str(cfg.context_path) if cfg.context_path else None
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return 0

    note_store = note_store_from_env()
    classifier = classifier_from_env()
    todo_provider = todo_provider_from_env()
    notification_providers = notification_providers_from_env()
    context = load_context(cfg.context_path)

    log.debug(
        f"providers: notes={note_store.name}, classifier={classifier.name}, "
        f"todo={todo_provider.name}, notify_mode={NOTIFY_MODE!r}"
    )

    ping_healthcheck("/start")

    ledger = not args.no_ledger
    run_id = storage.start_run() if ledger else None
    stats = RunStats()
    try:
        stats = run(cfg, note_store, classifier, todo_provider, context=context, ledger=ledger)
    except Exception:
        ping_healthcheck("/fail")
        raise
    finally:
        if run_id is not None:
            storage.finish_run(
                run_id,
                notes_found=stats.notes_found,
                notes_unreadable=stats.notes_unreadable,
                tasks_found=stats.tasks_found,
                tasks_created=stats.tasks_created,
                tasks_failed=stats.tasks_failed,
                tasks_fallback=stats.tasks_fallback,
                notes_rewritten=stats.notes_rewritten,
                rewrites_failed=stats.rewrites_failed,
                aborted=int(stats.aborted or stats.discovery_failed),
            )

    send_notifications(notification_providers, stats)

    if stats.errorish:
        ping_healthcheck("/fail")
    else:
        ping_healthcheck("")

    return 1 if (stats.discovery_failed or stats.aborted) else 0


if __name__ == "__main__":
    raise SystemExit(main())
