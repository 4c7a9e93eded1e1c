#!/usr/bin/env python3
"""Quick integration test to verify provider system works correctly."""

import os
import sys
import tempfile
from pathlib import Path

# Ensure notetasks module can be imported
sys.path.insert(0, str(Path(__file__).parent))


def _swap_env(name, value):
    original = os.environ.get(name)
    if value is None:
        os.environ.pop(name, None)
    else:
        os.environ[name] = value
    return original


def _restore_env(name, original):
    if original is not None:
        os.environ[name] = original
    else:
        os.environ.pop(name, None)


def test_note_store_defaults():
    """Verify note store defaults to apple when not specified."""
    from notetasks.notes import get_provider

    # Test 1: None should default to apple
    store = get_provider(None)
    assert store.name == "apple", f"Expected 'apple', got '{store.name}'"
    print("✓ Note store defaults to 'apple' when not specified")

    # Test 2: Empty string should default to apple
    store = get_provider("")
    assert store.name == "apple", f"Expected 'apple', got '{store.name}'"
    print("✓ Note store defaults to 'apple' for empty string")

    # Test 3: Local store
    store = get_provider(" Local ")
    assert store.name == "local", f"Expected 'local', got '{store.name}'"
    print("✓ Note store works with 'local'")

    # Test 4: Unknown names never touch real notes
    store = get_provider("evernote")
    assert store.name == "noop", f"Expected 'noop', got '{store.name}'"
    print("✓ Unknown note store falls back to 'noop'")


def test_note_store_env():
    """Verify provider_from_env uses env var correctly."""
    from notetasks.notes import provider_from_env

    original = _swap_env("NOTETASKS_NOTE_PROVIDER", None)
    try:
        store = provider_from_env()
        assert store.name == "apple", f"Expected 'apple', got '{store.name}'"
        print("✓ provider_from_env defaults to 'apple' when env var not set")

        os.environ["NOTETASKS_NOTE_PROVIDER"] = "local"
        store = provider_from_env()
        assert store.name == "local", f"Expected 'local', got '{store.name}'"
        print("✓ provider_from_env respects NOTETASKS_NOTE_PROVIDER env var")
    finally:
        _restore_env("NOTETASKS_NOTE_PROVIDER", original)


def test_todo_and_classifier_defaults():
    """Verify todo and classifier registries fall back to noop."""
    from notetasks.classify import get_provider as get_classifier
    from notetasks.classify import provider_from_env as classifier_from_env
    from notetasks.todo import get_provider as get_todo

    assert get_todo(None).name == "noop"
    assert get_todo("jira").name == "noop"
    assert get_todo("Notion").name == "notion"
    assert get_todo("todoist").name == "todoist"
    print("✓ Todo registry resolves notion/todoist and falls back to 'noop'")

    assert get_classifier(None).name == "noop"
    assert get_classifier("anthropic").name == "anthropic"
    print("✓ Classifier registry resolves 'anthropic' and falls back to 'noop'")

    original_provider = _swap_env("NOTETASKS_CLASSIFIER_PROVIDER", None)
    original_key = _swap_env("ANTHROPIC_API_KEY", "sk-test")
    try:
        assert classifier_from_env().name == "anthropic"
        os.environ.pop("ANTHROPIC_API_KEY")
        assert classifier_from_env().name == "noop"
        print("✓ Classifier is chosen from ANTHROPIC_API_KEY when not named")
    finally:
        _restore_env("NOTETASKS_CLASSIFIER_PROVIDER", original_provider)
        _restore_env("ANTHROPIC_API_KEY", original_key)


def test_noop_todo_never_persists():
    """Verify the noop todo provider marks tasks skipped."""
    from notetasks.parser import TaskRecord
    from notetasks.todo import NoopTodoProvider, TodoContext

    ctx = TodoContext(note_id="n1", note_title="#Tasks", due_date="2026-10-19", status="🔴 To Do")
    result = NoopTodoProvider().create_task(TaskRecord(text="x", section="#work", line_no=4), ctx)
    assert result.status == "skipped"
    assert not result.persisted
    assert result.local_id == "n1:4", f"Expected 'n1:4', got '{result.local_id}'"
    print("✓ NoopTodoProvider skips tasks with a stable local id")


def test_local_store_round_trip():
    """Verify LocalNoteStore finds, reads, rewrites and renames notes."""
    from notetasks.notes import NoteStoreError
    from notetasks.notes.local import LocalNoteStore

    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        (root / "inbox.md").write_text("#Tasks\n#work\n- ship it\n", encoding="utf-8")
        (root / "sub").mkdir()
        (root / "sub" / "other.txt").write_text("Groceries\n- eggs\n", encoding="utf-8")
        (root / "image.png").write_bytes(b"\x89PNG")

        store = LocalNoteStore(root)
        notes = store.list_candidate_notes("#tasks")
        assert [(n.id, n.name) for n in notes] == [("inbox.md", "#Tasks")], notes
        print("✓ LocalNoteStore matches titles case-insensitively")

        assert store.list_candidate_notes("", limit=1)[0].id == "inbox.md"
        print("✓ LocalNoteStore honours the note limit")

        assert store.fetch_note_body("inbox.md").startswith("#Tasks\n#work")
        body = store.render_body("Work", ["#Tasks", "", "// later"])
        store.update_note_body("inbox.md", body)
        assert (root / "inbox.md").read_text(encoding="utf-8") == "Work\n#Tasks\n\n// later"
        print("✓ LocalNoteStore writes plain-text bodies")

        store.update_note_title("sub/other.txt", "Shopping")
        assert (root / "sub" / "other.txt").read_text(encoding="utf-8").startswith("Shopping\n- eggs")
        print("✓ LocalNoteStore renames a note by rewriting its first line")

        try:
            store.fetch_note_body("../escape.md")
        except NoteStoreError as e:
            assert e.kind == "not_found"
        else:
            raise AssertionError("path outside the notes directory was accepted")
        print("✓ LocalNoteStore refuses ids outside its directory")

    try:
        LocalNoteStore(Path(tmp)).list_candidate_notes("#Tasks")
    except NoteStoreError as e:
        assert e.kind == "io_error"
    else:
        raise AssertionError("missing notes directory was accepted")
    print("✓ LocalNoteStore reports a missing directory as io_error")


def test_local_store_skips_undecodable_files():
    """Verify a non-UTF-8 note file is skipped and reported as io_error."""
    from notetasks.notes import NoteStoreError
    from notetasks.notes.local import LocalNoteStore

    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        (root / "a.md").write_bytes(b"#Tasks bad\n\xff\xfe")
        (root / "b.md").write_text("#Tasks good\n#work\n- ok\n", encoding="utf-8")

        store = LocalNoteStore(root)
        notes = store.list_candidate_notes("#Tasks")
        assert [n.id for n in notes] == ["b.md"], notes
        print("✓ LocalNoteStore skips note files that are not UTF-8")

        try:
            store.fetch_note_body("a.md")
        except NoteStoreError as e:
            assert e.kind == "io_error", f"Expected 'io_error', got '{e.kind}'"
        else:
            raise AssertionError("undecodable note was read")
        print("✓ LocalNoteStore reports an undecodable note as io_error")


def test_todoist_payload():
    """Verify Todoist labels and payload."""
    from notetasks.parser import TaskRecord
    from notetasks.todo import TodoContext
    from notetasks.todo.todoist import TodoistProvider, category_label

    assert category_label("🍻 Interpersonal") == "Interpersonal"
    assert category_label("") == "Uncategorized"
    print("✓ category_label flattens emoji categories")

    task = TaskRecord(text="fix tap", section="#personal", line_no=3, category="🏠 Home")
    ctx = TodoContext(note_id="n1", note_title="#Tasks", due_date="2026-10-19", status="🔴 To Do")
    payload = TodoistProvider().build_payload(task, ctx)
    assert payload["content"] == "fix tap"
    assert payload["labels"] == ["notetasks", "Home"]
    assert payload["due_date"] == "2026-10-19"
    assert "Note: #Tasks" in payload["description"]
    print("✓ TodoistProvider builds the task payload")


def test_missing_credentials_fail_without_raising():
    """Verify providers report missing credentials as failed results."""
    from notetasks.parser import TaskRecord
    from notetasks.todo import TodoContext
    from notetasks.todo.notion import NotionProvider, build_properties
    from notetasks.todo.todoist import TodoistProvider

    task = TaskRecord(text="file taxes", section="#work", line_no=2, category="💼 Work")
    ctx = TodoContext(note_id="n1", note_title="#Tasks", due_date="2026-10-19", status="🔴 To Do")

    props = build_properties(task, ctx)
    assert props["Task"]["title"][0]["text"]["content"] == "file taxes"
    assert props["Due Date"] == {"date": {"start": "2026-10-19"}}
    assert props["Type"] == {"select": {"name": "💼 Work"}}
    assert props["Status"] == {"status": {"name": "🔴 To Do"}}
    print("✓ Notion properties carry task, due date, type and status")

    names = ("NOTETASKS_NOTION_TOKEN", "NOTETASKS_TODOIST_API_TOKEN")
    originals = {name: _swap_env(name, None) for name in names}
    try:
        for provider in (NotionProvider(), TodoistProvider()):
            result = provider.create_task(task, ctx)
            assert result.status == "failed", f"{provider.name}: {result}"
            assert result.error and "not set" in result.error
        print("✓ Providers without credentials return failed results")
    finally:
        for name, original in originals.items():
            _restore_env(name, original)


def test_webhook_body():
    """Verify webhook body and notification summary."""
    from notetasks.notifications import NotificationPayload, NotificationSeverity, get_providers
    from notetasks.notifications.webhook import WebhookProvider

    payload = NotificationPayload(
        severity=NotificationSeverity.ERROR,
        timestamp="2026-10-19T07:00:00",
        notes_found=2,
        notes_unreadable=0,
        tasks_found=5,
        tasks_created=4,
        tasks_failed=1,
        tasks_fallback=0,
        notes_rewritten=2,
        rewrites_failed=0,
    )
    assert payload.has_errors
    assert payload.error_messages == ["1 task(s) could not be filed"]

    body = WebhookProvider().build_body(payload)
    assert body["severity"] == "error"
    assert body["tasks_created"] == 4
    assert body["title"] == "Notetasks"
    assert body["message"]
    print("✓ WebhookProvider builds a JSON body from the run summary")

    assert [p.name for p in get_providers("webhook, bogus")] == ["webhook"]
    assert get_providers("") == []
    print("✓ get_providers drops unknown names")


def main():
    """Run all tests."""
    print("Testing provider integration...\n")

    try:
        test_note_store_defaults()
        print()
        test_note_store_env()
        print()
        test_todo_and_classifier_defaults()
        print()
        test_noop_todo_never_persists()
        print()
        test_local_store_round_trip()
        print()
        test_local_store_skips_undecodable_files()
        print()
        test_todoist_payload()
        print()
        test_missing_credentials_fail_without_raising()
        print()
        test_webhook_body()
        print()
        print("✅ All integration tests passed!")
        return 0
    except AssertionError as e:
        print(f"\n❌ Test failed: {e}")
        return 1
    except Exception as e:
        print(f"\n❌ Unexpected error: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
