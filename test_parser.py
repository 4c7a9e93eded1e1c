"""Tests for the line scanner and task extractor."""

from notetasks.parser import (
    SENTINEL_CHAR,
    ExtractionMode,
    LineKind,
    classify_line,
    extract_tasks,
    scan_document,
    scan_lines,
    section_from_title,
)


def _kinds(lines, title=""):
    return [r.kind for r in scan_lines(lines, title=title)]


def test_hashtag_scenario():
    """Bullets under #work / #personal become tasks tagged with their section."""
    lines = ["#Tasks", "#work", "- buy milk", "#personal", "* read book", "#Tasks"]
    tasks = extract_tasks(scan_lines(lines), ExtractionMode.HASHTAG_SCOPED_BULLETS)

    got = [(t.text, t.section) for t in tasks]
    assert got == [("buy milk", "#work"), ("read book", "#personal")], got
    assert [t.line_no for t in tasks] == [3, 5]
    assert all(t.category is None for t in tasks)


def test_flat_scenario_excludes_structure_lines():
    """Title echo, comment, blank and sentinel lines never become tasks."""
    lines = ["Groceries", "// note to self", "", SENTINEL_CHAR]
    records = scan_lines(lines, title="Groceries")

    assert [r.kind for r in records] == [
        LineKind.TITLE_ECHO,
        LineKind.COMMENT,
        LineKind.BLANK,
        LineKind.SENTINEL,
    ]
    assert extract_tasks(records, ExtractionMode.FLAT_NON_EMPTY_LINE) == []


def test_no_section_marker_means_no_tasks():
    lines = ["Shopping", "- eggs", "* flour", "1. sugar", "plain line"]
    tasks = extract_tasks(scan_lines(lines), ExtractionMode.HASHTAG_SCOPED_BULLETS)
    assert tasks == [], f"bullets outside a section must be ignored, got {tasks}"


def test_nearest_preceding_marker_wins():
    lines = ["#personal", "- call mum", "#WORK", "- send report", "  •  fix build  ", "#work", "- deploy"]
    tasks = extract_tasks(scan_lines(lines), ExtractionMode.HASHTAG_SCOPED_BULLETS)

    got = [(t.text, t.section) for t in tasks]
    assert got == [
        ("call mum", "#personal"),
        ("send report", "#work"),
        ("fix build", "#work"),
        ("deploy", "#work"),
    ], got


def test_plain_lines_ignored_in_hashtag_mode():
    lines = ["#work", "just a thought", "", "// comment", "- real task"]
    tasks = extract_tasks(scan_lines(lines), ExtractionMode.HASHTAG_SCOPED_BULLETS)
    assert [t.text for t in tasks] == ["real task"]


def test_empty_bullets_are_dropped():
    lines = ["#work", "-", "*   ", "- ok"]
    tasks = extract_tasks(scan_lines(lines), ExtractionMode.HASHTAG_SCOPED_BULLETS)
    assert [t.text for t in tasks] == ["ok"]


def test_bullet_markers_stripped_once():
    assert classify_line(0, "- buy milk").text == "buy milk"
    assert classify_line(0, "•pay rent").text == "pay rent"
    assert classify_line(0, "  12. renew passport ").text == "renew passport"
    # Only one marker is removed.
    assert classify_line(0, "- - nested").text == "- nested"
    assert classify_line(0, "* 1. both").text == "1. both"


def test_numbers_without_ordinal_space_are_plain():
    rec = classify_line(0, "3.5 kg of rice")
    assert rec.kind is LineKind.PLAIN
    assert rec.text == "3.5 kg of rice"
    assert classify_line(0, "1.").kind is LineKind.PLAIN


def test_hashtag_mid_sentence_is_not_a_marker():
    assert classify_line(0, "talk about #work tomorrow").kind is LineKind.PLAIN
    assert classify_line(0, "- #work").kind is LineKind.BULLET
    assert classify_line(0, "#workout").kind is LineKind.PLAIN
    rec = classify_line(0, "   #Personal  ")
    assert rec.kind is LineKind.SECTION_MARKER
    assert rec.tag == "#personal"


def test_sentinel_detection():
    assert classify_line(0, SENTINEL_CHAR).kind is LineKind.SENTINEL
    assert classify_line(0, f"  {SENTINEL_CHAR}  ").kind is LineKind.SENTINEL
    assert classify_line(0, f"{SENTINEL_CHAR} photo of receipt").kind is LineKind.SENTINEL
    # Sentinel wins over every other rule.
    assert classify_line(0, SENTINEL_CHAR, title=SENTINEL_CHAR).kind is LineKind.SENTINEL


def test_comment_beats_title_echo_and_bullets():
    assert classify_line(0, "// - not a task").kind is LineKind.COMMENT
    assert classify_line(0, "//Groceries", title="//Groceries").kind is LineKind.COMMENT


def test_title_echo_is_case_insensitive():
    assert classify_line(0, "  groceries ", title="Groceries").kind is LineKind.TITLE_ECHO
    assert classify_line(0, "Groceries list", title="Groceries").kind is LineKind.PLAIN
    # No title: nothing is an echo.
    assert classify_line(0, "Groceries").kind is LineKind.PLAIN


def test_flat_mode_takes_fixed_section_and_strips_bullets():
    body = "#work inbox\nsend invoice\n- book flights\n\n// later\n#work\n"
    records = scan_document(body, title="#work inbox")
    tasks = extract_tasks(records, ExtractionMode.FLAT_NON_EMPTY_LINE, section="#work")

    assert [(t.text, t.section) for t in tasks] == [
        ("send invoice", "#work"),
        ("book flights", "#work"),
    ]


def test_custom_section_tags():
    lines = ["#errands", "- post office", "#work", "- ignored"]
    tasks = extract_tasks(
        scan_lines(lines, section_tags=["errands"]),
        ExtractionMode.HASHTAG_SCOPED_BULLETS,
    )
    assert [(t.text, t.section) for t in tasks] == [("post office", "#errands"), ("ignored", "#errands")]


def test_scan_document_handles_crlf():
    records = scan_document("#work\r\n- a\r\n- b")
    assert [r.raw for r in records] == ["#work", "- a", "- b"]


def test_section_from_title():
    assert section_from_title("#Tasks #Work") == "#work"
    assert section_from_title("Personal errands") == "#personal"
    assert section_from_title("#Tasks") is None
    assert section_from_title("") is None
