"""Tests for task categorization and classification fallback."""

from notetasks.categorizer import TaskCategorizer, build_prompt, validate_response
from notetasks.classify import BaseClassifier, ClassificationError, NoopClassifier
from notetasks.config import NoteTasksConfig
from notetasks.parser import TaskRecord


class ScriptedClassifier(BaseClassifier):
    """Returns canned answers in order and remembers every prompt."""

    name = "scripted"

    def __init__(self, answers):
        self.answers = list(answers)
        self.prompts = []

    def classify(self, prompt):
        self.prompts.append(prompt)
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


def test_work_is_deterministic_and_personal_is_classified():
    config = NoteTasksConfig()
    classifier = ScriptedClassifier(["🏠 Home"])
    categorizer = TaskCategorizer(config, classifier)

    tasks = [
        TaskRecord(text="buy milk", section="#work", line_no=3),
        TaskRecord(text="read book", section="#personal", line_no=5),
    ]
    categorizer.categorize(tasks)

    assert tasks[0].category == "💼 Work"
    assert tasks[1].category == "🏠 Home"
    assert len(classifier.prompts) == 1, "only the #personal task should reach the model"
    assert '"read book"' in classifier.prompts[0]


def test_classifier_failure_falls_back_and_continues():
    config = NoteTasksConfig()
    classifier = ScriptedClassifier([ClassificationError("boom"), "❤️ Mental Health"])
    categorizer = TaskCategorizer(config, classifier)

    tasks = [
        TaskRecord(text="meditate", section="#personal", line_no=1),
        TaskRecord(text="journal", section="#personal", line_no=2),
    ]
    categorizer.categorize(tasks)

    assert tasks[0].category == config.fallback_category
    assert tasks[1].category == "❤️ Mental Health"
    assert categorizer.fallbacks == 1


def test_any_exception_from_classifier_is_a_fallback():
    config = NoteTasksConfig()
    categorizer = TaskCategorizer(config, ScriptedClassifier([TimeoutError("slow")]))
    task = TaskRecord(text="meditate", section="#personal", line_no=1)
    assert categorizer.categorize_task(task) == config.fallback_category


def test_unrecognized_answers_fall_back():
    config = NoteTasksConfig()
    bad_answers = [
        "",
        "Home",
        "🏠 home",
        "🏠 Home.",
        "🏠 Home\n🌱 Personal",
        "Category: 🏠 Home",
        "💼 Work",  # deterministic category is not a valid model answer
        None,
    ]
    categorizer = TaskCategorizer(config, ScriptedClassifier(bad_answers))

    for answer in bad_answers:
        task = TaskRecord(text="water plants", section="#personal", line_no=1)
        categorizer.categorize_task(task)
        assert task.category == config.fallback_category, f"{answer!r} should fall back"

    assert categorizer.fallbacks == len(bad_answers)


def test_surrounding_whitespace_is_ignored():
    assert validate_response("  🍻 Interpersonal \n", NoteTasksConfig().categories) == "🍻 Interpersonal"


def test_no_section_goes_to_classifier():
    config = NoteTasksConfig()
    classifier = ScriptedClassifier(["🏃‍♂️ Physical Health"])
    task = TaskRecord(text="go for a run", section=None, line_no=1)
    TaskCategorizer(config, classifier).categorize_task(task)
    assert task.category == "🏃‍♂️ Physical Health"
    assert len(classifier.prompts) == 1


def test_noop_classifier_always_falls_back():
    config = NoteTasksConfig()
    task = TaskRecord(text="anything", section="#personal", line_no=1)
    TaskCategorizer(config, NoopClassifier()).categorize_task(task)
    assert task.category == config.fallback_category


def test_prompt_lists_categories_and_context():
    categories = NoteTasksConfig().categories
    prompt = build_prompt("fix the tap", categories, context="I live in a flat.")

    assert prompt.startswith("CONTEXT FOR BETTER CLASSIFICATION:\nI live in a flat.")
    for category in categories:
        assert f"- {category}" in prompt
    assert "💼 Work" not in prompt
    assert 'TASK: "fix the tap"' in prompt


def test_prompt_without_context_has_no_context_block():
    prompt = build_prompt("fix the tap", ["🏠 Home"])
    assert "CONTEXT" not in prompt
    assert prompt.startswith("Classify this task")
