"""Assign a category to every extracted task.

Some sections map straight to a category (e.g. "#work" -> "💼 Work") and
never reach the model. Everything else is sent to the classifier once;
an answer outside the configured categories, or any classifier failure,
lands the task in the fallback category. There are no retries.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from .classify import BaseClassifier
from .config import NoteTasksConfig
from .parser import TaskRecord

log = logging.getLogger(__name__)

PROMPT_TEMPLATE = """Classify this task into exactly ONE of these categories:

CATEGORIES:
{categories}

TASK: "{text}"

Return ONLY the category with emoji, nothing else."""

CONTEXT_TEMPLATE = """CONTEXT FOR BETTER CLASSIFICATION:
{context}

---

"""


def build_prompt(text: str, categories: Sequence[str], context: str = "") -> str:
    prompt = ""
    if context:
        prompt += CONTEXT_TEMPLATE.format(context=context)
    prompt += PROMPT_TEMPLATE.format(
        categories="\n".join(f"- {c}" for c in categories),
        text=text,
    )
    return prompt


def validate_response(answer: Optional[str], categories: Sequence[str]) -> Optional[str]:
    """Return the answer if it names one of `categories` exactly, else None.

    Surrounding whitespace is ignored; case, punctuation and inner line
    breaks are not.
    """
    if not isinstance(answer, str):
        return None
    candidate = answer.strip()
    return candidate if candidate in categories else None


class TaskCategorizer:
    """Categorizes task records in place, one at a time, in order."""

    def __init__(
        self,
        config: NoteTasksConfig,
        classifier: BaseClassifier,
        context: str = "",
    ) -> None:
        self.config = config
        self.classifier = classifier
        self.context = context
        self.fallbacks = 0

    def deterministic_category(self, section: Optional[str]) -> Optional[str]:
        if not section:
            return None
        return self.config.deterministic_categories.get(section.casefold())

    def categorize_task(self, task: TaskRecord) -> str:
        fixed = self.deterministic_category(task.section)
        if fixed is not None:
            task.category = fixed
            log.info(f'"{task.text}" → {fixed} (auto-assigned from {task.section})')
            return fixed

        categories = self.config.categories
        prompt = build_prompt(task.text, categories, self.context)
        try:
            answer = self.classifier.classify(prompt)
        except Exception as e:
            task.category = self.config.fallback_category
            self.fallbacks += 1
            log.warning(
                f'classification failed for "{task.text}" ({e}); '
                f"defaulting to {task.category}"
            )
            return task.category

        category = validate_response(answer, categories)
        if category is None:
            task.category = self.config.fallback_category
            self.fallbacks += 1
            log.warning(
                f'unclear classification {answer!r} for "{task.text}"; '
                f"defaulting to {task.category}"
            )
            return task.category

        task.category = category
        log.info(f'"{task.text}" → {category} ({self.classifier.name})')
        return category

    def categorize(self, tasks: Iterable[TaskRecord]) -> List[TaskRecord]:
        out: List[TaskRecord] = []
        for task in tasks:
            self.categorize_task(task)
            out.append(task)
        return out
