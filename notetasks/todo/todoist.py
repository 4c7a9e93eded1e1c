"""Todoist provider for Notetasks.

Each task becomes a Todoist task in the user's inbox:
- content is the task text;
- due_date is the run date;
- labels are "notetasks" plus an ASCII label for the category,
  e.g. "🏠 Home" -> "Home";
- the description points back at the source note.

Configuration (via environment variables):
- NOTETASKS_TODOIST_API_TOKEN: required API token.
- NOTETASKS_TODOIST_BASE_URL: optional override of the base REST URL
  (defaults to https://api.todoist.com/rest/v2).
"""

from __future__ import annotations

import json
import os
import re
from typing import List
from urllib import error as urlerror
from urllib import request as urlrequest

from unidecode import unidecode

from ..parser import TaskRecord
from ..storage import TaskSyncResult
from .base import BaseTodoProvider, TodoContext


def category_label(category: str) -> str:
    """Todoist labels can't carry emoji or spaces reliably; flatten them."""
    s = unidecode(category or "").strip()
    s = re.sub(r"[^\w\s-]", "", s).strip()
    s = re.sub(r"\s+", "_", s)
    return s[:60] or "Uncategorized"


class TodoistProvider(BaseTodoProvider):
    """Concrete todo provider that files tasks in Todoist."""

    name: str = "todoist"

    def __init__(self) -> None:
        self._token = os.environ.get("NOTETASKS_TODOIST_API_TOKEN", "").strip()
        self._base_url = (
            os.environ.get("NOTETASKS_TODOIST_BASE_URL", "https://api.todoist.com/rest/v2")
            .strip()
            .rstrip("/")
        )

    def _build_description(self, task: TaskRecord, ctx: TodoContext) -> str:
        lines = [
            "From Notetasks",
            "",
            f"Note: {ctx.note_title}",
            f"Line: {task.line_no}",
            f"Category: {task.category}",
            f"Status: {ctx.status}",
        ]
        return "\n".join(lines)

    def _build_labels(self, task: TaskRecord) -> List[str]:
        return ["notetasks", category_label(task.category or "")]

    def build_payload(self, task: TaskRecord, ctx: TodoContext) -> dict:
        return {
            "content": task.text,
            "description": self._build_description(task, ctx),
            "labels": self._build_labels(task),
            "due_date": ctx.due_date,
        }

    def create_task(self, task: TaskRecord, ctx: TodoContext) -> TaskSyncResult:
        if not self._token:
            return self._result(
                task, ctx, "failed", error="NOTETASKS_TODOIST_API_TOKEN is not set"
            )

        data = json.dumps(self.build_payload(task, ctx)).encode("utf-8")
        req = urlrequest.Request(f"{self._base_url}/tasks", data=data, method="POST")
        req.add_header("Content-Type", "application/json")
        req.add_header("Authorization", f"Bearer {self._token}")

        try:
            with urlrequest.urlopen(req, timeout=10) as resp:
                resp_body = resp.read().decode("utf-8") or "{}"
                try:
                    obj = json.loads(resp_body)
                except json.JSONDecodeError:
                    obj = {}
        except urlerror.HTTPError as e:
            return self._result(task, ctx, "failed", error=f"HTTPError {e.code}: {e.reason}")
        except urlerror.URLError as e:
            return self._result(task, ctx, "failed", error=f"URLError: {e.reason}")
        except Exception as e:  # pragma: no cover - safety net
            return self._result(task, ctx, "failed", error=f"Unexpected error: {e!r}")

        external_id = str(obj.get("id")) if "id" in obj else None
        return self._result(task, ctx, "created", external_id=external_id)
