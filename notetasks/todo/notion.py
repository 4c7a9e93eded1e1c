"""Notion provider for Notetasks.

Each task becomes a page in a Notion database with these properties:

- Task (title): the task text
- Due Date (date): the run date
- Type (select): the task category
- Status (status): the initial status, "🔴 To Do" by default

Configuration (via environment variables):
- NOTETASKS_NOTION_TOKEN: required integration token.
- NOTETASKS_NOTION_DATABASE_ID: required id of the tasks database.
- NOTETASKS_NOTION_BASE_URL: optional override of the API base URL.
"""

from __future__ import annotations

import json
import os
from urllib import error as urlerror
from urllib import request as urlrequest

from ..parser import TaskRecord
from ..storage import TaskSyncResult
from .base import BaseTodoProvider, TodoContext

NOTION_VERSION = "2022-06-28"


def build_properties(task: TaskRecord, ctx: TodoContext) -> dict:
    return {
        "Task": {"title": [{"text": {"content": task.text}}]},
        "Due Date": {"date": {"start": ctx.due_date}},
        "Type": {"select": {"name": task.category}},
        "Status": {"status": {"name": ctx.status}},
    }


class NotionProvider(BaseTodoProvider):
    """Concrete todo provider that files tasks as Notion database pages."""

    name: str = "notion"

    def __init__(self) -> None:
        self._token = os.environ.get("NOTETASKS_NOTION_TOKEN", "").strip()
        self._database_id = os.environ.get("NOTETASKS_NOTION_DATABASE_ID", "").strip()
        self._base_url = (
            os.environ.get("NOTETASKS_NOTION_BASE_URL", "https://api.notion.com/v1")
            .strip()
            .rstrip("/")
        )

    def create_task(self, task: TaskRecord, ctx: TodoContext) -> TaskSyncResult:
        if not self._token or not self._database_id:
            return self._result(
                task,
                ctx,
                "failed",
                error="NOTETASKS_NOTION_TOKEN or NOTETASKS_NOTION_DATABASE_ID is not set",
            )

        payload = {
            "parent": {"database_id": self._database_id},
            "properties": build_properties(task, ctx),
        }
        req = urlrequest.Request(
            f"{self._base_url}/pages",
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
        )
        req.add_header("Authorization", f"Bearer {self._token}")
        req.add_header("Notion-Version", NOTION_VERSION)
        req.add_header("Content-Type", "application/json")

        try:
            with urlrequest.urlopen(req, timeout=10) as resp:
                try:
                    obj = json.loads(resp.read().decode("utf-8") or "{}")
                except json.JSONDecodeError:
                    obj = {}
        except urlerror.HTTPError as e:
            detail = ""
            try:
                if e.fp is not None:
                    detail = json.loads(e.fp.read().decode("utf-8")).get("message", "")
            except Exception:
                detail = ""
            msg = f"HTTPError {e.code}: {e.reason}"
            return self._result(task, ctx, "failed", error=f"{msg} {detail}".strip())
        except urlerror.URLError as e:
            return self._result(task, ctx, "failed", error=f"URLError: {e.reason}")
        except Exception as e:  # pragma: no cover - safety net
            return self._result(task, ctx, "failed", error=f"Unexpected error: {e!r}")

        return self._result(task, ctx, "created", external_id=obj.get("id"))
