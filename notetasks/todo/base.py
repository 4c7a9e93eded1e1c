"""Base interfaces for Notetasks todo providers.

This module defines the common abstractions that all todo providers
(Notion, Todoist, etc.) implement. It deliberately does not know about
any specific API; providers live in their own modules and are wired in
via the registry in notetasks.todo.__init__.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..parser import TaskRecord
from ..storage import TaskSyncResult, local_task_id


@dataclass(frozen=True)
class TodoContext:
    """Context about the note a task came from and how to file it."""

    note_id: str
    note_title: str
    due_date: str      # ISO date, e.g. "2026-10-19"
    status: str        # initial status name, e.g. "🔴 To Do"

    def local_id(self, task: TaskRecord) -> str:
        return local_task_id(self.note_id, task.line_no)


class BaseTodoProvider(ABC):
    """Abstract base class for todo providers.

    A provider takes one categorized TaskRecord at a time and attempts to
    create it in an external system. Calls are independent: there is no
    batching and no transaction spanning several tasks.

    It must *not* raise on failure; instead it returns a TaskSyncResult
    with status="failed" and an error message. Only status="created"
    counts as persisted.
    """

    name: str = "base"

    @abstractmethod
    def create_task(self, task: TaskRecord, ctx: TodoContext) -> TaskSyncResult:
        raise NotImplementedError

    def _result(
        self,
        task: TaskRecord,
        ctx: TodoContext,
        status: str,
        external_id: str | None = None,
        error: str | None = None,
    ) -> TaskSyncResult:
        return TaskSyncResult(
            local_id=ctx.local_id(task),
            provider=self.name,
            external_id=external_id,
            status=status,
            error=error,
        )


class NoopTodoProvider(BaseTodoProvider):
    """A provider that does nothing.

    Useful as a default when no todo app is configured. Every task comes
    back "skipped", so nothing is ever removed from the source note.
    """

    name: str = "noop"

    def create_task(self, task: TaskRecord, ctx: TodoContext) -> TaskSyncResult:
        return self._result(
            task, ctx, "skipped", error="todo sync disabled or noop provider in use"
        )
