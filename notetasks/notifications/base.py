"""Base notification provider interface for Notetasks.

This module defines the abstract interface that all notification providers
must implement, along with shared data structures for notification payloads.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List


class NotificationSeverity(Enum):
    """Notification severity levels."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class NotificationPayload:
    """Structured summary of one run."""

    severity: NotificationSeverity
    timestamp: str

    notes_found: int
    notes_unreadable: int
    tasks_found: int
    tasks_created: int
    tasks_failed: int
    tasks_fallback: int
    notes_rewritten: int
    rewrites_failed: int

    discovery_failed: bool = False
    aborted: bool = False

    @property
    def has_errors(self) -> bool:
        """True if anything failed that needs a human to look at it."""
        return bool(
            self.discovery_failed
            or self.aborted
            or self.tasks_failed
            or self.rewrites_failed
        )

    @property
    def error_messages(self) -> List[str]:
        errors = []
        if self.discovery_failed:
            errors.append("Note store could not be queried")
        if self.aborted:
            errors.append("Run aborted after a task could not be filed")
        if self.tasks_failed:
            errors.append(f"{self.tasks_failed} task(s) could not be filed")
        if self.rewrites_failed:
            errors.append(
                f"{self.rewrites_failed} note(s) not cleaned up; their tasks were already filed"
            )
        return errors


class BaseNotificationProvider(ABC):
    """Abstract base class for notification providers.

    Providers should never raise exceptions - log errors and return False
    instead.
    """

    name: str = "base"

    @abstractmethod
    def send(self, payload: NotificationPayload) -> bool:
        """Send a notification. Returns True on success."""
        raise NotImplementedError

    def format_message(self, payload: NotificationPayload) -> str:
        """Format a human-readable message from the payload."""
        outcome = "ERROR" if payload.has_errors else "OK"
        lines = [f"Notetasks - [{outcome}]", ""]

        if payload.error_messages:
            if len(payload.error_messages) == 1:
                lines.append(f"Error: {payload.error_messages[0]}")
            else:
                lines.append("Errors:")
                for err in payload.error_messages:
                    lines.append(f"- {err}")
            lines.append("")

        lines.extend(
            [
                f"Notes: {payload.notes_found}",
                f"Tasks found: {payload.tasks_found}",
                f"Tasks filed: {payload.tasks_created}",
                f"Fallback category: {payload.tasks_fallback}",
                f"Notes cleaned up: {payload.notes_rewritten}",
            ]
        )

        return "\n".join(lines)


class NoopNotificationProvider(BaseNotificationProvider):
    """A provider that sends no notifications."""

    name: str = "noop"

    def send(self, payload: NotificationPayload) -> bool:
        return True
