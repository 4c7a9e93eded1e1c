"""Webhook notification provider for Notetasks.

This provider sends JSON POST requests to a configured webhook URL.
Works with any service that accepts JSON webhooks (ntfy.sh, custom
endpoints, etc.).
"""

from __future__ import annotations

import json
import logging
import os
import urllib.error
import urllib.request

from .base import BaseNotificationProvider, NotificationPayload

log = logging.getLogger("notetasks")


class WebhookProvider(BaseNotificationProvider):
    """Generic webhook notification provider.

    Configuration:
        NOTETASKS_WEBHOOK_URL: The webhook endpoint URL (required)
        NOTETASKS_WEBHOOK_TOPIC: Optional topic/title for the notification
        NOTETASKS_WEBHOOK_TIMEOUT: Request timeout in seconds (default: 5)
    """

    name: str = "webhook"

    def __init__(self) -> None:
        self.url = os.environ.get("NOTETASKS_WEBHOOK_URL", "").strip()
        self.topic = os.environ.get("NOTETASKS_WEBHOOK_TOPIC", "").strip()
        self.timeout = int(os.environ.get("NOTETASKS_WEBHOOK_TIMEOUT", "5"))

    def build_body(self, payload: NotificationPayload) -> dict:
        data = {
            "timestamp": payload.timestamp,
            "severity": payload.severity.value,
            "notes_found": payload.notes_found,
            "notes_unreadable": payload.notes_unreadable,
            "tasks_found": payload.tasks_found,
            "tasks_created": payload.tasks_created,
            "tasks_failed": payload.tasks_failed,
            "tasks_fallback": payload.tasks_fallback,
            "notes_rewritten": payload.notes_rewritten,
            "rewrites_failed": payload.rewrites_failed,
            "discovery_failed": payload.discovery_failed,
            "aborted": payload.aborted,
            "title": "Notetasks",
            "message": self.format_message(payload),
        }
        if self.topic:
            data["topic"] = self.topic
        return data

    def send(self, payload: NotificationPayload) -> bool:
        if not self.url:
            return False

        encoded = json.dumps(self.build_body(payload)).encode("utf-8")
        req = urllib.request.Request(
            self.url,
            data=encoded,
            headers={"Content-Type": "application/json"},
        )

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                status = getattr(resp, "status", 200)
                success = 200 <= status < 300
                if success:
                    log.info(f"notification sent (status={status})")
                else:
                    log.warning(f"webhook returned non-2xx status: {status}")
                return success
        except urllib.error.HTTPError as e:
            log.warning(f"failed to send notification: HTTP {e.code} {e.reason}")
            return False
        except urllib.error.URLError as e:
            log.warning(f"failed to send notification: {e.reason}")
            return False
        except Exception as e:
            log.warning(f"failed to send notification to {self.url}: {e}")
            return False
