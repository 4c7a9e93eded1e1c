"""Notification provider registry for Notetasks.

Resolves configured provider names into provider instances. Several
channels can be combined with a comma-separated list.
"""

from __future__ import annotations

import os
from typing import Callable, Dict, List, Optional

from .base import (
    BaseNotificationProvider,
    NoopNotificationProvider,
    NotificationPayload,
    NotificationSeverity,
)

try:
    from .webhook import WebhookProvider
except Exception:
    WebhookProvider = None  # type: ignore


_PROVIDER_FACTORIES: Dict[str, Callable[[], BaseNotificationProvider]] = {}


def _register_defaults() -> None:
    if _PROVIDER_FACTORIES:
        return

    _PROVIDER_FACTORIES["noop"] = lambda: NoopNotificationProvider()

    if WebhookProvider is not None:
        _PROVIDER_FACTORIES["webhook"] = lambda: WebhookProvider()


def get_provider(name: Optional[str]) -> BaseNotificationProvider:
    """Return a notification provider (noop when unknown)."""
    _register_defaults()

    if not name:
        return NoopNotificationProvider()

    factory = _PROVIDER_FACTORIES.get(name.strip().lower())
    if factory is None:
        return NoopNotificationProvider()

    return factory()


def get_providers(names: Optional[str]) -> List[BaseNotificationProvider]:
    """Get multiple notification providers from comma-separated names."""
    if not names:
        return []

    provider_list = []
    for name in names.split(","):
        name = name.strip()
        if name:
            provider = get_provider(name)
            # Only add if it's not a noop (unless explicitly requested)
            if name.lower() == "noop" or not isinstance(provider, NoopNotificationProvider):
                provider_list.append(provider)

    return provider_list


def providers_from_env() -> List[BaseNotificationProvider]:
    """Resolve providers from NOTETASKS_NOTIFICATION_PROVIDERS.

    If that is unset but NOTETASKS_WEBHOOK_URL exists, the webhook
    provider is used on its own.
    """
    names = os.environ.get("NOTETASKS_NOTIFICATION_PROVIDERS", "").strip()

    if names:
        return get_providers(names)

    webhook_url = os.environ.get("NOTETASKS_WEBHOOK_URL", "").strip()
    if webhook_url:
        return [WebhookProvider()] if WebhookProvider else []

    return []


__all__ = [
    "BaseNotificationProvider",
    "NoopNotificationProvider",
    "NotificationPayload",
    "NotificationSeverity",
    "get_provider",
    "get_providers",
    "providers_from_env",
]
