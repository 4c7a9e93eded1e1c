"""Anthropic classifier for Notetasks.

Sends the prompt as a single user message to the Messages API and returns
the text of the first content block.

Configuration (via environment variables):
- ANTHROPIC_API_KEY: required API key.
- NOTETASKS_ANTHROPIC_MODEL: optional model override
  (defaults to claude-3-haiku-20240307).
- NOTETASKS_ANTHROPIC_BASE_URL: optional override of the API base URL.
"""

from __future__ import annotations

import json
import os
from urllib import error as urlerror
from urllib import request as urlrequest

from .base import BaseClassifier, ClassificationError

DEFAULT_MODEL = "claude-3-haiku-20240307"
API_VERSION = "2023-06-01"


class AnthropicClassifier(BaseClassifier):
    """Concrete classifier backed by the Anthropic Messages API."""

    name: str = "anthropic"

    def __init__(self, max_tokens: int = 20, timeout: int = 15) -> None:
        self._api_key = os.environ.get("ANTHROPIC_API_KEY", "").strip()
        self._model = os.environ.get("NOTETASKS_ANTHROPIC_MODEL", "").strip() or DEFAULT_MODEL
        self._base_url = (
            os.environ.get("NOTETASKS_ANTHROPIC_BASE_URL", "https://api.anthropic.com/v1")
            .strip()
            .rstrip("/")
        )
        self._max_tokens = max_tokens
        self._timeout = timeout

    def _build_payload(self, prompt: str) -> dict:
        return {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }

    def classify(self, prompt: str) -> str:
        if not self._api_key:
            raise ClassificationError("ANTHROPIC_API_KEY is not set")

        data = json.dumps(self._build_payload(prompt)).encode("utf-8")
        req = urlrequest.Request(f"{self._base_url}/messages", data=data, method="POST")
        req.add_header("Content-Type", "application/json")
        req.add_header("x-api-key", self._api_key)
        req.add_header("anthropic-version", API_VERSION)

        try:
            with urlrequest.urlopen(req, timeout=self._timeout) as resp:
                body = json.loads(resp.read().decode("utf-8") or "{}")
        except urlerror.HTTPError as e:
            raise ClassificationError(f"HTTPError {e.code}: {e.reason}") from e
        except urlerror.URLError as e:
            raise ClassificationError(f"URLError: {e.reason}") from e
        except json.JSONDecodeError as e:
            raise ClassificationError(f"invalid JSON from API: {e}") from e

        content = body.get("content") or []
        if not content:
            raise ClassificationError("empty content in API response")
        return str(content[0].get("text", ""))
