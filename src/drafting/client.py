"""
src/drafting/client.py
──────────────────────
HTTP client for the Gemini generateContent API.

Retry policy: up to DRAFT_MAX_ATTEMPTS attempts, sleeping
DRAFT_BACKOFF_S * 2**attempt between them, and only when the API answers
429 (rate limited). Any other failure raises DraftingFailure immediately.
"""
from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import httpx
from loguru import logger

from config.settings import Settings
from src.errors import DraftingFailure

RATE_LIMIT_STATUS = 429


def _extract_text(payload: dict[str, Any]) -> str | None:
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) and text else None


class DraftingClient:
    """
    Thin wrapper around generateContent.

    Args:
        settings: Supplies API key, model, URL, retry and timeout values
        http_client: Optional pre-built httpx.Client (tests, proxies)
        sleep: Backoff sleep function
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings
        self._http = http_client or httpx.Client(timeout=settings.DRAFT_TIMEOUT_S)
        self._sleep = sleep

    @property
    def configured(self) -> bool:
        return bool(self._settings.GEMINI_API_KEY)

    @property
    def endpoint(self) -> str:
        base = self._settings.GEMINI_API_URL.rstrip("/")
        return f"{base}/models/{self._settings.GEMINI_MODEL}:generateContent"

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        """
        Return the generated text.

        Raises:
            DraftingFailure: Missing key, transport error, non-2xx response,
                             empty response, or rate limit after the last attempt
        """
        if not self.configured:
            raise DraftingFailure("GEMINI_API_KEY is missing")

        body = {
            "contents": [{"parts": [{"text": user_prompt}]}],
            "systemInstruction": {"parts": [{"text": system_prompt}]},
        }
        attempts = max(1, self._settings.DRAFT_MAX_ATTEMPTS)

        for attempt in range(attempts):
            try:
                response = self._http.post(
                    self.endpoint,
                    params={"key": self._settings.GEMINI_API_KEY},
                    json=body,
                )
            except httpx.HTTPError as exc:
                raise DraftingFailure(f"Drafting request failed: {exc}") from exc

            if response.status_code == RATE_LIMIT_STATUS and attempt < attempts - 1:
                delay = self._settings.DRAFT_BACKOFF_S * 2**attempt
                logger.warning("Drafting API rate limited; retrying in {}s ({}/{})", delay, attempt + 1, attempts)
                self._sleep(delay)
                continue
            if response.is_error:
                raise DraftingFailure(
                    f"API call failed with status: {response.status_code} - {response.text}"
                )

            try:
                text = _extract_text(response.json())
            except ValueError as exc:
                raise DraftingFailure("API response was not valid JSON.") from exc
            if text is None:
                raise DraftingFailure("API response was empty or malformed.")
            return text

        raise DraftingFailure("Drafting attempts exhausted")  # pragma: no cover

    def close(self) -> None:
        self._http.close()
