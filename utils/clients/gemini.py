"""
Gemini API client utilities.

Sends generateContent requests through the retry wrapper and pulls the
generated text out of the response payload.
"""

import logging
from typing import Any, Optional

import httpx

from config import Settings
from utils.clients.retry import fetch_with_retry

logger = logging.getLogger(__name__)


def build_generate_request(prompt: str) -> dict:
    """Request body for a single-turn text prompt."""
    return {"contents": [{"parts": [{"text": prompt}]}]}


async def generate_content(
    client: httpx.AsyncClient, settings: Settings, prompt: str
) -> httpx.Response:
    """
    Calls Gemini generateContent with automatic retry for transient failures.

    The request is issued once per attempt and only through fetch_with_retry.

    Raises:
        RetriesExhausted: No non-transient response within the attempt budget
    """
    body = build_generate_request(prompt)

    async def _send() -> httpx.Response:
        return await client.post(
            settings.gemini_endpoint,
            params={"key": settings.GEMINI_API_KEY},
            json=body,
        )

    logger.info(
        f"Calling {settings.GEMINI_MODEL} with a {len(prompt)} character prompt"
    )
    return await fetch_with_retry(
        _send,
        max_attempts=settings.RETRY_MAX_ATTEMPTS,
        base_delay=settings.RETRY_BASE_DELAY,
        jitter_max=settings.RETRY_JITTER_MAX,
    )


def extract_text(payload: Any) -> str:
    """Concatenated text parts of the first candidate, or "" when absent."""
    if not isinstance(payload, dict):
        return ""
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    first = candidates[0] if isinstance(candidates[0], dict) else {}
    content = first.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    return "".join(
        part["text"]
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    )


def upstream_error_message(response: httpx.Response, default: str) -> str:
    """Message from a Google-style ``{"error": {"message": ...}}`` body."""
    try:
        payload = response.json()
    except ValueError:
        return default
    error: Optional[Any] = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    if isinstance(error, str):
        return error
    return default
