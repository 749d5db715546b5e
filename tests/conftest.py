"""Shared fixtures: test settings and a stubbed upstream for the HTTP client."""

from typing import Any, List

import httpx
import pytest
from fastapi.testclient import TestClient

from config import Settings, get_settings
from main import app
from routes import get_http_client


class StubUpstream:
    """
    MockTransport handler replaying scripted outcomes.

    Each outcome is an exception to raise, or a ``(status, body)`` tuple where
    body is JSON-serializable or a str sent as text. The last outcome repeats
    once the script runs out.
    """

    def __init__(self, *outcomes: Any):
        self.outcomes = list(outcomes)
        self.requests: List[httpx.Request] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.outcomes)) - 1
        outcome = self.outcomes[index]
        if isinstance(outcome, Exception):
            raise outcome
        status, body = outcome
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        GEMINI_API_KEY="gemini-test-key",
        PAGESPEED_API_KEY="pagespeed-test-key",
        RETRY_BASE_DELAY=0,
        RETRY_JITTER_MAX=0,
    )


@pytest.fixture
def make_client(settings):
    """Build a TestClient whose outbound calls go to ``upstream``."""

    def _make(upstream: StubUpstream, **client_kwargs) -> TestClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_http_client] = lambda: http_client
        return TestClient(app, **client_kwargs)

    yield _make
    app.dependency_overrides.clear()
