"""Endpoint tests with stubbed PageSpeed and Gemini upstreams."""

import json

import httpx

import routes
from main import settings as app_settings
from tests.conftest import StubUpstream

REPORT = {
    "lighthouseResult": {
        "finalUrl": "https://example.com/",
        "categories": {"performance": {"score": 0.61}},
        "audits": {
            "speed-index": {"numericValue": 1200},
            "unused-javascript": {
                "title": "Reduce unused JavaScript",
                "details": {"type": "opportunity", "overallSavingsMs": 500},
            },
        },
    }
}

GEMINI_OK = {"candidates": [{"content": {"parts": [{"text": "Sve je "}, {"text": "u redu."}]}}]}


def _sent_text(request: httpx.Request) -> str:
    return json.loads(request.content)["contents"][0]["parts"][0]["text"]


class TestInfoEndpoints:
    def test_root(self, make_client) -> None:
        response = make_client(StubUpstream((200, {}))).get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, make_client) -> None:
        response = make_client(StubUpstream((200, {}))).get("/health")
        assert response.json() == {"status": "healthy"}

    def test_detailed_status_hides_keys(self, make_client) -> None:
        response = make_client(StubUpstream((200, {}))).get("/status/detailed")
        data = response.json()
        assert data["gemini_api"] == "configured"
        assert data["overall_status"] == "healthy"
        assert "gemini-test-key" not in response.text


class TestPageSpeedProxy:
    def test_relays_upstream_body(self, make_client) -> None:
        upstream = StubUpstream((200, {"id": "example"}))
        response = make_client(upstream).post(
            "/api/pagespeed", json={"url": "https://example.com"}
        )
        assert response.status_code == 200
        assert response.json() == {"id": "example"}
        assert upstream.calls == 1
        params = upstream.requests[0].url.params
        assert params["url"] == "https://example.com"
        assert params["key"] == "pagespeed-test-key"
        assert "strategy" not in params

    def test_strategy_forwarded(self, make_client) -> None:
        upstream = StubUpstream((200, {}))
        make_client(upstream).post(
            "/api/pagespeed", json={"url": "https://example.com", "strategy": "mobile"}
        )
        assert upstream.requests[0].url.params["strategy"] == "mobile"

    def test_missing_url(self, make_client) -> None:
        upstream = StubUpstream((200, {}))
        response = make_client(upstream).post("/api/pagespeed", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing url"}
        assert upstream.calls == 0

    def test_upstream_error_relayed_without_retry(self, make_client) -> None:
        body = {"error": {"code": 500, "message": "Lighthouse returned error"}}
        upstream = StubUpstream((500, body), (200, {"id": "late"}))
        response = make_client(upstream).post(
            "/api/pagespeed", json={"url": "https://example.com"}
        )
        assert response.status_code == 500
        assert response.json() == body
        assert upstream.calls == 1

    def test_non_json_upstream_body(self, make_client) -> None:
        upstream = StubUpstream((502, "<html>Bad Gateway</html>"))
        response = make_client(upstream).post(
            "/api/pagespeed", json={"url": "https://example.com"}
        )
        assert response.status_code == 502
        assert response.json() == {"error": "PageSpeed API error", "status": 502}

    def test_success_status_with_non_json_body(self, make_client) -> None:
        upstream = StubUpstream((200, "<html>ok</html>"))
        response = make_client(upstream).post(
            "/api/pagespeed", json={"url": "https://example.com"}
        )
        assert response.status_code == 502
        assert response.json() == {"error": "PageSpeed API error", "status": 200}

    def test_transport_failure(self, make_client) -> None:
        upstream = StubUpstream(httpx.ConnectError("connection refused"))
        response = make_client(upstream).post(
            "/api/pagespeed", json={"url": "https://example.com"}
        )
        assert response.status_code == 500
        assert response.json() == {"error": "Proxy error", "details": "connection refused"}


class TestGeminiPromptPath:
    def test_missing_prompt_and_report(self, make_client) -> None:
        upstream = StubUpstream((200, GEMINI_OK))
        response = make_client(upstream).post("/api/gemini", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing prompt or lighthouse payload"}
        assert upstream.calls == 0

    def test_instructions_alone_are_not_enough(self, make_client) -> None:
        upstream = StubUpstream((200, GEMINI_OK))
        response = make_client(upstream).post("/api/gemini", json={"instructions": "x"})
        assert response.status_code == 400
        assert upstream.calls == 0

    def test_prompt_forwarded_verbatim(self, make_client, settings) -> None:
        upstream = StubUpstream((200, GEMINI_OK))
        response = make_client(upstream).post("/api/gemini", json={"prompt": "Hello"})
        assert response.status_code == 200
        assert response.json() == GEMINI_OK
        request = upstream.requests[0]
        assert _sent_text(request) == "Hello"
        assert request.url.path.endswith(f"/models/{settings.GEMINI_MODEL}:generateContent")
        assert request.url.params["key"] == "gemini-test-key"

    def test_transient_then_success(self, make_client) -> None:
        upstream = StubUpstream((503, {}), (503, {}), (200, {"candidates": []}))
        response = make_client(upstream).post("/api/gemini", json={"prompt": "Hello"})
        assert response.status_code == 200
        assert response.json() == {"candidates": []}
        assert upstream.calls == 3

    def test_prompt_takes_precedence(self, make_client) -> None:
        upstream = StubUpstream((200, GEMINI_OK))
        response = make_client(upstream).post(
            "/api/gemini", json={"prompt": "Literal", "lighthouse": REPORT}
        )
        assert response.json() == GEMINI_OK
        assert _sent_text(upstream.requests[0]) == "Literal"
        assert upstream.calls == 1

    def test_client_error_relayed(self, make_client) -> None:
        body = {"error": {"code": 400, "message": "API key not valid."}}
        upstream = StubUpstream((400, body))
        response = make_client(upstream).post("/api/gemini", json={"prompt": "Hello"})
        assert response.status_code == 400
        assert response.json() == {"error": "API key not valid."}
        assert upstream.calls == 1

    def test_retries_exhausted_on_status(self, make_client, settings) -> None:
        upstream = StubUpstream((503, {"error": {"message": "The model is overloaded."}}))
        response = make_client(upstream).post("/api/gemini", json={"prompt": "Hello"})
        assert response.status_code == 503
        assert response.json() == {"error": "The model is overloaded."}
        assert upstream.calls == settings.RETRY_MAX_ATTEMPTS

    def test_retries_exhausted_on_transport(self, make_client, settings) -> None:
        upstream = StubUpstream(httpx.ConnectError("connection refused"))
        response = make_client(upstream).post("/api/gemini", json={"prompt": "Hello"})
        assert response.status_code == 500
        assert response.json() == {"error": "Proxy error", "details": "connection refused"}
        assert upstream.calls == settings.RETRY_MAX_ATTEMPTS


class TestGeminiReportPath:
    def test_summarized_report(self, make_client) -> None:
        upstream = StubUpstream((200, GEMINI_OK))
        response = make_client(upstream).post(
            "/api/gemini", json={"lighthouse": REPORT, "instructions": "Explain briefly."}
        )
        assert response.status_code == 200
        data = response.json()
        sent = _sent_text(upstream.requests[0])
        assert data["ai"] == "Sve je u redu."
        assert data["summaryLength"] == len(sent)
        assert data["summary"]["target"] == "https://example.com/"
        assert data["summary"]["metrics"] == {"speed-index": 1200}
        assert data["summary"]["opportunities"][0]["wasted"] == 500
        assert type(data["summary"]["opportunities"][0]["wasted"]) is int
        assert sent.endswith("Explain briefly.")
        assert "URL: https://example.com/" in sent

    def test_alternate_field_names(self, make_client) -> None:
        for field in ("lhr", "pagespeed"):
            upstream = StubUpstream((200, GEMINI_OK))
            response = make_client(upstream).post("/api/gemini", json={field: REPORT})
            assert response.status_code == 200
            assert response.json()["summary"]["score"] == 0.61

    def test_default_instructions_applied(self, make_client, settings) -> None:
        upstream = StubUpstream((200, GEMINI_OK))
        make_client(upstream).post("/api/gemini", json={"lighthouse": REPORT})
        assert f"in {settings.RESPONSE_LANGUAGE} language" in _sent_text(upstream.requests[0])

    def test_upstream_error_includes_summary(self, make_client) -> None:
        upstream = StubUpstream((403, {"error": {"message": "Permission denied."}}))
        response = make_client(upstream).post("/api/gemini", json={"lighthouse": REPORT})
        assert response.status_code == 403
        data = response.json()
        assert data["error"] == "Permission denied."
        assert data["summaryLength"] > 0
        assert data["summary"]["metrics"] == {"speed-index": 1200}

    def test_empty_candidates(self, make_client) -> None:
        upstream = StubUpstream((200, {"candidates": []}))
        response = make_client(upstream).post("/api/gemini", json={"lighthouse": REPORT})
        assert response.json()["ai"] == ""

    def test_oversized_score_is_clamped(self, make_client) -> None:
        upstream = StubUpstream((200, GEMINI_OK))
        response = make_client(upstream).post(
            "/api/gemini",
            content=b'{"lighthouse": {"categories": {"performance": {"score": 1e308}}}}',
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 200
        assert response.json()["summary"]["score"] == 1
        assert "(100/100)" in _sent_text(upstream.requests[0])

    def test_non_finite_metrics_are_dropped(self, make_client) -> None:
        upstream = StubUpstream((200, GEMINI_OK))
        body = (
            b'{"lighthouse": {"audits": {'
            b'"speed-index": {"numericValue": NaN},'
            b'"interactive": {"numericValue": Infinity, "displayValue": "5.2 s"}}}}'
        )
        response = make_client(upstream).post(
            "/api/gemini", content=body, headers={"content-type": "application/json"}
        )
        assert response.status_code == 200
        assert response.json()["summary"]["metrics"] == {"interactive": "5.2 s"}
        assert upstream.calls == 1

    def test_unexpected_failure_returns_envelope(self, make_client, monkeypatch) -> None:
        def _boom(*args, **kwargs):
            raise RuntimeError("summary exploded")

        monkeypatch.setattr(routes, "build_prompt", _boom)
        upstream = StubUpstream((200, GEMINI_OK))
        client = make_client(upstream, raise_server_exceptions=False)
        response = client.post("/api/gemini", json={"lighthouse": REPORT})
        assert response.status_code == 500
        assert response.json() == {"error": "Proxy error", "details": "summary exploded"}
        assert upstream.calls == 0


class TestRequestValidation:
    def test_malformed_body(self, make_client) -> None:
        upstream = StubUpstream((200, {}))
        response = make_client(upstream).post(
            "/api/gemini", content=b"not json", headers={"content-type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request body"
        assert upstream.calls == 0

    def test_body_too_large(self, make_client) -> None:
        upstream = StubUpstream((200, {}))
        oversized = b"x" * (app_settings.MAX_BODY_BYTES + 1)
        response = make_client(upstream).post(
            "/api/gemini", content=oversized, headers={"content-type": "application/json"}
        )
        assert response.status_code == 413
        assert upstream.calls == 0

    def test_body_too_large_keeps_cors_headers(self, make_client) -> None:
        upstream = StubUpstream((200, {}))
        oversized = b"x" * (app_settings.MAX_BODY_BYTES + 1)
        response = make_client(upstream).post(
            "/api/gemini",
            content=oversized,
            headers={"content-type": "application/json", "origin": "https://app.example"},
        )
        assert response.status_code == 413
        assert "access-control-allow-origin" in response.headers

    def test_streamed_body_too_large(self, make_client) -> None:
        upstream = StubUpstream((200, {}))
        chunk = b" " * (1024 * 1024)
        chunks = iter([b'{"prompt": "x"', chunk, chunk, chunk, b"}"])
        response = make_client(upstream).post(
            "/api/gemini", content=chunks, headers={"content-type": "application/json"}
        )
        assert response.status_code == 413
        assert response.json() == {
            "error": f"Request body exceeds {app_settings.MAX_BODY_BYTES} bytes"
        }
        assert upstream.calls == 0

    def test_unknown_route_envelope(self, make_client) -> None:
        response = make_client(StubUpstream((200, {}))).get("/missing")
        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}
