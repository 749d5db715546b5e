"""
Error types raised by the proxy.

Every ProxyError carries the HTTP status it maps to; main.py registers a
handler that turns it into a JSON envelope of the form ``{"error": ...}``.
"""

from typing import Any, Dict, List, Optional

import httpx


class ProxyError(Exception):
    """Base class for errors converted to a JSON response at the endpoint."""

    status_code = 500

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}

    def to_envelope(self) -> Dict[str, Any]:
        envelope = {"error": self.message}
        envelope.update(self.extra)
        return envelope


class InvalidRequest(ProxyError):
    """A required field is missing. No outbound call has been made."""

    status_code = 400


class UpstreamRejected(ProxyError):
    """The upstream answered with a non-success status, which is relayed."""

    def __init__(
        self, message: str, status_code: int, extra: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, extra)
        self.status_code = status_code


class UpstreamUnavailable(ProxyError):
    """No usable response at all (transport failure after retries)."""

    status_code = 500

    def __init__(self, details: str, extra: Optional[Dict[str, Any]] = None):
        envelope_extra = {"details": details}
        envelope_extra.update(extra or {})
        super().__init__("Proxy error", envelope_extra)
        self.details = details


class RetriesExhausted(Exception):
    """
    Raised by the retry wrapper once the attempt budget is spent.

    Exactly one of ``last_response`` / ``last_error`` is set, depending on
    whether the final attempt produced a transient response or a transport
    failure.
    """

    def __init__(
        self,
        attempts: List[Any],
        last_response: Optional[httpx.Response] = None,
        last_error: Optional[BaseException] = None,
    ):
        self.attempts = attempts
        self.last_response = last_response
        self.last_error = last_error
        super().__init__(self.detail)

    @property
    def detail(self) -> str:
        if self.last_response is not None:
            return (
                f"Upstream returned {self.last_response.status_code} "
                f"after {len(self.attempts)} attempts"
            )
        if self.last_error is None:
            return "Unknown error"
        return str(self.last_error) or type(self.last_error).__name__
