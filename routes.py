import logging

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from analyzer.summarizer import build_prompt
from config import Settings, get_settings
from errors import InvalidRequest, RetriesExhausted, UpstreamRejected, UpstreamUnavailable
from models import GeminiRequest, PageSpeedRequest
from utils.clients.gemini import extract_text, generate_content, upstream_error_message
from utils.clients.pagespeed import run_pagespeed

logger = logging.getLogger(__name__)

# Create router
router = APIRouter()


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared outbound client created in the app lifespan."""
    return request.app.state.http_client


@router.get("/")
async def root():
    return {
        "service": "PageSpeed Gemini Proxy",
        "status": "running",
        "endpoints": {
            "pagespeed": "/api/pagespeed (POST)",
            "gemini": "/api/gemini (POST)",
        },
    }


@router.post("/api/pagespeed")
async def pagespeed_proxy(
    body: PageSpeedRequest,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    Relays a PageSpeed Insights run for ``url``.

    The upstream status and JSON body are returned untouched, including
    non-2xx answers. This path does not retry.
    """
    if not body.url:
        raise InvalidRequest("Missing url")

    try:
        response = await run_pagespeed(client, settings, body.url, body.strategy)
    except httpx.HTTPError as e:
        logger.error(f"❌ PageSpeed transport failure for {body.url}: {e}")
        raise UpstreamUnavailable(str(e) or type(e).__name__)

    try:
        payload = response.json()
    except ValueError:
        logger.warning(f"PageSpeed returned non-JSON body with status {response.status_code}")
        # A success status with an unreadable body is still a bad gateway
        status_code = response.status_code if not response.is_success else 502
        payload = {"error": "PageSpeed API error", "status": response.status_code}
        return JSONResponse(status_code=status_code, content=payload)

    if not response.is_success:
        logger.warning(f"PageSpeed returned {response.status_code} for {body.url}")
    return JSONResponse(status_code=response.status_code, content=payload)


@router.post("/api/gemini")
async def gemini_proxy(
    body: GeminiRequest,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    Forwards a prompt, or a summarized Lighthouse report, to Gemini.

    - ``{"prompt": ...}`` is sent verbatim and the Gemini body is returned as-is.
    - ``{"lighthouse"|"lhr"|"pagespeed": {...}, "instructions"?: ...}`` is
      summarized into a bounded prompt; the response is
      ``{"ai", "summaryLength", "summary"}``.

    A literal prompt wins when both are present.
    """
    report = body.report()
    if not body.prompt and report is None:
        raise InvalidRequest("Missing prompt or lighthouse payload")

    if body.prompt:
        prompt, extra = body.prompt, {}
    else:
        built = build_prompt(
            report,
            instructions=body.instructions,
            max_chars=settings.MAX_PROMPT_CHARS,
            language=settings.RESPONSE_LANGUAGE,
        )
        prompt = built.text
        extra = {
            "summaryLength": built.length,
            "summary": built.summary.model_dump(exclude_none=True),
        }

    try:
        response = await generate_content(client, settings, prompt)
    except RetriesExhausted as e:
        if e.last_response is None:
            raise UpstreamUnavailable(e.detail)
        response = e.last_response
    except httpx.HTTPError as e:
        logger.error(f"❌ Gemini request failed: {type(e).__name__}: {e}")
        raise UpstreamUnavailable(str(e) or type(e).__name__)

    if not response.is_success:
        message = upstream_error_message(
            response, f"Gemini API error ({response.status_code})"
        )
        logger.warning(f"Gemini returned {response.status_code}: {message}")
        raise UpstreamRejected(message, response.status_code, extra)

    try:
        payload = response.json()
    except ValueError:
        raise UpstreamRejected("Gemini returned a non-JSON body", 502, extra)

    if body.prompt:
        return payload
    return {"ai": extract_text(payload), **extra}


@router.get("/health")
async def health_check():
    return {"status": "healthy"}


@router.get("/status/detailed")
async def detailed_status_check(settings: Settings = Depends(get_settings)):
    """
    Configuration overview for monitoring. Keys are reported as
    configured / missing, never echoed.
    """
    status_info = {
        "api": "healthy",
        "gemini_api": "configured" if settings.GEMINI_API_KEY else "missing",
        "pagespeed_api": "configured" if settings.PAGESPEED_API_KEY else "keyless",
        "gemini_model": settings.GEMINI_MODEL,
        "retry": {
            "max_attempts": settings.RETRY_MAX_ATTEMPTS,
            "base_delay": settings.RETRY_BASE_DELAY,
            "jitter_max": settings.RETRY_JITTER_MAX,
        },
        "request_timeout": settings.REQUEST_TIMEOUT,
        "max_prompt_chars": settings.MAX_PROMPT_CHARS,
    }

    # PageSpeed works without a key; Gemini does not
    if status_info["gemini_api"] == "missing":
        status_info["overall_status"] = "degraded"
    else:
        status_info["overall_status"] = "healthy"

    return status_info
