"""
PageSpeed Insights client.

A single GET per request; this path never retries.
"""

import logging
from typing import Optional

import httpx

from config import Settings

logger = logging.getLogger(__name__)


async def run_pagespeed(
    client: httpx.AsyncClient,
    settings: Settings,
    url: str,
    strategy: Optional[str] = None,
) -> httpx.Response:
    """
    Run a PageSpeed analysis for ``url``.

    The API key is appended only when one is configured; PageSpeed also
    answers keyless requests, with a lower quota.
    """
    params = {"url": url}
    if settings.PAGESPEED_API_KEY:
        params["key"] = settings.PAGESPEED_API_KEY
    if strategy:
        params["strategy"] = strategy

    logger.info(f"Running PageSpeed for {url} (strategy={strategy or 'default'})")
    return await client.get(settings.PAGESPEED_URL, params=params)
