"""Bounded HTTP fetcher: one request, a wall-clock timeout and a byte ceiling."""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional

import httpx

from hirescore.scraper.errors import ConnectionFailed, FetchTimeout, ResponseTooLarge
from hirescore.scraper.guard import check_resolved_addresses, validate_url
from hirescore.scraper.models import FetchResult, SecurityPolicy, ValidatedTarget

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


def build_client(
    policy: SecurityPolicy,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> httpx.AsyncClient:
    """Return an ``httpx.AsyncClient`` that re-guards every redirect hop.

    The first request has already been validated by the caller; the event hook
    applies :func:`validate_url` and :func:`check_resolved_addresses` again to
    each ``Location`` the client follows.
    """

    async def _guard_hop(request: httpx.Request) -> None:
        hop = validate_url(str(request.url), policy)
        await check_resolved_addresses(hop, policy)

    return httpx.AsyncClient(
        headers=dict(headers or BROWSER_HEADERS),
        timeout=policy.fetch_timeout,
        follow_redirects=True,
        transport=transport,
        event_hooks={"request": [_guard_hop]},
    )


async def read_bounded(response: httpx.Response, limit: int) -> bytes:
    """Stream *response* into memory, aborting once more than *limit* bytes arrive.

    The declared ``Content-Length`` is checked first, but the running total is
    enforced regardless because the header may be missing or wrong.

    Raises:
        ResponseTooLarge: The declared or streamed size exceeds *limit*.
    """
    declared = response.headers.get("content-length")
    if declared and declared.strip().isdigit() and int(declared) > limit:
        raise ResponseTooLarge(f"Response too large (max {limit} bytes)")

    body = bytearray()
    async for chunk in response.aiter_bytes():
        if len(body) + len(chunk) > limit:
            logger.warning("Aborting read of %s after %d bytes", response.url, len(body))
            raise ResponseTooLarge("Response too large - exceeded size limit while reading")
        body.extend(chunk)
    return bytes(body)


async def _fetch(
    target: ValidatedTarget,
    policy: SecurityPolicy,
    transport: Optional[httpx.AsyncBaseTransport],
) -> FetchResult:
    async with build_client(policy, transport=transport) as client:
        async with client.stream("GET", target.url) as response:
            body = await read_bounded(response, policy.max_response_bytes)
            return FetchResult(
                url=str(response.url),
                status_code=response.status_code,
                headers=response.headers,
                body=body,
                reason=response.reason_phrase,
            )


async def fetch_target(
    target: ValidatedTarget,
    policy: SecurityPolicy,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FetchResult:
    """Fetch *target* once under *policy*'s timeout and size ceiling.

    Never retries.  On timeout the in-flight request is cancelled and any
    partially read bytes are dropped.

    Raises:
        FetchTimeout: The wall-clock budget or an httpx timeout expired.
        ResponseTooLarge: The body exceeds ``policy.max_response_bytes``.
        ConnectionFailed: Any other transport failure.
    """
    try:
        return await asyncio.wait_for(
            _fetch(target, policy, transport), timeout=policy.fetch_timeout
        )
    except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
        logger.warning("Fetch of %s timed out after %.1fs", target.url, policy.fetch_timeout)
        raise FetchTimeout() from exc
    except httpx.HTTPError as exc:
        logger.warning("Network error fetching %s: %s", target.url, exc)
        raise ConnectionFailed() from exc
