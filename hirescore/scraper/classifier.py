"""Decide whether a fetched response is worth extracting from."""

from __future__ import annotations

import logging

from hirescore.scraper.errors import (
    AuthWall,
    AuthWallOrForbidden,
    NotFound,
    UnsupportedContentType,
    UpstreamError,
)
from hirescore.scraper.models import FetchResult

logger = logging.getLogger(__name__)

ACCEPTED_CONTENT_TYPES = ("text/html", "application/xhtml", "application/json")

LOGIN_INDICATORS = (
    "sign in to view",
    "log in to continue",
    "login required",
    "please sign in",
    "authentication required",
    "authwall",
    "login-form",
    "signin-form",
)

JOB_CONTENT_INDICATORS = ("job description", "requirements")


def has_login_indicator(lowered: str) -> bool:
    return any(indicator in lowered for indicator in LOGIN_INDICATORS)


def has_job_content_indicator(lowered: str) -> bool:
    return any(indicator in lowered for indicator in JOB_CONTENT_INDICATORS)


def is_auth_wall(text: str) -> bool:
    """A page is an auth wall if it asks for a login and shows no job content."""
    lowered = text.lower()
    return has_login_indicator(lowered) and not has_job_content_indicator(lowered)


def check_status(status_code: int, reason: str = "") -> None:
    """Raise the classified error for a non-2xx *status_code*."""
    if 200 <= status_code < 300:
        return
    if status_code in (401, 403):
        raise AuthWallOrForbidden()
    if status_code == 404:
        raise NotFound()
    raise UpstreamError(status_code, reason)


def classify_response(result: FetchResult) -> str:
    """Validate *result* and return its body decoded as UTF-8 text.

    Raises:
        AuthWallOrForbidden: Upstream answered 401 or 403.
        NotFound: Upstream answered 404.
        UpstreamError: Any other non-2xx status.
        UnsupportedContentType: Not HTML, XHTML or JSON.
        AuthWall: The page is a login screen without job content.
    """
    check_status(result.status_code, result.reason)

    content_type = result.headers.get("content-type", "") or ""
    if not any(accepted in content_type.lower() for accepted in ACCEPTED_CONTENT_TYPES):
        mime = content_type.split(";")[0].strip() or "unknown"
        raise UnsupportedContentType(f"URL did not return an HTML page ({mime})")

    text = result.body.decode("utf-8", errors="replace")

    if is_auth_wall(text):
        logger.info("Auth wall detected at %s", result.url)
        raise AuthWall()

    return text
