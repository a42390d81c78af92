"""Job posting fetch endpoint.

Routes
------
POST /api/fetch-url    Body: {"url": "https://..."}    → extract_job_posting

Failures are raised as :class:`~hirescore.scraper.errors.FetchError` and turned
into ``{"success": false, "error": ..., "hint": ...}`` bodies by the handler
registered in :func:`hirescore.api.app.create_app`.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel

from hirescore.scraper.errors import FetchError, InternalError
from hirescore.scraper.pipeline import extract_job_posting

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class FetchUrlRequest(BaseModel):
    # Left untyped so a missing or non-string value reaches the guard and is
    # reported as a 400 rather than a schema error.
    url: Any = None


class FetchUrlResponse(BaseModel):
    success: bool
    content: str
    source: str
    parseMethod: str
    url: str
    contentLength: int


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/fetch-url", response_model=FetchUrlResponse)
async def fetch_url_endpoint(body: FetchUrlRequest, request: Request) -> dict[str, Any]:
    """Fetch a job posting URL and return its description as plain text."""
    policy = request.app.state.policy
    transport = getattr(request.app.state, "transport", None)
    try:
        result = await extract_job_posting(body.url, policy, transport=transport)
    except FetchError:
        raise
    except Exception as exc:
        request_id = uuid.uuid4().hex[:12]
        logger.exception("[HANDLER] Unexpected error (request %s)", request_id)
        raise InternalError(request_id) from exc
    return {
        "success": True,
        "content": result.content,
        "source": result.source.value,
        "parseMethod": result.method,
        "url": result.url,
        "contentLength": result.content_length,
    }
