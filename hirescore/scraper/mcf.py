"""MyCareersFuture.gov.sg client.

The portal is a React SPA whose HTML carries no job content, so instead of
fetching the page we call its public JSON API:

    GET https://api.mycareersfuture.gov.sg/v2/jobs/{32-hex job id}
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, List, Optional
from urllib.parse import urlsplit

import httpx

from hirescore.scraper.errors import JobPortalError, ResponseTooLarge
from hirescore.scraper.fetcher import BROWSER_HEADERS, build_client, read_bounded
from hirescore.scraper.models import JobPosting, SecurityPolicy, Source, ValidatedTarget
from hirescore.scraper.text import html_to_text

logger = logging.getLogger(__name__)

MCF_METHOD = "mcf-api"

_JOB_ID = re.compile(r"([a-f0-9]{32})$", re.IGNORECASE)
_API_HEADERS = {
    "Accept": "application/json",
    "User-Agent": BROWSER_HEADERS["User-Agent"],
}


def is_mcf_host(hostname: str) -> bool:
    return "mycareersfuture.gov.sg" in hostname


def _error(message: str) -> JobPortalError:
    return JobPortalError(message, source=Source.MYCAREERSFUTURE.value)


def extract_job_id(url: str) -> str:
    """Return the 32-character hex job id that ends the URL path.

    Job URLs look like
    ``/job/design/senior-software-qa-engineer-doodle-labs-155f2182e6b7484759d653f9cb3e9773``.
    """
    last_segment = urlsplit(url).path.rstrip("/").rsplit("/", 1)[-1]
    match = _JOB_ID.search(last_segment)
    if not match:
        raise _error("Could not extract job ID from URL")
    return match.group(1).lower()


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def _money(amount: Any) -> str:
    value = float(amount)
    if value.is_integer():
        return f"${int(value):,}"
    return f"${value:,}"


def _location(address: Any) -> str:
    if not isinstance(address, dict):
        return "Singapore"
    parts: List[str] = []
    if address.get("streetAddress"):
        parts.append(str(address["streetAddress"]))
    if address.get("postalCode"):
        parts.append(f"Singapore {address['postalCode']}")
    if address.get("district"):
        parts.append(f"({address['district']})")
    return ", ".join(parts) if parts else "Singapore"


def _salary(salary: Any) -> Optional[str]:
    if not isinstance(salary, dict):
        return None
    low = (salary.get("minimum") or {}).get("amount")
    high = (salary.get("maximum") or {}).get("amount")
    if not low and not high:
        return None
    salary_type = (salary.get("type") or {}).get("salaryType")
    period = f" {str(salary_type).lower()}" if salary_type else ""
    if low and high:
        return f"{_money(low)} - {_money(high)}{period}"
    return f"{_money(low or high)}{period}"


def _requirements(data: dict) -> Optional[str]:
    lines: List[str] = []
    years = data.get("minimumYearsExperience")
    if isinstance(years, (int, float)) and years > 0:
        lines.append(f"• Minimum {years:g} years of experience required")
    skills = data.get("skills") or []
    names = [
        str(s.get("skill") if isinstance(s, dict) else s)
        for s in skills
        if (s.get("skill") if isinstance(s, dict) else s)
    ]
    if names:
        lines.append(f"• Skills: {', '.join(names)}")
    return "\n".join(lines) or None


def format_mcf_job(data: dict) -> JobPosting:
    """Map an MCF API job object onto a :class:`JobPosting`."""
    company = data.get("postedCompany") or {}
    posting = JobPosting(
        title=str(data["title"]) if data.get("title") else None,
        company=str(company["name"]) if isinstance(company, dict) and company.get("name") else None,
        location=_location(data.get("address")),
        salary=_salary(data.get("salary")),
        requirements=_requirements(data),
    )

    employment_types = data.get("employmentTypes") or []
    if employment_types:
        posting.employment_type = ", ".join(str(t) for t in employment_types)
    position_levels = data.get("positionLevels") or []
    if position_levels:
        posting.details.append(f"Level: {', '.join(str(p) for p in position_levels)}")

    if data.get("description"):
        description = html_to_text(str(data["description"]))
        if len(description) > 50:
            posting.description = description

    status = data.get("status")
    if isinstance(status, dict):
        status = status.get("jobStatus")
    if status and str(status).lower() != "open":
        posting.status = str(status)
    return posting


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def _get_job(
    api_url: str,
    policy: SecurityPolicy,
    transport: Optional[httpx.AsyncBaseTransport],
) -> bytes:
    async with build_client(policy, transport=transport, headers=_API_HEADERS) as client:
        async with client.stream("GET", api_url) as response:
            if response.status_code == 404:
                raise _error("Job posting not found - it may have been removed or expired")
            if not response.is_success:
                raise _error(f"MCF API returned {response.status_code}")
            return await read_bounded(response, policy.max_response_bytes)


async def fetch_mcf_job(
    target: ValidatedTarget,
    policy: SecurityPolicy,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Fetch the MCF job behind *target* and return it as formatted text.

    Raises:
        JobPortalError: Bad URL, API failure, timeout, malformed or too little content.
    """
    api_url = f"{policy.mcf_api_base}/{extract_job_id(target.url)}"
    logger.info("[MCF] Fetching job from API: %s", api_url)

    try:
        body = await asyncio.wait_for(
            _get_job(api_url, policy, transport), timeout=policy.fetch_timeout
        )
    except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
        raise _error("Request timeout - MCF API took too long") from exc
    except ResponseTooLarge as exc:
        raise _error(exc.message) from exc
    except httpx.HTTPError as exc:
        logger.error("[MCF] API error: %s", exc)
        raise _error(f"MCF API request failed: {exc}") from exc

    try:
        data = json.loads(body)
    except ValueError as exc:
        raise _error("MCF API returned invalid JSON") from exc
    if not isinstance(data, dict):
        raise _error("MCF API returned an unexpected payload")

    try:
        content = format_mcf_job(data).to_text()
    except (AttributeError, TypeError, ValueError) as exc:
        logger.warning("[MCF] Malformed job data: %s", exc)
        raise _error("MCF API returned malformed job data") from exc
    if len(content) < policy.min_content_length:
        raise _error("Job data was empty or incomplete")
    return content
