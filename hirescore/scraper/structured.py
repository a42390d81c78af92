"""Structured-data extraction: schema.org ``JobPosting`` objects in JSON-LD.

This is the most reliable strategy because the format is standardised and
self-describing, so every cascade tries it first.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterator, List, Optional

from bs4 import BeautifulSoup

from hirescore.scraper.models import JobPosting
from hirescore.scraper.text import clean_text, html_to_text

logger = logging.getLogger(__name__)

_LD_JSON_TYPE = re.compile(r"application/ld\+json", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Locating JobPosting objects
# ---------------------------------------------------------------------------

def _is_job_posting(item: Any) -> bool:
    if not isinstance(item, dict):
        return False
    kind = item.get("@type")
    if isinstance(kind, list):
        return "JobPosting" in kind
    return kind == "JobPosting"


def _walk(data: Any) -> Iterator[dict]:
    """Yield ``JobPosting`` dicts from *data*, descending into arrays and ``@graph``."""
    if isinstance(data, list):
        for item in data:
            yield from _walk(item)
        return
    if not isinstance(data, dict):
        return
    if _is_job_posting(data):
        yield data
    graph = data.get("@graph")
    if isinstance(graph, list):
        yield from _walk(graph)


def _json_blocks(document: str) -> Iterator[Any]:
    stripped = document.lstrip()
    if stripped.startswith(("{", "[")):
        try:
            yield json.loads(stripped)
        except json.JSONDecodeError:
            pass
        else:
            return

    soup = BeautifulSoup(document, "html.parser")
    for script in soup.find_all("script", attrs={"type": _LD_JSON_TYPE}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            yield json.loads(raw.strip())
        except json.JSONDecodeError as exc:
            logger.debug("Skipping unparseable JSON-LD block: %s", exc)


def find_job_postings(document: str) -> List[dict]:
    """Return every ``JobPosting`` object embedded in *document*, in order.

    *document* may be an HTML page carrying ``application/ld+json`` scripts or
    a JSON body that is itself the structured data.
    """
    postings: List[dict] = []
    for block in _json_blocks(document):
        postings.extend(_walk(block))
    return postings


# ---------------------------------------------------------------------------
# Field formatting
# ---------------------------------------------------------------------------

def _as_text(value: Any) -> str:
    """Flatten a JSON-LD value (string, list or nested object) into text."""
    if value is None:
        return ""
    if isinstance(value, list):
        return "\n".join(filter(None, (_as_text(v) for v in value)))
    if isinstance(value, dict):
        for key in ("description", "name", "text"):
            if value.get(key):
                return _as_text(value[key])
        months = value.get("monthsOfExperience")
        if months:
            return f"{months} months of experience"
        return ""
    return str(value)


def _company(job: dict) -> Optional[str]:
    org = job.get("hiringOrganization")
    if isinstance(org, dict):
        org = org.get("name")
    return clean_text(str(org)) if org else None


def _location(job: dict) -> Optional[str]:
    location = job.get("jobLocation")
    if isinstance(location, list):
        location = location[0] if location else None
    if not isinstance(location, dict):
        return None
    address = location.get("address")
    if not isinstance(address, dict):
        return None

    parts: List[str] = []
    for key in ("addressLocality", "addressRegion"):
        if address.get(key):
            parts.append(str(address[key]))
    country = address.get("addressCountry")
    if isinstance(country, dict) and country.get("name"):
        parts.append(str(country["name"]))
    elif isinstance(country, str) and country:
        parts.append(country)
    return clean_text(", ".join(parts)) if parts else None


def _employment_type(job: dict) -> Optional[str]:
    value = job.get("employmentType")
    if not value:
        return None
    if isinstance(value, list):
        value = ", ".join(str(v) for v in value)
    return clean_text(str(value))


def _salary(job: dict) -> Optional[str]:
    base = job.get("baseSalary")
    if not isinstance(base, dict) or not base.get("value"):
        return None
    currency = str(base.get("currency") or "")
    value = base["value"]
    if isinstance(value, dict):
        low = f"{currency}{value['minValue']}" if value.get("minValue") else ""
        high = f"{currency}{value['maxValue']}" if value.get("maxValue") else ""
        if not low and value.get("value"):
            low = f"{currency}{value['value']}"
    else:
        low, high = f"{currency}{value}", ""
    if low and high:
        return f"{low} - {high}"
    return low or high or None


def _description(job: dict) -> Optional[str]:
    if not job.get("description"):
        return None
    return html_to_text(_as_text(job["description"])) or None


def _requirements(job: dict) -> Optional[str]:
    quals = [
        _as_text(job.get(key))
        for key in ("qualifications", "skills", "experienceRequirements")
    ]
    quals = [q for q in quals if q]
    if not quals:
        return None
    return html_to_text("\n".join(quals)) or None


def posting_from_json_ld(job: dict) -> JobPosting:
    """Map a schema.org ``JobPosting`` dict onto a :class:`JobPosting`."""
    title = job.get("title")
    return JobPosting(
        title=clean_text(str(title)) if title else None,
        company=_company(job),
        location=_location(job),
        employment_type=_employment_type(job),
        salary=_salary(job),
        description=_description(job),
        requirements=_requirements(job),
    )


def extract_structured(document: str) -> Optional[JobPosting]:
    """Return the first embedded ``JobPosting`` with at least two usable fields."""
    for job in find_job_postings(document):
        posting = posting_from_json_ld(job)
        if posting.field_count() >= 2:
            return posting
    return None
