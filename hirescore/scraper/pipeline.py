"""End-to-end job posting extraction: guard, fetch, classify, extract, assemble."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from hirescore.scraper.classifier import classify_response
from hirescore.scraper.extractor import run_cascade
from hirescore.scraper.fetcher import fetch_target
from hirescore.scraper.guard import check_resolved_addresses, validate_url
from hirescore.scraper.mcf import MCF_METHOD, fetch_mcf_job, is_mcf_host
from hirescore.scraper.models import (
    ExtractionOutcome,
    ExtractionResult,
    SecurityPolicy,
    Source,
)
from hirescore.scraper.sites import detect_source

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n\n[Content truncated...]"


def assemble(outcome: ExtractionOutcome, url: str, policy: SecurityPolicy) -> ExtractionResult:
    """Cap *outcome* at ``policy.max_output_length`` and attach provenance."""
    content = outcome.content
    truncated = len(content) > policy.max_output_length
    if truncated:
        content = content[: policy.max_output_length] + TRUNCATION_MARKER
    return ExtractionResult(
        content=content,
        source=outcome.source,
        method=outcome.method,
        url=url,
        content_length=len(content),
        truncated=truncated,
    )


async def extract_job_posting(
    raw_url: object,
    policy: Optional[SecurityPolicy] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ExtractionResult:
    """Fetch *raw_url* and return its job description as normalised text.

    Each stage may stop the pipeline with a :class:`~hirescore.scraper.errors.FetchError`
    subclass describing why.  Nothing is retried.
    """
    if policy is None:
        from hirescore.config import settings  # noqa: PLC0415

        policy = settings.security_policy()

    target = validate_url(raw_url, policy)
    await check_resolved_addresses(target, policy)

    if is_mcf_host(target.hostname):
        content = await fetch_mcf_job(target, policy, transport=transport)
        outcome = ExtractionOutcome(content, Source.MYCAREERSFUTURE, MCF_METHOD)
        return assemble(outcome, target.url, policy)

    result = await fetch_target(target, policy, transport=transport)
    document = classify_response(result)

    source = detect_source(target.hostname)
    outcome = run_cascade(document, source, policy)
    logger.info(
        "Extracted %d chars from %s via %s", len(outcome.content), target.url, outcome.method
    )
    return assemble(outcome, target.url, policy)
