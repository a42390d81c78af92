"""Scraper package: guarded fetch & job posting extraction."""

from hirescore.scraper.extractor import run_cascade
from hirescore.scraper.fetcher import fetch_target
from hirescore.scraper.guard import validate_url
from hirescore.scraper.models import (
    ExtractionOutcome,
    ExtractionResult,
    FetchResult,
    JobPosting,
    SecurityPolicy,
    Source,
    ValidatedTarget,
)
from hirescore.scraper.pipeline import extract_job_posting

__all__ = [
    "extract_job_posting",
    "validate_url",
    "fetch_target",
    "run_cascade",
    "SecurityPolicy",
    "ValidatedTarget",
    "FetchResult",
    "JobPosting",
    "ExtractionOutcome",
    "ExtractionResult",
    "Source",
]
