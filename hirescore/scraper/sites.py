"""Site-specific structural extraction for the supported job boards.

Each board is described by a :class:`SiteLayout`: for every field an ordered
tuple of extractor functions, tried in priority order until one returns a
value.  Supporting a new page layout means appending an extractor; existing
ones are never touched.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from bs4 import BeautifulSoup

from hirescore.scraper.models import JobPosting, Source
from hirescore.scraper.text import clean_text, html_to_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Page:
    """A document in both raw and parsed form."""

    html: str
    soup: BeautifulSoup

    @classmethod
    def parse(cls, html: str) -> "Page":
        return cls(html=html, soup=BeautifulSoup(html, "html.parser"))


FieldExtractor = Callable[[Page], Optional[str]]


# ---------------------------------------------------------------------------
# Extractor factories
# ---------------------------------------------------------------------------

def select_text(css: str) -> FieldExtractor:
    """Text of the first element matching *css*, whitespace-normalised."""

    def extract(page: Page) -> Optional[str]:
        element = page.soup.select_one(css)
        if element is None:
            return None
        return clean_text(element.get_text(" ")) or None

    return extract


def select_html(css: str) -> FieldExtractor:
    """Inner markup of the first element matching *css*, converted to text."""

    def extract(page: Page) -> Optional[str]:
        element = page.soup.select_one(css)
        if element is None:
            return None
        return html_to_text(element.decode_contents()) or None

    return extract


def search(pattern: str, flags: int = 0) -> FieldExtractor:
    """First capture group of *pattern* searched in the raw markup."""
    compiled = re.compile(pattern, flags)

    def extract(page: Page) -> Optional[str]:
        match = compiled.search(page.html)
        if not match:
            return None
        return clean_text(match.group(1)) or None

    return extract


def first_match(extractors: Tuple[FieldExtractor, ...], page: Page) -> Optional[str]:
    for extractor in extractors:
        value = extractor(page)
        if value:
            return value
    return None


_JSON_TITLE = search(r'"title"\s*:\s*"([^"]+)"')
_JSON_HIRING_ORG = search(r'"hiringOrganization"[^}]*"name"\s*:\s*"([^"]+)"')


# ---------------------------------------------------------------------------
# Layouts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SiteLayout:
    source: Source
    method: str
    host_markers: Tuple[str, ...]
    title: Tuple[FieldExtractor, ...] = ()
    company: Tuple[FieldExtractor, ...] = ()
    location: Tuple[FieldExtractor, ...] = ()
    description: Tuple[FieldExtractor, ...] = ()
    requirements: Tuple[FieldExtractor, ...] = ()
    details: Tuple[Tuple[str, FieldExtractor], ...] = ()
    default_location: Optional[str] = None
    min_description_length: int = 0

    def matches(self, hostname: str) -> bool:
        return any(marker in hostname for marker in self.host_markers)


LINKEDIN = SiteLayout(
    source=Source.LINKEDIN,
    method="linkedin-parser",
    host_markers=("linkedin.com",),
    title=(
        select_text('h1[class*="top-card-layout__title"]'),
        select_text('h1[class*="jobs-unified-top-card__job-title"]'),
        select_text("h1"),
        _JSON_TITLE,
    ),
    company=(
        select_text('a[class*="topcard__org-name-link"]'),
        select_text('span[class*="company-name"]'),
        select_text('a[class*="jobs-unified-top-card__company-name"]'),
        search(r'"companyName"\s*:\s*"([^"]+)"'),
        _JSON_HIRING_ORG,
    ),
    location=(
        select_text('span[class*="topcard__flavor--bullet"]'),
        select_text('span[class*="job-location"]'),
        select_text('span[class*="jobs-unified-top-card__bullet"]'),
        search(r'"jobLocation"[^}]*"address"[^}]*"addressLocality"\s*:\s*"([^"]+)"'),
    ),
    description=(
        select_html('div[class*="description__text"]'),
        select_html('div[class*="show-more-less-html__markup"]'),
        select_html('section[class*="description"]'),
        select_html('div[class*="jobs-description__content"]'),
    ),
    details=(
        ("Employment Type", search(r'"employmentType"\s*:\s*"([^"]+)"')),
        ("Seniority", search(r"Seniority level\s*(?:<[^>]+>\s*)+([^<]+)", re.IGNORECASE)),
        ("Type", search(r"Employment type\s*(?:<[^>]+>\s*)+([^<]+)", re.IGNORECASE)),
        ("Function", search(r"Job function\s*(?:<[^>]+>\s*)+([^<]+)", re.IGNORECASE)),
    ),
    min_description_length=50,
)

INDEED = SiteLayout(
    source=Source.INDEED,
    method="indeed-parser",
    host_markers=("indeed.com", "indeed."),
    title=(
        select_text('h1[class*="jobsearch-JobInfoHeader-title"]'),
        select_text('h1[data-testid*="jobTitle"]'),
        _JSON_TITLE,
    ),
    company=(
        select_text('span[class*="companyName"]'),
        select_text('div[data-testid*="companyName"]'),
        _JSON_HIRING_ORG,
    ),
    location=(
        select_text('div[class*="companyLocation"]'),
        select_text('div[data-testid*="location"]'),
    ),
    description=(
        select_html("div#jobDescriptionText"),
        select_html('div[class*="jobsearch-jobDescriptionText"]'),
        select_html('div[class*="jobsearch-JobComponent-description"]'),
    ),
)

GLASSDOOR = SiteLayout(
    source=Source.GLASSDOOR,
    method="glassdoor-parser",
    host_markers=("glassdoor.com", "glassdoor."),
    title=(
        select_text('h1[class*="job-title"]'),
        select_text('div[data-test*="jobTitle"]'),
        _JSON_TITLE,
    ),
    company=(
        select_text('span[class*="employer-name"]'),
        select_text('div[data-test*="employerName"]'),
    ),
    location=(select_text('span[class*="location"]'),),
    description=(
        select_html('div[class*="jobDescriptionContent"]'),
        select_html('div[class*="desc"]'),
    ),
)

MYCAREERSFUTURE = SiteLayout(
    source=Source.MYCAREERSFUTURE,
    method="mcf-parser",
    host_markers=("mycareersfuture.gov.sg",),
    title=(
        select_text('h1[class*="job-title"]'),
        select_text("h1"),
        _JSON_TITLE,
    ),
    company=(
        select_text('span[class*="company-name"]'),
        select_text('a[class*="company"]'),
        _JSON_HIRING_ORG,
    ),
    description=(
        select_html('div[class*="job-description"]'),
        select_html('section[class*="description"]'),
        select_html('div[id*="description"]'),
    ),
    requirements=(select_html('div[class*="requirements"]'),),
    default_location="Singapore",
)

SITE_LAYOUTS: Dict[Source, SiteLayout] = {
    layout.source: layout for layout in (LINKEDIN, INDEED, GLASSDOOR, MYCAREERSFUTURE)
}


def detect_source(hostname: str) -> Source:
    """Map a (lowercased) hostname to the job board it belongs to."""
    for layout in SITE_LAYOUTS.values():
        if layout.matches(hostname):
            return layout.source
    return Source.GENERIC


def extract_site(page: Page, layout: SiteLayout) -> Optional[JobPosting]:
    """Apply *layout* to *page*; ``None`` if fewer than two fields were recovered.

    A layout's ``default_location`` is rendered but never counted as a
    recovered field.
    """
    description = first_match(layout.description, page)
    if description and len(description) <= layout.min_description_length:
        description = None

    posting = JobPosting(
        title=first_match(layout.title, page),
        company=first_match(layout.company, page),
        location=first_match(layout.location, page),
        description=description,
        requirements=first_match(layout.requirements, page),
    )
    for label, extractor in layout.details:
        value = extractor(page)
        if value:
            posting.details.append(f"{label}: {value}")

    recovered = posting.field_count()
    logger.debug("%s layout recovered %d field(s)", layout.source.value, recovered)
    if recovered < 2:
        return None

    if not posting.location and layout.default_location:
        posting.location = layout.default_location
    return posting
