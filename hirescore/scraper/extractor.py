"""Extraction cascade: turns fetched page text into an :class:`ExtractionOutcome`.

Strategies are plain functions evaluated in a fixed order; the first one that
returns an outcome wins:

1. :func:`structured_strategy`: embedded schema.org ``JobPosting`` data.
2. :func:`site_strategy`: per-board structural patterns.
3. :func:`generic_strategy`: structured data again, then whole-page cleanup.

If the winner produced less than ``policy.min_content_length`` characters the
generic strategy is re-run as a last resort before giving up.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

from bs4 import BeautifulSoup, Comment

from hirescore.scraper.errors import InsufficientContent
from hirescore.scraper.models import ExtractionOutcome, SecurityPolicy, Source
from hirescore.scraper.sites import SITE_LAYOUTS, Page, extract_site
from hirescore.scraper.structured import extract_structured
from hirescore.scraper.text import html_to_text

logger = logging.getLogger(__name__)

Strategy = Callable[[str, Source, SecurityPolicy], Optional[ExtractionOutcome]]

STRUCTURED_METHOD = "json-ld"
GENERIC_METHOD = "generic-parser"
GENERIC_FALLBACK_METHOD = "generic-parser-fallback"

_NOISE_TAGS = ["script", "style", "nav", "header", "footer", "aside", "form"]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def clean_document(document: str, max_length: int) -> str:
    """Strip page chrome from *document* and return readable text.

    Script, style and navigation-type blocks plus comments are dropped, block
    structure becomes line breaks and bullets, and the result is capped at
    *max_length* characters.
    """
    soup = BeautifulSoup(document, "html.parser")
    for tag in soup(_NOISE_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    return html_to_text(str(soup), tag_separator=" ")[:max_length]


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def structured_strategy(
    document: str, source: Source, policy: SecurityPolicy
) -> Optional[ExtractionOutcome]:
    posting = extract_structured(document)
    if posting is None:
        return None
    # MyCareersFuture only lists Singapore jobs and often omits the address.
    if source is Source.MYCAREERSFUTURE and not posting.location:
        posting.location = "Singapore"
    return ExtractionOutcome(posting.to_text(), source, STRUCTURED_METHOD)


def site_strategy(
    document: str, source: Source, policy: SecurityPolicy
) -> Optional[ExtractionOutcome]:
    layout = SITE_LAYOUTS.get(source)
    if layout is None:
        return None
    posting = extract_site(Page.parse(document), layout)
    if posting is None:
        return None
    return ExtractionOutcome(posting.to_text(), source, layout.method)


def generic_strategy(
    document: str,
    source: Source,
    policy: SecurityPolicy,
    method: Optional[str] = None,
) -> ExtractionOutcome:
    """Never returns ``None``: the whole-document cleanup always yields text.

    A structured posting that is too short on its own is kept as a header
    above the cleaned document rather than discarded.
    """
    if method is None:
        method = GENERIC_METHOD if source is Source.GENERIC else GENERIC_FALLBACK_METHOD

    posting = extract_structured(document)
    structured = posting.to_text() if posting is not None else ""
    if len(structured) >= policy.min_content_length:
        return ExtractionOutcome(structured, source, method)

    cleaned = clean_document(document, policy.max_output_length)
    content = "\n\n".join(part for part in (structured, cleaned) if part)
    return ExtractionOutcome(content, source, method)


# Tried in order; generic_strategy is the terminal fallback when none match.
CASCADE: Tuple[Strategy, ...] = (structured_strategy, site_strategy)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def run_cascade(document: str, source: Source, policy: SecurityPolicy) -> ExtractionOutcome:
    """Run every strategy in precedence order and validate the winner's length.

    Raises:
        InsufficientContent: Even the generic fallback produced fewer than
            ``policy.min_content_length`` characters.
    """
    for strategy in CASCADE:
        matched = strategy(document, source, policy)
        if matched is not None:
            logger.debug("Strategy %s matched (%s)", strategy.__name__, matched.method)
            outcome = matched
            break
    else:
        outcome = generic_strategy(document, source, policy)

    if len(outcome.content) < policy.min_content_length and outcome.method not in (
        GENERIC_METHOD,
        GENERIC_FALLBACK_METHOD,
    ):
        logger.info(
            "%s produced %d chars, retrying with generic extraction",
            outcome.method,
            len(outcome.content),
        )
        outcome = generic_strategy(document, source, policy, GENERIC_FALLBACK_METHOD)

    if len(outcome.content) < policy.min_content_length:
        raise InsufficientContent(source=source.value)
    return outcome
