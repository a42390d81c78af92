"""Data models for the fetch-and-extract pipeline."""

from __future__ import annotations

import enum
import ipaddress
import re
from dataclasses import dataclass, field
from typing import FrozenSet, List, Mapping, Optional, Pattern, Tuple, Union

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

DEFAULT_BLOCKED_HOSTNAMES: FrozenSet[str] = frozenset(
    {
        "localhost",
        "127.0.0.1",
        "0.0.0.0",
        "::1",
        "[::1]",
        "metadata.google.internal",
        "metadata.goog",
    }
)

# Lexical prefixes, matched against the raw hostname before any resolution.
DEFAULT_BLOCKED_HOST_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"^10\."),  # 10.0.0.0/8
    re.compile(r"^172\.(1[6-9]|2[0-9]|3[0-1])\."),  # 172.16.0.0/12
    re.compile(r"^192\.168\."),  # 192.168.0.0/16
    re.compile(r"^169\.254\."),  # 169.254.0.0/16, cloud metadata
    re.compile(r"^100\.(6[4-9]|[7-9][0-9]|1[01][0-9]|12[0-7])\."),  # 100.64.0.0/10
    re.compile(r"^198\.1[89]\."),  # 198.18.0.0/15
    re.compile(r"^fc00:", re.IGNORECASE),
    re.compile(r"^fe80:", re.IGNORECASE),
)

DEFAULT_BLOCKED_NETWORKS: Tuple[IPNetwork, ...] = tuple(
    ipaddress.ip_network(cidr)
    for cidr in (
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "169.254.0.0/16",
        "100.64.0.0/10",
        "198.18.0.0/15",
        "fc00::/7",
        "fe80::/10",
    )
)


@dataclass(frozen=True)
class SecurityPolicy:
    """Process-wide limits applied to every fetch.  Never mutated after init."""

    max_response_bytes: int = 5 * 1024 * 1024
    fetch_timeout: float = 8.0
    allowed_schemes: FrozenSet[str] = frozenset({"http", "https"})
    blocked_hostnames: FrozenSet[str] = DEFAULT_BLOCKED_HOSTNAMES
    blocked_host_patterns: Tuple[Pattern[str], ...] = DEFAULT_BLOCKED_HOST_PATTERNS
    blocked_networks: Tuple[IPNetwork, ...] = DEFAULT_BLOCKED_NETWORKS
    max_url_length: int = 2048
    min_content_length: int = 100
    max_output_length: int = 15000
    resolve_hostnames: bool = True
    mcf_api_base: str = "https://api.mycareersfuture.gov.sg/v2/jobs"


@dataclass(frozen=True)
class ValidatedTarget:
    """A URL that passed every guard check."""

    url: str
    hostname: str
    scheme: str


@dataclass(frozen=True)
class FetchResult:
    """The raw HTTP response for a single bounded fetch."""

    url: str
    status_code: int
    headers: Mapping[str, str]
    body: bytes
    reason: str = ""


class Source(str, enum.Enum):
    LINKEDIN = "linkedin"
    INDEED = "indeed"
    GLASSDOOR = "glassdoor"
    MYCAREERSFUTURE = "mycareersfuture"
    GENERIC = "generic"


@dataclass
class JobPosting:
    """Job fields recovered by the structured-data and site-specific extractors.

    Every field is optional; :meth:`to_text` renders whatever was found in the
    canonical ``JOB TITLE:`` / ``COMPANY:`` / ... layout.
    """

    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[str] = None
    salary: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[str] = None
    details: List[str] = field(default_factory=list)
    status: Optional[str] = None

    def field_count(self) -> int:
        """Number of populated fields (``details`` counts as one)."""
        values = [
            self.title,
            self.company,
            self.location,
            self.employment_type,
            self.salary,
            self.description,
            self.requirements,
        ]
        return sum(1 for v in values if v) + (1 if self.details else 0)

    def to_text(self) -> str:
        sections: List[str] = []
        if self.title:
            sections.append(f"JOB TITLE: {self.title}")
        if self.company:
            sections.append(f"COMPANY: {self.company}")
        if self.location:
            sections.append(f"LOCATION: {self.location}")
        if self.employment_type:
            sections.append(f"EMPLOYMENT TYPE: {self.employment_type}")
        if self.salary:
            sections.append(f"SALARY: {self.salary}")
        if self.description:
            sections.append(f"\nJOB DESCRIPTION:\n{self.description}")
        if self.requirements:
            sections.append(f"\nREQUIREMENTS:\n{self.requirements}")
        if self.details:
            sections.append(f"\nDETAILS: {' | '.join(self.details)}")
        if self.status:
            sections.append(
                f"\nSTATUS: {self.status} "
                "(This job may no longer be accepting applications)"
            )
        return "\n".join(sections)


@dataclass(frozen=True)
class ExtractionOutcome:
    """Text produced by one extraction strategy, tagged with its provenance."""

    content: str
    source: Source
    method: str


@dataclass(frozen=True)
class ExtractionResult:
    """Final, length-capped pipeline output returned to callers."""

    content: str
    source: Source
    method: str
    url: str
    content_length: int
    truncated: bool = False
