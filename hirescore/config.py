"""Centralised settings for the HireScore fetch service.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

from hirescore.scraper.models import SecurityPolicy

# Load .env from the project root (one level up from the package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Fetcher limits
    # ------------------------------------------------------------------
    fetch_timeout: float = field(
        default_factory=lambda: float(os.environ.get("FETCH_TIMEOUT", "8.0"))
    )
    max_response_bytes: int = field(
        default_factory=lambda: int(
            os.environ.get("MAX_RESPONSE_BYTES", str(5 * 1024 * 1024))
        )
    )
    max_url_length: int = field(
        default_factory=lambda: int(os.environ.get("MAX_URL_LENGTH", "2048"))
    )
    resolve_hostnames: bool = field(
        default_factory=lambda: _env_flag("FETCH_RESOLVE_HOSTNAMES", "true")
    )

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------
    min_content_length: int = field(
        default_factory=lambda: int(os.environ.get("MIN_CONTENT_LENGTH", "100"))
    )
    max_output_length: int = field(
        default_factory=lambda: int(os.environ.get("MAX_OUTPUT_LENGTH", "15000"))
    )
    mcf_api_base: str = field(
        default_factory=lambda: os.environ.get(
            "MCF_API_BASE", "https://api.mycareersfuture.gov.sg/v2/jobs"
        )
    )

    # ------------------------------------------------------------------
    # HTTP surface
    # ------------------------------------------------------------------
    allowed_origins: List[str] = field(
        default_factory=lambda: [
            origin.strip()
            for origin in os.environ.get("ALLOWED_ORIGINS", "*").split(",")
            if origin.strip()
        ]
    )
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO").upper()
    )

    def security_policy(self) -> SecurityPolicy:
        """Return the immutable :class:`SecurityPolicy` for these settings."""
        return SecurityPolicy(
            max_response_bytes=self.max_response_bytes,
            fetch_timeout=self.fetch_timeout,
            max_url_length=self.max_url_length,
            min_content_length=self.min_content_length,
            max_output_length=self.max_output_length,
            resolve_hostnames=self.resolve_hostnames,
            mcf_api_base=self.mcf_api_base.rstrip("/"),
        )


# Module-level singleton: import this everywhere:
#   from hirescore.config import settings
settings = Settings()
