"""Typed failures raised by the fetch-and-extract pipeline.

Every error carries the HTTP status it maps to plus an optional user-facing
hint, so the API layer can translate it without inspecting the type.
"""

from __future__ import annotations

from typing import Optional


class FetchError(Exception):
    """Base class for every classified pipeline failure."""

    status_code: int = 500
    default_message: str = "Internal server error while processing URL"
    default_hint: Optional[str] = None

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        hint: Optional[str] = None,
        source: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.message = message or self.default_message
        self.hint = hint if hint is not None else self.default_hint
        self.source = source
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        payload: dict = {"success": False, "error": self.message}
        if self.hint:
            payload["hint"] = self.hint
        if self.source:
            payload["source"] = self.source
        return payload


class InternalError(FetchError):
    """Unexpected failure; carries an id so the log entry can be found."""

    def __init__(self, request_id: str) -> None:
        super().__init__()
        self.request_id = request_id

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["requestId"] = self.request_id
        return payload


# ---------------------------------------------------------------------------
# Input errors: rejected before any I/O
# ---------------------------------------------------------------------------

class InvalidInput(FetchError):
    status_code = 400


class MalformedUrl(InvalidInput):
    default_message = "Invalid URL format"


class InputTooLarge(InvalidInput):
    default_message = "URL exceeds maximum length (2048 characters)"


# ---------------------------------------------------------------------------
# Security errors: rejected before I/O, logged for audit
# ---------------------------------------------------------------------------

class SecurityViolation(FetchError):
    status_code = 400


class ProtocolNotAllowed(SecurityViolation):
    default_message = "Protocol not allowed. Use HTTP or HTTPS."


class BlockedHost(SecurityViolation):
    default_message = "This URL cannot be accessed for security reasons"


class BlockedAddressRange(SecurityViolation):
    default_message = "Internal network URLs are not allowed"


class LoopbackAddress(SecurityViolation):
    default_message = "Loopback addresses are not allowed"


# ---------------------------------------------------------------------------
# Transport errors
# ---------------------------------------------------------------------------

class TransportError(FetchError):
    status_code = 502


class FetchTimeout(TransportError):
    status_code = 408
    default_message = "Request timeout - the website took too long to respond"


class ConnectionFailed(TransportError):
    default_message = "Failed to connect to the URL"


class ResponseTooLarge(TransportError):
    status_code = 413
    default_message = "Response too large"


# ---------------------------------------------------------------------------
# Upstream semantic errors
# ---------------------------------------------------------------------------

class UpstreamRejection(FetchError):
    status_code = 502


class AuthWallOrForbidden(UpstreamRejection):
    status_code = 403
    default_message = "This job posting requires authentication to view"
    default_hint = "Please copy and paste the job description manually"


class AuthWall(UpstreamRejection):
    status_code = 403
    default_message = "This job posting is behind a login wall"
    default_hint = "Please sign in on the website and copy the job description manually"


class NotFound(UpstreamRejection):
    status_code = 404
    default_message = "Job posting not found - it may have been removed or expired"


class UpstreamError(UpstreamRejection):
    """Non-2xx upstream status other than 401/403/404; mirrors that status."""

    def __init__(self, status: int, reason: str = "") -> None:
        message = f"Failed to fetch URL: {reason}" if reason else f"Failed to fetch URL: HTTP {status}"
        super().__init__(message, status_code=status)
        self.upstream_status = status


class UnsupportedContentType(UpstreamRejection):
    status_code = 400
    default_message = "URL did not return an HTML page"


# ---------------------------------------------------------------------------
# Extraction errors
# ---------------------------------------------------------------------------

class ExtractionError(FetchError):
    status_code = 422


class InsufficientContent(ExtractionError):
    default_message = "Could not extract job description from this URL"
    default_hint = (
        "The page may be dynamically loaded. "
        "Please copy and paste the job description manually."
    )


class JobPortalError(ExtractionError):
    """Failure on the MyCareersFuture API route."""

    default_message = "Could not fetch job from MyCareersFuture"
    default_hint = "The job posting may have been removed or expired."
