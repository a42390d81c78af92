"""URL validation and SSRF defence, applied before any network access.

The lexical checks in :func:`validate_url` cannot see what a hostname will
resolve to, so :func:`check_resolved_addresses` resolves it once and applies
the same address table to the result.  Redirect hops are re-validated by the
fetcher through the same two functions.
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import re
import socket
from typing import Optional, Union
from urllib.parse import urlsplit

from hirescore.scraper.errors import (
    BlockedAddressRange,
    BlockedHost,
    ConnectionFailed,
    InputTooLarge,
    LoopbackAddress,
    MalformedUrl,
    ProtocolNotAllowed,
)
from hirescore.scraper.models import SecurityPolicy, ValidatedTarget

logger = logging.getLogger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

_DOTTED_QUAD = re.compile(r"^\d+\.\d+\.\d+\.\d+$")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _parse_ip(hostname: str) -> Optional[IPAddress]:
    """Return *hostname* as an IP address, or ``None`` for a DNS name."""
    try:
        address = ipaddress.ip_address(hostname.strip("[]"))
    except ValueError:
        return None
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
        return address.ipv4_mapped
    return address


def _in_blocked_network(address: IPAddress, policy: SecurityPolicy) -> bool:
    return any(
        address.version == network.version and address in network
        for network in policy.blocked_networks
    )


def _matches_blocked_pattern(hostname: str, policy: SecurityPolicy) -> bool:
    if any(pattern.search(hostname) for pattern in policy.blocked_host_patterns):
        return True
    address = _parse_ip(hostname)
    return address is not None and _in_blocked_network(address, policy)


def _is_loopback_literal(hostname: str) -> bool:
    if not _DOTTED_QUAD.match(hostname):
        return False
    first_octet = int(hostname.split(".", 1)[0])
    return first_octet in (0, 127)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def validate_url(raw_url: object, policy: SecurityPolicy) -> ValidatedTarget:
    """Validate *raw_url* against *policy* and return a :class:`ValidatedTarget`.

    Checks run in a fixed order and the first failure wins.  No network I/O
    happens here.

    Raises:
        MalformedUrl: Missing, non-string, or unparseable input.
        InputTooLarge: Longer than ``policy.max_url_length``.
        ProtocolNotAllowed: Scheme outside ``policy.allowed_schemes``.
        BlockedHost: Hostname on the literal blocklist.
        BlockedAddressRange: Private, reserved, link-local or multicast host.
        LoopbackAddress: Loopback or unspecified IP literal (IPv4 or IPv6).
    """
    if not isinstance(raw_url, str) or not raw_url.strip():
        raise MalformedUrl("URL is required and must be a string")

    url = raw_url.strip()
    if len(url) > policy.max_url_length:
        raise InputTooLarge(
            f"URL exceeds maximum length ({policy.max_url_length} characters)"
        )

    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise MalformedUrl() from exc
    if not parts.scheme:
        raise MalformedUrl()

    scheme = parts.scheme.lower()
    if scheme not in policy.allowed_schemes:
        raise ProtocolNotAllowed()

    try:
        hostname = (parts.hostname or "").lower().rstrip(".")
        parts.port  # raises ValueError on a non-numeric or out-of-range port
    except ValueError as exc:
        raise MalformedUrl() from exc
    if not hostname:
        raise MalformedUrl()

    if hostname in policy.blocked_hostnames:
        logger.warning("[SECURITY] Blocked hostname attempt: %s", hostname)
        raise BlockedHost()

    if _matches_blocked_pattern(hostname, policy):
        logger.warning("[SECURITY] Blocked IP pattern attempt: %s", hostname)
        raise BlockedAddressRange()

    address = _parse_ip(hostname)
    if _is_loopback_literal(hostname) or (
        address is not None and (address.is_loopback or address.is_unspecified)
    ):
        logger.warning("[SECURITY] Blocked loopback IP: %s", hostname)
        raise LoopbackAddress()

    if address is not None and (address.is_link_local or address.is_multicast):
        logger.warning("[SECURITY] Blocked IP pattern attempt: %s", hostname)
        raise BlockedAddressRange()

    return ValidatedTarget(url=url, hostname=hostname, scheme=scheme)


def is_blocked_address(address: str, policy: SecurityPolicy) -> bool:
    """Return ``True`` if a resolved *address* must not be connected to."""
    parsed = _parse_ip(address)
    if parsed is None:
        return True
    return (
        _in_blocked_network(parsed, policy)
        or parsed.is_loopback
        or parsed.is_unspecified
        or parsed.is_link_local
        or parsed.is_multicast
    )


async def _resolve(hostname: str) -> list[str]:
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    return sorted({info[4][0] for info in infos})


async def check_resolved_addresses(target: ValidatedTarget, policy: SecurityPolicy) -> None:
    """Resolve *target*'s hostname once and reject internal addresses.

    Skipped when ``policy.resolve_hostnames`` is off or the hostname is
    already an IP literal (the lexical checks covered it).

    Raises:
        BlockedAddressRange: Any resolved address is internal.
        ConnectionFailed: The hostname does not resolve.
    """
    if not policy.resolve_hostnames or _parse_ip(target.hostname) is not None:
        return

    try:
        addresses = await _resolve(target.hostname)
    except (socket.gaierror, UnicodeError) as exc:
        logger.warning("DNS resolution failed for %s: %s", target.hostname, exc)
        raise ConnectionFailed() from exc

    for address in addresses:
        if is_blocked_address(address, policy):
            logger.warning(
                "[SECURITY] %s resolves to internal address %s", target.hostname, address
            )
            raise BlockedAddressRange()
