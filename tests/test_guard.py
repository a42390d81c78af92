"""Tests for the URL guard (SSRF defence).

Mocking strategy:
- ``validate_url`` is pure, so it is exercised directly.
- ``check_resolved_addresses`` is tested by patching the module-level
  ``_resolve`` coroutine so no real DNS lookups happen.
- A catch-all ``respx`` route asserts that rejected literals never reach the
  network when run through ``extract_job_posting``.
"""

from __future__ import annotations

import asyncio
import socket
from unittest.mock import AsyncMock, patch

import pytest
import respx

from hirescore.scraper.errors import (
    BlockedAddressRange,
    BlockedHost,
    ConnectionFailed,
    InputTooLarge,
    LoopbackAddress,
    MalformedUrl,
    ProtocolNotAllowed,
)
from hirescore.scraper.guard import check_resolved_addresses, is_blocked_address, validate_url
from hirescore.scraper.models import SecurityPolicy, ValidatedTarget
from hirescore.scraper.pipeline import extract_job_posting

_POLICY = SecurityPolicy(resolve_hostnames=False)


# ---------------------------------------------------------------------------
# validate_url
# ---------------------------------------------------------------------------

class TestValidateUrl:
    def test_accepts_public_https_url(self) -> None:
        target = validate_url("https://Example.COM/jobs/42?ref=x", _POLICY)
        assert target == ValidatedTarget(
            url="https://Example.COM/jobs/42?ref=x",
            hostname="example.com",
            scheme="https",
        )

    def test_trims_surrounding_whitespace(self) -> None:
        target = validate_url("  http://example.com/job  ", _POLICY)
        assert target.url == "http://example.com/job"

    @pytest.mark.parametrize("value", [None, "", "   ", 42, ["https://example.com"]])
    def test_missing_or_non_string_is_malformed(self, value: object) -> None:
        with pytest.raises(MalformedUrl):
            validate_url(value, _POLICY)

    def test_url_over_length_limit(self) -> None:
        url = "https://example.com/" + "a" * 2029
        assert len(url) == 2049
        with pytest.raises(InputTooLarge):
            validate_url(url, _POLICY)

    def test_url_at_length_limit_is_accepted(self) -> None:
        url = "https://example.com/" + "a" * 2028
        assert len(url) == 2048
        assert validate_url(url, _POLICY).hostname == "example.com"

    @pytest.mark.parametrize(
        "url",
        ["not a url", "example.com/job", "http:///path-only", "https://example.com:abc/"],
    )
    def test_malformed_urls(self, url: str) -> None:
        with pytest.raises(MalformedUrl):
            validate_url(url, _POLICY)

    @pytest.mark.parametrize(
        "url",
        [
            "ftp://example.com/file",
            "file:///etc/passwd",
            "javascript:alert(1)",
            "gopher://example.com:70/",
            "data:text/html,<h1>x</h1>",
        ],
    )
    def test_non_http_schemes_rejected(self, url: str) -> None:
        with pytest.raises(ProtocolNotAllowed):
            validate_url(url, _POLICY)

    @pytest.mark.parametrize(
        "url",
        [
            "http://localhost/x",
            "http://LOCALHOST:8080/",
            "http://localhost./x",
            "http://127.0.0.1/",
            "http://0.0.0.0:9000/",
            "http://[::1]/",
            "http://metadata.google.internal/computeMetadata/v1/",
            "http://metadata.goog/",
        ],
    )
    def test_blocked_hostnames(self, url: str) -> None:
        with pytest.raises(BlockedHost):
            validate_url(url, _POLICY)

    @pytest.mark.parametrize(
        "host",
        [
            "10.0.0.1",
            "172.16.5.4",
            "172.31.255.255",
            "192.168.1.1",
            "169.254.169.254",
            "100.64.0.1",
            "100.127.255.254",
            "198.18.0.1",
            "198.19.10.10",
            "[fc00::1]",
            "[fd12:3456::1]",
            "[fe80::1]",
            "[::ffff:10.0.0.1]",
            "10.0.0.1.nip.io",
        ],
    )
    def test_blocked_address_ranges(self, host: str) -> None:
        with pytest.raises(BlockedAddressRange):
            validate_url(f"http://{host}/admin", _POLICY)

    @pytest.mark.parametrize("host", ["127.0.0.2", "127.1.1.1", "0.1.2.3"])
    def test_loopback_literals(self, host: str) -> None:
        with pytest.raises(LoopbackAddress):
            validate_url(f"http://{host}/", _POLICY)

    @pytest.mark.parametrize(
        "url",
        [
            "http://[::ffff:127.0.0.1]/admin",
            "http://[0:0:0:0:0:0:0:1]/admin",
            "http://[::]:8080/admin",
            "http://[::ffff:0.0.0.0]/",
        ],
    )
    def test_ipv6_loopback_and_unspecified_literals(self, url: str) -> None:
        with pytest.raises(LoopbackAddress):
            validate_url(url, _POLICY)

    @pytest.mark.parametrize("host", ["[ff02::1]", "224.0.0.251", "[::ffff:169.254.1.1]"])
    def test_multicast_and_link_local_literals(self, host: str) -> None:
        with pytest.raises(BlockedAddressRange):
            validate_url(f"http://{host}/", _POLICY)

    def test_ipv6_loopback_literal_makes_no_request(self) -> None:
        policy = SecurityPolicy(resolve_hostnames=True)
        with respx.mock(assert_all_called=False) as respx_mock:
            route = respx_mock.route()
            with pytest.raises(LoopbackAddress):
                asyncio.run(extract_job_posting("http://[::ffff:127.0.0.1]/admin", policy))
        assert not route.called

    @pytest.mark.parametrize(
        "host", ["172.32.0.1", "100.128.0.1", "100.129.0.1", "8.8.8.8", "198.20.0.1"]
    )
    def test_public_addresses_pass(self, host: str) -> None:
        assert validate_url(f"http://{host}/", _POLICY).hostname == host

    def test_first_failing_check_wins(self) -> None:
        # Both the scheme and the host are bad; the scheme is checked first.
        with pytest.raises(ProtocolNotAllowed):
            validate_url("ftp://localhost/", _POLICY)

    def test_security_rejections_map_to_400(self) -> None:
        for error in (BlockedHost(), BlockedAddressRange(), LoopbackAddress(), ProtocolNotAllowed()):
            assert error.status_code == 400


# ---------------------------------------------------------------------------
# Resolution check
# ---------------------------------------------------------------------------

def _target(hostname: str) -> ValidatedTarget:
    return ValidatedTarget(url=f"https://{hostname}/", hostname=hostname, scheme="https")


class TestCheckResolvedAddresses:
    _policy = SecurityPolicy(resolve_hostnames=True)

    def test_public_resolution_passes(self) -> None:
        with patch(
            "hirescore.scraper.guard._resolve", AsyncMock(return_value=["93.184.216.34"])
        ):
            asyncio.run(check_resolved_addresses(_target("example.com"), self._policy))

    def test_private_resolution_rejected(self) -> None:
        with patch(
            "hirescore.scraper.guard._resolve",
            AsyncMock(return_value=["93.184.216.34", "10.1.2.3"]),
        ):
            with pytest.raises(BlockedAddressRange):
                asyncio.run(check_resolved_addresses(_target("rebind.example"), self._policy))

    def test_loopback_resolution_rejected(self) -> None:
        with patch("hirescore.scraper.guard._resolve", AsyncMock(return_value=["127.0.0.1"])):
            with pytest.raises(BlockedAddressRange):
                asyncio.run(check_resolved_addresses(_target("sneaky.example"), self._policy))

    def test_unresolvable_host_is_connection_failure(self) -> None:
        with patch(
            "hirescore.scraper.guard._resolve",
            AsyncMock(side_effect=socket.gaierror("no such host")),
        ):
            with pytest.raises(ConnectionFailed):
                asyncio.run(check_resolved_addresses(_target("nope.invalid"), self._policy))

    def test_disabled_by_policy(self) -> None:
        mock_resolve = AsyncMock(return_value=["10.0.0.1"])
        with patch("hirescore.scraper.guard._resolve", mock_resolve):
            asyncio.run(check_resolved_addresses(_target("example.com"), _POLICY))
        mock_resolve.assert_not_called()

    def test_ip_literal_not_resolved(self) -> None:
        mock_resolve = AsyncMock(return_value=[])
        with patch("hirescore.scraper.guard._resolve", mock_resolve):
            asyncio.run(check_resolved_addresses(_target("8.8.8.8"), self._policy))
        mock_resolve.assert_not_called()


class TestIsBlockedAddress:
    @pytest.mark.parametrize(
        "address", ["10.0.0.1", "127.0.0.1", "::1", "0.0.0.0", "fe80::1", "169.254.1.1", "224.0.0.1"]
    )
    def test_internal_addresses(self, address: str) -> None:
        assert is_blocked_address(address, _POLICY) is True

    @pytest.mark.parametrize("address", ["93.184.216.34", "2606:2800:220:1::"])
    def test_public_addresses(self, address: str) -> None:
        assert is_blocked_address(address, _POLICY) is False
