"""Tests for the MyCareersFuture API client.

Mocking strategy:
- ``respx`` stands in for the MCF JSON API; no real network calls are made.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest
import respx

from hirescore.scraper.errors import JobPortalError
from hirescore.scraper.mcf import extract_job_id, fetch_mcf_job, format_mcf_job, is_mcf_host
from hirescore.scraper.models import SecurityPolicy, ValidatedTarget

_POLICY = SecurityPolicy(resolve_hostnames=False)
_JOB_ID = "155f2182e6b7484759d653f9cb3e9773"
_JOB_URL = (
    "https://www.mycareersfuture.gov.sg/job/design/"
    f"senior-software-qa-engineer-doodle-labs-{_JOB_ID}"
)
_API_URL = f"https://api.mycareersfuture.gov.sg/v2/jobs/{_JOB_ID}"
_TARGET = ValidatedTarget(url=_JOB_URL, hostname="www.mycareersfuture.gov.sg", scheme="https")

_MCF_JOB = {
    "title": "Senior Software QA Engineer",
    "postedCompany": {"name": "Doodle Labs"},
    "address": {"streetAddress": "1 Fusionopolis Way", "postalCode": "138632", "district": "Buona Vista"},
    "employmentTypes": ["Full Time", "Permanent"],
    "positionLevels": ["Senior Executive"],
    "salary": {
        "minimum": {"amount": 6000},
        "maximum": {"amount": 9500},
        "type": {"salaryType": "Monthly"},
    },
    "description": (
        "<p>Own the test strategy for our mesh radio firmware and tooling.</p>"
        "<ul><li>Automate regression suites</li><li>Work with hardware teams</li></ul>"
    ),
    "minimumYearsExperience": 5,
    "skills": [{"skill": "Python"}, {"skill": "Selenium"}],
    "status": "Open",
}


# ---------------------------------------------------------------------------
# URL handling
# ---------------------------------------------------------------------------

class TestExtractJobId:
    def test_extracts_hex_suffix(self) -> None:
        assert extract_job_id(_JOB_URL) == _JOB_ID

    def test_ignores_query_and_trailing_slash(self) -> None:
        assert extract_job_id(_JOB_URL + "/?source=share") == _JOB_ID

    def test_missing_id_raises(self) -> None:
        with pytest.raises(JobPortalError) as exc_info:
            extract_job_id("https://www.mycareersfuture.gov.sg/search?q=engineer")
        assert exc_info.value.status_code == 422
        assert exc_info.value.source == "mycareersfuture"

    def test_host_detection(self) -> None:
        assert is_mcf_host("www.mycareersfuture.gov.sg")
        assert not is_mcf_host("example.com")


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

class TestFormatMcfJob:
    def test_full_job(self) -> None:
        posting = format_mcf_job(_MCF_JOB)
        assert posting.title == "Senior Software QA Engineer"
        assert posting.company == "Doodle Labs"
        assert posting.location == "1 Fusionopolis Way, Singapore 138632, (Buona Vista)"
        assert posting.employment_type == "Full Time, Permanent"
        assert posting.details == ["Level: Senior Executive"]
        assert posting.salary == "$6,000 - $9,500 monthly"
        assert "• Automate regression suites" in posting.description
        assert posting.requirements == (
            "• Minimum 5 years of experience required\n• Skills: Python, Selenium"
        )
        assert posting.status is None

    def test_missing_address_defaults_to_singapore(self) -> None:
        assert format_mcf_job({"title": "Cook"}).location == "Singapore"

    def test_single_salary_bound(self) -> None:
        data = {"salary": {"maximum": {"amount": 4200.5}}}
        assert format_mcf_job(data).salary == "$4,200.5"

    def test_closed_status_is_reported(self) -> None:
        text = format_mcf_job(dict(_MCF_JOB, status="Closed")).to_text()
        assert "STATUS: Closed (This job may no longer be accepting applications)" in text

    def test_short_description_dropped(self) -> None:
        assert format_mcf_job({"description": "<p>Short.</p>"}).description is None


# ---------------------------------------------------------------------------
# API fetch
# ---------------------------------------------------------------------------

class TestFetchMcfJob:
    def test_success(self) -> None:
        with respx.mock:
            route = respx.get(_API_URL).mock(return_value=httpx.Response(200, json=_MCF_JOB))
            content = asyncio.run(fetch_mcf_job(_TARGET, _POLICY))

        assert route.calls.last.request.headers["accept"] == "application/json"
        assert content.startswith("JOB TITLE: Senior Software QA Engineer\nCOMPANY: Doodle Labs")

    def test_not_found(self) -> None:
        with respx.mock:
            respx.get(_API_URL).mock(return_value=httpx.Response(404))
            with pytest.raises(JobPortalError, match="not found"):
                asyncio.run(fetch_mcf_job(_TARGET, _POLICY))

    def test_other_api_error(self) -> None:
        with respx.mock:
            respx.get(_API_URL).mock(return_value=httpx.Response(503))
            with pytest.raises(JobPortalError, match="MCF API returned 503"):
                asyncio.run(fetch_mcf_job(_TARGET, _POLICY))

    def test_timeout(self) -> None:
        with respx.mock:
            respx.get(_API_URL).mock(side_effect=httpx.ConnectTimeout("slow"))
            with pytest.raises(JobPortalError, match="timeout"):
                asyncio.run(fetch_mcf_job(_TARGET, _POLICY))

    def test_incomplete_job_data(self) -> None:
        with respx.mock:
            respx.get(_API_URL).mock(return_value=httpx.Response(200, json={"title": "Cook"}))
            with pytest.raises(JobPortalError, match="empty or incomplete"):
                asyncio.run(fetch_mcf_job(_TARGET, _POLICY))

    def test_invalid_json(self) -> None:
        with respx.mock:
            respx.get(_API_URL).mock(return_value=httpx.Response(200, text="<html>"))
            with pytest.raises(JobPortalError, match="invalid JSON"):
                asyncio.run(fetch_mcf_job(_TARGET, _POLICY))

    @pytest.mark.parametrize(
        "override",
        [
            {"salary": {"minimum": {"amount": "n/a"}}},
            {"skills": 5},
            {"salary": {"minimum": "6000"}},
        ],
    )
    def test_malformed_fields_are_portal_errors(self, override: dict) -> None:
        with respx.mock:
            respx.get(_API_URL).mock(
                return_value=httpx.Response(200, json=dict(_MCF_JOB, **override))
            )
            with pytest.raises(JobPortalError, match="malformed job data") as exc_info:
                asyncio.run(fetch_mcf_job(_TARGET, _POLICY))
        assert exc_info.value.status_code == 422
        assert exc_info.value.source == "mycareersfuture"

    def test_bad_url_makes_no_request(self) -> None:
        target = ValidatedTarget(
            url="https://www.mycareersfuture.gov.sg/job/design/no-id-here",
            hostname="www.mycareersfuture.gov.sg",
            scheme="https",
        )
        with respx.mock(assert_all_called=False) as respx_mock:
            route = respx_mock.route()
            with pytest.raises(JobPortalError):
                asyncio.run(fetch_mcf_job(target, _POLICY))
        assert not route.called
