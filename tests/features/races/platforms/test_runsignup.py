"""
Tests for the RunSignUp adapter (Kiawah Island, Louisiana).

The browser is replaced by a fake page; playwright is never launched.
"""

import asyncio
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from finishline.features.races.errors import NetworkError, NotSupportedForYear, ParseError
from finishline.features.races.platforms.runsignup import RunSignUpAdapter, parse_rows


def table_row(name, time="3:55:12", place="88", bib="1201"):
    return [place, "8:59", bib, name, "F", "Charleston", "SC", "USA", time, "41"]


def fake_factory(rows_by_url=None, **page_errors):
    """Page factory recording visited URLs; ``page_errors`` set side effects."""
    visited = []
    closed = []

    @asynccontextmanager
    async def factory():
        page = AsyncMock()
        current = {}

        async def goto(url, **kwargs):
            current["url"] = url
            visited.append(url)

        async def evaluate(script):
            return (rows_by_url or {}).get(current["url"], [])

        page.goto = AsyncMock(side_effect=page_errors.get("goto", goto))
        page.wait_for_selector = AsyncMock(side_effect=page_errors.get("wait_for_selector"))
        page.evaluate = AsyncMock(side_effect=page_errors.get("evaluate", evaluate))
        try:
            yield page
        finally:
            closed.append(True)

    return factory, visited, closed


class TestParseRows:
    """Tests for parse_rows."""

    def test_columns(self):
        [row] = parse_rows([table_row("Jennifer Samp")], "u", "Marathon")

        assert row.name == "Jennifer Samp"
        assert row.time_text == "3:55:12"
        assert row.place_text == "88"
        assert row.bib == "1201"
        assert row.extra["pace"] == "8:59"
        assert row.extra["age"] == "41"

    def test_malformed_rows_dropped(self):
        rows = parse_rows(
            [["too", "short"], table_row(""), table_row("No Time Yet", time=""), "junk"],
            "u",
            "Marathon",
        )
        assert rows == []


class TestRunSignUpAdapter:
    """Tests for RunSignUpAdapter with a fake browser page."""

    def test_marathon_then_half(self, races):
        half_url = "https://runsignup.com/Race/Results/68851/615624#resultSetId-615624"
        factory, visited, closed = fake_factory({half_url: [table_row("Jennifer Samp")]})
        adapter = RunSignUpAdapter(page_factory=factory)

        rows = asyncio.run(adapter.fetch_candidates(races["kiawah_island"], 2025, "Jennifer Samp"))

        assert visited == [
            "https://runsignup.com/Race/Results/68851/615623#resultSetId-615623",
            half_url,
        ]
        assert len(closed) == 2
        assert rows[0].event_label == "Half Marathon"
        assert rows[0].distance_miles == 13.1

    def test_year_not_configured(self, races):
        factory, visited, _ = fake_factory()
        adapter = RunSignUpAdapter(page_factory=factory)

        with pytest.raises(NotSupportedForYear):
            asyncio.run(adapter.fetch_candidates(races["kiawah_island"], 2019, "Jennifer Samp"))
        assert visited == []

    def test_navigation_timeout_is_transient(self, races):
        factory, _, closed = fake_factory(goto=PlaywrightTimeoutError("Timeout 60000ms exceeded"))
        adapter = RunSignUpAdapter(page_factory=factory)

        with pytest.raises(NetworkError):
            asyncio.run(adapter.fetch_candidates(races["louisiana"], 2026, "Jennifer Samp"))
        assert closed == [True]

    def test_missing_search_box_is_drift(self, races):
        factory, _, closed = fake_factory(
            wait_for_selector=PlaywrightTimeoutError("waiting for input#resultsSearch")
        )
        adapter = RunSignUpAdapter(page_factory=factory)

        with pytest.raises(ParseError):
            asyncio.run(adapter.fetch_candidates(races["louisiana"], 2026, "Jennifer Samp"))
        assert closed == [True]

    def test_script_error_is_drift(self, races):
        factory, _, _ = fake_factory(evaluate=PlaywrightError("Execution context was destroyed"))
        adapter = RunSignUpAdapter(page_factory=factory)

        with pytest.raises(ParseError):
            asyncio.run(adapter.fetch_candidates(races["louisiana"], 2026, "Jennifer Samp"))

    def test_results_url(self, races):
        assert RunSignUpAdapter().results_url(races["louisiana"], 2025) == (
            "https://runsignup.com/Race/Results/100074"
        )
