"""
Tests for ScraperDispatcher.

Adapters are replaced with AsyncMock fakes; the registry is the bundled one.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from finishline.config import DEFAULT_RACES_FILE
from finishline.features.races.catalog import load_race_configs
from finishline.features.races.dispatcher import (
    DispatchState,
    DispatchStatus,
    ScraperDispatcher,
)
from finishline.features.races.errors import (
    NetworkError,
    NotSupportedForYear,
    ParseError,
    RegistryError,
)
from finishline.features.races.models import CandidateResult, MatchQuality, RunnerQuery
from finishline.features.races.platforms.myrace import MyRaceAdapter
from finishline.features.races.registry import RaceRegistry


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(scope="module")
def registry():
    return RaceRegistry(load_race_configs(DEFAULT_RACES_FILE))


def fake_adapter(platform: str, rows=None, error: Exception | None = None):
    adapter = MagicMock()
    adapter.platform = platform
    adapter.fetch_candidates = AsyncMock(return_value=rows or [], side_effect=error)
    return adapter


def chiptime_row(name: str, bib: str, time_text: str = "4:14:45") -> CandidateResult:
    return CandidateResult(
        name=name,
        time_text=time_text,
        platform="mychiptime",
        place_text="1234",
        bib=bib,
        source_id=bib,
        event_label="Marathon",
    )


def run(dispatcher: ScraperDispatcher, query: RunnerQuery):
    return asyncio.run(dispatcher.dispatch(query))


# =============================================================================
# End-to-end scenarios
# =============================================================================

class TestScenarios:
    """Lookups from race name to outcome."""

    def test_austin_alias_exact_match(self, registry):
        """Alias resolves Austin, adapter fetches, single exact match."""
        adapter = fake_adapter(
            "mychiptime",
            rows=[chiptime_row("Jennifer Samp", "5678"), chiptime_row("Jenny Sampson", "91")],
        )
        dispatcher = ScraperDispatcher(registry, {"mychiptime": adapter})

        result = run(dispatcher, RunnerQuery(
            runner_name="Jennifer Samp",
            year=2026,
            race_name="Ascension Seton Austin Marathon",
        ))

        assert result.status is DispatchStatus.EXACT
        assert result.state is DispatchState.DONE
        assert result.race.id == "austin"
        assert result.best.name == "Jennifer Samp"
        assert result.best.finish_time is not None
        assert result.best.bib == "5678"

        config, year, name = adapter.fetch_candidates.await_args.args
        assert config.id == "austin"
        assert (year, name) == (2026, "Jennifer Samp")

    def test_unregistered_race(self, registry):
        adapter = fake_adapter("mychiptime")
        dispatcher = ScraperDispatcher(registry, {"mychiptime": adapter})

        result = run(dispatcher, RunnerQuery(
            runner_name="Jennifer Samp", year=2025, race_name="Boston Marathon",
        ))

        assert result.status is DispatchStatus.UNSUPPORTED_RACE
        assert result.state is DispatchState.FAILED
        assert result.race is None
        adapter.fetch_candidates.assert_not_awaited()

    def test_no_time_runner_skips_adapter(self, registry):
        adapter = fake_adapter("mychiptime", rows=[chiptime_row("No Time", "1")])
        dispatcher = ScraperDispatcher(registry, {"mychiptime": adapter})

        result = run(dispatcher, RunnerQuery(
            runner_name="no time", year=2026, race_name="Austin Marathon",
        ))

        assert result.status is DispatchStatus.NOT_FOUND
        assert result.matches == []
        adapter.fetch_candidates.assert_not_awaited()
        assert result.reason == "Runner is marked 'no time'"

    def test_blank_runner_reason(self, registry):
        adapter = fake_adapter("mychiptime")
        dispatcher = ScraperDispatcher(registry, {"mychiptime": adapter})

        result = run(dispatcher, RunnerQuery(
            runner_name="   ", year=2026, race_name="Austin Marathon",
        ))

        assert result.status is DispatchStatus.NOT_FOUND
        assert result.reason == "Runner name is empty after cleaning"
        adapter.fetch_candidates.assert_not_awaited()

    def test_runner_name_cleaned_before_fetch(self, registry):
        adapter = fake_adapter("mychiptime", rows=[chiptime_row("Jennifer Samp", "5678")])
        dispatcher = ScraperDispatcher(registry, {"mychiptime": adapter})

        result = run(dispatcher, RunnerQuery(
            runner_name="  Jennifer Samp NO TIME ", year=2026, race_name="Austin Marathon",
        ))

        assert result.status is DispatchStatus.EXACT
        assert adapter.fetch_candidates.await_args.args[2] == "Jennifer Samp"

    def test_ambiguous(self, registry):
        adapter = fake_adapter(
            "mychiptime",
            rows=[chiptime_row("Jennifer Samp", "1"), chiptime_row("Jennifer Samp", "2")],
        )
        dispatcher = ScraperDispatcher(registry, {"mychiptime": adapter})

        result = run(dispatcher, RunnerQuery(
            runner_name="Jennifer Samp", year=2026, race_name="Austin Marathon",
        ))

        assert result.status is DispatchStatus.AMBIGUOUS
        assert len(result.matches) == 2
        assert result.best is None

    def test_known_id_resolves_ambiguity(self, registry):
        adapter = fake_adapter(
            "mychiptime",
            rows=[chiptime_row("Jennifer Samp", "1"), chiptime_row("Jennifer Samp", "2")],
        )
        dispatcher = ScraperDispatcher(registry, {"mychiptime": adapter})

        result = run(dispatcher, RunnerQuery(
            runner_name="Jennifer Samp", year=2026, race_name="Austin Marathon", known_id="2",
        ))

        assert result.status is DispatchStatus.EXACT
        assert result.best.bib == "2"

    def test_not_found(self, registry):
        adapter = fake_adapter("mychiptime", rows=[chiptime_row("John Smith", "1")])
        dispatcher = ScraperDispatcher(registry, {"mychiptime": adapter})

        result = run(dispatcher, RunnerQuery(
            runner_name="Jennifer Samp", year=2026, race_name="Austin Marathon",
        ))

        assert result.status is DispatchStatus.NOT_FOUND
        assert result.state is DispatchState.DONE

    def test_lone_partial_row_is_exact_with_partial_quality(self, registry):
        adapter = fake_adapter("mychiptime", rows=[chiptime_row("Samp Jennifer Anne", "77")])
        dispatcher = ScraperDispatcher(registry, {"mychiptime": adapter})

        result = run(dispatcher, RunnerQuery(
            runner_name="Jennifer Samp", year=2026, race_name="Austin Marathon",
        ))

        assert result.status is DispatchStatus.EXACT
        assert result.best.match_quality is MatchQuality.PARTIAL

    def test_tag_lookup(self, registry):
        adapter = fake_adapter("myrace")
        dispatcher = ScraperDispatcher(registry, {"myrace": adapter})

        result = run(dispatcher, RunnerQuery(runner_name="A Runner", year=2025, tag="CIM"))

        assert result.race.id == "cim"
        adapter.fetch_candidates.assert_awaited_once()


# =============================================================================
# Failures
# =============================================================================

class TestFailures:
    """Adapter errors map onto failed-transient / failed-permanent."""

    @pytest.mark.parametrize(
        "error,status",
        [
            (NetworkError("connection reset"), DispatchStatus.FAILED_TRANSIENT),
            (ParseError("table missing"), DispatchStatus.FAILED_PERMANENT),
            (NotSupportedForYear("Austin Marathon", 2019), DispatchStatus.FAILED_PERMANENT),
            (RegistryError("bad options"), DispatchStatus.FAILED_PERMANENT),
        ],
    )
    def test_error_mapping(self, registry, error, status):
        adapter = fake_adapter("mychiptime", error=error)
        dispatcher = ScraperDispatcher(registry, {"mychiptime": adapter})

        result = run(dispatcher, RunnerQuery(
            runner_name="Jennifer Samp", year=2026, race_name="Austin Marathon",
        ))

        assert result.status is status
        assert result.state is DispatchState.FAILED
        assert result.reason == str(error)
        assert result.race.id == "austin"

    def test_parse_error_logged_as_drift(self, registry, caplog):
        adapter = fake_adapter("mychiptime", error=ParseError("table missing"))
        dispatcher = ScraperDispatcher(registry, {"mychiptime": adapter})

        run(dispatcher, RunnerQuery(
            runner_name="Jennifer Samp", year=2026, race_name="Austin Marathon",
        ))

        assert "Site drift on mychiptime" in caplog.text

    def test_fetch_deadline(self, registry):
        async def slow_fetch(config, year, runner_name):
            await asyncio.sleep(5)
            return []

        adapter = MagicMock()
        adapter.fetch_candidates = slow_fetch
        dispatcher = ScraperDispatcher(registry, {"mychiptime": adapter}, fetch_deadline=0.05)

        result = run(dispatcher, RunnerQuery(
            runner_name="Jennifer Samp", year=2026, race_name="Austin Marathon",
        ))

        assert result.status is DispatchStatus.FAILED_TRANSIENT
        assert result.reason == "Fetch deadline exceeded"

    def test_missing_adapter(self, registry):
        dispatcher = ScraperDispatcher(registry, {})

        result = run(dispatcher, RunnerQuery(
            runner_name="Jennifer Samp", year=2026, race_name="Austin Marathon",
        ))

        assert result.status is DispatchStatus.UNSUPPORTED_RACE
        assert result.race.id == "austin"

    def test_unexpected_adapter_error_is_drift(self, registry, caplog):
        """Errors outside the lookup taxonomy still end the lookup cleanly."""
        error = AttributeError("'int' object has no attribute 'strip'")
        adapter = fake_adapter("mychiptime", error=error)
        dispatcher = ScraperDispatcher(registry, {"mychiptime": adapter})

        result = run(dispatcher, RunnerQuery(
            runner_name="Jennifer Samp", year=2026, race_name="Austin Marathon",
        ))

        assert result.status is DispatchStatus.FAILED_PERMANENT
        assert result.state is DispatchState.FAILED
        assert result.reason.startswith("Unreadable response: AttributeError")
        assert "Site drift on mychiptime" in caplog.text

    def test_drifted_json_through_real_adapter(self, registry):
        """A numeric runner name from MyRace is skipped, not a crash."""
        def handler(request):
            return httpx.Response(200, json={
                "results": [{"name": 12345, "finishChipTime": "3:00:00"}],
            })

        async def go():
            transport = httpx.MockTransport(handler)
            async with httpx.AsyncClient(transport=transport) as client:
                dispatcher = ScraperDispatcher(registry, {"myrace": MyRaceAdapter(client=client)})
                return await dispatcher.dispatch(
                    RunnerQuery(runner_name="Jane Doe", year=2025, tag="CIM")
                )

        result = asyncio.run(go())

        assert result.status is DispatchStatus.NOT_FOUND
        assert result.state is DispatchState.DONE
