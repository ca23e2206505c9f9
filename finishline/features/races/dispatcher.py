"""ScraperDispatcher: one runner lookup from race name to match outcome.

    RESOLVING_RACE -> FETCHING -> MATCHING -> DONE
    RESOLVING_RACE or FETCHING -> FAILED (unsupported race, fetch error)

No retries and no state between calls; retry policy belongs to the caller
(see service.py).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

from finishline.config import settings

from .errors import (
    NetworkError,
    NotSupportedForYear,
    ParseError,
    RaceLookupError,
    UnsupportedRace,
)
from .matching import clean_runner_name, has_no_time_marker, match
from .models import MatchConfidence, MatchResult, RaceConfig, RaceInfo, RunnerQuery
from .platforms.base import PlatformAdapter
from .registry import RaceRegistry, get_registry

logger = logging.getLogger(__name__)


class DispatchState(str, Enum):
    RESOLVING_RACE = "resolving-race"
    FETCHING = "fetching"
    MATCHING = "matching"
    DONE = "done"
    FAILED = "failed"


class DispatchStatus(str, Enum):
    """Final outcome of a lookup."""

    EXACT = "exact"
    AMBIGUOUS = "ambiguous-multiple"
    NOT_FOUND = "not-found"
    UNSUPPORTED_RACE = "unsupported-race"
    FAILED_TRANSIENT = "failed-transient"  # worth retrying
    FAILED_PERMANENT = "failed-permanent"  # retrying will not help


_STATUS_BY_CONFIDENCE = {
    MatchConfidence.EXACT: DispatchStatus.EXACT,
    MatchConfidence.AMBIGUOUS: DispatchStatus.AMBIGUOUS,
    MatchConfidence.NOT_FOUND: DispatchStatus.NOT_FOUND,
}


@dataclass
class DispatchResult:
    """Outcome of one dispatch."""

    status: DispatchStatus
    matches: list[MatchResult] = field(default_factory=list)
    race: Optional[RaceConfig] = None
    state: DispatchState = DispatchState.DONE
    reason: Optional[str] = None
    race_info: Optional[RaceInfo] = None  # attached by RaceResearchService

    @property
    def best(self) -> MatchResult | None:
        """The single match, when the lookup was exact."""
        if self.status is DispatchStatus.EXACT and self.matches:
            return self.matches[0]
        return None

    @property
    def is_transient_failure(self) -> bool:
        return self.status is DispatchStatus.FAILED_TRANSIENT


class ScraperDispatcher:
    """Resolves the race, calls its platform adapter and matches the rows."""

    def __init__(
        self,
        registry: RaceRegistry | None = None,
        adapters: Mapping[str, PlatformAdapter] | None = None,
        fetch_deadline: float | None = None,
    ):
        if adapters is None:
            from .platforms import PLATFORM_ADAPTERS

            adapters = PLATFORM_ADAPTERS
        self.registry = registry if registry is not None else get_registry()
        self.adapters = adapters
        self.fetch_deadline = fetch_deadline or settings.fetch_deadline_seconds

    async def dispatch(self, query: RunnerQuery) -> DispatchResult:
        """Run one lookup. Never raises for platform failures."""
        # RESOLVING_RACE
        try:
            race = self.registry.require(name=query.race_name, tag=query.tag)
        except UnsupportedRace as e:
            logger.info(f"Unsupported race: name={query.race_name!r} tag={query.tag!r}")
            return DispatchResult(
                status=DispatchStatus.UNSUPPORTED_RACE,
                state=DispatchState.FAILED,
                reason=str(e),
            )

        runner_name = clean_runner_name(query.runner_name)
        if runner_name is None:
            if has_no_time_marker(query.runner_name):
                reason = "Runner is marked 'no time'"
            else:
                reason = "Runner name is empty after cleaning"
            logger.info(f"[{race.tag} {query.year}] {reason}, skipping fetch")
            return DispatchResult(status=DispatchStatus.NOT_FOUND, race=race, reason=reason)

        adapter = self.adapters.get(race.platform)
        if adapter is None:
            return DispatchResult(
                status=DispatchStatus.UNSUPPORTED_RACE,
                race=race,
                state=DispatchState.FAILED,
                reason=f"No adapter for platform {race.platform}",
            )

        # FETCHING
        logger.info(f"[{race.tag} {query.year}] Searching {race.platform} for {runner_name!r}")
        try:
            candidates = await asyncio.wait_for(
                adapter.fetch_candidates(race, query.year, runner_name),
                timeout=self.fetch_deadline,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"[{race.tag} {query.year}] Fetch exceeded {self.fetch_deadline}s deadline"
            )
            return self._failed(race, DispatchStatus.FAILED_TRANSIENT, "Fetch deadline exceeded")
        except NetworkError as e:
            logger.warning(f"[{race.tag} {query.year}] Network error: {e}")
            return self._failed(race, DispatchStatus.FAILED_TRANSIENT, str(e))
        except ParseError as e:
            logger.warning(f"[{race.tag} {query.year}] Site drift on {race.platform}: {e}")
            return self._failed(race, DispatchStatus.FAILED_PERMANENT, str(e))
        except NotSupportedForYear as e:
            logger.info(f"[{race.tag} {query.year}] {e}")
            return self._failed(race, DispatchStatus.FAILED_PERMANENT, str(e))
        except RaceLookupError as e:
            logger.error(f"[{race.tag} {query.year}] Lookup failed: {e}")
            return self._failed(race, DispatchStatus.FAILED_PERMANENT, str(e))
        except Exception as e:
            # Unexpected shapes that slipped past the adapter's own checks
            logger.exception(
                f"[{race.tag} {query.year}] Site drift on {race.platform}: "
                f"{type(e).__name__}: {e}"
            )
            reason = f"Unreadable response: {type(e).__name__}: {e}"
            return self._failed(race, DispatchStatus.FAILED_PERMANENT, reason)

        # MATCHING
        outcome = match(runner_name, candidates, known_id=query.known_id)
        status = _STATUS_BY_CONFIDENCE[outcome.confidence]
        logger.info(
            f"[{race.tag} {query.year}] {status.value}: {len(outcome.results)} of "
            f"{len(candidates)} rows"
        )
        return DispatchResult(status=status, matches=outcome.results, race=race)

    @staticmethod
    def _failed(race: RaceConfig, status: DispatchStatus, reason: str) -> DispatchResult:
        return DispatchResult(
            status=status, race=race, state=DispatchState.FAILED, reason=reason
        )
