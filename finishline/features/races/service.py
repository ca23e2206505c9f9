"""RaceResearchService: runner lookups with retry, batching and race info."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from finishline.config import settings

from .dispatcher import DispatchResult, ScraperDispatcher
from .errors import NotSupportedForYear
from .models import RaceConfig, RaceInfo, RunnerQuery
from .registry import RaceRegistry

logger = logging.getLogger(__name__)


def _is_transient(result: DispatchResult) -> bool:
    return result.is_transient_failure


def _last_result(retry_state: RetryCallState) -> DispatchResult:
    """Out of attempts: hand back the last failed-transient result."""
    return retry_state.outcome.result()


def _log_retry(retry_state: RetryCallState) -> None:
    result = retry_state.outcome.result()
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.info(
        f"Transient failure ({result.reason}), attempt {retry_state.attempt_number}, "
        f"retrying in {delay:.1f}s"
    )


class RaceResearchService:
    """Looks up runners' results; retries only transient platform failures."""

    def __init__(
        self,
        dispatcher: ScraperDispatcher | None = None,
        retry_attempts: int | None = None,
        retry_base_delay: float | None = None,
        retry_max_delay: float | None = None,
    ):
        self.dispatcher = dispatcher or ScraperDispatcher()
        self.retry_attempts = retry_attempts or settings.retry_attempts
        self.retry_base_delay = (
            settings.retry_base_delay_seconds if retry_base_delay is None else retry_base_delay
        )
        self.retry_max_delay = (
            settings.retry_max_delay_seconds if retry_max_delay is None else retry_max_delay
        )

    @property
    def registry(self) -> RaceRegistry:
        return self.dispatcher.registry

    def race_info(self, race_name: str, year: int) -> Optional[RaceInfo]:
        """Race-level data (date, location, results page). No network calls.

        Returns None for an unknown race.
        """
        config = self.registry.find_race_config(name=race_name)
        if config is None:
            logger.info(f"No race config for {race_name!r}")
            return None
        return self._build_race_info(config, year)

    def _build_race_info(self, config: RaceConfig, year: int) -> RaceInfo:
        results_url = None
        adapter = self.dispatcher.adapters.get(config.platform)
        if adapter is not None:
            try:
                results_url = adapter.results_url(config, year)
            except NotSupportedForYear:
                results_url = None

        return RaceInfo(
            race_name=config.name,
            year=year,
            race_date=config.calculate_date(year),
            location=config.location,
            event_types=list(config.event_types),
            results_url=results_url,
            platform=config.platform,
        )

    async def research(self, query: RunnerQuery) -> DispatchResult:
        """Dispatch one lookup, retrying failed-transient outcomes with backoff."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(
                multiplier=self.retry_base_delay, max=self.retry_max_delay
            ),
            retry=retry_if_result(_is_transient),
            retry_error_callback=_last_result,
            before_sleep=_log_retry,
        )
        return await retrying(self.dispatcher.dispatch, query)

    async def research_batch(
        self,
        queries: Sequence[RunnerQuery],
        concurrency: int | None = None,
    ) -> list[DispatchResult]:
        """Research many runners concurrently.

        Results come back in input order. Race info is computed once per
        race and year and attached to every result of that race.
        """
        semaphore = asyncio.Semaphore(concurrency or settings.batch_concurrency)
        race_info_cache: dict[tuple[str, int], RaceInfo] = {}

        async def run(query: RunnerQuery) -> DispatchResult:
            async with semaphore:
                result = await self.research(query)
            if result.race is not None:
                key = (result.race.id, query.year)
                if key not in race_info_cache:
                    race_info_cache[key] = self._build_race_info(result.race, query.year)
                result.race_info = race_info_cache[key]
            return result

        logger.info(f"Researching {len(queries)} runners")
        results = await asyncio.gather(*(run(q) for q in queries))

        found = sum(1 for r in results if r.best is not None)
        logger.info(f"Batch done: {found}/{len(results)} exact matches")
        return list(results)
