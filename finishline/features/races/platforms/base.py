"""Base adapter with common HTTP logic.

Every platform adapter exposes the same two calls:

    await adapter.fetch_candidates(config, year, runner_name) -> list[CandidateResult]
    adapter.results_url(config, year) -> str | None

Requests are issued once; retrying is the caller's decision.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Protocol

import httpx

from finishline.config import settings

from ..errors import NetworkError, NotSupportedForYear, ParseError
from ..matching import names_match
from ..models import CandidateResult, EventSpec, RaceConfig

logger = logging.getLogger(__name__)


class PlatformAdapter(Protocol):
    """Capability shared by all results platforms."""

    platform: str

    async def fetch_candidates(
        self, config: RaceConfig, year: int, runner_name: str
    ) -> list[CandidateResult]:
        ...

    def results_url(self, config: RaceConfig, year: int) -> str | None:
        ...


def split_name(runner_name: str) -> tuple[str, str]:
    """First word is the first name: 'Mary Ann Smith' -> ('Mary', 'Ann Smith')."""
    parts = runner_name.split()
    if len(parts) > 1:
        return parts[0], " ".join(parts[1:])
    return "", parts[0] if parts else ""


def text_field(row: dict, *keys: str, numbers: bool = True) -> str | None:
    """First non-empty value among ``keys`` as whitespace-collapsed text.

    Objects, lists and booleans count as missing, as do numbers when
    ``numbers`` is False (names).
    """
    allowed = (str, int, float) if numbers else (str,)
    for key in keys:
        value = row.get(key)
        if isinstance(value, bool) or not isinstance(value, allowed):
            continue
        text = " ".join(str(value).split())
        if text:
            return text
    return None


def event_distance(config: RaceConfig, event: EventSpec) -> float:
    return event.distance_miles or config.distance_miles


async def search_events(
    config: RaceConfig,
    year: int,
    runner_name: str,
    search_event: Callable[[EventSpec, str], Awaitable[list[CandidateResult]]],
) -> list[CandidateResult]:
    """Search sub-events in declared order, stop at the first with a name match.

    Returns the rows of that sub-event only, or an empty list.

    Raises:
        NotSupportedForYear: no sub-event has an identifier for ``year``
    """
    identifiers = config.resolve_identifiers(year)
    searched = 0

    for event in config.events:
        platform_id = identifiers.get(event.key)
        if not platform_id:
            continue
        searched += 1

        rows = await search_event(event, platform_id)
        if any(names_match(runner_name, r.name) for r in rows):
            logger.info(
                f"[{config.tag} {year}] {event.label}: name match among {len(rows)} rows"
            )
            return rows
        logger.info(f"[{config.tag} {year}] {event.label}: no name match ({len(rows)} rows)")

    if not searched:
        raise NotSupportedForYear(config.name, year)
    return []


class HttpPlatformAdapter:
    """Base class for adapters talking plain HTTP (JSON or HTML)."""

    platform: str = ""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float | None = None):
        self._client = client
        self.timeout = timeout or settings.http_timeout_seconds

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        """Injected client, or a short-lived one closed on exit."""
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": settings.user_agent},
            follow_redirects=True,
        ) as client:
            yield client

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Make a request, mapping failures onto the lookup error taxonomy.

        Raises:
            NetworkError: transport error, timeout, 429 or 5xx
            ParseError: any other non-2xx status (endpoint moved/changed)
        """
        try:
            async with self._session() as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise NetworkError(f"{self.platform}: timeout calling {url}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"{self.platform}: request to {url} failed: {e}") from e

        logger.debug(f"[{self.platform}] {method} {response.url} -> {response.status_code}")

        if response.status_code == 429 or response.status_code >= 500:
            raise NetworkError(
                f"{self.platform}: HTTP {response.status_code} from {url}"
            )
        if response.status_code >= 400:
            raise ParseError(
                f"{self.platform}: HTTP {response.status_code} from {url}: "
                f"{response.text[:300]}"
            )
        return response

    async def _json(self, method: str, url: str, **kwargs) -> Any:
        response = await self._request(method, url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"{self.platform}: invalid JSON from {url}") from e

    async def _html(self, url: str, **kwargs) -> tuple[str, str]:
        """GET an HTML page. Returns (final url, body)."""
        response = await self._request("GET", url, **kwargs)
        return str(response.url), response.text

    def results_url(self, config: RaceConfig, year: int) -> str | None:
        return None
