"""
RunSignUp results (runsignup.com/Race/Results).

The results table is rendered and filtered client-side, so we drive a
headless browser: open the result set, type the name into the search box
and read the rows that stay visible.

Table columns:
    0 Place, 1 Pace, 2 Bib, 3 Name, 4 Gender, 5 City, 6 State,
    7 Country, 8 Clock Time, 9 Age
"""

import logging
from typing import Any, Callable

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from finishline.config import settings

from ..errors import NetworkError, ParseError, RegistryError
from ..models import CandidateResult, EventSpec, RaceConfig
from .base import event_distance, search_events
from .browser import browser_page

logger = logging.getLogger(__name__)

BASE_URL = "https://runsignup.com"
SEARCH_INPUT = "input#resultsSearch"
SEARCH_BOX_TIMEOUT_MS = 15_000
FILTER_SETTLE_MS = 1_500
MIN_CELLS = 9

# Visible rows only; the search box hides non-matching rows with display:none
EXTRACT_ROWS_JS = """
() => Array.from(document.querySelectorAll('table tbody tr'))
  .filter(row => window.getComputedStyle(row).display !== 'none')
  .map(row => Array.from(row.querySelectorAll('td')).map(td => (td.innerText || '').trim()))
"""


class RunSignUpAdapter:
    """Browser-driven adapter for RunSignUp result sets."""

    platform = "runsignup"

    def __init__(self, page_factory: Callable = browser_page):
        self._page_factory = page_factory

    def results_url(self, config: RaceConfig, year: int) -> str | None:
        race_id = config.option("race_id")
        return f"{BASE_URL}/Race/Results/{race_id}" if race_id else None

    async def fetch_candidates(
        self, config: RaceConfig, year: int, runner_name: str
    ) -> list[CandidateResult]:
        race_id = config.option("race_id")
        if not race_id:
            raise RegistryError(f"{config.id}: RunSignUp race_id is not configured")

        async def search(event: EventSpec, result_set_id: str) -> list[CandidateResult]:
            url = f"{BASE_URL}/Race/Results/{race_id}/{result_set_id}#resultSetId-{result_set_id}"
            logger.info(f"[{config.tag} {year}] Searching {event.label}: {url}")
            rows = await self._search_page(url, runner_name)
            return parse_rows(rows, url, event.label, event_distance(config, event))

        return await search_events(config, year, runner_name, search)

    async def _search_page(self, url: str, runner_name: str) -> list[list[str]]:
        """Load a result set, filter by name, return visible rows as cell texts."""
        nav_timeout_ms = settings.browser_navigation_timeout_seconds * 1000

        async with self._page_factory() as page:
            try:
                await page.goto(url, wait_until="domcontentloaded", timeout=nav_timeout_ms)
            except PlaywrightTimeoutError as e:
                raise NetworkError(f"runsignup: navigation timeout for {url}") from e
            except PlaywrightError as e:
                raise NetworkError(f"runsignup: navigation failed for {url}: {e}") from e

            try:
                await page.wait_for_selector(SEARCH_INPUT, timeout=SEARCH_BOX_TIMEOUT_MS)
            except PlaywrightTimeoutError as e:
                raise ParseError(f"runsignup: search box not found on {url}") from e

            try:
                await page.fill(SEARCH_INPUT, runner_name)
                await page.wait_for_timeout(FILTER_SETTLE_MS)
                rows = await page.evaluate(EXTRACT_ROWS_JS)
            except PlaywrightTimeoutError as e:
                raise NetworkError(f"runsignup: page stopped responding on {url}") from e
            except PlaywrightError as e:
                raise ParseError(f"runsignup: could not read results table: {e}") from e

        if not isinstance(rows, list):
            raise ParseError(f"runsignup: unexpected table payload {type(rows).__name__}")
        return rows


def parse_rows(
    rows: list[Any],
    source_url: str,
    event_label: str,
    distance_miles: float = 26.2,
) -> list[CandidateResult]:
    """Turn visible table rows into candidates; short or empty rows are dropped."""
    candidates = []
    for cells in rows:
        if not isinstance(cells, list) or len(cells) < MIN_CELLS:
            continue
        name = " ".join(str(cells[3]).split())
        time_text = str(cells[8]).strip()
        if not name or not time_text:
            continue

        bib = str(cells[2]).strip() or None
        candidates.append(
            CandidateResult(
                name=name,
                time_text=time_text,
                platform="runsignup",
                place_text=str(cells[0]).strip() or None,
                bib=bib,
                source_id=bib,
                source_url=source_url,
                event_label=event_label,
                distance_miles=distance_miles,
                extra={
                    "pace": str(cells[1]).strip() or None,
                    "gender": str(cells[4]).strip() or None,
                    "city": str(cells[5]).strip() or None,
                    "state": str(cells[6]).strip() or None,
                    "age": str(cells[9]).strip() if len(cells) > 9 else None,
                },
            )
        )
    return candidates
