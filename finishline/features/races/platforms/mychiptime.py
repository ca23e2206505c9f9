"""
MyChipTime results (mychiptime.com).

Two page flavours, chosen per race with ``options.parse_mode``:

- ``columns``: searchResultGen.php, fixed column layout (Austin)
- ``searchevent``: searchevent.php, free-form table read heuristically (Philadelphia)
"""

import logging
import re

from bs4 import BeautifulSoup

from ..errors import ParseError
from ..models import CandidateResult, EventSpec, RaceConfig
from .base import HttpPlatformAdapter, event_distance, search_events, split_name

logger = logging.getLogger(__name__)

BASE_URL = "https://www.mychiptime.com"
NO_RESULTS_MARKER = "0 results returned"
MIN_COLUMNS = 14

_BIB = re.compile(r"^\d{2,6}$")
_BIB_LOOSE = re.compile(r"^\d{1,6}$")
_HMS = re.compile(r"\d+:\d{2}:\d{2}")
_MS = re.compile(r"\d+:\d{2}")


class MyChipTimeAdapter(HttpPlatformAdapter):
    """Adapter for MyChipTime event searches."""

    platform = "mychiptime"

    def results_url(self, config: RaceConfig, year: int) -> str | None:
        event_ids = config.identifiers.get(year) or {}
        event_id = next((v for v in event_ids.values() if v), None)
        if event_id:
            return f"{BASE_URL}/searchevent.php?id={event_id}"
        return f"{BASE_URL}/searchevent.php"

    async def fetch_candidates(
        self, config: RaceConfig, year: int, runner_name: str
    ) -> list[CandidateResult]:
        parse_mode = config.option("parse_mode", "columns")
        first_name, last_name = split_name(runner_name)

        async def search(event: EventSpec, event_id: str) -> list[CandidateResult]:
            if parse_mode == "columns":
                url = f"{BASE_URL}/searchResultGen.php"
                params = {"eID": event_id, "fname": first_name, "lname": last_name}
            else:
                url = f"{BASE_URL}/searchevent.php"
                params = {
                    "id": event_id,
                    "lname": last_name.upper(),
                    "fname": first_name.upper(),
                }

            logger.info(f"[{config.tag} {year}] Searching {event.label} (event {event_id})")
            final_url, html = await self._html(
                url,
                params=params,
                headers={
                    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                    "Referer": f"{BASE_URL}/searchevent.php?id={event_id}",
                },
            )

            distance = event_distance(config, event)
            if parse_mode == "columns":
                return parse_columns_html(html, final_url, event.label, distance)
            return parse_searchevent_html(html, final_url, event.label, distance)

        return await search_events(config, year, runner_name, search)


def parse_columns_html(
    html: str,
    source_url: str,
    event_label: str | None = None,
    distance_miles: float = 26.2,
) -> list[CandidateResult]:
    """Parse searchResultGen.php output.

    Columns used:
        0 gun time, 1 chip time, 2 bib, 3 first, 4 last, 7 city, 8 state,
        11 division, 12 division place, 13 overall place,
        16 gender place, 17 pace

    Raises:
        ParseError: page has neither a results table nor the no-results marker
    """
    if NO_RESULTS_MARKER in html:
        logger.debug("MyChipTime returned 0 results")
        return []

    soup = BeautifulSoup(html, "html.parser")
    table = soup.select_one("table#myTable") or soup.find("table")
    if table is None:
        raise ParseError("mychiptime: results table not found")

    candidates = []
    for row in table.find_all("tr"):
        cells = [td.get_text(strip=True) for td in row.find_all("td")]
        if len(cells) < MIN_COLUMNS:
            continue

        bib = cells[2]
        if not bib.isdigit():
            continue

        name = f"{cells[3]} {cells[4]}".strip()
        chip_time = cells[1]
        if not name or not chip_time:
            continue

        candidates.append(
            CandidateResult(
                name=name,
                time_text=chip_time,
                platform="mychiptime",
                place_text=cells[13] or None,
                bib=bib,
                source_id=bib,
                source_url=source_url,
                event_label=event_label,
                distance_miles=distance_miles,
                extra={
                    "gun_time": cells[0] or None,
                    "city": cells[7] or None,
                    "state": cells[8] or None,
                    "division": cells[11] or None,
                    "division_place": cells[12] or None,
                    "gender_place": cells[16] if len(cells) > 16 else None,
                    "pace": cells[17] if len(cells) > 17 else None,
                },
            )
        )
    return candidates


def parse_searchevent_html(
    html: str,
    source_url: str,
    event_label: str | None = None,
    distance_miles: float = 26.2,
) -> list[CandidateResult]:
    """Parse searchevent.php output.

    Column order varies between events, so cells are recognised by shape:
    the name is the first multi-word cell, the bib the first short number,
    the time the first h:mm:ss (or mm:ss) cell.
    """
    soup = BeautifulSoup(html, "html.parser")
    table = soup.find("table")
    if table is None:
        return []

    candidates = []
    for row in table.find_all("tr")[1:]:
        cells = row.find_all("td")
        if len(cells) < 4:
            continue
        texts = [t for t in (c.get_text(strip=True) for c in cells) if t]
        if not texts:
            continue

        name = next((t for t in texts if len(t.split()) >= 2), texts[0])
        bib = next((t for t in texts if _BIB.match(t)), None) or next(
            (t for t in texts if _BIB_LOOSE.match(t)), None
        )
        finish_time = next((t for t in texts if _HMS.search(t)), None) or next(
            (t for t in texts if _MS.search(t)), None
        )
        if not name or not finish_time:
            continue

        candidates.append(
            CandidateResult(
                name=name,
                time_text=finish_time,
                platform="mychiptime",
                bib=bib,
                source_id=bib,
                source_url=source_url,
                event_label=event_label,
                distance_miles=distance_miles,
                extra={"cells": texts},
            )
        )
    return candidates
