"""
NYRR results API (rmsprodapi.nyrr.org).

JSON search over all finishers of an event. Results are paged; we read
pages until ``totalItems`` is covered or MAX_PAGES is reached.
"""

import logging
from typing import Any

from ..errors import ParseError
from ..models import CandidateResult, RaceConfig
from .base import HttpPlatformAdapter, event_distance, text_field

logger = logging.getLogger(__name__)

API_URL = "https://rmsprodapi.nyrr.org/api/v2"
RESULTS_URL = "https://results.nyrr.org/event"
PAGE_SIZE = 50
MAX_PAGES = 5


class NYRRAdapter(HttpPlatformAdapter):
    """Adapter for the NYRR finishers-filter API."""

    platform = "nyrr"

    def results_url(self, config: RaceConfig, year: int) -> str | None:
        event_code = config.resolve_identifiers(year)[config.events[0].key]
        return f"{RESULTS_URL}/{event_code}/finishers"

    async def fetch_candidates(
        self, config: RaceConfig, year: int, runner_name: str
    ) -> list[CandidateResult]:
        event = config.events[0]
        event_code = config.resolve_identifiers(year)[event.key]
        distance = event_distance(config, event)

        candidates: list[CandidateResult] = []
        page_index = 1
        while page_index <= MAX_PAGES:
            data = await self._json(
                "POST",
                f"{API_URL}/runners/finishers-filter",
                json={
                    "eventCode": event_code,
                    "searchString": runner_name,
                    "handicap": None,
                    "sortColumn": "overallTime",
                    "sortDescending": False,
                    "pageIndex": page_index,
                    "pageSize": PAGE_SIZE,
                },
            )
            items, total = _page_items(data)
            candidates.extend(
                c for c in (_parse_item(i, event_code, event.label, distance) for i in items)
                if c is not None
            )
            logger.info(
                f"[{config.tag} {year}] NYRR page {page_index}: {len(items)} items (total {total})"
            )
            if not items or page_index * PAGE_SIZE >= total:
                break
            page_index += 1

        return candidates


def _page_items(data: Any) -> tuple[list[dict], int]:
    """Validate one response page. Returns (items, totalItems)."""
    if not isinstance(data, dict):
        raise ParseError("nyrr: response is not an object")
    items = data.get("items")
    if items is None:
        items = []
    if not isinstance(items, list):
        raise ParseError("nyrr: 'items' is not a list")
    total = data.get("totalItems")
    if not isinstance(total, int):
        total = len(items)
    return items, total


def _parse_item(
    item: Any, event_code: str, event_label: str, distance_miles: float
) -> CandidateResult | None:
    if not isinstance(item, dict):
        return None
    parts = (text_field(item, key, numbers=False) for key in ("firstName", "lastName"))
    name = " ".join(p for p in parts if p)
    time_text = text_field(item, "overallTime")
    if not name or not time_text:
        return None

    bib = text_field(item, "bib")
    source_url = (
        f"{RESULTS_URL}/{event_code}/result/{bib}" if bib
        else f"{RESULTS_URL}/{event_code}/finishers"
    )
    return CandidateResult(
        name=name,
        time_text=time_text,
        platform="nyrr",
        place_text=text_field(item, "overallPlace"),
        bib=bib,
        source_id=bib,
        source_url=source_url,
        event_label=event_label,
        distance_miles=distance_miles,
        extra={
            "pace": item.get("pace"),
            "gender": item.get("gender"),
            "age": item.get("age"),
            "city": item.get("city"),
            "state": item.get("stateProvince"),
            "country": item.get("countryCode"),
            "gender_place": item.get("genderPlace"),
        },
    )
