"""MyRace.ai athlete search (CIM)."""

import logging
from typing import Any

from ..errors import ParseError
from ..models import CandidateResult, RaceConfig
from .base import HttpPlatformAdapter, event_distance, text_field

logger = logging.getLogger(__name__)

API_URL = "https://myrace.ai/api"
SITE_URL = "https://myrace.ai/races"


class MyRaceAdapter(HttpPlatformAdapter):
    platform = "myrace"

    def results_url(self, config: RaceConfig, year: int) -> str | None:
        race_id = config.resolve_identifiers(year)[config.events[0].key]
        return f"{SITE_URL}/{race_id}/results"

    async def fetch_candidates(
        self, config: RaceConfig, year: int, runner_name: str
    ) -> list[CandidateResult]:
        event = config.events[0]
        race_id = config.resolve_identifiers(year)[event.key]

        data = await self._json(
            "GET",
            f"{API_URL}/search-athletes",
            params={"raceId": race_id, "type": "name", "value": runner_name},
        )
        if not isinstance(data, dict):
            raise ParseError("myrace: response is not an object")
        results = data.get("results") or []
        if not isinstance(results, list):
            raise ParseError("myrace: 'results' is not a list")

        logger.info(
            f"[{config.tag} {year}] MyRace returned {len(results)} results "
            f"(total: {data.get('totalCount')})"
        )
        source_url = f"{SITE_URL}/{race_id}/results"
        distance = event_distance(config, event)
        return [
            c for c in (_parse_result(r, source_url, event.label, distance) for r in results)
            if c is not None
        ]


def _parse_result(
    row: Any, source_url: str, event_label: str, distance_miles: float
) -> CandidateResult | None:
    if not isinstance(row, dict):
        return None
    name = text_field(row, "name", numbers=False)
    time_text = text_field(row, "finishChipTime")
    if not name or not time_text:
        return None

    bib = text_field(row, "bib")
    return CandidateResult(
        name=name,
        time_text=time_text,
        platform="myrace",
        place_text=text_field(row, "overallRank"),
        bib=bib,
        source_id=text_field(row, "pid") or bib,
        source_url=source_url,
        event_label=event_label,
        distance_miles=distance_miles,
        extra={
            "gender": row.get("gender"),
            "age": row.get("age"),
            "total_athletes": row.get("totalAthletes"),
        },
    )
