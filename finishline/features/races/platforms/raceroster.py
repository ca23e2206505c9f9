"""
RaceRoster results API (results.raceroster.com, v2 JSON).

Endpoints:
    GET /v2/api/events/{event_code}/participant-search?phrase={name}
    GET /v2/api/events/{event_code}/detail/{result_id}

One participant search covers every sub-event of the event; rows are then
split by ``resultSubEventId``. Times are only in the detail endpoint, so
details are fetched for name-matched rows only.
"""

import logging
from typing import Optional

from ..errors import NotSupportedForYear, ParseError
from ..matching import names_match
from ..models import CandidateResult, EventSpec, RaceConfig
from .base import HttpPlatformAdapter, event_distance, search_events, text_field

logger = logging.getLogger(__name__)

BASE_URL = "https://results.raceroster.com"
MAX_DETAILS = 5


class RaceRosterAdapter(HttpPlatformAdapter):
    """Adapter for RaceRoster participant search + result detail."""

    platform = "raceroster"

    def _event_code(self, config: RaceConfig, year: int) -> str:
        codes = config.option("event_codes") or {}
        code = codes.get(year) or codes.get(str(year))
        if not code:
            raise NotSupportedForYear(config.name, year)
        return str(code)

    def results_url(self, config: RaceConfig, year: int) -> str | None:
        try:
            return f"{BASE_URL}/v3/events/{self._event_code(config, year)}"
        except NotSupportedForYear:
            return None

    async def fetch_candidates(
        self, config: RaceConfig, year: int, runner_name: str
    ) -> list[CandidateResult]:
        event_code = self._event_code(config, year)
        participants: Optional[list[dict]] = None

        async def search(event: EventSpec, sub_event_id: str) -> list[CandidateResult]:
            nonlocal participants
            if participants is None:
                participants = await self._participant_search(event_code, runner_name)
                logger.info(
                    f"[{config.tag} {year}] Participant search returned {len(participants)} rows"
                )

            in_event = [
                p for p in participants
                if str(p.get("resultSubEventId")) == str(sub_event_id)
                and names_match(runner_name, text_field(p, "name", numbers=False))
            ]
            if len(in_event) > MAX_DETAILS:
                logger.warning(
                    f"[{config.tag} {year}] {len(in_event)} name matches in {event.label}, "
                    f"loading details for the first {MAX_DETAILS}"
                )

            candidates = []
            for participant in in_event[:MAX_DETAILS]:
                detail = await self._detail(event_code, text_field(participant, "id"))
                candidate = _to_candidate(
                    participant, detail, event_code, sub_event_id,
                    event.label, event_distance(config, event),
                )
                if candidate is not None:
                    candidates.append(candidate)
            return candidates

        return await search_events(config, year, runner_name, search)

    async def _participant_search(self, event_code: str, runner_name: str) -> list[dict]:
        data = await self._json(
            "GET",
            f"{BASE_URL}/v2/api/events/{event_code}/participant-search",
            params={"phrase": runner_name},
            headers={"Accept": "application/json"},
        )
        body = data.get("data") if isinstance(data, dict) else None
        if not isinstance(body, dict):
            raise ParseError("raceroster: participant-search response has no 'data' object")

        rows = []
        for key in ("exact", "other"):
            part = body.get(key) or []
            if not isinstance(part, list):
                raise ParseError(f"raceroster: participant-search '{key}' is not a list")
            rows.extend(p for p in part if isinstance(p, dict))
        return rows

    async def _detail(self, event_code: str, result_id: str | None) -> dict | None:
        if not result_id:
            return None
        data = await self._json(
            "GET",
            f"{BASE_URL}/v2/api/events/{event_code}/detail/{result_id}",
            headers={"Accept": "application/json"},
        )
        body = data.get("data") if isinstance(data, dict) else None
        result = body.get("result") if isinstance(body, dict) else None
        if not isinstance(result, dict):
            logger.warning(f"raceroster: no detail for result {result_id}")
            return None
        return result


def _to_candidate(
    participant: dict,
    detail: dict | None,
    event_code: str,
    sub_event_id: str,
    event_label: str,
    distance_miles: float,
) -> CandidateResult | None:
    """Merge a search row with its detail record; detail fields win."""
    record = {**participant, **(detail or {})}
    name = text_field(record, "name", numbers=False)
    time_text = text_field(record, "chipTime", "gunTime")
    if not name or not time_text:
        return None

    bib = text_field(record, "bib")
    return CandidateResult(
        name=name,
        time_text=time_text,
        platform="raceroster",
        place_text=text_field(record, "overallPlace"),
        bib=bib,
        source_id=text_field(participant, "id") or bib,
        source_url=f"{BASE_URL}/v3/events/{event_code}/race/{sub_event_id}",
        event_label=event_label,
        distance_miles=distance_miles,
        extra={
            "pace": record.get("overallPace"),
            "gender": record.get("gender"),
            "division": record.get("division"),
            "division_place": record.get("divisionPlaceLabel"),
            "gender_place": record.get("genderPlaceLabel"),
            "city": record.get("fromCity"),
            "state": record.get("fromProvState"),
        },
    )
