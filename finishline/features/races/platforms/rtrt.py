"""
RTRT tracker API (api.rtrt.me), used by the Marine Corps Marathon.

Profiles are searched by name; finish time comes from the profile's splits,
fetched for name-matched profiles only.
"""

import logging
from typing import Any

from ..errors import ParseError, RegistryError
from ..matching import names_match
from ..models import CandidateResult, RaceConfig
from .base import HttpPlatformAdapter, event_distance, text_field

logger = logging.getLogger(__name__)

API_URL = "https://api.rtrt.me"
TRACKER_URL = "https://track.rtrt.me/e"
MAX_PROFILES = 100
MAX_SPLIT_FETCHES = 5


def profile_name(profile: dict) -> str:
    name = text_field(profile, "name", numbers=False)
    if name:
        return name
    parts = (text_field(profile, key, numbers=False) for key in ("fname", "lname"))
    return " ".join(p for p in parts if p)


def find_finish_split(splits: list[Any]) -> dict | None:
    """Finish split: flagged ``isFinish`` or a point named like FINISH."""
    for split in splits:
        if not isinstance(split, dict):
            continue
        if str(split.get("isFinish")) == "1" or "FINISH" in str(split.get("point") or "").upper():
            return split
    return None


class RTRTAdapter(HttpPlatformAdapter):
    """Adapter for RTRT profile search + splits."""

    platform = "rtrt"

    def results_url(self, config: RaceConfig, year: int) -> str | None:
        event_id = config.resolve_identifiers(year)[config.events[0].key]
        return f"{TRACKER_URL}/{event_id}#/dashboard"

    def _credentials(self, config: RaceConfig) -> dict[str, str]:
        app_id, token = config.option("app_id"), config.option("app_token")
        if not app_id or not token:
            raise RegistryError(f"{config.id}: RTRT app_id/app_token are not configured")
        return {"appid": str(app_id), "token": str(token)}

    async def fetch_candidates(
        self, config: RaceConfig, year: int, runner_name: str
    ) -> list[CandidateResult]:
        event = config.events[0]
        event_id = config.resolve_identifiers(year)[event.key]
        credentials = self._credentials(config)

        profiles = await self._post_list(
            f"{API_URL}/events/{event_id}/profiles",
            {
                "max": str(MAX_PROFILES),
                "total": "1",
                "failonmax": "1",
                **credentials,
                "search": runner_name,
                "module": "0",
                "source": "webtracker",
            },
        )
        logger.info(f"[{config.tag} {year}] RTRT returned {len(profiles)} profiles")

        matched = [
            p for p in profiles
            if isinstance(p, dict) and names_match(runner_name, profile_name(p))
        ]
        candidates = []
        for profile in matched[:MAX_SPLIT_FETCHES]:
            pid = text_field(profile, "pid")
            if not pid:
                continue
            splits = await self._post_list(
                f"{API_URL}/events/{event_id}/profiles/{pid}/splits",
                {**credentials, "source": "webtracker"},
            )
            finish = find_finish_split(splits)
            if finish is None:
                logger.info(f"[{config.tag} {year}] No finish split for PID {pid}")
                continue

            bib = text_field(profile, "bib")
            candidates.append(
                CandidateResult(
                    name=profile_name(profile),
                    time_text=text_field(finish, "netTime", "time"),
                    platform="rtrt",
                    bib=bib,
                    source_id=pid,
                    source_url=f"{TRACKER_URL}/{event_id}#/tracker/{pid}",
                    event_label=event.label,
                    distance_miles=event_distance(config, event),
                    extra={"pace": text_field(finish, "paceAvg")},
                )
            )
        return [c for c in candidates if c.time_text]

    async def _post_list(self, url: str, form: dict[str, str]) -> list:
        """POST a form and return the ``list`` field.

        RTRT reports an empty search as an error object of type no_results.
        """
        data = await self._json(
            "POST",
            url,
            data=form,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        if not isinstance(data, dict):
            raise ParseError("rtrt: response is not an object")

        error = data.get("error")
        if error:
            error_type = str(error.get("type", "")) if isinstance(error, dict) else str(error)
            if "no_results" in error_type:
                return []
            raise ParseError(f"rtrt: API error {error}")

        items = data.get("list", [])
        if not isinstance(items, list):
            raise ParseError("rtrt: 'list' is not a list")
        return items
