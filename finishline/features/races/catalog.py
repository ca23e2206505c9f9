"""Race catalog loader: reads races.yaml into RaceConfig objects."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from .errors import RegistryError
from .models import EventSpec, RaceConfig
from .schedule import DateRule

logger = logging.getLogger(__name__)


def load_race_configs(path: Path) -> list[RaceConfig]:
    """Load race configurations from a YAML file, in file order."""
    if not path.exists():
        raise RegistryError(f"Race table not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    configs = parse_race_configs(data.get("races", []))
    logger.debug(f"Loaded {len(configs)} race configs from {path}")
    return configs


def parse_race_configs(raw_races: list[dict[str, Any]]) -> list[RaceConfig]:
    """Build RaceConfig objects from already-parsed YAML entries."""
    return [_parse_race(r) for r in raw_races]


def _parse_race(r: dict[str, Any]) -> RaceConfig:
    try:
        race_id = r["id"]
        name = r["name"]
        platform = r["platform"]
        raw_rule = r["date_rule"]
    except KeyError as e:
        raise RegistryError(f"Race entry missing required field {e}: {r!r}") from e

    distance_miles = float(r.get("distance_miles", 26.2))
    events = tuple(
        EventSpec(
            key=str(e["key"]),
            label=str(e.get("label", e["key"])),
            distance_miles=e.get("distance_miles"),
        )
        for e in r.get("events", [{"key": "marathon", "label": "Marathon"}])
    )
    if not events:
        raise RegistryError(f"{race_id}: at least one event is required")

    identifiers = {
        int(year): {str(k): str(v) for k, v in (ids or {}).items()}
        for year, ids in (r.get("identifiers") or {}).items()
    }

    return RaceConfig(
        id=str(race_id),
        platform=str(platform),
        name=str(name),
        tag=str(r.get("tag", name)),
        date_rule=DateRule.from_dict(raw_rule),
        location=r.get("location"),
        aliases=tuple(str(a) for a in r.get("aliases", [])),
        keywords=tuple(str(k).lower() for k in r.get("keywords", [])),
        keyword_requires_marathon=bool(r.get("keyword_requires_marathon", False)),
        event_types=tuple(r.get("event_types", ["Marathon"])),
        events=events,
        identifiers=identifiers,
        identifier_pattern=r.get("identifier_pattern"),
        first_year=r.get("first_year"),
        distance_miles=distance_miles,
        priority=int(r.get("priority", 100)),
        options=dict(r.get("options") or {}),
    )
