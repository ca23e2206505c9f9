"""Data models for race lookups (dataclasses, no DB dependency)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any, Mapping

from .errors import NotSupportedForYear
from .schedule import DateRule


class MatchConfidence(str, Enum):
    """How sure we are about a runner match."""

    EXACT = "exact"
    AMBIGUOUS = "ambiguous-multiple"
    NOT_FOUND = "not-found"


class MatchQuality(str, Enum):
    """How a candidate name compares to the query name."""

    EXACT = "exact"  # equal after normalization
    PARTIAL = "partial"  # reordered tokens / extra middle name


@dataclass(frozen=True)
class EventSpec:
    """One sub-event of a race (marathon, half, 10 mile...)."""

    key: str  # "marathon" - key into the per-year identifier map
    label: str  # "Marathon" - display label
    distance_miles: float | None = None  # None = race default


@dataclass(frozen=True)
class RaceConfig:
    """Static descriptor of one race and how to reach its results platform."""

    id: str  # "austin"
    platform: str  # "mychiptime"
    name: str  # "Austin Marathon"
    tag: str  # "Austin"
    date_rule: DateRule
    location: str | None = None  # "Austin, TX"
    aliases: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    keyword_requires_marathon: bool = False
    event_types: tuple[str, ...] = ("Marathon",)
    events: tuple[EventSpec, ...] = (EventSpec("marathon", "Marathon"),)
    # {year: {event_key: platform id}} - sparse, missing years are unsupported
    identifiers: Mapping[int, Mapping[str, str]] = field(default_factory=dict)
    # "cim_{year}" - used when identifiers come from a URL/ID pattern
    identifier_pattern: str | None = None
    first_year: int | None = None
    distance_miles: float = 26.2
    priority: int = 100
    options: Mapping[str, Any] = field(default_factory=dict)

    def calculate_date(self, year: int) -> date:
        """Scheduled race day for ``year``."""
        return self.date_rule.date_for(year)

    def resolve_identifiers(self, year: int) -> dict[str, str]:
        """Platform identifiers per sub-event for ``year``.

        Pattern-based races get the same identifier for every event key.

        Raises:
            NotSupportedForYear: year absent from the map (or before first_year)
        """
        year_ids = self.identifiers.get(year)
        if year_ids:
            return {k: str(v) for k, v in year_ids.items() if v is not None}

        if self.identifier_pattern and (
            self.first_year is None or year >= self.first_year
        ):
            value = self.identifier_pattern.format(year=year)
            return {e.key: value for e in self.events}

        raise NotSupportedForYear(self.name, year)

    def option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)


@dataclass
class RunnerQuery:
    """Input for one lookup."""

    runner_name: str | None
    year: int
    race_name: str | None = None
    tag: str | None = None
    known_id: str | None = None  # bib / PID / result id from a prior lookup


@dataclass
class CandidateResult:
    """One scraped row before normalization."""

    name: str  # as displayed: "Smith, John (USA)"
    time_text: str | None  # "03:45:12"
    platform: str
    place_text: str | None = None  # "1234"
    bib: str | None = None
    source_id: str | None = None  # platform row id / pid
    source_url: str | None = None
    event_label: str | None = None  # "Marathon"
    distance_miles: float = 26.2
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class MatchResult:
    """Canonical, normalized output record for a runner lookup."""

    name: str
    finish_time: timedelta | None
    raw_time: str | None
    platform: str
    place: int | None = None
    division_place: int | None = None
    bib: str | None = None
    source_url: str | None = None
    source_id: str | None = None
    event_label: str | None = None
    pace: str | None = None  # "9:43" per mile
    confidence: MatchConfidence = MatchConfidence.EXACT
    match_quality: MatchQuality = MatchQuality.EXACT


@dataclass
class RaceInfo:
    """Race-level data, identical for every runner of a race/year."""

    race_name: str
    year: int
    race_date: date
    location: str | None
    event_types: list[str]
    results_url: str | None
    platform: str
