"""Races feature module: race registry, results platforms, runner lookups."""

from .models import (
    CandidateResult,
    EventSpec,
    MatchConfidence,
    MatchQuality,
    MatchResult,
    RaceConfig,
    RaceInfo,
    RunnerQuery,
)
from .errors import (
    NetworkError,
    NotSupportedForYear,
    ParseError,
    RaceLookupError,
    RegistryError,
    UnsupportedRace,
)
from .schedule import DateRule
from .catalog import load_race_configs
from .registry import RaceRegistry, get_registry
from .matching import clean_runner_name, match, names_match, normalize_name
from .normalizer import normalize, parse_duration
from .dispatcher import DispatchResult, DispatchState, DispatchStatus, ScraperDispatcher
from .service import RaceResearchService

__all__ = [
    "CandidateResult",
    "EventSpec",
    "MatchConfidence",
    "MatchQuality",
    "MatchResult",
    "RaceConfig",
    "RaceInfo",
    "RunnerQuery",
    "NetworkError",
    "NotSupportedForYear",
    "ParseError",
    "RaceLookupError",
    "RegistryError",
    "UnsupportedRace",
    "DateRule",
    "load_race_configs",
    "RaceRegistry",
    "get_registry",
    "clean_runner_name",
    "match",
    "names_match",
    "normalize_name",
    "normalize",
    "parse_duration",
    "DispatchResult",
    "DispatchState",
    "DispatchStatus",
    "ScraperDispatcher",
    "RaceResearchService",
]
