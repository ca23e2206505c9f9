"""Result normalizer: one canonical record out of any platform's row."""

from __future__ import annotations

import re
from datetime import timedelta

from finishline.shared.formatters import format_pace, pace_per_mile

from .models import CandidateResult, MatchResult

# "3:45:12", "03:45:12", "3:45:12.4"
_HMS = re.compile(r"(\d{1,3}):(\d{1,2}):(\d{1,2})(?:[.,](\d+))?")
# "45:12", "45:12.9"
_MS = re.compile(r"(\d{1,2}):(\d{2})(?:[.,](\d+))?")
# "3h45m12s", "3h 45m 12s", "03h45'12" (CLAX style)
_UNITS = re.compile(
    r"(\d+)\s*h\s*(\d{1,2})\s*(?:m|min|')\s*(\d{1,2})\s*(?:s|sec|\")?",
    re.IGNORECASE,
)
_PLACE = re.compile(r"#?\s*(\d+)")
_THOUSANDS = re.compile(r"(?<=\d)[,.](?=\d{3}\b)")
_PACE = re.compile(r"(\d{1,2}):(\d{2})")
_COUNTRY_SUFFIX = re.compile(r"\s*\([A-Za-z]{2,3}\)\s*$")


def _round_fraction(fraction: str | None) -> int:
    """1 when a fractional second rounds up."""
    if not fraction:
        return 0
    return 1 if float(f"0.{fraction}") >= 0.5 else 0


def parse_duration(text: str | None) -> timedelta | None:
    """Parse a finish time to a timedelta.

    Formats:
        "3:45:12"    → 3h45m12s
        "03:45:12.6" → 3h45m13s (rounded)
        "45:12"      → 45m12s
        "3h 45m 12s" → 3h45m12s
        "00h52'05"   → 52m05s
    Returns None for anything else.
    """
    if not text:
        return None
    value = text.strip()

    m = _HMS.fullmatch(value)
    if m:
        hours, minutes, seconds = int(m.group(1)), int(m.group(2)), int(m.group(3))
        if minutes >= 60 or seconds >= 60:
            return None
        total = hours * 3600 + minutes * 60 + seconds + _round_fraction(m.group(4))
        return timedelta(seconds=total)

    m = _MS.fullmatch(value)
    if m:
        minutes, seconds = int(m.group(1)), int(m.group(2))
        if seconds >= 60:
            return None
        return timedelta(seconds=minutes * 60 + seconds + _round_fraction(m.group(3)))

    m = _UNITS.fullmatch(value)
    if m:
        hours, minutes, seconds = int(m.group(1)), int(m.group(2)), int(m.group(3))
        if minutes >= 60 or seconds >= 60:
            return None
        return timedelta(seconds=hours * 3600 + minutes * 60 + seconds)

    return None


def parse_place(text: str | int | None) -> int | None:
    """Leading integer of a place label: "12", "12th", "12 / 3000", "#12", "1,873"."""
    if text is None:
        return None
    if isinstance(text, int):
        return text if text > 0 else None
    m = _PLACE.match(_THOUSANDS.sub("", str(text).strip()))
    if not m:
        return None
    place = int(m.group(1))
    return place if place > 0 else None


def normalize_pace(text: str | float | None) -> str | None:
    """Pace label without unit or leading zero: '09:43 min/mile' → '9:43'."""
    if not text:
        return None
    m = _PACE.search(str(text))
    if not m:
        return None
    return f"{int(m.group(1))}:{m.group(2)}"


def display_name(raw: str) -> str:
    """Human-readable name: "SMITH, John (USA)" → "John SMITH".

    Also the base of the matching key in matching.normalize_name.
    """
    name = _COUNTRY_SUFFIX.sub("", " ".join(raw.split()))
    if "," in name:
        last, _, first = name.partition(",")
        name = f"{first} {last}"
    return " ".join(name.split())


def normalize(candidate: CandidateResult) -> MatchResult:
    """Map a platform row to a MatchResult.

    An unparseable time keeps its raw text with ``finish_time=None``.
    """
    finish_time = parse_duration(candidate.time_text)

    pace = normalize_pace(candidate.extra.get("pace"))
    if pace is None:
        pace = format_pace(pace_per_mile(finish_time, candidate.distance_miles))

    return MatchResult(
        name=display_name(candidate.name),
        finish_time=finish_time,
        raw_time=candidate.time_text.strip() if candidate.time_text else None,
        platform=candidate.platform,
        place=parse_place(candidate.place_text),
        division_place=parse_place(candidate.extra.get("division_place")),
        bib=str(candidate.bib).strip() if candidate.bib else None,
        source_url=candidate.source_url,
        source_id=str(candidate.source_id) if candidate.source_id else None,
        event_label=candidate.event_label,
        pace=pace,
    )
