"""Runner matching: find a typed runner name among scraped result rows."""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from .models import CandidateResult, MatchConfidence, MatchQuality, MatchResult
from .normalizer import display_name, normalize

logger = logging.getLogger(__name__)

_NO_TIME = re.compile(r"\bno\s+time\b", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")

_SCORES = {MatchQuality.EXACT: 2, MatchQuality.PARTIAL: 1}


def _collapse(value: str) -> str:
    return _WHITESPACE.sub(" ", value).strip()


def clean_runner_name(name: str | None) -> str | None:
    """Strip the "no time" marker and extra whitespace from a runner name.

    "Jennifer Samp no time" -> "Jennifer Samp"
    "no time"               -> None
    "  Jennifer Samp  "     -> "Jennifer Samp"
    """
    if not name:
        return None

    cleaned = _collapse(name)
    # Removing one marker can join two halves of another ("no no time time")
    while True:
        stripped = _collapse(_NO_TIME.sub(" ", cleaned))
        if stripped == cleaned:
            break
        cleaned = stripped

    return cleaned or None


def has_no_time_marker(name: str | None) -> bool:
    """True when the customer wrote "no time" anywhere in the name field."""
    return bool(name and _NO_TIME.search(name))


def normalize_name(name: str | None) -> str | None:
    """Comparison key for a runner name.

    Cleans, drops a trailing country code, turns "Last, First" into
    "first last" and case-folds.
    """
    cleaned = clean_runner_name(name)
    if cleaned is None:
        return None

    return display_name(cleaned).casefold() or None


def score_names(query_key: str | None, candidate_key: str | None) -> MatchQuality | None:
    """Compare two normalized names. None = no match."""
    if not query_key or not candidate_key:
        return None
    if query_key == candidate_key:
        return MatchQuality.EXACT

    q_tokens = query_key.split(" ")
    c_tokens = candidate_key.split(" ")

    # Same words, different order ("samp jennifer")
    if Counter(q_tokens) == Counter(c_tokens):
        return MatchQuality.PARTIAL

    if len(q_tokens) >= 2 and len(c_tokens) >= 2:
        # First and last name agree, middle names differ
        if q_tokens[0] == c_tokens[0] and q_tokens[-1] == c_tokens[-1]:
            return MatchQuality.PARTIAL
        # Every query word present in the candidate ("jennifer samp" in "jennifer a samp")
        if not Counter(q_tokens) - Counter(c_tokens):
            return MatchQuality.PARTIAL

    return None


def names_match(query: str | None, candidate: str | None) -> bool:
    """True when the candidate name matches the query at any quality."""
    return score_names(normalize_name(query), normalize_name(candidate)) is not None


@dataclass
class MatchOutcome:
    """Ranked matches for one query."""

    confidence: MatchConfidence
    results: list[MatchResult] = field(default_factory=list)

    @property
    def best(self) -> MatchResult | None:
        if self.confidence is MatchConfidence.EXACT and self.results:
            return self.results[0]
        return None


def match(
    query: str | None,
    candidates: Sequence[CandidateResult],
    known_id: str | None = None,
) -> MatchOutcome:
    """Match a runner name against candidate rows.

    Only the best-scoring tier is returned. A single row in that tier is an
    exact match; several rows are all returned as ambiguous so a human can
    pick. ``known_id`` (bib or platform id from a prior lookup) settles a tie.

    Confidence is about uniqueness, not name quality: a lone PARTIAL row
    ("Samp, Jennifer A." for "Jennifer Samp") is still EXACT confidence.
    Check ``match_quality`` on the result to tell the two apart.
    """
    query_key = normalize_name(query)
    if query_key is None:
        logger.debug(f"Invalid runner name {query!r}, nothing to match")
        return MatchOutcome(MatchConfidence.NOT_FOUND)

    scored: list[tuple[int, CandidateResult, MatchQuality]] = []
    seen: set[tuple[str, str]] = set()
    for candidate in candidates:
        candidate_key = normalize_name(candidate.name)
        quality = score_names(query_key, candidate_key)
        if quality is None:
            continue
        # Same row listed twice (e.g. exact + fuzzy search sections)
        if candidate.source_id:
            dedup_key = (candidate_key, str(candidate.source_id))
            if dedup_key in seen:
                continue
            seen.add(dedup_key)
        scored.append((_SCORES[quality], candidate, quality))

    if not scored:
        return MatchOutcome(MatchConfidence.NOT_FOUND)

    top_score = max(s for s, _, _ in scored)
    top = [(c, q) for s, c, q in scored if s == top_score]

    if known_id and len(top) > 1:
        wanted = str(known_id).strip()
        pinned = [
            (c, q) for c, q in top
            if wanted in (str(c.bib or "").strip(), str(c.source_id or "").strip())
        ]
        if len(pinned) == 1:
            top = pinned

    confidence = MatchConfidence.EXACT if len(top) == 1 else MatchConfidence.AMBIGUOUS
    results = []
    for candidate, quality in top:
        result = normalize(candidate)
        result.confidence = confidence
        result.match_quality = quality
        results.append(result)

    return MatchOutcome(confidence, results)
