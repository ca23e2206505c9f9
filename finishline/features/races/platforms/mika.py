"""
Mika Timing results (e.g. results.chicagomarathon.com/{year}).

Server-rendered HTML; every runner is an ``<li class="list-group-item row">``.
"""

import logging
import re
from urllib.parse import parse_qs, urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from ..errors import ParseError, RegistryError
from ..models import CandidateResult, RaceConfig
from .base import HttpPlatformAdapter, event_distance, split_name

logger = logging.getLogger(__name__)

RESULTS_PER_PAGE = 50
_TIME = re.compile(r"\d{1,2}:\d{2}:\d{2}")
_BIB_ONLY = re.compile(r"^\d{1,6}$")


class MikaTimingAdapter(HttpPlatformAdapter):
    """Adapter for Mika Timing list pages."""

    platform = "mika"

    def _base_url(self, config: RaceConfig, year: int) -> str:
        pattern = config.option("base_url_pattern")
        if not pattern:
            raise RegistryError(f"{config.id}: Mika base_url_pattern is not configured")
        return pattern.format(year=year).rstrip("/")

    def results_url(self, config: RaceConfig, year: int) -> str | None:
        return f"{self._base_url(config, year)}/?pid=list"

    async def fetch_candidates(
        self, config: RaceConfig, year: int, runner_name: str
    ) -> list[CandidateResult]:
        identifiers = config.resolve_identifiers(year)
        event = config.events[0]
        event_code = identifiers.get(event.key, "MAR")

        base_url = self._base_url(config, year)
        first_name, last_name = split_name(runner_name)
        params = {
            "pid": "list",
            "search[name]": last_name,
            "search[firstname]": first_name,
            "event": event_code,
            "num_results": str(RESULTS_PER_PAGE),
            "search_sort": "name",
        }
        final_url, html = await self._html(
            f"{base_url}/",
            params=params,
            headers={"Accept": "text/html,application/xhtml+xml"},
        )
        rows = parse_results_html(
            html, final_url, event.label, event_distance(config, event)
        )
        logger.info(f"[{config.tag} {year}] Mika returned {len(rows)} rows")
        return rows


def parse_results_html(
    html: str,
    page_url: str,
    event_label: str | None = None,
    distance_miles: float = 26.2,
) -> list[CandidateResult]:
    """Parse a Mika list page.

    Raises:
        ParseError: the page has no results list at all
    """
    soup = BeautifulSoup(html, "html.parser")
    if soup.select_one(".list-group") is None:
        raise ParseError("mika: results list not found in page")

    candidates = []
    for row in soup.select("li.list-group-item.row"):
        if "list-group-header" in (row.get("class") or []):
            continue
        if row.select_one(".alert") is not None:
            continue
        candidate = _parse_row(row, page_url, event_label, distance_miles)
        if candidate is not None:
            candidates.append(candidate)
    return candidates


def _parse_row(
    row: Tag, page_url: str, event_label: str | None, distance_miles: float
) -> CandidateResult | None:
    link = row.select_one("h4.type-fullname a, .type-fullname a")
    if link is None:
        return None
    name = link.get_text(" ", strip=True)
    if not name:
        return None

    bib = None
    for field in row.select(".type-field"):
        text = field.get_text(" ", strip=True)
        if "BIB" in text.upper():
            bib = re.sub(r"bib", "", text, flags=re.IGNORECASE).strip() or None
        elif _BIB_ONLY.match(text):
            bib = text

    finish_time = half_time = None
    for field in row.select(".type-time"):
        text = field.get_text(" ", strip=True)
        label_el = field.select_one(".list-label")
        label = label_el.get_text(strip=True) if label_el else ""
        found = _TIME.search(text)
        value = found.group(0) if found else None
        if label.upper() == "HALF" or "HALF" in text.upper():
            half_time = value
        elif label == "Finish" or "Finish" in text:
            finish_time = value

    if not finish_time:
        return None

    overall = row.select_one(".type-place.place-secondary")
    gender_place = row.select_one(".type-place.place-primary")
    division = row.select_one(".type-age_class")

    href = link.get("href") or ""
    source_url = urljoin(page_url, href) if href else page_url
    source_id = parse_qs(urlparse(href).query).get("idp", [None])[0] or bib

    return CandidateResult(
        name=name,
        time_text=finish_time,
        platform="mika",
        place_text=overall.get_text(strip=True) if overall else None,
        bib=bib,
        source_id=source_id,
        source_url=source_url,
        event_label=event_label,
        distance_miles=distance_miles,
        extra={
            "half_time": half_time,
            "gender_place": gender_place.get_text(strip=True) if gender_place else None,
            "division": (
                re.sub(r"division", "", division.get_text(" ", strip=True), flags=re.IGNORECASE).strip()
                if division else None
            ),
        },
    )
