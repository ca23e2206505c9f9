"""
Tests for the Mika Timing adapter (Chicago).
"""

import httpx
import pytest

from finishline.features.races.errors import ParseError
from finishline.features.races.platforms.mika import MikaTimingAdapter, parse_results_html

BASE = "https://results.chicagomarathon.com/2024/"

LIST_PAGE = """
<html><body>
<ul class="list-group list-group-multicolumn">
  <li class="list-group-item list-group-header row">
    <div class="type-fullname">Name</div>
  </li>
  <li class="list-group-item row">
    <div class="type-place place-primary">412</div>
    <div class="type-place place-secondary">1,873</div>
    <h4 class="type-fullname"><a href="?content=detail&amp;idp=9TGG963827EA4&amp;pid=list">Samp, Jennifer (USA)</a></h4>
    <div class="type-field"><div class="list-label">BIB</div>12345</div>
    <div class="type-age_class"><div class="list-label">Division</div>35-39</div>
    <div class="type-time"><div class="list-label">HALF</div>01:58:10</div>
    <div class="type-time"><div class="list-label">Finish</div>03:59:41</div>
  </li>
  <li class="list-group-item row">
    <h4 class="type-fullname"><a href="?content=detail&amp;idp=XYZ">Samp, Jenna (USA)</a></h4>
    <div class="type-time"><div class="list-label">Finish</div>-</div>
  </li>
  <li class="list-group-item row">
    <div class="alert alert-info">Too many results, please refine</div>
  </li>
</ul>
</body></html>
"""


class TestParseResultsHtml:
    """Tests for parse_results_html."""

    def test_parses_runner_rows(self):
        rows = parse_results_html(LIST_PAGE, BASE, "Marathon")

        assert len(rows) == 1
        row = rows[0]
        assert row.name == "Samp, Jennifer (USA)"
        assert row.time_text == "03:59:41"
        assert row.place_text == "1,873"
        assert row.bib == "12345"
        assert row.source_id == "9TGG963827EA4"
        assert row.source_url.startswith(BASE + "?content=detail")
        assert row.extra["half_time"] == "01:58:10"
        assert row.extra["gender_place"] == "412"
        assert row.extra["division"] == "35-39"

    def test_empty_list(self):
        html = '<ul class="list-group"><li class="list-group-item row"><div class="alert">No results</div></li></ul>'
        assert parse_results_html(html, BASE) == []

    def test_layout_changed(self):
        with pytest.raises(ParseError):
            parse_results_html("<html><body><table></table></body></html>", BASE)


class TestMikaAdapter:
    """Tests for MikaTimingAdapter over a mocked transport."""

    def test_request_and_rows(self, races, run_adapter):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            return httpx.Response(200, text=LIST_PAGE)

        rows = run_adapter(
            MikaTimingAdapter,
            handler,
            lambda a: a.fetch_candidates(races["chicago"], 2024, "Jennifer Samp"),
        )

        assert [r.time_text for r in rows] == ["03:59:41"]
        url = seen["url"]
        assert url.host == "results.chicagomarathon.com"
        assert url.path == "/2024/"
        assert url.params["search[name]"] == "Samp"
        assert url.params["search[firstname]"] == "Jennifer"
        assert url.params["event"] == "MAR"
        assert url.params["pid"] == "list"

    def test_results_url(self, races):
        url = MikaTimingAdapter().results_url(races["chicago"], 2025)
        assert url == "https://results.chicagomarathon.com/2025/?pid=list"
