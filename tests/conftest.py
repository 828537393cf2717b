"""Shared fixtures for the harvester test suite.

HTML fixtures mimic the Craigslist apartment search: a search page
carrying ``form#searchform`` and a results page of ``p.row`` listings.
Each row has a thumbnail anchor followed by the title anchor.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from harvester.config import (
    AppConfig,
    ExtractionConfig,
    FormConfig,
    OutputConfig,
    ScraperConfig,
    SearchConfig,
)
from harvester.models import FetchedPage

BASE_URL = "http://sfbay.craigslist.org"
SEARCH_URL = "http://sfbay.craigslist.org/search/sfc/apa"

SEARCH_PAGE_HTML = """\
<!DOCTYPE html>
<html>
<head><title>SF bay area apartments / housing for rent</title></head>
<body>
  <form id="searchform" action="/search/sfc/apa" method="GET">
    <input type="text" name="query" value="">
    <input type="text" name="minAsk" value="">
    <input type="text" name="maxAsk" value="">
    <select name="bedrooms">
      <option value="">any</option>
      <option value="2" selected>2+</option>
    </select>
    <input type="checkbox" name="hasPic" value="1">
    <input type="checkbox" name="srchType" value="T" checked>
    <input type="hidden" name="sort" value="rel">
    <button type="submit" name="go">search</button>
  </form>
</body>
</html>
"""

# span.pnr wraps the neighborhood as "  (" + name + ") pic map   ":
# 3 leading and 12 trailing characters of decoration.
RESULTS_PAGE_HTML = """\
<!DOCTYPE html>
<html>
<body>
  <div class="content">
    <p class="row" data-pid="111">
      <a href="/sfc/apa/111.html" class="i"></a>
      <span class="txt">
        <a href="/sfc/apa/111.html" class="hdrlnk">
          Sunny Garden Studio
        </a>
        <span class="price">$1200</span>
        <span class="pnr">  (Noe Valley) pic map   </span>
      </span>
    </p>
    <p class="row" data-pid="222">
      <a href="/sfc/apa/222.html" class="i"></a>
      <span class="txt">
        <a href="/sfc/apa/222.html" class="hdrlnk">Cozy  Garden, Flat</a>
        <span class="price">$1450</span>
        <span class="pnr">  (Mission District) pic map   </span>
      </span>
    </p>
  </div>
</body>
</html>
"""

EMPTY_RESULTS_HTML = """\
<html><body><div class="content"><h4>Nothing found for that search.</h4></div></body></html>
"""


@pytest.fixture()
def app_config(tmp_path: Path) -> AppConfig:
    """An AppConfig with no request delay and all output under tmp_path."""
    return AppConfig(
        scraper=ScraperConfig(
            base_url=BASE_URL,
            search_url=SEARCH_URL,
            request_delay_seconds=0.0,
            timeout_seconds=5.0,
            user_agents=["harvester-tests/1.0"],
        ),
        form=FormConfig(),
        search=SearchConfig(query="Garden", min_price=250, max_price=1500),
        extraction=ExtractionConfig(debug_dump_dir=str(tmp_path / "debug")),
        output=OutputConfig(path=str(tmp_path / "listings.csv")),
    )


@pytest.fixture()
def results_page() -> FetchedPage:
    return FetchedPage(url=SEARCH_URL + "?query=Garden", html=RESULTS_PAGE_HTML)


class FakeTime:
    """Stand-in for the ``time`` module: a manual clock whose sleep advances it."""

    def __init__(self) -> None:
        self.now = 1000.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture()
def fake_time(monkeypatch: pytest.MonkeyPatch) -> FakeTime:
    """Replace the rate limiter's clock and sleep with a FakeTime."""
    from harvester.utils import rate_limiter

    fake = FakeTime()
    monkeypatch.setattr(rate_limiter, "time", fake)
    return fake
