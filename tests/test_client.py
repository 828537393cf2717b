"""Tests for the rate-limited HTTP client.

``respx`` patches httpx at the transport layer; no real network calls
are made.
"""

from __future__ import annotations

import httpx
import pytest
import respx

from harvester.config import ScraperConfig
from harvester.errors import NetworkError
from harvester.models import FetchedPage
from harvester.scraper.client import MAX_REDIRECTS, CraigslistClient

_URL = "http://sfbay.craigslist.org/search/sfc/apa"


def _config(delay: float = 0.0) -> ScraperConfig:
    return ScraperConfig(
        base_url="http://sfbay.craigslist.org",
        search_url=_URL,
        request_delay_seconds=delay,
        timeout_seconds=5.0,
        user_agents=["harvester-tests/1.0"],
    )


class TestFetch:
    def test_returns_fetched_page(self) -> None:
        with respx.mock as router:
            router.route(method="GET", host="sfbay.craigslist.org", path="/search/sfc/apa").mock(
                return_value=httpx.Response(200, html="<html><p class='row'>x</p></html>")
            )
            with CraigslistClient(_config()) as client:
                page = client.fetch(_URL)
                assert client.total_requests == 1

        assert isinstance(page, FetchedPage)
        assert page.url == _URL
        assert page.status_code == 200
        assert page.tree.css_first("p.row").text() == "x"

    def test_sends_configured_user_agent(self) -> None:
        with respx.mock as router:
            route = router.route(host="sfbay.craigslist.org").mock(
                return_value=httpx.Response(200, html="<html></html>")
            )
            with CraigslistClient(_config()) as client:
                client.fetch(_URL)

        assert route.calls.last.request.headers["User-Agent"] == "harvester-tests/1.0"

    def test_http_error_status_raises_network_error(self) -> None:
        with respx.mock as router:
            router.route(host="sfbay.craigslist.org").mock(
                return_value=httpx.Response(403, text="blocked")
            )
            with CraigslistClient(_config()) as client:
                with pytest.raises(NetworkError) as exc_info:
                    client.fetch(_URL)
                assert client.total_requests == 0

        assert exc_info.value.status_code == 403
        assert exc_info.value.url == _URL

    def test_transport_error_raises_network_error(self) -> None:
        with respx.mock as router:
            route = router.route(host="sfbay.craigslist.org").mock(
                side_effect=httpx.ConnectError("connection refused")
            )
            with CraigslistClient(_config()) as client:
                with pytest.raises(NetworkError) as exc_info:
                    client.fetch(_URL)

        assert exc_info.value.status_code is None
        assert "connection refused" in str(exc_info.value)
        assert route.call_count == 1  # no retry

    def test_post_sends_form_body(self) -> None:
        with respx.mock as router:
            route = router.route(method="POST", host="sfbay.craigslist.org").mock(
                return_value=httpx.Response(200, html="<html></html>")
            )
            with CraigslistClient(_config()) as client:
                client.request("POST", _URL, data={"query": "Garden", "minAsk": "250"})

        body = route.calls.last.request.content.decode()
        assert "query=Garden" in body
        assert "minAsk=250" in body


class TestRateLimiting:
    def test_consecutive_requests_are_spaced(self, fake_time) -> None:
        with respx.mock as router:
            router.route(host="sfbay.craigslist.org").mock(
                return_value=httpx.Response(200, html="<html></html>")
            )
            with CraigslistClient(_config(delay=0.5)) as client:
                client.fetch(_URL)
                client.fetch(_URL)
                client.fetch(_URL)

        assert fake_time.sleeps == [pytest.approx(0.5), pytest.approx(0.5)]

    def test_failed_request_still_delays_the_next(self, fake_time) -> None:
        with respx.mock as router:
            router.route(host="sfbay.craigslist.org").mock(
                side_effect=[
                    httpx.Response(500, text="oops"),
                    httpx.Response(200, html="<html></html>"),
                ]
            )
            with CraigslistClient(_config(delay=0.5)) as client:
                with pytest.raises(NetworkError):
                    client.fetch(_URL)
                client.fetch(_URL)

        assert fake_time.sleeps == [pytest.approx(0.5)]


class TestRedirects:
    _HTTPS_URL = "https://sfbay.craigslist.org/search/sfc/apa"

    def test_redirect_is_followed(self) -> None:
        with respx.mock as router:
            router.get(_URL).mock(
                return_value=httpx.Response(302, headers={"Location": self._HTTPS_URL})
            )
            target = router.get(self._HTTPS_URL).mock(
                return_value=httpx.Response(200, html="<html><p class='row'>x</p></html>")
            )
            with CraigslistClient(_config()) as client:
                page = client.fetch(_URL)
                assert client.total_requests == 2

        assert target.call_count == 1
        assert page.url == self._HTTPS_URL
        assert page.status_code == 200

    def test_each_redirect_hop_waits_for_the_delay(self, fake_time) -> None:
        with respx.mock as router:
            router.get(_URL).mock(
                return_value=httpx.Response(302, headers={"Location": self._HTTPS_URL})
            )
            hop = router.get(self._HTTPS_URL).mock(
                return_value=httpx.Response(200, html="<html></html>")
            )
            with CraigslistClient(_config(delay=0.5)) as client:
                client.fetch(_URL)

        assert hop.call_count == 1
        assert fake_time.sleeps == [pytest.approx(0.5)]

    def test_redirect_loop_raises_network_error(self) -> None:
        with respx.mock as router:
            route = router.get(_URL).mock(
                return_value=httpx.Response(302, headers={"Location": _URL})
            )
            with CraigslistClient(_config()) as client:
                with pytest.raises(NetworkError) as exc_info:
                    client.fetch(_URL)

        assert "redirects" in str(exc_info.value)
        assert route.call_count == MAX_REDIRECTS + 1
