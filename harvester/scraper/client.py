"""Craigslist Harvester — HTTP Client.

Rate-limited synchronous HTTP client built on httpx.Client:
  - User-agent chosen from config
  - One shared RateLimiter for every outbound request
  - Redirects followed manually so every hop is rate limited
  - No retries: transport failures and HTTP errors raise NetworkError
  - Request counting for run telemetry
"""

from __future__ import annotations

import random
from typing import Any, Optional

import httpx

from harvester.config import ScraperConfig
from harvester.errors import NetworkError
from harvester.models import FetchedPage
from harvester.utils.logger import get_logger
from harvester.utils.rate_limiter import RateLimiter

logger = get_logger(__name__)

MAX_REDIRECTS = 10

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

# ── Browser-like headers common to all requests ──────────
_COMMON_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Connection": "keep-alive",
}


class CraigslistClient:
    """Synchronous HTTP client with a fixed inter-request delay.

    Attributes:
        config: Scraper configuration from the YAML config.
        total_requests: Outbound requests (redirect hops included) of successful calls.
    """

    def __init__(self, config: ScraperConfig) -> None:
        """Initialize the client from a ScraperConfig.

        Args:
            config: ScraperConfig instance loaded from settings.yaml.
        """
        self.config = config
        self.total_requests: int = 0
        self.rate_limiter = RateLimiter(config.request_delay_seconds)
        self._client: Optional[httpx.Client] = None

    def _get_client(self) -> httpx.Client:
        """Lazily create the httpx.Client."""
        if self._client is None:
            ua = random.choice(self.config.user_agents) if self.config.user_agents else _DEFAULT_USER_AGENT
            self._client = httpx.Client(
                headers={**_COMMON_HEADERS, "User-Agent": ua},
                follow_redirects=False,
                timeout=httpx.Timeout(self.config.timeout_seconds),
            )
        return self._client

    def fetch(self, url: str) -> FetchedPage:
        """GET a page and return it.

        Args:
            url: Absolute URL to fetch.

        Returns:
            The fetched page.

        Raises:
            NetworkError: On transport failure or an HTTP error status.
        """
        logger.info("Fetching %s", url)
        return self.request("GET", url)

    def request(
        self,
        method: str,
        url: str,
        params: Optional[list[tuple[str, str]]] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> FetchedPage:
        """Send one rate-limited request, following redirects hop by hop.

        Each redirect hop is its own outbound request and waits on the
        rate limiter like any other.

        Args:
            method: HTTP method ("GET" or "POST").
            url: Request URL.
            params: Optional query parameters as (name, value) pairs.
            data: Optional urlencoded form body; list values repeat the name.

        Returns:
            The final response wrapped as a FetchedPage.

        Raises:
            NetworkError: On transport failure, an HTTP error status or
                too many redirects.
        """
        client = self._get_client()
        kwargs: dict[str, Any] = {}
        if params is not None:
            kwargs["params"] = params
        if data is not None:
            kwargs["data"] = data

        resp = self._send(client, client.build_request(method, url, **kwargs))
        hops = 1
        while resp.next_request is not None:
            if hops > MAX_REDIRECTS:
                logger.error("Too many redirects for %s", url)
                raise NetworkError(url, f"Exceeded {MAX_REDIRECTS} redirects")
            logger.debug("Redirect %d -> %s", resp.status_code, resp.next_request.url)
            resp = self._send(client, resp.next_request)
            hops += 1

        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("HTTP error %d for %s", e.response.status_code, url)
            raise NetworkError(
                url, f"HTTP {e.response.status_code}", status_code=e.response.status_code,
            ) from e

        self.total_requests += hops
        logger.debug("%s %s -> %d (%d bytes)", method, resp.url, resp.status_code, len(resp.content))
        return FetchedPage(url=str(resp.url), html=resp.text, status_code=resp.status_code)

    def _send(self, client: httpx.Client, request: httpx.Request) -> httpx.Response:
        """Send a single hop inside the rate limiter."""
        with self.rate_limiter:
            try:
                return client.send(request)
            except httpx.HTTPError as e:
                logger.error("%s %s failed: %s", request.method, request.url, e)
                raise NetworkError(str(request.url), str(e) or type(e).__name__) from e

    def close(self) -> None:
        """Close the underlying httpx client."""
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.debug("HTTP client closed (total requests: %d)", self.total_requests)

    def __enter__(self) -> "CraigslistClient":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
