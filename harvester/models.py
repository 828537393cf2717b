"""Craigslist Harvester — Data Models.

Dataclasses for the search request, fetched pages and the listing
records extracted from them.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Union

from selectolax.parser import HTMLParser

Number = Union[int, float]

HEADER_ROW = ["Name", "URL", "Price", "Location"]


@dataclass(frozen=True)
class SearchParameters:
    """Values entered into the search form.

    Callers must ensure ``min_price <= max_price``; nothing here checks it.

    Attributes:
        query: Free-text search terms.
        min_price: Lowest acceptable asking price.
        max_price: Highest acceptable asking price.
    """

    query: str
    min_price: Number
    max_price: Number


@dataclass(eq=False)
class FetchedPage:
    """One HTTP response body and its parsed markup tree.

    The tree is parsed on first access and only ever queried.

    Attributes:
        url: Final URL of the response (after redirects).
        html: Decoded response body.
        status_code: HTTP status of the response.
    """

    url: str
    html: str
    status_code: int = 200

    @cached_property
    def tree(self) -> HTMLParser:
        return HTMLParser(self.html)


@dataclass(frozen=True)
class Listing:
    """A single search result as written to the output file.

    Attributes:
        name: Title text of the listing link, stripped.
        url: Site base URL joined with the link's href.
        price: Text of the price marker, possibly empty.
        location: Neighborhood text with its decoration sliced off, possibly empty.
    """

    name: str
    url: str
    price: str
    location: str

    def to_row(self) -> list[str]:
        return [self.name, self.url, self.price, self.location]
