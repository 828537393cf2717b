"""Craigslist Harvester — Field Extraction Rules.

Each output field of a Listing is produced by a named ExtractionRule:
a markup query on the listing row plus post-processing (strip, join,
slice). Rules return a FieldResult instead of raising, so the extractor
alone decides what a failed rule means for the row.

Only the link-derived fields (name, url) can fail. Price and location
degrade to empty strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from selectolax.parser import Node

from harvester.config import ExtractionConfig


@dataclass(frozen=True)
class FieldResult:
    """Outcome of one rule on one row: a value, or a reason it has none."""

    value: Any = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def success(cls, value: Any) -> "FieldResult":
        return cls(value=value)

    @classmethod
    def failure(cls, reason: str) -> "FieldResult":
        return cls(reason=reason)


@dataclass(frozen=True)
class ExtractionRule:
    """Maps a listing row to the value of one output field."""

    field: str
    derive: Callable[[Node], FieldResult]


# ── Primitive steps ───────────────────────────────────────


def nth_match(node: Node, selector: str, index: int) -> FieldResult:
    """Return the ``index``-th (0-based) descendant matching ``selector``."""
    matches = node.css(selector)
    if len(matches) <= index:
        return FieldResult.failure(
            f"expected at least {index + 1} '{selector}' element(s), found {len(matches)}"
        )
    return FieldResult.success(matches[index])


def joined_text(node: Node, selector: str) -> str:
    """Concatenate the full text of every descendant matching ``selector``."""
    return "".join(match.text() for match in node.css(selector))


def trim_ends(text: str, start: int, end: int) -> str:
    """Drop ``start`` leading and ``end`` trailing characters.

    Text too short to hold both yields "".
    """
    if len(text) < start + end:
        return ""
    return text[start:len(text) - end]


# ── Rule set ──────────────────────────────────────────────


def build_rules(config: ExtractionConfig, base_url: str) -> list[ExtractionRule]:
    """Build the name/url/price/location rules for a site.

    Args:
        config: Selectors and offsets for the listing markup.
        base_url: Prefix joined verbatim with each link's href.

    Returns:
        Rules in output column order.
    """

    def link(node: Node) -> FieldResult:
        return nth_match(node, config.link_selector, config.link_index)

    def name(node: Node) -> FieldResult:
        anchor = link(node)
        if not anchor.ok:
            return anchor
        return FieldResult.success(anchor.value.text().strip())

    def url(node: Node) -> FieldResult:
        anchor = link(node)
        if not anchor.ok:
            return anchor
        href = anchor.value.attributes.get("href")
        if href is None:
            return FieldResult.failure("title link has no href")
        # No normalisation: an absolute href produces a doubled host
        return FieldResult.success(base_url + href)

    def price(node: Node) -> FieldResult:
        return FieldResult.success(joined_text(node, config.price_selector))

    def location(node: Node) -> FieldResult:
        raw = joined_text(node, config.location_selector)
        return FieldResult.success(
            trim_ends(raw, config.location_trim_start, config.location_trim_end)
        )

    return [
        ExtractionRule("name", name),
        ExtractionRule("url", url),
        ExtractionRule("price", price),
        ExtractionRule("location", location),
    ]
