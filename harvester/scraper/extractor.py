"""Craigslist Harvester — Listing Extractor.

Turns a search-results page into Listing records. Rows are the
elements matching the configured row selector (``p.row``), processed
in document order; each row is run through the extraction rules.

Malformed rows (no title link) are skipped with a warning and dumped
to the debug directory, unless ``skip_malformed`` is off, in which case
the first one aborts extraction with MissingLinkError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from selectolax.parser import Node

from harvester.config import ExtractionConfig
from harvester.errors import MissingLinkError
from harvester.models import FetchedPage, Listing
from harvester.scraper.rules import ExtractionRule, build_rules
from harvester.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ExtractionReport:
    """Listings pulled from one page plus the row indexes that were skipped."""

    listings: list[Listing] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)


class ListingExtractor:
    """Applies the extraction rules to every listing row of a page.

    Attributes:
        config: Extraction selectors, offsets and malformed-row policy.
        rules: The field rules, in output column order.
    """

    def __init__(self, config: ExtractionConfig, base_url: str) -> None:
        """Initialize the extractor.

        Args:
            config: ExtractionConfig from the app configuration.
            base_url: Site root prepended to every listing href.
        """
        self.config = config
        self.rules: list[ExtractionRule] = build_rules(config, base_url)

    def extract_all(self, page: FetchedPage) -> list[Listing]:
        """Return the listings on ``page`` in document order."""
        return self.extract(page).listings

    def extract(self, page: FetchedPage) -> ExtractionReport:
        """Extract every listing row on ``page``.

        A page without any rows gives an empty report.

        Args:
            page: The search-results page.

        Returns:
            Listings in document order and the indexes of skipped rows.

        Raises:
            MissingLinkError: If a row has no title link and skip_malformed is off.
        """
        report = ExtractionReport()
        rows = page.tree.css(self.config.row_selector)
        logger.info("Found %d listing rows on %s", len(rows), page.url)

        for idx, row in enumerate(rows):
            try:
                listing = self._derive(row, idx)
            except MissingLinkError as e:
                if not self.config.skip_malformed:
                    raise
                logger.warning("Skipping malformed listing row %d: %s", idx, e.message)
                self._debug_dump_row(row.html or "", idx)
                report.skipped.append(idx)
                continue

            # Progress signal: one line per listing found
            logger.info("%s", listing.location)
            logger.debug("Listing %d: %r", idx, listing)
            report.listings.append(listing)

        logger.info(
            "Extraction complete: %d listings, %d skipped",
            len(report.listings), len(report.skipped),
        )
        return report

    def _derive(self, row: Node, index: int) -> Listing:
        values: dict[str, str] = {}
        for rule in self.rules:
            result = rule.derive(row)
            if not result.ok:
                raise MissingLinkError(f"{rule.field}: {result.reason}", index=index)
            values[rule.field] = result.value
        return Listing(**values)

    def _debug_dump_row(self, html: str, index: int) -> None:
        """Save a skipped row's HTML to ``debug_dump_dir/row_{index}.html``.

        Does nothing when no dump directory is configured.
        """
        if not self.config.debug_dump_dir:
            return
        try:
            debug_dir = Path(self.config.debug_dump_dir)
            debug_dir.mkdir(parents=True, exist_ok=True)
            path = debug_dir / f"row_{index}.html"
            path.write_text(html, encoding="utf-8")
            logger.debug("Saved debug dump to %s", path)
        except OSError as e:
            logger.warning("Failed to save debug dump: %s", e)
