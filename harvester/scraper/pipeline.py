"""Craigslist Harvester — Scraper Pipeline.

Runs one harvest: fetch the search page, submit the search form,
extract listings from the result page, write them to CSV. Steps run
strictly in sequence and any failure ends the run. Nothing is written
until extraction has finished.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from harvester.config import AppConfig
from harvester.errors import HarvestError
from harvester.models import HEADER_ROW, SearchParameters
from harvester.output.csv_writer import CsvWriter
from harvester.scraper.client import CraigslistClient
from harvester.scraper.extractor import ListingExtractor
from harvester.scraper.form import FormSubmitter
from harvester.utils.logger import get_logger

logger = get_logger(__name__)


@contextmanager
def _stage(name: str) -> Iterator[None]:
    """Tag harvest errors raised inside the block with the stage name."""
    try:
        yield
    except HarvestError as e:
        if e.stage is None:
            e.stage = name
        logger.error("Harvest failed during %s: %s", name, e.message)
        raise


class HarvestPipeline:
    """Fetch → submit → extract → write, for a single results page.

    Attributes:
        config: Full application configuration.
    """

    def __init__(self, config: AppConfig, writer: Optional[CsvWriter] = None) -> None:
        """Initialize the pipeline.

        Args:
            config: Full AppConfig instance.
            writer: Output writer; defaults to a UTF-8 CsvWriter.
        """
        self.config = config
        self._extractor = ListingExtractor(config.extraction, config.scraper.base_url)
        self._writer = writer or CsvWriter()

    def run(
        self,
        address: Optional[str] = None,
        params: Optional[SearchParameters] = None,
        output_path: Optional[str] = None,
    ) -> dict[str, Any]:
        """Run a complete harvest.

        Args:
            address: Search page URL (default: scraper.search_url).
            params: Search values (default: the configured search).
            output_path: CSV destination (default: output.path).

        Returns:
            Dict with run statistics:
              listed, skipped, requests_made, output_path, duration_seconds.

        Raises:
            HarvestError: With ``stage`` set to the step that failed.
        """
        start_time = time.monotonic()
        address = address or self.config.scraper.search_url
        params = params or self.config.search.to_parameters()
        output_path = output_path or self.config.output.path
        form_id = self.config.form.form_id

        logger.info("═══ Harvest Starting ═══")

        with CraigslistClient(self.config.scraper) as client:
            submitter = FormSubmitter(client, self.config.form)

            # ── Step 1: Fetch search page ────────────────
            with _stage("fetch"):
                search_page = client.fetch(address)

            # ── Step 2: Submit search form ───────────────
            with _stage("submit"):
                result_page = submitter.submit(search_page, form_id, params)

            requests_made = client.total_requests

        # ── Step 3: Extract listings ─────────────────────
        with _stage("extract"):
            report = self._extractor.extract(result_page)

        # ── Step 4: Write table ──────────────────────────
        rows = [list(HEADER_ROW)] + [listing.to_row() for listing in report.listings]
        with _stage("write"):
            self._writer.write(output_path, rows)

        elapsed = time.monotonic() - start_time
        stats: dict[str, Any] = {
            "listed": len(report.listings),
            "skipped": len(report.skipped),
            "requests_made": requests_made,
            "output_path": str(output_path),
            "duration_seconds": round(elapsed, 1),
        }

        logger.info("═══ Harvest Complete ═══")
        logger.info(
            "  Listed: %d | Skipped: %d | Requests: %d | Output: %s | Time: %.1fs",
            stats["listed"], stats["skipped"], stats["requests_made"],
            stats["output_path"], elapsed,
        )
        return stats
