"""Craigslist Harvester — Scraper Package.

Components:
  - CraigslistClient: Rate-limited HTTP client
  - FormSubmitter: Search form filling and submission
  - ListingExtractor: Result-row parser driven by extraction rules
  - HarvestPipeline: Fetch → submit → extract → write orchestrator
"""

from harvester.scraper.client import CraigslistClient
from harvester.scraper.form import FormSubmitter
from harvester.scraper.extractor import ListingExtractor
from harvester.scraper.pipeline import HarvestPipeline

__all__ = [
    "CraigslistClient",
    "FormSubmitter",
    "ListingExtractor",
    "HarvestPipeline",
]
