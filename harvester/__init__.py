"""Craigslist Harvester — search-form driven listing scraper."""

__version__ = "1.0.0"
