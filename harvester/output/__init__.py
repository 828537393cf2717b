"""Craigslist Harvester — Output Package."""

from harvester.output.csv_writer import CsvWriter

__all__ = ["CsvWriter"]
