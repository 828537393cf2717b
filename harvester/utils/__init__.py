"""Craigslist Harvester — Shared Utilities."""
