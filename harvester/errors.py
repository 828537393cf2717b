"""Craigslist Harvester — Error Types.

Every failure the pipeline reports is a HarvestError. The pipeline
stamps ``stage`` ("fetch", "submit", "extract", "write") on errors
escaping one of its steps so the caller can tell where a run died.
"""

from __future__ import annotations

from typing import Optional


class HarvestError(Exception):
    """Base class for all harvest failures."""

    def __init__(self, message: str, stage: Optional[str] = None) -> None:
        self.message = message
        self.stage = stage
        super().__init__(message)

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class NetworkError(HarvestError):
    """Raised when a request fails at the transport level or returns an HTTP error."""

    def __init__(
        self,
        url: str,
        reason: str,
        status_code: Optional[int] = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"Request to {url} failed: {reason}")


class FormNotFoundError(HarvestError):
    """Raised when the page has no form with the requested id."""

    def __init__(self, form_id: str, url: str = "") -> None:
        self.form_id = form_id
        where = f" on {url}" if url else ""
        super().__init__(f"No form with id '{form_id}'{where}")


class FieldNotFoundError(HarvestError):
    """Raised when setting a field name the form does not declare."""

    def __init__(self, field_name: str, form_id: str = "") -> None:
        self.field_name = field_name
        self.form_id = form_id
        super().__init__(f"Form '{form_id}' has no field named '{field_name}'")


class MissingLinkError(HarvestError):
    """Raised when a listing row lacks the title anchor or its href."""

    def __init__(self, reason: str, index: Optional[int] = None) -> None:
        self.index = index
        prefix = f"Listing row {index}: " if index is not None else ""
        super().__init__(f"{prefix}{reason}")
