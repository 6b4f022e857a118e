"""
Error taxonomy.

Provider and store failures get their own types so route handlers can
map them to distinct HTTP statuses.
"""

from __future__ import annotations

from typing import Optional


class CityExplorerError(RuntimeError):
    """Base class for every failure raised by this package."""
    pass


class ProviderFetchError(CityExplorerError):
    """Raised when an external provider call fails (network error or non-2xx)."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider}: {message}")


class LocationNotFound(ProviderFetchError):
    """The geocoder answered but had no match for the query."""

    def __init__(self, query: str):
        self.query = query
        super().__init__("geocode", f"no results for {query!r}")


class StoreError(CityExplorerError):
    """Raised when a query, insert or delete against the record store fails."""
    pass


class UnknownLocation(CityExplorerError):
    """A location was requested by id but no such row is stored."""

    def __init__(self, location_id: int):
        self.location_id = location_id
        super().__init__(f"Location {location_id} not found")
