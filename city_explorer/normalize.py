"""
Entity shapes and provider payload mappers.

Every entity is an immutable value. The same dataclass is produced whether
it was just mapped from a provider payload or reconstituted from a stored
row, so callers never see storage-only columns (row ids of dependents,
owner keys).
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

TMDB_IMAGE_BASE = "https://image.tmdb.org/t/p/w500"


def epoch_millis() -> int:
    """Current time in epoch milliseconds (the unit of every created_at column)."""
    return int(time.time() * 1000)


class _Record:
    @classmethod
    def from_row(cls, row: Mapping[str, Any]):
        """Rebuild the entity from a stored row, ignoring columns it does not declare."""
        return cls(**{f.name: row[f.name] for f in fields(cls)})

    def to_row(self) -> Dict[str, Any]:
        """Column values to persist. Row ids are assigned by the store."""
        values = asdict(self)
        values.pop("id", None)
        return values


@dataclass(frozen=True)
class Location(_Record):
    search_query: str
    formatted_query: str
    latitude: float
    longitude: float
    region_code: str
    created_at: int
    id: Optional[int] = None


@dataclass(frozen=True)
class Weather(_Record):
    forecast: Optional[str]
    time: str
    # Provider epoch seconds of the day; unique per location
    timestamp: int
    created_at: int


@dataclass(frozen=True)
class Event(_Record):
    link: str
    name: Optional[str]
    event_date: Optional[str]
    summary: Optional[str]
    created_at: int


@dataclass(frozen=True)
class Movie(_Record):
    title: str
    overview: Optional[str]
    average_votes: Optional[float]
    total_votes: Optional[int]
    image_url: Optional[str]
    popularity: Optional[float]
    released_on: Optional[str]
    created_at: int


@dataclass(frozen=True)
class BusinessListing(_Record):
    name: str
    image_url: Optional[str]
    price: Optional[str]
    rating: Optional[float]
    url: str
    created_at: int


def region_code_from_components(components, default: str) -> str:
    """Short name of the `country` address component, or `default`."""
    for component in components or []:
        if "country" in (component.get("types") or []):
            return component.get("short_name") or default
    return default


def location_from_geocode(
    search_query: str,
    payload: Dict[str, Any],
    created_at: int,
    default_region_code: str = "US",
    coordinates: Optional[Tuple[float, float]] = None,
) -> Location:
    """
    Map a Google geocode response to a Location using its top result.

    `coordinates` pins latitude/longitude to the queried pair (reverse
    geocoding), otherwise the result geometry is used.
    """
    best = payload["results"][0]
    if coordinates is None:
        point = best["geometry"]["location"]
        coordinates = (float(point["lat"]), float(point["lng"]))

    return Location(
        search_query=search_query,
        formatted_query=best.get("formatted_address", search_query),
        latitude=coordinates[0],
        longitude=coordinates[1],
        region_code=region_code_from_components(best.get("address_components"), default_region_code),
        created_at=created_at,
    )


def forecast_zone(payload: Dict[str, Any]) -> tzinfo:
    """
    Timezone of a DarkSky-style forecast: the IANA `timezone` name when it is
    known, otherwise the fixed `offset` in hours.
    """
    name = payload.get("timezone")
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            pass
    return timezone(timedelta(hours=float(payload.get("offset") or 0)))


def weather_from_forecast(day: Dict[str, Any], created_at: int, zone: tzinfo = timezone.utc) -> Weather:
    # Provider time is the local midnight in epoch seconds; display as e.g. "Mon Jan 01 2024"
    timestamp = int(day["time"])
    when = datetime.fromtimestamp(timestamp, tz=zone)
    return Weather(
        forecast=day.get("summary"),
        time=when.strftime("%a %b %d %Y"),
        timestamp=timestamp,
        created_at=created_at,
    )


def _text(value: Any) -> Optional[str]:
    # Eventbrite wraps free text as {"text": ..., "html": ...}
    if isinstance(value, dict):
        return value.get("text")
    return value


def event_from_eventbrite(item: Dict[str, Any], created_at: int) -> Event:
    return Event(
        link=item["url"],
        name=_text(item.get("name")),
        event_date=(item.get("start") or {}).get("local"),
        summary=_text(item.get("description")),
        created_at=created_at,
    )


def movie_from_tmdb(item: Dict[str, Any], created_at: int) -> Movie:
    poster = item.get("poster_path")
    return Movie(
        title=item.get("title") or item.get("original_title", ""),
        overview=item.get("overview"),
        average_votes=item.get("vote_average"),
        total_votes=item.get("vote_count"),
        image_url=f"{TMDB_IMAGE_BASE}{poster}" if poster else None,
        popularity=item.get("popularity"),
        released_on=item.get("release_date"),
        created_at=created_at,
    )


def business_from_yelp(item: Dict[str, Any], created_at: int) -> BusinessListing:
    return BusinessListing(
        name=item["name"],
        image_url=item.get("image_url"),
        price=item.get("price"),
        rating=item.get("rating"),
        url=item["url"],
        created_at=created_at,
    )
