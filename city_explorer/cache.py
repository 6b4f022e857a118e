"""
Cache-or-fetch resolution.

For one (entity kind, lookup key) pair:
- Miss:      nothing stored -> fetch from the provider, persist, return
- Hit-Fresh: stored rows younger than the freshness window -> return them
- Hit-Stale: stored rows too old -> delete them, then behave like a Miss

The store is a cache, not the source of truth: failed writes are logged and
swallowed, while failed reads and provider errors propagate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Union

from sqlalchemy import Table
from sqlalchemy.orm import Session

from . import models, store
from .errors import StoreError, UnknownLocation
from .normalize import BusinessListing, Event, Location, Movie, Weather, epoch_millis

logger = logging.getLogger(__name__)

Fetch = Callable[[], Awaitable[Sequence[Any]]]
Clock = Callable[[], int]


class CacheStatus(str, Enum):
    MISS = "miss"
    HIT_FRESH = "hit-fresh"
    HIT_STALE = "hit-stale"


@dataclass(frozen=True)
class EntityKind:
    name: str
    table: Table
    entity: type


LOCATIONS = EntityKind("location", models.LocationRow.__table__, Location)
WEATHER = EntityKind("weather", models.WeatherRow.__table__, Weather)
EVENTS = EntityKind("events", models.EventRow.__table__, Event)
MOVIES = EntityKind("movies", models.MovieRow.__table__, Movie)
YELPS = EntityKind("yelps", models.YelpRow.__table__, BusinessListing)


def classify(rows: Sequence[Mapping[str, Any]], freshness_ms: Optional[int], now: int) -> CacheStatus:
    """
    Classify a lookup result. The first row's age stands for the whole set,
    since rows for one key are always written together. A window of None
    means the rows never expire.
    """
    if not rows:
        return CacheStatus.MISS
    if freshness_ms is None:
        return CacheStatus.HIT_FRESH
    if now - rows[0]["created_at"] > freshness_ms:
        return CacheStatus.HIT_STALE
    return CacheStatus.HIT_FRESH


def _purge(db: Session, kind: EntityKind, lookup: Mapping[str, Any]) -> None:
    try:
        deleted = store.delete_rows(db, kind.table, lookup)
        logger.info("%s %s: purged %d stale rows", kind.name, dict(lookup), deleted)
    except StoreError:
        logger.exception("%s %s: purge failed, refetching anyway", kind.name, dict(lookup))


def _persist(db: Session, kind: EntityKind, entities: Sequence[Any], lookup: Mapping[str, Any]) -> List[Any]:
    """
    Insert every entity under `lookup` and return the entities, rebuilt from
    the stored row where the insert produced one.
    """
    rows = [{**entity.to_row(), **lookup} for entity in entities]
    try:
        stored = store.insert_rows(db, kind.table, rows)
    except StoreError:
        logger.exception("%s %s: caching %d rows failed", kind.name, dict(lookup), len(rows))
        return list(entities)

    return [
        kind.entity.from_row(row) if row is not None else entity
        for entity, row in zip(entities, stored)
    ]


async def resolve(
    db: Session,
    kind: EntityKind,
    lookup: Mapping[str, Any],
    fetch: Fetch,
    freshness_ms: Optional[int],
    clock: Clock = epoch_millis,
) -> List[Any]:
    """
    Serve `kind` rows stored under `lookup`, refreshing them through `fetch`
    when absent or older than `freshness_ms`.

    Raises StoreError when the lookup itself fails and whatever `fetch`
    raises when the provider call fails.
    """
    rows = store.select_rows(db, kind.table, lookup)
    status = classify(rows, freshness_ms, clock())
    logger.info("%s %s: %s", kind.name, dict(lookup), status.value)

    if status is CacheStatus.HIT_FRESH:
        return [kind.entity.from_row(row) for row in rows]

    if status is CacheStatus.HIT_STALE:
        _purge(db, kind, lookup)

    entities = await fetch()
    return _persist(db, kind, entities, lookup)


# -------------------------
# Location keys
# -------------------------

@dataclass(frozen=True)
class ByText:
    text: str


@dataclass(frozen=True)
class ByCoordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class ById:
    id: int


LocationKey = Union[ByText, ByCoordinates, ById]


def location_lookup(key: LocationKey) -> Dict[str, Any]:
    """Column/value pairs addressing the stored location for `key`."""
    if isinstance(key, ByText):
        return {"search_query": key.text}
    if isinstance(key, ByCoordinates):
        return {"latitude": key.latitude, "longitude": key.longitude}
    if isinstance(key, ById):
        return {"id": key.id}
    raise TypeError(f"Unsupported location key: {key!r}")


async def resolve_location(db: Session, key: LocationKey, geocoder, clock: Clock = epoch_millis) -> Location:
    """
    Resolve a Location by text, coordinates or id.

    Locations never expire: once stored they are returned as-is forever.
    An id that is not stored cannot be fetched and raises UnknownLocation.
    """
    lookup = location_lookup(key)

    async def fetch() -> List[Location]:
        if isinstance(key, ByText):
            return [await geocoder.geocode(key.text)]
        if isinstance(key, ByCoordinates):
            return [await geocoder.reverse_geocode(key.latitude, key.longitude)]
        raise UnknownLocation(key.id)

    location = (await resolve(db, LOCATIONS, lookup, fetch, freshness_ms=None, clock=clock))[0]

    if location.id is None:
        # A concurrent request stored it first (or the write failed); prefer the stored row
        rows = store.select_rows(db, LOCATIONS.table, lookup)
        if rows:
            location = Location.from_row(rows[0])
    return location


async def resolve_any_location(
    db: Session, keys: Sequence[LocationKey], geocoder, clock: Clock = epoch_millis
) -> Location:
    """
    Resolve the first of `keys` that identifies a location, in order.

    Only an unknown id falls through to the next key (the cache may have been
    reset since the caller saw that id); any other failure propagates.
    """
    if not keys:
        raise ValueError("At least one location key is required")

    for key in keys[:-1]:
        try:
            return await resolve_location(db, key, geocoder, clock)
        except UnknownLocation:
            logger.info("location %s is not stored, trying the next key", key)
    return await resolve_location(db, keys[-1], geocoder, clock)
