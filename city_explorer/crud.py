"""
Per-kind lookups.

Each function is a linear pipeline: resolve the owning Location first, then
resolve the dependent kind keyed by that Location (or its region).
"""

from __future__ import annotations

from typing import List, Sequence

from sqlalchemy.orm import Session

from .cache import EVENTS, MOVIES, WEATHER, YELPS, LocationKey, resolve, resolve_any_location, resolve_location
from .normalize import BusinessListing, Event, Location, Movie, Weather
from .providers import Providers
from .settings import settings


async def get_location(db: Session, key: LocationKey, providers: Providers) -> Location:
    return await resolve_location(db, key, providers.geocoder)


async def get_weather(db: Session, keys: Sequence[LocationKey], providers: Providers) -> List[Weather]:
    location = await resolve_any_location(db, keys, providers.geocoder)
    return await resolve(
        db,
        WEATHER,
        {"location_id": location.id},
        lambda: providers.weather.forecast(location.latitude, location.longitude),
        settings.weather_freshness_ms,
    )


async def get_events(db: Session, keys: Sequence[LocationKey], providers: Providers) -> List[Event]:
    location = await resolve_any_location(db, keys, providers.geocoder)
    return await resolve(
        db,
        EVENTS,
        {"location_id": location.id},
        lambda: providers.events.events(location.latitude, location.longitude),
        settings.events_freshness_ms,
    )


async def get_yelps(db: Session, keys: Sequence[LocationKey], providers: Providers) -> List[BusinessListing]:
    location = await resolve_any_location(db, keys, providers.geocoder)
    return await resolve(
        db,
        YELPS,
        {"location_id": location.id},
        lambda: providers.businesses.businesses(location.latitude, location.longitude),
        settings.yelps_freshness_ms,
    )


async def get_movies(db: Session, keys: Sequence[LocationKey], providers: Providers) -> List[Movie]:
    """Movies are shared by every location in the same region."""
    location = await resolve_any_location(db, keys, providers.geocoder)
    return await resolve(
        db,
        MOVIES,
        {"region_code": location.region_code},
        lambda: providers.movies.movies(location.region_code),
        settings.movies_freshness_ms,
    )
