"""
FastAPI entrypoint.

This file focuses on:
- routing
- request parameter parsing
- mapping failures to HTTP statuses
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import List, Optional

from fastapi import FastAPI, Depends, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from sqlalchemy.orm import Session

from .settings import settings
from .db import Base, engine, get_db
from .cache import ByCoordinates, ByText, LocationKey
from .crud import get_events, get_location, get_movies, get_weather, get_yelps
from .errors import CityExplorerError, LocationNotFound, ProviderFetchError, StoreError, UnknownLocation
from .providers import Providers
from .schemas import LocationRef

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# Create tables automatically.
Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET"],
    allow_headers=["*"],
)

# API clients (constructed once).
providers = Providers.from_settings(settings)


def get_providers() -> Providers:
    return providers


def to_http_error(e: CityExplorerError) -> HTTPException:
    """Map a domain failure to the status the client sees."""
    logger.warning("request failed: %s", e)
    if isinstance(e, (LocationNotFound, UnknownLocation)):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ProviderFetchError):
        return HTTPException(status_code=502, detail=str(e))
    if isinstance(e, StoreError):
        return HTTPException(status_code=503, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


def location_keys(data: str = Query(..., min_length=2)) -> List[LocationKey]:
    """Parse the JSON `data` parameter carried by the dependent routes."""
    try:
        return LocationRef.model_validate_json(data).to_keys()
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.get("/location")
async def api_location(
    data: Optional[str] = Query(None, min_length=1, max_length=255),
    latitude: Optional[float] = Query(None, ge=-90.0, le=90.0),
    longitude: Optional[float] = Query(None, ge=-180.0, le=180.0),
    db: Session = Depends(get_db),
    providers: Providers = Depends(get_providers),
):
    """
    Resolve a location by free text (`data=Seattle`) or by
    `latitude`/`longitude`.
    """
    if data and data.strip():
        key = ByText(data.strip())
    elif latitude is not None and longitude is not None:
        key = ByCoordinates(latitude, longitude)
    else:
        raise HTTPException(status_code=422, detail="Provide data=<place> or latitude and longitude.")

    try:
        location = await get_location(db, key, providers)
    except CityExplorerError as e:
        raise to_http_error(e)
    return asdict(location)


@app.get("/weather")
async def api_weather(
    keys: List[LocationKey] = Depends(location_keys),
    db: Session = Depends(get_db),
    providers: Providers = Depends(get_providers),
):
    """Daily forecast summaries for a location."""
    try:
        return [asdict(w) for w in await get_weather(db, keys, providers)]
    except CityExplorerError as e:
        raise to_http_error(e)


@app.get("/events")
async def api_events(
    keys: List[LocationKey] = Depends(location_keys),
    db: Session = Depends(get_db),
    providers: Providers = Depends(get_providers),
):
    """Up to 20 events within 10 km of a location."""
    try:
        return [asdict(event) for event in await get_events(db, keys, providers)]
    except CityExplorerError as e:
        raise to_http_error(e)


@app.get("/yelps")
async def api_yelps(
    keys: List[LocationKey] = Depends(location_keys),
    db: Session = Depends(get_db),
    providers: Providers = Depends(get_providers),
):
    """Up to 20 businesses near a location."""
    try:
        return [asdict(b) for b in await get_yelps(db, keys, providers)]
    except CityExplorerError as e:
        raise to_http_error(e)


@app.get("/movies")
async def api_movies(
    keys: List[LocationKey] = Depends(location_keys),
    db: Session = Depends(get_db),
    providers: Providers = Depends(get_providers),
):
    """Popular movies in the location's region."""
    try:
        return [asdict(m) for m in await get_movies(db, keys, providers)]
    except CityExplorerError as e:
        raise to_http_error(e)
