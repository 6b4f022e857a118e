"""
Provider clients.

One thin async wrapper per external data source. Each call returns
normalized entities (see normalize.py) and raises ProviderFetchError on a
network error or a non-2xx answer. Nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from .errors import LocationNotFound, ProviderFetchError
from .normalize import (
    BusinessListing,
    Event,
    Location,
    Movie,
    Weather,
    business_from_yelp,
    epoch_millis,
    event_from_eventbrite,
    forecast_zone,
    location_from_geocode,
    movie_from_tmdb,
    weather_from_forecast,
)

logger = logging.getLogger(__name__)

# Events and business listings are truncated to the first N provider results.
MAX_LISTINGS = 20

EVENT_RADIUS = "10km"


class _ProviderClient:
    name = "provider"
    default_base = ""

    def __init__(
        self,
        api_key: str,
        timeout_s: float = 10.0,
        base: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.timeout_s = timeout_s
        self.base = base or self.default_base
        # Tests pass an httpx.MockTransport here
        self.transport = transport

    async def _get_json(self, url: str, params: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                r = await client.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.error("%s request failed: %s", self.name, e)
            raise ProviderFetchError(self.name, f"request failed: {e}") from e

        if not r.is_success:
            logger.error("%s answered %s", self.name, r.status_code)
            raise ProviderFetchError(self.name, f"request failed ({r.status_code}): {r.text}", r.status_code)
        try:
            return r.json()
        except ValueError as e:
            raise ProviderFetchError(self.name, "response is not JSON", r.status_code) from e


class GeocodeClient(_ProviderClient):
    """
    Google geocoding.

    - forward:  /maps/api/geocode/json?address=...&key=KEY
    - reverse:  /maps/api/geocode/json?latlng=LAT,LNG&key=KEY
    """

    name = "geocode"
    default_base = "https://maps.googleapis.com"

    def __init__(self, api_key: str, default_region_code: str = "US", **kwargs):
        super().__init__(api_key, **kwargs)
        self.default_region_code = default_region_code

    async def _lookup(self, params: Dict[str, Any], query: str) -> Dict[str, Any]:
        payload = await self._get_json(f"{self.base}/maps/api/geocode/json", {**params, "key": self.api_key})
        status = payload.get("status")
        if status == "ZERO_RESULTS" or (status == "OK" and not payload.get("results")):
            raise LocationNotFound(query)
        if status != "OK":
            logger.error("geocode failed: status=%s, error_message=%s", status, payload.get("error_message"))
            raise ProviderFetchError(self.name, payload.get("error_message") or status)
        return payload

    async def geocode(self, query: str) -> Location:
        """Resolve free text ("Seattle", "Paris, FR") to a Location."""
        payload = await self._lookup({"address": query}, query)
        return location_from_geocode(query, payload, epoch_millis(), self.default_region_code)

    async def reverse_geocode(self, latitude: float, longitude: float) -> Location:
        """
        Resolve a coordinate pair to a Location.

        The queried coordinates are kept verbatim so the stored row can be
        found again by the same pair.
        """
        query = f"{latitude},{longitude}"
        payload = await self._lookup({"latlng": query}, query)
        return location_from_geocode(
            query, payload, epoch_millis(), self.default_region_code, coordinates=(latitude, longitude)
        )


class WeatherClient(_ProviderClient):
    """DarkSky-compatible forecast API: /forecast/KEY/LAT,LNG"""

    name = "weather"
    default_base = "https://api.pirateweather.net"

    async def forecast(self, latitude: float, longitude: float) -> List[Weather]:
        payload = await self._get_json(f"{self.base}/forecast/{self.api_key}/{latitude},{longitude}", {})
        created_at = epoch_millis()
        zone = forecast_zone(payload)
        days = (payload.get("daily") or {}).get("data") or []
        return [weather_from_forecast(day, created_at, zone) for day in days]


class EventsClient(_ProviderClient):
    name = "events"
    default_base = "https://www.eventbriteapi.com"

    async def events(self, latitude: float, longitude: float) -> List[Event]:
        params = {
            "token": self.api_key,
            "location.latitude": latitude,
            "location.longitude": longitude,
            "location.within": EVENT_RADIUS,
        }
        payload = await self._get_json(f"{self.base}/v3/events/search/", params)
        created_at = epoch_millis()
        items = (payload.get("events") or [])[:MAX_LISTINGS]
        return [event_from_eventbrite(item, created_at) for item in items]


class BusinessClient(_ProviderClient):
    """Yelp Fusion business search (bearer token)."""

    name = "yelp"
    default_base = "https://api.yelp.com"

    async def businesses(self, latitude: float, longitude: float) -> List[BusinessListing]:
        payload = await self._get_json(
            f"{self.base}/v3/businesses/search",
            {"latitude": latitude, "longitude": longitude},
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        created_at = epoch_millis()
        items = (payload.get("businesses") or [])[:MAX_LISTINGS]
        return [business_from_yelp(item, created_at) for item in items]


class MovieClient(_ProviderClient):
    """TMDB discover, most popular first."""

    name = "movies"
    default_base = "https://api.themoviedb.org"

    async def movies(self, region_code: str) -> List[Movie]:
        params = {"api_key": self.api_key, "region": region_code, "sort_by": "popularity.desc"}
        payload = await self._get_json(f"{self.base}/3/discover/movie", params)
        created_at = epoch_millis()
        return [movie_from_tmdb(item, created_at) for item in payload.get("results") or []]


@dataclass(frozen=True)
class Providers:
    """The five provider clients, constructed once per process."""
    geocoder: GeocodeClient
    weather: WeatherClient
    events: EventsClient
    businesses: BusinessClient
    movies: MovieClient

    @classmethod
    def from_settings(cls, settings) -> "Providers":
        timeout_s = settings.provider_timeout_s
        return cls(
            geocoder=GeocodeClient(
                settings.geocode_api_key,
                default_region_code=settings.default_region_code,
                timeout_s=timeout_s,
            ),
            weather=WeatherClient(settings.weather_api_key, timeout_s=timeout_s),
            events=EventsClient(settings.eventbrite_api_key, timeout_s=timeout_s),
            businesses=BusinessClient(settings.yelp_api_key, timeout_s=timeout_s),
            movies=MovieClient(settings.movie_api_key, timeout_s=timeout_s),
        )
