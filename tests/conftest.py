import os

# Settings are read at import time; provide the required keys first.
os.environ.setdefault("GEOCODE_API_KEY", "test-geocode")
os.environ.setdefault("WEATHER_API_KEY", "test-weather")
os.environ.setdefault("EVENTBRITE_API_KEY", "test-eventbrite")
os.environ.setdefault("YELP_API_KEY", "test-yelp")
os.environ.setdefault("MOVIE_API_KEY", "test-movies")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from city_explorer.db import Base
from city_explorer import models  # noqa: F401
from city_explorer.normalize import BusinessListing, Event, Location, Movie, Weather, epoch_millis
from city_explorer.providers import Providers


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


class FakeGeocoder:
    def __init__(self, region_code="US", error=None):
        self.region_code = region_code
        self.error = error
        self.calls = []

    async def geocode(self, query):
        self.calls.append(("geocode", query))
        if self.error:
            raise self.error
        return Location(
            search_query=query,
            formatted_query=f"{query}, WA, USA",
            latitude=47.6062,
            longitude=-122.3321,
            region_code=self.region_code,
            created_at=epoch_millis(),
        )

    async def reverse_geocode(self, latitude, longitude):
        self.calls.append(("reverse_geocode", latitude, longitude))
        if self.error:
            raise self.error
        return Location(
            search_query=f"{latitude},{longitude}",
            formatted_query="Somewhere, WA, USA",
            latitude=latitude,
            longitude=longitude,
            region_code=self.region_code,
            created_at=epoch_millis(),
        )


class FakeClient:
    """Stands in for one provider client; `method` is the fetch it exposes."""

    def __init__(self, method, results=(), error=None):
        self.results = list(results)
        self.error = error
        self.calls = []
        setattr(self, method, self._fetch)

    async def _fetch(self, *args):
        self.calls.append(args)
        if self.error:
            raise self.error
        return list(self.results)


def make_weather(n=3, created_at=None):
    created_at = epoch_millis() if created_at is None else created_at
    return [
        Weather(
            forecast=f"Forecast {i}",
            time=f"Day {i + 1}",
            timestamp=1704067200 + i * 86400,
            created_at=created_at,
        )
        for i in range(n)
    ]


def make_events(n=3, created_at=None):
    created_at = epoch_millis() if created_at is None else created_at
    return [
        Event(
            link=f"https://events.example/{i}",
            name=f"Event {i}",
            event_date="2024-01-01T19:00:00",
            summary=None,
            created_at=created_at,
        )
        for i in range(n)
    ]


def make_movies(n=3, created_at=None):
    created_at = epoch_millis() if created_at is None else created_at
    return [
        Movie(
            title=f"Movie {i}",
            overview="A film.",
            average_votes=7.5,
            total_votes=100 + i,
            image_url=None,
            popularity=50.0 - i,
            released_on="2024-01-01",
            created_at=created_at,
        )
        for i in range(n)
    ]


def make_businesses(n=3, created_at=None):
    created_at = epoch_millis() if created_at is None else created_at
    return [
        BusinessListing(
            name=f"Cafe {i}",
            image_url=None,
            price="$$",
            rating=4.5,
            url=f"https://yelp.example/{i}",
            created_at=created_at,
        )
        for i in range(n)
    ]


@pytest.fixture
def fake_providers():
    return Providers(
        geocoder=FakeGeocoder(),
        weather=FakeClient("forecast", make_weather()),
        events=FakeClient("events", make_events()),
        businesses=FakeClient("businesses", make_businesses()),
        movies=FakeClient("movies", make_movies()),
    )
