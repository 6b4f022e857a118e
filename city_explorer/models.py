"""
ORM models.

One table per entity kind. Every row carries `created_at` in epoch
milliseconds, which is only read by the freshness check. Each table has a
natural unique key so that conflict-ignoring inserts stay idempotent.
"""

from typing import Optional

from sqlalchemy import String, Integer, BigInteger, Float, Text, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from .db import Base


class LocationRow(Base):
    __tablename__ = "locations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # What the user typed; also the text lookup key
    search_query: Mapped[str] = mapped_column(String(255), unique=True)

    formatted_query: Mapped[str] = mapped_column(String(255))
    latitude: Mapped[float] = mapped_column(Float)
    longitude: Mapped[float] = mapped_column(Float)
    region_code: Mapped[str] = mapped_column(String(8))
    created_at: Mapped[int] = mapped_column(BigInteger)

    __table_args__ = (Index("ix_locations_coordinates", "latitude", "longitude"),)


class WeatherRow(Base):
    __tablename__ = "weather"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    location_id: Mapped[int] = mapped_column(ForeignKey("locations.id"), index=True)
    forecast: Mapped[Optional[str]] = mapped_column(Text)
    time: Mapped[str] = mapped_column(String(32))
    timestamp: Mapped[int] = mapped_column(BigInteger)
    created_at: Mapped[int] = mapped_column(BigInteger)

    # Display labels can repeat across a DST change; the provider instant cannot
    __table_args__ = (UniqueConstraint("location_id", "timestamp"),)


class EventRow(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    location_id: Mapped[int] = mapped_column(ForeignKey("locations.id"), index=True)
    link: Mapped[str] = mapped_column(String(512))
    name: Mapped[Optional[str]] = mapped_column(String(255))
    event_date: Mapped[Optional[str]] = mapped_column(String(32))
    summary: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[int] = mapped_column(BigInteger)

    __table_args__ = (UniqueConstraint("location_id", "link"),)


class YelpRow(Base):
    __tablename__ = "yelps"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    location_id: Mapped[int] = mapped_column(ForeignKey("locations.id"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    image_url: Mapped[Optional[str]] = mapped_column(String(512))
    price: Mapped[Optional[str]] = mapped_column(String(8))
    rating: Mapped[Optional[float]] = mapped_column(Float)
    url: Mapped[str] = mapped_column(String(1024))
    created_at: Mapped[int] = mapped_column(BigInteger)

    __table_args__ = (UniqueConstraint("location_id", "url"),)


class MovieRow(Base):
    __tablename__ = "movies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # Movies are cached per region, not per location
    region_code: Mapped[str] = mapped_column(String(8), index=True)

    title: Mapped[str] = mapped_column(String(255))
    overview: Mapped[Optional[str]] = mapped_column(Text)
    average_votes: Mapped[Optional[float]] = mapped_column(Float)
    total_votes: Mapped[Optional[int]] = mapped_column(Integer)
    image_url: Mapped[Optional[str]] = mapped_column(String(512))
    popularity: Mapped[Optional[float]] = mapped_column(Float)
    released_on: Mapped[Optional[str]] = mapped_column(String(16))
    created_at: Mapped[int] = mapped_column(BigInteger)

    __table_args__ = (UniqueConstraint("region_code", "title", "released_on"),)
