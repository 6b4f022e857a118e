from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized configuration.

    Loaded from:
    - environment variables
    - .env file (if present)
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Provider keys (the app should fail fast if any is missing)
    geocode_api_key: str
    weather_api_key: str
    eventbrite_api_key: str
    yelp_api_key: str
    movie_api_key: str

    app_name: str = "City Explorer"
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    # Any SQLAlchemy URL; SQLite and PostgreSQL support conflict-ignoring inserts
    database_url: str = "sqlite:///city_explorer.sqlite3"

    provider_timeout_s: float = 10.0

    # Used when a geocode result carries no country component
    default_region_code: str = "US"

    # Maximum age (ms) of cached rows per entity kind. Locations never expire.
    weather_freshness_ms: int = 60_000
    events_freshness_ms: int = 15_000
    movies_freshness_ms: int = 15_000
    yelps_freshness_ms: int = 15_000


settings = Settings()
