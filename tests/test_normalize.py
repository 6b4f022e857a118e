from city_explorer.normalize import (
    Location,
    Movie,
    Weather,
    business_from_yelp,
    event_from_eventbrite,
    forecast_zone,
    location_from_geocode,
    movie_from_tmdb,
    weather_from_forecast,
)


def geocode_payload(components):
    return {
        "status": "OK",
        "results": [
            {
                "formatted_address": "Seattle, WA, USA",
                "geometry": {"location": {"lat": 47.6062095, "lng": -122.3320708}},
                "address_components": components,
            }
        ],
    }


def test_location_region_code_from_country_component():
    payload = geocode_payload(
        [
            {"long_name": "Seattle", "short_name": "Seattle", "types": ["locality", "political"]},
            {"long_name": "United States", "short_name": "US", "types": ["country", "political"]},
        ]
    )
    location = location_from_geocode("Seattle", payload, created_at=5)

    assert location == Location(
        search_query="Seattle",
        formatted_query="Seattle, WA, USA",
        latitude=47.6062095,
        longitude=-122.3320708,
        region_code="US",
        created_at=5,
    )
    assert location.id is None


def test_location_region_code_falls_back_to_default():
    payload = geocode_payload([{"long_name": "Seattle", "short_name": "Seattle", "types": ["locality"]}])
    assert location_from_geocode("Seattle", payload, 5, default_region_code="GB").region_code == "GB"


def test_location_keeps_pinned_coordinates():
    payload = geocode_payload([])
    location = location_from_geocode("47.6,-122.3", payload, 5, coordinates=(47.6, -122.3))
    assert (location.latitude, location.longitude) == (47.6, -122.3)


def test_weather_time_is_rendered_as_a_day():
    weather = weather_from_forecast({"time": 1704067200, "summary": "Light rain."}, created_at=7)
    assert weather == Weather(forecast="Light rain.", time="Mon Jan 01 2024", timestamp=1704067200, created_at=7)


# Midnight 2024-01-02 in Tokyo is 15:00 on 2024-01-01 UTC
TOKYO_MIDNIGHT = 1704121200


def test_weather_day_uses_forecast_timezone():
    zone = forecast_zone({"timezone": "Asia/Tokyo", "offset": 9})
    assert weather_from_forecast({"time": TOKYO_MIDNIGHT}, 1, zone).time == "Tue Jan 02 2024"


def test_weather_day_falls_back_to_offset():
    for payload in ({"offset": 9}, {"timezone": "Not/AZone", "offset": 9}):
        zone = forecast_zone(payload)
        assert weather_from_forecast({"time": TOKYO_MIDNIGHT}, 1, zone).time == "Tue Jan 02 2024"
    assert forecast_zone({}).utcoffset(None).total_seconds() == 0


def test_weather_days_across_london_clock_change():
    zone = forecast_zone({"timezone": "Europe/London", "offset": 0})
    # Local midnights of 29, 30 (GMT) and 31 (BST) March 2025
    days = [1743206400, 1743292800, 1743375600]
    labels = [weather_from_forecast({"time": t}, 1, zone).time for t in days]
    assert labels == ["Sat Mar 29 2025", "Sun Mar 30 2025", "Mon Mar 31 2025"]


def test_event_unwraps_text_fields():
    item = {
        "url": "https://www.eventbrite.com/e/1",
        "name": {"text": "Jazz Night", "html": "<b>Jazz Night</b>"},
        "start": {"local": "2024-01-05T19:00:00"},
        "description": {"text": "Live jazz."},
    }
    event = event_from_eventbrite(item, created_at=1)
    assert event.link == "https://www.eventbrite.com/e/1"
    assert event.name == "Jazz Night"
    assert event.event_date == "2024-01-05T19:00:00"
    assert event.summary == "Live jazz."


def test_event_without_description():
    event = event_from_eventbrite({"url": "u", "name": {"text": "n"}, "start": {"local": "d"}, "description": None}, 1)
    assert event.summary is None


def test_movie_poster_url():
    item = {
        "title": "Dune",
        "overview": "Spice.",
        "vote_average": 8.1,
        "vote_count": 5000,
        "poster_path": "/dune.jpg",
        "popularity": 300.5,
        "release_date": "2024-03-01",
    }
    movie = movie_from_tmdb(item, created_at=1)
    assert movie.image_url == "https://image.tmdb.org/t/p/w500/dune.jpg"
    assert movie.average_votes == 8.1
    assert movie.total_votes == 5000
    assert movie.released_on == "2024-03-01"

    assert movie_from_tmdb({**item, "poster_path": None}, 1).image_url is None


def test_business_from_yelp():
    item = {"name": "Cafe", "image_url": "i", "price": "$", "rating": 4.0, "url": "https://yelp.com/biz/cafe"}
    business = business_from_yelp(item, created_at=1)
    assert (business.name, business.price, business.rating) == ("Cafe", "$", 4.0)


def test_from_row_ignores_storage_columns():
    row = {
        "id": 9,
        "region_code": "US",
        "title": "Dune",
        "overview": None,
        "average_votes": 8.1,
        "total_votes": 5,
        "image_url": None,
        "popularity": 1.0,
        "released_on": "2024-03-01",
        "created_at": 3,
    }
    movie = Movie.from_row(row)
    assert movie.title == "Dune"
    assert "region_code" not in movie.to_row()


def test_location_row_round_trip_keeps_id():
    row = {
        "id": 4,
        "search_query": "Seattle",
        "formatted_query": "Seattle, WA, USA",
        "latitude": 47.6,
        "longitude": -122.3,
        "region_code": "US",
        "created_at": 1,
    }
    location = Location.from_row(row)
    assert location.id == 4
    assert "id" not in location.to_row()
