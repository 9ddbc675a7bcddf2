"""Shared pytest fixtures for weather-app tests."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable
from urllib.error import HTTPError
from urllib.parse import parse_qs, urlparse
from zoneinfo import ZoneInfo

import pytest

from weather_app.domain.models import Coordinate, CurrentConditions, Location, WeatherSnapshot
from weather_app.service import WeatherService
from weather_app.settings import AppSettings, EnvSettings, WeatherYamlSettings
from weather_app.storage.cache import WeatherCache
from weather_app.storage.db import initialize_database
from weather_app.storage.favorites import FavoritesRepository
from weather_app.storage.history import SearchHistoryStore
from weather_app.storage.preferences import PreferencesStore

FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"


# -----------------------------------------------------------------------------
# Payload builders
# -----------------------------------------------------------------------------


def make_forecast_payload(*, hourly_count: int = 24, daily_count: int = 7) -> dict[str, Any]:
    return {
        "latitude": 52.52,
        "longitude": 13.41,
        "timezone": "Europe/Berlin",
        "current": {
            "time": "2024-06-01T12:00",
            "temperature_2m": 21.5,
            "relative_humidity_2m": 48,
            "apparent_temperature": 20.9,
            "precipitation": 0.0,
            "weather_code": 2,
            "cloud_cover": 40,
            "pressure_msl": 1017.2,
            "wind_speed_10m": 11.3,
            "wind_direction_10m": 250,
        },
        "hourly": {
            "time": [f"2024-06-01T{hour % 24:02d}:00" for hour in range(hourly_count)],
            "temperature_2m": [15.0 + hour * 0.5 for hour in range(hourly_count)],
            "relative_humidity_2m": [60] * hourly_count,
            "apparent_temperature": [14.0 + hour * 0.5 for hour in range(hourly_count)],
            "precipitation": [0.0] * hourly_count,
            "precipitation_probability": [10] * hourly_count,
            "weather_code": [61] * hourly_count,
            "wind_speed_10m": [8.0] * hourly_count,
        },
        "daily": {
            "time": [f"2024-06-{day + 1:02d}" for day in range(daily_count)],
            "temperature_2m_max": [24.0 + day for day in range(daily_count)],
            "temperature_2m_min": [12.0 + day for day in range(daily_count)],
            "precipitation_sum": [1.2] * daily_count,
            "precipitation_probability_max": [35] * daily_count,
            "weather_code": [3] * daily_count,
            "wind_speed_10m_max": [20.5] * daily_count,
            "sunrise": [f"2024-06-{day + 1:02d}T04:45" for day in range(daily_count)],
            "sunset": [f"2024-06-{day + 1:02d}T21:28" for day in range(daily_count)],
        },
    }


def make_snapshot(
    *,
    latitude: float = 37.7749,
    longitude: float = -122.4194,
    name: str = "San Francisco",
    temperature: float = 18.0,
) -> WeatherSnapshot:
    observed = datetime(2024, 6, 1, 12, 0)
    return WeatherSnapshot(
        location_name=name,
        country="United States",
        coordinate=Coordinate(latitude=latitude, longitude=longitude),
        current=CurrentConditions(
            temperature=temperature,
            feels_like=temperature - 1,
            humidity=70,
            wind_speed=12.0,
            condition="Partly cloudy",
            condition_icon="03d",
            observed_at=observed,
            sunrise=observed.replace(hour=6),
            sunset=observed.replace(hour=20),
        ),
        last_updated=datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc),
    )


# -----------------------------------------------------------------------------
# Fake HTTP
# -----------------------------------------------------------------------------


class FakeResponse:
    def __init__(self, body: bytes, status: int = 200) -> None:
        self._body = body
        self.status = status

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None


class FakeHttp:
    """Stands in for ``urlopen``; routes are matched by URL prefix."""

    def __init__(self) -> None:
        self.routes: dict[str, Callable[[str], FakeResponse]] = {}
        self.calls: list[str] = []
        self.user_agents: list[str | None] = []

    def json(self, prefix: str, payload: Any, *, status: int = 200) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.routes[prefix] = lambda url: FakeResponse(body, status=status)

    def raw(self, prefix: str, body: bytes) -> None:
        self.routes[prefix] = lambda url: FakeResponse(body)

    def error(self, prefix: str, code: int = 500) -> None:
        def _raise(url: str) -> FakeResponse:
            raise HTTPError(url, code, "provider error", hdrs=None, fp=None)

        self.routes[prefix] = _raise

    def timeout(self, prefix: str) -> None:
        def _raise(url: str) -> FakeResponse:
            raise TimeoutError("timed out")

        self.routes[prefix] = _raise

    def calls_to(self, prefix: str) -> list[str]:
        return [url for url in self.calls if url.startswith(prefix)]

    def params(self, prefix: str, index: int = 0) -> dict[str, str]:
        query = urlparse(self.calls_to(prefix)[index]).query
        return {key: values[0] for key, values in parse_qs(query).items()}

    def __call__(self, request: Any, timeout: float | None = None) -> FakeResponse:
        url = request.full_url
        self.calls.append(url)
        self.user_agents.append(request.get_header("User-agent"))
        for prefix, handler in self.routes.items():
            if url.startswith(prefix):
                return handler(url)
        raise TimeoutError(f"no fake route for {url}")


@pytest.fixture
def fake_http(monkeypatch: pytest.MonkeyPatch) -> FakeHttp:
    fake = FakeHttp()
    monkeypatch.setattr("weather_app.adapters.http.urlopen", fake)
    return fake


# -----------------------------------------------------------------------------
# Storage fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "weather.db"
    initialize_database(path)
    return path


@pytest.fixture
def preferences(db_path: Path) -> PreferencesStore:
    return PreferencesStore(db_path)


@pytest.fixture
def cache(db_path: Path, preferences: PreferencesStore) -> WeatherCache:
    return WeatherCache(db_path, preferences=preferences)


@pytest.fixture
def favorites(db_path: Path) -> FavoritesRepository:
    return FavoritesRepository(db_path)


@pytest.fixture
def history(db_path: Path) -> SearchHistoryStore:
    return SearchHistoryStore(db_path)


@pytest.fixture
def app_settings(tmp_path: Path, db_path: Path) -> AppSettings:
    env = EnvSettings(weather_env="test", weather_db_path=db_path)
    yaml_settings = WeatherYamlSettings.model_validate({"refresh": {"enabled": False}})
    return AppSettings(
        env=env,
        yaml=yaml_settings,
        project_root=tmp_path,
        config_path=tmp_path / "weather.yaml",
        db_path=db_path,
        timezone=ZoneInfo("UTC"),
    )


# -----------------------------------------------------------------------------
# Fake weather adapter
# -----------------------------------------------------------------------------


class FakeAdapter:
    def __init__(self) -> None:
        self.snapshots: dict[tuple[float, float], WeatherSnapshot] = {}
        self.locations: list[Location] | None = []
        self.fetches: list[tuple[float, float]] = []
        self.searches: list[str] = []

    def add(self, snapshot: WeatherSnapshot) -> None:
        self.snapshots[(snapshot.latitude, snapshot.longitude)] = snapshot

    def fetch_by_coordinate(self, lat: float, lon: float) -> WeatherSnapshot | None:
        self.fetches.append((lat, lon))
        return self.snapshots.get((lat, lon))

    def fetch_for_location(self, location: Location) -> WeatherSnapshot | None:
        snapshot = self.fetch_by_coordinate(location.latitude, location.longitude)
        if snapshot is None:
            return None
        return snapshot.model_copy(update={"location_name": location.name})

    def fetch_by_query(self, text: str) -> WeatherSnapshot | None:
        locations = self.search_locations(text)
        return self.fetch_for_location(locations[0]) if locations else None

    def search_locations(self, text: str) -> list[Location] | None:
        self.searches.append(text)
        return self.locations


@pytest.fixture
def adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def service(adapter, cache, favorites, history) -> WeatherService:
    return WeatherService(adapter=adapter, cache=cache, favorites=favorites, history=history)
