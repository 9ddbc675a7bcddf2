from __future__ import annotations

import logging

from ...domain.models import Location, WeatherSnapshot
from ...location.service import fallback_place_name, request_locations, request_place_name
from ...settings import ProviderSettings, SearchSettings
from ..http import ProviderError, build_url, fetch_json
from .normalize import normalize_forecast

LOGGER = logging.getLogger(__name__)

CURRENT_VARIABLES = (
    "temperature_2m",
    "relative_humidity_2m",
    "apparent_temperature",
    "precipitation",
    "weather_code",
    "cloud_cover",
    "pressure_msl",
    "wind_speed_10m",
    "wind_direction_10m",
)
HOURLY_VARIABLES = (
    "temperature_2m",
    "relative_humidity_2m",
    "apparent_temperature",
    "precipitation",
    "precipitation_probability",
    "weather_code",
    "wind_speed_10m",
)
DAILY_VARIABLES = (
    "temperature_2m_max",
    "temperature_2m_min",
    "precipitation_sum",
    "precipitation_probability_max",
    "weather_code",
    "wind_speed_10m_max",
    "sunrise",
    "sunset",
)


class OpenMeteoWeatherAdapter:
    """Open-Meteo forecast and geocoding client with Nominatim place names.

    Provider failures never leave this class: they are logged and reported as
    ``None`` (or the coordinate fallback name for reverse geocoding).
    """

    def __init__(
        self,
        *,
        providers: ProviderSettings | None = None,
        search: SearchSettings | None = None,
    ) -> None:
        self._providers = providers or ProviderSettings()
        self._search = search or SearchSettings()

    def forecast_url(self, lat: float, lon: float) -> str:
        params = {
            "latitude": f"{lat:.5f}",
            "longitude": f"{lon:.5f}",
            "current": ",".join(CURRENT_VARIABLES),
            "hourly": ",".join(HOURLY_VARIABLES),
            "daily": ",".join(DAILY_VARIABLES),
            "timezone": "auto",
        }
        return build_url(self._providers.forecast_url, params)

    def fetch_by_coordinate(self, lat: float, lon: float) -> WeatherSnapshot | None:
        url = self.forecast_url(lat, lon)
        try:
            payload = fetch_json(
                url,
                timeout=self._providers.timeout_seconds,
                user_agent=self._providers.user_agent,
            )
        except ProviderError as exc:
            LOGGER.warning("Forecast request for (%s, %s) failed: %s", lat, lon, exc)
            return None

        location_name = self.resolve_place_name(lat, lon)
        return normalize_forecast(payload, lat, lon, location_name=location_name)

    def fetch_for_location(self, location: Location) -> WeatherSnapshot | None:
        snapshot = self.fetch_by_coordinate(location.latitude, location.longitude)
        if snapshot is None:
            return None
        return snapshot.model_copy(
            update={
                "location_name": location.name,
                "country": location.country or "",
            }
        )

    def fetch_by_query(self, text: str) -> WeatherSnapshot | None:
        locations = self.search_locations(text)
        if not locations:
            LOGGER.info("No locations found for query %r", text)
            return None
        return self.fetch_for_location(locations[0])

    def search_locations(self, text: str) -> list[Location] | None:
        query = text.strip()
        if not query:
            return []
        try:
            return request_locations(query, providers=self._providers, search=self._search)
        except ProviderError as exc:
            LOGGER.warning("Location search for %r failed: %s", query, exc)
            return None

    def resolve_place_name(self, lat: float, lon: float) -> str:
        try:
            name = request_place_name(lat, lon, providers=self._providers)
        except ProviderError as exc:
            LOGGER.warning("Reverse geocoding for (%s, %s) failed: %s", lat, lon, exc)
            name = None
        return name or fallback_place_name(lat, lon)
