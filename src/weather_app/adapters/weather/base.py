from __future__ import annotations

from typing import Protocol

from ...domain.models import Location, WeatherSnapshot


class WeatherAdapter(Protocol):
    def fetch_by_coordinate(self, lat: float, lon: float) -> WeatherSnapshot | None:
        """Fetch normalized weather for the provided coordinates."""

    def fetch_by_query(self, text: str) -> WeatherSnapshot | None:
        """Fetch weather for the first geocoding match of ``text``."""

    def fetch_for_location(self, location: Location) -> WeatherSnapshot | None:
        """Fetch weather for an already resolved location, keeping its name."""

    def search_locations(self, text: str) -> list[Location] | None:
        """Return matches for ``text``; ``None`` only when the search itself failed."""
