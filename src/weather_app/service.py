from __future__ import annotations

import logging
from datetime import datetime, timedelta

from .adapters.weather.base import WeatherAdapter
from .adapters.weather.open_meteo import OpenMeteoWeatherAdapter
from .domain.models import FavoriteLocation, Location, WeatherReport, WeatherSnapshot
from .settings import AppSettings
from .storage.cache import WeatherCache
from .storage.favorites import FavoritesRepository
from .storage.history import SearchHistoryStore
from .storage.preferences import PreferencesStore
from .storage.timestamps import utc_now

LOGGER = logging.getLogger(__name__)


class WeatherService:
    """Cache-first weather lookups plus the favorites workflows built on them.

    Concurrent calls for the same place are not coalesced: each may miss the
    cache, fetch, and write its own entry.
    """

    def __init__(
        self,
        *,
        adapter: WeatherAdapter,
        cache: WeatherCache,
        favorites: FavoritesRepository,
        history: SearchHistoryStore | None = None,
    ) -> None:
        self._adapter = adapter
        self._cache = cache
        self._favorites = favorites
        self._history = history

    @property
    def favorites(self) -> FavoritesRepository:
        return self._favorites

    @property
    def history(self) -> SearchHistoryStore | None:
        return self._history

    def _report(self, snapshot: WeatherSnapshot, *, from_cache: bool) -> WeatherReport:
        favorite = self._favorites.find_by_coordinate(snapshot.latitude, snapshot.longitude)
        return WeatherReport(snapshot=snapshot, is_favorite=favorite is not None, from_cache=from_cache)

    def _store(self, snapshot: WeatherSnapshot, *, pointer: tuple[float, float] | None = None) -> None:
        self._cache.put(snapshot)
        lat, lon = pointer or (snapshot.latitude, snapshot.longitude)
        self._cache.save_last_viewed(lat, lon)

    def weather_for_coordinate(
        self,
        lat: float,
        lon: float,
        *,
        force_refresh: bool = False,
    ) -> WeatherReport | None:
        if not force_refresh:
            cached = self._cache.get(lat, lon)
            if cached is not None:
                return self._report(cached, from_cache=True)

        snapshot = self._adapter.fetch_by_coordinate(lat, lon)
        if snapshot is None:
            return None

        self._store(snapshot, pointer=(lat, lon))
        return self._report(snapshot, from_cache=False)

    def search_locations(self, text: str) -> list[Location] | None:
        locations = self._adapter.search_locations(text)
        if self._history is not None and text.strip():
            self._history.record(text, selected=locations[0] if locations else None)
        return locations

    def weather_for_query(self, text: str) -> WeatherReport | None:
        locations = self.search_locations(text)
        if not locations:
            return None

        location = locations[0]
        cached = self._cache.get(location.latitude, location.longitude)
        if cached is not None:
            return self._report(cached, from_cache=True)

        snapshot = self._adapter.fetch_for_location(location)
        if snapshot is None:
            return None

        self._store(snapshot)
        return self._report(snapshot, from_cache=False)

    def last_viewed(self) -> WeatherReport | None:
        snapshot = self._cache.get_last_viewed()
        if snapshot is None:
            return None
        return self._report(snapshot, from_cache=True)

    def toggle_favorite(self, lat: float, lon: float) -> FavoriteLocation | None:
        """Remove the saved place near ``(lat, lon)`` or save it; returns the new favorite."""
        existing = self._favorites.find_by_coordinate(lat, lon)
        if existing is not None and existing.id is not None:
            self._favorites.remove(existing.id)
            LOGGER.info("Removed favorite %s (%s)", existing.id, existing.name)
            return None

        snapshot = self._cache.get(lat, lon)
        if snapshot is None:
            snapshot = self._adapter.fetch_by_coordinate(lat, lon)
            if snapshot is None:
                return None
            self._cache.put(snapshot)

        current = snapshot.current
        favorite = self._favorites.add(
            FavoriteLocation(
                name=snapshot.location_name or "Unknown",
                country=snapshot.country or None,
                latitude=snapshot.latitude,
                longitude=snapshot.longitude,
                added_at=utc_now(),
                last_known_temperature=current.temperature if current else None,
                last_known_condition=current.condition if current else None,
            )
        )
        LOGGER.info("Added favorite %s (%s)", favorite.id, favorite.name)
        return favorite

    def select_favorite(self, favorite_id: int) -> WeatherReport | None:
        favorite = self._favorites.get(favorite_id)
        if favorite is None:
            return None
        self._favorites.record_access(favorite_id)
        return self.weather_for_coordinate(favorite.latitude, favorite.longitude)

    def _refresh_last_known(self, favorite: FavoriteLocation) -> bool:
        if favorite.id is None:
            return False

        snapshot = self._adapter.fetch_by_coordinate(favorite.latitude, favorite.longitude)
        if snapshot is None or snapshot.current is None:
            return False

        # Only the denormalized summary fields are patched; the snapshot goes to the cache whole.
        self._favorites.update_last_known(
            favorite.id,
            temperature=snapshot.current.temperature,
            condition=snapshot.current.condition,
        )
        self._cache.put(snapshot)
        return True

    def refresh_favorite(self, favorite_id: int) -> FavoriteLocation | None:
        favorite = self._favorites.get(favorite_id)
        if favorite is None:
            return None
        if not self._refresh_last_known(favorite):
            return favorite
        return self._favorites.get(favorite_id)

    def refresh_all_favorites(self) -> int:
        return sum(1 for favorite in self._favorites.list() if self._refresh_last_known(favorite))

    def cache_status(self, *, now: datetime | None = None) -> dict[str, int]:
        entries = self._cache.list_entries()
        stale = sum(1 for entry in entries if entry.is_stale(now))
        return {
            "entries": len(entries),
            "stale": stale,
            "fresh": len(entries) - stale,
            "capacity": self._cache.capacity,
        }


def build_weather_service(settings: AppSettings) -> WeatherService:
    adapter = OpenMeteoWeatherAdapter(
        providers=settings.yaml.providers,
        search=settings.yaml.search,
    )
    cache = WeatherCache(
        settings.db_path,
        preferences=PreferencesStore(settings.db_path),
        ttl=timedelta(minutes=settings.yaml.cache.ttl_minutes),
        capacity=settings.yaml.cache.capacity,
    )
    return WeatherService(
        adapter=adapter,
        cache=cache,
        favorites=FavoritesRepository(settings.db_path),
        history=SearchHistoryStore(settings.db_path),
    )
