from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path

from pydantic import ValidationError

from ..domain.geo import bounding_box, within_tolerance
from ..domain.models import WeatherSnapshot
from .db import open_db
from .preferences import PreferencesStore
from .timestamps import format_datetime, normalize_datetime, parse_datetime, utc_now

LOGGER = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = timedelta(minutes=10)
DEFAULT_CACHE_CAPACITY = 50

_ENTRY_COLUMNS = (
    "id, latitude, longitude, location_name, fetched_at, json, "
    "temperature, feels_like, humidity, wind_speed, condition"
)


@dataclass(slots=True)
class CacheEntry:
    id: int
    latitude: float
    longitude: float
    location_name: str
    fetched_at: datetime
    payload: str
    temperature: float
    feels_like: float
    humidity: int
    wind_speed: float
    condition: str | None
    ttl: timedelta = DEFAULT_CACHE_TTL

    def is_stale(self, now: datetime | None = None) -> bool:
        reference = normalize_datetime(now) if now is not None else utc_now()
        return reference - self.fetched_at > self.ttl

    def to_snapshot(self) -> WeatherSnapshot:
        return WeatherSnapshot.model_validate_json(self.payload)


def _entry_from_row(row: sqlite3.Row, ttl: timedelta) -> CacheEntry:
    return CacheEntry(
        id=int(row["id"]),
        latitude=float(row["latitude"]),
        longitude=float(row["longitude"]),
        location_name=str(row["location_name"]),
        fetched_at=parse_datetime(row["fetched_at"]),
        payload=str(row["json"]),
        temperature=float(row["temperature"]),
        feels_like=float(row["feels_like"]),
        humidity=int(row["humidity"]),
        wind_speed=float(row["wind_speed"]),
        condition=row["condition"],
        ttl=ttl,
    )


class WeatherCache:
    """Weather snapshots keyed by approximate position.

    Lookups return the newest entry within the coordinate tolerance. Entries within
    tolerance of each other are not merged, so independent writes for nearby points
    can leave near-duplicates behind until capacity pruning removes them.
    """

    def __init__(
        self,
        db_path: Path,
        *,
        preferences: PreferencesStore | None = None,
        ttl: timedelta = DEFAULT_CACHE_TTL,
        capacity: int = DEFAULT_CACHE_CAPACITY,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._db_path = Path(db_path)
        self._preferences = preferences or PreferencesStore(self._db_path)
        self._ttl = ttl
        self._capacity = capacity

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def capacity(self) -> int:
        return self._capacity

    def get_entry(self, lat: float, lon: float) -> CacheEntry | None:
        min_lat, max_lat, min_lon, max_lon = bounding_box(lat, lon)
        with open_db(self._db_path) as connection:
            rows = connection.execute(
                f"""
                SELECT {_ENTRY_COLUMNS} FROM weather_cache
                WHERE latitude BETWEEN ? AND ? AND longitude BETWEEN ? AND ?
                ORDER BY fetched_at DESC, id DESC
                """,
                (min_lat, max_lat, min_lon, max_lon),
            ).fetchall()

        for row in rows:
            if within_tolerance(row["latitude"], row["longitude"], lat, lon):
                return _entry_from_row(row, self._ttl)
        return None

    def get(self, lat: float, lon: float, *, now: datetime | None = None) -> WeatherSnapshot | None:
        entry = self.get_entry(lat, lon)
        if entry is None or entry.is_stale(now):
            return None

        try:
            return entry.to_snapshot()
        except ValidationError:
            LOGGER.warning("Discarding unreadable cache entry %s for (%s, %s)", entry.id, lat, lon)
            return None

    def put(self, snapshot: WeatherSnapshot, *, fetched_at: datetime | None = None) -> None:
        record_time = normalize_datetime(fetched_at) if fetched_at is not None else utc_now()
        current = snapshot.current

        with open_db(self._db_path) as connection:
            connection.execute(
                """
                INSERT INTO weather_cache (
                    latitude, longitude, location_name, fetched_at, json,
                    temperature, feels_like, humidity, wind_speed, condition
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    snapshot.latitude,
                    snapshot.longitude,
                    snapshot.location_name or "Unknown",
                    format_datetime(record_time),
                    snapshot.model_dump_json(),
                    current.temperature if current else 0,
                    current.feels_like if current else 0,
                    current.humidity if current else 0,
                    current.wind_speed if current else 0,
                    current.condition if current else "Unknown",
                ),
            )
            pruned = connection.execute(
                """
                DELETE FROM weather_cache WHERE id NOT IN (
                    SELECT id FROM weather_cache
                    ORDER BY fetched_at DESC, id DESC
                    LIMIT ?
                )
                """,
                (self._capacity,),
            ).rowcount
            connection.commit()

        if pruned:
            LOGGER.debug("Pruned %d cache entries beyond capacity %d", pruned, self._capacity)

    def count(self) -> int:
        with open_db(self._db_path) as connection:
            row = connection.execute("SELECT COUNT(*) AS total FROM weather_cache").fetchone()
        return int(row["total"])

    def list_entries(self) -> list[CacheEntry]:
        with open_db(self._db_path) as connection:
            rows = connection.execute(
                f"SELECT {_ENTRY_COLUMNS} FROM weather_cache ORDER BY fetched_at DESC, id DESC"
            ).fetchall()
        return [_entry_from_row(row, self._ttl) for row in rows]

    def get_last_viewed(self, *, now: datetime | None = None) -> WeatherSnapshot | None:
        pointer = self._preferences.get_last_location()
        if pointer is None:
            return None
        lat, lon = pointer
        return self.get(lat, lon, now=now)

    def save_last_viewed(self, lat: float, lon: float) -> None:
        self._preferences.set_last_location(lat, lon)
