from __future__ import annotations

from pathlib import Path

from .db import open_db

LAST_LOCATION_KEY = "last_location"


class PreferencesStore:
    """Small key/value settings table for scalar user preferences."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)

    def get(self, key: str) -> str | None:
        with open_db(self._db_path) as connection:
            row = connection.execute(
                "SELECT value FROM preferences WHERE key = ?",
                (key,),
            ).fetchone()
        if row is None:
            return None
        return str(row["value"])

    def get_float(self, key: str) -> float | None:
        raw_value = self.get(key)
        if raw_value is None:
            return None
        try:
            return float(raw_value)
        except ValueError:
            return None

    def set(self, key: str, value: str) -> None:
        with open_db(self._db_path) as connection:
            connection.execute(
                """
                INSERT INTO preferences (key, value)
                VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                (key, value),
            )
            connection.commit()

    def get_last_location(self) -> tuple[float, float] | None:
        lat = self.get_float(f"{LAST_LOCATION_KEY}_lat")
        lon = self.get_float(f"{LAST_LOCATION_KEY}_lon")
        if lat is None or lon is None:
            return None
        return lat, lon

    def set_last_location(self, lat: float, lon: float) -> None:
        with open_db(self._db_path) as connection:
            connection.executemany(
                """
                INSERT INTO preferences (key, value)
                VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                (
                    (f"{LAST_LOCATION_KEY}_lat", repr(float(lat))),
                    (f"{LAST_LOCATION_KEY}_lon", repr(float(lon))),
                ),
            )
            connection.commit()
