from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

from ..domain.geo import bounding_box, within_tolerance
from ..domain.models import FavoriteLocation
from .db import open_db
from .timestamps import format_datetime, normalize_datetime, parse_datetime, parse_optional_datetime, utc_now

_FAVORITE_COLUMNS = (
    "id, name, region, country, latitude, longitude, added_at, last_accessed_at, "
    "access_count, last_known_temperature, last_known_condition"
)


def _favorite_from_row(row: sqlite3.Row) -> FavoriteLocation:
    return FavoriteLocation(
        id=int(row["id"]),
        name=row["name"],
        region=row["region"],
        country=row["country"],
        latitude=float(row["latitude"]),
        longitude=float(row["longitude"]),
        added_at=parse_datetime(row["added_at"]),
        last_accessed_at=parse_optional_datetime(row["last_accessed_at"]),
        access_count=int(row["access_count"]),
        last_known_temperature=row["last_known_temperature"],
        last_known_condition=row["last_known_condition"],
    )


def _optional_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    return format_datetime(value)


class FavoritesRepository:
    """Saved locations. Missing ids are ignored by every mutating call."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)

    def list(self) -> list[FavoriteLocation]:
        with open_db(self._db_path) as connection:
            rows = connection.execute(
                f"""
                SELECT {_FAVORITE_COLUMNS} FROM favorite_locations
                ORDER BY COALESCE(last_accessed_at, added_at) DESC, id DESC
                """
            ).fetchall()
        return [_favorite_from_row(row) for row in rows]

    def get(self, favorite_id: int) -> FavoriteLocation | None:
        with open_db(self._db_path) as connection:
            row = connection.execute(
                f"SELECT {_FAVORITE_COLUMNS} FROM favorite_locations WHERE id = ?",
                (favorite_id,),
            ).fetchone()
        if row is None:
            return None
        return _favorite_from_row(row)

    def find_by_coordinate(self, lat: float, lon: float) -> FavoriteLocation | None:
        min_lat, max_lat, min_lon, max_lon = bounding_box(lat, lon)
        with open_db(self._db_path) as connection:
            rows = connection.execute(
                f"""
                SELECT {_FAVORITE_COLUMNS} FROM favorite_locations
                WHERE latitude BETWEEN ? AND ? AND longitude BETWEEN ? AND ?
                ORDER BY id ASC
                """,
                (min_lat, max_lat, min_lon, max_lon),
            ).fetchall()

        for row in rows:
            if within_tolerance(row["latitude"], row["longitude"], lat, lon):
                return _favorite_from_row(row)
        return None

    def add(self, favorite: FavoriteLocation) -> FavoriteLocation:
        with open_db(self._db_path) as connection:
            cursor = connection.execute(
                """
                INSERT INTO favorite_locations (
                    name, region, country, latitude, longitude, added_at,
                    last_accessed_at, access_count, last_known_temperature, last_known_condition
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    favorite.name,
                    favorite.region,
                    favorite.country,
                    favorite.latitude,
                    favorite.longitude,
                    format_datetime(favorite.added_at),
                    _optional_timestamp(favorite.last_accessed_at),
                    favorite.access_count,
                    favorite.last_known_temperature,
                    favorite.last_known_condition,
                ),
            )
            connection.commit()
            new_id = cursor.lastrowid
        return favorite.model_copy(update={"id": new_id})

    def update(self, favorite: FavoriteLocation) -> None:
        """Rewrite a saved favorite. Access bookkeeping only changes through ``record_access``."""
        if favorite.id is None:
            return
        with open_db(self._db_path) as connection:
            connection.execute(
                """
                UPDATE favorite_locations SET
                    name = ?, region = ?, country = ?, latitude = ?, longitude = ?,
                    added_at = ?, last_known_temperature = ?, last_known_condition = ?
                WHERE id = ?
                """,
                (
                    favorite.name,
                    favorite.region,
                    favorite.country,
                    favorite.latitude,
                    favorite.longitude,
                    format_datetime(favorite.added_at),
                    favorite.last_known_temperature,
                    favorite.last_known_condition,
                    favorite.id,
                ),
            )
            connection.commit()

    def update_last_known(self, favorite_id: int, *, temperature: float, condition: str) -> None:
        with open_db(self._db_path) as connection:
            connection.execute(
                """
                UPDATE favorite_locations
                SET last_known_temperature = ?, last_known_condition = ?
                WHERE id = ?
                """,
                (temperature, condition, favorite_id),
            )
            connection.commit()

    def remove(self, favorite_id: int) -> None:
        with open_db(self._db_path) as connection:
            connection.execute("DELETE FROM favorite_locations WHERE id = ?", (favorite_id,))
            connection.commit()

    def record_access(self, favorite_id: int, *, now: datetime | None = None) -> None:
        reference = normalize_datetime(now) if now is not None else utc_now()
        with open_db(self._db_path) as connection:
            connection.execute(
                """
                UPDATE favorite_locations
                SET last_accessed_at = ?, access_count = access_count + 1
                WHERE id = ?
                """,
                (format_datetime(reference), favorite_id),
            )
            connection.commit()

    def count(self) -> int:
        with open_db(self._db_path) as connection:
            row = connection.execute("SELECT COUNT(*) AS total FROM favorite_locations").fetchone()
        return int(row["total"])
