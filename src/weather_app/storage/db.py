from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

SCHEMA = """
CREATE TABLE IF NOT EXISTS weather_cache (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    location_name TEXT NOT NULL,
    fetched_at TEXT NOT NULL,
    json TEXT NOT NULL,
    temperature REAL NOT NULL DEFAULT 0,
    feels_like REAL NOT NULL DEFAULT 0,
    humidity INTEGER NOT NULL DEFAULT 0,
    wind_speed REAL NOT NULL DEFAULT 0,
    condition TEXT
);
CREATE INDEX IF NOT EXISTS ix_weather_cache_position
    ON weather_cache (latitude, longitude, fetched_at);
CREATE INDEX IF NOT EXISTS ix_weather_cache_fetched_at
    ON weather_cache (fetched_at);

CREATE TABLE IF NOT EXISTS favorite_locations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    region TEXT,
    country TEXT,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    added_at TEXT NOT NULL,
    last_accessed_at TEXT,
    access_count INTEGER NOT NULL DEFAULT 0 CHECK (access_count >= 0),
    last_known_temperature REAL,
    last_known_condition TEXT
);
CREATE INDEX IF NOT EXISTS ix_favorite_locations_added_at
    ON favorite_locations (added_at);
CREATE INDEX IF NOT EXISTS ix_favorite_locations_position
    ON favorite_locations (latitude, longitude);

CREATE TABLE IF NOT EXISTS search_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    query TEXT NOT NULL,
    searched_at TEXT NOT NULL,
    selected_location_name TEXT,
    selected_latitude REAL,
    selected_longitude REAL
);
CREATE INDEX IF NOT EXISTS ix_search_history_searched_at
    ON search_history (searched_at);

CREATE TABLE IF NOT EXISTS preferences (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


def _prepare_db_path(db_path: Path) -> Path:
    normalized = Path(db_path)
    normalized.parent.mkdir(parents=True, exist_ok=True)
    return normalized


def connect(db_path: Path) -> sqlite3.Connection:
    normalized = _prepare_db_path(db_path)
    connection = sqlite3.connect(normalized, timeout=10)
    connection.row_factory = sqlite3.Row
    connection.execute("PRAGMA journal_mode = WAL;")
    connection.execute("PRAGMA synchronous = NORMAL;")
    return connection


def ensure_schema(connection: sqlite3.Connection) -> None:
    connection.executescript(SCHEMA)
    connection.commit()


@contextmanager
def open_db(db_path: Path) -> Iterator[sqlite3.Connection]:
    connection = connect(db_path)
    try:
        ensure_schema(connection)
        yield connection
    finally:
        connection.close()


def initialize_database(db_path: Path) -> None:
    with open_db(db_path):
        return
