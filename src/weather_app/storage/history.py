from __future__ import annotations

from datetime import datetime
from pathlib import Path

from ..domain.models import Location, SearchRecord
from .db import open_db
from .timestamps import format_datetime, normalize_datetime, parse_datetime, utc_now


class SearchHistoryStore:
    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)

    def record(
        self,
        query: str,
        *,
        selected: Location | None = None,
        searched_at: datetime | None = None,
    ) -> SearchRecord:
        record = SearchRecord(
            query=query.strip()[:200],
            searched_at=normalize_datetime(searched_at) if searched_at is not None else utc_now(),
            selected_location_name=selected.name if selected else None,
            selected_latitude=selected.latitude if selected else None,
            selected_longitude=selected.longitude if selected else None,
        )
        with open_db(self._db_path) as connection:
            cursor = connection.execute(
                """
                INSERT INTO search_history (
                    query, searched_at, selected_location_name, selected_latitude, selected_longitude
                )
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    record.query,
                    format_datetime(record.searched_at),
                    record.selected_location_name,
                    record.selected_latitude,
                    record.selected_longitude,
                ),
            )
            connection.commit()
            new_id = cursor.lastrowid
        return record.model_copy(update={"id": new_id})

    def recent(self, limit: int = 10) -> list[SearchRecord]:
        with open_db(self._db_path) as connection:
            rows = connection.execute(
                """
                SELECT id, query, searched_at, selected_location_name,
                       selected_latitude, selected_longitude
                FROM search_history
                ORDER BY searched_at DESC, id DESC
                LIMIT ?
                """,
                (max(limit, 0),),
            ).fetchall()

        return [
            SearchRecord(
                id=int(row["id"]),
                query=row["query"],
                searched_at=parse_datetime(row["searched_at"]),
                selected_location_name=row["selected_location_name"],
                selected_latitude=row["selected_latitude"],
                selected_longitude=row["selected_longitude"],
            )
            for row in rows
        ]
