from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_datetime(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_datetime(value: datetime) -> str:
    # Fixed-width so that lexical order in sqlite matches chronological order.
    return normalize_datetime(value).isoformat(timespec="microseconds")


def parse_datetime(value: str) -> datetime:
    return normalize_datetime(datetime.fromisoformat(value))


def parse_optional_datetime(value: str | None) -> datetime | None:
    if value is None:
        return None
    return parse_datetime(value)
