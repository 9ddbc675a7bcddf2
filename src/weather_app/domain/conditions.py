from __future__ import annotations

from typing import Any

# WMO weather interpretation codes mapped to a label and an OpenWeatherMap-style icon id.
WEATHER_CODE_CONDITIONS: dict[int, tuple[str, str]] = {
    0: ("Clear sky", "01d"),
    1: ("Mainly clear", "02d"),
    2: ("Partly cloudy", "03d"),
    3: ("Overcast", "04d"),
    45: ("Foggy", "50d"),
    48: ("Foggy", "50d"),
    51: ("Drizzle", "09d"),
    53: ("Drizzle", "09d"),
    55: ("Drizzle", "09d"),
    61: ("Rain", "10d"),
    63: ("Rain", "10d"),
    65: ("Rain", "10d"),
    71: ("Snow", "13d"),
    73: ("Snow", "13d"),
    75: ("Snow", "13d"),
    77: ("Snow grains", "13d"),
    80: ("Rain showers", "09d"),
    81: ("Rain showers", "09d"),
    82: ("Rain showers", "09d"),
    85: ("Snow showers", "13d"),
    86: ("Snow showers", "13d"),
    95: ("Thunderstorm", "11d"),
    96: ("Thunderstorm with hail", "11d"),
    99: ("Thunderstorm with hail", "11d"),
}

UNKNOWN_CONDITION = ("Unknown", "01d")


def describe_condition(code: Any) -> tuple[str, str]:
    """Return ``(label, icon)`` for a weather code, or the unknown pair."""
    if isinstance(code, bool):
        return UNKNOWN_CONDITION
    try:
        normalized = int(code)
    except (TypeError, ValueError):
        return UNKNOWN_CONDITION
    if normalized != code and not isinstance(code, str):
        return UNKNOWN_CONDITION
    return WEATHER_CODE_CONDITIONS.get(normalized, UNKNOWN_CONDITION)
