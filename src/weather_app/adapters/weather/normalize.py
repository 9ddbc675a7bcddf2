"""Turn Open-Meteo forecast payloads into :class:`WeatherSnapshot` objects.

The provider returns each time series as a ``time`` array plus parallel value
arrays. Every value is read on its own: a missing array, a short array, a
``null`` or a non-numeric entry yields that field's default instead of failing
the whole payload. Numeric defaults are zero (pressure 1013 hPa, visibility
10 km), so a missing reading is indistinguishable from an observed zero.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Callable, Mapping, TypeVar

from ...domain.conditions import describe_condition
from ...domain.models import (
    Coordinate,
    CurrentConditions,
    DailyPoint,
    HourlyPoint,
    WeatherSnapshot,
)

LOGGER = logging.getLogger(__name__)

MAX_HOURLY_POINTS = 24
MAX_DAILY_POINTS = 7

DEFAULT_PRESSURE_HPA = 1013.0
DEFAULT_VISIBILITY_KM = 10.0
DEFAULT_SUNRISE = time(6, 0)
DEFAULT_SUNSET = time(18, 0)

T = TypeVar("T")


def _as_float(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _as_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return default


def _as_datetime(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _as_date(value: Any) -> date | None:
    parsed = _as_datetime(value)
    return parsed.date() if parsed is not None else None


def _block(payload: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    block = payload.get(key)
    return block if isinstance(block, Mapping) else None


def _series(block: Mapping[str, Any], key: str) -> list[Any]:
    values = block.get(key)
    return values if isinstance(values, list) else []


def _at(values: list[Any], index: int, coerce: Callable[[Any], T]) -> T:
    if index < len(values):
        return coerce(values[index])
    return coerce(None)


def _first(values: list[Any]) -> Any:
    return values[0] if values else None


def _parse_current(
    current: Mapping[str, Any],
    daily: Mapping[str, Any] | None,
    *,
    reference: datetime,
) -> CurrentConditions:
    today = reference.date()
    sunrise = datetime.combine(today, DEFAULT_SUNRISE)
    sunset = datetime.combine(today, DEFAULT_SUNSET)
    if daily is not None:
        sunrise = _as_datetime(_first(_series(daily, "sunrise"))) or sunrise
        sunset = _as_datetime(_first(_series(daily, "sunset"))) or sunset

    condition, icon = describe_condition(_as_int(current.get("weather_code")))
    return CurrentConditions(
        temperature=_as_float(current.get("temperature_2m")),
        feels_like=_as_float(current.get("apparent_temperature")),
        humidity=_as_int(current.get("relative_humidity_2m")),
        wind_speed=_as_float(current.get("wind_speed_10m")),
        wind_direction_degrees=_as_int(current.get("wind_direction_10m")),
        pressure=_as_float(current.get("pressure_msl"), DEFAULT_PRESSURE_HPA),
        cloud_cover=_as_int(current.get("cloud_cover")),
        visibility=_as_float(current.get("visibility"), DEFAULT_VISIBILITY_KM),
        condition=condition,
        condition_icon=icon,
        observed_at=_as_datetime(current.get("time")) or reference,
        sunrise=sunrise,
        sunset=sunset,
    )


def _parse_hourly(hourly: Mapping[str, Any]) -> list[HourlyPoint]:
    times = _series(hourly, "time")
    temperatures = _series(hourly, "temperature_2m")
    feels_like = _series(hourly, "apparent_temperature")
    humidity = _series(hourly, "relative_humidity_2m")
    wind_speed = _series(hourly, "wind_speed_10m")
    precip_prob = _series(hourly, "precipitation_probability")
    precip = _series(hourly, "precipitation")
    weather_codes = _series(hourly, "weather_code")

    points: list[HourlyPoint] = []
    for index in range(min(MAX_HOURLY_POINTS, len(times))):
        condition, icon = describe_condition(_at(weather_codes, index, _as_int))
        points.append(
            HourlyPoint(
                time=_as_datetime(times[index]),
                temperature=_at(temperatures, index, _as_float),
                feels_like=_at(feels_like, index, _as_float),
                humidity=_at(humidity, index, _as_int),
                wind_speed=_at(wind_speed, index, _as_float),
                chance_of_rain=_at(precip_prob, index, _as_int),
                precipitation=_at(precip, index, _as_float),
                condition=condition,
                condition_icon=icon,
            )
        )
    return points


def _parse_daily(daily: Mapping[str, Any]) -> list[DailyPoint]:
    times = _series(daily, "time")
    max_temps = _series(daily, "temperature_2m_max")
    min_temps = _series(daily, "temperature_2m_min")
    precip_sum = _series(daily, "precipitation_sum")
    precip_prob_max = _series(daily, "precipitation_probability_max")
    wind_speed_max = _series(daily, "wind_speed_10m_max")
    weather_codes = _series(daily, "weather_code")
    sunrises = _series(daily, "sunrise")
    sunsets = _series(daily, "sunset")

    points: list[DailyPoint] = []
    for index in range(min(MAX_DAILY_POINTS, len(times))):
        max_temp = _at(max_temps, index, _as_float)
        min_temp = _at(min_temps, index, _as_float)
        condition, icon = describe_condition(_at(weather_codes, index, _as_int))
        points.append(
            DailyPoint(
                date=_as_date(times[index]),
                max_temperature=max_temp,
                min_temperature=min_temp,
                avg_temperature=(max_temp + min_temp) / 2,
                condition=condition,
                condition_icon=icon,
                chance_of_rain=_at(precip_prob_max, index, _as_int),
                total_precipitation=_at(precip_sum, index, _as_float),
                max_wind_speed=_at(wind_speed_max, index, _as_float),
                sunrise=_at(sunrises, index, _as_datetime),
                sunset=_at(sunsets, index, _as_datetime),
            )
        )
    return points


def normalize_forecast(
    payload: Any,
    latitude: float,
    longitude: float,
    *,
    location_name: str,
    country: str = "",
    now: datetime | None = None,
) -> WeatherSnapshot | None:
    """Build a snapshot from a decoded forecast response, or ``None`` if it is unusable."""
    if not isinstance(payload, Mapping):
        LOGGER.warning("Forecast payload was %s, expected an object", type(payload).__name__)
        return None

    # Sun-time defaults are wall-clock hours at the place, so the reference stays naive;
    # last_updated records the fetch instant in UTC.
    reference = now or datetime.now()
    try:
        daily = _block(payload, "daily")
        current_block = _block(payload, "current")
        hourly = _block(payload, "hourly")

        current = None
        if current_block is not None:
            current = _parse_current(current_block, daily, reference=reference)

        return WeatherSnapshot(
            location_name=location_name,
            country=country,
            coordinate=Coordinate(latitude=latitude, longitude=longitude),
            current=current,
            hourly=tuple(_parse_hourly(hourly)) if hourly is not None else (),
            daily=tuple(_parse_daily(daily)) if daily is not None else (),
            last_updated=now or datetime.now(timezone.utc),
        )
    except (TypeError, ValueError, OverflowError):
        LOGGER.exception("Unable to normalize forecast for (%s, %s)", latitude, longitude)
        return None
