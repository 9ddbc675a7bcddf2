from __future__ import annotations

import datetime as dt
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Coordinate(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class Location(BaseModel):
    """A geocoding match for a free-text place query."""

    model_config = ConfigDict(extra="ignore")

    name: str = "Unknown"
    region: str | None = None
    country: str | None = None
    latitude: float = 0
    longitude: float = 0
    timezone: str | None = None

    @property
    def display_name(self) -> str:
        if self.region:
            return f"{self.name}, {self.region}, {self.country}"
        return f"{self.name}, {self.country}"


class CurrentConditions(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    temperature: float = 0
    feels_like: float = 0
    humidity: int = 0
    wind_speed: float = 0
    wind_direction_degrees: int = 0
    pressure: float = 1013
    cloud_cover: int = 0
    visibility: float = 10
    condition: str = "Unknown"
    condition_icon: str = "01d"
    observed_at: datetime
    sunrise: datetime
    sunset: datetime


class HourlyPoint(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    time: datetime | None = None
    temperature: float = 0
    feels_like: float = 0
    humidity: int = 0
    wind_speed: float = 0
    chance_of_rain: int = 0
    precipitation: float = 0
    condition: str = "Unknown"
    condition_icon: str = "01d"


class DailyPoint(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    date: dt.date | None = None
    max_temperature: float = 0
    min_temperature: float = 0
    avg_temperature: float = 0
    condition: str = "Unknown"
    condition_icon: str = "01d"
    chance_of_rain: int = 0
    total_precipitation: float = 0
    max_wind_speed: float = 0
    avg_humidity: float = 0
    sunrise: datetime | None = None
    sunset: datetime | None = None


class WeatherSnapshot(BaseModel):
    """Normalized weather for one coordinate.

    Snapshots are never patched in place. A refresh produces a new snapshot and
    callers that need a different display name use ``model_copy(update=...)``.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    location_name: str
    country: str = ""
    coordinate: Coordinate
    current: CurrentConditions | None = None
    hourly: tuple[HourlyPoint, ...] = ()
    daily: tuple[DailyPoint, ...] = ()
    last_updated: datetime

    @property
    def latitude(self) -> float:
        return self.coordinate.latitude

    @property
    def longitude(self) -> float:
        return self.coordinate.longitude


class FavoriteLocation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    name: str
    region: str | None = None
    country: str | None = None
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    added_at: datetime
    last_accessed_at: datetime | None = None
    access_count: int = Field(default=0, ge=0)
    last_known_temperature: float | None = None
    last_known_condition: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("favorite location name must not be empty")
        return text[:200]


class SearchRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    query: str
    searched_at: datetime
    selected_location_name: str | None = None
    selected_latitude: float | None = None
    selected_longitude: float | None = None


class WeatherReport(BaseModel):
    model_config = ConfigDict(extra="ignore")

    snapshot: WeatherSnapshot
    is_favorite: bool = False
    from_cache: bool = False
