from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _validate_http_url(value: str, *, field_name: str) -> str:
    text = value.strip()
    parsed = urlparse(text)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"{field_name} must be an absolute http(s) URL")
    return text


class ProviderSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    forecast_url: str = "https://api.open-meteo.com/v1/forecast"
    geocoding_url: str = "https://geocoding-api.open-meteo.com/v1/search"
    reverse_geocoding_url: str = "https://nominatim.openstreetmap.org/reverse"
    timeout_seconds: float = Field(default=10, gt=0, le=60)
    user_agent: str = "weather-app/0.1"

    @field_validator("forecast_url")
    @classmethod
    def validate_forecast_url(cls, value: str) -> str:
        return _validate_http_url(value, field_name="providers.forecast_url")

    @field_validator("geocoding_url")
    @classmethod
    def validate_geocoding_url(cls, value: str) -> str:
        return _validate_http_url(value, field_name="providers.geocoding_url")

    @field_validator("reverse_geocoding_url")
    @classmethod
    def validate_reverse_geocoding_url(cls, value: str) -> str:
        return _validate_http_url(value, field_name="providers.reverse_geocoding_url")

    @field_validator("user_agent")
    @classmethod
    def validate_user_agent(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("providers.user_agent must not be empty")
        return text


class SearchSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    result_count: int = Field(default=5, ge=1, le=100)
    language: str = "en"


class CacheSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ttl_minutes: int = Field(default=10, ge=1, le=24 * 60)
    capacity: int = Field(default=50, ge=1, le=10_000)


class RefreshSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    enabled: bool = True
    favorites_interval_minutes: int = Field(default=30, ge=1, le=24 * 60)
    jitter_seconds: int = Field(default=15, ge=0, le=300)


class WeatherYamlSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    providers: ProviderSettings = Field(default_factory=ProviderSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    refresh: RefreshSettings = Field(default_factory=RefreshSettings)


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    weather_env: Literal["dev", "test", "prod"] = "dev"
    weather_timezone: str = "UTC"
    weather_config_path: Path = Path("config/weather.yaml")
    weather_db_path: Path = Path("data/weather.db")

    @field_validator("weather_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except ZoneInfoNotFoundError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value


class AppSettings(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    env: EnvSettings
    yaml: WeatherYamlSettings
    project_root: Path
    config_path: Path
    db_path: Path
    timezone: ZoneInfo


def _resolve_project_path(path: Path) -> Path:
    if path.is_absolute():
        return path
    return (PROJECT_ROOT / path).resolve()


def _load_yaml_settings(path: Path) -> WeatherYamlSettings:
    if not path.exists():
        raise FileNotFoundError(f"Weather config file not found: {path}")

    raw_config = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ValueError("Weather config must be a YAML mapping/object at the top level")
    return WeatherYamlSettings.model_validate(raw_config)


def build_settings(env: EnvSettings) -> AppSettings:
    config_path = _resolve_project_path(env.weather_config_path)
    return AppSettings(
        env=env,
        yaml=_load_yaml_settings(config_path),
        project_root=PROJECT_ROOT,
        config_path=config_path,
        db_path=_resolve_project_path(env.weather_db_path),
        timezone=ZoneInfo(env.weather_timezone),
    )


@lru_cache(maxsize=1)
def load_settings() -> AppSettings:
    return build_settings(EnvSettings())
