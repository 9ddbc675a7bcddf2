from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Query, Request, Response
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .domain.models import FavoriteLocation, Location, SearchRecord, WeatherReport
from .scheduler import build_scheduler
from .service import WeatherService, build_weather_service
from .settings import AppSettings, load_settings
from .storage.db import initialize_database
from .storage.timestamps import utc_now


def _validate_favorite_name(value: str) -> str:
    text = value.strip()
    if not text:
        raise ValueError("name must not be empty")
    return text


class FavoriteCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    region: str | None = None
    country: str | None = None
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _validate_favorite_name(value)


class FavoriteRename(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    region: str | None = None
    country: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _validate_favorite_name(value)


class ToggleResult(BaseModel):
    is_favorite: bool
    favorite: FavoriteLocation | None = None


def _get_service(request: Request) -> WeatherService:
    return request.app.state.service


def _get_favorite_or_404(service: WeatherService, favorite_id: int) -> FavoriteLocation:
    favorite = service.favorites.get(favorite_id)
    if favorite is None:
        raise HTTPException(status_code=404, detail="Favorite not found")
    return favorite


def create_app(
    settings: AppSettings | None = None,
    *,
    service: WeatherService | None = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(application: FastAPI):
        app_settings = settings or load_settings()
        initialize_database(app_settings.db_path)
        weather_service = service or build_weather_service(app_settings)
        scheduler = build_scheduler(app_settings, weather_service)
        scheduler.start()

        application.state.settings = app_settings
        application.state.service = weather_service
        application.state.scheduler = scheduler
        application.state.started_at_utc = datetime.now(timezone.utc)

        try:
            yield
        finally:
            if scheduler.running:
                scheduler.shutdown(wait=False)

    application = FastAPI(title="Weather", version="0.1.0", lifespan=lifespan)

    @application.get("/health")
    def health(request: Request) -> dict:
        app_settings: AppSettings = request.app.state.settings
        weather_service = _get_service(request)
        return {
            "status": "ok",
            "service": "weather-app",
            "environment": app_settings.env.weather_env,
            "timezone": app_settings.env.weather_timezone,
            "scheduler_running": request.app.state.scheduler.running,
            "cache": weather_service.cache_status(),
            "favorites": weather_service.favorites.count(),
            "started_at_utc": request.app.state.started_at_utc.isoformat(),
            "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        }

    @application.get("/weather", response_model=WeatherReport)
    def weather_by_coordinate(
        request: Request,
        lat: float = Query(ge=-90, le=90),
        lon: float = Query(ge=-180, le=180),
        refresh: bool = False,
    ) -> WeatherReport:
        report = _get_service(request).weather_for_coordinate(lat, lon, force_refresh=refresh)
        if report is None:
            raise HTTPException(status_code=502, detail="Unable to fetch weather data. Please try again.")
        return report

    @application.get("/weather/search", response_model=WeatherReport)
    def weather_by_query(request: Request, q: str = Query(min_length=1, max_length=200)) -> WeatherReport:
        report = _get_service(request).weather_for_query(q)
        if report is None:
            raise HTTPException(status_code=404, detail="Location not found. Please try a different search.")
        return report

    @application.get("/weather/last", response_model=WeatherReport)
    def last_viewed_weather(request: Request) -> WeatherReport:
        report = _get_service(request).last_viewed()
        if report is None:
            raise HTTPException(status_code=404, detail="No recent weather available")
        return report

    @application.get("/locations", response_model=list[Location])
    def search_locations(request: Request, q: str = Query(min_length=1, max_length=200)) -> list[Location]:
        locations = _get_service(request).search_locations(q)
        if locations is None:
            raise HTTPException(status_code=502, detail="Location search failed. Please try again.")
        return locations

    @application.get("/searches", response_model=list[SearchRecord])
    def recent_searches(request: Request, limit: int = Query(default=10, ge=1, le=100)) -> list[SearchRecord]:
        history = _get_service(request).history
        if history is None:
            return []
        return history.recent(limit)

    @application.get("/favorites", response_model=list[FavoriteLocation])
    def list_favorites(request: Request) -> list[FavoriteLocation]:
        return _get_service(request).favorites.list()

    @application.post("/favorites", response_model=FavoriteLocation, status_code=201)
    def add_favorite(request: Request, body: FavoriteCreate) -> FavoriteLocation:
        return _get_service(request).favorites.add(
            FavoriteLocation(
                name=body.name,
                region=body.region,
                country=body.country,
                latitude=body.latitude,
                longitude=body.longitude,
                added_at=utc_now(),
            )
        )

    @application.post("/favorites/toggle", response_model=ToggleResult)
    def toggle_favorite(
        request: Request,
        lat: float = Query(ge=-90, le=90),
        lon: float = Query(ge=-180, le=180),
    ) -> ToggleResult:
        weather_service = _get_service(request)
        was_favorite = weather_service.favorites.find_by_coordinate(lat, lon) is not None
        favorite = weather_service.toggle_favorite(lat, lon)
        if not was_favorite and favorite is None:
            raise HTTPException(status_code=502, detail="Unable to fetch weather data. Please try again.")
        return ToggleResult(is_favorite=favorite is not None, favorite=favorite)

    @application.get("/favorites/{favorite_id}", response_model=FavoriteLocation)
    def get_favorite(request: Request, favorite_id: int) -> FavoriteLocation:
        return _get_favorite_or_404(_get_service(request), favorite_id)

    @application.put("/favorites/{favorite_id}", response_model=FavoriteLocation)
    def rename_favorite(request: Request, favorite_id: int, body: FavoriteRename) -> FavoriteLocation:
        weather_service = _get_service(request)
        favorite = _get_favorite_or_404(weather_service, favorite_id)
        updated = FavoriteLocation.model_validate(
            {
                **favorite.model_dump(),
                "name": body.name,
                "region": body.region,
                "country": body.country,
            }
        )
        weather_service.favorites.update(updated)
        return weather_service.favorites.get(favorite_id) or updated

    @application.delete("/favorites/{favorite_id}", status_code=204)
    def remove_favorite(request: Request, favorite_id: int) -> Response:
        _get_service(request).favorites.remove(favorite_id)
        return Response(status_code=204)

    @application.post("/favorites/{favorite_id}/access", status_code=204)
    def record_favorite_access(request: Request, favorite_id: int) -> Response:
        _get_service(request).favorites.record_access(favorite_id)
        return Response(status_code=204)

    @application.post("/favorites/{favorite_id}/select", response_model=WeatherReport)
    def select_favorite(request: Request, favorite_id: int) -> WeatherReport:
        weather_service = _get_service(request)
        _get_favorite_or_404(weather_service, favorite_id)
        report = weather_service.select_favorite(favorite_id)
        if report is None:
            raise HTTPException(status_code=502, detail="Unable to fetch weather data. Please try again.")
        return report

    @application.post("/favorites/{favorite_id}/refresh", response_model=FavoriteLocation)
    def refresh_favorite(request: Request, favorite_id: int) -> FavoriteLocation:
        favorite = _get_service(request).refresh_favorite(favorite_id)
        if favorite is None:
            raise HTTPException(status_code=404, detail="Favorite not found")
        return favorite

    return application


app = create_app()
