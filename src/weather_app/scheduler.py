from __future__ import annotations

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler

from .service import WeatherService
from .settings import AppSettings

LOGGER = logging.getLogger(__name__)

FAVORITES_REFRESH_JOB_ID = "favorites_refresh_job"


def run_favorites_refresh_job(service: WeatherService) -> int:
    refreshed_at = datetime.now(timezone.utc)
    try:
        refreshed = service.refresh_all_favorites()
    except Exception:  # pragma: no cover - defensive fallback
        LOGGER.exception("Favorites refresh job failed")
        return 0

    LOGGER.info("Favorites refresh job updated %d favorite(s) at %s", refreshed, refreshed_at)
    return refreshed


def build_scheduler(settings: AppSettings, service: WeatherService) -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone=settings.timezone)
    if not settings.yaml.refresh.enabled:
        return scheduler

    scheduler.add_job(
        run_favorites_refresh_job,
        "interval",
        kwargs={"service": service},
        minutes=settings.yaml.refresh.favorites_interval_minutes,
        jitter=settings.yaml.refresh.jitter_seconds,
        id=FAVORITES_REFRESH_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=120,
    )
    return scheduler
