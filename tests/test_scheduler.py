from __future__ import annotations

from conftest import make_snapshot

from weather_app.scheduler import FAVORITES_REFRESH_JOB_ID, build_scheduler, run_favorites_refresh_job


def test_scheduler_has_no_job_when_refresh_disabled(app_settings, service):
    scheduler = build_scheduler(app_settings, service)

    assert scheduler.get_jobs() == []


def test_scheduler_registers_refresh_job(app_settings, service):
    app_settings.yaml.refresh.enabled = True
    app_settings.yaml.refresh.favorites_interval_minutes = 45

    scheduler = build_scheduler(app_settings, service)

    job = scheduler.get_job(FAVORITES_REFRESH_JOB_ID)
    assert job is not None
    assert job.kwargs == {"service": service}
    assert job.max_instances == 1
    assert job.coalesce is True


def test_refresh_job_returns_refreshed_count(service, adapter):
    adapter.add(make_snapshot(temperature=12.0))
    favorite = service.toggle_favorite(37.7749, -122.4194)
    adapter.add(make_snapshot(temperature=16.0))

    assert run_favorites_refresh_job(service) == 1
    assert service.favorites.get(favorite.id).last_known_temperature == 16.0


def test_refresh_job_with_no_favorites(service):
    assert run_favorites_refresh_job(service) == 0
