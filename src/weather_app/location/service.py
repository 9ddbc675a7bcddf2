from __future__ import annotations

from typing import Any

from ..adapters.http import build_url, fetch_json
from ..domain.models import Location
from ..settings import ProviderSettings, SearchSettings

# Most specific first: a suburb name is more useful than the surrounding city.
PLACE_NAME_FIELDS = ("suburb", "neighbourhood", "town", "village", "city")


def _coerce_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _optional_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text or None


def fallback_place_name(lat: float, lon: float) -> str:
    return f"Location ({lat:.2f}, {lon:.2f})"


def parse_locations(payload: dict[str, Any]) -> list[Location]:
    """Read geocoding ``results``; a payload without them means nothing was found."""
    results = payload.get("results")
    if not isinstance(results, list):
        return []

    locations: list[Location] = []
    for result in results:
        if not isinstance(result, dict):
            continue
        locations.append(
            Location(
                name=_optional_text(result.get("name")) or "Unknown",
                region=_optional_text(result.get("admin1")),
                country=_optional_text(result.get("country")),
                latitude=_coerce_float(result.get("latitude")) or 0,
                longitude=_coerce_float(result.get("longitude")) or 0,
                timezone=_optional_text(result.get("timezone")),
            )
        )
    return locations


def place_name_from_address(payload: dict[str, Any]) -> str | None:
    address = payload.get("address")
    if not isinstance(address, dict):
        return None
    for field_name in PLACE_NAME_FIELDS:
        name = _optional_text(address.get(field_name))
        if name is not None:
            return name
    return None


def request_locations(
    query: str,
    *,
    providers: ProviderSettings,
    search: SearchSettings,
) -> list[Location]:
    params = {
        "name": query,
        "count": search.result_count,
        "language": search.language,
        "format": "json",
    }
    payload = fetch_json(
        build_url(providers.geocoding_url, params),
        timeout=providers.timeout_seconds,
        user_agent=providers.user_agent,
    )
    return parse_locations(payload)


def request_place_name(lat: float, lon: float, *, providers: ProviderSettings) -> str | None:
    params = {"lat": lat, "lon": lon, "format": "json"}
    payload = fetch_json(
        build_url(providers.reverse_geocoding_url, params),
        timeout=providers.timeout_seconds,
        user_agent=providers.user_agent,
    )
    return place_name_from_address(payload)
