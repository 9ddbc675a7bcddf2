from __future__ import annotations

# Roughly 1 km at the equator. Two coordinates closer than this on both axes are the same place.
COORDINATE_TOLERANCE_DEGREES = 0.01

# Deltas are rounded before comparison so float noise cannot turn an exact 0.01 step into a match.
_DELTA_PRECISION = 9


def coordinate_delta(a: float, b: float) -> float:
    return round(abs(float(a) - float(b)), _DELTA_PRECISION)


def within_tolerance(
    lat_a: float,
    lon_a: float,
    lat_b: float,
    lon_b: float,
    *,
    tolerance: float = COORDINATE_TOLERANCE_DEGREES,
) -> bool:
    return coordinate_delta(lat_a, lat_b) < tolerance and coordinate_delta(lon_a, lon_b) < tolerance


def bounding_box(
    latitude: float,
    longitude: float,
    *,
    tolerance: float = COORDINATE_TOLERANCE_DEGREES,
) -> tuple[float, float, float, float]:
    """Return ``(min_lat, max_lat, min_lon, max_lon)`` covering every candidate match.

    The box is inclusive and slightly wider than the tolerance; callers must still
    apply :func:`within_tolerance` to the rows it selects.
    """
    margin = tolerance * 2
    return (
        latitude - margin,
        latitude + margin,
        longitude - margin,
        longitude + margin,
    )
