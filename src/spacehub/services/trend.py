from __future__ import annotations

from typing import Any, Optional

from spacehub.contracts import SampleCache
from spacehub.models import TrendResult
from spacehub.utils.geo import haversine_km
from spacehub.utils.json_pick import num

POSITION_SOURCE = "iss"
MOVEMENT_THRESHOLD_KM = 0.1


def _field(payload: Any, key: str) -> Optional[float]:
    if not isinstance(payload, dict):
        return None
    return num(payload.get(key))


class TrendCalculator:
    """Movement between the two newest position samples."""

    def __init__(self, cache: SampleCache, source: str = POSITION_SOURCE) -> None:
        self.cache = cache
        self.source = source

    def compute_trend(self) -> TrendResult:
        samples = self.cache.recent(self.source, 2)
        if len(samples) < 2:
            return TrendResult(message="not enough samples")

        newer, older = samples[0], samples[1]
        from_lat = _field(older.payload, "latitude")
        from_lon = _field(older.payload, "longitude")
        to_lat = _field(newer.payload, "latitude")
        to_lon = _field(newer.payload, "longitude")

        delta_km = 0.0
        movement = False
        if None not in (from_lat, from_lon, to_lat, to_lon):
            delta_km = haversine_km(from_lat, from_lon, to_lat, to_lon)
            movement = delta_km > MOVEMENT_THRESHOLD_KM

        return TrendResult(
            movement=movement,
            delta_km=delta_km,
            dt_sec=(newer.fetched_at - older.fetched_at).total_seconds(),
            velocity_kmh=_field(newer.payload, "velocity"),
            from_time=older.fetched_at,
            to_time=newer.fetched_at,
            from_lat=from_lat,
            from_lon=from_lon,
            to_lat=to_lat,
            to_lon=to_lon,
            message="calculated successfully",
        )
