from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel


class SourceSample(BaseModel):
    """One append-only row of the space_cache table."""

    id: int
    source: str
    fetched_at: datetime
    payload: Any


class DatasetRecord(BaseModel):
    id: int
    dataset_id: Optional[str] = None
    title: Optional[str] = None
    status: Optional[str] = None
    updated_at: Optional[datetime] = None
    inserted_at: datetime
    raw: Any


class Position(BaseModel):
    timestamp: int
    latitude: float
    longitude: float
    source: Optional[Literal["cache", "upstream"]] = None


class TrendResult(BaseModel):
    movement: bool = False
    delta_km: float = 0.0
    dt_sec: float = 0.0
    velocity_kmh: Optional[float] = None
    from_time: Optional[datetime] = None
    to_time: Optional[datetime] = None
    from_lat: Optional[float] = None
    from_lon: Optional[float] = None
    to_lat: Optional[float] = None
    to_lon: Optional[float] = None
    status: str = "ok"
    message: str = ""
