"""Pydantic response schemas for the public API."""

from datetime import datetime
from typing import Any, List

from pydantic import BaseModel, Field

from spacehub.models import DatasetRecord


class HealthResponse(BaseModel):
    status: str = "ok"
    now: datetime


class SyncResponse(BaseModel):
    written: int = Field(..., description="Number of datasets inserted by this sync")


class DatasetListResponse(BaseModel):
    items: List[DatasetRecord]


class NoDataResponse(BaseModel):
    message: str = "no data"


class LatestFeedResponse(BaseModel):
    source: str
    fetched_at: datetime
    payload: Any


class FeedNoDataResponse(BaseModel):
    source: str
    message: str = "no data"


class RefreshResponse(BaseModel):
    refreshed: List[str] = Field(default_factory=list, description="Sources refreshed successfully")
