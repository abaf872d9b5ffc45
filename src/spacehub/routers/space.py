"""Cached feeds: latest value per source, on-demand refresh and summary."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, Depends, Path, Query

from spacehub.context import AppContext
from spacehub.deps import get_context
from spacehub.schemas.space import FeedNoDataResponse, HealthResponse, LatestFeedResponse, RefreshResponse
from spacehub.services.ingest.registry import parse_source_list, refresh_sources
from spacehub.services.summary import build_summary

logger = logging.getLogger(__name__)

router = APIRouter(tags=["space"])


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(now=datetime.now(timezone.utc))


@router.get("/space/{src}/latest", response_model=Union[LatestFeedResponse, FeedNoDataResponse])
async def space_latest(
    src: str = Path(..., description="Source name, e.g. apod, neo, flr, cme, spacex"),
    ctx: AppContext = Depends(get_context),
):
    sample = await asyncio.to_thread(ctx.samples.latest, src)
    if sample is None:
        return FeedNoDataResponse(source=src)
    return LatestFeedResponse(source=src, fetched_at=sample.fetched_at, payload=sample.payload)


@router.api_route("/space/refresh", methods=["GET", "POST"], response_model=RefreshResponse)
async def space_refresh(
    src: Optional[str] = Query(None, description="Comma-separated sources; all feeds when omitted"),
    ctx: AppContext = Depends(get_context),
) -> RefreshResponse:
    """Fetch the named feeds now. Only the names that succeeded are returned."""
    sources = parse_source_list(src)
    refreshed = await refresh_sources(ctx, sources)
    logger.info("refresh: requested=%s refreshed=%s", sources, refreshed)
    return RefreshResponse(refreshed=refreshed)


@router.get("/space/summary")
async def space_summary(ctx: AppContext = Depends(get_context)) -> Dict[str, Any]:
    return await build_summary(ctx)
