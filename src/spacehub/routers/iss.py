"""ISS position, stored samples and movement trend."""

import asyncio
from typing import Union

from fastapi import APIRouter, Depends

from spacehub.context import AppContext
from spacehub.deps import get_context
from spacehub.models import Position, SourceSample, TrendResult
from spacehub.schemas.space import NoDataResponse
from spacehub.services.ingest.jobs import fetch_and_store_iss
from spacehub.services.trend import POSITION_SOURCE

router = APIRouter(tags=["iss"])


@router.get("/iss/position", response_model=Position)
async def iss_position(ctx: AppContext = Depends(get_context)) -> Position:
    """Live position: telemetry cache first, upstream API on any cache failure."""
    return await ctx.position.get_current_position()


@router.get("/last", response_model=Union[SourceSample, NoDataResponse])
async def last_sample(ctx: AppContext = Depends(get_context)):
    sample = await asyncio.to_thread(ctx.samples.latest, POSITION_SOURCE)
    if sample is None:
        return NoDataResponse()
    return sample


@router.api_route("/fetch", methods=["GET", "POST"], response_model=SourceSample)
async def fetch_now(ctx: AppContext = Depends(get_context)) -> SourceSample:
    return await fetch_and_store_iss(ctx)


@router.get("/iss/trend", response_model=TrendResult)
async def iss_trend(ctx: AppContext = Depends(get_context)) -> TrendResult:
    return await asyncio.to_thread(ctx.trend.compute_trend)
