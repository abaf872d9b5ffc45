"""OSDR dataset catalog endpoints."""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from spacehub.context import AppContext
from spacehub.deps import get_context
from spacehub.schemas.space import DatasetListResponse, SyncResponse
from spacehub.services.ingest.jobs import sync_osdr

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/osdr", tags=["osdr"])


@router.api_route("/sync", methods=["GET", "POST"], response_model=SyncResponse)
async def osdr_sync(ctx: AppContext = Depends(get_context)) -> SyncResponse:
    """Fetch the catalog now and upsert it. Re-running is idempotent."""
    written = await sync_osdr(ctx)
    return SyncResponse(written=written)


@router.get("/list", response_model=DatasetListResponse)
async def osdr_list(
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Max items, newest first"),
    ctx: AppContext = Depends(get_context),
) -> DatasetListResponse:
    effective = limit if limit is not None else ctx.settings.osdr_list_limit
    items = await asyncio.to_thread(ctx.datasets.list, effective)
    return DatasetListResponse(items=items)
