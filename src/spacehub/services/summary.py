"""Aggregated snapshot of everything the service knows.

Like the dashboard metrics, each part is read independently: a failing part
degrades to an empty value instead of failing the whole summary.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

from spacehub.context import AppContext
from spacehub.errors import AppError
from spacehub.models import SourceSample
from spacehub.services.ingest.registry import FEED_SOURCES
from spacehub.services.trend import POSITION_SOURCE

logger = logging.getLogger(__name__)


def _sample_view(sample: SourceSample | None) -> Dict[str, Any]:
    if sample is None:
        return {}
    return {"fetched_at": sample.fetched_at, "payload": sample.payload}


def _error_view(exc: AppError) -> Dict[str, Any]:
    return {"error": {"code": exc.code, "message": exc.message}}


async def build_summary(ctx: AppContext) -> Dict[str, Any]:
    summary: Dict[str, Any] = {}

    for source in FEED_SOURCES:
        try:
            summary[source] = _sample_view(await asyncio.to_thread(ctx.samples.latest, source))
        except AppError as exc:
            logger.warning("summary: %s unavailable: %s", source, exc.message)
            summary[source] = {}

    try:
        last = await asyncio.to_thread(ctx.samples.latest, POSITION_SOURCE)
        summary["iss_last"] = _sample_view(last)
    except AppError as exc:
        logger.warning("summary: iss_last unavailable: %s", exc.message)
        summary["iss_last"] = {}

    try:
        position = await ctx.position.get_current_position()
        summary["iss_position"] = position.model_dump()
    except AppError as exc:
        logger.warning("summary: position unavailable: %s %s", exc.code, exc.message)
        summary["iss_position"] = _error_view(exc)

    try:
        summary["osdr_count"] = await asyncio.to_thread(ctx.datasets.count)
    except AppError as exc:
        logger.warning("summary: osdr_count unavailable: %s", exc.message)
        summary["osdr_count"] = 0

    return summary
