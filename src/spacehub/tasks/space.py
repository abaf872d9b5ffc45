"""Celery tasks wrapping the ingest jobs."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from spacehub.celery_app import celery_app

logger = logging.getLogger(__name__)


async def _run_with_context(source: str) -> Any:
    from spacehub.context import build_context
    from spacehub.services.ingest.registry import get_job
    from spacehub.settings import Settings

    job = get_job(source)
    ctx = build_context(Settings.from_env())
    try:
        return await job(ctx)
    finally:
        ctx.engine.dispose()


def _jsonable(result: Any) -> Any:
    if hasattr(result, "model_dump"):
        return result.model_dump(mode="json")
    return result


@celery_app.task(name="spacehub.tasks.space.run_source")
def run_source_task(source: str) -> Dict[str, Any]:
    result = asyncio.run(_run_with_context(source))
    logger.info("celery: %s completed", source)
    return {"status": "completed", "source": source, "result": _jsonable(result)}


@celery_app.task(name="spacehub.tasks.space.refresh")
def refresh_task(src: Optional[str] = None) -> Dict[str, Any]:
    from spacehub.context import build_context
    from spacehub.services.ingest.registry import parse_source_list, refresh_sources
    from spacehub.settings import Settings

    async def _refresh() -> Any:
        ctx = build_context(Settings.from_env())
        try:
            return await refresh_sources(ctx, parse_source_list(src))
        finally:
            ctx.engine.dispose()

    refreshed = asyncio.run(_refresh())
    return {"status": "completed", "refreshed": refreshed}
