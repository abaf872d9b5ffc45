"""Loop bodies for every polled source.

Each job is a plain coroutine of the application context so it can be run once
by tests, the on-demand refresh endpoint, Celery tasks and the CLI, or forever
by the scheduler. Storage calls run in a worker thread so a slow database
write in one source never stalls another source's loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

from spacehub.context import AppContext
from spacehub.errors import AppError
from spacehub.models import SourceSample

logger = logging.getLogger(__name__)


class DonkiPartialFailure(AppError):
    code = "UPSTREAM_API_ERROR"
    status_code = 502

    def __init__(self, done: List[str], errors: Dict[str, str]) -> None:
        super().__init__(f"donki: failed {sorted(errors)} (done {done}): {errors}")
        self.done = done
        self.errors = errors


async def sync_osdr(ctx: AppContext) -> int:
    """Fetch the OSDR catalog and upsert it; returns the number of new datasets."""
    items = await ctx.clients["osdr"].fetch()
    logger.info("osdr: fetched items=%s", len(items))
    written = await asyncio.to_thread(ctx.datasets.upsert_many, items)
    logger.info("osdr: sync done written=%s", written)
    return written


async def fetch_and_cache(ctx: AppContext, source: str) -> SourceSample:
    payload = await ctx.clients[source].fetch()
    sample = await asyncio.to_thread(ctx.samples.write, source, payload)
    logger.info("%s: cached sample id=%s", source, sample.id)
    return sample


async def fetch_and_store_iss(ctx: AppContext) -> SourceSample:
    return await fetch_and_cache(ctx, "iss")


async def fetch_donki(ctx: AppContext) -> Dict[str, Any]:
    """FLR and CME share one loop; one failing does not skip the other."""
    done: List[str] = []
    errors: Dict[str, str] = {}
    for source in ("flr", "cme"):
        try:
            await fetch_and_cache(ctx, source)
            done.append(source)
        except AppError as exc:
            errors[source] = f"{exc.code}: {exc.message}"

    if errors:
        raise DonkiPartialFailure(done, errors)
    return {"refreshed": done}
