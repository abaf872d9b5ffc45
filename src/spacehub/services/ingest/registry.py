from __future__ import annotations

import logging
from functools import partial
from typing import Any, Awaitable, Callable, Dict, Iterable, List

from spacehub.context import AppContext
from spacehub.errors import AppError, UnknownSourceError
from spacehub.services.ingest.jobs import fetch_and_cache, fetch_and_store_iss, fetch_donki, sync_osdr

logger = logging.getLogger(__name__)

JobCallable = Callable[[AppContext], Awaitable[Any]]

# Feed sources cached in space_cache and refreshable on demand
FEED_SOURCES = ("apod", "neo", "flr", "cme", "spacex")

# One background loop per entry; DONKI polls flr+cme together
SCHEDULED_JOBS: Dict[str, JobCallable] = {
    "osdr": sync_osdr,
    "iss": fetch_and_store_iss,
    "apod": partial(fetch_and_cache, source="apod"),
    "neo": partial(fetch_and_cache, source="neo"),
    "donki": fetch_donki,
    "spacex": partial(fetch_and_cache, source="spacex"),
}


def get_job(source: str) -> JobCallable:
    job = SCHEDULED_JOBS.get(source)
    if job is None:
        raise UnknownSourceError(f"No ingestion job registered for source '{source}'")
    return job


def parse_source_list(raw: str | None) -> List[str]:
    """"apod, NEO,,cme" -> ["apod", "neo", "cme"]; empty -> all feeds."""
    if raw is None or not raw.strip():
        return list(FEED_SOURCES)
    return [part.strip().lower() for part in raw.split(",") if part.strip()]


async def refresh_sources(ctx: AppContext, sources: Iterable[str]) -> List[str]:
    """Fetch each named feed once; return the names that succeeded.

    Unknown names are ignored. Failures are logged and left out of the result.
    """
    done: List[str] = []
    for source in sources:
        if source not in FEED_SOURCES or source in done:
            continue
        try:
            await fetch_and_cache(ctx, source)
        except AppError as exc:
            logger.warning("refresh: %s failed: %s %s", source, exc.code, exc.message)
            continue
        done.append(source)
    return done


def register_jobs(scheduler: Any, ctx: AppContext) -> None:
    """Register one loop per scheduled source with its configured interval."""
    for source, job in SCHEDULED_JOBS.items():
        scheduler.register(source, ctx.settings.interval_for(source), partial(job, ctx))
