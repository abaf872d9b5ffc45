"""One-shot ingestion from the command line.

    spacehub init-db
    spacehub sync-osdr
    spacehub fetch --src iss
    spacehub refresh --src apod,neo
    spacehub run-scheduler
    spacehub serve --port 8000
"""

import argparse
import asyncio
import json
import logging
from typing import List, Optional

from spacehub.context import AppContext, build_context
from spacehub.db import ensure_schema, make_engine
from spacehub.errors import AppError
from spacehub.scheduler import Scheduler
from spacehub.services.ingest.registry import (
    SCHEDULED_JOBS,
    get_job,
    parse_source_list,
    refresh_sources,
    register_jobs,
)
from spacehub.settings import Settings

logger = logging.getLogger("spacehub.cli")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Space data ingestion")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create tables if missing")
    sub.add_parser("sync-osdr", help="Fetch and upsert the OSDR dataset catalog")

    fetch = sub.add_parser("fetch", help="Run one source's job once")
    fetch.add_argument("--src", required=True, choices=sorted(SCHEDULED_JOBS), help="Source to fetch")

    refresh = sub.add_parser("refresh", help="Refresh cached feeds")
    refresh.add_argument("--src", default="", help="Comma-separated feeds (default: all)")

    sub.add_parser("run-scheduler", help="Run every polling loop in the foreground")

    serve = sub.add_parser("serve", help="Run the HTTP API with background loops")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    return parser.parse_args(argv)


async def _run_forever(ctx: AppContext) -> None:
    scheduler = Scheduler()
    register_jobs(scheduler, ctx)
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = Settings.from_env()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        import uvicorn

        uvicorn.run("spacehub.main:app", host=args.host, port=args.port, log_level=settings.log_level.lower())
        return 0

    if args.command == "init-db":
        engine = make_engine(settings.database_url)
        try:
            ensure_schema(engine)
        finally:
            engine.dispose()
        return 0

    ctx = build_context(settings)
    try:
        if args.command == "sync-osdr":
            written = asyncio.run(get_job("osdr")(ctx))
            logger.info("osdr sync written=%s", written)
            print(json.dumps({"written": written}))
        elif args.command == "fetch":
            result = asyncio.run(get_job(args.src)(ctx))
            if hasattr(result, "model_dump"):
                result = result.model_dump(mode="json")
            print(json.dumps(result, default=str))
        elif args.command == "refresh":
            refreshed = asyncio.run(refresh_sources(ctx, parse_source_list(args.src)))
            print(json.dumps({"refreshed": refreshed}))
        elif args.command == "run-scheduler":
            try:
                asyncio.run(_run_forever(ctx))
            except KeyboardInterrupt:
                logger.info("scheduler stopped")
    except AppError as exc:
        logger.error("%s failed: %s %s", args.command, exc.code, exc.message)
        return 1
    finally:
        ctx.engine.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
