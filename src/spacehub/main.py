import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from spacehub.context import AppContext, build_context
from spacehub.errors import AppError
from spacehub.routers import iss, osdr, space
from spacehub.scheduler import Scheduler
from spacehub.services.ingest.registry import register_jobs
from spacehub.settings import Settings

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    level = level or os.getenv("LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _error_response(exc: AppError) -> JSONResponse:
    trace_id = str(uuid.uuid4())
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "ok": False,
            "error": {"code": exc.code, "message": exc.message, "trace_id": trace_id},
        },
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning("%s %s failed: %s %s", request.method, request.url.path, exc.code, exc.message)
    return _error_response(exc)


def create_app(ctx: Optional[AppContext] = None, *, scheduler_enabled: Optional[bool] = None) -> FastAPI:
    """Build the API.

    With ``ctx`` given (tests, embedding) the context is used as is and no
    background loops start unless ``scheduler_enabled`` is True. Otherwise the
    context is built from the environment on startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.ctx is None
        if owned:
            settings = Settings.from_env()
            configure_logging(settings.log_level)
            app.state.ctx = build_context(settings)
        current: AppContext = app.state.ctx

        run_loops = scheduler_enabled if scheduler_enabled is not None else (owned and current.settings.scheduler_enabled)
        scheduler: Optional[Scheduler] = None
        if run_loops:
            scheduler = Scheduler()
            register_jobs(scheduler, current)
            scheduler.start()
            logger.info("scheduler: %s loops running", len(scheduler.sources))
        try:
            yield
        finally:
            if scheduler is not None:
                await scheduler.stop()
            if owned:
                current.engine.dispose()
                app.state.ctx = None

    app = FastAPI(title="Space Hub", lifespan=lifespan)
    app.state.ctx = ctx
    app.add_exception_handler(AppError, app_error_handler)
    app.include_router(space.router)
    app.include_router(osdr.router)
    app.include_router(iss.router)
    return app


app = create_app()
