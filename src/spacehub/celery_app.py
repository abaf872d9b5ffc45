"""Celery app for Beat and Worker.

Alternative to the in-process scheduler: Beat enqueues one task per source at
that source's configured interval and workers run the same ingest jobs.
Run only one of the two modes against a database.
"""

import importlib
import pkgutil
from typing import Any, Dict, List

from celery import Celery

from spacehub import settings
from spacehub.services.ingest.registry import SCHEDULED_JOBS

celery_app = Celery(
    "spacehub",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)


def build_beat_schedule(config: settings.Settings) -> Dict[str, Dict[str, Any]]:
    schedule: Dict[str, Dict[str, Any]] = {}
    for source in SCHEDULED_JOBS:
        schedule[f"poll-{source}"] = {
            "task": "spacehub.tasks.space.run_source",
            "schedule": float(config.interval_for(source)),
            "args": (source,),
            "options": {"queue": "celery"},
        }
    return schedule


celery_app.conf.beat_schedule = build_beat_schedule(settings.Settings.from_env())
celery_app.conf.timezone = "UTC"


def _import_all_task_modules() -> List[str]:
    """Import all modules under `spacehub.tasks.*` so Celery registers task decorators."""
    imported: List[str] = []
    try:
        import spacehub.tasks as tasks_pkg
    except Exception as e:
        raise RuntimeError(
            "Celery startup failed: cannot import task package 'spacehub.tasks'"
        ) from e

    try:
        for module_info in pkgutil.walk_packages(
            tasks_pkg.__path__,
            prefix=f"{tasks_pkg.__name__}.",
        ):
            name = module_info.name
            importlib.import_module(name)
            imported.append(name)
    except Exception as e:
        raise RuntimeError(
            "Celery startup failed: error while importing task modules under 'spacehub.tasks.*'"
        ) from e
    return imported


# Auto-import tasks for both worker and beat processes.
_import_all_task_modules()
