"""Fixed-cadence background polling, one independent asyncio task per source.

A loop runs its task, logs any failure, sleeps exactly its interval and
repeats for the life of the process. No jitter, no backoff escalation and no
circuit breaker: a permanently failing upstream is retried at the same
cadence forever. Loops never wait on each other.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

TaskFn = Callable[[], Awaitable[Any]]
SleepFn = Callable[[float], Awaitable[Any]]


class Scheduler:
    def __init__(self, sleep: SleepFn = asyncio.sleep) -> None:
        self._jobs: Dict[str, Tuple[float, TaskFn]] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._sleep = sleep

    @property
    def sources(self) -> Tuple[str, ...]:
        return tuple(self._jobs)

    def register(self, source: str, interval: float, task: TaskFn) -> None:
        if source in self._jobs:
            raise ValueError(f"source '{source}' is already registered")
        if interval <= 0:
            raise ValueError(f"interval for '{source}' must be positive, got {interval}")
        self._jobs[source] = (float(interval), task)
        if self._tasks:
            # Already running: start the new loop right away
            self._spawn(source)

    async def run_iteration(self, source: str) -> bool:
        """Run the task once; True on success, False if it raised."""
        _, task = self._jobs[source]
        try:
            await task()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("scheduler: %s iteration failed", source)
            return False
        return True

    async def run_loop(self, source: str, iterations: Optional[int] = None) -> None:
        """Loop forever, or ``iterations`` times when given."""
        interval, _ = self._jobs[source]
        done = 0
        while iterations is None or done < iterations:
            await self.run_iteration(source)
            done += 1
            await self._sleep(interval)

    def _spawn(self, source: str) -> None:
        self._tasks[source] = asyncio.create_task(self.run_loop(source), name=f"poll-{source}")
        logger.info("scheduler: started %s every %ss", source, self._jobs[source][0])

    def start(self) -> None:
        """Spawn every registered loop on the running event loop."""
        for source in self._jobs:
            if source not in self._tasks:
                self._spawn(source)

    async def stop(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
