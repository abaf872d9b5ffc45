"""Current ISS position: Redis first, authoritative upstream on any failure."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

from pydantic import ValidationError

from spacehub.contracts import FastPositionStore, PositionClient
from spacehub.models import Position

logger = logging.getLogger(__name__)


class PositionUnavailable(Exception):
    """Primary store could not produce a position."""


def parse_cached_position(raw: Optional[str]) -> Position:
    if raw is None or not raw.strip():
        raise PositionUnavailable("empty telemetry value in cache")
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise PositionUnavailable(f"telemetry value is not JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise PositionUnavailable("telemetry value is not an object")
    try:
        return Position(
            timestamp=data.get("timestamp"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            source="cache",
        )
    except ValidationError as exc:
        raise PositionUnavailable(f"telemetry value has no position: {exc}") from exc


class PositionProvider:
    """Try-once fallback chain. Every call starts at the primary store again."""

    def __init__(self, store: FastPositionStore, upstream: PositionClient, key: str) -> None:
        self.store = store
        self.upstream = upstream
        self.key = key

    async def _from_store(self) -> Position:
        # redis-py blocks up to its socket timeout; keep it off the event loop
        try:
            raw = await asyncio.to_thread(self.store.read_latest, self.key)
        except Exception as exc:
            # Store outages (connection refused, timeouts) are an expected state
            raise PositionUnavailable(f"{type(exc).__name__}: {exc}") from exc
        return parse_cached_position(raw)

    async def get_current_position(self) -> Position:
        try:
            return await self._from_store()
        except PositionUnavailable as exc:
            logger.warning("position: cache miss (%s), falling back to upstream API", exc)
        return await self.upstream.get_position()
