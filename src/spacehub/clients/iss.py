from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from spacehub.clients.base import HttpFetchClient
from spacehub.contracts import PositionClient
from spacehub.errors import DeserializationError
from spacehub.models import Position


class WhereTheIssClient(HttpFetchClient):
    """wheretheiss.at satellite document; stored as-is into the `iss` samples."""

    name = "iss"


class SpaceXNextLaunchClient(HttpFetchClient):
    name = "spacex"


class OpenNotifyPositionClient(PositionClient):
    """Live ISS position from open-notify `iss-now.json`.

    The upstream nests coordinates as strings under `iss_position`; flat
    documents with latitude/longitude at the top level are accepted too.
    """

    def __init__(self, fetcher: HttpFetchClient) -> None:
        self.fetcher = fetcher

    async def get_position(self) -> Position:
        payload = await self.fetcher.fetch()
        return parse_upstream_position(payload)


def parse_upstream_position(payload: Any) -> Position:
    if not isinstance(payload, dict):
        raise DeserializationError("position: upstream payload is not an object")

    coords = payload.get("iss_position")
    if not isinstance(coords, dict):
        coords = payload
    try:
        return Position(
            timestamp=payload.get("timestamp"),
            latitude=coords.get("latitude"),
            longitude=coords.get("longitude"),
            source="upstream",
        )
    except ValidationError as exc:
        raise DeserializationError(f"position: cannot parse upstream payload: {exc}") from exc
