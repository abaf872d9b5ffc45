"""Read side of the live telemetry value an external worker writes into Redis."""

from __future__ import annotations

from typing import Optional

import redis

from spacehub.contracts import FastPositionStore


class RedisPositionStore(FastPositionStore):
    def __init__(self, client: redis.Redis) -> None:
        self.client = client

    @classmethod
    def from_url(cls, url: str, *, timeout: float = 2.0) -> "RedisPositionStore":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        return cls(client)

    def read_latest(self, key: str) -> Optional[str]:
        value = self.client.get(key)
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        return str(value)
