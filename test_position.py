import asyncio
import json
import time

import pytest
import redis

from conftest import UPSTREAM_POSITION, FakePositionClient, FakeStore, upstream_down
from spacehub.errors import UpstreamError
from spacehub.scheduler import Scheduler
from spacehub.services.position import PositionProvider, PositionUnavailable, parse_cached_position

KEY = "latest_telemetry_data"


def _provider(store, upstream=None):
    return PositionProvider(store, upstream or FakePositionClient(UPSTREAM_POSITION), KEY)


def test_cached_value_wins_without_calling_upstream():
    store = FakeStore(json.dumps({"timestamp": 1000, "latitude": 10.0, "longitude": 20.0}))
    upstream = FakePositionClient(UPSTREAM_POSITION)

    position = asyncio.run(_provider(store, upstream).get_current_position())

    assert (position.timestamp, position.latitude, position.longitude) == (1000, 10.0, 20.0)
    assert position.source == "cache"
    assert upstream.calls == 0
    assert store.reads == [KEY]


@pytest.mark.parametrize(
    "store",
    [
        FakeStore(None),
        FakeStore(""),
        FakeStore("   "),
        FakeStore("not json {"),
        FakeStore("[1, 2, 3]"),
        FakeStore(json.dumps({"latitude": 1.0})),
        FakeStore(error=redis.exceptions.ConnectionError("Connection refused")),
        FakeStore(error=redis.exceptions.TimeoutError("Timeout reading from socket")),
    ],
    ids=["absent", "empty", "blank", "malformed", "not-object", "no-position", "refused", "timeout"],
)
def test_any_cache_failure_falls_back_to_upstream(store):
    upstream = FakePositionClient(UPSTREAM_POSITION)

    position = asyncio.run(_provider(store, upstream).get_current_position())

    assert position == UPSTREAM_POSITION
    assert upstream.calls == 1


def test_empty_then_populated_cache():
    store = FakeStore("")
    upstream = FakePositionClient(UPSTREAM_POSITION)
    provider = _provider(store, upstream)

    assert asyncio.run(provider.get_current_position()).source == "upstream"

    store.value = json.dumps({"timestamp": 1000, "latitude": 10.0, "longitude": 20.0})
    second = asyncio.run(provider.get_current_position())
    assert second.source == "cache"
    assert second.timestamp == 1000
    assert upstream.calls == 1


def test_both_sources_failing_raises_upstream_error():
    provider = _provider(FakeStore(None), FakePositionClient(error=upstream_down("iss-now")))
    with pytest.raises(UpstreamError):
        asyncio.run(provider.get_current_position())


def test_parse_cached_position_accepts_numeric_strings():
    position = parse_cached_position('{"timestamp": 5, "latitude": "1.5", "longitude": "-2"}')
    assert position.latitude == 1.5
    assert position.longitude == -2.0


def test_parse_cached_position_rejects_null():
    with pytest.raises(PositionUnavailable):
        parse_cached_position("null")


class SlowFailingStore(FakeStore):
    """Waits out a socket timeout the way redis-py does, then fails."""

    def read_latest(self, key):
        time.sleep(0.5)
        raise redis.exceptions.TimeoutError("Timeout reading from socket")


def test_slow_cache_read_does_not_stall_scheduler_loops():
    async def scenario():
        ticks = []

        async def tick():
            ticks.append(1)

        scheduler = Scheduler()
        scheduler.register("iss", 0.02, tick)
        scheduler.start()
        try:
            position = await _provider(SlowFailingStore()).get_current_position()
        finally:
            await scheduler.stop()
        return position, len(ticks)

    position, ticks = asyncio.run(scenario())
    assert position == UPSTREAM_POSITION
    assert ticks >= 5
