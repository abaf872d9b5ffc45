from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from spacehub.context import AppContext
from spacehub.contracts import FastPositionStore, FetchClient, PositionClient
from spacehub.db import ensure_schema, make_engine
from spacehub.db_osdr_items import SqlDatasetRepository
from spacehub.db_space_cache import SqlSampleCache
from spacehub.errors import UpstreamError
from spacehub.models import Position
from spacehub.services.position import PositionProvider
from spacehub.services.trend import TrendCalculator
from spacehub.settings import Settings

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class StepClock:
    """Returns T0, T0+step, T0+2*step, ... on successive calls."""

    def __init__(self, start: datetime = T0, step: timedelta = timedelta(seconds=1)) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + self.step
        return current


class FakeFetchClient(FetchClient):
    def __init__(self, name: str, payload: Any = None, error: Optional[Exception] = None) -> None:
        self.name = name
        self.payload = payload
        self.error = error
        self.calls = 0

    async def fetch(self, params: Optional[Dict[str, Any]] = None) -> Any:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.payload


class FakePositionClient(PositionClient):
    def __init__(self, position: Optional[Position] = None, error: Optional[Exception] = None) -> None:
        self.position = position
        self.error = error
        self.calls = 0

    async def get_position(self) -> Position:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.position


class FakeStore(FastPositionStore):
    def __init__(self, value: Optional[str] = None, error: Optional[Exception] = None) -> None:
        self.value = value
        self.error = error
        self.reads: List[str] = []

    def read_latest(self, key: str) -> Optional[str]:
        self.reads.append(key)
        if self.error is not None:
            raise self.error
        return self.value


UPSTREAM_POSITION = Position(timestamp=2000, latitude=-5.5, longitude=120.25, source="upstream")


@pytest.fixture
def engine():
    eng = make_engine("sqlite://")
    ensure_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", redis_url="redis://localhost:6379/0", scheduler_enabled=False)


@pytest.fixture
def make_ctx(engine, clock, settings):
    """Build an AppContext over in-memory SQLite with fake upstreams."""

    def _make(
        clients: Optional[Dict[str, FetchClient]] = None,
        store: Optional[FastPositionStore] = None,
        upstream: Optional[PositionClient] = None,
    ) -> AppContext:
        samples = SqlSampleCache(engine, clock=clock)
        default_clients: Dict[str, FetchClient] = {
            name: FakeFetchClient(name, {"source": name})
            for name in ("apod", "neo", "flr", "cme", "spacex")
        }
        default_clients["iss"] = FakeFetchClient("iss", {"latitude": 10.0, "longitude": 20.0, "velocity": 27600.0})
        default_clients["osdr"] = FakeFetchClient("osdr", [])
        default_clients.update(clients or {})
        return AppContext(
            settings=settings,
            engine=engine,
            samples=samples,
            datasets=SqlDatasetRepository(engine, clock=clock),
            clients=default_clients,
            position=PositionProvider(
                store or FakeStore(None),
                upstream or FakePositionClient(UPSTREAM_POSITION),
                settings.telemetry_redis_key,
            ),
            trend=TrendCalculator(samples),
        )

    return _make


def upstream_down(name: str = "upstream") -> UpstreamError:
    return UpstreamError(f"{name}: HTTP 503", api_name=name, http_status=503)
