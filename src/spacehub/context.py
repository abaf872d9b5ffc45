"""Application context: everything the core needs, built once at startup."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from sqlalchemy.engine import Engine

from spacehub.clients.base import HttpFetchClient
from spacehub.clients.iss import OpenNotifyPositionClient, SpaceXNextLaunchClient, WhereTheIssClient
from spacehub.clients.nasa import build_nasa_clients
from spacehub.contracts import DatasetRepository, FetchClient, SampleCache
from spacehub.db import ensure_schema, make_engine
from spacehub.db_osdr_items import SqlDatasetRepository
from spacehub.db_space_cache import SqlSampleCache
from spacehub.services.position import PositionProvider
from spacehub.services.trend import TrendCalculator
from spacehub.settings import Settings
from spacehub.stores.redis_position import RedisPositionStore


@dataclass(frozen=True)
class AppContext:
    settings: Settings
    engine: Engine
    samples: SampleCache
    datasets: DatasetRepository
    clients: Mapping[str, FetchClient]
    position: PositionProvider
    trend: TrendCalculator


def build_clients(settings: Settings) -> dict:
    clients: dict = dict(build_nasa_clients(settings))
    clients["iss"] = WhereTheIssClient.from_settings(settings, settings.where_iss_url)
    clients["spacex"] = SpaceXNextLaunchClient.from_settings(settings, settings.spacex_url)
    return clients


def build_context(settings: Settings, *, init_schema: bool = True) -> AppContext:
    engine = make_engine(settings.database_url)
    if init_schema:
        ensure_schema(engine)

    samples = SqlSampleCache(engine)
    position_fallback = OpenNotifyPositionClient(
        HttpFetchClient.from_settings(settings, settings.iss_now_url, name="iss-now")
    )
    return AppContext(
        settings=settings,
        engine=engine,
        samples=samples,
        datasets=SqlDatasetRepository(engine),
        clients=build_clients(settings),
        position=PositionProvider(
            RedisPositionStore.from_url(settings.redis_url),
            position_fallback,
            settings.telemetry_redis_key,
        ),
        trend=TrendCalculator(samples),
    )
