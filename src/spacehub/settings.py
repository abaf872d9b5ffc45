import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def normalize_database_url(url: str) -> str:
    """Force the psycopg2 driver for postgres URLs; other dialects pass through."""
    if "psycopg://" in url:
        return url.replace("psycopg://", "psycopg2://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg2://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


def _database_url() -> str:
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return normalize_database_url(database_url)
    # Build from POSTGRES_* when DATABASE_URL is not set
    user = os.getenv("POSTGRES_USER", "space")
    password = os.getenv("POSTGRES_PASSWORD", "spacepass")
    host = os.getenv("POSTGRES_HOST", "postgres")
    port = os.getenv("POSTGRES_PORT", "5432")
    db = os.getenv("POSTGRES_DB", "space")
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{db}"


def _redis_url() -> str:
    redis_url = os.getenv("REDIS_URL")
    if redis_url:
        return redis_url
    host = os.getenv("REDIS_HOST", "redis")
    port = os.getenv("REDIS_PORT", "6379")
    return f"redis://{host}:{port}/0"


# Source name -> (env var, default seconds). DONKI covers both flr and cme.
POLL_INTERVAL_ENV: Dict[str, tuple] = {
    "osdr": ("FETCH_EVERY_SECONDS", 600),
    "iss": ("ISS_EVERY_SECONDS", 120),
    "apod": ("APOD_EVERY_SECONDS", 43200),
    "neo": ("NEO_EVERY_SECONDS", 7200),
    "donki": ("DONKI_EVERY_SECONDS", 3600),
    "spacex": ("SPACEX_EVERY_SECONDS", 3600),
}


@dataclass(frozen=True)
class Settings:
    database_url: str
    redis_url: str
    telemetry_redis_key: str = "latest_telemetry_data"

    nasa_api_url: str = "https://visualization.osdr.nasa.gov/biodata/api/v2/datasets/?format=json"
    nasa_api_base: str = "https://api.nasa.gov"
    nasa_api_key: str = "DEMO_KEY"
    where_iss_url: str = "https://api.wheretheiss.at/v1/satellites/25544"
    iss_now_url: str = "http://api.open-notify.org/iss-now.json"
    spacex_url: str = "https://api.spacexdata.com/v4/launches/next"

    http_timeout: float = 20.0
    http_max_retries: int = 3
    http_retry_delay: float = 1.0
    http_proxy: Optional[str] = None

    poll_intervals: Dict[str, int] = field(default_factory=dict)
    osdr_list_limit: int = 20
    scheduler_enabled: bool = True
    log_level: str = "INFO"

    def interval_for(self, source: str) -> int:
        if source in self.poll_intervals:
            return self.poll_intervals[source]
        return POLL_INTERVAL_ENV[source][1]

    @classmethod
    def from_env(cls) -> "Settings":
        intervals = {
            source: _env_int(env_name, default)
            for source, (env_name, default) in POLL_INTERVAL_ENV.items()
        }
        return cls(
            database_url=_database_url(),
            redis_url=_redis_url(),
            telemetry_redis_key=os.getenv("TELEMETRY_REDIS_KEY", "latest_telemetry_data"),
            nasa_api_url=os.getenv("NASA_API_URL", cls.nasa_api_url),
            nasa_api_base=os.getenv("NASA_API_BASE", cls.nasa_api_base),
            nasa_api_key=os.getenv("NASA_API_KEY") or "DEMO_KEY",
            where_iss_url=os.getenv("WHERE_ISS_URL", cls.where_iss_url),
            iss_now_url=os.getenv("ISS_NOW_URL", cls.iss_now_url),
            spacex_url=os.getenv("SPACEX_URL", cls.spacex_url),
            http_timeout=_env_float("HTTP_TIMEOUT", 20.0),
            http_max_retries=_env_int("HTTP_MAX_RETRIES", 3),
            http_retry_delay=_env_float("HTTP_RETRY_DELAY", 1.0),
            http_proxy=os.getenv("HTTP_PROXY_URL") or None,
            poll_intervals=intervals,
            osdr_list_limit=_env_int("OSDR_LIST_LIMIT", 20),
            scheduler_enabled=os.getenv("SCHEDULER_ENABLED", "1").lower() in ("1", "true", "yes"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


# Celery reads these at import time, like the rest of the worker process.
REDIS_URL = _redis_url()
