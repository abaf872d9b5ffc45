import json

from sqlalchemy import inspect

from conftest import FakeFetchClient, upstream_down
from spacehub import cli
from spacehub.db import make_engine
from spacehub.settings import Settings, normalize_database_url


def test_normalize_database_url_forces_psycopg2():
    assert normalize_database_url("postgres://u:p@h/db") == "postgresql+psycopg2://u:p@h/db"
    assert normalize_database_url("postgresql://u:p@h/db") == "postgresql+psycopg2://u:p@h/db"
    assert normalize_database_url("postgresql+psycopg://u:p@h/db") == "postgresql+psycopg2://u:p@h/db"
    assert normalize_database_url("sqlite://") == "sqlite://"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://space:pw@db:5432/space")
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/1")
    monkeypatch.setenv("ISS_EVERY_SECONDS", "30")
    monkeypatch.setenv("APOD_EVERY_SECONDS", "not-a-number")
    monkeypatch.setenv("NASA_API_KEY", "")
    monkeypatch.setenv("SCHEDULER_ENABLED", "false")

    settings = Settings.from_env()

    assert settings.database_url == "postgresql+psycopg2://space:pw@db:5432/space"
    assert settings.redis_url == "redis://cache:6379/1"
    assert settings.interval_for("iss") == 30
    assert settings.interval_for("apod") == 43200
    assert settings.nasa_api_key == "DEMO_KEY"
    assert settings.scheduler_enabled is False


def test_settings_builds_urls_from_parts(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("POSTGRES_HOST", "pg")
    monkeypatch.setenv("REDIS_HOST", "rd")

    settings = Settings.from_env()

    assert "@pg:5432/" in settings.database_url
    assert settings.redis_url.startswith("redis://rd:")


def test_cli_init_db_creates_tables(monkeypatch, tmp_path):
    db_file = tmp_path / "space.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")

    assert cli.main(["init-db"]) == 0

    engine = make_engine(f"sqlite:///{db_file}")
    try:
        assert {"space_cache", "osdr_items"} <= set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def test_cli_fetch_runs_one_job(monkeypatch, make_ctx, capsys):
    ctx = make_ctx()
    monkeypatch.setattr(cli, "build_context", lambda settings: ctx)
    monkeypatch.setattr(ctx.engine, "dispose", lambda: None)

    assert cli.main(["fetch", "--src", "spacex"]) == 0

    out = json.loads(capsys.readouterr().out)
    assert out["source"] == "spacex"
    assert ctx.samples.latest("spacex") is not None


def test_cli_reports_failure_with_exit_code(monkeypatch, make_ctx):
    ctx = make_ctx(clients={"osdr": FakeFetchClient("osdr", error=upstream_down("osdr"))})
    monkeypatch.setattr(cli, "build_context", lambda settings: ctx)
    monkeypatch.setattr(ctx.engine, "dispose", lambda: None)

    assert cli.main(["sync-osdr"]) == 1


def test_beat_schedule_has_one_entry_per_source():
    from spacehub.celery_app import build_beat_schedule

    schedule = build_beat_schedule(Settings(database_url="sqlite://", redis_url="redis://x"))

    assert set(schedule) == {"poll-osdr", "poll-iss", "poll-apod", "poll-neo", "poll-donki", "poll-spacex"}
    assert schedule["poll-iss"]["schedule"] == 120.0
    assert schedule["poll-donki"]["args"] == ("donki",)
    assert schedule["poll-iss"]["task"] == "spacehub.tasks.space.run_source"
