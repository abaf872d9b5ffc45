from datetime import timedelta

import pytest

from conftest import StepClock
from spacehub.db_space_cache import SqlSampleCache
from spacehub.services.trend import TrendCalculator
from spacehub.utils.geo import haversine_km


def _calc(engine, step=timedelta(hours=1)):
    cache = SqlSampleCache(engine, clock=StepClock(step=step))
    return cache, TrendCalculator(cache)


def test_no_samples_gives_zero_result(engine):
    _, calc = _calc(engine)
    result = calc.compute_trend()
    assert result.movement is False
    assert result.delta_km == 0.0
    assert result.dt_sec == 0.0
    assert result.from_time is None and result.to_lat is None
    assert result.message == "not enough samples"


def test_single_sample_gives_zero_result(engine):
    cache, calc = _calc(engine)
    cache.write("iss", {"latitude": 0, "longitude": 0})
    result = calc.compute_trend()
    assert result.movement is False
    assert result.delta_km == 0.0


def test_one_degree_of_longitude_over_an_hour(engine):
    cache, calc = _calc(engine)
    cache.write("iss", {"latitude": 0, "longitude": 0})
    cache.write("iss", {"latitude": 0, "longitude": 1, "velocity": 27600.5})

    result = calc.compute_trend()

    assert result.dt_sec == 3600
    assert result.delta_km == pytest.approx(111.19, abs=0.05)
    assert result.movement is True
    assert result.velocity_kmh == 27600.5
    assert (result.from_lat, result.from_lon, result.to_lat, result.to_lon) == (0, 0, 0, 1)
    assert result.to_time - result.from_time == timedelta(hours=1)


def test_only_two_newest_samples_are_used(engine):
    cache, calc = _calc(engine)
    cache.write("iss", {"latitude": 50, "longitude": 50})
    cache.write("iss", {"latitude": 10, "longitude": 20})
    cache.write("iss", {"latitude": 10, "longitude": 20})

    result = calc.compute_trend()
    assert result.delta_km == 0.0
    assert result.movement is False


def test_numeric_strings_are_accepted(engine):
    cache, calc = _calc(engine)
    cache.write("iss", {"latitude": "0", "longitude": "0"})
    cache.write("iss", {"latitude": "0", "longitude": "1", "velocity": "27000"})
    result = calc.compute_trend()
    assert result.movement is True
    assert result.velocity_kmh == 27000.0


def test_missing_coordinates_skip_distance(engine):
    cache, calc = _calc(engine)
    cache.write("iss", {"latitude": 0, "longitude": 0})
    cache.write("iss", {"latitude": "unknown", "longitude": 1})

    result = calc.compute_trend()
    assert result.delta_km == 0.0
    assert result.movement is False
    assert result.to_lat is None
    assert result.dt_sec == 3600


def test_other_sources_are_ignored(engine):
    cache, calc = _calc(engine)
    cache.write("iss", {"latitude": 0, "longitude": 0})
    cache.write("apod", {"latitude": 0, "longitude": 90})
    assert calc.compute_trend().message == "not enough samples"


def test_haversine_is_symmetric_and_zero_on_identity():
    assert haversine_km(12.5, -40.0, 12.5, -40.0) == 0.0
    assert haversine_km(0, 0, 10, 10) == pytest.approx(haversine_km(10, 10, 0, 0))
