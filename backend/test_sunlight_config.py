import pytest
from datetime import date, datetime, timedelta, timezone

from sunlight.config import SunlightSettings
from sunlight.errors import InvalidCoordinateError, InvalidInstantError
from sunlight.registry import get_engine, load_engine, reload_engine
from sunlight.validation import (
    FIRST_SUPPORTED_DATE,
    LAST_SUPPORTED_DATE,
    day_range,
    to_date,
    to_utc,
    validate_coordinates,
)


@pytest.fixture(autouse=True)
def _default_engine(monkeypatch):
    for name in ("SUNLIGHT_STEP_MINUTES", "SUNLIGHT_MAX_FORECAST_DAYS", "SUNLIGHT_COALESCE_WINDOW_MS"):
        monkeypatch.delenv(name, raising=False)
    reload_engine()
    yield
    reload_engine(SunlightSettings())


def test_defaults():
    settings = SunlightSettings.from_env({})
    assert settings == SunlightSettings()
    assert settings.step_minutes == 15
    assert settings.max_forecast_days == 14
    assert settings.position_ttl_seconds == 86400
    assert settings.result_ttl_seconds == 300
    assert settings.cache_max_entries == 1000
    assert settings.coalesce_window_seconds == pytest.approx(0.1)


def test_overrides_from_mapping():
    settings = SunlightSettings.from_env({
        "SUNLIGHT_STEP_MINUTES": "5",
        "SUNLIGHT_MAX_FORECAST_DAYS": "7",
        "SUNLIGHT_COALESCE_WINDOW_MS": "0",
        "SUNLIGHT_MAX_OBSTRUCTIONS": " ",
    })
    assert settings.step_minutes == 5
    assert settings.max_forecast_days == 7
    assert settings.coalesce_window_seconds == 0
    assert settings.max_obstructions == 50


@pytest.mark.parametrize("name,value", [
    ("SUNLIGHT_STEP_MINUTES", "fifteen"),
    ("SUNLIGHT_STEP_MINUTES", "0"),
    ("SUNLIGHT_MAX_FORECAST_DAYS", "-1"),
    ("SUNLIGHT_POSITION_TTL_SECONDS", "1.5"),
    ("SUNLIGHT_COALESCE_WINDOW_MS", "-10"),
])
def test_malformed_values_rejected(name, value):
    with pytest.raises(ValueError) as exc_info:
        SunlightSettings.from_env({name: value})
    assert name in str(exc_info.value)


def test_registry_reads_environment(monkeypatch):
    monkeypatch.setenv("SUNLIGHT_STEP_MINUTES", "10")
    engine = reload_engine()
    assert engine.settings.step_minutes == 10
    assert engine.scanner.step == timedelta(minutes=10)


def test_registry_returns_same_engine():
    assert get_engine() is get_engine()
    assert load_engine() is get_engine()


def test_reload_with_explicit_settings():
    before = get_engine()
    engine = reload_engine(SunlightSettings(max_forecast_days=3))
    assert engine is not before
    assert get_engine().settings.max_forecast_days == 3
    assert get_engine().aggregator.max_days == 3


class TestValidation:

    @pytest.mark.parametrize("latitude,longitude", [
        ("57.7", 11.9),
        (True, 0),
        (None, 0),
        (0, float("-inf")),
    ])
    def test_bad_coordinates(self, latitude, longitude):
        with pytest.raises(InvalidCoordinateError):
            validate_coordinates(latitude, longitude)

    @pytest.mark.parametrize("value,expected", [
        ("2024-06-21T11:13:00Z", datetime(2024, 6, 21, 11, 13, tzinfo=timezone.utc)),
        ("2024-06-21T13:13:00+02:00", datetime(2024, 6, 21, 11, 13, tzinfo=timezone.utc)),
        ("2024-06-21T11:13:00", datetime(2024, 6, 21, 11, 13, tzinfo=timezone.utc)),
        (0, datetime(1970, 1, 1, tzinfo=timezone.utc)),
        (1718968380, datetime(2024, 6, 21, 11, 13, tzinfo=timezone.utc)),
    ])
    def test_to_utc(self, value, expected):
        result = to_utc(value)
        assert result == expected
        assert result.utcoffset() == timedelta(0)

    @pytest.mark.parametrize("value", [
        "",
        "yesterday",
        True,
        [2024, 6, 21],
        float("nan"),
        "9999-12-31T23:00:00-02:00",
        "0001-01-01T01:00:00+02:00",
    ])
    def test_to_utc_rejects(self, value):
        with pytest.raises(InvalidInstantError):
            to_utc(value)

    @pytest.mark.parametrize("value,expected", [
        ("2024-06-21", date(2024, 6, 21)),
        ("2024-06-21T23:30:00-02:00", date(2024, 6, 22)),
        (datetime(2024, 6, 21, 23, 30, tzinfo=timezone(timedelta(hours=-2))), date(2024, 6, 22)),
        (date(2024, 6, 21), date(2024, 6, 21)),
    ])
    def test_to_date(self, value, expected):
        assert to_date(value) == expected

    @pytest.mark.parametrize("value", [
        "2024-02-30",
        "soon",
        20240621,
        date.max,
        date.min,
        "9999-12-30",
        datetime(1, 1, 2, 12, 0),
    ])
    def test_to_date_rejects(self, value):
        with pytest.raises(InvalidInstantError):
            to_date(value)

    def test_supported_range_edges_accepted(self):
        assert to_date(FIRST_SUPPORTED_DATE) == FIRST_SUPPORTED_DATE
        assert to_date(LAST_SUPPORTED_DATE.isoformat()) == LAST_SUPPORTED_DATE

    def test_day_range(self):
        assert day_range("2024-02-28", 3) == [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]
        assert day_range(LAST_SUPPORTED_DATE, 1) == [LAST_SUPPORTED_DATE]

    @pytest.mark.parametrize("start,days", [
        (LAST_SUPPORTED_DATE, 2),
        (LAST_SUPPORTED_DATE - timedelta(days=3), 14),
    ])
    def test_day_range_past_last_supported_date(self, start, days):
        with pytest.raises(InvalidInstantError):
            day_range(start, days)
