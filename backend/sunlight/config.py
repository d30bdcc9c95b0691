"""
Sunlight engine settings.

Values come from environment variables (``server.py`` loads ``.env`` through
python-dotenv before the engine is built). Defaults match the reference
behaviour: 15 minute sampling, 14 day forecasts, 24h position cache, 5 minute
request cache, 1000 entry sweep threshold and a 100 ms coalescing window.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional


def _read_int(env: Mapping[str, str], name: str, default: int, minimum: int = 1) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class SunlightSettings:
    step_minutes: int = 15
    max_forecast_days: int = 14
    position_ttl_seconds: int = 24 * 60 * 60
    result_ttl_seconds: int = 5 * 60
    cache_max_entries: int = 1000
    coalesce_window_ms: int = 100
    coord_precision: int = 3
    time_bucket_seconds: int = 60
    max_obstructions: int = 50

    @property
    def coalesce_window_seconds(self) -> float:
        return self.coalesce_window_ms / 1000.0

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "SunlightSettings":
        """Build settings from ``SUNLIGHT_*`` environment variables."""
        env = os.environ if env is None else env
        return cls(
            step_minutes=_read_int(env, "SUNLIGHT_STEP_MINUTES", cls.step_minutes),
            max_forecast_days=_read_int(env, "SUNLIGHT_MAX_FORECAST_DAYS", cls.max_forecast_days),
            position_ttl_seconds=_read_int(env, "SUNLIGHT_POSITION_TTL_SECONDS", cls.position_ttl_seconds),
            result_ttl_seconds=_read_int(env, "SUNLIGHT_RESULT_TTL_SECONDS", cls.result_ttl_seconds),
            cache_max_entries=_read_int(env, "SUNLIGHT_CACHE_MAX_ENTRIES", cls.cache_max_entries),
            coalesce_window_ms=_read_int(env, "SUNLIGHT_COALESCE_WINDOW_MS", cls.coalesce_window_ms, minimum=0),
            coord_precision=_read_int(env, "SUNLIGHT_COORD_PRECISION", cls.coord_precision, minimum=0),
            time_bucket_seconds=_read_int(env, "SUNLIGHT_TIME_BUCKET_SECONDS", cls.time_bucket_seconds),
            max_obstructions=_read_int(env, "SUNLIGHT_MAX_OBSTRUCTIONS", cls.max_obstructions, minimum=0),
        )
