"""
Position Cache - TTL memoization and request coalescing.

TTLCache:
- Entries expire a fixed time after creation; a read past expiry is a miss
  and the entry is replaced (lazy expiry, no background sweeper)
- When the cache reaches max_entries, one pass deletes every expired entry;
  if it is still full the oldest entries are evicted
- Mutex guarded; concurrent misses on the same key wait for the first
  caller's computation instead of recomputing, and count as hits
- Bookkeeping failures are logged and fall back to direct computation

SingleFlight:
- asyncio coalescing: concurrent awaiters of the same key share one
  in-progress computation, and a finished result stays shareable for a short
  window (100 ms reference) so near-simultaneous requests reuse it

Keys:
- position_key() rounds coordinates (3 decimals ~ 100 m) and floors the
  instant to a time bucket, so "the same venue at the same minute" is one
  cache entry
"""

import asyncio
import inspect
import logging
import math
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple, Union

from .solar_position import GeoPoint

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry:
    """Immutable cached value with its lifetime."""
    key: Hashable
    value: Any
    created_at: float
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


class _InFlight:
    def __init__(self):
        self.event = threading.Event()
        self.value: Any = None
        self.failed = False


class TTLCache:
    """Thread-safe in-memory cache with lazy expiry and threshold sweeps."""

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int = 1000,
        clock: Clock = time.monotonic,
        name: str = "cache",
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be >0, got {ttl_seconds}")
        if max_entries <= 0:
            raise ValueError(f"max_entries must be >0, got {max_entries}")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.name = name
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[Hashable, CacheEntry] = {}
        self._inflight: Dict[Hashable, _InFlight] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def get(self, key: Hashable) -> Optional[Any]:
        """Fresh cached value for key, or None."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.is_fresh(self._clock()):
                return entry.value
        return None

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        """
        Return the cached value for key, computing and storing it on a miss.

        Args:
            key: Hashable cache key
            compute: Zero-argument function producing the value

        Returns:
            The cached or freshly computed value

        Raises:
            Whatever compute raises; failures are never cached
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                if entry.is_fresh(self._clock()):
                    self.hits += 1
                    return entry.value
                del self._entries[key]
            waiter = self._inflight.get(key)
            owner = waiter is None
            if owner:
                self.misses += 1
                waiter = _InFlight()
                self._inflight[key] = waiter
            else:
                # shares the owner's computation
                self.hits += 1

        if not owner:
            waiter.event.wait()
            if not waiter.failed:
                return waiter.value
            # the first caller failed; let this caller see its own error
            with self._lock:
                self.hits -= 1
                self.misses += 1
            return compute()

        try:
            value = compute()
        except BaseException:
            with self._lock:
                self._inflight.pop(key, None)
            waiter.failed = True
            waiter.event.set()
            raise

        try:
            with self._lock:
                self._store(key, value)
        except Exception as e:
            logger.warning(f"[CACHE] {self.name}: failed to store {key!r}: {e}")
        finally:
            with self._lock:
                self._inflight.pop(key, None)
            waiter.value = value
            waiter.event.set()
        return value

    def _store(self, key: Hashable, value: Any) -> None:
        now = self._clock()
        if len(self._entries) >= self.max_entries:
            self._sweep(now)
        self._entries[key] = CacheEntry(
            key=key, value=value, created_at=now, expires_at=now + self.ttl_seconds
        )

    def _sweep(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if not e.is_fresh(now)]
        for k in expired:
            del self._entries[k]
        # still full: drop oldest (dict keeps insertion order)
        overflow = len(self._entries) - self.max_entries + 1
        for k in list(self._entries)[:max(0, overflow)]:
            del self._entries[k]
        logger.debug(
            f"[CACHE] {self.name}: swept {len(expired)} expired, evicted {max(0, overflow)} oldest"
        )


class SingleFlight:
    """Coalesces concurrent async computations of the same key."""

    def __init__(self, window_seconds: float = 0.1):
        if window_seconds < 0:
            raise ValueError(f"window_seconds must be >=0, got {window_seconds}")
        self.window_seconds = window_seconds
        self._pending: Dict[Hashable, asyncio.Future] = {}
        self.executions = 0

    def __len__(self) -> int:
        return len(self._pending)

    async def run(self, key: Hashable, fn: Callable[[], Union[Any, Awaitable[Any]]]) -> Any:
        """
        Run fn once for all concurrent callers of key.

        fn may be a plain function or return an awaitable. Callers arriving
        while the computation is pending, or within window_seconds after it
        finished, get the same result. The computation runs in its own task,
        so a cancelled caller stops waiting without cancelling it for the
        others.
        """
        task = self._pending.get(key)
        if task is None:
            loop = asyncio.get_running_loop()
            task = loop.create_task(self._call(fn))
            self._pending[key] = task
            self.executions += 1
            task.add_done_callback(lambda t: self._finished(loop, key, t))
        return await asyncio.shield(task)

    @staticmethod
    async def _call(fn: Callable[[], Union[Any, Awaitable[Any]]]) -> Any:
        result = fn()
        if inspect.isawaitable(result):
            result = await result
        return result

    def _finished(self, loop: asyncio.AbstractEventLoop, key: Hashable, task: asyncio.Future) -> None:
        if task.cancelled() or task.exception() is not None:
            self._forget(key, task)
        elif self.window_seconds > 0:
            loop.call_later(self.window_seconds, self._forget, key, task)
        else:
            self._forget(key, task)

    def _forget(self, key: Hashable, task: asyncio.Future) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]


def round_coordinate(value: float, precision: int = 3) -> float:
    """Round a coordinate for cache bucketing (3 decimals ~ 100 m)."""
    return round(value, precision)


def time_bucket(instant: datetime, bucket_seconds: int = 60) -> int:
    """POSIX seconds of the start of the bucket containing instant."""
    seconds = instant.timestamp()
    return int(math.floor(seconds / bucket_seconds) * bucket_seconds)


def bucket_instant(bucket: int) -> datetime:
    return datetime.fromtimestamp(bucket, tz=timezone.utc)


def position_key(
    point: GeoPoint,
    instant: datetime,
    precision: int = 3,
    bucket_seconds: int = 60,
) -> Tuple[float, float, int]:
    """Cache key (rounded lat, rounded lon, time bucket start)."""
    return (
        round_coordinate(point.latitude, precision),
        round_coordinate(point.longitude, precision),
        time_bucket(instant, bucket_seconds),
    )
