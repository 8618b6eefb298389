"""
Per-client attempt limiting for login and contact submissions.

Supports an in-memory store for single-process deployments and tests and a
Redis-backed store shared between workers.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Protocol

import redis
from redis import exceptions as redis_exceptions

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class RateLimiter(Protocol):
    """Counts attempts per client identifier inside a fixed window."""

    def check_and_record(
        self, client_id: str, max_attempts: int, window_ms: int
    ) -> bool:
        ...

    def clear(self, client_id: str) -> None:
        ...

    def sweep(self, max_age_ms: int) -> int:
        ...


@dataclass
class AttemptRecord:
    count: int
    window_start: int


class InMemoryRateLimiter:
    """Thread-safe attempt counter kept in process memory."""

    def __init__(self, clock: Clock = wall_clock_ms):
        self._clock = clock
        self._lock = threading.Lock()
        self._records: Dict[str, AttemptRecord] = {}

    def check_and_record(
        self, client_id: str, max_attempts: int, window_ms: int
    ) -> bool:
        now = self._clock()
        with self._lock:
            record = self._records.get(client_id)
            if record is None or now - record.window_start >= window_ms:
                self._records[client_id] = AttemptRecord(count=1, window_start=now)
                return True
            if record.count >= max_attempts:
                return False
            record.count += 1
            return True

    def clear(self, client_id: str) -> None:
        with self._lock:
            self._records.pop(client_id, None)

    def get(self, client_id: str) -> Optional[AttemptRecord]:
        with self._lock:
            record = self._records.get(client_id)
            if record is None:
                return None
            return AttemptRecord(count=record.count, window_start=record.window_start)

    def sweep(self, max_age_ms: int) -> int:
        """Drop records whose window started more than max_age_ms ago."""
        now = self._clock()
        with self._lock:
            stale = [
                client_id
                for client_id, record in self._records.items()
                if now - record.window_start > max_age_ms
            ]
            for client_id in stale:
                del self._records[client_id]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


# KEYS[1] = record key; ARGV = now_ms, max_attempts, window_ms.
_CHECK_AND_RECORD_LUA = """
local record = redis.call('HMGET', KEYS[1], 'count', 'window_start')
local now = tonumber(ARGV[1])
local max_attempts = tonumber(ARGV[2])
local window = tonumber(ARGV[3])
local count = tonumber(record[1])
local window_start = tonumber(record[2])
if (not count) or (not window_start) or (now - window_start >= window) then
  redis.call('HSET', KEYS[1], 'count', 1, 'window_start', now)
  redis.call('PEXPIRE', KEYS[1], window)
  return 1
end
if count >= max_attempts then
  return 0
end
redis.call('HINCRBY', KEYS[1], 'count', 1)
return 1
"""


class RedisRateLimiter:
    """
    Redis-backed attempt counter. The check and the increment run inside one
    Lua script so concurrent workers cannot both slip under the threshold.
    """

    def __init__(
        self,
        url: str,
        key_prefix: str = "caucus:ratelimit",
        clock: Clock = wall_clock_ms,
        client: Optional[redis.Redis] = None,
    ):
        self.url = url
        self.key_prefix = key_prefix
        self._clock = clock
        self.client = client or redis.Redis.from_url(url)
        self._script = self.client.register_script(_CHECK_AND_RECORD_LUA)

    def _key(self, client_id: str) -> str:
        return f"{self.key_prefix}:{client_id}"

    def _reconnect(self) -> None:
        self.client = redis.Redis.from_url(self.url)
        self._script = self.client.register_script(_CHECK_AND_RECORD_LUA)

    def check_and_record(
        self, client_id: str, max_attempts: int, window_ms: int
    ) -> bool:
        try:
            allowed = self._script(
                keys=[self._key(client_id)],
                args=[self._clock(), max_attempts, window_ms],
            )
        except redis_exceptions.RedisError as exc:
            # Fail open; the next attempt uses a fresh connection.
            logger.warning(
                "Redis unavailable (%s), admitting attempt from %s without counting",
                exc,
                client_id,
            )
            self._reconnect()
            return True
        return bool(int(allowed))

    def clear(self, client_id: str) -> None:
        try:
            self.client.delete(self._key(client_id))
        except redis_exceptions.RedisError as exc:
            logger.warning(
                "Redis unavailable (%s), could not clear attempts for %s", exc, client_id
            )
            self._reconnect()

    def sweep(self, max_age_ms: int) -> int:
        # Keys carry a PEXPIRE of their window.
        return 0


class RateLimitSweeper:
    """Background thread that periodically drops stale attempt records."""

    def __init__(
        self,
        targets: Iterable[tuple[RateLimiter, int]],
        interval_seconds: float = 300.0,
    ):
        self.targets = list(targets)
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="rate-limit-sweeper", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None

    def sweep_once(self) -> int:
        removed = 0
        for limiter, max_age_ms in self.targets:
            try:
                removed += limiter.sweep(max_age_ms)
            except Exception:
                logger.exception("Rate limit sweep failed for %s", limiter.__class__.__name__)
        if removed:
            logger.debug("Swept %d stale rate limit records", removed)
        return removed

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.sweep_once()
