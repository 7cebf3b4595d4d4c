"""Short-lived key/value storage for nonces and sessions."""

from __future__ import annotations

import time
from collections.abc import Callable
from threading import Lock
from typing import Any

import redis

from rarity_checker.core.errors import PersistenceError
from rarity_checker.core.settings import Settings

# Deletes KEYS[1] only while it still holds ARGV[1].
_DELETE_IF_EQUAL = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


class EphemeralStore:
    """Key/value store with per-key expiry.

    Backed by Redis when a client is supplied; otherwise entries live in an
    in-process dictionary, which is what tests and single-process deployments
    without ``REDIS_URL`` use.
    """

    def __init__(
        self,
        redis_client: Any | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._redis = redis_client
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = Lock()

    @property
    def backend(self) -> str:
        return "redis" if self._redis is not None else "memory"

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if self._redis is not None:
            try:
                self._redis.set(key, value, ex=int(ttl_seconds))
                return
            except redis.RedisError as err:
                raise PersistenceError("Session store is unavailable") from err

        with self._lock:
            now = self._clock()
            self._sweep(now)
            self._entries[key] = (value, now + ttl_seconds)

    def __len__(self) -> int:
        """Number of entries held in memory, expired ones included until swept."""
        return len(self._entries)

    def _sweep(self, now: float) -> None:
        # Caller holds the lock.
        expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]

    def get(self, key: str) -> str | None:
        """Return the live value for ``key`` or None when missing or expired."""
        if self._redis is not None:
            try:
                raw = self._redis.get(key)
            except redis.RedisError as err:
                raise PersistenceError("Session store is unavailable") from err
            if raw is None:
                return None
            return raw.decode() if isinstance(raw, bytes) else str(raw)

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._clock():
                self._entries.pop(key, None)
                return None
            return value

    def delete(self, key: str) -> bool:
        """Delete ``key``. Returns True only for the caller that removed a live entry."""
        if self._redis is not None:
            try:
                return bool(self._redis.delete(key))
            except redis.RedisError as err:
                raise PersistenceError("Session store is unavailable") from err

        with self._lock:
            entry = self._entries.pop(key, None)
            return entry is not None and entry[1] > self._clock()

    def delete_if(self, key: str, expected: str) -> bool:
        """Delete ``key`` only while it still holds ``expected``.

        Returns True when this call removed the live entry. A value that was
        replaced or expired in the meantime is left alone and False is returned.
        """
        if self._redis is not None:
            try:
                return bool(self._redis.eval(_DELETE_IF_EQUAL, 1, key, expected))
            except redis.RedisError as err:
                raise PersistenceError("Session store is unavailable") from err

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return False
            if value != expected:
                return False
            del self._entries[key]
            return True


def build_ephemeral_store(config: Settings) -> EphemeralStore:
    """Return a store for the configured backend."""
    if config.redis_url:
        return EphemeralStore(redis.from_url(config.redis_url))  # type: ignore[no-untyped-call]
    return EphemeralStore()
