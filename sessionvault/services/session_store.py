"""Session store: maps live session identifiers to their owning user.

Records carry a time-to-live and clean themselves up; existence of a record
is the single source of truth for whether a session is still live.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from sessionvault.core.logging import session_fields
from sessionvault.core.redis_client import check_redis_connection
from sessionvault.core.retry import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerOpen,
    RetryConfig,
    retry_async,
)

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "session:"


class SessionStoreError(Exception):
    """Base error for session store operations."""


class SessionNotFound(SessionStoreError):
    """No live record for the session identifier (never issued, revoked, or expired)."""


class StoreError(SessionStoreError):
    """The backing store could not be reached or returned bad data."""


def ttl_seconds(ttl: int | float | timedelta) -> int:
    """Normalise a time-to-live to whole seconds, rejecting non-positive values."""
    seconds = ttl.total_seconds() if isinstance(ttl, timedelta) else ttl
    whole = int(seconds)
    if whole <= 0:
        raise ValueError(f"Session TTL must be at least one second, got {ttl!r}")
    return whole


class SessionStore(ABC):
    """Key-value contract for session records."""

    @abstractmethod
    async def put(self, session_id: str, user_id: int, ttl: int | float | timedelta) -> None:
        """Store ``user_id`` under ``session_id`` with a time-to-live. Overwrites silently."""

    @abstractmethod
    async def get(self, session_id: str) -> int:
        """Return the owning user id, or raise SessionNotFound."""

    @abstractmethod
    async def delete(self, session_id: str) -> int:
        """Remove the record and return how many were removed (0 or 1)."""

    async def ping(self) -> bool:
        """Return True if the store is reachable."""
        return True


class RedisSessionStore(SessionStore):
    """Session store backed by Redis ``SET EX`` / ``GET`` / ``DEL``.

    Every round-trip is bounded by ``operation_timeout``. Timeouts, Redis
    errors and an open circuit all surface as StoreError. ``put`` and ``get``
    are retried on transient failures; ``delete`` is not, because a retry
    after a lost reply would report zero records removed.
    """

    def __init__(
        self,
        client: Redis,
        *,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        operation_timeout: float = 2.0,
        retry_config: RetryConfig | None = None,
        circuit_breaker: CircuitBreaker | None = None,
    ):
        self.client = client
        self.key_prefix = key_prefix
        self.operation_timeout = operation_timeout
        self.retry_config = retry_config or RetryConfig()
        self.circuit_breaker = circuit_breaker or CircuitBreaker.get_or_create(
            "redis", CircuitBreakerConfig()
        )

    def _key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    async def _call(
        self,
        operation: str,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        retry: bool,
        **kwargs: Any,
    ) -> Any:
        async def attempt() -> Any:
            async with asyncio.timeout(self.operation_timeout):
                return await func(*args, **kwargs)

        try:
            if retry:
                return await retry_async(
                    attempt,
                    config=self.retry_config,
                    circuit_breaker=self.circuit_breaker,
                )
            async with self.circuit_breaker:
                return await attempt()
        except CircuitBreakerOpen as e:
            raise StoreError(f"Redis {operation} skipped: {e}") from e
        except TimeoutError as e:
            raise StoreError(
                f"Redis {operation} timed out after {self.operation_timeout}s"
            ) from e
        except (RedisError, OSError) as e:
            raise StoreError(f"Redis {operation} failed: {e}") from e

    async def put(self, session_id: str, user_id: int, ttl: int | float | timedelta) -> None:
        seconds = ttl_seconds(ttl)
        await self._call(
            "SET",
            self.client.set,
            self._key(session_id),
            str(user_id),
            ex=seconds,
            retry=True,
        )

    async def get(self, session_id: str) -> int:
        value = await self._call("GET", self.client.get, self._key(session_id), retry=True)
        if value is None:
            raise SessionNotFound(session_id)
        if isinstance(value, bytes):
            value = value.decode()
        try:
            return int(value)
        except ValueError as e:
            logger.warning(
                f"Corrupt session record: {value!r}", extra=session_fields(session_id=session_id)
            )
            raise StoreError(f"Session record {session_id!r} holds a non-numeric user id") from e

    async def delete(self, session_id: str) -> int:
        deleted = await self._call("DEL", self.client.delete, self._key(session_id), retry=False)
        return int(deleted)

    async def ping(self) -> bool:
        return await check_redis_connection(self.client)


class InMemorySessionStore(SessionStore):
    """Process-local session store for tests and single-process development.

    Expiry is tracked against an injectable monotonic clock. Expired entries
    are dropped lazily on access or in bulk via cleanup_expired(). All
    mutations are synchronous, so each operation is atomic within one
    event loop.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._records: dict[str, tuple[int, float]] = {}  # session_id -> (user_id, expires_at)
        self._clock = clock

    def _live(self, session_id: str) -> int | None:
        record = self._records.get(session_id)
        if record is None:
            return None
        user_id, expires_at = record
        if self._clock() >= expires_at:
            del self._records[session_id]
            return None
        return user_id

    async def put(self, session_id: str, user_id: int, ttl: int | float | timedelta) -> None:
        self._records[session_id] = (user_id, self._clock() + ttl_seconds(ttl))

    async def get(self, session_id: str) -> int:
        user_id = self._live(session_id)
        if user_id is None:
            raise SessionNotFound(session_id)
        return user_id

    async def delete(self, session_id: str) -> int:
        if self._live(session_id) is None:
            return 0
        del self._records[session_id]
        return 1

    def cleanup_expired(self) -> int:
        """Remove expired entries. Returns count removed."""
        now = self._clock()
        expired = [sid for sid, (_, expires_at) in self._records.items() if now >= expires_at]
        for sid in expired:
            del self._records[sid]
        return len(expired)

    def __len__(self) -> int:
        return len(self._records)
