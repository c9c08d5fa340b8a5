"""Retry with exponential backoff and a circuit breaker for session store calls."""

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation, requests allowed
    OPEN = "open"  # Failure threshold exceeded, requests blocked
    HALF_OPEN = "half_open"  # Testing if the store recovered


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Delays are kept short: store calls sit on the request path.
    """

    max_retries: int = 2
    base_delay: float = 0.05  # Base delay in seconds
    max_delay: float = 0.5  # Maximum delay in seconds
    exponential_base: float = 2.0
    jitter: bool = True
    retryable_exceptions: tuple = (
        RedisConnectionError,
        RedisTimeoutError,
        ConnectionError,
        TimeoutError,
    )


@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker behavior."""

    failure_threshold: int = 5  # Failures before opening circuit
    success_threshold: int = 2  # Successes in half-open before closing
    timeout: float = 30.0  # Seconds before attempting half-open
    excluded_exceptions: tuple = ()  # Exceptions that don't count as failures


@dataclass
class CircuitBreakerState:
    """Mutable state for circuit breaker."""

    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    success_count: int = 0
    last_failure_time: float | None = None


class CircuitBreakerOpen(Exception):
    """Raised when a call is attempted while the circuit is open."""

    def __init__(self, service_name: str, retry_after: float):
        self.service_name = service_name
        self.retry_after = retry_after
        super().__init__(f"Circuit breaker open for {service_name}. Retry after {retry_after:.1f}s")


class CircuitBreaker:
    """Circuit breaker guarding an external dependency."""

    # Class-level registry of circuit breakers by service name
    _instances: dict[str, "CircuitBreaker"] = {}

    def __init__(
        self,
        service_name: str,
        config: CircuitBreakerConfig | None = None,
    ):
        self.service_name = service_name
        self.config = config or CircuitBreakerConfig()
        self._state = CircuitBreakerState()
        self._lock = asyncio.Lock()

    @classmethod
    def get_or_create(
        cls,
        service_name: str,
        config: CircuitBreakerConfig | None = None,
    ) -> "CircuitBreaker":
        """Get existing circuit breaker or create new one."""
        if service_name not in cls._instances:
            cls._instances[service_name] = cls(service_name, config)
        return cls._instances[service_name]

    @property
    def state(self) -> CircuitState:
        return self._state.state

    def get_state(self) -> dict:
        """Get current circuit breaker state."""
        return {
            "service_name": self.service_name,
            "state": self._state.state.value,
            "failure_count": self._state.failure_count,
            "success_count": self._state.success_count,
            "last_failure_time": self._state.last_failure_time,
            "config": {
                "failure_threshold": self.config.failure_threshold,
                "success_threshold": self.config.success_threshold,
                "timeout": self.config.timeout,
            },
        }

    async def reset(self) -> None:
        """Reset circuit breaker to closed state."""
        async with self._lock:
            self._state = CircuitBreakerState()
        logger.info(f"Circuit breaker reset for {self.service_name}")

    async def check(self) -> None:
        """Raise CircuitBreakerOpen if calls are currently blocked."""
        async with self._lock:
            if self._state.state != CircuitState.OPEN or not self._state.last_failure_time:
                return
            elapsed = time.monotonic() - self._state.last_failure_time
            if elapsed < self.config.timeout:
                raise CircuitBreakerOpen(self.service_name, self.config.timeout - elapsed)
            logger.info(f"Circuit breaker half-opening for {self.service_name}")
            self._state.state = CircuitState.HALF_OPEN
            self._state.success_count = 0

    async def record_success(self) -> None:
        """Record a successful call."""
        async with self._lock:
            if self._state.state == CircuitState.HALF_OPEN:
                self._state.success_count += 1
                if self._state.success_count >= self.config.success_threshold:
                    logger.info(f"Circuit breaker closing for {self.service_name}")
                    self._state.state = CircuitState.CLOSED
                    self._state.failure_count = 0
            elif self._state.state == CircuitState.CLOSED:
                self._state.failure_count = 0

    async def record_failure(self, exception: BaseException) -> None:
        """Record a failed call."""
        if isinstance(exception, self.config.excluded_exceptions):
            return

        async with self._lock:
            # Keep the recovery timer running while already open
            if self._state.state == CircuitState.OPEN:
                return

            self._state.failure_count += 1
            self._state.last_failure_time = time.monotonic()

            if self._state.state == CircuitState.HALF_OPEN:
                logger.warning(f"Circuit breaker reopening for {self.service_name}: {exception}")
                self._state.state = CircuitState.OPEN
            elif self._state.failure_count >= self.config.failure_threshold:
                logger.warning(
                    f"Circuit breaker opening for {self.service_name}: "
                    f"{self._state.failure_count} failures"
                )
                self._state.state = CircuitState.OPEN

    async def __aenter__(self) -> "CircuitBreaker":
        await self.check()
        return self

    async def __aexit__(self, exc_type, exc_val, _exc_tb) -> bool:
        if exc_type is None:
            await self.record_success()
        elif exc_val is not None and not isinstance(exc_val, asyncio.CancelledError):
            await self.record_failure(exc_val)
        return False


def calculate_backoff_delay(
    attempt: int,
    config: RetryConfig,
) -> float:
    """Calculate delay for exponential backoff with optional jitter."""
    delay = config.base_delay * (config.exponential_base**attempt)
    delay = min(delay, config.max_delay)

    if config.jitter:
        # Random jitter between 0.5x and 1.5x the delay
        delay = delay * (0.5 + random.random())

    return delay


async def retry_async(
    func: Callable[..., Awaitable[Any]],
    *args,
    config: RetryConfig | None = None,
    circuit_breaker: CircuitBreaker | None = None,
    **kwargs,
) -> Any:
    """Execute an async function with retry logic.

    Only exceptions listed in ``config.retryable_exceptions`` are retried;
    anything else is raised immediately. CircuitBreakerOpen is never retried.

    Raises:
        The last exception if all retries fail
    """
    config = config or RetryConfig()

    for attempt in range(config.max_retries + 1):
        try:
            if circuit_breaker:
                await circuit_breaker.check()

            result = await func(*args, **kwargs)

            if circuit_breaker:
                await circuit_breaker.record_success()

            return result

        except CircuitBreakerOpen:
            raise

        except Exception as e:
            if not isinstance(e, config.retryable_exceptions) or attempt >= config.max_retries:
                # One failing request counts once, however many attempts it took
                if circuit_breaker:
                    await circuit_breaker.record_failure(e)
                logger.warning(f"Retry failed after {attempt + 1} attempts: {e}")
                raise

            delay = calculate_backoff_delay(attempt, config)
            logger.info(
                f"Retry attempt {attempt + 1}/{config.max_retries} after {delay:.2f}s delay: {e}"
            )
            await asyncio.sleep(delay)

    raise RuntimeError("Retry logic error")
