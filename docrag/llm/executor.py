"""Async provider call executor with per-attempt timeouts and bounded retries.

Every embedding and chat call goes through ``ProviderCallExecutor.call``:
- Hard timeout per attempt
- Bounded retries with exponential backoff and jitter
- Retries only for errors flagged ``retryable`` (rate limits, transport)
- Metrics and structured logging per attempt
"""

import asyncio
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from docrag.config import Settings
from docrag.errors import ProviderError, ProviderTransportError

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for provider call execution."""

    max_retries: int = 3
    backoff_base_ms: int = 250
    backoff_max_ms: int = 4000
    attempt_timeout_ms: int = 20000

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryConfig":
        """Build retry config from application settings."""
        return cls(
            max_retries=settings.provider_max_retries,
            backoff_base_ms=settings.provider_backoff_base_ms,
            backoff_max_ms=settings.provider_backoff_max_ms,
            attempt_timeout_ms=settings.provider_attempt_timeout_ms,
        )


# Metrics interface (to be implemented by actual metrics system)
class ProviderMetrics:
    """Interface for provider call metrics."""

    def record_latency(self, provider: str, operation: str, outcome: str, latency_ms: float) -> None:
        """Record provider call latency."""
        pass

    def inc_error(self, provider: str, reason: str) -> None:
        """Increment error counter."""
        pass


# Logging interface
class ProviderLogger:
    """Interface for structured logging."""

    def log_attempt(
        self,
        provider: str,
        operation: str,
        attempt: int,
        outcome: str,
        latency_ms: float,
        error_reason: str | None = None,
    ) -> None:
        """Log provider call attempt."""
        pass


class ProviderCallExecutor:
    """Runs provider calls with timeouts and retries."""

    def __init__(
        self,
        provider: str,
        config: RetryConfig,
        metrics: ProviderMetrics | None = None,
        logger: ProviderLogger | None = None,
        sleep_fn: Callable[[float], Awaitable[None]] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize executor.

        Args:
            provider: Provider label used in metrics and logs
            config: Retry and timeout configuration
            metrics: Metrics recorder (optional, defaults to no-op)
            logger: Structured logger (optional, defaults to no-op)
            sleep_fn: Injectable sleep function (default: asyncio.sleep)
            rng: Random source for jitter (default: module-level random)
        """
        self.provider = provider
        self.config = config
        self._metrics = metrics or ProviderMetrics()
        self._logger = logger or ProviderLogger()
        self._sleep = sleep_fn or asyncio.sleep
        self._rng = rng or random.Random()

    def backoff_seconds(self, attempt: int) -> float:
        """Delay before retry number ``attempt + 1`` (full jitter on the upper half)."""
        ceiling_ms = min(self.config.backoff_max_ms, self.config.backoff_base_ms * (2**attempt))
        return self._rng.uniform(ceiling_ms / 2, ceiling_ms) / 1000

    async def call(self, operation: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Execute ``fn`` with the retry pipeline.

        Args:
            operation: Operation label ("embed", "complete")
            fn: Zero-argument coroutine factory; called once per attempt

        Returns:
            Result of the first successful attempt

        Raises:
            ProviderError: Non-retryable failure, or the last retryable
                failure once all attempts are exhausted
        """
        last_error: ProviderError | None = None
        timeout_sec = self.config.attempt_timeout_ms / 1000

        for attempt in range(self.config.max_retries + 1):
            attempt_start = time.monotonic()

            try:
                result = await asyncio.wait_for(fn(), timeout=timeout_sec)

                elapsed_ms = (time.monotonic() - attempt_start) * 1000
                self._metrics.record_latency(self.provider, operation, "success", elapsed_ms)
                self._logger.log_attempt(self.provider, operation, attempt + 1, "success", elapsed_ms)
                return result

            except TimeoutError:
                elapsed_ms = (time.monotonic() - attempt_start) * 1000
                last_error = ProviderTransportError(
                    f"{self.provider}.{operation} timed out after {self.config.attempt_timeout_ms}ms"
                )
                self._metrics.record_latency(self.provider, operation, "timeout", elapsed_ms)
                self._metrics.inc_error(self.provider, "timeout")
                self._logger.log_attempt(
                    self.provider, operation, attempt + 1, "timeout", elapsed_ms, error_reason="timeout"
                )

            except ProviderError as e:
                elapsed_ms = (time.monotonic() - attempt_start) * 1000
                last_error = e
                self._metrics.record_latency(self.provider, operation, "error", elapsed_ms)
                self._metrics.inc_error(self.provider, e.code)
                self._logger.log_attempt(
                    self.provider, operation, attempt + 1, "error", elapsed_ms, error_reason=e.code
                )

                if not e.retryable:
                    raise

            if attempt < self.config.max_retries:
                await self._sleep(self.backoff_seconds(attempt))

        assert last_error is not None
        raise last_error
