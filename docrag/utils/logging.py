"""Logging setup and structured logging for provider calls."""

import logging
from typing import Any

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install the root handler once, at application start."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger("docrag").setLevel(level.upper())


class StructuredProviderLogger:
    """Structured logger for embedding/chat provider attempts."""

    def log_attempt(
        self,
        provider: str,
        operation: str,
        attempt: int,
        outcome: str,
        latency_ms: float,
        error_reason: str | None = None,
    ) -> None:
        """Log provider call attempt with structured data."""
        log_data: dict[str, Any] = {
            "provider": provider,
            "operation": operation,
            "attempt": attempt,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }

        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Provider call: {provider}.{operation} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
