"""Prometheus metrics for provider calls, ingestion and retrieval."""

from prometheus_client import Counter, Histogram

# Provider call metrics
provider_latency_ms = Histogram(
    "provider_latency_ms",
    "Provider call latency in milliseconds",
    ["provider", "operation", "outcome"],
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 4000, 8000, 16000],
)

provider_errors_total = Counter(
    "provider_errors_total",
    "Total provider call errors",
    ["provider", "reason"],
)

# Pipeline metrics
ingest_documents_total = Counter(
    "ingest_documents_total",
    "Ingestion calls by outcome",
    ["outcome"],
)

ingest_chunks_total = Counter(
    "ingest_chunks_total",
    "Chunks persisted by ingestion",
)

queries_total = Counter(
    "queries_total",
    "Query calls by outcome",
    ["outcome"],
)

retrieval_hits = Histogram(
    "retrieval_hits",
    "Number of chunks returned per nearest-neighbour query",
    buckets=[0, 1, 2, 3, 5, 10, 20],
)


class PrometheusProviderMetrics:
    """Prometheus-based provider metrics implementation."""

    def record_latency(self, provider: str, operation: str, outcome: str, latency_ms: float) -> None:
        """Record provider call latency."""
        provider_latency_ms.labels(provider=provider, operation=operation, outcome=outcome).observe(
            latency_ms
        )

    def inc_error(self, provider: str, reason: str) -> None:
        """Increment error counter."""
        provider_errors_total.labels(provider=provider, reason=reason).inc()
