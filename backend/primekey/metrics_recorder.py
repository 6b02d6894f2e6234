from __future__ import annotations

"""Prometheus metrics for prime searches and key generation."""

from prometheus_client import Counter, Histogram

from .config import settings


class SearchMetricsRecorder:
    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._candidates = Counter(
            "primekey_candidates_total",
            "Prime candidates evaluated, by outcome",
            labelnames=["outcome"],
        )
        self._searches = Counter(
            "primekey_prime_searches_total",
            "Prime searches by status",
            labelnames=["status"],
        )
        self._latency = Histogram(
            "primekey_prime_search_seconds",
            "Wall-clock latency of a prime search",
            labelnames=["bits"],
            buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 4, 8, 15, 30, 60, float("inf")),
        )

    def record_candidate(self, outcome: str, count: int = 1) -> None:
        if not self.enabled or count <= 0:
            return
        self._candidates.labels(outcome=outcome or "unknown").inc(count)

    def record_success(self, bits: int, latency_seconds: float | None) -> None:
        if not self.enabled:
            return
        self._searches.labels(status="succeeded").inc()
        self._latency.labels(bits=str(bits)).observe(latency_seconds or 0.0)

    def record_timeout(self, bits: int, latency_seconds: float | None) -> None:
        if not self.enabled:
            return
        self._searches.labels(status="timeout").inc()
        self._latency.labels(bits=str(bits)).observe(latency_seconds or 0.0)


search_metrics = SearchMetricsRecorder(enabled=settings.enable_metrics)


class KeygenMetricsRecorder:
    """Key pair generation counters."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._keypairs = Counter(
            "primekey_keypairs_total",
            "Key pairs generated, by requested size",
            labelnames=["key_bits"],
        )
        self._redraws = Counter(
            "primekey_prime_redraws_total",
            "Second-prime redraws because p == q or gcd(e, phi) != 1",
        )
        self._latency = Histogram(
            "primekey_keygen_seconds",
            "Wall-clock latency of key pair generation",
            labelnames=["key_bits"],
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 4, 8, 15, 30, 60, 120, float("inf")),
        )

    def record_keypair(self, key_bits: int, latency_seconds: float | None) -> None:
        if not self.enabled:
            return
        label = str(key_bits)
        self._keypairs.labels(key_bits=label).inc()
        self._latency.labels(key_bits=label).observe(latency_seconds or 0.0)

    def record_redraw(self) -> None:
        if self.enabled:
            self._redraws.inc()


keygen_metrics = KeygenMetricsRecorder(enabled=settings.enable_metrics)
