"""
Shared metrics configuration for the External User Service.
"""

from typing import Dict, Any, Optional
import threading
import time
from contextlib import contextmanager

from prometheus_client import CollectorRegistry, Counter, Histogram, Info


class MetricsCollector:
    """Centralized metrics collector for upstream calls and cache lookups."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        # Private registry so several collectors can coexist in one process
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up metrics for the service."""

        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        self._metrics["upstream_requests_total"] = Counter(
            "upstream_requests_total",
            "Total calls to the remote user API",
            ["operation", "outcome"],
            registry=self.registry
        )

        self._metrics["upstream_request_duration_seconds"] = Histogram(
            "upstream_request_duration_seconds",
            "Remote user API call duration in seconds, retries included",
            ["operation"],
            registry=self.registry
        )

        self._metrics["upstream_retries_total"] = Counter(
            "upstream_retries_total",
            "Total retries issued against the remote user API",
            ["operation"],
            registry=self.registry
        )

        self._metrics["cache_lookups_total"] = Counter(
            "cache_lookups_total",
            "Total cache lookups",
            ["namespace", "result"],
            registry=self.registry
        )

    def record_upstream_request(self, operation: str, outcome: str, duration: float):
        """Record one logical upstream call."""
        self._metrics["upstream_requests_total"].labels(
            operation=operation,
            outcome=outcome
        ).inc()
        self._metrics["upstream_request_duration_seconds"].labels(
            operation=operation
        ).observe(duration)

    def record_retry(self, operation: str):
        """Record a retry."""
        self._metrics["upstream_retries_total"].labels(operation=operation).inc()

    def record_cache_lookup(self, namespace: str, hit: bool):
        """Record a cache hit or miss."""
        self._metrics["cache_lookups_total"].labels(
            namespace=namespace,
            result="hit" if hit else "miss"
        ).inc()

    @contextmanager
    def time_upstream_request(self, operation: str):
        """Time an upstream call and record its outcome.

        The outcome defaults to ``success``; an exception records its
        ``code`` attribute (or class name) before propagating.
        """
        start_time = time.time()
        try:
            yield
        except BaseException as exc:
            outcome = getattr(exc, "code", None) or type(exc).__name__
            self.record_upstream_request(operation, outcome, time.time() - start_time)
            raise
        self.record_upstream_request(operation, "success", time.time() - start_time)

    def get_sample_value(self, name: str, labels: Optional[Dict[str, str]] = None) -> Optional[float]:
        """Read a sample from the registry."""
        return self.registry.get_sample_value(name, labels or {})


_collectors: Dict[str, MetricsCollector] = {}
_collectors_lock = threading.Lock()


def get_metrics_collector(service_name: str) -> MetricsCollector:
    """Get or create the metrics collector for a service."""
    with _collectors_lock:
        if service_name not in _collectors:
            _collectors[service_name] = MetricsCollector(service_name)
        return _collectors[service_name]
