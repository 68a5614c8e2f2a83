"""
Metrics Collection
Prometheus metrics for screen resolution and rendering
"""

import time
from contextlib import contextmanager
from typing import Callable, Iterable

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest


class MetricsCollector:
    """
    Collects and exposes Prometheus metrics for the screen service.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()

        # Screen request metrics
        self.screen_requests_total = Counter(
            "sdui_screen_requests_total",
            "Total number of screen requests",
            ["endpoint", "status"],
            registry=self.registry,
        )
        self.resolve_duration = Histogram(
            "sdui_resolve_duration_seconds",
            "Template resolution duration in seconds",
            ["store"],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
            registry=self.registry,
        )
        self.render_duration = Histogram(
            "sdui_render_duration_seconds",
            "Component tree evaluation duration in seconds",
            buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5],
            registry=self.registry,
        )

        # Degraded rendering
        self.degraded_nodes = Counter(
            "sdui_degraded_nodes_total",
            "Nodes rendered as unsupported or truncated",
            ["reason"],
            registry=self.registry,
        )

        # Template cache
        self.cache_hits = Counter(
            "sdui_cache_hits_total",
            "Total number of template cache hits",
            ["cache_type"],
            registry=self.registry,
        )
        self.cache_misses = Counter(
            "sdui_cache_misses_total",
            "Total number of template cache misses",
            ["cache_type"],
            registry=self.registry,
        )
        self.cache_entries = Gauge(
            "sdui_cache_entries",
            "Current number of cached templates",
            ["cache_type"],
            registry=self.registry,
        )

        # Actions
        self.actions_dispatched = Counter(
            "sdui_actions_dispatched_total",
            "Actions handed to a dispatcher",
            ["type", "outcome"],
            registry=self.registry,
        )

        # Error metrics
        self.errors_total = Counter(
            "sdui_errors_total",
            "Total number of errors",
            ["error_type", "component"],
            registry=self.registry,
        )

        # System metrics
        self.uptime = Gauge(
            "sdui_uptime_seconds",
            "Service uptime in seconds",
            registry=self.registry,
        )
        self.start_time = time.time()

    def record_screen_request(self, endpoint: str, status: str) -> None:
        """Record a screen request outcome."""
        self.screen_requests_total.labels(endpoint=endpoint, status=status).inc()

    def record_resolve(self, store: str, duration: float) -> None:
        """Record a template resolution."""
        self.resolve_duration.labels(store=store).observe(duration)

    def record_render(self, duration: float) -> None:
        """Record an evaluation pass."""
        self.render_duration.observe(duration)

    def record_degraded(self, reasons: Iterable[str]) -> None:
        """Record degraded nodes by reason."""
        for reason in reasons:
            self.degraded_nodes.labels(reason=reason).inc()

    def record_cache_hit(self, cache_type: str) -> None:
        """Record a cache hit."""
        self.cache_hits.labels(cache_type=cache_type).inc()

    def record_cache_miss(self, cache_type: str) -> None:
        """Record a cache miss."""
        self.cache_misses.labels(cache_type=cache_type).inc()

    def set_cache_entries(self, cache_type: str, entries: int) -> None:
        """Set the number of cached entries."""
        self.cache_entries.labels(cache_type=cache_type).set(entries)

    def record_action(self, action_type: str, outcome: str) -> None:
        """Record a dispatched action."""
        self.actions_dispatched.labels(type=action_type, outcome=outcome).inc()

    def record_error(self, error_type: str, component: str) -> None:
        """Record an error."""
        self.errors_total.labels(error_type=error_type, component=component).inc()

    def update_uptime(self) -> None:
        """Update the uptime metric."""
        self.uptime.set(time.time() - self.start_time)

    @contextmanager
    def measure_duration(self, callback: Callable[[float], None]):
        """Context manager to measure operation duration."""
        start = time.perf_counter()
        try:
            yield
        finally:
            callback(time.perf_counter() - start)

    def get_metrics(self) -> bytes:
        """Get metrics in Prometheus format."""
        self.update_uptime()
        return generate_latest(self.registry)


# Global metrics collector instance
metrics_collector = MetricsCollector()
