"""Prometheus exporter for fleet and resolution metrics.

Exports:
- tonaccess_fleet_fetch_total (Counter, by result)
- tonaccess_fleet_fetch_duration_seconds (Histogram)
- tonaccess_fleet_nodes (Gauge, total/healthy)
- tonaccess_fleet_snapshot_age_seconds (Gauge)
- tonaccess_resolutions_total (Counter, by protocol/network/result)
"""

from __future__ import annotations

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

from tonaccess.node import FleetSnapshot

_DEFAULT_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

FETCH_OK = "ok"
FETCH_ERROR = "error"

RESULT_OK = "ok"
RESULT_FETCH_ERROR = "fetch_error"
RESULT_STALE = "stale"
RESULT_NO_HEALTHY = "no_healthy"
RESULT_UNSUPPORTED = "unsupported"


class MetricsExporter:
    """Export resolver metrics to Prometheus."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        reg = registry if registry is not None else REGISTRY

        self._fetches = Counter(
            "tonaccess_fleet_fetch_total",
            "Fleet manager fetch attempts",
            labelnames=("result",),
            registry=reg,
        )
        self._fetch_duration = Histogram(
            "tonaccess_fleet_fetch_duration_seconds",
            "Duration of fleet manager fetches in seconds",
            buckets=_DEFAULT_BUCKETS,
            registry=reg,
        )
        self._nodes = Gauge(
            "tonaccess_fleet_nodes",
            "Nodes in the current fleet snapshot",
            labelnames=("state",),
            registry=reg,
        )
        self._snapshot_age = Gauge(
            "tonaccess_fleet_snapshot_age_seconds",
            "Age of the fleet snapshot at the last resolution or scrape",
            registry=reg,
        )
        self._resolutions = Counter(
            "tonaccess_resolutions_total",
            "Endpoint resolutions",
            labelnames=("protocol", "network", "result"),
            registry=reg,
        )

    def observe_fetch(self, duration: float, *, ok: bool) -> None:
        """Record a manager fetch attempt."""
        self._fetch_duration.observe(duration)
        self._fetches.labels(result=FETCH_OK if ok else FETCH_ERROR).inc()

    def set_snapshot(self, snapshot: FleetSnapshot) -> None:
        """Publish node counts of a freshly fetched snapshot."""
        healthy = sum(1 for node in snapshot.nodes.values() if node.healthy)
        self._nodes.labels(state="total").set(len(snapshot))
        self._nodes.labels(state="healthy").set(healthy)

    def set_snapshot_age(self, age: float) -> None:
        """Publish the age of the snapshot in use."""
        self._snapshot_age.set(age)

    def record_resolution(self, protocol: str, network: str, result: str) -> None:
        """Count a finished resolution call."""
        self._resolutions.labels(protocol=protocol, network=network, result=result).inc()


__all__ = [
    "RESULT_FETCH_ERROR",
    "RESULT_NO_HEALTHY",
    "RESULT_OK",
    "RESULT_STALE",
    "RESULT_UNSUPPORTED",
    "MetricsExporter",
]
