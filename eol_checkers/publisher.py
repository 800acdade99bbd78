"""
Prometheus exposition of classification results.

Metrics (namespace ``aws_custom``, subsystem ``rds``):
    - aws_custom_rds_cluster_count: one series per inventoried resource
        Labels: cluster_identifier, engine, engine_version
        Values: always 1

    - aws_custom_rds_eol_status: EOL stage per resource, one-hot
        Labels: cluster_identifier, engine, engine_version, eol_status
        Values: 1 for the resource's stage, 0 for every other stage

    - aws_custom_rds_eol_last_refresh_timestamp_seconds: unix time of the last
      published snapshot (absent until the first one)

    - aws_custom_rds_eol_refresh_failures_total: refresh passes that failed to
      fetch inventory since startup

Series are produced from an immutable snapshot at scrape time; ``replace()``
swaps the whole snapshot at once, so a scrape never sees half of a pass and
resources that disappeared drop out with the next snapshot.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, Iterator, Optional, Tuple

from prometheus_client import CollectorRegistry, generate_latest, start_http_server
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from eol_checkers.common import _as_utc
from eol_checkers.models import ClassificationResult, Stage

RESOURCE_LABELS = ("cluster_identifier", "engine", "engine_version")
STATUS_LABELS = RESOURCE_LABELS + ("eol_status",)


@dataclass(frozen=True)
class Snapshot:
    results: Tuple[ClassificationResult, ...] = ()
    refreshed_at: Optional[datetime] = None


class SnapshotPublisher(Collector):
    """Owns the current snapshot and serves it from its own registry."""

    def __init__(
        self,
        registry: Optional[CollectorRegistry] = None,
        namespace: str = "aws_custom",
        subsystem: str = "rds",
    ) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.prefix = f"{namespace}_{subsystem}"
        self._lock = threading.Lock()
        self._snapshot = Snapshot()
        self._failures = 0
        self.registry.register(self)

    # ---- writers (refresh thread)

    def replace(self, results: Iterable[ClassificationResult],
                refreshed_at: Optional[datetime] = None) -> Snapshot:
        snap = Snapshot(tuple(results), _as_utc(refreshed_at) if refreshed_at else None)
        with self._lock:
            self._snapshot = snap
        return snap

    def record_failure(self) -> None:
        with self._lock:
            self._failures += 1

    # ---- readers (scrape thread)

    @property
    def snapshot(self) -> Snapshot:
        with self._lock:
            return self._snapshot

    @property
    def failures(self) -> int:
        with self._lock:
            return self._failures

    def collect(self) -> Iterator[Metric]:
        with self._lock:
            snap, failures = self._snapshot, self._failures

        # duplicate label sets would break the exposition; last one wins
        by_labels: Dict[Tuple[str, str, str], Stage] = {}
        for result in snap.results:
            rec = result.record
            by_labels[(rec.identifier, rec.engine, rec.engine_version)] = result.stage

        count = GaugeMetricFamily(
            f"{self.prefix}_cluster_count",
            "Number of RDS",
            labels=RESOURCE_LABELS,
        )
        status = GaugeMetricFamily(
            f"{self.prefix}_eol_status",
            "EOL stage of the RDS engine version (1 for the current stage, 0 otherwise)",
            labels=STATUS_LABELS,
        )
        for labels, stage in by_labels.items():
            count.add_metric(list(labels), 1)
            for candidate in Stage:
                status.add_metric(list(labels) + [candidate.value], 1 if candidate is stage else 0)
        yield count
        yield status

        if snap.refreshed_at is not None:
            yield GaugeMetricFamily(
                f"{self.prefix}_eol_last_refresh_timestamp_seconds",
                "Unix time of the last successful EOL refresh",
                value=snap.refreshed_at.timestamp(),
            )
        yield CounterMetricFamily(
            f"{self.prefix}_eol_refresh_failures",
            "EOL refresh passes that failed to fetch inventory",
            value=failures,
        )

    # ---- exposition

    def render(self) -> bytes:
        """Current exposition text, as served on /metrics."""
        return generate_latest(self.registry)

    def serve(self, port: int, addr: str = "0.0.0.0"):
        """Start the /metrics HTTP server on a daemon thread."""
        return start_http_server(port, addr=addr, registry=self.registry)
