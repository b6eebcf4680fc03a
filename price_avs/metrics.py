"""
Prometheus metrics for the price AVS operator.

Counters and histograms for the core pipeline:
  • price_reads      — price-source queries per source and outcome
  • commits          — commit transactions per outcome
  • reveals          — reveal transactions per outcome
  • drift_bps        — observed short-vs-long tick drift per round
  • submit_seconds   — time from send to receipt for a transaction

Label cardinality is kept low: only small, finite vocabularies are used as
label values; round ids are never labels.

Usage
-----
    from price_avs.metrics import METRICS

    METRICS.record_commit("accepted")
    with METRICS.submit_timer("reveal"):
        chain.submit(...)

The CLI exposes these via `prometheus_client.start_http_server` when
`--metrics-port` is given.
"""

from __future__ import annotations

from contextlib import contextmanager
from time import perf_counter
from typing import Iterable

from prometheus_client import REGISTRY, Counter, Histogram

# --------- Vocabularies (kept small for bounded cardinality) ---------

_READ_OUTCOMES = ("ok", "error")

_COMMIT_OUTCOMES = (
    "accepted",       # commit mined and opening persisted
    "failed",         # transaction rejected / reverted / not sent
    "duplicate",      # round already had local state
    "unpersisted",    # mined, but the opening could not be stored
    "unconfirmed",    # sent, no receipt; opening stored for a later reveal
    "invalid",
)

_REVEAL_OUTCOMES = (
    "accepted",       # reveal mined
    "failed",         # transaction rejected / reverted / not sent
    "missing_state",  # nothing stored for the round
    "corrupt_state",  # stored record failed verification
    "closed",         # round was already revealed
    "invalid",
)

_DRIFT_BUCKETS = (
    -500.0, -200.0, -100.0, -50.0, -20.0, -10.0, -5.0, 0.0,
    5.0, 10.0, 20.0, 50.0, 100.0, 200.0, 500.0,
)

_SUBMIT_BUCKETS = (0.5, 1.0, 2.5, 5.0, 10.0, 15.0, 30.0, 60.0, 120.0, 300.0)


class Metrics:
    """
    Container for all operator Prometheus instruments.

    Args:
        namespace: Prometheus metric namespace (prefix).
        subsystem: Prometheus metric subsystem.
        registry:  Prometheus registry to register the metrics with.
    """

    def __init__(
        self,
        *,
        namespace: str = "price_avs",
        subsystem: str = "operator",
        registry=REGISTRY,
        drift_buckets: Iterable[float] = _DRIFT_BUCKETS,
        submit_buckets: Iterable[float] = _SUBMIT_BUCKETS,
    ) -> None:
        self.price_reads_total = Counter(
            "price_reads_total",
            "Price-source queries, labeled by source and outcome.",
            labelnames=("source", "outcome"),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.commits_total = Counter(
            "commits_total",
            "Commit submissions processed, labeled by outcome.",
            labelnames=("outcome",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.reveals_total = Counter(
            "reveals_total",
            "Reveal submissions processed, labeled by outcome.",
            labelnames=("outcome",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.drift_bps = Histogram(
            "drift_bps",
            "Short-vs-long TWAP tick drift used for predictions (bps).",
            buckets=tuple(drift_buckets),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.submit_seconds = Histogram(
            "submit_seconds",
            "Time from sending a transaction to its receipt (seconds).",
            labelnames=("action",),
            buckets=tuple(submit_buckets),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    # ----- Recording helpers -------------------------------------------------

    def record_read(self, source: str, ok: bool) -> None:
        self.price_reads_total.labels(source=source, outcome=_READ_OUTCOMES[0 if ok else 1]).inc()

    def record_commit(self, outcome: str) -> None:
        """Valid outcomes: one of _COMMIT_OUTCOMES; anything else counts as invalid."""
        if outcome not in _COMMIT_OUTCOMES:
            outcome = "invalid"
        self.commits_total.labels(outcome=outcome).inc()

    def record_reveal(self, outcome: str) -> None:
        """Valid outcomes: one of _REVEAL_OUTCOMES; anything else counts as invalid."""
        if outcome not in _REVEAL_OUTCOMES:
            outcome = "invalid"
        self.reveals_total.labels(outcome=outcome).inc()

    def observe_drift(self, bps: int) -> None:
        self.drift_bps.observe(float(bps))

    @contextmanager
    def submit_timer(self, action: str):
        start = perf_counter()
        try:
            yield
        finally:
            self.submit_seconds.labels(action=action).observe(perf_counter() - start)


# Singleton used by most components
METRICS = Metrics()

__all__ = [
    "Metrics",
    "METRICS",
    "_COMMIT_OUTCOMES",
    "_REVEAL_OUTCOMES",
]
