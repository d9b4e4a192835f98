"""Prometheus metrics for import runs.

Exposes ingestion and matching counters for monitoring via Grafana.
"""

from __future__ import annotations

import logging

from prometheus_client import Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

EXECUTIONS_TOTAL = Counter(
    "tradebook_executions_total",
    "Executions accepted for matching",
)

EXECUTIONS_REJECTED = Counter(
    "tradebook_executions_rejected_total",
    "Execution rows skipped by validation",
    ["reason"],
)

MATCHED_TRADES_TOTAL = Counter(
    "tradebook_matched_trades_total",
    "Round trips emitted by the matcher",
)

RUNS_FAILED = Counter(
    "tradebook_runs_failed_total",
    "Import runs aborted by an error",
    ["error"],
)

RUN_DURATION = Histogram(
    "tradebook_run_duration_seconds",
    "Wall time of one import run",
    ["mode"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
)


def record_run(*, accepted: int, rejected_reasons: list[str], matched: int) -> None:
    EXECUTIONS_TOTAL.inc(accepted)
    for reason in rejected_reasons:
        EXECUTIONS_REJECTED.labels(reason=reason).inc()
    MATCHED_TRADES_TOTAL.inc(matched)


def record_failure(error: BaseException) -> None:
    RUNS_FAILED.labels(error=type(error).__name__).inc()


def start_metrics_server(port: int = 9090) -> None:
    """Start the Prometheus metrics HTTP server in a daemon thread."""
    start_http_server(port)
    logger.info("Metrics server listening on :%d", port)
