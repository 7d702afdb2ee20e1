"""Prometheus textfile export of a pytest session summary.

A fresh registry is built on every write so repeated runs in one interpreter
never see stale gauges.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from prometheus_client import CollectorRegistry, Gauge, generate_latest

METRIC_PREFIX = "shop_e2e"


@dataclass(frozen=True)
class SessionMetrics:
    """Counters gathered by the reporting hooks during one pytest session."""

    total: int
    passed: int
    failed: int
    skipped: int
    duration_seconds: float
    flaky: int = 0
    interaction_failures: int = 0


def _gauges(registry: CollectorRegistry) -> dict[str, Gauge]:
    descriptions = {
        "tests_total": "Tests collected",
        "tests_passed": "Passed tests",
        "tests_failed": "Failed tests",
        "tests_skipped": "Skipped tests",
        "tests_flaky": "Tests that needed a rerun",
        "interaction_failures": "Tests failed by a browser interaction error",
        "test_session_duration_seconds": "Session wall time in seconds",
    }
    return {
        key: Gauge(f"{METRIC_PREFIX}_{key}", help_text, registry=registry)
        for key, help_text in descriptions.items()
    }


def render_metrics(summary: SessionMetrics) -> bytes:
    registry = CollectorRegistry()
    gauges = _gauges(registry)
    gauges["tests_total"].set(summary.total)
    gauges["tests_passed"].set(summary.passed)
    gauges["tests_failed"].set(summary.failed)
    gauges["tests_skipped"].set(summary.skipped)
    gauges["tests_flaky"].set(summary.flaky)
    gauges["interaction_failures"].set(summary.interaction_failures)
    gauges["test_session_duration_seconds"].set(summary.duration_seconds)
    return generate_latest(registry)


def write_metrics(path: str | Path, summary: SessionMetrics) -> Path:
    """Write the textfile atomically and return its path."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    # Write-then-rename keeps the collector from scraping a half-written file.
    tmp_path = target.with_suffix(f"{target.suffix}.tmp")
    tmp_path.write_bytes(render_metrics(summary))
    tmp_path.replace(target)
    return target
