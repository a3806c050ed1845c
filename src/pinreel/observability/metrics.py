"""
Defines Prometheus metrics for the application.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Gauge as _OrigGauge
from prometheus_client import Histogram as _OrigHistogram

# ---------------------------------------------------------------------------
# Duplicate-safe Prometheus metric wrappers
# ---------------------------------------------------------------------------
# Re-importing this module (test reloads, uvicorn reload) must not raise
# "Duplicated timeseries" errors, so an existing collector is reused.


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        existing = _PROM_REGISTRY._names_to_collectors.get(name)
        if existing is not None:
            return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Gauge = _duplicate_safe_factory(_OrigGauge)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]


def _create_metrics() -> Dict[str, Any]:
    return {
        "extraction_attempts": Counter(
            "pinreel_extraction_attempts_total",
            "Extraction strategy invocations by outcome",
            ["strategy", "outcome"],
        ),
        "page_fetch_seconds": Histogram(
            "pinreel_page_fetch_seconds",
            "Time taken to fetch a pin page",
            buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 15.0, 30.0],
        ),
        "fetch_responses": Counter(
            "pinreel_fetch_responses_total",
            "HTTP responses received by status class",
            ["status_class"],
        ),
        "downloads": Counter(
            "pinreel_downloads_total",
            "Video downloads by outcome",
            ["outcome"],
        ),
        "download_bytes": Counter(
            "pinreel_download_bytes_total",
            "Bytes written to disk by video downloads",
        ),
        "downloads_in_flight": Gauge(
            "pinreel_downloads_in_flight",
            "Video downloads currently streaming",
        ),
    }


METRICS: Dict[str, Any] = _create_metrics()


def increment(name: str, value: float = 1.0, labels: Optional[Dict[str, Any]] = None) -> None:
    """Increment a counter metric."""
    metric = METRICS.get(name)
    if metric is None:
        return
    if labels is not None:
        metric.labels(**labels).inc(value)
    else:
        metric.inc(value)


def observe(name: str, value: float) -> None:
    """Record a histogram observation."""
    metric = METRICS.get(name)
    if metric is not None:
        metric.observe(value)


def sample_value(name: str, labels: Optional[Dict[str, str]] = None) -> float:
    """Read the current value of a sample from the default registry (0.0 if absent)."""
    value = _PROM_REGISTRY.get_sample_value(name, labels or {})
    return value or 0.0
