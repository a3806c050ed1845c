"""Structured logging and Prometheus metrics."""

from __future__ import annotations

from .logging import configure_logging
from .metrics import METRICS, increment, observe, sample_value

__all__ = ["configure_logging", "METRICS", "increment", "observe", "sample_value"]
