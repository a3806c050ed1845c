"""Test helpers."""

from .metric_delta import histogram_observes, metric_delta
from .pages import NORMALIZED_PIN_URL, PIN_URL, initial_state_page, page, pin_state

__all__ = [
    "NORMALIZED_PIN_URL",
    "PIN_URL",
    "histogram_observes",
    "initial_state_page",
    "metric_delta",
    "page",
    "pin_state",
]
