"""
Protocols for pluggable video extraction strategies.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import ExtractionResult


@runtime_checkable
class Strategy(Protocol):
    """Pluggable page-to-ExtractionResult strategy."""

    name: str

    def extract(self, html: str, *, url: str) -> ExtractionResult:
        """Look for video candidates in a pin page.

        Implementations are pure and report problems through a failed
        result instead of raising.

        Args:
            html: Page body
            url: Pin URL the page was fetched from

        Returns:
            ExtractionResult, successful only with at least one candidate
        """
        ...
