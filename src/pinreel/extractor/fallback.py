"""
Last strategy in the chain. It only has the URL to go on, which is not
enough to find a video, so it always fails with a reason.
"""

from __future__ import annotations

from pinreel.urls import extract_pin_id

from .models import ExtractionResult


class FallbackStrategy:
    name = "fallback"

    def extract(self, html: str, *, url: str) -> ExtractionResult:
        if not extract_pin_id(url):
            return ExtractionResult.failure(self.name, "Cannot extract pin ID from URL")
        return ExtractionResult.failure(self.name, "Fallback extraction not implemented yet")
