"""Data models for product extraction."""

from price_checker.models.product import (
    Platform,
    ExtractionTarget,
    FetchCandidate,
    ExtractedFields,
    ScoredCandidate,
    FinalPayload,
)

__all__ = [
    "Platform",
    "ExtractionTarget",
    "FetchCandidate",
    "ExtractedFields",
    "ScoredCandidate",
    "FinalPayload",
]
