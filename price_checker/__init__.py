"""Resilient product-data extraction for e-commerce URLs."""

from price_checker.config import ExtractorConfig
from price_checker.errors import ExtractionError, InvalidURLError, ProviderError
from price_checker.models import FinalPayload
from price_checker.pipeline import ProductExtractor, extract

__all__ = [
    "ExtractorConfig",
    "ExtractionError",
    "InvalidURLError",
    "ProviderError",
    "FinalPayload",
    "ProductExtractor",
    "extract",
]
