"""Extraction stages and helpers used by the product pipeline."""

from price_checker.tools.platforms import classify_target, detect_platform
from price_checker.tools.fetcher import FETCH_PROFILES, is_likely_blocked_page, run_fetch_strategies
from price_checker.tools.field_extractor import extract_fields
from price_checker.tools.normalize import clean_price, detect_category, detect_currency
from price_checker.tools.scoring import pick_best_candidate, score_candidate
from price_checker.tools.mirror import extract_from_mirror
from price_checker.tools.ai_fallback import run_ai_fallback
from price_checker.tools.url_pattern import extract_from_url
from price_checker.tools.failure import summarise_failure_reason

__all__ = [
    "classify_target",
    "detect_platform",
    "FETCH_PROFILES",
    "is_likely_blocked_page",
    "run_fetch_strategies",
    "extract_fields",
    "clean_price",
    "detect_category",
    "detect_currency",
    "pick_best_candidate",
    "score_candidate",
    "extract_from_mirror",
    "run_ai_fallback",
    "extract_from_url",
    "summarise_failure_reason",
]
