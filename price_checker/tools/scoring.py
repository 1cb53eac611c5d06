"""Ranking of extracted candidates from direct page fetches."""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from price_checker.models import ExtractedFields, FetchCandidate, Platform, ScoredCandidate
from price_checker.tools.field_extractor import extract_fields

logger = logging.getLogger(__name__)

JUNK_TITLE_PHRASES = (
    "page not found",
    "404",
    "not found",
    "access denied",
    "captcha",
    "recaptcha",
    "robot check",
    "are you a robot",
    "blocked",
    "forbidden",
    "error",
    "sorry",
    "something went wrong",
    "just a moment",
    "attention required",
)

_JUNK_TITLE_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(p) for p in JUNK_TITLE_PHRASES) + r")\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ScoreWeights:
    """Additive scoring weights. Tuned empirically, not load-bearing."""

    title: int = 20
    brand: int = 5
    category: int = 5
    image: int = 5
    price: int = 50
    unavailable: int = 30
    blocked_penalty: int = 40
    status_penalty: int = 15


DEFAULT_WEIGHTS = ScoreWeights()


def is_junk_title(title: str) -> bool:
    """Check for error-page titles (404, captcha, access denied ...)."""
    return bool(_JUNK_TITLE_PATTERN.search(title or ""))


def is_clean_title(title: str) -> bool:
    return bool((title or "").strip()) and not is_junk_title(title)


def meets_success_bar(fields: ExtractedFields) -> bool:
    """A positive price with a real product title ends the pipeline."""
    return fields.has_price and is_clean_title(fields.title)


def score_candidate(
    fields: ExtractedFields,
    candidate: FetchCandidate,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> int:
    """Score extracted fields against the response they came from."""
    score = 0
    if is_clean_title(fields.title):
        score += weights.title
    if fields.brand:
        score += weights.brand
    if fields.category:
        score += weights.category
    if fields.image:
        score += weights.image
    if fields.has_price:
        score += weights.price
    if fields.unavailable:
        score += weights.unavailable
    if candidate.likely_blocked:
        score -= weights.blocked_penalty
    if not candidate.is_success_status:
        score -= weights.status_penalty
    return score


def pick_best_candidate(
    candidates: Iterable[FetchCandidate],
    platform: Platform,
    url: str,
    default_currency: str = "INR",
    weights: ScoreWeights = DEFAULT_WEIGHTS,
    extract: Callable[..., ExtractedFields] = extract_fields,
) -> Optional[ScoredCandidate]:
    """Extract and score candidates in order.

    Returns as soon as a candidate meets the success bar, without
    consuming the rest of ``candidates``. Otherwise returns the highest
    scoring candidate seen (first one wins ties), or None if there were
    no candidates.
    """
    best: Optional[ScoredCandidate] = None

    for candidate in candidates:
        fields = extract(candidate.content, platform, url, default_currency)
        scored = ScoredCandidate(
            extracted=fields,
            score=score_candidate(fields, candidate, weights),
            strategy=candidate.strategy,
            status_code=candidate.status_code,
            likely_blocked=candidate.likely_blocked,
        )
        logger.info(
            f"Candidate '{candidate.strategy}' scored {scored.score} "
            f"(title={fields.title[:60]!r}, price={fields.price})"
        )

        if meets_success_bar(fields):
            return scored
        if best is None or scored.score > best.score:
            best = scored

    return best
