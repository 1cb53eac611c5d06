"""Product extraction pipeline: direct fetch, mirror, AI, URL pattern.

Each stage takes the per-request ``ExtractionRun`` and either returns a
terminal ``FinalPayload`` or None to hand over to the next stage. The
URL-pattern stage always returns a payload, so ``extract()`` only raises
for a malformed URL.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

import httpx

from price_checker.config import Deadline, ExtractorConfig
from price_checker.models import ExtractionTarget, FinalPayload, ScoredCandidate
from price_checker.tools.ai_fallback import build_ai_context, run_ai_fallback
from price_checker.tools.failure import summarise_failure_reason
from price_checker.tools.fetcher import FETCH_PROFILES, FetchProfile, iter_fetch_candidates
from price_checker.tools.mirror import extract_from_mirror
from price_checker.tools.platforms import classify_target, platform_display_name
from price_checker.tools.scoring import is_clean_title, meets_success_bar, pick_best_candidate
from price_checker.tools.url_pattern import extract_from_url

logger = logging.getLogger(__name__)

MIRROR_METHOD = "mirror"


@dataclass
class ExtractionRun:
    """Mutable state for one extraction request. Never shared between requests."""

    target: ExtractionTarget
    config: ExtractorConfig
    client: httpx.Client
    deadline: Deadline
    profiles: Sequence[FetchProfile] = FETCH_PROFILES
    best: Optional[ScoredCandidate] = None
    blocked: bool = False
    page_contents: list[str] = field(default_factory=list)
    ai_errors: list[str] = field(default_factory=list)

    @property
    def platform_name(self) -> str:
        return platform_display_name(self.target.platform)

    @property
    def best_unavailable(self) -> bool:
        return self.best is not None and self.best.extracted.unavailable

    def failure_note(self) -> str:
        return summarise_failure_reason(
            blocked=self.blocked,
            unavailable=self.best_unavailable,
            ai_errors=self.ai_errors,
        )


Stage = Callable[[ExtractionRun], Optional[FinalPayload]]


def _candidate_payload(run: ExtractionRun, scored: ScoredCandidate, method: str, note: str = "") -> FinalPayload:
    return FinalPayload.from_fields(
        scored.extracted,
        url=run.target.url,
        platform=run.platform_name,
        extraction_method=method,
        extraction_note=note,
        ai_errors=run.ai_errors,
    )


def direct_fetch_stage(run: ExtractionRun) -> Optional[FinalPayload]:
    """Fetch with each client identity and stop at the first good candidate."""

    def tracked_candidates():
        for candidate in iter_fetch_candidates(
            run.client, run.target.url, run.profiles, run.config, run.deadline
        ):
            run.blocked = run.blocked or candidate.likely_blocked
            run.page_contents.append(candidate.content)
            yield candidate

    run.best = pick_best_candidate(
        tracked_candidates(),
        run.target.platform,
        run.target.url,
        default_currency=run.config.default_currency,
    )
    if run.best is None:
        logger.info("No usable response from direct fetch")
        return None

    method = f"html:{run.best.strategy}"
    if meets_success_bar(run.best.extracted):
        logger.info(f"Direct extraction successful via '{run.best.strategy}'")
        return _candidate_payload(run, run.best, method)
    if run.best_unavailable:
        logger.info(f"Product reported unavailable via '{run.best.strategy}'")
        return _candidate_payload(run, run.best, method, run.failure_note())
    return None


def mirror_stage(run: ExtractionRun) -> Optional[FinalPayload]:
    """Retry through the text mirror when direct fetches gave no price."""
    if not run.config.mirror_enabled:
        return None

    fields, text = extract_from_mirror(run.client, run.target.url, run.config, run.deadline)
    if text:
        run.page_contents.append(text)
    if fields is None:
        return None

    if meets_success_bar(fields):
        logger.info("Mirror extraction successful")
        return FinalPayload.from_fields(
            fields, url=run.target.url, platform=run.platform_name, extraction_method=MIRROR_METHOD,
        )
    if fields.unavailable:
        logger.info("Mirror reports product unavailable")
        note = summarise_failure_reason(blocked=run.blocked, unavailable=True, ai_errors=run.ai_errors)
        return FinalPayload.from_fields(
            fields,
            url=run.target.url,
            platform=run.platform_name,
            extraction_method=MIRROR_METHOD,
            extraction_note=note,
        )
    return None


def ai_stage(run: ExtractionRun) -> Optional[FinalPayload]:
    """Ask completion providers, in order, to infer the product."""
    if not run.config.ai_enabled:
        return None

    context = build_ai_context(run.target.url, run.target.platform, run.best, run.page_contents)
    outcome = run_ai_fallback(context, run.config, run.client, run.deadline)
    run.ai_errors.extend(outcome.errors)

    if outcome.fields is None:
        return None
    # A title without a price is still a degraded result
    note = "" if outcome.fields.has_price else run.failure_note()
    return FinalPayload.from_fields(
        outcome.fields,
        url=run.target.url,
        platform=outcome.platform_name or run.platform_name,
        extraction_method=f"ai:{outcome.provider}",
        extraction_note=note,
        ai_errors=run.ai_errors,
    )


def url_pattern_stage(run: ExtractionRun) -> FinalPayload:
    """Terminal stage: derive what we can from the URL and explain why."""
    return extract_from_url(
        run.target.url,
        extraction_note=run.failure_note(),
        ai_errors=run.ai_errors,
        default_currency=run.config.default_currency,
    )


def deadline_payload(run: ExtractionRun) -> FinalPayload:
    """Best-effort payload once the overall time budget is spent."""
    best = run.best
    if best is not None and (best.extracted.has_price or is_clean_title(best.extracted.title)):
        logger.warning(f"Deadline reached, using partial candidate from '{best.strategy}'")
        return _candidate_payload(run, best, f"html:{best.strategy}:partial", run.failure_note())
    logger.warning("Deadline reached, falling back to URL pattern")
    return url_pattern_stage(run)


DEFAULT_STAGES: tuple[Stage, ...] = (direct_fetch_stage, mirror_stage, ai_stage)


class ProductExtractor:
    """Runs the extraction stages for product URLs.

    An injected ``client`` is reused across calls (and across threads, as
    httpx clients are thread-safe); without one, each ``extract()`` call
    opens and closes its own client.
    """

    def __init__(
        self,
        config: Optional[ExtractorConfig] = None,
        client: Optional[httpx.Client] = None,
        stages: Sequence[Stage] = DEFAULT_STAGES,
        profiles: Sequence[FetchProfile] = FETCH_PROFILES,
    ):
        self.config = config or ExtractorConfig.from_env()
        self.client = client
        self.stages = tuple(stages)
        self.profiles = tuple(profiles)

    def _new_client(self) -> httpx.Client:
        return httpx.Client(follow_redirects=True, max_redirects=self.config.max_redirects)

    def extract(self, url: str, deadline: Optional[float] = None) -> FinalPayload:
        """Extract product data from a URL.

        Args:
            url: Product page URL
            deadline: Optional overall time budget in seconds

        Returns:
            Exactly one FinalPayload; degraded results carry an extraction note

        Raises:
            InvalidURLError: if the URL is not an absolute http(s) URL
        """
        target = classify_target(url)
        logger.info(f"Extracting {target.url} (platform: {target.platform.value})")

        if self.client is not None:
            return self._run(target, self.client, Deadline(deadline))
        with self._new_client() as client:
            return self._run(target, client, Deadline(deadline))

    def _run(self, target: ExtractionTarget, client: httpx.Client, deadline: Deadline) -> FinalPayload:
        run = ExtractionRun(
            target=target,
            config=self.config,
            client=client,
            deadline=deadline,
            profiles=self.profiles,
        )

        for stage in self.stages:
            if run.deadline.expired:
                return deadline_payload(run)
            payload = stage(run)
            if payload is not None:
                logger.info(f"Extraction finished via {payload.extraction_method}")
                return payload

        if run.deadline.expired:
            return deadline_payload(run)

        logger.info(f"All stages exhausted for {target.url}, using URL pattern")
        return url_pattern_stage(run)

    def extract_many(
        self, urls: Sequence[str], max_workers: int = 4, deadline: Optional[float] = None
    ) -> list[FinalPayload]:
        """Extract several URLs concurrently; results keep input order.

        A malformed URL raises, as with ``extract()``.
        """
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return list(pool.map(lambda url: self.extract(url, deadline=deadline), urls))


def extract(url: str, config: Optional[ExtractorConfig] = None, deadline: Optional[float] = None) -> FinalPayload:
    """Extract product data from a URL with a fresh extractor."""
    return ProductExtractor(config=config).extract(url, deadline=deadline)
