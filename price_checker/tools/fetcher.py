"""Direct page fetching with rotating client identities.

Each fetch profile is a plain header set. Profiles are tried in order,
one GET each, and every response that carries content becomes a
FetchCandidate flagged with whether it looks like an anti-bot page.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence

import httpx

from price_checker.config import Deadline, ExtractorConfig
from price_checker.models import FetchCandidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchProfile:
    """A named client identity (just a header set)."""

    name: str
    headers: dict = field(default_factory=dict)


FETCH_PROFILES: tuple[FetchProfile, ...] = (
    # Many storefronts serve full markup to search crawlers
    FetchProfile(
        name="crawler",
        headers={
            "User-Agent": "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        },
    ),
    FetchProfile(
        name="desktop",
        headers={
            "User-Agent": (
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
            ),
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
            "Accept-Language": "en-IN,en-US;q=0.9,en;q=0.8",
            "Accept-Encoding": "gzip, deflate",
            "Sec-Fetch-Dest": "document",
            "Sec-Fetch-Mode": "navigate",
            "Sec-Fetch-Site": "none",
            "Sec-Fetch-User": "?1",
            "Upgrade-Insecure-Requests": "1",
        },
    ),
    FetchProfile(
        name="mobile",
        headers={
            "User-Agent": (
                "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) AppleWebKit/605.1.15 "
                "(KHTML, like Gecko) Version/17.4 Mobile/15E148 Safari/604.1"
            ),
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-IN,en;q=0.9",
        },
    ),
    FetchProfile(
        name="minimal",
        headers={"User-Agent": "curl/8.5.0", "Accept": "*/*"},
    ),
)

BLOCKED_STATUS_CODES = frozenset({403, 429})

BLOCKED_PHRASES = (
    "captcha",
    "access denied",
    "are you a robot",
    "are you a human",
    "verify you are human",
    "verify you are a human",
    "robot check",
    "bot verification",
    "unusual traffic",
    "request blocked",
    "pardon our interruption",
    "checking your browser",
    "enter the characters you see below",
    "automated access",
)

# Whole-phrase matching so "recaptcha" script tags or "isRobot":false
# flags in ordinary pages do not count
_BLOCKED_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(p) for p in BLOCKED_PHRASES) + r")\b",
    re.IGNORECASE,
)


def is_likely_blocked_page(content: str, status_code: int) -> bool:
    """Check whether a response looks like an anti-bot or denial page."""
    if status_code in BLOCKED_STATUS_CODES:
        return True
    return bool(_BLOCKED_PATTERN.search(content or ""))


def is_usable_content(content: str, config: ExtractorConfig) -> bool:
    return len(content or "") > config.min_content_length


def iter_fetch_candidates(
    client: httpx.Client,
    url: str,
    profiles: Sequence[FetchProfile] = FETCH_PROFILES,
    config: Optional[ExtractorConfig] = None,
    deadline: Optional[Deadline] = None,
) -> Iterator[FetchCandidate]:
    """Fetch a URL with each profile in turn, yielding candidates lazily.

    Usable responses and blocked-looking responses are yielded; empty or
    tiny non-blocked responses are dropped. Transport errors and 5xx
    responses skip the profile. Consumers that stop iterating early also
    stop further requests.

    Args:
        client: HTTP client used for every request
        url: Target product URL
        profiles: Ordered client identities to try
        config: Timeouts and content thresholds
        deadline: Optional overall time budget

    Yields:
        FetchCandidate per kept response, in profile order
    """
    config = config or ExtractorConfig()
    deadline = deadline or Deadline()

    for profile in profiles:
        if deadline.expired:
            logger.warning(f"Deadline reached before fetch profile '{profile.name}'")
            return

        try:
            response = client.get(
                url,
                headers=profile.headers,
                timeout=deadline.clamp(config.fetch_timeout),
                follow_redirects=True,
            )
        except httpx.RequestError as e:
            logger.warning(f"Fetch profile '{profile.name}' failed for {url}: {type(e).__name__}: {e}")
            continue

        if response.status_code >= 500:
            logger.warning(f"Fetch profile '{profile.name}' got HTTP {response.status_code} for {url}")
            continue

        content = response.text
        blocked = is_likely_blocked_page(content, response.status_code)
        usable = is_usable_content(content, config)

        if not usable and not blocked:
            logger.info(
                f"Fetch profile '{profile.name}' returned too little content "
                f"({len(content)} chars, HTTP {response.status_code})"
            )
            continue

        if blocked:
            logger.warning(f"Fetch profile '{profile.name}' looks blocked (HTTP {response.status_code})")
        else:
            logger.info(f"Fetch profile '{profile.name}' succeeded ({len(content)} chars)")

        yield FetchCandidate(
            content=content,
            status_code=response.status_code,
            strategy=profile.name,
            likely_blocked=blocked,
        )

        if usable and not blocked and len(content) > config.large_content_length:
            logger.info(f"Large page from '{profile.name}', skipping remaining profiles")
            return


def run_fetch_strategies(
    client: httpx.Client,
    url: str,
    profiles: Sequence[FetchProfile] = FETCH_PROFILES,
    config: Optional[ExtractorConfig] = None,
    deadline: Optional[Deadline] = None,
) -> list[FetchCandidate]:
    """Run every fetch profile and return all kept candidates."""
    return list(iter_fetch_candidates(client, url, profiles, config, deadline))
