"""Marketplace classification for product URLs."""

from urllib.parse import urlparse

import httpx

from price_checker.errors import InvalidURLError
from price_checker.models import ExtractionTarget, Platform

PLATFORM_DOMAINS = {
    Platform.AMAZON: ("amazon.in", "amazon.com"),
    Platform.FLIPKART: ("flipkart.com",),
    Platform.MYNTRA: ("myntra.com",),
}

PLATFORM_NAMES = {
    Platform.AMAZON: "Amazon",
    Platform.FLIPKART: "Flipkart",
    Platform.MYNTRA: "Myntra",
    Platform.GENERIC: "Web",
}


def detect_platform(url: str) -> Platform:
    """Map a URL to a known marketplace, or GENERIC."""
    url_lower = url.lower()
    for platform, domains in PLATFORM_DOMAINS.items():
        if any(domain in url_lower for domain in domains):
            return platform
    return Platform.GENERIC


def platform_display_name(platform: Platform) -> str:
    return PLATFORM_NAMES.get(platform, "Web")


def classify_target(url: str) -> ExtractionTarget:
    """Validate a URL and classify its marketplace.

    Raises:
        InvalidURLError: if the URL is not an absolute http(s) URL
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidURLError(str(url), "empty URL")

    url = url.strip()
    try:
        httpx.URL(url)
        parsed = urlparse(url)
    except (httpx.InvalidURL, ValueError) as e:
        raise InvalidURLError(url, str(e)) from e

    if parsed.scheme not in ("http", "https"):
        raise InvalidURLError(url, "scheme must be http or https")
    if not parsed.hostname:
        raise InvalidURLError(url, "missing host")

    return ExtractionTarget(url=url, platform=detect_platform(url))
