"""Network-free product extraction from URL structure.

E-commerce sites encode product names in their slugs:

    Amazon:   /Product-Name-Here/dp/ASIN
    Flipkart: /product-name-here/p/itemid
    Myntra:   /category/brand/product-name/id/buy

This is the terminal fallback and always produces a payload.
"""

import logging
import re
from typing import Optional
from urllib.parse import unquote, urlparse

from price_checker.models import FinalPayload, Platform
from price_checker.tools.normalize import DEFAULT_CURRENCY, detect_category, detect_currency
from price_checker.tools.platforms import detect_platform, platform_display_name

logger = logging.getLogger(__name__)

URL_PATTERN_METHOD = "url-pattern"

KNOWN_BRANDS = {
    "apple", "samsung", "sony", "lg", "hp", "dell", "asus", "acer", "lenovo",
    "oneplus", "xiaomi", "redmi", "poco", "realme", "oppo", "vivo", "nokia",
    "motorola", "google", "pixel", "nothing", "titan", "casio", "fossil",
    "nike", "adidas", "puma", "reebok", "levis", "zara", "boat", "jbl",
    "bose", "philips", "panasonic", "whirlpool", "bosch", "bajaj",
    "prestige", "havells", "crompton", "noise", "canon", "nikon",
}

_SEPARATORS = re.compile(r"[-_+]+")
_FILE_EXTENSION = re.compile(r"\.(?:html?|php|aspx?)$", re.IGNORECASE)
_MYNTRA_SKIP = re.compile(r"^(?:\d+|buy)$", re.IGNORECASE)


def slug_to_title(slug: str) -> str:
    """Turn "apple-iphone-15-blue-128-gb" into "Apple Iphone 15 Blue 128 Gb"."""
    text = _SEPARATORS.sub(" ", _FILE_EXTENSION.sub("", unquote(slug)))
    return " ".join(word[:1].upper() + word[1:] for word in text.split())


def _longest(segments: list[str]) -> str:
    return max(segments, key=len) if segments else ""


def _segment_before(segments: list[str], marker: str) -> Optional[str]:
    if marker in segments:
        index = segments.index(marker)
        if index > 0:
            return segments[index - 1]
    return None


def locate_slug(platform: Platform, segments: list[str]) -> tuple[str, str]:
    """Pick the product slug (and a brand segment, if the URL has one)."""
    if platform == Platform.AMAZON:
        slug = _segment_before(segments, "dp") or _segment_before(segments, "gp")
        return slug or _longest(segments), ""

    if platform == Platform.FLIPKART:
        slug = _segment_before(segments, "p")
        return slug or (segments[0] if segments else ""), ""

    if platform == Platform.MYNTRA:
        parts = [s for s in segments if not _MYNTRA_SKIP.match(s)]
        if len(parts) >= 3:
            return parts[2], parts[1]
        if len(parts) == 2:
            return parts[1], parts[0]
        return (parts[0] if parts else ""), ""

    return _longest(segments), ""


def extract_from_url(
    url: str,
    extraction_note: str = "",
    ai_errors: Optional[list[str]] = None,
    default_currency: str = DEFAULT_CURRENCY,
) -> FinalPayload:
    """Build a payload from the URL alone. Price is always 0."""
    platform = detect_platform(url)
    segments = [s for s in urlparse(url).path.split("/") if s]
    slug, brand_segment = locate_slug(platform, segments)

    title = slug_to_title(slug)
    brand = slug_to_title(brand_segment)
    if not brand and title:
        first_word = title.split(" ")[0]
        if first_word.lower() in KNOWN_BRANDS:
            brand = first_word

    logger.info(f"URL pattern extraction: {title!r} ({platform.value})")

    return FinalPayload(
        url=url,
        platform=platform_display_name(platform),
        title=title or "Unknown Product",
        price=0.0,
        currency=detect_currency("", url, default=default_currency),
        brand=brand,
        category=detect_category(title),
        extraction_method=URL_PATTERN_METHOD,
        extraction_note=extraction_note,
        ai_errors=tuple(ai_errors or ()),
        url_extracted=True,
    )
