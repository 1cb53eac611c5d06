"""Text-mirror fallback for pages that block direct fetches.

The mirror service (r.jina.ai by default) renders the target page on its
side and returns markdown-like plain text, so fields are read with line
patterns instead of an HTML parser.
"""

import logging
import re
from typing import Optional

import httpx

from price_checker.config import Deadline, ExtractorConfig
from price_checker.models import ExtractedFields
from price_checker.tools.field_extractor import RawFields, normalize_fields
from price_checker.tools.normalize import OUT_OF_STOCK_PHRASES, PRICE_TOKEN, collapse_whitespace

logger = logging.getLogger(__name__)

MIRROR_HEADERS = {"Accept": "text/plain", "X-Return-Format": "markdown"}

_TITLE_HEADER = re.compile(r"^Title:\s*(.+?)\s*$", re.MULTILINE)
_HEADING = re.compile(r"^#{1,2}\s+(.+?)\s*#*\s*$", re.MULTILINE)
_MARKDOWN_IMAGE = re.compile(r"!\[[^\]]*\]\((https?://[^)\s]+)")
_IMAGE_EXTENSION = re.compile(r"\.(?:jpe?g|png|webp)(?:[?#]|$)", re.IGNORECASE)
# Strike-through and MRP lines carry list prices, not the selling price
_LIST_PRICE_LINE = re.compile(r"~~|\bm\.?r\.?p\b", re.IGNORECASE)

# Lines after the product heading that still describe the product itself
AVAILABILITY_WINDOW = 25


def mirror_url(url: str, config: ExtractorConfig) -> str:
    return f"{config.mirror_base_url.rstrip('/')}/{url}"


def fetch_mirror_document(
    client: httpx.Client,
    url: str,
    config: Optional[ExtractorConfig] = None,
    deadline: Optional[Deadline] = None,
) -> Optional[str]:
    """Fetch the mirror's text rendering of a URL.

    Returns:
        The document text, or None on any error or empty response
    """
    config = config or ExtractorConfig()
    deadline = deadline or Deadline()
    target = mirror_url(url, config)

    try:
        response = client.get(
            target,
            headers=MIRROR_HEADERS,
            timeout=deadline.clamp(config.mirror_timeout),
            follow_redirects=True,
        )
    except httpx.RequestError as e:
        logger.warning(f"Mirror fetch failed for {url}: {type(e).__name__}: {e}")
        return None

    if response.status_code != 200:
        logger.warning(f"Mirror returned HTTP {response.status_code} for {url}")
        return None

    text = response.text
    if not text.strip():
        logger.warning(f"Mirror returned an empty document for {url}")
        return None

    logger.info(f"Mirror document fetched ({len(text)} chars)")
    return text


def _find_price_line(lines: list[str]) -> str:
    fallback = ""
    for line in lines:
        match = PRICE_TOKEN.search(line)
        if not match:
            continue
        if _LIST_PRICE_LINE.search(line):
            fallback = fallback or match.group()
            continue
        return match.group()
    return fallback


def _find_availability_line(lines: list[str], title: str = "") -> str:
    """Look for an out-of-stock line in the product block only.

    The block starts at the first body line repeating the title (or the
    top of the document) and spans ``AVAILABILITY_WINDOW`` lines, so
    "Sold out" badges in related-product rows further down are ignored.
    """
    start = 0
    if title:
        for index, line in enumerate(lines):
            if title in line and not _TITLE_HEADER.match(line):
                start = index
                break

    for line in lines[start:start + AVAILABILITY_WINDOW]:
        lowered = line.lower()
        if any(phrase in lowered for phrase in OUT_OF_STOCK_PHRASES):
            return collapse_whitespace(line)[:200]
    return ""


def _find_image(text: str) -> str:
    images = _MARKDOWN_IMAGE.findall(text)
    for image in images:
        if _IMAGE_EXTENSION.search(image):
            return image
    return images[0] if images else ""


def parse_mirror_document(text: str) -> RawFields:
    """Read title, price, image and availability from mirror text."""
    raw = RawFields()
    lines = [line.strip() for line in text.splitlines() if line.strip()]

    title_match = _TITLE_HEADER.search(text) or _HEADING.search(text)
    if title_match:
        raw.fill(title=title_match.group(1))

    raw.fill(
        price_text=_find_price_line(lines),
        image=_find_image(text),
        availability_text=_find_availability_line(lines, raw.title),
    )
    return raw


def extract_from_mirror(
    client: httpx.Client,
    url: str,
    config: Optional[ExtractorConfig] = None,
    deadline: Optional[Deadline] = None,
) -> tuple[Optional[ExtractedFields], str]:
    """Fetch and parse the mirror rendering of a URL.

    Returns:
        (fields or None when the mirror had nothing, raw document text)
    """
    config = config or ExtractorConfig()
    text = fetch_mirror_document(client, url, config, deadline)
    if text is None:
        return None, ""

    fields = normalize_fields(parse_mirror_document(text), url, config.default_currency)
    logger.info(f"Mirror extraction: title={fields.title[:60]!r}, price={fields.price}")
    return fields, text
