"""Product field extraction from raw HTML.

Three layers run in priority order and each only fills fields the
previous layers left empty:

1. JSON-LD structured data (most reliable when present)
2. Marketplace-specific CSS selector rules
3. Generic meta tags plus a last-resort price regex over the raw page
"""

import json
import logging
from dataclasses import dataclass, fields as dataclass_fields
from typing import Any, Optional

from bs4 import BeautifulSoup

from price_checker.models import ExtractedFields, Platform
from price_checker.tools.normalize import (
    DEFAULT_CURRENCY,
    clean_brand,
    clean_price,
    collapse_whitespace,
    detect_category,
    detect_currency,
    detect_unavailable,
    find_price_tokens,
)

logger = logging.getLogger(__name__)

JSONLD_MAX_DEPTH = 12
JSONLD_MAX_NODES = 2000

PRODUCT_TYPES = {"product", "productgroup", "individualproduct", "productmodel"}


@dataclass
class RawFields:
    """Unnormalized field strings collected from one source."""

    title: str = ""
    price_text: str = ""
    currency: str = ""
    brand: str = ""
    category: str = ""
    image: str = ""
    rating: str = ""
    availability_text: str = ""

    def fill(self, **values: Any) -> None:
        """Set fields that are still empty; ignore blank values."""
        for name, value in values.items():
            if value is None:
                continue
            value = collapse_whitespace(str(value))
            if value and not getattr(self, name):
                setattr(self, name, value)

    def missing(self) -> list[str]:
        return [f.name for f in dataclass_fields(self) if not getattr(self, f.name)]


@dataclass(frozen=True)
class SelectorRule:
    """One location to read a field from.

    ``attribute=None`` reads element text. ``pick="last"`` takes the last
    matching element, which is how breadcrumb trails yield a category.
    """

    selector: str
    attribute: Optional[str] = None
    pick: str = "first"


PLATFORM_RULES: dict[Platform, dict[str, list[SelectorRule]]] = {
    Platform.AMAZON: {
        "title": [SelectorRule("#productTitle"), SelectorRule("#title")],
        "price_text": [
            SelectorRule("#corePrice_feature_div span.a-offscreen"),
            SelectorRule("#corePriceDisplay_desktop_feature_div span.a-price-whole"),
            SelectorRule("span.a-price span.a-offscreen"),
            SelectorRule("span.a-price-whole"),
            SelectorRule("#priceblock_dealprice"),
            SelectorRule("#priceblock_ourprice"),
        ],
        "brand": [SelectorRule("#bylineInfo"), SelectorRule("a#brand")],
        "image": [
            SelectorRule("#landingImage", "data-old-hires"),
            SelectorRule("#landingImage", "src"),
            SelectorRule("#imgBlkFront", "src"),
        ],
        "category": [
            SelectorRule("#wayfinding-breadcrumbs_container li span.a-list-item a", pick="last"),
        ],
        "availability_text": [SelectorRule("#availability"), SelectorRule("#outOfStock")],
    },
    Platform.FLIPKART: {
        "title": [
            SelectorRule("span.VU-ZEz"),
            SelectorRule("span.B_NuCI"),
            SelectorRule("h1.yhB1nd span"),
            SelectorRule("h1._9E25nV"),
        ],
        "price_text": [
            SelectorRule("div.Nx9bqj.CxhGGd"),
            SelectorRule("div._30jeq3._16Jk6d"),
            SelectorRule("div.Nx9bqj"),
            SelectorRule("div._30jeq3"),
        ],
        "brand": [SelectorRule("span.mEh187"), SelectorRule("span.G6XhRU")],
        "image": [SelectorRule("img.DByuf4", "src"), SelectorRule("img._396cs4", "src")],
        "category": [SelectorRule("div.r2CdBx a", pick="last"), SelectorRule("div._7dPnhA a", pick="last")],
        "availability_text": [SelectorRule("div.Z8JjpR"), SelectorRule("div._16FRp0")],
    },
    Platform.MYNTRA: {
        "title": [SelectorRule("h1.pdp-name"), SelectorRule("h1.pdp-title")],
        "brand": [SelectorRule("h1.pdp-title")],
        "price_text": [SelectorRule("span.pdp-price strong"), SelectorRule("span.pdp-price")],
        "image": [SelectorRule("img.image-grid-imageAlt", "src")],
        "category": [SelectorRule("a.breadcrumbs-link", pick="last")],
        "availability_text": [SelectorRule("div.size-buttons-out-of-stock"), SelectorRule("div.pdp-out-of-stock")],
    },
}

PLATFORM_DEFAULT_CATEGORY = {Platform.MYNTRA: "fashion"}

GENERIC_RULES: dict[str, list[SelectorRule]] = {
    "title": [
        SelectorRule('meta[property="og:title"]', "content"),
        SelectorRule('meta[name="twitter:title"]', "content"),
        SelectorRule("title"),
        SelectorRule("h1"),
    ],
    "image": [
        SelectorRule('meta[property="og:image"]', "content"),
        SelectorRule('meta[name="twitter:image"]', "content"),
        SelectorRule('link[rel="image_src"]', "href"),
    ],
    "price_text": [
        SelectorRule('meta[property="product:price:amount"]', "content"),
        SelectorRule('meta[property="og:price:amount"]', "content"),
        SelectorRule('[itemprop="price"]', "content"),
        SelectorRule('[itemprop="price"]'),
    ],
    "currency": [
        SelectorRule('meta[property="product:price:currency"]', "content"),
        SelectorRule('[itemprop="priceCurrency"]', "content"),
    ],
    "brand": [
        SelectorRule('meta[property="product:brand"]', "content"),
        SelectorRule('[itemprop="brand"] [itemprop="name"]'),
    ],
    "availability_text": [
        SelectorRule('meta[property="product:availability"]', "content"),
        SelectorRule('[itemprop="availability"]', "href"),
    ],
}


def _type_names(node: dict) -> set[str]:
    raw = node.get("@type", [])
    types = raw if isinstance(raw, list) else [raw]
    return {str(t).rsplit("/", 1)[-1].lower() for t in types}


def find_product_node(
    data: Any,
    max_depth: int = JSONLD_MAX_DEPTH,
    max_nodes: int = JSONLD_MAX_NODES,
) -> Optional[dict]:
    """Depth-first search for the first Product-typed object in parsed JSON-LD.

    Walks dicts and lists (``@graph`` containers included) up to
    ``max_depth`` levels and ``max_nodes`` visited nodes.
    """
    visited = 0

    def visit(node: Any, depth: int) -> Optional[dict]:
        nonlocal visited
        if depth > max_depth or visited >= max_nodes:
            return None
        visited += 1

        if isinstance(node, dict):
            if _type_names(node) & PRODUCT_TYPES:
                return node
            children = node.values()
        elif isinstance(node, list):
            children = node
        else:
            return None

        for child in children:
            if isinstance(child, (dict, list)):
                found = visit(child, depth + 1)
                if found is not None:
                    return found
        return None

    return visit(data, 0)


def _first_offer(offers: Any) -> dict:
    """Pick the first offer dict that carries a price."""
    candidates = offers if isinstance(offers, list) else [offers]
    fallback: dict = {}
    for offer in candidates:
        if not isinstance(offer, dict):
            continue
        fallback = fallback or offer
        if _offer_price(offer) not in (None, ""):
            return offer
        nested = offer.get("offers")
        if nested:
            inner = _first_offer(nested)
            if inner:
                return inner
    return fallback


def _offer_price(offer: dict) -> Any:
    price = offer.get("price", offer.get("lowPrice"))
    if price in (None, ""):
        price_spec = offer.get("priceSpecification")
        if isinstance(price_spec, list) and price_spec:
            price_spec = price_spec[0]
        if isinstance(price_spec, dict):
            price = price_spec.get("price")
    return price


def _as_text(value: Any, key: str = "name") -> str:
    """Read a schema.org value that may be a string, list or {key: ...} dict."""
    if isinstance(value, list):
        value = value[0] if value else ""
    if isinstance(value, dict):
        value = value.get(key) or value.get("url") or ""
    return str(value) if value not in (None, "") else ""


def parse_structured_data(soup: BeautifulSoup) -> RawFields:
    """Read product fields from the first Product object in JSON-LD blocks."""
    raw = RawFields()

    for index, script in enumerate(soup.find_all("script", attrs={"type": "application/ld+json"})):
        text = script.string or script.get_text() or ""
        if not text.strip():
            continue
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.debug(f"Skipping malformed JSON-LD block {index}: {e}")
            continue

        product = find_product_node(data)
        if product is None:
            continue

        offer = _first_offer(product.get("offers") or {})
        rating = product.get("aggregateRating")
        rating_value = rating.get("ratingValue") if isinstance(rating, dict) else None
        availability = offer.get("availability", "") if offer else ""

        raw.fill(
            title=_as_text(product.get("name")),
            brand=_as_text(product.get("brand")),
            image=_as_text(product.get("image"), key="url"),
            price_text=_as_text(_offer_price(offer)) if offer else "",
            currency=_as_text(offer.get("priceCurrency")) if offer else "",
            category=_as_text(product.get("category")),
            rating=f"{rating_value}/5" if rating_value not in (None, "") else "",
            availability_text=_as_text(availability).rsplit("/", 1)[-1],
        )
        if not raw.missing():
            break

    return raw


def _read_rule(soup: BeautifulSoup, rule: SelectorRule) -> str:
    elements = soup.select(rule.selector)
    if not elements:
        return ""
    if rule.pick == "last":
        elements = list(reversed(elements))
    for element in elements:
        if rule.attribute:
            value = element.get(rule.attribute) or ""
            if isinstance(value, list):
                value = " ".join(value)
        else:
            value = element.get_text(" ", strip=True)
        value = collapse_whitespace(value)
        if value:
            return value
    return ""


def apply_rules(soup: BeautifulSoup, rules: dict[str, list[SelectorRule]], raw: RawFields) -> None:
    """Fill empty fields from the first rule that yields a value."""
    for field_name, field_rules in rules.items():
        if getattr(raw, field_name):
            continue
        for rule in field_rules:
            value = _read_rule(soup, rule)
            if value:
                raw.fill(**{field_name: value})
                break


def extract_raw_fields(content: str, platform: Platform) -> RawFields:
    """Run all three extraction layers over a page."""
    soup = BeautifulSoup(content, "html.parser")

    raw = parse_structured_data(soup)

    platform_rules = PLATFORM_RULES.get(platform)
    if platform_rules:
        apply_rules(soup, platform_rules, raw)
    raw.fill(category=PLATFORM_DEFAULT_CATEGORY.get(platform, ""))

    apply_rules(soup, GENERIC_RULES, raw)
    if not raw.price_text:
        tokens = find_price_tokens(content, limit=1)
        if tokens:
            logger.debug(f"Using regex price fallback: {tokens[0]}")
            raw.fill(price_text=tokens[0])

    return raw


def normalize_fields(
    raw: RawFields,
    url: str,
    default_currency: str = DEFAULT_CURRENCY,
) -> ExtractedFields:
    """Turn collected strings into ExtractedFields."""
    price = clean_price(raw.price_text)
    return ExtractedFields(
        title=raw.title,
        price=price or 0.0,
        currency=detect_currency(raw.price_text, url, raw.currency, default=default_currency),
        brand=clean_brand(raw.brand),
        category=detect_category(raw.title, raw.category),
        image=raw.image,
        rating=raw.rating,
        unavailable=detect_unavailable(raw.availability_text),
        availability_text=raw.availability_text,
    )


def extract_fields(
    content: str,
    platform: Platform,
    url: str,
    default_currency: str = DEFAULT_CURRENCY,
) -> ExtractedFields:
    """Extract normalized product fields from a page's HTML."""
    return normalize_fields(extract_raw_fields(content, platform), url, default_currency)
