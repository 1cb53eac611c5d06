"""Normalization helpers shared by every extraction source.

Price cleaning, currency and category inference, brand cleanup and
availability detection live here so HTML, mirror, AI and URL-derived
fields are normalized identically.
"""

import re
from typing import Optional, Union
from urllib.parse import urlparse

DEFAULT_CURRENCY = "INR"

# Price text noise: symbols and currency codes
_PRICE_NOISE = re.compile(
    r"(?:₹|\$|€|£|\b(?:rs|inr|usd|eur|gbp|mrp)\b\.?)", re.IGNORECASE
)
_NUMBER = re.compile(r"\d+(?:\.\d+)?")

# Currency-prefixed numeric token, e.g. "₹39,999", "Rs. 499", "$19.99"
PRICE_TOKEN = re.compile(
    r"(?:₹|\brs\.?|US\$|\$|€|£)\s?\d[\d,]*(?:\.\d{1,2})?", re.IGNORECASE
)

_SYMBOL_CURRENCIES = (
    ("₹", "INR"),
    ("€", "EUR"),
    ("£", "GBP"),
    ("$", "USD"),
)
_RUPEE_TEXT = re.compile(r"\b(?:rs|inr)\b", re.IGNORECASE)

# Domains whose listings are priced in rupees even on a .com host
INR_MARKETPLACE_DOMAINS = ("flipkart.com", "myntra.com")
EUR_SUFFIXES = (".de", ".fr", ".it", ".es", ".nl", ".ie", ".at", ".be")

CATEGORY_KEYWORDS = {
    "electronics": [
        "phone", "iphone", "smartphone", "laptop", "tablet", "headphone",
        "earphone", "earbud", "speaker", "tv", "television", "camera",
        "smartwatch", "watch", "charger", "monitor", "keyboard", "mouse",
        "console", "gaming", "samsung", "pixel", "macbook", "ipad",
        "airpod", "kindle", "router", "ssd",
    ],
    "fashion": [
        "shirt", "t-shirt", "tshirt", "jeans", "dress", "shoe", "sneaker",
        "jacket", "hoodie", "kurta", "saree", "lehenga", "trouser", "skirt",
        "blazer", "sandal", "heel", "boot", "slipper", "handbag",
    ],
    "beauty": [
        "lipstick", "foundation", "cream", "serum", "shampoo", "conditioner",
        "perfume", "fragrance", "sunscreen", "moisturizer", "makeup",
        "mascara", "concealer",
    ],
    "home": [
        "sofa", "table", "chair", "bed", "mattress", "pillow", "curtain",
        "lamp", "rug", "kitchen", "mixer", "blender", "appliance", "vacuum",
        "cookware",
    ],
    "sports": [
        "cricket", "football", "badminton", "yoga", "gym", "fitness",
        "running", "cycling", "dumbbell", "treadmill",
    ],
    "books": ["book", "novel", "paperback", "hardcover"],
    "toys": ["toy", "lego", "puzzle", "doll"],
    "grocery": ["rice", "atta", "coffee", "tea", "snack", "oil"],
}

_CATEGORY_PATTERNS = {
    category: re.compile(r"\b(?:" + "|".join(re.escape(k) for k in keywords) + r")")
    for category, keywords in CATEGORY_KEYWORDS.items()
}

OUT_OF_STOCK_PHRASES = (
    "currently unavailable",
    "out of stock",
    "outofstock",
    "sold out",
    "soldout",
    "discontinued",
    "no longer available",
    "coming soon",
    "temporarily unavailable",
    "not available for purchase",
    "notify me when available",
)

_BRAND_BOILERPLATE = re.compile(r"^(?:visit the|brand:)\s*|\s*store$", re.IGNORECASE)


def clean_price(price_text: Union[str, int, float, None]) -> Optional[float]:
    """Parse a price string into a positive number.

    Strips currency symbols, codes and thousands separators, then returns
    the first positive numeric token.

    Returns:
        The price, or None when the text holds no positive number
    """
    if price_text is None or isinstance(price_text, bool):
        return None
    if isinstance(price_text, (int, float)):
        return float(price_text) if price_text > 0 else None

    text = _PRICE_NOISE.sub(" ", str(price_text)).replace(",", "")
    for match in _NUMBER.finditer(text):
        value = float(match.group())
        if value > 0:
            return value
    return None


def detect_currency(
    price_text: str,
    url: str,
    structured_currency: str = "",
    default: str = DEFAULT_CURRENCY,
) -> str:
    """Infer an ISO currency code.

    A symbol in the price text wins, then a declared structured-data
    currency, then the URL's domain suffix, then ``default``.
    """
    text = price_text or ""
    for symbol, currency in _SYMBOL_CURRENCIES:
        if symbol in text:
            return currency
    if _RUPEE_TEXT.search(text):
        return "INR"

    declared = (structured_currency or "").strip().upper()
    if re.fullmatch(r"[A-Z]{3}", declared):
        return declared

    host = (urlparse(url).hostname or "").lower()
    if any(host == d or host.endswith("." + d) for d in INR_MARKETPLACE_DOMAINS):
        return "INR"
    if host.endswith(".in"):
        return "INR"
    if host.endswith(".uk"):
        return "GBP"
    if host.endswith(EUR_SUFFIXES):
        return "EUR"
    if host.endswith(".com"):
        return "USD"
    return default


def detect_category(title: str, raw_category: str = "") -> str:
    """Return the raw category if present, else match the title against the taxonomy."""
    if raw_category and raw_category.strip():
        return raw_category.strip()

    text = (title or "").lower()
    for category, pattern in _CATEGORY_PATTERNS.items():
        if pattern.search(text):
            return category
    return ""


def clean_brand(brand: str) -> str:
    """Drop "Visit the ... Store" / "Brand:" boilerplate from a brand string."""
    if not brand:
        return ""
    return _BRAND_BOILERPLATE.sub("", collapse_whitespace(brand)).strip()


def detect_unavailable(availability_text: str) -> bool:
    text = (availability_text or "").lower()
    return any(phrase in text for phrase in OUT_OF_STOCK_PHRASES)


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def find_price_tokens(content: str, limit: int = 5) -> list[str]:
    """Collect distinct currency-prefixed price strings in page order."""
    tokens: list[str] = []
    for match in PRICE_TOKEN.finditer(content or ""):
        token = collapse_whitespace(match.group())
        if clean_price(token) is None or token in tokens:
            continue
        tokens.append(token)
        if len(tokens) >= limit:
            break
    return tokens
