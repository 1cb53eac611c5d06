"""Pytest configuration and fixtures for price_checker tests."""

import json
import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from price_checker.config import ExtractorConfig  # noqa: E402

# Load environment variables
load_dotenv(project_root / ".env")

FLIPKART_URL = "https://www.flipkart.com/apple-iphone-15-black-128-gb/p/itm6ac6485515ae4"
AMAZON_URL = "https://www.amazon.in/Apple-iPhone-15-128-GB/dp/B0CHX1W1XY"

# Keeps test pages above the minimum content threshold
FILLER = "<p>" + "Product description and specifications. " * 40 + "</p>"


def product_page(
    title: str = "Apple iPhone 15 (Black, 128 GB)",
    price="79900",
    currency: str = "INR",
    brand: str = "Apple",
    availability: str = "https://schema.org/InStock",
    extra_body: str = "",
) -> str:
    """Render a product page with a JSON-LD Product block."""
    ld = {
        "@context": "https://schema.org",
        "@type": "Product",
        "name": title,
        "brand": {"@type": "Brand", "name": brand},
        "image": ["https://img.example.com/iphone15.jpg"],
        "aggregateRating": {"@type": "AggregateRating", "ratingValue": "4.6"},
        "offers": {
            "@type": "Offer",
            "price": price,
            "priceCurrency": currency,
            "availability": availability,
        },
    }
    return (
        "<html><head><title>Buy Apple iPhone 15 Online</title>"
        f'<script type="application/ld+json">{json.dumps(ld)}</script>'
        f"</head><body><h1>{title}</h1>{extra_body}{FILLER}</body></html>"
    )


@pytest.fixture
def config():
    """Config with no provider keys, independent of the environment."""
    return ExtractorConfig(
        openai_api_key="",
        gemini_api_key="",
        anthropic_api_key="",
        mirror_base_url="https://mirror.test/",
    )


@pytest.fixture
def flipkart_url():
    return FLIPKART_URL


@pytest.fixture
def amazon_url():
    return AMAZON_URL


@pytest.fixture
def structured_page():
    return product_page()


@pytest.fixture
def blocked_page():
    return (
        "<html><head><title>Access Denied</title></head><body>"
        "<h1>Access Denied</h1><p>Please complete the captcha to continue.</p>"
        f"{FILLER}</body></html>"
    )
