"""Tests for the text-mirror fallback."""

import httpx

from price_checker.config import ExtractorConfig
from price_checker.tools.mirror import (
    extract_from_mirror,
    fetch_mirror_document,
    mirror_url,
    parse_mirror_document,
)

URL = "https://www.flipkart.com/apple-iphone-15-black-128-gb/p/itm1"

MIRROR_TEXT = """Title: Apple iPhone 15 (Black, 128 GB)

URL Source: https://www.flipkart.com/apple-iphone-15-black-128-gb/p/itm1

Markdown Content:
![Flipkart](https://static.flipkart.com/logo.svg)
![Apple iPhone 15](https://rukminim2.flixcart.com/image/iphone15.jpeg?q=70)

# Apple iPhone 15 (Black, 128 GB)

~~₹79,900~~
₹69,999
12% off
"""


def mirror_client(handler, seen):
    def recording_handler(request):
        seen.append(request)
        return handler(request)

    return httpx.Client(transport=httpx.MockTransport(recording_handler))


def test_mirror_url():
    config = ExtractorConfig(mirror_base_url="https://r.jina.ai")
    assert mirror_url("https://x.example.com/a", config) == "https://r.jina.ai/https://x.example.com/a"


def test_parse_skips_strikethrough_list_price():
    raw = parse_mirror_document(MIRROR_TEXT)

    assert raw.title == "Apple iPhone 15 (Black, 128 GB)"
    assert raw.price_text == "₹69,999"
    assert raw.image == "https://rukminim2.flixcart.com/image/iphone15.jpeg?q=70"
    assert raw.availability_text == ""


def test_parse_uses_list_price_only_as_fallback():
    raw = parse_mirror_document("# Cotton Kurta\n\nM.R.P.: ₹1,999\n")

    assert raw.title == "Cotton Kurta"
    assert raw.price_text == "₹1,999"


def test_parse_out_of_stock():
    raw = parse_mirror_document("# Cotton Kurta\n\nThis item is Sold Out\n")

    assert raw.availability_text == "This item is Sold Out"


def test_extract_from_mirror(config):
    seen = []
    client = mirror_client(lambda request: httpx.Response(200, text=MIRROR_TEXT), seen)

    fields, text = extract_from_mirror(client, URL, config)

    assert seen[0].url.host == "mirror.test"
    assert "flipkart.com" in str(seen[0].url)
    assert text == MIRROR_TEXT
    assert fields.title == "Apple iPhone 15 (Black, 128 GB)"
    assert fields.price == 69999.0
    assert fields.currency == "INR"
    assert fields.category == "electronics"


def test_mirror_failures_return_none(config):
    seen = []
    assert fetch_mirror_document(mirror_client(lambda r: httpx.Response(500), seen), URL, config) is None
    assert fetch_mirror_document(mirror_client(lambda r: httpx.Response(200, text="  "), seen), URL, config) is None

    def unreachable(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    fields, text = extract_from_mirror(mirror_client(unreachable, seen), URL, config)
    assert fields is None
    assert text == ""


def test_out_of_stock_outside_product_block_is_ignored():
    related = "\n".join(f"Related kurta {i} ₹{500 + i}" for i in range(30))
    text = f"Title: Cotton Kurta\n\n# Cotton Kurta\n₹899\n{related}\nSold out\n"

    raw = parse_mirror_document(text)

    assert raw.price_text == "₹899"
    assert raw.availability_text == ""
