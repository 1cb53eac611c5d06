"""Tests for HTML field extraction."""

import json

from price_checker.models import Platform
from price_checker.tools.field_extractor import RawFields, extract_fields, find_product_node

from conftest import AMAZON_URL, FILLER, FLIPKART_URL, product_page


def test_structured_data_product(structured_page):
    fields = extract_fields(structured_page, Platform.FLIPKART, FLIPKART_URL)

    assert fields.title == "Apple iPhone 15 (Black, 128 GB)"
    assert fields.price == 79900.0
    assert fields.currency == "INR"
    assert fields.brand == "Apple"
    assert fields.image == "https://img.example.com/iphone15.jpg"
    assert fields.rating == "4.6/5"
    assert fields.category == "electronics"
    assert fields.availability_text == "InStock"
    assert not fields.unavailable


def test_structured_data_graph_after_malformed_block():
    graph = {
        "@context": "https://schema.org",
        "@graph": [
            {"@type": "WebPage", "name": "Store page"},
            {
                "@type": ["Product"],
                "name": "Noise ColorFit Pro 5 Smartwatch",
                "offers": [{"@type": "Offer", "priceSpecification": {"price": "3499"}}],
            },
        ],
    }
    page = (
        '<html><head><script type="application/ld+json">{not json</script>'
        f'<script type="application/ld+json">{json.dumps(graph)}</script>'
        f"</head><body>{FILLER}</body></html>"
    )

    fields = extract_fields(page, Platform.GENERIC, "https://shop.example.in/watch")

    assert fields.title == "Noise ColorFit Pro 5 Smartwatch"
    assert fields.price == 3499.0
    assert fields.currency == "INR"
    assert fields.category == "electronics"


def test_amazon_selectors():
    page = f"""
    <html><body>
      <div id="wayfinding-breadcrumbs_container"><ul>
        <li><span class="a-list-item"><a>Electronics</a></span></li>
        <li><span class="a-list-item"><a>Smartphones</a></span></li>
      </ul></div>
      <span id="productTitle">  Apple iPhone 15 (128 GB) - Black  </span>
      <a id="bylineInfo">Visit the Apple Store</a>
      <div id="corePrice_feature_div">
        <span class="a-price"><span class="a-offscreen">₹1,34,900.00</span></span>
      </div>
      <img id="landingImage" data-old-hires="https://m.media-amazon.com/images/I/iphone.jpg" src="small.jpg">
      <div id="availability"><span>In stock</span></div>
      {FILLER}
    </body></html>
    """

    fields = extract_fields(page, Platform.AMAZON, AMAZON_URL)

    assert fields.title == "Apple iPhone 15 (128 GB) - Black"
    assert fields.price == 134900.0
    assert fields.currency == "INR"
    assert fields.brand == "Apple"
    assert fields.category == "Smartphones"
    assert fields.image == "https://m.media-amazon.com/images/I/iphone.jpg"
    assert not fields.unavailable


def test_flipkart_unavailable_listing():
    page = f"""
    <html><body>
      <span class="VU-ZEz">Apple iPhone 15 (Black, 128 GB)</span>
      <div class="Z8JjpR">Currently Unavailable</div>
      {FILLER}
    </body></html>
    """

    fields = extract_fields(page, Platform.FLIPKART, FLIPKART_URL)

    assert fields.title == "Apple iPhone 15 (Black, 128 GB)"
    assert fields.unavailable
    assert fields.price == 0.0


def test_myntra_defaults_to_fashion_category():
    page = f"""
    <html><body>
      <h1 class="pdp-title">Roadster</h1>
      <h1 class="pdp-name">Men Black Solid Casual</h1>
      <span class="pdp-price"><strong>₹899</strong></span>
      {FILLER}
    </body></html>
    """

    fields = extract_fields(page, Platform.MYNTRA, "https://www.myntra.com/roadster/123/buy")

    assert fields.title == "Men Black Solid Casual"
    assert fields.brand == "Roadster"
    assert fields.price == 899.0
    assert fields.category == "fashion"


def test_generic_meta_tags():
    page = f"""
    <html><head>
      <meta property="og:title" content="Blue Widget Deluxe">
      <meta property="og:image" content="https://cdn.example.com/widget.png">
      <meta property="product:price:amount" content="49.99">
      <meta property="product:price:currency" content="USD">
    </head><body>{FILLER}</body></html>
    """

    fields = extract_fields(page, Platform.GENERIC, "https://shop.example.org/widget")

    assert fields.title == "Blue Widget Deluxe"
    assert fields.image == "https://cdn.example.com/widget.png"
    assert fields.price == 49.99
    assert fields.currency == "USD"


def test_regex_price_fallback():
    page = f"<html><body><h1>Widget</h1><p>Now only $24.50</p>{FILLER}</body></html>"

    fields = extract_fields(page, Platform.GENERIC, "https://shop.example.com/widget")

    assert fields.title == "Widget"
    assert fields.price == 24.5
    assert fields.currency == "USD"


def test_structured_price_preferred_over_page_text():
    page = product_page(price="69999", extra_body="<p>M.R.P. ₹79,900</p>")

    fields = extract_fields(page, Platform.FLIPKART, FLIPKART_URL)

    assert fields.price == 69999.0


def test_find_product_node_respects_depth_limit():
    nested = {"@type": "Product", "name": "Deep"}
    for _ in range(5):
        nested = {"child": nested}

    assert find_product_node(nested)["name"] == "Deep"
    assert find_product_node(nested, max_depth=3) is None


def test_raw_fields_fill_only_empty():
    raw = RawFields(title="First")
    raw.fill(title="Second", brand="  Apple  ", image="")

    assert raw.title == "First"
    assert raw.brand == "Apple"
    assert "image" in raw.missing()
