"""Tests for price, currency, category and availability normalization."""

import pytest

from price_checker.tools.normalize import (
    clean_brand,
    clean_price,
    detect_category,
    detect_currency,
    detect_unavailable,
    find_price_tokens,
)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("₹39,999.00", 39999.0),
        ("INR 1,24,499", 124499.0),
        ("Rs. 499", 499.0),
        ("$19.99", 19.99),
        ("MRP ₹1,999", 1999.0),
        ("1299", 1299.0),
        (1299, 1299.0),
    ],
)
def test_clean_price(text, expected):
    assert clean_price(text) == expected


@pytest.mark.parametrize("text", ["", None, "Price not available", "₹0", 0, -5])
def test_clean_price_without_positive_number(text):
    assert clean_price(text) is None


def test_detect_currency_symbol_wins_over_domain():
    assert detect_currency("$19.99", "https://www.amazon.in/x") == "USD"
    assert detect_currency("₹999", "https://example.com/x") == "INR"
    assert detect_currency("Rs. 499", "https://example.com/x") == "INR"


def test_detect_currency_declared_code():
    assert detect_currency("1299", "https://example.com/x", "eur") == "EUR"


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://www.amazon.in/dp/B0CHX1W1XY", "INR"),
        ("https://www.flipkart.com/item/p/itm1", "INR"),
        ("https://www.myntra.com/jeans/123/buy", "INR"),
        ("https://shop.example.co.uk/item", "GBP"),
        ("https://shop.example.de/item", "EUR"),
        ("https://shop.example.com/item", "USD"),
        ("https://shop.example.org/item", "INR"),
    ],
)
def test_detect_currency_from_domain(url, expected):
    assert detect_currency("", url) == expected


def test_detect_category():
    assert detect_category("Apple iPhone 15 (Black, 128 GB)") == "electronics"
    assert detect_category("Roadster Men Slim Fit Jeans") == "fashion"
    assert detect_category("Anything", "Mobiles") == "Mobiles"
    assert detect_category("Mystery item") == ""


def test_clean_brand_strips_store_boilerplate():
    assert clean_brand("Visit the Apple Store") == "Apple"
    assert clean_brand("Brand: Samsung") == "Samsung"
    assert clean_brand("") == ""


def test_detect_unavailable():
    assert detect_unavailable("Currently unavailable.")
    assert detect_unavailable("OutOfStock")
    assert not detect_unavailable("In stock")
    assert not detect_unavailable("")


def test_find_price_tokens_distinct_in_order():
    content = "Was ₹1,999 now ₹1,499. Offer price ₹1,499 today and save Rs. 500"
    assert find_price_tokens(content) == ["₹1,999", "₹1,499", "Rs. 500"]
    assert find_price_tokens(content, limit=1) == ["₹1,999"]
