"""Tests for the extract_product command-line entry point."""

import json
from unittest.mock import patch

import pytest

import extract_product
from price_checker.tools.url_pattern import extract_from_url

from conftest import FLIPKART_URL


@patch("extract_product.ProductExtractor")
def test_prints_single_payload(mock_extractor, monkeypatch, capsys):
    mock_extractor.return_value.extract.return_value = extract_from_url(FLIPKART_URL)
    monkeypatch.setattr("sys.argv", ["extract_product.py", FLIPKART_URL, "--no-ai", "--deadline", "5"])

    with pytest.raises(SystemExit) as exc_info:
        extract_product.main()

    assert exc_info.value.code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["title"] == "Apple Iphone 15 Black 128 Gb"
    config = mock_extractor.call_args.kwargs["config"]
    assert not config.ai_enabled
    mock_extractor.return_value.extract.assert_called_once_with(FLIPKART_URL, deadline=5.0)


def test_invalid_url_exits_with_error(monkeypatch, capsys):
    monkeypatch.setattr("sys.argv", ["extract_product.py", "not-a-url"])

    with pytest.raises(SystemExit) as exc_info:
        extract_product.main()

    assert exc_info.value.code == 1
    assert "Invalid URL" in capsys.readouterr().err


def test_control_character_url_exits_with_error(monkeypatch, capsys):
    monkeypatch.setattr("sys.argv", ["extract_product.py", "http://exa\tmple.com/x"])

    with pytest.raises(SystemExit) as exc_info:
        extract_product.main()

    assert exc_info.value.code == 1
