"""Tests for failure explanations."""

import pytest

from price_checker.tools.failure import (
    AI_FAILED_MESSAGE,
    BLOCKED_AND_AI_FAILED_MESSAGE,
    BLOCKED_MESSAGE,
    GENERIC_MESSAGE,
    UNAVAILABLE_MESSAGE,
    summarise_failure_reason,
)


@pytest.mark.parametrize(
    "blocked,unavailable,ai_errors,expected",
    [
        (True, True, ["OpenAI not configured"], UNAVAILABLE_MESSAGE),
        (True, False, ["OpenAI not configured"], BLOCKED_AND_AI_FAILED_MESSAGE),
        (True, False, [], BLOCKED_MESSAGE),
        (False, False, ["Gemini rate limit or quota exceeded"], AI_FAILED_MESSAGE),
        (False, False, [], GENERIC_MESSAGE),
    ],
)
def test_priority(blocked, unavailable, ai_errors, expected):
    assert summarise_failure_reason(blocked, unavailable, ai_errors) == expected


def test_message_wording():
    assert "unavailable" in UNAVAILABLE_MESSAGE
    assert "blocked" in BLOCKED_AND_AI_FAILED_MESSAGE
    assert "blocked" in BLOCKED_MESSAGE
    assert "blocked" not in AI_FAILED_MESSAGE
    assert "price" in GENERIC_MESSAGE
