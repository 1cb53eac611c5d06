"""User-facing explanations for degraded extraction results."""

UNAVAILABLE_MESSAGE = (
    "This product appears to be unavailable or out of stock, so no live price could be read."
)
BLOCKED_AND_AI_FAILED_MESSAGE = (
    "The store blocked automated access and the AI fallback also failed. "
    "Details were inferred from the URL; please enter the price manually."
)
BLOCKED_MESSAGE = (
    "The store blocked automated access to this page. "
    "Details were inferred from the URL; please enter the price manually."
)
AI_FAILED_MESSAGE = (
    "The page could not be read and the AI fallback failed. "
    "Details were inferred from the URL; please enter the price manually."
)
GENERIC_MESSAGE = (
    "The price could not be extracted from this page. "
    "Please verify the details and enter the price manually."
)


def summarise_failure_reason(blocked: bool, unavailable: bool, ai_errors: list[str]) -> str:
    """Pick the explanation for a non-successful payload.

    Priority: unavailable, blocked with AI errors, blocked, AI errors, generic.
    """
    if unavailable:
        return UNAVAILABLE_MESSAGE
    if blocked and ai_errors:
        return BLOCKED_AND_AI_FAILED_MESSAGE
    if blocked:
        return BLOCKED_MESSAGE
    if ai_errors:
        return AI_FAILED_MESSAGE
    return GENERIC_MESSAGE
