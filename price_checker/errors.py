"""Exceptions raised inside the extraction pipeline."""


class ExtractionError(Exception):
    """Base class for extraction errors."""


class InvalidURLError(ExtractionError, ValueError):
    """The input is not an absolute http(s) URL."""

    def __init__(self, url: str, detail: str = "expected an absolute http(s) URL"):
        self.url = url
        super().__init__(f"Invalid URL {url!r}: {detail}")


class ProviderError(ExtractionError):
    """An AI completion provider could not produce usable output.

    ``kind`` is one of: unconfigured, empty, invalid_json, rate_limit,
    auth, failure. ``reason`` is the user-facing explanation that ends up
    in ``FinalPayload.ai_errors``.
    """

    def __init__(self, provider: str, kind: str, reason: str):
        self.provider = provider
        self.kind = kind
        self.reason = reason
        super().__init__(reason)
