"""Runtime configuration for the extraction pipeline."""

import os
import time
from dataclasses import dataclass
from typing import Optional


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").lower() == "true"


@dataclass(frozen=True)
class ExtractorConfig:
    """Configuration for a ProductExtractor.

    Defaults are usable without any environment; provider API keys are
    empty, so AI providers report themselves as unconfigured.
    """

    fetch_timeout: float = 12.0
    mirror_timeout: float = 15.0
    ai_timeout: float = 15.0
    max_redirects: int = 5
    min_content_length: int = 1000
    large_content_length: int = 50_000
    mirror_enabled: bool = True
    mirror_base_url: str = "https://r.jina.ai/"
    ai_enabled: bool = True
    ai_provider_order: tuple[str, ...] = ("openai", "gemini")
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-5-haiku-latest"
    default_currency: str = "INR"

    @classmethod
    def from_env(cls) -> "ExtractorConfig":
        """Load configuration from environment variables."""
        order = os.getenv("AI_PROVIDER_ORDER", "openai,gemini")
        return cls(
            fetch_timeout=_env_float("FETCH_TIMEOUT", 12.0),
            mirror_timeout=_env_float("MIRROR_TIMEOUT", 15.0),
            ai_timeout=_env_float("AI_TIMEOUT", 15.0),
            max_redirects=_env_int("MAX_REDIRECTS", 5),
            min_content_length=_env_int("MIN_CONTENT_LENGTH", 1000),
            large_content_length=_env_int("LARGE_CONTENT_LENGTH", 50_000),
            mirror_enabled=_env_bool("MIRROR_ENABLED", True),
            mirror_base_url=os.getenv("MIRROR_BASE_URL", "https://r.jina.ai/"),
            ai_enabled=_env_bool("AI_ENABLED", True),
            ai_provider_order=tuple(p.strip().lower() for p in order.split(",") if p.strip()),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.0-flash"),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
            anthropic_model=os.getenv("ANTHROPIC_MODEL", "claude-3-5-haiku-latest"),
            default_currency=os.getenv("DEFAULT_CURRENCY", "INR"),
        )


class Deadline:
    """Overall time budget for one extraction run.

    ``seconds=None`` means no deadline; ``clamp()`` then returns the
    per-call timeout unchanged.
    """

    def __init__(self, seconds: Optional[float] = None):
        self._expires_at = time.monotonic() + seconds if seconds is not None else None

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def clamp(self, timeout: float) -> float:
        """Shrink a per-call timeout so it ends no later than the deadline."""
        remaining = self.remaining()
        if remaining is None:
            return timeout
        return min(timeout, remaining)
