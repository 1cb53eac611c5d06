"""AI completion fallback for product extraction.

When direct fetches and the mirror fail, language-model providers are
asked to infer product fields from the URL and whatever hints earlier
stages collected. Providers are tried strictly in order, once each; the
first one that returns a usable answer wins.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

import anthropic
import httpx
import openai
from openai import OpenAI

from price_checker.config import Deadline, ExtractorConfig
from price_checker.errors import ProviderError
from price_checker.models import ExtractedFields, Platform, ScoredCandidate
from price_checker.tools.normalize import (
    clean_brand,
    clean_price,
    collapse_whitespace,
    detect_category,
    detect_currency,
    find_price_tokens,
)
from price_checker.tools.platforms import platform_display_name

logger = logging.getLogger(__name__)

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

PROVIDER_NAMES = {
    "openai": "OpenAI",
    "gemini": "Gemini",
    "anthropic": "Anthropic",
}

SYSTEM_PROMPT = """You are a product data extraction assistant. Given a product URL and optional hints from the page, return product information as ONLY valid JSON, no markdown.

Response format:
{"title":"product name","price":number_or_null,"currency":"INR","brand":"brand name","category":"electronics|fashion|beauty|home|sports|books|grocery|toys","image":"image_url_or_empty","platform":"site name"}

Rules:
- Infer the product from the URL structure (e.g. /apple-iphone-15-blue-128-gb/ is an Apple iPhone 15 Blue 128GB)
- price must be a number without symbols
- NEVER guess a price. Only return a price that appears in the "Price strings seen on page" list; otherwise return null
- currency defaults to INR for Indian stores and .in domains, USD for other .com domains
- Infer brand and category from the product name
- platform is the website name (Amazon, Flipkart, Myntra, ...)
- image: use a hinted image URL if given, otherwise an empty string"""


@dataclass
class AIContext:
    """Everything a provider is told about the page."""

    url: str
    platform: Platform
    title_hint: str = ""
    brand_hint: str = ""
    category_hint: str = ""
    image_hint: str = ""
    availability_hint: str = ""
    price_hints: list[str] = field(default_factory=list)

    def to_prompt(self) -> str:
        lines = [f"URL: {self.url}"]
        if self.title_hint:
            lines.append(f"Page title: {self.title_hint}")
        if self.brand_hint:
            lines.append(f"Brand hint: {self.brand_hint}")
        if self.category_hint:
            lines.append(f"Category hint: {self.category_hint}")
        if self.image_hint:
            lines.append(f"Image: {self.image_hint}")
        if self.availability_hint:
            lines.append(f"Availability note: {self.availability_hint}")
        if self.price_hints:
            lines.append("Price strings seen on page: " + ", ".join(self.price_hints))
        else:
            lines.append("Price strings seen on page: none (return price null)")
        return "\n".join(lines)


@dataclass
class AIOutcome:
    """Result of running the provider chain."""

    provider: Optional[str] = None
    fields: Optional[ExtractedFields] = None
    platform_name: str = ""
    errors: list[str] = field(default_factory=list)


def build_ai_context(
    url: str,
    platform: Platform,
    best: Optional[ScoredCandidate],
    page_contents: list[str],
    max_price_hints: int = 5,
) -> AIContext:
    """Collect hints from the best candidate and literal prices seen in pages."""
    price_hints: list[str] = []
    for content in page_contents:
        for token in find_price_tokens(content, limit=max_price_hints):
            if token not in price_hints:
                price_hints.append(token)
        if len(price_hints) >= max_price_hints:
            break

    context = AIContext(url=url, platform=platform, price_hints=price_hints[:max_price_hints])
    if best is not None:
        extracted = best.extracted
        context.title_hint = extracted.title[:200]
        context.brand_hint = extracted.brand
        context.category_hint = extracted.category
        context.image_hint = extracted.image
        context.availability_hint = extracted.availability_text[:200]
    return context


def classify_status(provider: str, status_code: int, detail: str = "") -> ProviderError:
    """Map an HTTP status from a provider to a ProviderError."""
    name = PROVIDER_NAMES.get(provider, provider)
    detail_lower = detail.lower()
    if status_code == 429 or "quota" in detail_lower or "resource_exhausted" in detail_lower:
        return ProviderError(provider, "rate_limit", f"{name} rate limit or quota exceeded")
    if status_code in (401, 403) or "api key" in detail_lower or "api_key" in detail_lower:
        return ProviderError(provider, "auth", f"{name} authentication failed")
    return ProviderError(provider, "failure", f"{name} request failed (HTTP {status_code})")


def parse_ai_response(provider: str, content: Optional[str]) -> dict:
    """Parse the JSON object out of a completion, tolerating code fences.

    Raises:
        ProviderError: for empty content or content without a JSON object
    """
    name = PROVIDER_NAMES.get(provider, provider)
    if not content or not content.strip():
        raise ProviderError(provider, "empty", f"{name} returned an empty response")

    text = content.strip()
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0]
    elif "```" in text:
        text = text.split("```")[1].split("```")[0]

    try:
        data = json.loads(text.strip())
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        try:
            data = json.loads(text[start:end + 1]) if 0 <= start < end else None
        except json.JSONDecodeError:
            data = None

    if not isinstance(data, dict):
        raise ProviderError(provider, "invalid_json", f"{name} returned invalid JSON")
    return data


def _complete_openai(config: ExtractorConfig, user_prompt: str, timeout: float, http_client: httpx.Client) -> str:
    client = OpenAI(api_key=config.openai_api_key, timeout=timeout, max_retries=0)
    try:
        response = client.chat.completions.create(
            model=config.openai_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            temperature=0.1,
            max_tokens=300,
            response_format={"type": "json_object"},
        )
    except openai.APIStatusError as e:
        raise classify_status("openai", e.status_code, str(e)) from e
    except openai.APIError as e:
        raise ProviderError("openai", "failure", f"OpenAI request failed ({type(e).__name__})") from e
    finally:
        client.close()

    if not response.choices:
        return ""
    return response.choices[0].message.content or ""


def _gemini_text(data) -> str:
    """Concatenate the text parts of the first Gemini candidate.

    Raises:
        ProviderError: if the body does not have the generateContent shape
    """
    invalid = ProviderError("gemini", "invalid_json", "Gemini returned an unexpected response shape")
    if not isinstance(data, dict):
        raise invalid

    candidates = data.get("candidates") or []
    if not isinstance(candidates, list):
        raise invalid
    if not candidates:
        return ""

    candidate = candidates[0]
    content = candidate.get("content") if isinstance(candidate, dict) else None
    if content is None:
        return ""
    if not isinstance(content, dict):
        raise invalid

    parts = content.get("parts") or []
    if not isinstance(parts, list):
        raise invalid

    texts = []
    for part in parts:
        if not isinstance(part, dict):
            raise invalid
        text = part.get("text")
        if isinstance(text, str):
            texts.append(text)
    return "".join(texts)


def _complete_gemini(config: ExtractorConfig, user_prompt: str, timeout: float, http_client: httpx.Client) -> str:
    try:
        response = http_client.post(
            GEMINI_API_URL.format(model=config.gemini_model),
            headers={"x-goog-api-key": config.gemini_api_key, "Content-Type": "application/json"},
            json={
                "systemInstruction": {"parts": [{"text": SYSTEM_PROMPT}]},
                "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
                "generationConfig": {"responseMimeType": "application/json", "temperature": 0.1},
            },
            timeout=timeout,
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise classify_status("gemini", e.response.status_code, e.response.text[:500]) from e
    except httpx.RequestError as e:
        raise ProviderError("gemini", "failure", f"Gemini request failed ({type(e).__name__})") from e

    try:
        data = response.json()
    except ValueError as e:
        raise ProviderError("gemini", "invalid_json", "Gemini returned invalid JSON") from e

    return _gemini_text(data)


def _complete_anthropic(config: ExtractorConfig, user_prompt: str, timeout: float, http_client: httpx.Client) -> str:
    client = anthropic.Anthropic(api_key=config.anthropic_api_key, timeout=timeout, max_retries=0)
    try:
        message = client.messages.create(
            model=config.anthropic_model,
            max_tokens=300,
            temperature=0.1,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": user_prompt}],
        )
    except anthropic.APIStatusError as e:
        raise classify_status("anthropic", e.status_code, str(e)) from e
    except anthropic.APIError as e:
        raise ProviderError("anthropic", "failure", f"Anthropic request failed ({type(e).__name__})") from e
    finally:
        client.close()

    return "".join(block.text for block in message.content if getattr(block, "type", "") == "text")


ProviderCall = Callable[[ExtractorConfig, str, float, httpx.Client], str]

PROVIDERS: dict[str, ProviderCall] = {
    "openai": _complete_openai,
    "gemini": _complete_gemini,
    "anthropic": _complete_anthropic,
}

_API_KEY_FIELDS = {
    "openai": "openai_api_key",
    "gemini": "gemini_api_key",
    "anthropic": "anthropic_api_key",
}


def is_provider_configured(provider: str, config: ExtractorConfig) -> bool:
    key_field = _API_KEY_FIELDS.get(provider)
    return bool(key_field and getattr(config, key_field, ""))


def fields_from_ai_response(data: dict, url: str, config: ExtractorConfig) -> ExtractedFields:
    """Normalize a provider's JSON answer into ExtractedFields."""
    title = collapse_whitespace(str(data.get("title") or ""))
    raw_price = data.get("price")
    price = clean_price(raw_price)
    price_text = raw_price if isinstance(raw_price, str) else ""
    declared_currency = str(data.get("currency") or "")

    return ExtractedFields(
        title=title,
        price=price or 0.0,
        currency=detect_currency(price_text, url, declared_currency, default=config.default_currency),
        brand=clean_brand(str(data.get("brand") or "")),
        category=detect_category(title, str(data.get("category") or "")),
        image=str(data.get("image") or ""),
    )


def run_ai_fallback(
    context: AIContext,
    config: ExtractorConfig,
    http_client: httpx.Client,
    deadline: Optional[Deadline] = None,
    providers: Optional[dict[str, ProviderCall]] = None,
) -> AIOutcome:
    """Try each configured provider in order until one answers usefully.

    Failure reasons accumulate in ``AIOutcome.errors`` in the order they
    happened. A provider succeeds when it returns a non-empty title or a
    positive price.
    """
    providers = providers if providers is not None else PROVIDERS
    deadline = deadline or Deadline()
    outcome = AIOutcome()
    user_prompt = context.to_prompt()

    for provider in config.ai_provider_order:
        name = PROVIDER_NAMES.get(provider, provider)
        call = providers.get(provider)
        if call is None:
            outcome.errors.append(f"{name} is not a supported provider")
            continue
        if not is_provider_configured(provider, config):
            logger.info(f"{name} not configured, skipping")
            outcome.errors.append(f"{name} not configured")
            continue
        if deadline.expired:
            logger.warning(f"Deadline reached before {name} call")
            outcome.errors.append(f"{name} skipped: time budget exhausted")
            break

        logger.info(f"Using {name} for extraction of {context.url}")
        try:
            content = call(config, user_prompt, deadline.clamp(config.ai_timeout), http_client)
            data = parse_ai_response(provider, content)
            fields = fields_from_ai_response(data, context.url, config)
        except ProviderError as e:
            logger.warning(f"{name} extraction failed: {e.reason}")
            outcome.errors.append(e.reason)
            continue
        except Exception as e:
            # Malformed provider output must not abort the fallback chain
            logger.error(f"{name} extraction crashed: {type(e).__name__}: {e}", exc_info=True)
            outcome.errors.append(f"{name} request failed ({type(e).__name__})")
            continue

        if not fields.title and not fields.has_price:
            logger.warning(f"{name} returned no usable product data")
            outcome.errors.append(f"{name} returned no usable product data")
            continue

        logger.info(f"{name} extraction successful: {fields.title[:60]!r}")
        outcome.provider = provider
        outcome.fields = fields
        ai_platform = collapse_whitespace(str(data.get("platform") or ""))
        outcome.platform_name = (
            ai_platform if context.platform == Platform.GENERIC and ai_platform
            else platform_display_name(context.platform)
        )
        return outcome

    return outcome
