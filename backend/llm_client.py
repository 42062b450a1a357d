"""Anthropic LLM client with rate limiting and token accounting."""

import json
import logging
import time
from collections import deque

import anthropic
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from backend.config import settings
from backend.errors import UpstreamError

logger = logging.getLogger(__name__)

# Auth and rate-limit errors surface to the caller immediately; only transient
# transport and server failures are retried.
_TRANSIENT_ERRORS = (anthropic.APIConnectionError, anthropic.InternalServerError)


class LLMClient:
    """Wrapper around the Anthropic API with rate limiting, retry logic, and token counts."""

    def __init__(self, api_key: str | None = None) -> None:
        """Initialize the LLM client with API credentials and rate limiting."""
        self.client = anthropic.Anthropic(
            api_key=api_key or settings.anthropic_api_key,
            max_retries=0,
        )
        self.model = settings.anthropic_model
        self.max_rpm = settings.anthropic_rate_limit_rpm
        self._request_timestamps: deque[float] = deque()
        self.total_input_tokens = 0
        self.total_output_tokens = 0

    def _enforce_rate_limit(self) -> None:
        now = time.monotonic()
        # Remove timestamps older than 60 seconds
        while self._request_timestamps and now - self._request_timestamps[0] > 60:
            self._request_timestamps.popleft()
        if len(self._request_timestamps) >= self.max_rpm:
            sleep_time = 60 - (now - self._request_timestamps[0])
            if sleep_time > 0:
                logger.info("Rate limit reached, sleeping %.1fs", sleep_time)
                time.sleep(sleep_time)
        self._request_timestamps.append(time.monotonic())

    @retry(
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        stop=stop_after_attempt(settings.anthropic_max_retries),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        reraise=True,
    )
    def create_message(
        self,
        prompt: str,
        system: str = "",
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> str:
        """Send a message to the LLM and return the response text."""
        self._enforce_rate_limit()
        kwargs: dict = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system
        response = self.client.messages.create(**kwargs)
        self.total_input_tokens += response.usage.input_tokens
        self.total_output_tokens += response.usage.output_tokens
        logger.debug(
            "Tokens used: %d in, %d out",
            response.usage.input_tokens,
            response.usage.output_tokens,
        )
        text = "".join(block.text for block in response.content if getattr(block, "type", None) == "text")
        if not text:
            raise UpstreamError("The AI model returned an empty response. Please try again.")
        return text


# Lazy singleton; avoids import-time Anthropic client creation when no API key is set.
_llm_client: LLMClient | None = None


def get_llm_client() -> LLMClient:
    """Return the shared LLMClient, creating it on first call.

    Raises:
        UpstreamError: with kind ``credential`` when no API key is configured.
    """
    global _llm_client
    if _llm_client is None:
        if not settings.anthropic_api_key:
            raise UpstreamError(
                "Anthropic API key is not configured. Set FLASHDECK_ANTHROPIC_API_KEY.",
                kind="credential",
            )
        _llm_client = LLMClient()
    return _llm_client


def parse_llm_json_response(response: str, context: str = "LLM response") -> dict | list:
    """Extract and parse JSON from an LLM response.

    Handles direct JSON output and JSON wrapped in markdown code blocks
    (```json ... ```).

    Returns:
        Parsed JSON as dict or list. Returns empty dict on parse failure.
    """
    text = response.strip()

    if text.startswith("```"):
        # Remove opening fence and optional language identifier
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.error("Failed to parse %s as JSON", context)
        logger.debug("Response was: %s", text[:500])
        return {}
