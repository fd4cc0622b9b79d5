"""
LLM provider wrappers. This is the only module that talks to Groq or Gemini.

Every call is retried with exponential backoff. Client errors (4xx other
than 408/429) are not retried.
"""

import logging
import time
from typing import Optional, Protocol

from groq import Groq
from pydantic import BaseModel

from policy_analyzer.config import Settings, get_settings
from policy_analyzer.exceptions import ConfigurationError, MissingAPIKeyError, UpstreamAPIError
from policy_analyzer.parsing import ParseResult, decode

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert analyst of Indian health insurance policies. "
    "You extract facts exactly as the policy states them and answer in JSON."
)

_RETRYABLE_CLIENT_STATUSES = {408, 429}


class LLMClient(Protocol):
    model: str

    def generate(self, prompt: str, max_tokens: int = 4096, json_schema: Optional[dict] = None) -> str:
        ...


def status_code_of(exc: Exception) -> Optional[int]:
    """HTTP status of a provider exception, if it carries one."""
    for attr in ("status_code", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    return None


def is_retryable(exc: Exception) -> bool:
    status = status_code_of(exc)
    if status is None:
        return True
    return not (400 <= status < 500) or status in _RETRYABLE_CLIENT_STATUSES


class RetryingClient:
    """Base class: subclasses implement _call() for one provider request."""

    model = ""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self.max_retries = max(1, settings.max_retries)
        self.retry_delay = settings.retry_delay_seconds
        self.backoff_multiplier = settings.backoff_multiplier
        self.temperature = settings.temperature

    def _call(self, prompt: str, max_tokens: int, json_schema: Optional[dict]) -> Optional[str]:
        raise NotImplementedError

    def generate(self, prompt: str, max_tokens: int = 4096, json_schema: Optional[dict] = None) -> str:
        """Call the provider and return raw text. Raises UpstreamAPIError when all attempts fail."""
        delay = self.retry_delay
        for attempt in range(1, self.max_retries + 1):
            try:
                text = self._call(prompt, max_tokens, json_schema)
                if not text or not text.strip():
                    raise UpstreamAPIError("Empty response from LLM")
                return text.strip()
            except Exception as exc:
                status = status_code_of(exc)
                logger.warning(
                    "%s attempt %d/%d failed: %s", self.model, attempt, self.max_retries, exc
                )
                if not is_retryable(exc):
                    raise UpstreamAPIError(f"API {status}: {str(exc)[:200]}", status_code=status) from exc
                if attempt == self.max_retries:
                    logger.error("All %d %s attempts failed", self.max_retries, self.model)
                    prefix = f"API {status}: " if status else ""
                    raise UpstreamAPIError(f"{prefix}{str(exc)[:200]}", status_code=status) from exc
                logger.info("Retrying in %.1fs", delay)
                time.sleep(delay)
                delay *= self.backoff_multiplier
        raise UpstreamAPIError("LLM call failed")

    def generate_json(
        self,
        prompt: str,
        model_cls: type[BaseModel],
        max_tokens: int = 4096,
        json_schema: Optional[dict] = None,
    ) -> ParseResult:
        return generate_json(self, prompt, model_cls, max_tokens=max_tokens, json_schema=json_schema)


def generate_json(
    client: LLMClient,
    prompt: str,
    model_cls: type[BaseModel],
    max_tokens: int = 4096,
    json_schema: Optional[dict] = None,
    attempts: int = 2,
) -> ParseResult:
    """Call generate() and decode the text into model_cls. Re-asks once on an unusable response."""
    result = ParseResult("failure", errors=["No attempt made"])
    for attempt in range(1, attempts + 1):
        raw = client.generate(prompt, max_tokens=max_tokens, json_schema=json_schema)
        result = decode(raw, model_cls)
        if result.ok:
            return result
        logger.warning("Unusable LLM response (attempt %d/%d): %s", attempt, attempts, result.errors[:1])
    return result


class GroqClient(RetryingClient):
    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        super().__init__(settings)
        if not settings.groq_api_key:
            raise MissingAPIKeyError("GROQ_API_KEY environment variable is required")
        self.model = settings.groq_model
        self._client = Groq(api_key=settings.groq_api_key)

    def _call(self, prompt: str, max_tokens: int, json_schema: Optional[dict]) -> Optional[str]:
        kwargs = {}
        if json_schema is not None:
            kwargs["response_format"] = {"type": "json_object"}
        response = self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=self.temperature,
            max_tokens=max_tokens,
            stream=False,
            **kwargs,
        )
        return response.choices[0].message.content


class GeminiClient(RetryingClient):
    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        super().__init__(settings)
        if not settings.gemini_api_key:
            raise MissingAPIKeyError("GEMINI_API_KEY environment variable is required")
        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError("google-generativeai library not installed. Run: pip install google-generativeai")

        genai.configure(api_key=settings.gemini_api_key)
        self._genai = genai
        self.model = settings.gemini_model
        self._model = genai.GenerativeModel(self.model, system_instruction=SYSTEM_PROMPT)

    def _call(self, prompt: str, max_tokens: int, json_schema: Optional[dict]) -> Optional[str]:
        config = {
            "temperature": self.temperature,
            "max_output_tokens": max_tokens,
        }
        if json_schema is not None:
            config["response_mime_type"] = "application/json"
            config["response_schema"] = json_schema
        response = self._model.generate_content(
            prompt, generation_config=self._genai.GenerationConfig(**config)
        )
        return response.text


def get_client(settings: Optional[Settings] = None) -> LLMClient:
    """Build the client for the configured LLM_PROVIDER."""
    settings = settings or get_settings()
    if settings.llm_provider == "groq":
        return GroqClient(settings)
    if settings.llm_provider == "gemini":
        return GeminiClient(settings)
    raise ConfigurationError(f"Unknown LLM_PROVIDER '{settings.llm_provider}'")
