"""
LLM client abstraction for multiple LLM providers.

Provides async interface for LLM calls with:
- Structured logging of requests/responses (lengths only, never text)
- Timeout handling with one retry on timeout or rate limit
- Usage tracking (tokens)
- Two-client architecture (generation, crisis)

Supported providers:
- openai: GPT models (default for both clients)
- anthropic: Claude models
- kimi: Moonshot AI models
- deepseek: DeepSeek models
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Sequence

import httpx
import structlog

from src.core.config import settings
from src.core.exceptions import ConfigurationError, LLMRateLimitError, LLMTimeoutError

log = structlog.get_logger(__name__)


LLMClientType = Literal["generation", "crisis"]

# Chat history as role/content dicts, oldest first
ChatHistory = Sequence[Dict[str, str]]


# =============================================================================
# Default configurations for each client type
# =============================================================================

GENERATION_DEFAULTS = dict(
    provider="openai",
    model="gpt-4o-mini",
    temperature=0.7,  # conversational warmth
    max_tokens=1000,
    timeout=30.0,
)

CRISIS_DEFAULTS = dict(
    provider="openai",
    model="gpt-4o-mini",
    temperature=0.1,  # assessment must be stable across retries
    max_tokens=600,
    timeout=20.0,
    json_output=True,
)

DEFAULTS_MAP: Dict[LLMClientType, Dict[str, Any]] = {
    "generation": GENERATION_DEFAULTS,
    "crisis": CRISIS_DEFAULTS,
}

# Model used when a provider override is set without a matching default
PROVIDER_MODELS: Dict[str, str] = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4-6",
    "kimi": "kimi-k2-0905-preview",
    "deepseek": "deepseek-chat",
}

MAX_RETRIES = 1  # 2 total attempts
BASE_DELAY = 1.0  # seconds


# =============================================================================
# Response and Base Classes
# =============================================================================


@dataclass
class LLMResponse:
    """Standardized LLM response."""

    content: str
    model: str
    usage: Dict[str, int] = field(default_factory=dict)
    latency_ms: float = 0.0
    raw_response: Optional[Dict[str, Any]] = None

    @property
    def total_tokens(self) -> int:
        return self.usage.get("input_tokens", 0) + self.usage.get("output_tokens", 0)


class LLMClient(ABC):
    """Abstract base for LLM providers."""

    provider_name: str = "unknown"

    def __init__(
        self,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout: float,
        client_type: LLMClientType,
        api_key: str,
        base_url: str,
        json_output: bool = False,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.client_type = client_type
        self.api_key = api_key
        self.base_url = base_url
        self.json_output = json_output

        log.info(
            "llm_client_initialized",
            provider=self.provider_name,
            client_type=self.client_type,
            model=self.model,
            timeout=self.timeout,
        )

    @abstractmethod
    def _build_request(
        self,
        prompt: str,
        system: Optional[str],
        history: ChatHistory,
        temperature: float,
        max_tokens: int,
    ) -> tuple:
        """Return (url, headers, payload) for one call."""

    @abstractmethod
    def _parse_response(self, data: Dict[str, Any]) -> tuple:
        """Return (content, usage) from a provider response body."""

    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        history: Optional[ChatHistory] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> LLMResponse:
        """
        Generate a completion, retrying once on timeout or rate limit.

        Args:
            prompt: Latest user message
            system: Optional system prompt
            history: Prior turns as role/content dicts, oldest first
            temperature: Sampling temperature (defaults to init value)
            max_tokens: Max tokens (defaults to init value)
            timeout: Optional timeout override in seconds

        Returns:
            LLMResponse with content and usage stats

        Raises:
            LLMTimeoutError: After all retries exhausted on timeout
            LLMRateLimitError: After all retries exhausted on rate limit (429)
            httpx.HTTPStatusError: On other API errors (no retry)
        """
        temperature = self.temperature if temperature is None else temperature
        max_tokens = max_tokens or self.max_tokens
        timeout = timeout or self.timeout
        url, headers, payload = self._build_request(
            prompt, system, list(history or []), temperature, max_tokens
        )

        for attempt in range(MAX_RETRIES + 1):
            start = time.perf_counter()
            log.debug(
                "llm_call_start",
                provider=self.provider_name,
                client_type=self.client_type,
                model=self.model,
                prompt_length=len(prompt),
                system_length=len(system) if system else 0,
                history_length=len(history or []),
                attempt=attempt + 1,
            )

            try:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.post(url, headers=headers, json=payload)
                    response.raise_for_status()
                    data = response.json()

                latency_ms = (time.perf_counter() - start) * 1000
                content, usage = self._parse_response(data)

                log.info(
                    "llm_call_complete",
                    provider=self.provider_name,
                    client_type=self.client_type,
                    model=self.model,
                    latency_ms=round(latency_ms, 2),
                    input_tokens=usage["input_tokens"],
                    output_tokens=usage["output_tokens"],
                    attempt=attempt + 1,
                )
                return LLMResponse(
                    content=content,
                    model=data.get("model", self.model),
                    usage=usage,
                    latency_ms=latency_ms,
                    raw_response=data,
                )

            except httpx.TimeoutException as e:
                log.warning(
                    "llm_timeout",
                    provider=self.provider_name,
                    client_type=self.client_type,
                    attempt=attempt + 1,
                    timeout_seconds=timeout,
                )
                if attempt >= MAX_RETRIES:
                    raise LLMTimeoutError(
                        f"LLM call timed out after {MAX_RETRIES + 1} attempts "
                        f"(timeout={timeout}s)"
                    ) from e

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                if status_code != 429:
                    log.error(
                        "llm_http_error",
                        provider=self.provider_name,
                        client_type=self.client_type,
                        status_code=status_code,
                    )
                    raise
                log.warning(
                    "llm_rate_limit",
                    provider=self.provider_name,
                    client_type=self.client_type,
                    attempt=attempt + 1,
                )
                if attempt >= MAX_RETRIES:
                    raise LLMRateLimitError(
                        f"Rate limit exceeded after {MAX_RETRIES + 1} attempts"
                    ) from e

            delay = BASE_DELAY * (2**attempt)
            log.info("llm_retry", delay_seconds=delay, next_attempt=attempt + 2)
            await asyncio.sleep(delay)

        raise AssertionError("unreachable")


# =============================================================================
# Anthropic Client
# =============================================================================


class AnthropicClient(LLMClient):
    """Anthropic Messages API client."""

    provider_name = "anthropic"

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        api_key = api_key or settings.anthropic_api_key
        if not api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY not configured. Set it in .env.")
        super().__init__(api_key=api_key, base_url="https://api.anthropic.com/v1", **kwargs)

    def _build_request(self, prompt, system, history, temperature, max_tokens):
        # Anthropic takes the system prompt out of band and has no json mode
        system_text = system or ""
        if self.json_output:
            system_text = f"{system_text}\n\nRespond with a single JSON object only.".strip()
        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [*history, {"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        if system_text:
            payload["system"] = system_text
        headers = {
            "x-api-key": self.api_key,
            "content-type": "application/json",
            "anthropic-version": "2023-06-01",
        }
        return f"{self.base_url}/messages", headers, payload

    def _parse_response(self, data):
        content = ""
        if data.get("content"):
            content = data["content"][0].get("text", "")
        usage = {
            "input_tokens": data.get("usage", {}).get("input_tokens", 0),
            "output_tokens": data.get("usage", {}).get("output_tokens", 0),
        }
        return content, usage


# =============================================================================
# OpenAI-Compatible Clients
# =============================================================================


class OpenAICompatibleClient(LLMClient):
    """
    Client for providers following the OpenAI chat-completions format:
    OpenAI, Kimi (Moonshot AI), DeepSeek.
    """

    def _build_request(self, prompt, system, history, temperature, max_tokens):
        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.extend(history)
        messages.append({"role": "user", "content": prompt})

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if self.json_output:
            payload["response_format"] = {"type": "json_object"}
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        return f"{self.base_url}/chat/completions", headers, payload

    def _parse_response(self, data):
        content = ""
        if data.get("choices"):
            content = data["choices"][0].get("message", {}).get("content") or ""
        usage = {
            "input_tokens": data.get("usage", {}).get("prompt_tokens", 0),
            "output_tokens": data.get("usage", {}).get("completion_tokens", 0),
        }
        return content, usage


class OpenAIClient(OpenAICompatibleClient):
    provider_name = "openai"

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        api_key = api_key or settings.openai_api_key
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY not configured. Set it in .env.")
        super().__init__(api_key=api_key, base_url="https://api.openai.com/v1", **kwargs)


class KimiClient(OpenAICompatibleClient):
    provider_name = "kimi"

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        api_key = api_key or settings.kimi_api_key
        if not api_key:
            raise ConfigurationError("KIMI_API_KEY not configured. Set it in .env.")
        super().__init__(api_key=api_key, base_url="https://api.moonshot.ai/v1", **kwargs)


class DeepSeekClient(OpenAICompatibleClient):
    provider_name = "deepseek"

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        api_key = api_key or settings.deepseek_api_key
        if not api_key:
            raise ConfigurationError("DEEPSEEK_API_KEY not configured. Set it in .env.")
        super().__init__(api_key=api_key, base_url="https://api.deepseek.com", **kwargs)


PROVIDERS = {
    "openai": OpenAIClient,
    "anthropic": AnthropicClient,
    "kimi": KimiClient,
    "deepseek": DeepSeekClient,
}


# =============================================================================
# Client Factory Functions
# =============================================================================


def get_llm_client(client_type: LLMClientType) -> LLMClient:
    """
    Factory for LLM client based on client type.

    Uses the defaults for each client type, with optional environment
    overrides (LLM_GENERATION_PROVIDER, LLM_CRISIS_PROVIDER).

    Raises:
        ConfigurationError: If unknown provider configured or API key missing
    """
    defaults = DEFAULTS_MAP[client_type]
    provider = getattr(settings, f"llm_{client_type}_provider", None) or defaults["provider"]

    client_cls = PROVIDERS.get(provider)
    if client_cls is None:
        raise ConfigurationError(
            f"Unknown LLM provider '{provider}' for {client_type}. "
            f"Supported providers: {', '.join(PROVIDERS)}"
        )

    model = defaults["model"] if provider == defaults["provider"] else PROVIDER_MODELS[provider]
    return client_cls(
        model=model,
        temperature=defaults["temperature"],
        max_tokens=defaults["max_tokens"],
        timeout=defaults["timeout"],
        client_type=client_type,
        json_output=defaults.get("json_output", False),
    )


def get_generation_llm_client() -> LLMClient:
    """Factory for the reply generation client."""
    return get_llm_client("generation")


def get_crisis_llm_client() -> LLMClient:
    """Factory for the crisis assessment client."""
    return get_llm_client("crisis")
