"""AI provider abstraction.

Providers never raise from complete(); they report failures through
CompletionResult. generate() is the narrow interface the pipeline uses and
turns a failed completion into ModelCallError so the retry controller can
classify it.
"""

from __future__ import annotations

import os
from typing import Optional, Protocol, runtime_checkable

import httpx

from ..core.errors import ModelCallError
from ..models.provider import CompletionResult
from ..utils.sanitize import sanitize_error

PROVIDER_NAMES = ("gemini", "anthropic", "openai", "ollama", "mock")


@runtime_checkable
class AIProvider(Protocol):
    """Protocol that all AI providers must implement."""

    name: str
    model_name: str

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 0,
        temperature: Optional[float] = None,
    ) -> CompletionResult: ...

    async def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        max_tokens: int = 0,
        temperature: Optional[float] = None,
    ) -> str: ...


def describe_http_error(error: Exception) -> str:
    """Render a transport failure so transient classes stay recognizable."""
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        error_body = ""
        try:
            error_body = error.response.text
        except Exception:
            pass
        if status == 429:
            return f"429 rate limit | {error_body}"
        return f"{status} | {error_body}"
    if isinstance(error, httpx.TimeoutException):
        return f"timeout: {error or type(error).__name__}"
    return str(error)


class BaseProvider:
    """Base class with shared config handling and the HTTP round trip.

    Subclasses set default_model (and api_key_env when the API needs a key)
    and implement _send() and _parse().
    """

    name: str = "base"
    default_model: str = ""
    api_key_env: Optional[str] = None

    def __init__(self, provider_config: dict, common_config: dict):
        self.config = provider_config
        self.common = common_config

    @property
    def model_name(self) -> str:
        return self.config.get("model", self.default_model)

    def _temperature(self, override: Optional[float]) -> float:
        return override if override is not None else self.common.get("temperature", 0.3)

    def _max_tokens(self, override: int, default: int = 0) -> int:
        return override or self.config.get("max_tokens", default)

    async def _post(self, url: str, body: dict, headers: Optional[dict] = None) -> dict:
        timeout = self.common.get("timeout_seconds", 120)
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, json=body, headers=headers or {})
            response.raise_for_status()
            return response.json()

    async def _send(
        self,
        api_key: Optional[str],
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> dict:
        raise NotImplementedError

    def _parse(self, data: dict) -> tuple[Optional[str], dict]:
        """Return (content, token usage) from a response body."""
        raise NotImplementedError

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 0,
        temperature: Optional[float] = None,
    ) -> CompletionResult:
        api_key = None
        if self.api_key_env:
            env_var = self.config.get("api_key_env", self.api_key_env)
            api_key = os.environ.get(env_var)
            if not api_key:
                return CompletionResult(
                    success=False,
                    error=f"API key not found in environment variable: {env_var}",
                )

        try:
            data = await self._send(
                api_key, system_prompt, user_prompt, max_tokens, self._temperature(temperature)
            )
            content, tokens = self._parse(data)
        except Exception as e:
            return CompletionResult(success=False, error=describe_http_error(e))

        return CompletionResult(
            success=True, content=content, model=self.model_name, tokens_used=tokens
        )

    async def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        max_tokens: int = 0,
        temperature: Optional[float] = None,
    ) -> str:
        """Single-prompt text generation. Raises ModelCallError on failure."""
        result = await self.complete(
            system_prompt, prompt, max_tokens=max_tokens, temperature=temperature
        )
        if not result.success:
            raise ModelCallError(sanitize_error(result.error or "Unknown model error"), self.name)
        return result.content or ""


def get_ai_provider(
    config: dict,
    provider_override: Optional[str] = None,
    model_override: Optional[str] = None,
    endpoint_override: Optional[str] = None,
) -> BaseProvider:
    """Factory function to create the configured AI provider."""
    ai_config = config.get("ai", {})
    provider_name = provider_override or ai_config.get("provider", "gemini")

    # Get provider-specific config
    provider_config = dict(ai_config.get(provider_name, {}))

    # Apply CLI overrides
    if model_override:
        provider_config["model"] = model_override
    if endpoint_override:
        provider_config["endpoint"] = endpoint_override

    # Build common config (ai section minus provider sub-configs)
    common_config = {k: v for k, v in ai_config.items() if k not in PROVIDER_NAMES}

    if provider_name == "gemini":
        from .gemini import GeminiProvider
        return GeminiProvider(provider_config, common_config)
    elif provider_name == "anthropic":
        from .anthropic import AnthropicProvider
        return AnthropicProvider(provider_config, common_config)
    elif provider_name == "openai":
        from .openai_provider import OpenAIProvider
        return OpenAIProvider(provider_config, common_config)
    elif provider_name == "ollama":
        from .ollama import OllamaProvider
        return OllamaProvider(provider_config, common_config)
    elif provider_name == "mock":
        from .mock import MockProvider
        return MockProvider(provider_config, common_config)
    else:
        raise ValueError(f"Unknown AI provider: {provider_name}")
