"""Anthropic Claude Messages API provider."""

from __future__ import annotations

from typing import Optional

from .base import BaseProvider


class AnthropicProvider(BaseProvider):
    name = "anthropic"
    default_model = "claude-sonnet-4-5-20250929"
    api_key_env = "ANTHROPIC_API_KEY"
    API_URL = "https://api.anthropic.com/v1/messages"

    async def _send(
        self,
        api_key: Optional[str],
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> dict:
        body: dict = {
            "model": self.model_name,
            "max_tokens": self._max_tokens(max_tokens, 8000),
            "temperature": temperature,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        if system_prompt:
            body["system"] = system_prompt

        headers = {
            "x-api-key": api_key or "",
            "anthropic-version": "2023-06-01",
            "content-type": "application/json",
        }
        return await self._post(self.config.get("endpoint") or self.API_URL, body, headers)

    def _parse(self, data: dict) -> tuple[Optional[str], dict]:
        text = next(
            (b.get("text") for b in data.get("content", []) if b.get("type") == "text"),
            None,
        )
        usage = data.get("usage", {})
        return text, {
            "input": usage.get("input_tokens", 0),
            "output": usage.get("output_tokens", 0),
        }
