"""OpenAI chat completions provider."""

from __future__ import annotations

from typing import Optional

from .base import BaseProvider


class OpenAIProvider(BaseProvider):
    name = "openai"
    default_model = "gpt-4o"
    api_key_env = "OPENAI_API_KEY"
    API_URL = "https://api.openai.com/v1/chat/completions"

    async def _send(
        self,
        api_key: Optional[str],
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> dict:
        messages = [{"role": "user", "content": user_prompt}]
        if system_prompt:
            messages.insert(0, {"role": "system", "content": system_prompt})

        body = {
            "model": self.model_name,
            "max_tokens": self._max_tokens(max_tokens, 8000),
            "temperature": temperature,
            "messages": messages,
        }
        headers = {"Authorization": f"Bearer {api_key}"}
        return await self._post(self.config.get("endpoint") or self.API_URL, body, headers)

    def _parse(self, data: dict) -> tuple[Optional[str], dict]:
        usage = data.get("usage", {})
        return data["choices"][0]["message"]["content"], {
            "input": usage.get("prompt_tokens", 0),
            "output": usage.get("completion_tokens", 0),
        }
