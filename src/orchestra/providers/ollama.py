"""Ollama local inference provider. Needs no API key."""

from __future__ import annotations

from typing import Optional

from .base import BaseProvider


class OllamaProvider(BaseProvider):
    name = "ollama"
    default_model = "llama3.1:8b"

    async def _send(
        self,
        api_key: Optional[str],
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> dict:
        options: dict = {"temperature": temperature}
        max_tok = self._max_tokens(max_tokens)
        if max_tok:
            options["num_predict"] = max_tok

        body = {
            "model": self.model_name,
            "system": system_prompt,
            "prompt": user_prompt,
            "stream": False,
            "options": options,
        }
        endpoint = self.config.get("endpoint", "http://localhost:11434")
        return await self._post(f"{endpoint.rstrip('/')}/api/generate", body)

    def _parse(self, data: dict) -> tuple[Optional[str], dict]:
        return data.get("response", ""), {
            "input": data.get("prompt_eval_count", 0),
            "output": data.get("eval_count", 0),
        }
