"""Google Gemini generateContent provider."""

from __future__ import annotations

from typing import Optional

from .base import BaseProvider


class GeminiProvider(BaseProvider):
    name = "gemini"
    default_model = "gemini-2.0-flash"
    api_key_env = "GEMINI_API_KEY"
    API_BASE = "https://generativelanguage.googleapis.com/v1beta"

    async def _send(
        self,
        api_key: Optional[str],
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> dict:
        generation_config: dict = {"temperature": temperature}
        max_tok = self._max_tokens(max_tokens)
        if max_tok:
            generation_config["maxOutputTokens"] = max_tok

        body: dict = {
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "generationConfig": generation_config,
        }
        if system_prompt:
            body["systemInstruction"] = {"parts": [{"text": system_prompt}]}

        endpoint = self.config.get("endpoint") or self.API_BASE
        url = f"{endpoint.rstrip('/')}/models/{self.model_name}:generateContent"
        headers = {
            "x-goog-api-key": api_key or "",
            "content-type": "application/json",
        }
        return await self._post(url, body, headers)

    def _parse(self, data: dict) -> tuple[Optional[str], dict]:
        candidates = data.get("candidates") or []
        parts = (candidates[0].get("content") or {}).get("parts", []) if candidates else []
        usage = data.get("usageMetadata", {})
        return "".join(p.get("text", "") for p in parts), {
            "input": usage.get("promptTokenCount", 0),
            "output": usage.get("candidatesTokenCount", 0),
        }
