"""Google Gemini provider over the public generateContent REST endpoint."""

from __future__ import annotations

import time
from typing import Any

import httpx

from finpet.core.llm.provider import DEFAULT_GEMINI_MODEL, ProviderResponse, with_context

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1"

TOP_P = 0.8
TOP_K = 40


class GeminiProvider:
    """Gemini provider using httpx.

    Returns the raw candidate document; extracting the text is the
    response parser's job.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_GEMINI_MODEL,
        base_url: str = GEMINI_BASE_URL,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._client = client

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_body(
        self,
        system_message: str,
        user_message: str,
        context: dict[str, Any] | None,
        max_tokens: int,
        temperature: float,
    ) -> dict[str, Any]:
        # v1 has no systemInstruction field, so everything goes in one text part.
        parts = [system_message, with_context(user_message, context)]
        return {
            "contents": [{"parts": [{"text": "\n\n".join(p for p in parts if p)}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
                "topP": TOP_P,
                "topK": TOP_K,
            },
        }

    async def _post(self, client: httpx.AsyncClient, body: dict[str, Any]) -> httpx.Response:
        response = await client.post(
            self.endpoint,
            params={"key": self.api_key},
            json=body,
            headers={"Content-Type": "application/json"},
        )
        response.raise_for_status()
        return response

    async def generate(
        self,
        system_message: str,
        user_message: str,
        context: dict[str, Any] | None = None,
        max_tokens: int = 2500,
        temperature: float = 0.2,
    ) -> ProviderResponse:
        body = self.build_body(system_message, user_message, context, max_tokens, temperature)
        start = time.monotonic()
        if self._client is not None:
            response = await self._post(self._client, body)
        else:
            async with httpx.AsyncClient() as client:
                response = await self._post(client, body)
        elapsed_ms = (time.monotonic() - start) * 1000

        data = response.json()
        usage = (data.get("usageMetadata") or {}) if isinstance(data, dict) else {}
        return ProviderResponse(
            payload=data,
            input_tokens=int(usage.get("promptTokenCount") or 0),
            output_tokens=int(usage.get("candidatesTokenCount") or 0),
            model=self.model,
            latency_ms=elapsed_ms,
        )
