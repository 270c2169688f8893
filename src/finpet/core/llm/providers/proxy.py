"""Provider that forwards prompts to the app's own ``/analyze`` backend."""

from __future__ import annotations

import time
from typing import Any

import httpx

from finpet.core.llm.provider import ProviderResponse


class ProxyProvider:
    """POSTs ``{prompt, context}`` and returns the backend's JSON unchanged.

    The backend may answer with a normalized object or a candidate document;
    both are handled downstream by the response parser.
    """

    def __init__(self, url: str, client: httpx.AsyncClient | None = None) -> None:
        self.url = url
        self.model = "proxy"
        self._client = client

    async def _post(self, client: httpx.AsyncClient, body: dict[str, Any]) -> httpx.Response:
        response = await client.post(self.url, json=body)
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
        body: dict[str, Any] = {
            "prompt": f"{system_message}\n\n{user_message}" if system_message else user_message,
            "context": context or {},
        }
        start = time.monotonic()
        if self._client is not None:
            response = await self._post(self._client, body)
        else:
            async with httpx.AsyncClient() as client:
                response = await self._post(client, body)
        elapsed_ms = (time.monotonic() - start) * 1000

        return ProviderResponse(
            payload=response.json(),
            model=self.model,
            latency_ms=elapsed_ms,
        )
