"""Anthropic Claude provider."""

from __future__ import annotations

import time
from typing import Any

from finpet.core.llm.provider import DEFAULT_ANTHROPIC_MODEL, ProviderResponse, with_context


class AnthropicProvider:
    """Claude provider using the Anthropic SDK. Returns plain text."""

    def __init__(self, api_key: str, model: str = DEFAULT_ANTHROPIC_MODEL) -> None:
        import anthropic

        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model

    async def generate(
        self,
        system_message: str,
        user_message: str,
        context: dict[str, Any] | None = None,
        max_tokens: int = 2500,
        temperature: float = 0.2,
    ) -> ProviderResponse:
        start = time.monotonic()
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_message,
            messages=[{"role": "user", "content": with_context(user_message, context)}],
        )
        elapsed_ms = (time.monotonic() - start) * 1000

        text = "".join(
            getattr(block, "text", "") for block in (response.content or [])
        )
        return ProviderResponse(
            payload=text,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=self.model,
            latency_ms=elapsed_ms,
        )
