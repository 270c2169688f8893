"""Text provider protocol: the abstract interface for outbound completion calls."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_OPENAI_MODEL = "gpt-4o"
DEFAULT_PROXY_URL = "http://127.0.0.1:3000/analyze"


@dataclass
class ProviderResponse:
    """Response from a text provider.

    ``payload`` is whatever the provider returned: a candidate document
    (Gemini), a JSON object (proxy), or plain text (chat providers).
    """

    payload: Any
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""
    latency_ms: float = 0.0


def with_context(user_message: str, context: dict[str, Any] | None) -> str:
    """Append the structured context to a prompt as a JSON block."""
    if not context:
        return user_message
    return f"{user_message}\n\nContext (JSON):\n{json.dumps(context, sort_keys=True)}"


@runtime_checkable
class TextProvider(Protocol):
    """Abstract interface for outbound text-completion calls."""

    async def generate(
        self,
        system_message: str,
        user_message: str,
        context: dict[str, Any] | None = None,
        max_tokens: int = 2500,
        temperature: float = 0.2,
    ) -> ProviderResponse: ...


def create_provider(
    provider_name: str,
    api_key: str = "",
    model: str = "",
    base_url: str = "",
) -> TextProvider:
    """Factory function to create a text provider by name.

    Args:
        provider_name: "gemini", "proxy", "anthropic", "openai", or "mock"
        api_key: API key for the provider.
        model: Model identifier override.
        base_url: API base URL (gemini) or endpoint URL (proxy).

    Returns:
        A TextProvider instance.
    """
    if provider_name == "gemini":
        from finpet.core.llm.providers.gemini import GEMINI_BASE_URL, GeminiProvider

        return GeminiProvider(
            api_key=api_key,
            model=model or DEFAULT_GEMINI_MODEL,
            base_url=base_url or GEMINI_BASE_URL,
        )
    elif provider_name == "proxy":
        from finpet.core.llm.providers.proxy import ProxyProvider

        return ProxyProvider(url=base_url or DEFAULT_PROXY_URL)
    elif provider_name == "anthropic":
        from finpet.core.llm.providers.anthropic import AnthropicProvider

        return AnthropicProvider(api_key=api_key, model=model or DEFAULT_ANTHROPIC_MODEL)
    elif provider_name == "openai":
        from finpet.core.llm.providers.openai import OpenAIProvider

        return OpenAIProvider(api_key=api_key, model=model or DEFAULT_OPENAI_MODEL)
    elif provider_name == "mock":
        from finpet.core.llm.providers.mock import MockProvider

        return MockProvider()
    else:
        raise ValueError(f"Unknown LLM provider: {provider_name}")
