"""Text provider implementations."""

from finpet.core.llm.providers.anthropic import AnthropicProvider
from finpet.core.llm.providers.gemini import GeminiProvider
from finpet.core.llm.providers.mock import MockProvider
from finpet.core.llm.providers.openai import OpenAIProvider
from finpet.core.llm.providers.proxy import ProxyProvider

__all__ = [
    "AnthropicProvider",
    "GeminiProvider",
    "MockProvider",
    "OpenAIProvider",
    "ProxyProvider",
]
