"""Text-completion client: the bridge between the analyzer and a provider.

One call per request, bounded by a timeout. Provider failures are mapped to
a small error taxonomy so callers can degrade without knowing the transport.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from finpet.core.llm.provider import ProviderResponse, TextProvider

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 15.0


class TextServiceError(Exception):
    """The text service could not produce a payload."""


class TextServiceTimeout(TextServiceError):
    """The call exceeded its deadline and was cancelled."""


class TextServiceUnavailable(TextServiceError):
    """Transport failure or non-success status from the service."""


class TextCompletionClient:
    """Invokes a text provider with a deadline."""

    def __init__(self, provider: TextProvider, timeout_s: float = DEFAULT_TIMEOUT_S) -> None:
        self.provider = provider
        self.timeout_s = timeout_s

    @property
    def provider_name(self) -> str:
        return type(self.provider).__name__

    async def complete(
        self,
        system_message: str,
        user_message: str,
        context: dict[str, Any] | None = None,
        max_tokens: int = 2500,
        temperature: float = 0.2,
    ) -> ProviderResponse:
        """Call the provider once; no retry.

        Raises:
            TextServiceTimeout: the deadline passed (the call is cancelled).
            TextServiceUnavailable: HTTP status or transport failure.
            TextServiceError: any other provider failure.
        """
        try:
            response = await asyncio.wait_for(
                self.provider.generate(
                    system_message=system_message,
                    user_message=user_message,
                    context=context,
                    max_tokens=max_tokens,
                    temperature=temperature,
                ),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError as exc:
            raise TextServiceTimeout(
                f"{self.provider_name} did not answer within {self.timeout_s:.1f}s"
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise TextServiceUnavailable(
                f"{self.provider_name} returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TextServiceUnavailable(f"{self.provider_name} transport error: {exc}") from exc
        except TextServiceError:
            raise
        except Exception as exc:
            raise TextServiceError(f"{self.provider_name} failed: {exc}") from exc

        logger.info(
            "Text service call: provider=%s, model=%s, tokens=%d+%d, latency=%.0fms",
            self.provider_name,
            response.model,
            response.input_tokens,
            response.output_tokens,
            response.latency_ms,
        )
        return response
