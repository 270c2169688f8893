"""Mock text provider for testing and key-less runs."""

from __future__ import annotations

import asyncio
from typing import Any

from finpet.core.llm.provider import ProviderResponse


class MockProvider:
    """Mock provider: returns a canned payload, optionally after a delay or with an error.

    Unconfigured, the payload is an empty dict, which the response parser
    treats as unparseable so the local advice answers.
    """

    def __init__(
        self,
        payload: Any = None,
        delay_s: float = 0.0,
        error: BaseException | None = None,
    ) -> None:
        self.payload = {} if payload is None else payload
        self.delay_s = delay_s
        self.error = error
        self.model = "mock"
        self.last_system_message: str = ""
        self.last_user_message: str = ""
        self.last_context: dict[str, Any] | None = None
        self.call_count: int = 0

    async def generate(
        self,
        system_message: str,
        user_message: str,
        context: dict[str, Any] | None = None,
        max_tokens: int = 2500,
        temperature: float = 0.2,
    ) -> ProviderResponse:
        self.last_system_message = system_message
        self.last_user_message = user_message
        self.last_context = context
        self.call_count += 1
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.error is not None:
            raise self.error
        return ProviderResponse(
            payload=self.payload,
            input_tokens=len(system_message.split()) + len(user_message.split()),
            output_tokens=len(str(self.payload).split()),
            model=self.model,
            latency_ms=self.delay_s * 1000,
        )
