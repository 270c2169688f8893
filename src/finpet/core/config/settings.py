"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings

from finpet.core.llm.provider import (
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_OPENAI_MODEL,
    DEFAULT_PROXY_URL,
)


class Settings(BaseSettings):
    """FinPet server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; there is no auth layer in front of the tools.
    finpet_host: str = "127.0.0.1"
    finpet_port: int = 8001
    finpet_log_level: str = "info"
    finpet_allow_insecure_bind: bool = False

    # Text-completion service
    llm_provider: Literal["gemini", "proxy", "anthropic", "openai", "mock"] = "gemini"
    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1"
    text_service_url: str = DEFAULT_PROXY_URL
    anthropic_api_key: str = ""
    anthropic_model: str = DEFAULT_ANTHROPIC_MODEL
    openai_api_key: str = ""
    openai_model: str = DEFAULT_OPENAI_MODEL

    # Timeouts
    text_timeout_ms: int = 15000
    analysis_timeout_ms: int = 20000

    # Scoring rule set (file id under domains/finance/rulesets/)
    ruleset_id: str = "finpet.v1"


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
