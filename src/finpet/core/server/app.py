"""FinPet Financial Health MCP Server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from finpet.core.config.settings import Settings, get_settings
from finpet.core.llm.client import TextCompletionClient
from finpet.core.llm.provider import TextProvider, create_provider
from finpet.core.ruleset.models import Ruleset, RulesetError
from finpet.domains.finance.analyzer import FinancialHealthAnalyzer
from finpet.domains.finance.domain_logic.rulesets import (
    RULESET_DIR,
    get_default_ruleset,
    get_finance_registry,
    get_ruleset,
)
from finpet.domains.finance.prompts.finance_prompts import register_finance_prompts
from finpet.domains.finance.resources.rulesets import register_finance_ruleset_resources
from finpet.domains.finance.tools.financial_health_tools import register_financial_health_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "FinPet Financial Health"
SERVER_VERSION = "0.1.0"


def _select_provider(settings: Settings) -> tuple[str, str, str, str]:
    """Resolve (provider_name, api_key, model, base_url), falling back to mock without a key."""
    requested = settings.llm_provider
    if requested == "mock":
        return "mock", "", "", ""
    if requested == "proxy":
        return "proxy", "", "", settings.text_service_url
    if requested == "gemini":
        api_key, model, base_url = settings.gemini_api_key, settings.gemini_model, settings.gemini_base_url
    elif requested == "anthropic":
        api_key, model, base_url = settings.anthropic_api_key, settings.anthropic_model, ""
    elif requested == "openai":
        api_key, model, base_url = settings.openai_api_key, settings.openai_model, ""
    else:  # pragma: no cover
        raise ValueError(f"Unknown LLM provider: {requested!r}")

    if not api_key:
        logger.warning(
            "No API key configured for provider '%s'; falling back to mock provider",
            requested,
        )
        return "mock", "", "", ""
    return requested, api_key, model, base_url


def _select_ruleset(settings: Settings) -> Ruleset:
    try:
        return get_ruleset(settings.ruleset_id)
    except RulesetError as exc:
        logger.error("Rule set %r unavailable (%s); using the default", settings.ruleset_id, exc)
        return get_default_ruleset()


def create_app(
    *,
    provider_override: TextProvider | None = None,
    ruleset_override: Ruleset | None = None,
) -> FastMCP:
    """Create and configure the FinPet MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Loads the rule set registry and selects the active rule set
    3. Creates the text-completion client
    4. Registers all tools, resources, and prompts
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "FinPet financial health server. Scores six money figures into a "
            "virtual pet state and a 0-100 health score, with three plain-language "
            "advice lines. Works offline through local advice when the text "
            "service is unavailable."
        ),
    )

    # --- Rule sets ---
    registry = get_finance_registry()
    ruleset = ruleset_override or _select_ruleset(settings)
    logger.info(
        "Using rule set %s (%d available from %s)", ruleset.id, len(registry.all()), RULESET_DIR
    )

    # --- Text-completion client ---
    if provider_override is not None:
        provider = provider_override
    else:
        provider_name, api_key, model, base_url = _select_provider(settings)
        provider = create_provider(
            provider_name=provider_name,
            api_key=api_key,
            model=model,
            base_url=base_url,
        )
    text_client = TextCompletionClient(provider=provider, timeout_s=settings.text_timeout_ms / 1000)

    analyzer = FinancialHealthAnalyzer(client=text_client, ruleset=ruleset)

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "text_provider": text_client.provider_name,
            "active_ruleset": ruleset.id,
            "rulesets_loaded": [r.id for r in registry.all()],
            "text_timeout_ms": settings.text_timeout_ms,
            "analysis_timeout_ms": settings.analysis_timeout_ms,
        }

    register_financial_health_tools(
        server, analyzer, analysis_timeout_s=settings.analysis_timeout_ms / 1000
    )
    logger.info("Financial health tools registered (provider=%s)", text_client.provider_name)

    # --- Register resources ---
    register_finance_ruleset_resources(server, registry, ruleset.id)

    # --- Register prompts ---
    register_finance_prompts(server)

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
