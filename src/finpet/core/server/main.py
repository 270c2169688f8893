"""FinPet server entry point: ``python -m finpet.core.server.main``.

Serves the money-pet tools over Streamable HTTP. Scoring is local; the text
service named by ``LLM_PROVIDER`` only supplies the narrative, so the server
starts and answers even when no provider key is configured.
"""

from __future__ import annotations

import logging
from ipaddress import ip_address

from finpet.core.config.settings import get_settings
from finpet.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Start the FinPet MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.finpet_log_level.upper(), logging.INFO))

    logger = logging.getLogger(__name__)
    if not settings.finpet_allow_insecure_bind and not _is_loopback_host(settings.finpet_host):
        raise RuntimeError(
            "Refusing to expose Penny's money tools on a non-loopback host without an auth layer. "
            "Set FINPET_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )

    logger.info(
        "Starting FinPet on %s:%d (text provider=%s, rule set=%s, text timeout=%dms, "
        "analysis deadline=%dms)",
        settings.finpet_host,
        settings.finpet_port,
        settings.llm_provider,
        settings.ruleset_id,
        settings.text_timeout_ms,
        settings.analysis_timeout_ms,
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.finpet_host,
        port=settings.finpet_port,
    )


if __name__ == "__main__":
    run()
