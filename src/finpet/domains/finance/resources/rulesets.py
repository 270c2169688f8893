"""MCP Resources for finance rule set discovery."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from fastmcp import FastMCP

if TYPE_CHECKING:
    from finpet.core.ruleset.registry import RulesetRegistry


def register_finance_ruleset_resources(
    mcp: FastMCP, registry: RulesetRegistry, active_id: str
) -> None:
    """Register rule set discovery resources on the MCP server."""

    @mcp.resource("ruleset://finance/registry")
    def finance_ruleset_registry_resource() -> str:
        """Discover the available scoring rule sets and their thresholds."""
        rulesets = [r for r in registry.all() if r.domain == "personal_finance"]
        return json.dumps(
            {
                "domain": "personal_finance",
                "active_ruleset": active_id,
                "ruleset_count": len(rulesets),
                "rulesets": [
                    {
                        **r.summary(),
                        "tiers": [
                            {
                                "state": t.state,
                                "match": t.match,
                                "conditions": [
                                    f"{c.metric} {c.op} {c.threshold}" for c in t.conditions
                                ],
                            }
                            for t in r.classifier.tiers
                        ],
                        "targets": r.targets,
                    }
                    for r in rulesets
                ],
            },
            indent=2,
        )
