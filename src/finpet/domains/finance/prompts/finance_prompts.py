"""MCP Prompts: pre-built interaction templates for money check-ups."""

from __future__ import annotations

from fastmcp import FastMCP


def register_finance_prompts(mcp: FastMCP) -> None:
    """Register finance domain MCP prompts."""

    @mcp.prompt()
    def financial_checkup_prompt(focus: str = "my overall money habits") -> str:
        """Prompt template for a friendly money check-up with Penny."""
        return f"""I'd like a money check-up with Penny, focusing on {focus}.

Please ask me for these six numbers if I haven't given them yet:
1. Monthly income
2. Monthly spending
3. Total savings
4. Total debt
5. How much I invest each month
6. My investment balance

Then run analyze_financial_health and explain Penny's state, her health score,
and the three advice lines in simple words. Keep it kind and encouraging."""
