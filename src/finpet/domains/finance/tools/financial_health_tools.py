"""MCP tools for financial health analysis and daily progress tracking."""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

from finpet.domains.finance.analyzer import AnalysisTimeoutError, analyze_with_deadline
from finpet.domains.finance.domain_logic.classifier import matching_tier
from finpet.domains.finance.domain_logic.metrics import coerce_raw_inputs, compute_metrics
from finpet.domains.finance.domain_logic.models import EMPTY_MESSAGE_PLACEHOLDER
from finpet.domains.finance.domain_logic.progress import (
    ACTIONS,
    Progress,
    apply_deposit,
    apply_withdrawal,
)
from finpet.domains.finance.domain_logic.scorer import health_adjustments

if TYPE_CHECKING:
    from finpet.domains.finance.analyzer import FinancialHealthAnalyzer

logger = logging.getLogger(__name__)


def _inputs(
    monthly_income: Any,
    monthly_spending: Any,
    total_savings: Any,
    total_debt: Any,
    monthly_investments: Any,
    investment_balance: Any,
) -> dict[str, Any]:
    return {
        "monthly_income": monthly_income,
        "monthly_spending": monthly_spending,
        "total_savings": total_savings,
        "total_debt": total_debt,
        "monthly_investments": monthly_investments,
        "investment_balance": investment_balance,
    }


def register_financial_health_tools(
    mcp: FastMCP,
    analyzer: FinancialHealthAnalyzer,
    analysis_timeout_s: float = 20.0,
) -> None:
    """Register financial health tools on the MCP server."""

    @mcp.tool
    async def analyze_financial_health(
        ctx: Context,
        monthly_income: float | str = 0,
        monthly_spending: float | str = 0,
        total_savings: float | str = 0,
        total_debt: float | str = 0,
        monthly_investments: float | str = 0,
        investment_balance: float | str = 0,
    ) -> str:
        """Check how Penny, your money pet, is doing.

        Computes a state (FLATLINED to LEGENDARY), a 0-100 health score and three
        short advice lines. Uses the text service when configured and falls
        back to local advice when it is slow, missing, or returns bad output.

        Args:
            monthly_income: Monthly take-home income (e.g. 5000 or "$5,000").
            monthly_spending: Monthly spending.
            total_savings: Total savings balance.
            total_debt: Total outstanding debt.
            monthly_investments: Amount invested each month.
            investment_balance: Current investment balance.
        """
        start_time = time.monotonic()
        data = _inputs(
            monthly_income, monthly_spending, total_savings,
            total_debt, monthly_investments, investment_balance,
        )
        try:
            result = await analyze_with_deadline(analyzer, data, analysis_timeout_s)
        except AnalysisTimeoutError as exc:
            logger.error("analyze_financial_health timed out: %s", exc)
            return json.dumps({
                "status": "error",
                "error": "analysis_timeout",
                "message": EMPTY_MESSAGE_PLACEHOLDER,
                "timeout_s": analysis_timeout_s,
            })

        elapsed_ms = (time.monotonic() - start_time) * 1000
        logger.info(
            "analyze_financial_health: state=%s, health=%d, source=%s, %.0fms",
            result.state.value, result.health, result.source, elapsed_ms,
        )
        return json.dumps({"status": "ok", **result.to_dict()}, indent=2)

    @mcp.tool
    def local_financial_health(
        monthly_income: float | str = 0,
        monthly_spending: float | str = 0,
        total_savings: float | str = 0,
        total_debt: float | str = 0,
        monthly_investments: float | str = 0,
        investment_balance: float | str = 0,
    ) -> str:
        """Score your finances locally, with no external call.

        Returns the four computed ratios, the per-dimension score breakdown,
        and the deterministic advice.
        """
        raw = coerce_raw_inputs(_inputs(
            monthly_income, monthly_spending, total_savings,
            total_debt, monthly_investments, investment_balance,
        ))
        metrics = compute_metrics(raw)
        result = analyzer.analyze_locally(raw)
        return json.dumps(
            {
                "status": "ok",
                "ruleset_id": analyzer.ruleset.id,
                "totals": raw.as_dict(),
                "metrics": metrics.as_json_dict(),
                "matched_tier": matching_tier(metrics, analyzer.ruleset),
                "health_breakdown": health_adjustments(metrics, analyzer.ruleset),
                **result.to_dict(),
            },
            indent=2,
        )

    @mcp.tool
    def update_progress(
        action: str,
        amount: float | str = 0,
        progress: dict[str, Any] | None = None,
        today: str = "",
    ) -> str:
        """Record a deposit or withdrawal in today's progress counters.

        Counters reset when the day changes.

        Args:
            action: 'deposit' or 'withdrawal'.
            amount: Amount moved (non-negative).
            progress: The previous progress object (as returned by this tool).
            today: ISO date (e.g. '2026-01-15'). Defaults to today.
        """
        current = Progress.from_dict(progress)
        key = action.strip().lower()
        if key not in ACTIONS:
            return json.dumps({
                "status": "error",
                "error": "unknown_action",
                "message": f"Unknown action {action!r}; expected one of {list(ACTIONS)}.",
            })
        transition = apply_deposit if key == "deposit" else apply_withdrawal
        updated = transition(current, amount, today or None)
        return json.dumps({"status": "ok", "progress": updated.to_dict()})
