"""Deterministic metric computation: raw figures -> four ratios.

No I/O, no randomness. Division by zero follows a fixed policy:
``budget_ratio`` and ``dti`` become ``inf`` without income, ``runway_months``
becomes a large sentinel when there is savings but no spending.
"""

from __future__ import annotations

import math
import sys
from collections.abc import Mapping
from typing import Any

from finpet.domains.finance.domain_logic.models import (
    RUNWAY_SENTINEL,
    Metrics,
    RawInputs,
)

# Accepted input keys per field (snake_case first, then the web client's names).
_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "monthly_income": ("monthly_income", "income", "monthlyIncome"),
    "monthly_spending": ("monthly_spending", "spending", "monthlySpending"),
    "total_savings": ("total_savings", "savings", "totalSavings"),
    "total_debt": ("total_debt", "debt", "totalDebt"),
    "monthly_investments": ("monthly_investments", "monthlyInvestments", "investments"),
    "investment_balance": ("investment_balance", "investmentBalance"),
}


def coerce_amount(val: Any) -> float:
    """Coerce a user-supplied value to a finite, non-negative float (else 0)."""
    if val is None or isinstance(val, bool):
        return 0.0
    if isinstance(val, str):
        val = val.strip().replace(",", "").replace("$", "")
        if not val:
            return 0.0
    try:
        number = float(val)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def coerce_raw_inputs(data: RawInputs | Mapping[str, Any] | None) -> RawInputs:
    """Build RawInputs from a mapping of strings or numbers.

    Missing, unparseable, negative or non-finite values become 0.
    """
    if isinstance(data, RawInputs):
        return RawInputs(**{k: coerce_amount(v) for k, v in data.as_dict().items()})
    data = data or {}
    values: dict[str, float] = {}
    for field_name, aliases in _FIELD_ALIASES.items():
        raw_value = None
        for key in aliases:
            if key in data:
                raw_value = data[key]
                break
        values[field_name] = coerce_amount(raw_value)
    return RawInputs(**values)


def compute_metrics(raw: RawInputs | Mapping[str, Any]) -> Metrics:
    """Compute budget ratio, runway, investing rate and debt-to-income."""
    raw = coerce_raw_inputs(raw)
    income = raw.monthly_income
    spending = raw.monthly_spending
    savings = raw.total_savings

    if income > 0:
        budget_ratio = spending / income
        invest_rate = raw.monthly_investments / income
        dti = raw.total_debt / income
    else:
        budget_ratio = math.inf
        invest_rate = 0.0
        dti = math.inf

    if spending > 0:
        runway_months = savings / spending
    elif savings > 0:
        runway_months = RUNWAY_SENTINEL
    else:
        runway_months = 0.0

    # Overflow from a vanishingly small divisor.
    if not math.isfinite(invest_rate):
        invest_rate = sys.float_info.max
    if not math.isfinite(runway_months):
        runway_months = RUNWAY_SENTINEL

    return Metrics(
        budget_ratio=budget_ratio,
        runway_months=runway_months,
        invest_rate=invest_rate,
        dti=dti,
    )
