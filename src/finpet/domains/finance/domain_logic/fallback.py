"""Local deterministic advice: a complete result without the text service.

Built only from metrics (plus raw totals when available), the classifier and
the scorer. Template-filled, no randomness. Every advice line carries a
concrete number: a percentage, a dollar amount, or a month count.
"""

from __future__ import annotations

import math

from finpet.core.ruleset.models import Ruleset
from finpet.domains.finance.domain_logic.classifier import pick_state
from finpet.domains.finance.domain_logic.models import (
    PET_NAME,
    LocalAdvice,
    Metrics,
    PetState,
    RawInputs,
)
from finpet.domains.finance.domain_logic.rulesets import get_default_ruleset
from finpet.domains.finance.domain_logic.sanitizer import sanitize_line
from finpet.domains.finance.domain_logic.scorer import compute_health

# Used when a rule set does not declare its own targets.
DEFAULT_TARGETS: dict[str, float] = {
    "budget_ratio": 0.80,
    "runway_months": 3.0,
    "invest_rate": 0.10,
    "dti": 0.50,
}

HEADLINES: dict[PetState, str] = {
    PetState.LEGENDARY: "{pet} is legendary with {h} points. Your money plan is top tier.",
    PetState.THRIVING: "{pet} is doing great with {h} points. You are staying on track.",
    PetState.HEALTHY: "{pet} is healthy with {h} points. Keep up the good work.",
    PetState.SURVIVING: "{pet} is okay with {h} points. There is room to improve.",
    PetState.STRUGGLING: "{pet} needs help with {h} points. Check your spending.",
    PetState.CRITICAL: "{pet} is struggling with {h} points. Take action now.",
    PetState.FLATLINED: "{pet} needs urgent care with {h} points. Start with one small fix today.",
}

# Weeks per month for weekly transfer sizing.
_WEEKS_PER_MONTH = 52 / 12

# Rates above this are displayed as this (1000 percent).
_MAX_RATE = 10.0


# ---------------------------------------------------------------------------
# Number formatting
# ---------------------------------------------------------------------------

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _pct(rate: float) -> int:
    if not math.isfinite(rate):
        return 0
    return _round_half_up(min(max(0.0, rate), _MAX_RATE) * 100)


def _dollars(amount: float) -> str:
    if not math.isfinite(amount):
        amount = 0.0
    return f"${_round_half_up(abs(amount)):,}"


def _months(runway: float) -> str:
    if not math.isfinite(runway) or runway >= 24:
        return "more than 24"
    text = f"{max(0.0, runway):.1f}"
    return text[:-2] if text.endswith(".0") else text


def _finite(value: float) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value)


def _has_income(metrics: Metrics, raw: RawInputs | None) -> bool:
    if raw is not None:
        return raw.monthly_income > 0
    return _finite(metrics.budget_ratio) and _finite(metrics.dti)


# ---------------------------------------------------------------------------
# Advice lines
# ---------------------------------------------------------------------------

def _praise_line(m: Metrics, raw: RawInputs | None, t: dict[str, float]) -> str:
    """Line 1: the best-performing dimension."""
    if _finite(m.budget_ratio) and m.budget_ratio <= t["budget_ratio"]:
        return f"You spend {_pct(m.budget_ratio)}% of your income, which leaves room to save."
    if m.runway_months >= t["runway_months"]:
        return f"Your savings could cover {_months(m.runway_months)} months of spending."
    if m.invest_rate >= t["invest_rate"]:
        return f"You invest {_pct(m.invest_rate)}% of your income every month."
    if raw is not None and raw.monthly_income > 0:
        return f"You bring in {_dollars(raw.monthly_income)} a month, and that is a base to build on."
    if _finite(m.runway_months) and m.runway_months > 0:
        return f"You have {_months(m.runway_months)} months of savings to build from."
    return f"Starting from 0 is fine, every saved dollar helps {PET_NAME} grow."


def _gap(value: float, target: float, *, higher_is_better: bool) -> float:
    if isinstance(value, float) and math.isnan(value):
        return -math.inf
    if target <= 0:
        return -math.inf
    if higher_is_better:
        return (target - value) / target
    return (value - target) / target


def _worst_dimension(m: Metrics, t: dict[str, float]) -> tuple[str, float]:
    gaps = [
        ("budget_ratio", _gap(m.budget_ratio, t["budget_ratio"], higher_is_better=False)),
        ("runway_months", _gap(m.runway_months, t["runway_months"], higher_is_better=True)),
        ("invest_rate", _gap(m.invest_rate, t["invest_rate"], higher_is_better=True)),
        ("dti", _gap(m.dti, t["dti"], higher_is_better=False)),
    ]
    worst, worst_gap = gaps[0]
    for name, gap in gaps[1:]:
        if gap > worst_gap:
            worst, worst_gap = name, gap
    return worst, worst_gap


def _fix_line(m: Metrics, raw: RawInputs | None, t: dict[str, float]) -> str:
    """Line 2: the worst-performing dimension with a corrective target."""
    if not _has_income(m, raw):
        return f"Start with any steady income, even {_dollars(100)} a month, so the plan can work."

    income = raw.monthly_income if raw is not None else 0.0
    spending = raw.monthly_spending if raw is not None else 0.0
    worst, gap = _worst_dimension(m, t)
    # Every dimension on target: the weakest one becomes a "keep it up" line.
    on_target = gap <= 0

    if worst == "budget_ratio":
        verb = "Keep spending" if on_target else "Aim to spend"
        if income > 0:
            return (
                f"{verb} under {_dollars(t['budget_ratio'] * income)} a month, "
                f"which is {_pct(t['budget_ratio'])}% of your income."
            )
        return f"{verb} under {_pct(t['budget_ratio'])}% of your income each month."
    if worst == "runway_months":
        verb = "Keep savings above" if on_target else "Build savings to"
        if spending > 0:
            return (
                f"{verb} {_dollars(t['runway_months'] * spending)} so they cover "
                f"{_months(t['runway_months'])} months of spending."
            )
        return f"Grow savings until they cover {_months(t['runway_months'])} months of spending."
    if worst == "invest_rate":
        verb = "Keep investing at least" if on_target else "Aim to invest"
        if income > 0:
            return (
                f"{verb} {_dollars(t['invest_rate'] * income)} a month, "
                f"which is {_pct(t['invest_rate'])}% of your income."
            )
        return f"{verb} {_pct(t['invest_rate'])}% of your income each month."
    verb = "Keep debt at" if on_target else "Pay debt down to"
    if income > 0:
        return (
            f"{verb} {_dollars(t['dti'] * income)} or less, "
            f"about {_pct(t['dti'])}% of one month of income."
        )
    return f"{verb} about {_pct(t['dti'])}% of one month of income."


def _next_step_line(m: Metrics, raw: RawInputs | None, t: dict[str, float]) -> str:
    """Line 3: a concrete numeric goal for the coming weeks."""
    if not _has_income(m, raw):
        return f"Log your first {_dollars(100)} of income this month, then check back."

    income = raw.monthly_income if raw is not None else 0.0
    spending = raw.monthly_spending if raw is not None else 0.0
    target_rate = t["invest_rate"]

    if m.invest_rate < target_rate:
        if income > 0:
            monthly_gap = (target_rate - m.invest_rate) * income
            weekly = math.ceil(monthly_gap / _WEEKS_PER_MONTH)
            return (
                f"Set up an automatic transfer of {_dollars(weekly)} each week "
                f"to reach {_pct(target_rate)}% invested."
            )
        bump = max(1, _pct(target_rate - m.invest_rate))
        return f"Raise investing by {bump}% of income to reach {_pct(target_rate)}%."

    cushion_goal = 2 * t["runway_months"]
    if m.runway_months < cushion_goal:
        if spending > 0:
            weekly = math.ceil(spending / 12)
            return (
                f"Move {_dollars(weekly)} into savings each week to add 1 month "
                f"of cushion in 12 weeks."
            )
        return f"Save a little each week until savings cover {_months(cushion_goal)} months."

    current = _pct(m.invest_rate)
    return f"Raise investing from {current} to {current + 1}% of your income next month."


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_headline(state: PetState, health: int) -> str:
    return sanitize_line(HEADLINES[state].format(pet=PET_NAME, h=health))


def compute_local_fallback(
    metrics: Metrics,
    raw: RawInputs | None = None,
    rules: Ruleset | None = None,
) -> LocalAdvice:
    """Produce state, health, headline and three advice lines locally."""
    ruleset = rules or get_default_ruleset()
    targets = {**DEFAULT_TARGETS, **ruleset.targets}

    state = pick_state(metrics, ruleset)
    health = compute_health(metrics, ruleset)

    advice = [
        sanitize_line(_praise_line(metrics, raw, targets)),
        sanitize_line(_fix_line(metrics, raw, targets)),
        sanitize_line(_next_step_line(metrics, raw, targets)),
    ]
    return LocalAdvice(
        state=state,
        health=health,
        headline=build_headline(state, health),
        advice=advice,
    )
