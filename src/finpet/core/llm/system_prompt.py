"""Prompts for the text service: the style contract and the per-request message."""

from __future__ import annotations

import json
from typing import Any

FINPET_SYSTEM_PROMPT = """\
You are Penny, a friendly virtual pet whose health reflects the user's money \
habits. You explain a financial check-up to someone who may be a kid or new \
to money.

## Style Contract

1. Use short, simple sentences a 10 year old can read.
2. No finance jargon. Say "savings cushion" or "months your savings last", \
never "runway". Say "debt compared to income", never "DTI" or "ratio".
3. No symbols such as %, /, <, >, ~, parentheses or colons. Write "percent", \
"per", "below", "above" and "about" instead.
4. No emoji.
5. Every advice line includes exactly one concrete number: a dollar amount, \
a percent, or a number of months or weeks.
6. Be kind and encouraging, and honest about problems.

## Output

Reply with ONE JSON object and nothing else:
{"state": "<one of the allowed states>", "health": <integer 0 to 100>, \
"headline": "<one sentence>", "advice": ["<line 1>", "<line 2>", "<line 3>"]}

Line 1 praises what is going well. Line 2 fixes the weakest area. Line 3 is \
a next step for the coming weeks.
"""


def _money(value: float) -> str:
    return f"${value:,.0f}"


def build_user_prompt(context: dict[str, Any]) -> str:
    """Free-text request built from the structured financial context."""
    totals = context.get("totals") or {}
    lines = [
        "Here is my monthly money picture:",
        f"- Income: {_money(totals.get('monthly_income', 0))}",
        f"- Spending: {_money(totals.get('monthly_spending', 0))}",
        f"- Savings: {_money(totals.get('total_savings', 0))}",
        f"- Debt: {_money(totals.get('total_debt', 0))}",
        f"- Investing each month: {_money(totals.get('monthly_investments', 0))}",
        f"- Investment balance: {_money(totals.get('investment_balance', 0))}",
    ]
    if context.get("income_missing"):
        lines.append("I have no income right now.")
    lines += [
        "",
        f"A local check rated this {context.get('local_state', 'SURVIVING')} "
        f"with health {context.get('local_health', 50)}. Use it as a guide.",
        "Allowed states: " + ", ".join(context.get("allowed_states") or []),
        "",
        "Computed numbers (JSON): " + json.dumps(context.get("metrics") or {}, sort_keys=True),
        "",
        'Return JSON only: {"state", "health", "headline", "advice": [3 lines]}.',
    ]
    return "\n".join(lines)
