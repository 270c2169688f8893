"""Daily progress tracking as an immutable value object.

Transitions are pure functions returning a new ``Progress``; persistence is
the caller's concern (``to_dict`` / ``from_dict``).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from datetime import date
from typing import Any

from finpet.domains.finance.domain_logic.metrics import coerce_amount

ACTIONS = ("deposit", "withdrawal")


@dataclass(frozen=True)
class Progress:
    day: str = ""
    deposits_today: float = 0.0
    withdrawals_today: float = 0.0
    actions_today: int = 0
    last_action: str | None = None
    last_amount: float = 0.0

    @property
    def net_today(self) -> float:
        return self.deposits_today - self.withdrawals_today

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["net_today"] = self.net_today
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Progress:
        data = data or {}
        last_action = data.get("last_action")
        if last_action not in ACTIONS:
            last_action = None
        try:
            actions = max(0, int(data.get("actions_today") or 0))
        except (TypeError, ValueError):
            actions = 0
        return cls(
            day=str(data.get("day") or ""),
            deposits_today=coerce_amount(data.get("deposits_today")),
            withdrawals_today=coerce_amount(data.get("withdrawals_today")),
            actions_today=actions,
            last_action=last_action,
            last_amount=coerce_amount(data.get("last_amount")),
        )


def _today(today: date | str | None) -> str:
    if today is None:
        return date.today().isoformat()
    if isinstance(today, date):
        return today.isoformat()
    return str(today)


def roll_day(progress: Progress, today: date | str | None = None) -> Progress:
    """Reset the daily counters when ``today`` differs from the tracked day."""
    day = _today(today)
    if progress.day == day:
        return progress
    return Progress(day=day)


def apply_deposit(progress: Progress, amount: Any, today: date | str | None = None) -> Progress:
    current = roll_day(progress, today)
    value = coerce_amount(amount)
    return replace(
        current,
        deposits_today=current.deposits_today + value,
        actions_today=current.actions_today + 1,
        last_action="deposit",
        last_amount=value,
    )


def apply_withdrawal(progress: Progress, amount: Any, today: date | str | None = None) -> Progress:
    current = roll_day(progress, today)
    value = coerce_amount(amount)
    return replace(
        current,
        withdrawals_today=current.withdrawals_today + value,
        actions_today=current.actions_today + 1,
        last_action="withdrawal",
        last_amount=value,
    )
