"""Financial health models and domain constants."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

METRIC_NAMES = ["budget_ratio", "runway_months", "invest_rate", "dti"]

# Runway reported when there is savings but no spending to divide by.
RUNWAY_SENTINEL = 99.999

PET_NAME = "Penny"

BULLET = "• "

EMPTY_MESSAGE_PLACEHOLDER = f"{PET_NAME} is thinking. Try again soon."


class PetState(str, Enum):
    """Severity tiers, declared worst to best."""

    FLATLINED = "FLATLINED"
    CRITICAL = "CRITICAL"
    STRUGGLING = "STRUGGLING"
    SURVIVING = "SURVIVING"
    HEALTHY = "HEALTHY"
    THRIVING = "THRIVING"
    LEGENDARY = "LEGENDARY"

    @property
    def rank(self) -> int:
        """0 for the worst tier, 6 for the best."""
        return _STATE_ORDER.index(self)


_STATE_ORDER = list(PetState)

# Names used by other rule set versions for the same tiers.
STATE_ALIASES: dict[str, PetState] = {
    "ATROCIOUS": PetState.FLATLINED,
    "FANTASTIC": PetState.LEGENDARY,
}

DEFAULT_STATE = PetState.SURVIVING

# Every name a rule set or text service may use for a tier.
STATE_NAMES = [s.value for s in PetState] + list(STATE_ALIASES)


def parse_state(value: Any) -> PetState | None:
    """Map a state name (any case, aliases allowed) to a PetState, or None."""
    if isinstance(value, PetState):
        return value
    if not isinstance(value, str):
        return None
    key = value.strip().upper()
    if key in STATE_ALIASES:
        return STATE_ALIASES[key]
    try:
        return PetState(key)
    except ValueError:
        return None


def coerce_state(value: Any, default: PetState = DEFAULT_STATE) -> PetState:
    """Like parse_state, but unknown values collapse to the safe mid tier."""
    state = parse_state(value)
    return state if state is not None else default


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RawInputs:
    """The six user-supplied figures, already coerced to non-negative floats."""

    monthly_income: float = 0.0
    monthly_spending: float = 0.0
    total_savings: float = 0.0
    total_debt: float = 0.0
    monthly_investments: float = 0.0
    investment_balance: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class Metrics:
    """Dimensionless ratios derived from RawInputs.

    ``budget_ratio`` and ``dti`` are ``inf`` when income is zero.
    """

    budget_ratio: float
    runway_months: float
    invest_rate: float
    dti: float

    def as_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in METRIC_NAMES}

    def as_json_dict(self) -> dict[str, float | None]:
        """Ratios with infinities rendered as None (JSON has no infinity)."""
        return {
            name: (round(value, 4) if math.isfinite(value) else None)
            for name, value in self.as_dict().items()
        }


@dataclass(frozen=True)
class LocalAdvice:
    """Output of the local deterministic advice generator."""

    state: PetState
    health: int
    headline: str
    advice: list[str]


@dataclass
class AnalysisResult:
    """The externally visible analysis, consumed by the UI layer."""

    state: PetState
    health: int
    headline: str
    advice: list[str] = field(default_factory=list)
    message: str = ""
    source: str = "local"  # 'normalized' | 'legacy' | 'local'

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "health": self.health,
            "headline": self.headline,
            "advice": list(self.advice),
            "message": self.message,
            "source": self.source,
        }


@dataclass(frozen=True)
class FinancialContext:
    """Structured numeric context sent alongside the prompt."""

    raw: RawInputs
    metrics: Metrics
    state: PetState
    health: int
    ruleset_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "totals": self.raw.as_dict(),
            "metrics": self.metrics.as_json_dict(),
            "income_missing": self.raw.monthly_income <= 0,
            "local_state": self.state.value,
            "local_health": self.health,
            "allowed_states": [s.value for s in PetState],
            "ruleset_id": self.ruleset_id,
        }
