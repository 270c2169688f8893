"""Health scoring: metrics -> integer in [0, 100].

Baseline plus one additive adjustment per dimension (budget, runway,
investing, debt), each a step function of its ratio. The table is separate
from the classifier's and may disagree with it near tier boundaries.
"""

from __future__ import annotations

import math

from finpet.core.ruleset.models import HealthRules, Ruleset
from finpet.domains.finance.domain_logic.models import Metrics
from finpet.domains.finance.domain_logic.rulesets import get_default_ruleset


def _health_rules(rules: Ruleset | HealthRules | None) -> HealthRules:
    if rules is None:
        return get_default_ruleset().health
    if isinstance(rules, Ruleset):
        return rules.health
    return rules


def health_adjustments(metrics: Metrics, rules: Ruleset | HealthRules | None = None) -> dict[str, float]:
    """Points contributed by each dimension (before baseline and clamping)."""
    values = metrics.as_dict()
    return {
        dim.metric: dim.points_for(values[dim.metric])
        for dim in _health_rules(rules).dimensions
    }


def compute_health(metrics: Metrics, rules: Ruleset | HealthRules | None = None) -> int:
    """Sum the adjustments onto the baseline, clamp, and round half-up."""
    table = _health_rules(rules)
    score = table.baseline + sum(health_adjustments(metrics, table).values())
    score = max(table.minimum, min(table.maximum, score))
    return int(math.floor(score + 0.5))
