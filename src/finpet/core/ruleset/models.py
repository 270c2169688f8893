"""Data models for versioned scoring rule sets.

A rule set bundles two independently tunable tables:

* ``ClassifierRules``: an ordered cascade of tiers that maps metrics to a
  state label (first matching tier wins).
* ``HealthRules``: per-dimension step functions summed onto a baseline.

The models are domain-agnostic: metric and state names are plain strings and
are checked against the domain's vocabulary by ``validator.validate_ruleset``.
"""

from __future__ import annotations

import math
import operator
from dataclasses import dataclass, field
from typing import Any, Callable, Literal

ComparisonOp = Literal["<", "<=", ">", ">="]

OPERATORS: dict[str, Callable[[float, float], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class RulesetError(ValueError):
    """Raised when a rule set definition is malformed."""


def compare(value: float, op: str, threshold: float) -> bool:
    """Evaluate ``value <op> threshold``. NaN never matches."""
    if isinstance(value, float) and math.isnan(value):
        return False
    try:
        fn = OPERATORS[op]
    except KeyError:
        raise RulesetError(f"Unknown comparison operator: {op!r}") from None
    return fn(value, threshold)


@dataclass(frozen=True)
class Condition:
    """A single ``metric <op> threshold`` predicate."""

    metric: str
    op: ComparisonOp
    threshold: float

    def matches(self, values: dict[str, float]) -> bool:
        return compare(values[self.metric], self.op, self.threshold)


@dataclass(frozen=True)
class TierRule:
    """One tier of the classifier cascade."""

    state: str
    match: Literal["any", "all"]
    conditions: tuple[Condition, ...]

    def matches(self, values: dict[str, float]) -> bool:
        if not self.conditions:
            return False
        if self.match == "all":
            return all(c.matches(values) for c in self.conditions)
        return any(c.matches(values) for c in self.conditions)


@dataclass(frozen=True)
class ClassifierRules:
    """Ordered tier cascade plus the state used when nothing matches."""

    tiers: tuple[TierRule, ...]
    default_state: str


@dataclass(frozen=True)
class Bucket:
    """A step in a health dimension: ``metric <op> threshold`` gives points."""

    op: ComparisonOp
    threshold: float
    points: float


@dataclass(frozen=True)
class DimensionRule:
    """Step function for one metric.

    Exactly one of ``buckets`` (first match) or ``otherwise`` applies; every
    matching entry in ``extras`` is added on top.
    """

    metric: str
    buckets: tuple[Bucket, ...]
    otherwise: float = 0.0
    extras: tuple[Bucket, ...] = ()

    def points_for(self, value: float) -> float:
        points = self.otherwise
        for bucket in self.buckets:
            if compare(value, bucket.op, bucket.threshold):
                points = bucket.points
                break
        for extra in self.extras:
            if compare(value, extra.op, extra.threshold):
                points += extra.points
        return points


@dataclass(frozen=True)
class HealthRules:
    """Additive score table: baseline + one adjustment per dimension."""

    baseline: float
    dimensions: tuple[DimensionRule, ...]
    minimum: float = 0.0
    maximum: float = 100.0


@dataclass(frozen=True)
class Ruleset:
    """A complete, versioned parameter set for the scoring engine."""

    id: str
    version: str
    domain: str
    display_name: str
    description: str
    classifier: ClassifierRules
    health: HealthRules
    targets: dict[str, float] = field(default_factory=dict)
    tags: tuple[str, ...] = ()

    def summary(self) -> dict[str, Any]:
        """Compact description used by discovery resources."""
        return {
            "id": self.id,
            "version": self.version,
            "display_name": self.display_name,
            "description": self.description,
            "states": [t.state for t in self.classifier.tiers],
            "default_state": self.classifier.default_state,
            "baseline": self.health.baseline,
            "dimensions": [d.metric for d in self.health.dimensions],
            "tags": list(self.tags),
        }
