"""Rule set loader: reads YAML definitions from disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from finpet.core.ruleset.models import (
    Bucket,
    ClassifierRules,
    Condition,
    DimensionRule,
    HealthRules,
    Ruleset,
    RulesetError,
    TierRule,
)
from finpet.core.ruleset.registry import RulesetRegistry

logger = logging.getLogger(__name__)


def load_ruleset_directory(directory: str | Path, registry: RulesetRegistry) -> int:
    """Load all YAML rule set definitions from a directory (recursively).

    Returns the number of rule sets loaded.
    Skips files starting with underscore.
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning("Rule set directory does not exist: %s", directory)
        return 0

    count = 0
    for path in sorted(directory.rglob("*.yaml")):
        if path.name.startswith("_"):
            continue
        try:
            ruleset = load_ruleset_file(path)
            registry.register(ruleset)
            count += 1
            logger.info("Loaded rule set: %s (v%s)", ruleset.id, ruleset.version)
        except Exception:
            logger.exception("Failed to load rule set from %s", path)
    return count


def load_ruleset_file(path: Path) -> Ruleset:
    """Parse a YAML file into a Ruleset instance."""
    with open(path) as f:
        data: dict[str, Any] = yaml.safe_load(f)
    return parse_ruleset(data)


def parse_ruleset(data: dict[str, Any]) -> Ruleset:
    """Build a Ruleset from an already-decoded mapping."""
    if not isinstance(data, dict):
        raise RulesetError("Rule set document must be a mapping")

    try:
        classifier_data = data["classifier"]
        health_data = data["health"]
        return Ruleset(
            id=data["id"],
            version=str(data["version"]),
            domain=data.get("domain", ""),
            display_name=data.get("display_name", data["id"]),
            description=str(data.get("description", "")).strip(),
            classifier=ClassifierRules(
                tiers=tuple(_parse_tier(t) for t in classifier_data.get("tiers", [])),
                default_state=classifier_data["default_state"],
            ),
            health=HealthRules(
                baseline=float(health_data.get("baseline", 50)),
                minimum=float(health_data.get("minimum", 0)),
                maximum=float(health_data.get("maximum", 100)),
                dimensions=tuple(
                    _parse_dimension(d) for d in health_data.get("dimensions", [])
                ),
            ),
            targets={k: float(v) for k, v in (data.get("targets") or {}).items()},
            tags=tuple(data.get("tags", [])),
        )
    except KeyError as exc:
        raise RulesetError(f"Rule set is missing required key {exc.args[0]!r}") from exc
    except (TypeError, ValueError) as exc:
        raise RulesetError(f"Rule set has an invalid value: {exc}") from exc


def _parse_tier(data: dict[str, Any]) -> TierRule:
    return TierRule(
        state=data["state"],
        match=data.get("match", "any"),
        conditions=tuple(
            Condition(metric=c["metric"], op=c["op"], threshold=_threshold(c["threshold"]))
            for c in data.get("conditions", [])
        ),
    )


def _parse_dimension(data: dict[str, Any]) -> DimensionRule:
    return DimensionRule(
        metric=data["metric"],
        buckets=tuple(_parse_bucket(b) for b in data.get("buckets", [])),
        otherwise=float(data.get("otherwise", 0)),
        extras=tuple(_parse_bucket(b) for b in data.get("extras", [])),
    )


def _parse_bucket(data: dict[str, Any]) -> Bucket:
    return Bucket(op=data["op"], threshold=_threshold(data["threshold"]), points=float(data["points"]))


def _threshold(value: Any) -> float:
    # YAML has no literal for infinity that survives every loader; accept "inf".
    if isinstance(value, str) and value.strip().lower() in ("inf", "+inf", "infinity"):
        return float("inf")
    return float(value)
