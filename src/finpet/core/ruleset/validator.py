"""Rule set validator: ensures rule set definitions are well-formed."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from finpet.core.ruleset.loader import load_ruleset_file
from finpet.core.ruleset.models import OPERATORS, Ruleset

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ["id", "version", "display_name"]


def validate_ruleset(
    ruleset: Ruleset,
    *,
    metrics: Iterable[str],
    states: Iterable[str],
) -> list[str]:
    """Check a parsed rule set against the domain vocabulary.

    Returns a list of human-readable errors (empty when valid).
    """
    known_metrics = set(metrics)
    known_states = set(states)
    errors: list[str] = []

    for field_name in REQUIRED_FIELDS:
        if not getattr(ruleset, field_name, None):
            errors.append(f"{ruleset.id}: Missing or empty required field '{field_name}'")

    if ruleset.version and not all(c.isdigit() or c == "." for c in ruleset.version):
        errors.append(
            f"{ruleset.id}: Version '{ruleset.version}' doesn't look like a version number"
        )

    # Classifier cascade
    if not ruleset.classifier.tiers:
        errors.append(f"{ruleset.id}: Classifier defines no tiers")
    if ruleset.classifier.default_state not in known_states:
        errors.append(
            f"{ruleset.id}: Unknown default_state '{ruleset.classifier.default_state}'"
        )
    seen_states: set[str] = set()
    for index, tier in enumerate(ruleset.classifier.tiers):
        where = f"{ruleset.id}: tier {index} ({tier.state})"
        if tier.state not in known_states:
            errors.append(f"{where}: Unknown state '{tier.state}'")
        if tier.state in seen_states:
            errors.append(f"{where}: State listed more than once")
        seen_states.add(tier.state)
        if tier.match not in ("any", "all"):
            errors.append(f"{where}: match must be 'any' or 'all', got '{tier.match}'")
        if not tier.conditions:
            errors.append(f"{where}: Tier has no conditions")
        for cond in tier.conditions:
            if cond.metric not in known_metrics:
                errors.append(f"{where}: Unknown metric '{cond.metric}'")
            if cond.op not in OPERATORS:
                errors.append(f"{where}: Unknown operator '{cond.op}'")

    # Health table
    health = ruleset.health
    if health.minimum >= health.maximum:
        errors.append(f"{ruleset.id}: Health minimum must be below maximum")
    if not health.minimum <= health.baseline <= health.maximum:
        errors.append(f"{ruleset.id}: Health baseline outside [minimum, maximum]")
    seen_metrics: set[str] = set()
    for dim in health.dimensions:
        where = f"{ruleset.id}: health dimension '{dim.metric}'"
        if dim.metric not in known_metrics:
            errors.append(f"{where}: Unknown metric")
        if dim.metric in seen_metrics:
            errors.append(f"{where}: Dimension listed more than once")
        seen_metrics.add(dim.metric)
        if not dim.buckets:
            errors.append(f"{where}: No buckets defined")
        for bucket in (*dim.buckets, *dim.extras):
            if bucket.op not in OPERATORS:
                errors.append(f"{where}: Unknown operator '{bucket.op}'")

    for metric in ruleset.targets:
        if metric not in known_metrics:
            errors.append(f"{ruleset.id}: Unknown target metric '{metric}'")

    return errors


def validate_ruleset_directory(
    directory: str | Path,
    *,
    metrics: Iterable[str],
    states: Iterable[str],
) -> tuple[int, list[str]]:
    """Validate all rule set YAML files in a directory (recursively).

    Returns: (ruleset_count, errors)
    """
    directory = Path(directory)
    if not directory.is_dir():
        return 0, [f"Rule set directory not found: {directory}"]

    yaml_files = sorted(p for p in directory.rglob("*.yaml") if not p.name.startswith("_"))
    if not yaml_files:
        return 0, [f"No rule set YAML files found in {directory}"]

    metrics = list(metrics)
    states = list(states)
    errors: list[str] = []
    seen_ids: dict[str, Path] = {}
    loaded = 0

    for path in yaml_files:
        try:
            ruleset = load_ruleset_file(path)
        except Exception as exc:
            errors.append(f"{path.name}: Failed to load: {exc}")
            continue

        file_errors = validate_ruleset(ruleset, metrics=metrics, states=states)
        if not (path.name == f"{ruleset.id}.yaml" or path.name.startswith(f"{ruleset.id}.")):
            file_errors.append(
                f"{path.name}: Filename should match rule set id '{ruleset.id}'"
            )
        if file_errors:
            errors.extend(file_errors)
            continue

        loaded += 1
        if ruleset.id in seen_ids:
            errors.append(
                f"{path.name}: Duplicate ID '{ruleset.id}', already defined in "
                f"{seen_ids[ruleset.id].name}"
            )
        else:
            seen_ids[ruleset.id] = path

    for err in errors:
        logger.error("%s", err)
    return loaded, errors
