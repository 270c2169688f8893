"""Access to the bundled finance rule sets."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from finpet.core.ruleset.loader import load_ruleset_directory
from finpet.core.ruleset.models import Ruleset, RulesetError
from finpet.core.ruleset.registry import RulesetRegistry
from finpet.core.ruleset.validator import validate_ruleset
from finpet.domains.finance.domain_logic.models import METRIC_NAMES, STATE_NAMES

logger = logging.getLogger(__name__)

# Rule set YAML definitions live under src/finpet/domains/finance/rulesets/
RULESET_DIR = Path(__file__).resolve().parent.parent / "rulesets"

DEFAULT_RULESET_ID = "finpet.v1"


def load_finance_rulesets(
    registry: RulesetRegistry, directory: str | Path = RULESET_DIR
) -> int:
    """Load and validate every finance rule set into ``registry``.

    Rule sets that fail validation are logged and left out.
    """
    staging = RulesetRegistry()
    load_ruleset_directory(directory, staging)

    count = 0
    for ruleset in staging.all():
        errors = validate_ruleset(ruleset, metrics=METRIC_NAMES, states=STATE_NAMES)
        if errors:
            for err in errors:
                logger.error("%s", err)
            continue
        registry.register(ruleset)
        count += 1
    return count


@lru_cache(maxsize=1)
def get_finance_registry() -> RulesetRegistry:
    """Registry holding the bundled rule sets (loaded once per process)."""
    registry = RulesetRegistry()
    count = load_finance_rulesets(registry)
    logger.info("Loaded %d finance rule sets from %s", count, RULESET_DIR)
    return registry


def get_ruleset(ruleset_id: str = DEFAULT_RULESET_ID) -> Ruleset:
    """Return a bundled rule set by id."""
    try:
        return get_finance_registry().require(ruleset_id)
    except KeyError as exc:
        raise RulesetError(str(exc.args[0])) from None


def get_default_ruleset() -> Ruleset:
    return get_ruleset(DEFAULT_RULESET_ID)
