"""State classification: metrics -> one of seven ordered tiers.

Tiers are evaluated in the order the rule set lists them and the first match
wins. Disqualifier tiers use ``any`` (one bad ratio is enough); the top tiers
use ``all``. When nothing matches, the rule set's default tier applies, so
every metrics tuple maps to exactly one state.
"""

from __future__ import annotations

from finpet.core.ruleset.models import ClassifierRules, Ruleset
from finpet.domains.finance.domain_logic.models import Metrics, PetState, coerce_state
from finpet.domains.finance.domain_logic.rulesets import get_default_ruleset


def _classifier_rules(rules: Ruleset | ClassifierRules | None) -> ClassifierRules:
    if rules is None:
        return get_default_ruleset().classifier
    if isinstance(rules, Ruleset):
        return rules.classifier
    return rules


def matching_tier(metrics: Metrics, rules: Ruleset | ClassifierRules | None = None) -> int | None:
    """Index of the first matching tier, or None when the default applies."""
    values = metrics.as_dict()
    for index, tier in enumerate(_classifier_rules(rules).tiers):
        if tier.matches(values):
            return index
    return None


def pick_state(metrics: Metrics, rules: Ruleset | ClassifierRules | None = None) -> PetState:
    """Classify metrics into a PetState using the rule set's tier cascade."""
    classifier = _classifier_rules(rules)
    index = matching_tier(metrics, classifier)
    if index is None:
        return coerce_state(classifier.default_state)
    return coerce_state(classifier.tiers[index].state)
