"""Rule set registry: in-memory index for loaded rule sets."""

from __future__ import annotations

import logging

from finpet.core.ruleset.models import Ruleset

logger = logging.getLogger(__name__)


class RulesetRegistry:
    """In-memory registry of all loaded rule set definitions."""

    def __init__(self) -> None:
        self._rulesets: dict[str, Ruleset] = {}
        self._by_tag: dict[str, list[str]] = {}

    def register(self, ruleset: Ruleset) -> None:
        """Add a rule set to all indexes."""
        if ruleset.id in self._rulesets:
            raise ValueError(f"Duplicate rule set id registered: {ruleset.id!r}")
        self._rulesets[ruleset.id] = ruleset

        for tag in ruleset.tags:
            ids = self._by_tag.setdefault(tag, [])
            if ruleset.id not in ids:
                ids.append(ruleset.id)

    def get(self, ruleset_id: str) -> Ruleset | None:
        """Look up a rule set by ID."""
        return self._rulesets.get(ruleset_id)

    def require(self, ruleset_id: str) -> Ruleset:
        """Look up a rule set by ID, raising if it is not registered."""
        ruleset = self._rulesets.get(ruleset_id)
        if ruleset is None:
            known = ", ".join(sorted(self._rulesets)) or "none"
            raise KeyError(f"Unknown rule set {ruleset_id!r} (registered: {known})")
        return ruleset

    def find_by_tag(self, tag: str) -> list[Ruleset]:
        """Find rule sets with a given tag."""
        ids = self._by_tag.get(tag, [])
        return [self._rulesets[rid] for rid in ids]

    def all(self) -> list[Ruleset]:
        """Return all registered rule sets."""
        return list(self._rulesets.values())
