"""Shared test fixtures for FinPet tests."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    monkeypatch.setenv("GEMINI_API_KEY", "")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("RULESET_ID", "finpet.v1")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from finpet.core.llm.providers.mock import MockProvider  # noqa: E402
from finpet.domains.finance.domain_logic.rulesets import get_ruleset  # noqa: E402


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

# The reference household: 60% spending, 3.3 months of savings, 10% invested.
SCENARIO_INPUTS: dict[str, Any] = {
    "monthly_income": 5000,
    "monthly_spending": 3000,
    "total_savings": 10000,
    "total_debt": 2000,
    "monthly_investments": 500,
    "investment_balance": 15000,
}


@pytest.fixture
def scenario_inputs() -> dict[str, Any]:
    return dict(SCENARIO_INPUTS)


@pytest.fixture
def ruleset_v1():
    return get_ruleset("finpet.v1")


@pytest.fixture
def ruleset_v2():
    return get_ruleset("finpet.v2")


# ---------------------------------------------------------------------------
# Text service payloads
# ---------------------------------------------------------------------------

def make_candidate_payload(text: str) -> dict[str, Any]:
    """Wrap text in the candidates[].content.parts[].text document shape."""
    return {
        "candidates": [
            {"content": {"parts": [{"text": text}], "role": "model"}, "finishReason": "STOP"}
        ],
        "usageMetadata": {"promptTokenCount": 120, "candidatesTokenCount": 80},
    }


def make_normalized_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "state": "THRIVING",
        "health": 82,
        "headline": "Penny is doing great with 82 points.",
        "advice": [
            "You spend 60 percent of your income.",
            "Keep 3 months of spending in savings.",
            "Invest $20 more each week.",
        ],
    }
    payload.update(overrides)
    return payload


LEGACY_JSON = {
    "state": "HEALTHY",
    "health": 88,
    "headline": "Penny is healthy: 88 points!",
    "advice": [
        "Great: you spend 60% of income.",
        "Fix: keep $9,000 saved (3 months).",
        "Goal: invest $116/wk.",
    ],
}


@pytest.fixture
def legacy_payload() -> dict[str, Any]:
    text = "Here you go!\n```json\n" + json.dumps(LEGACY_JSON) + "\n```"
    return make_candidate_payload(text)


@pytest.fixture
def mock_provider() -> MockProvider:
    """A mock provider with the default (empty, unparseable) payload."""
    return MockProvider()


@pytest.fixture
def make_candidate():
    return make_candidate_payload


@pytest.fixture
def make_normalized():
    return make_normalized_payload
