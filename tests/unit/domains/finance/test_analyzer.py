"""Unit tests for the response orchestrator and its fallback chain."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from finpet.core.llm.client import TextCompletionClient
from finpet.core.llm.providers.gemini import GeminiProvider
from finpet.core.llm.providers.mock import MockProvider
from finpet.domains.finance.analyzer import (
    AnalysisTimeoutError,
    FinancialHealthAnalyzer,
    analyze_with_deadline,
    clamp_health,
    compose_message,
)
from finpet.domains.finance.domain_logic.models import (
    BULLET,
    EMPTY_MESSAGE_PLACEHOLDER,
    PetState,
)

FORBIDDEN = set("%/():<>~")


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _analyzer(provider=None, timeout_s: float = 5.0, ruleset=None) -> FinancialHealthAnalyzer:
    client = TextCompletionClient(provider, timeout_s=timeout_s) if provider is not None else None
    return FinancialHealthAnalyzer(client=client, ruleset=ruleset)


def _assert_complete(result) -> None:
    assert result.message
    assert result.headline
    assert len(result.advice) == 3
    assert 0 <= result.health <= 100
    for line in [result.headline, *result.advice]:
        assert not FORBIDDEN & set(line), line


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    @pytest.mark.parametrize(
        "value, expected",
        [(82, 82), (150, 100), (-5, 0), (72.5, 73), ("64", 64), ("high", 50),
         (None, 50), (float("nan"), 50), (True, 50)],
    )
    def test_clamp_health(self, value, expected):
        assert clamp_health(value) == expected

    def test_compose_message(self):
        msg = compose_message("Penny is fine.", ["Save $5.", "Invest $10."])
        assert msg == f"Penny is fine.\n{BULLET}Save $5.\n{BULLET}Invest $10."

    def test_compose_message_placeholder(self):
        assert compose_message("", []) == EMPTY_MESSAGE_PLACEHOLDER


# ---------------------------------------------------------------------------
# Local tier
# ---------------------------------------------------------------------------

class TestLocalOnly:
    def test_no_client_answers_locally(self, scenario_inputs):
        result = _run(_analyzer().analyze(scenario_inputs))
        assert result.source == "local"
        assert result.state == PetState.HEALTHY
        assert result.health == 90
        assert result.message.startswith(result.headline)
        assert result.message.count(BULLET) == 3
        _assert_complete(result)

    def test_no_income(self, scenario_inputs):
        result = _run(_analyzer().analyze({**scenario_inputs, "monthly_income": 0}))
        assert result.state == PetState.FLATLINED
        assert result.health <= 25

    def test_analyze_locally_matches(self, scenario_inputs):
        analyzer = _analyzer()
        assert analyzer.analyze_locally(scenario_inputs) == _run(analyzer.analyze(scenario_inputs))

    def test_to_dict(self, scenario_inputs):
        data = _run(_analyzer().analyze(scenario_inputs)).to_dict()
        assert data["state"] == "HEALTHY"
        assert data["source"] == "local"
        assert set(data) == {"state", "health", "headline", "advice", "message", "source"}


# ---------------------------------------------------------------------------
# Normalized tier
# ---------------------------------------------------------------------------

class TestNormalized:
    def test_accepted(self, scenario_inputs, make_normalized):
        result = _run(_analyzer(MockProvider(make_normalized())).analyze(scenario_inputs))
        assert result.source == "normalized"
        assert result.state == PetState.THRIVING
        assert result.health == 82
        assert result.headline == "Penny is doing great with 82 points."
        _assert_complete(result)

    def test_alias_state(self, scenario_inputs, make_normalized):
        provider = MockProvider(make_normalized(state="fantastic"))
        result = _run(_analyzer(provider).analyze(scenario_inputs))
        assert result.state == PetState.LEGENDARY

    @pytest.mark.parametrize("health, expected", [(150, 100), (-5, 0), (64.5, 65)])
    def test_health_clamped(self, scenario_inputs, make_normalized, health, expected):
        provider = MockProvider(make_normalized(health=health))
        assert _run(_analyzer(provider).analyze(scenario_inputs)).health == expected

    def test_short_advice_topped_up_from_local(self, scenario_inputs, make_normalized):
        provider = MockProvider(make_normalized(advice=["Invest $20 more each week."]))
        result = _run(_analyzer(provider).analyze(scenario_inputs))
        assert len(result.advice) == 3
        assert result.advice[0] == "Invest $20 more each week."
        local = _analyzer().analyze_locally(scenario_inputs)
        assert result.advice[1:] == local.advice[:2]

    def test_duplicate_advice_removed(self, scenario_inputs, make_normalized):
        provider = MockProvider(make_normalized(advice=["Save $5.", "save $5.", "SAVE $5"]))
        result = _run(_analyzer(provider).analyze(scenario_inputs))
        assert len(result.advice) == 3
        assert [a.lower() for a in result.advice].count("save $5.") == 1

    def test_advice_is_sanitized(self, scenario_inputs, make_normalized):
        provider = MockProvider(make_normalized(advice=[
            "🎉 Tip: keep DTI < 40%!",
            "Runway: 3 months (nice)",
            "Invest $116/wk",
        ]))
        result = _run(_analyzer(provider).analyze(scenario_inputs))
        assert result.advice[0] == "Keep debt compared to income below 40 percent!"
        assert result.advice[2] == "Invest $116 per week."
        _assert_complete(result)

    def test_message_only_keeps_service_text(self, scenario_inputs, make_normalized):
        provider = MockProvider(make_normalized(
            headline="", advice=[], health=77, state="HEALTHY",
            message="Your spending is low and savings are strong.",
        ))
        result = _run(_analyzer(provider).analyze(scenario_inputs))
        assert result.source == "normalized"
        assert result.headline == "Your spending is low and savings are strong."
        assert result.message.startswith("Your spending is low and savings are strong.")
        assert len(result.advice) == 3

    def test_message_lines_become_advice(self, scenario_inputs, make_normalized):
        provider = MockProvider(make_normalized(
            headline="", advice=[],
            message="Penny is happy.\n• Save $50 each week.\n\n• Invest $20 more each week.",
        ))
        result = _run(_analyzer(provider).analyze(scenario_inputs))
        assert result.headline == "Penny is happy."
        assert result.advice[:2] == ["Save $50 each week.", "Invest $20 more each week."]
        local = _analyzer().analyze_locally(scenario_inputs)
        assert result.advice[2] == local.advice[0]

    def test_blank_message_headline_is_rebuilt(self, scenario_inputs, make_normalized):
        provider = MockProvider(make_normalized(headline="", message="🎉🎉"))
        result = _run(_analyzer(provider).analyze(scenario_inputs))
        assert result.source == "normalized"
        assert "82 points" in result.headline

    def test_long_lines_are_shortened(self, scenario_inputs, make_normalized):
        provider = MockProvider(make_normalized(headline="Penny says " + "very " * 60 + "good."))
        result = _run(_analyzer(provider).analyze(scenario_inputs))
        assert len(result.headline) <= 120
        assert result.headline.endswith(".")

    def test_context_is_sent(self, scenario_inputs, make_normalized):
        provider = MockProvider(make_normalized())
        _run(_analyzer(provider).analyze(scenario_inputs))
        assert provider.call_count == 1
        assert provider.last_context["local_state"] == "HEALTHY"
        assert provider.last_context["local_health"] == 90
        assert provider.last_context["ruleset_id"] == "finpet.v1"
        assert "Income: $5,000" in provider.last_user_message


# ---------------------------------------------------------------------------
# Legacy tier
# ---------------------------------------------------------------------------

class TestLegacy:
    def test_candidate_document(self, scenario_inputs, legacy_payload):
        result = _run(_analyzer(MockProvider(legacy_payload)).analyze(scenario_inputs))
        assert result.source == "legacy"
        assert result.state == PetState.HEALTHY
        assert result.health == 88
        assert result.headline == "Penny is healthy 88 points!"
        assert result.advice == [
            "You spend 60 percent of income.",
            "Keep $9,000 saved 3 months.",
            "Invest $116 per week.",
        ]

    def test_unknown_state_becomes_surviving(self, scenario_inputs, make_candidate):
        text = '{"state": "AMAZING", "health": 70, "headline": "Nice work."}'
        result = _run(_analyzer(MockProvider(make_candidate(text))).analyze(scenario_inputs))
        assert result.source == "legacy"
        assert result.state == PetState.SURVIVING
        assert result.health == 70
        _assert_complete(result)

    def test_chat_text_payload(self, scenario_inputs):
        provider = MockProvider('Sure! {"state": "HEALTHY", "health": 77, "advice": ["Save $10."]}')
        result = _run(_analyzer(provider).analyze(scenario_inputs))
        assert result.source == "legacy"
        assert result.health == 77
        assert "77 points" in result.headline


# ---------------------------------------------------------------------------
# Failure modes
# ---------------------------------------------------------------------------

class TestDegradation:
    def test_unparseable_payload(self, scenario_inputs, mock_provider):
        result = _run(_analyzer(mock_provider).analyze(scenario_inputs))
        assert result.source == "local"
        assert mock_provider.call_count == 1
        _assert_complete(result)

    def test_non_json_text(self, scenario_inputs, make_candidate):
        provider = MockProvider(make_candidate("I cannot help with that."))
        result = _run(_analyzer(provider).analyze(scenario_inputs))
        assert result.source == "local"

    def test_huge_health_object(self, scenario_inputs):
        provider = MockProvider({"state": "HEALTHY", "health": 10**400, "headline": "Hi."})
        result = _run(_analyzer(provider).analyze(scenario_inputs))
        assert result.source == "local"
        _assert_complete(result)

    @pytest.mark.parametrize(
        "text",
        [
            '{"health": ' + "9" * 401 + ', "headline": "Hi."}',
            '{"health": 1' + "0" * 5000 + ', "headline": "Hi."}',
            '{"health": 70, "advice": ' + "[" * 100_000 + "]" * 100_000 + ', "headline": "Hi."}',
        ],
        ids=["float-overflow", "digit-limit", "deep-nesting"],
    )
    def test_hostile_candidate_text(self, scenario_inputs, make_candidate, text):
        provider = MockProvider(make_candidate(text))
        result = _run(_analyzer(provider).analyze(scenario_inputs))
        assert result.source == "local"
        _assert_complete(result)

    def test_parser_crash_degrades(self, scenario_inputs, make_normalized, monkeypatch):
        def _boom(*args, **kwargs):
            raise RuntimeError("parser bug")

        monkeypatch.setattr("finpet.domains.finance.analyzer.parse_completion", _boom)
        result = _run(_analyzer(MockProvider(make_normalized())).analyze(scenario_inputs))
        assert result.source == "local"
        _assert_complete(result)

    def test_transport_error(self, scenario_inputs):
        provider = MockProvider(error=httpx.ConnectError("connection refused"))
        result = _run(_analyzer(provider).analyze(scenario_inputs))
        assert result.source == "local"
        assert result.state == PetState.HEALTHY
        _assert_complete(result)

    def test_http_error_status(self, scenario_inputs):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"error": "overloaded"})

        async def _go():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
                provider = GeminiProvider(api_key="test-key", client=http)
                return await _analyzer(provider).analyze(scenario_inputs)

        result = _run(_go())
        assert result.source == "local"
        _assert_complete(result)

    def test_text_service_timeout(self, scenario_inputs, make_normalized):
        provider = MockProvider(make_normalized(), delay_s=1.0)
        result = _run(_analyzer(provider, timeout_s=0.05).analyze(scenario_inputs))
        assert result.source == "local"
        _assert_complete(result)

    def test_unexpected_provider_error(self, scenario_inputs):
        provider = MockProvider(error=RuntimeError("boom"))
        result = _run(_analyzer(provider).analyze(scenario_inputs))
        assert result.source == "local"


class TestDeadline:
    def test_deadline_exceeded(self, scenario_inputs, make_normalized):
        provider = MockProvider(make_normalized(), delay_s=1.0)
        analyzer = _analyzer(provider, timeout_s=5.0)
        with pytest.raises(AnalysisTimeoutError):
            _run(analyze_with_deadline(analyzer, scenario_inputs, timeout_s=0.05))

    def test_within_deadline(self, scenario_inputs, make_normalized):
        analyzer = _analyzer(MockProvider(make_normalized()))
        result = _run(analyze_with_deadline(analyzer, scenario_inputs, timeout_s=5.0))
        assert result.source == "normalized"


class TestConcurrency:
    def test_concurrent_requests_are_independent(self, scenario_inputs):
        analyzer = _analyzer(MockProvider(delay_s=0.01))

        async def _go():
            return await asyncio.gather(
                analyzer.analyze(scenario_inputs),
                analyzer.analyze({**scenario_inputs, "monthly_income": 0}),
            )

        healthy, flatlined = _run(_go())
        assert healthy.state == PetState.HEALTHY
        assert flatlined.state == PetState.FLATLINED
