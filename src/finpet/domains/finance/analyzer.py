"""Financial health analysis: local scoring plus optional text-service narrative.

The analyzer always computes state, health and advice locally first. The text
service, when configured, may replace the narrative (and the state/health it
reports), but every failure mode degrades to the local result:

    normalized response -> legacy candidate response -> local advice

``analyze`` never raises. ``analyze_with_deadline`` adds a caller-level
deadline and is the only path that surfaces an error.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Mapping
from typing import Any

from finpet.core.llm.client import TextCompletionClient, TextServiceError
from finpet.core.llm.response import (
    LegacyCandidateResponse,
    NormalizedResponse,
    is_number,
    parse_completion,
)
from finpet.core.llm.system_prompt import FINPET_SYSTEM_PROMPT, build_user_prompt
from finpet.core.ruleset.models import Ruleset
from finpet.domains.finance.domain_logic.fallback import build_headline, compute_local_fallback
from finpet.domains.finance.domain_logic.metrics import coerce_raw_inputs, compute_metrics
from finpet.domains.finance.domain_logic.models import (
    BULLET,
    EMPTY_MESSAGE_PLACEHOLDER,
    STATE_NAMES,
    AnalysisResult,
    FinancialContext,
    LocalAdvice,
    RawInputs,
    coerce_state,
)
from finpet.domains.finance.domain_logic.rulesets import get_default_ruleset
from finpet.domains.finance.domain_logic.sanitizer import sanitize_line, shorten, unique_list

logger = logging.getLogger(__name__)

HEADLINE_MAX_LEN = 120
ADVICE_MAX_LEN = 160
ADVICE_COUNT = 3
DEFAULT_HEALTH = 50


class AnalysisTimeoutError(Exception):
    """The whole analysis missed its caller-level deadline."""


def clamp_health(value: Any) -> int:
    """Clamp to [0, 100] and round half-up; non-numeric values become 50."""
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return DEFAULT_HEALTH
    if not is_number(value):
        return DEFAULT_HEALTH
    return int(math.floor(max(0.0, min(100.0, float(value))) + 0.5))


def compose_message(headline: str, advice: list[str]) -> str:
    """Headline followed by bulleted advice lines, one per line."""
    lines = [headline] if headline else []
    lines.extend(f"{BULLET}{line}" for line in advice if line)
    if not lines:
        return EMPTY_MESSAGE_PLACEHOLDER
    return "\n".join(lines)


def _clean_headline(value: Any) -> str:
    return shorten(sanitize_line(value), HEADLINE_MAX_LEN)


def _clean_advice(values: Any) -> list[str]:
    if isinstance(values, str):
        values = values.splitlines()
    if not isinstance(values, list):
        return []
    return unique_list(shorten(sanitize_line(v), ADVICE_MAX_LEN) for v in values)


def _message_lines(value: Any) -> list[str]:
    if not isinstance(value, str):
        return []
    return [line for line in value.splitlines() if sanitize_line(line)]


def _top_up(advice: list[str], extra: list[str]) -> list[str]:
    """Fill to exactly ADVICE_COUNT lines from ``extra`` without duplicates."""
    return unique_list(advice + extra)[:ADVICE_COUNT]


class FinancialHealthAnalyzer:
    """Orchestrates local scoring and the optional text-service call.

    Args:
        client: Text-completion client, or None to answer locally only.
        ruleset: Thresholds and score tables; defaults to the canonical set.
    """

    def __init__(
        self,
        client: TextCompletionClient | None = None,
        ruleset: Ruleset | None = None,
    ) -> None:
        self.client = client
        self.ruleset = ruleset or get_default_ruleset()

    # --- Local path ---

    def build_context(self, raw: RawInputs) -> tuple[FinancialContext, LocalAdvice]:
        metrics = compute_metrics(raw)
        local = compute_local_fallback(metrics, raw, self.ruleset)
        context = FinancialContext(
            raw=raw,
            metrics=metrics,
            state=local.state,
            health=local.health,
            ruleset_id=self.ruleset.id,
        )
        return context, local

    def analyze_locally(self, data: RawInputs | Mapping[str, Any] | None) -> AnalysisResult:
        """The local tier alone: no external call."""
        _, local = self.build_context(coerce_raw_inputs(data))
        return self._from_local(local)

    def _from_local(self, local: LocalAdvice) -> AnalysisResult:
        headline = _clean_headline(local.headline)
        advice = _clean_advice(local.advice)[:ADVICE_COUNT]
        return AnalysisResult(
            state=local.state,
            health=clamp_health(local.health),
            headline=headline,
            advice=advice,
            message=compose_message(headline, advice),
            source="local",
        )

    # --- Text-service path ---

    def _merge(self, data: dict[str, Any], local: LocalAdvice, source: str) -> AnalysisResult:
        state = coerce_state(data.get("state"))
        health = clamp_health(data.get("health"))

        headline = _clean_headline(data.get("headline"))
        advice = _clean_advice(data.get("advice"))
        if not headline:
            # A message-only answer: its first line leads, the rest become advice.
            lines = _message_lines(data.get("message"))
            if lines:
                headline = _clean_headline(lines[0])
                advice = unique_list(advice + _clean_advice(lines[1:]))
        if not headline:
            headline = _clean_headline(build_headline(state, health))

        advice = _top_up(advice, _clean_advice(local.advice))
        return AnalysisResult(
            state=state,
            health=health,
            headline=headline,
            advice=advice,
            message=compose_message(headline, advice),
            source=source,
        )

    async def analyze(self, data: RawInputs | Mapping[str, Any] | None) -> AnalysisResult:
        """Full analysis. Never raises; failures degrade to the local result."""
        raw = coerce_raw_inputs(data)
        context, local = self.build_context(raw)

        if self.client is None:
            return self._from_local(local)

        context_dict = context.to_dict()
        try:
            response = await self.client.complete(
                system_message=FINPET_SYSTEM_PROMPT,
                user_message=build_user_prompt(context_dict),
                context=context_dict,
            )
        except TextServiceError as exc:
            logger.warning("Text service failed, using local advice: %s", exc)
            return self._from_local(local)

        try:
            parsed = parse_completion(response.payload, allowed_states=STATE_NAMES)
        except Exception:
            logger.exception("Failed to parse text service payload, using local advice")
            return self._from_local(local)

        if isinstance(parsed, NormalizedResponse):
            source = "normalized"
        elif isinstance(parsed, LegacyCandidateResponse):
            logger.warning("Text service answered in legacy shape; recovering JSON from text")
            source = "legacy"
        else:
            logger.warning("Unparseable text service payload (%s), using local advice", parsed.reason)
            return self._from_local(local)

        try:
            return self._merge(parsed.data, local, source)
        except Exception:
            logger.exception("Failed to merge text service response, using local advice")
            return self._from_local(local)


async def analyze_with_deadline(
    analyzer: FinancialHealthAnalyzer,
    data: RawInputs | Mapping[str, Any] | None,
    timeout_s: float,
) -> AnalysisResult:
    """Run ``analyzer.analyze`` under a deadline.

    Raises:
        AnalysisTimeoutError: the analysis did not finish in ``timeout_s``.
    """
    try:
        return await asyncio.wait_for(analyzer.analyze(data), timeout=timeout_s)
    except asyncio.TimeoutError as exc:
        raise AnalysisTimeoutError(f"analysis exceeded {timeout_s:.1f}s") from exc
