"""Unit tests for input coercion and metric computation."""

from __future__ import annotations

import math
import sys

import pytest

from finpet.domains.finance.domain_logic.metrics import (
    coerce_amount,
    coerce_raw_inputs,
    compute_metrics,
)
from finpet.domains.finance.domain_logic.models import RUNWAY_SENTINEL, RawInputs


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------

class TestCoerceAmount:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (5000, 5000.0),
            ("5000", 5000.0),
            ("$5,000", 5000.0),
            (" 1,234.50 ", 1234.5),
            (-20, 0.0),
            ("-20", 0.0),
            ("abc", 0.0),
            ("", 0.0),
            (None, 0.0),
            (True, 0.0),
            ("nan", 0.0),
            ("inf", 0.0),
            (float("inf"), 0.0),
            ([1, 2], 0.0),
        ],
    )
    def test_values(self, value, expected):
        assert coerce_amount(value) == expected


class TestCoerceRawInputs:
    def test_snake_case_keys(self, scenario_inputs):
        raw = coerce_raw_inputs(scenario_inputs)
        assert raw == RawInputs(5000, 3000, 10000, 2000, 500, 15000)

    def test_web_client_keys(self):
        raw = coerce_raw_inputs({
            "monthlyIncome": "5000",
            "monthlySpending": "$3,000",
            "totalSavings": 10000,
            "totalDebt": "2000",
            "monthlyInvestments": 500,
            "investmentBalance": "15000",
        })
        assert raw.monthly_income == 5000
        assert raw.monthly_spending == 3000
        assert raw.investment_balance == 15000

    def test_missing_fields_default_to_zero(self):
        raw = coerce_raw_inputs({"income": 100})
        assert raw.monthly_income == 100
        assert raw.monthly_spending == 0
        assert raw.total_debt == 0

    def test_none_is_all_zero(self):
        assert coerce_raw_inputs(None) == RawInputs()

    def test_rawinputs_are_recoerced(self):
        raw = coerce_raw_inputs(RawInputs(monthly_income=-5, monthly_spending=float("nan")))
        assert raw.monthly_income == 0
        assert raw.monthly_spending == 0


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

class TestComputeMetrics:
    def test_reference_household(self, scenario_inputs):
        m = compute_metrics(scenario_inputs)
        assert m.budget_ratio == pytest.approx(0.6)
        assert m.runway_months == pytest.approx(10000 / 3000)
        assert m.invest_rate == pytest.approx(0.1)
        assert m.dti == pytest.approx(0.4)

    def test_no_income(self, scenario_inputs):
        m = compute_metrics({**scenario_inputs, "monthly_income": 0})
        assert m.budget_ratio == math.inf
        assert m.dti == math.inf
        assert m.invest_rate == 0.0
        assert m.runway_months == pytest.approx(10000 / 3000)

    def test_savings_without_spending_uses_sentinel(self):
        m = compute_metrics({"monthly_income": 1000, "total_savings": 500})
        assert m.runway_months == RUNWAY_SENTINEL

    def test_no_savings_no_spending_is_zero_runway(self):
        m = compute_metrics({"monthly_income": 1000})
        assert m.runway_months == 0.0

    def test_tiny_income_does_not_overflow_invest_rate(self):
        m = compute_metrics({"monthly_income": "1e-320", "monthly_investments": 1e300})
        assert m.invest_rate == sys.float_info.max
        assert math.isfinite(m.invest_rate)

    def test_all_ratios_non_negative(self):
        m = compute_metrics({
            "monthly_income": -100, "monthly_spending": -1, "total_savings": -3,
            "total_debt": -4, "monthly_investments": -5,
        })
        for value in m.as_dict().values():
            assert value >= 0

    def test_json_dict_replaces_infinity(self):
        m = compute_metrics({})
        data = m.as_json_dict()
        assert data["budget_ratio"] is None
        assert data["dti"] is None
        assert data["invest_rate"] == 0.0
