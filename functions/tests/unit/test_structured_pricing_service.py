"""
Unit Tests for the structured H/HH/HHH base-price model.

Tests:
- Every multiplier compounds upward
- Absolute minimum and per-tier minimums
- Premium-only urgency scaling
- Unknown tags are neutral
"""

import pytest

from models.pricing import StructuredQuoteInputs, StructuredUrgency
from services.structured_pricing_service import (
    ABSOLUTE_MINIMUM,
    calculate_structured_base_price,
    calculate_structured_tier_prices,
    category_multiplier,
    multi_category_bonus,
    substrate_multiplier,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def plumbing_inputs():
    """One hour of low-risk plumbing on plasterboard, client materials."""
    return StructuredQuoteInputs(
        tasks=["Replace tap washer"],
        categories=["plumbing"],
        substrates=["plasterboard"],
        materials_by="client",
        risk=1,
        total_estimated_hours=1,
    )


# =============================================================================
# Multipliers
# =============================================================================


class TestMultipliers:
    """Tests for the individual multiplier helpers."""

    def test_category_average(self):
        assert category_multiplier(["plumbing", "carpentry"]) == pytest.approx(1.225)

    def test_unknown_category_neutral(self):
        assert category_multiplier(["roofing"]) == 1.0
        assert category_multiplier([]) == 1.0

    @pytest.mark.parametrize("count,expected", [(0, 1.0), (1, 1.0), (2, 1.08), (4, 1.24)])
    def test_multi_category_bonus(self, count, expected):
        assert multi_category_bonus(count) == pytest.approx(expected)

    def test_hardest_substrate_wins(self):
        assert substrate_multiplier(["plasterboard", "tile", "brick"]) == 1.15
        assert substrate_multiplier([]) == 1.0
        assert substrate_multiplier(["unknown"]) == 1.05


# =============================================================================
# Base price
# =============================================================================


class TestStructuredBasePrice:
    """Tests for calculate_structured_base_price."""

    def test_known_value(self, plumbing_inputs):
        breakdown = calculate_structured_base_price(plumbing_inputs)

        # (45 + 25) x 1.3 x 0.95
        assert breakdown.labor_and_callout == pytest.approx(70)
        assert breakdown.base_price == pytest.approx(86.45)

    def test_riskier_inputs_price_strictly_higher(self, plumbing_inputs):
        riskier = StructuredQuoteInputs.model_validate({
            **plumbing_inputs.model_dump(),
            "risk": 3,
            "substrates": ["tile"],
            "materials_by": "us",
        })

        low = calculate_structured_base_price(plumbing_inputs)
        high = calculate_structured_base_price(riskier)

        assert high.base_price > low.base_price
        assert high.risk_multiplier == 1.25
        assert high.substrate_multiplier == 1.15
        assert high.materials_multiplier == 1.15

    def test_unrecognised_risk_prices_as_neutral(self, plumbing_inputs):
        inputs = StructuredQuoteInputs.model_validate({**plumbing_inputs.model_dump(), "risk": "high"})

        breakdown = calculate_structured_base_price(inputs)

        assert breakdown.risk_multiplier == 1.0
        assert breakdown.base_price == pytest.approx(86.45)

    def test_missing_hours_default_to_two(self):
        breakdown = calculate_structured_base_price(StructuredQuoteInputs(categories=["mounting"]))

        assert breakdown.hours == 2
        assert breakdown.base_price == pytest.approx(115)

    def test_floored_at_absolute_minimum(self):
        breakdown = calculate_structured_base_price(StructuredQuoteInputs(total_estimated_hours=0))

        assert breakdown.base_price == ABSOLUTE_MINIMUM

    def test_non_decreasing_in_hours(self, plumbing_inputs):
        previous = 0.0
        for quarter_hours in range(0, 40):
            inputs = plumbing_inputs.model_copy(update={"total_estimated_hours": quarter_hours / 4})
            base = calculate_structured_base_price(inputs).base_price

            assert base >= previous
            previous = base

    def test_unknown_tags_neutral(self):
        inputs = StructuredQuoteInputs(
            categories=["roofing"],
            substrates=["marble"],
            materials_by="contractor",
            risk=7,
            total_estimated_hours=2,
        )

        breakdown = calculate_structured_base_price(inputs)

        assert breakdown.base_price == pytest.approx(115)


# =============================================================================
# Tiers
# =============================================================================


class TestStructuredTierPrices:
    """Tests for calculate_structured_tier_prices."""

    def test_known_tiers(self, plumbing_inputs):
        result = calculate_structured_tier_prices(plumbing_inputs)

        # 86.45, 125.35, 172.90
        assert result.tiers.to_dict() == {"entry": 89, "mid": 129, "premium": 179}
        assert result.base_price == 86
        assert result.urgency_factor == 1.0

    def test_tier_minimums(self):
        result = calculate_structured_tier_prices(StructuredQuoteInputs(total_estimated_hours=0))

        # Base floored at 59: entry 59, mid 85.55, premium 118
        assert result.tiers.to_dict() == {"entry": 59, "mid": 89, "premium": 119}

    def test_urgency_scales_premium_only(self, plumbing_inputs):
        flexible = calculate_structured_tier_prices(plumbing_inputs)
        same_day = calculate_structured_tier_prices(
            plumbing_inputs.model_copy(update={"urgency": StructuredUrgency.SAME_DAY})
        )

        assert same_day.tiers.entry == flexible.tiers.entry
        assert same_day.tiers.mid == flexible.tiers.mid
        # 172.90 x 1.3 = 224.77
        assert same_day.tiers.premium == 229

    def test_ordering_across_inputs(self):
        for hours in range(0, 12):
            for risk in (1, 2, 3):
                for urgency in ("same_day", "next_day", "flexible"):
                    inputs = StructuredQuoteInputs(
                        categories=["painting", "plaster"],
                        total_estimated_hours=hours,
                        risk=risk,
                        urgency=urgency,
                    )
                    tiers = calculate_structured_tier_prices(inputs).tiers

                    assert tiers.entry <= tiers.mid <= tiers.premium
                    assert tiers.entry >= 50
