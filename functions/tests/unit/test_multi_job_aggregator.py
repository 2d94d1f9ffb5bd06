"""
Unit Tests for multi-job aggregation.

Tests:
- Safety jobs dominate regardless of score
- Highest score wins otherwise, ties to the earliest job
- Cost-share bump, including crossing a multiplier band
- One callout fee per visit
"""

import pytest
from unittest.mock import patch

from config.errors import ErrorCode, ValidationError
from models.pvs import PVSFactorName, PVSFactors, PVSResult
from models.quote_inputs import JobInput, Urgency
from services.multi_job_aggregator import (
    aggregate_job_costs,
    calculate_multi_job_pvs,
    cost_share_bump,
)
from services.pvs_engine import pvs_to_multiplier


def _result(score, factor=PVSFactorName.VISUAL_IMPACT):
    return PVSResult(
        pvs_score=score,
        factors=PVSFactors(visual_impact=score),
        value_multiplier=pvs_to_multiplier(score),
        dominant_factor=factor,
    )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def repaint_job():
    """High-scoring cosmetic job."""
    return JobInput(description="Paint and upgrade doors", visual_upgrade=True, category="visual")


@pytest.fixture
def handrail_job():
    """Low-scoring job tagged as safety work."""
    return JobInput(description="Secure loose handrail", category="safety")


# =============================================================================
# Selection
# =============================================================================


class TestCalculateMultiJobPVS:
    """Tests for dominant job selection."""

    def test_no_jobs_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            calculate_multi_job_pvs([])

        assert exc_info.value.code == ErrorCode.NO_JOBS
        assert exc_info.value.field == "jobs"

    def test_single_job_passes_through(self, handrail_job):
        result = calculate_multi_job_pvs([handrail_job], total_base_cost=100, job_base_costs=[75])

        assert result.dominant_job is None
        assert result.pvs_score == 17

    def test_safety_job_dominates_higher_score(self, repaint_job, handrail_job):
        result = calculate_multi_job_pvs([repaint_job, handrail_job])

        assert result.dominant_job_index == 1
        assert result.dominant_job == handrail_job
        # Repaint alone would score 31
        assert result.pvs_score == 17
        assert result.value_multiplier == 1.0

    def test_risk_dominant_job_counts_as_safety(self):
        jobs = [JobInput(description="a"), JobInput(description="b")]
        results = [_result(70), _result(30, factor=PVSFactorName.RISK_AVOIDED)]

        with patch("services.multi_job_aggregator.calculate_single_job_pvs", side_effect=results):
            result = calculate_multi_job_pvs(jobs)

        assert result.dominant_job_index == 1

    def test_highest_score_wins_without_safety(self):
        jobs = [JobInput(description=name) for name in ("a", "b", "c")]
        results = [_result(30), _result(55), _result(40)]

        with patch("services.multi_job_aggregator.calculate_single_job_pvs", side_effect=results):
            result = calculate_multi_job_pvs(jobs)

        assert result.dominant_job_index == 1
        assert result.pvs_score == 55

    def test_tie_goes_to_earliest(self):
        jobs = [JobInput(description="Paint fence"), JobInput(description="Paint fence")]

        result = calculate_multi_job_pvs(jobs)

        assert result.dominant_job_index == 0


# =============================================================================
# Cost-share bump
# =============================================================================


class TestCostShareBump:
    """Tests for the cost-share refinement."""

    @pytest.mark.parametrize("dominant,total,expected", [
        (60, 100, 6),
        (25, 100, 3),
        (100, 100, 10),
        (0, 100, 0),
        (50, 0, 0),
    ])
    def test_bump_points(self, dominant, total, expected):
        assert cost_share_bump(dominant, total) == expected

    def test_bump_can_cross_multiplier_band(self):
        """79 is in the 1.6 band; a 60% cost share lifts it to 85 and 2.0."""
        jobs = [JobInput(description="a"), JobInput(description="b")]
        results = [_result(79), _result(50)]

        with patch("services.multi_job_aggregator.calculate_single_job_pvs", side_effect=results):
            result = calculate_multi_job_pvs(jobs, total_base_cost=100, job_base_costs=[60, 15])

        assert pvs_to_multiplier(79) == 1.6
        assert result.pvs_score == 85
        assert result.value_multiplier == 2.0

    def test_bump_capped_at_100(self):
        jobs = [JobInput(description="a"), JobInput(description="b")]
        results = [_result(96), _result(10)]

        with patch("services.multi_job_aggregator.calculate_single_job_pvs", side_effect=results):
            result = calculate_multi_job_pvs(jobs, total_base_cost=100, job_base_costs=[90, 10])

        assert result.pvs_score == 100

    def test_no_bump_when_costs_do_not_line_up(self):
        jobs = [JobInput(description="a"), JobInput(description="b")]
        results = [_result(79), _result(50)]

        with patch("services.multi_job_aggregator.calculate_single_job_pvs", side_effect=results):
            result = calculate_multi_job_pvs(jobs, total_base_cost=100, job_base_costs=[60])

        assert result.pvs_score == 79


# =============================================================================
# Cost aggregation
# =============================================================================


class TestAggregateJobCosts:
    """Tests for aggregate_job_costs."""

    def test_single_callout_per_visit(self, default_config):
        jobs = [JobInput(estimated_hours=1), JobInput(estimated_hours=1)]

        result = aggregate_job_costs(jobs, Urgency.NORMAL, default_config)

        assert result.callout_fee == 25.0
        assert result.job_base_costs == pytest.approx([78, 78])
        assert result.subtotal == pytest.approx(156)
        assert result.total_base_cost == pytest.approx(181)

    def test_materials_and_labour_split(self, default_config):
        jobs = [
            JobInput(estimated_hours=2, materials_cost=40),
            JobInput(estimated_hours=0.1),
        ]

        result = aggregate_job_costs(jobs, "normal", default_config)

        assert result.total_labor_cost == pytest.approx(156 + 50)
        assert result.total_materials_cost == pytest.approx(46)
        assert result.total_base_cost == pytest.approx(156 + 50 + 46 + 25)

    def test_urgency_applies_to_every_job(self, default_config):
        jobs = [JobInput(estimated_hours=1), JobInput(estimated_hours=1)]

        normal = aggregate_job_costs(jobs, "normal", default_config)
        emergency = aggregate_job_costs(jobs, "emergency", default_config)

        assert emergency.total_labor_cost == pytest.approx(normal.total_labor_cost * 1.8)
