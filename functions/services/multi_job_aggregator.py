"""Multi-job aggregation for ValueQuote.

When one visit covers several jobs, a single dominant job's score prices
the whole visit:

1. If any job is safety work (safety category, or risk_avoided is its own
   dominant factor), only those jobs are candidates.
2. The candidate with the highest PVS wins; ties go to the earliest job.
3. Optional refinement: the winner gains round(cost_share x 10) points,
   capped at 100, where cost_share is its share of the visit's cost.

The bump is applied after selection, so a job's cost share alone can carry
the score across a multiplier band (79 -> 85 moves 1.6 to 2.0).

Costs for the visit are summed per job without callout fees, then one
callout fee is added for the whole visit.
"""

from typing import Any, List, Optional, Sequence

import structlog

from config.errors import ErrorCode, ValidationError
from config.pricing_config import PricingConfig, resolve_config
from models.pricing import AggregateCostBreakdown
from models.pvs import PVSFactorName, PVSResult
from models.quote_inputs import ContextSignals, CustomerContext, JobInput
from services.cost_estimator import job_cost_components
from services.price_rounding import round_half_up
from services.pvs_engine import calculate_single_job_pvs, pvs_to_multiplier

logger = structlog.get_logger(__name__)

MAX_COST_SHARE_BUMP = 10


def is_safety_job(job: JobInput, result: PVSResult) -> bool:
    """Safety work by tag or by its own scoring."""
    return job.is_safety or result.dominant_factor == PVSFactorName.RISK_AVOIDED


def cost_share_bump(dominant_cost: float, total_base_cost: float) -> int:
    """Points added for the dominant job's share of the visit cost (0-10)."""
    if total_base_cost <= 0:
        return 0
    share = dominant_cost / total_base_cost
    return max(0, min(MAX_COST_SHARE_BUMP, round_half_up(share * MAX_COST_SHARE_BUMP)))


def calculate_multi_job_pvs(
    jobs: Sequence[JobInput],
    customer: Optional[CustomerContext] = None,
    context: Optional[ContextSignals] = None,
    total_base_cost: Optional[float] = None,
    job_base_costs: Optional[Sequence[float]] = None
) -> PVSResult:
    """Pick the dominant job's PVS to represent several jobs.

    Args:
        jobs: Jobs on the visit, in input order.
        customer: Shared customer context.
        context: Shared conversation signals.
        total_base_cost: Aggregate cost basis of the visit, if known.
        job_base_costs: Per-job cost basis on the same scale, if known.

    Returns:
        PVSResult of the dominant job, with dominant_job and
        dominant_job_index set and the cost-share bump applied.

    Raises:
        ValidationError: If no jobs are supplied.
    """
    if not jobs:
        raise ValidationError(
            message="No jobs provided for PVS calculation",
            field="jobs",
            code=ErrorCode.NO_JOBS
        )

    if len(jobs) == 1:
        return calculate_single_job_pvs(jobs[0], customer, context)

    results = [calculate_single_job_pvs(job, customer, context) for job in jobs]

    candidates: List[int] = [
        index for index, job in enumerate(jobs) if is_safety_job(job, results[index])
    ]
    safety_restricted = bool(candidates)
    if not safety_restricted:
        candidates = list(range(len(jobs)))

    # max() keeps the first of equal scores, so ties resolve to input order
    dominant_index = max(candidates, key=lambda index: results[index].pvs_score)
    dominant = results[dominant_index]

    final_score = dominant.pvs_score
    bump = 0
    if total_base_cost and job_base_costs is not None and len(job_base_costs) == len(jobs):
        bump = cost_share_bump(job_base_costs[dominant_index], total_base_cost)
        final_score = min(100, final_score + bump)

    logger.info(
        "multi_job_pvs_selected",
        job_count=len(jobs),
        dominant_job_index=dominant_index,
        safety_restricted=safety_restricted,
        raw_score=dominant.pvs_score,
        cost_share_bump=bump,
        pvs_score=final_score
    )

    return PVSResult(
        pvs_score=final_score,
        factors=dominant.factors,
        value_multiplier=pvs_to_multiplier(final_score),
        dominant_factor=dominant.dominant_factor,
        dominant_job=jobs[dominant_index],
        dominant_job_index=dominant_index,
    )


def aggregate_job_costs(
    jobs: Sequence[JobInput],
    urgency: Any = None,
    config: Optional[PricingConfig] = None
) -> AggregateCostBreakdown:
    """Sum labour and materials across jobs and add one callout fee.

    Args:
        jobs: Jobs on the visit.
        urgency: Shared urgency tag for the visit.
        config: Pricing config; defaults to the current process-wide snapshot.

    Returns:
        AggregateCostBreakdown; nothing in it is rounded.
    """
    config = resolve_config(config)

    total_labor = 0.0
    total_materials = 0.0
    job_base_costs: List[float] = []

    for job in jobs:
        labor_cost, materials_cost = job_cost_components(job, urgency, config)
        job_base_costs.append(labor_cost + materials_cost)
        total_labor += labor_cost
        total_materials += materials_cost

    subtotal = total_labor + total_materials

    return AggregateCostBreakdown(
        total_labor_cost=total_labor,
        total_materials_cost=total_materials,
        callout_fee=config.callout_fee,
        subtotal=subtotal,
        total_base_cost=subtotal + config.callout_fee,
        job_base_costs=job_base_costs,
    )
