"""Cost-plus estimator for ValueQuote.

Labour is priced at an adjusted hourly rate:

    adjusted_rate = base_rate x (1 + urgency_modifier + complexity_modifier)

with labour floored at the minimum charge, materials marked up, and the
callout fee added once. The total is the only rounded figure, and it is
never below the minimum charge even when there is no callout fee.
"""

from typing import Any, Optional, Tuple

import structlog

from config.pricing_config import PricingConfig, resolve_config
from models.pricing import JobCostBreakdown, RateAdjustments
from models.quote_inputs import Complexity, JobInput
from services.price_rounding import round_to_psychological

logger = structlog.get_logger(__name__)

# Applied when a job arrives without these fields on the value-anchored path
DEFAULT_COMPLEXITY = Complexity.MODERATE
DEFAULT_JOB_HOURS = 1.0


def adjusted_hourly_rate(
    config: PricingConfig,
    complexity: Any,
    urgency: Any
) -> float:
    """Base rate scaled by the additive urgency and complexity modifiers."""
    return config.base_rate * (
        1 + config.urgency_modifier(urgency) + config.complexity_modifier(complexity)
    )


def calculate_job_cost(
    complexity: Any,
    urgency: Any,
    estimated_hours: float,
    materials_cost: float = 0.0,
    config: Optional[PricingConfig] = None
) -> JobCostBreakdown:
    """Calculate the cost-plus price of a single job.

    Unknown complexity or urgency tags contribute a zero modifier. Zero or
    negative hours floor to the minimum charge.

    Args:
        complexity: Complexity tag (enum or string).
        urgency: Urgency tag; "normal" uses the "medium" rate.
        estimated_hours: Labour hours.
        materials_cost: Materials before markup (GBP).
        config: Pricing config; defaults to the current process-wide snapshot.

    Returns:
        JobCostBreakdown with a psychologically rounded total.
    """
    config = resolve_config(config)

    urgency_modifier = config.urgency_modifier(urgency)
    complexity_modifier = config.complexity_modifier(complexity)
    adjusted_rate = config.base_rate * (1 + urgency_modifier + complexity_modifier)

    labor_cost = max(estimated_hours * adjusted_rate, config.minimum_charge)
    materials_with_markup = materials_cost * (1 + config.material_markup)
    subtotal = labor_cost + materials_with_markup
    total = round_to_psychological(subtotal + config.callout_fee)
    # A minimum ending in 0 rounds down to ...9; step up to the next 9
    while total < config.minimum_charge:
        total += 10

    base_hours_cost = estimated_hours * config.base_rate

    logger.debug(
        "job_cost_estimated",
        complexity=str(getattr(complexity, "value", complexity)),
        urgency=str(getattr(urgency, "value", urgency)),
        hours=estimated_hours,
        adjusted_rate=round(adjusted_rate, 2),
        total=total
    )

    return JobCostBreakdown(
        labor_cost=labor_cost,
        materials_cost=materials_with_markup,
        callout_fee=config.callout_fee,
        subtotal=subtotal,
        total=total,
        base_rate=config.base_rate,
        urgency_modifier=urgency_modifier,
        complexity_modifier=complexity_modifier,
        adjusted_rate=adjusted_rate,
        breakdown=RateAdjustments(
            base_hours_cost=base_hours_cost,
            urgency_adjustment=base_hours_cost * urgency_modifier,
            complexity_adjustment=base_hours_cost * complexity_modifier
        )
    )


def job_cost_components(
    job: JobInput,
    urgency: Any,
    config: Optional[PricingConfig] = None
) -> Tuple[float, float]:
    """Labour and marked-up materials for one job, without a callout fee.

    Used when several jobs share one visit. Missing complexity counts as
    moderate and missing hours as one hour. Nothing is rounded.

    Returns:
        (labor_cost, materials_with_markup)
    """
    config = resolve_config(config)

    complexity = job.complexity or DEFAULT_COMPLEXITY
    hours = job.estimated_hours if job.estimated_hours is not None else DEFAULT_JOB_HOURS

    labor_cost = max(hours * adjusted_hourly_rate(config, complexity, urgency), config.minimum_charge)
    return labor_cost, job.materials_cost * (1 + config.material_markup)


def calculate_job_base_cost(
    job: JobInput,
    urgency: Any,
    config: Optional[PricingConfig] = None
) -> float:
    """Labour plus marked-up materials for one job."""
    labor_cost, materials_cost = job_cost_components(job, urgency, config)
    return labor_cost + materials_cost
