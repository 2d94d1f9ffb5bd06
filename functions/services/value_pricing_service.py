"""Value-anchored pricing for ValueQuote.

Replaces cost-plus with value-based pricing:

    anchor_price = cost_basis x value_multiplier
    tiers        = anchor_price x {entry 0.85, mid 1.00, premium 1.20}

Multi-job visits share one cost basis (one callout fee) and are priced on
the dominant job's score. Nothing is rounded until each tier price is
produced. Small, low-value jobs get a single flat quote on the cost basis
instead of three tiers.
"""

from typing import Any, Dict, Mapping, Optional, Sequence

import structlog

from config.pricing_config import PricingConfig, resolve_config
from models.pricing import QuoteMode, TierName, TierPrices, ValueAnchoredQuote
from models.quote_inputs import ContextSignals, CustomerContext, JobInput, Urgency
from services.multi_job_aggregator import aggregate_job_costs, calculate_multi_job_pvs
from services.price_rounding import enforce_minimum_then_round, round_to_psychological
from services.pvs_engine import calculate_single_job_pvs
from utils.quote_logger import log_quote_breakdown

logger = structlog.get_logger(__name__)

TIER_RATIOS: Dict[TierName, float] = {
    TierName.ENTRY: 0.85,
    TierName.MID: 1.00,
    TierName.PREMIUM: 1.20,
}

# Simple (flat) mode applies below all three thresholds
SIMPLE_MODE_MAX_PVS = 25
SIMPLE_MODE_MAX_VISUAL = 20
SMALL_JOB_THRESHOLD = 150.0  # GBP cost basis

DEFAULT_URGENCY = Urgency.NORMAL


def determine_quote_mode(pvs_score: int, visual_impact: float, cost_basis: float) -> QuoteMode:
    """Flat quote for low-value, low-visibility small jobs; tiers otherwise."""
    if (
        pvs_score < SIMPLE_MODE_MAX_PVS
        and visual_impact < SIMPLE_MODE_MAX_VISUAL
        and cost_basis < SMALL_JOB_THRESHOLD
    ):
        return QuoteMode.SIMPLE
    return QuoteMode.TIERED


def map_value_to_tiers(
    cost_basis: float,
    value_multiplier: float,
    tier_minimum: Optional[float] = None
) -> TierPrices:
    """Turn a cost basis and multiplier into three rounded tier prices.

    The anchor stays unrounded; each tier is scaled from it, floored at
    tier_minimum when given, and rounded last.
    """
    anchor_price = cost_basis * value_multiplier
    prices = {
        tier.value: enforce_minimum_then_round(anchor_price * ratio, tier_minimum)
        for tier, ratio in TIER_RATIOS.items()
    }
    return TierPrices(**prices)


def calculate_value_anchored_quote(
    jobs: Sequence[JobInput],
    customer: Optional[CustomerContext] = None,
    context: Optional[ContextSignals] = None,
    config: Optional[PricingConfig] = None,
    config_overrides: Optional[Mapping[str, Any]] = None
) -> ValueAnchoredQuote:
    """Price one or more jobs on a single visit.

    Args:
        jobs: Jobs on the visit, in input order.
        customer: Customer context.
        context: Conversation signals; urgency also selects the rate modifier.
        config: Pricing config; defaults to the current process-wide snapshot.
        config_overrides: Partial config merged over config for this quote only.

    Returns:
        ValueAnchoredQuote with PVS, cost basis, anchor, mode and prices.

    Raises:
        ValidationError: If no jobs are supplied.
        ConfigurationError: If config_overrides do not form a valid config.
    """
    config = resolve_config(config)
    if config_overrides:
        config = config.merged(config_overrides)

    customer = customer or CustomerContext()
    context = context or ContextSignals()
    urgency = context.urgency or DEFAULT_URGENCY

    cost_basis = aggregate_job_costs(jobs, urgency, config)
    total_base_cost = cost_basis.total_base_cost

    if len(jobs) == 1:
        pvs = calculate_single_job_pvs(jobs[0], customer, context)
    else:
        pvs = calculate_multi_job_pvs(
            jobs,
            customer,
            context,
            total_base_cost=total_base_cost,
            job_base_costs=cost_basis.job_base_costs,
        )

    anchor_price = total_base_cost * pvs.value_multiplier
    quote_mode = determine_quote_mode(pvs.pvs_score, pvs.factors.visual_impact, total_base_cost)
    tiers = map_value_to_tiers(total_base_cost, pvs.value_multiplier)

    simple_quote = None
    if quote_mode == QuoteMode.SIMPLE:
        simple_quote = round_to_psychological(total_base_cost)

    quote = ValueAnchoredQuote(
        pvs=pvs,
        cost_basis=cost_basis,
        anchor_price=anchor_price,
        quote_mode=quote_mode,
        tiers=tiers,
        simple_quote=simple_quote,
    )

    logger.info(
        "value_anchored_quote_calculated",
        job_count=len(jobs),
        pvs_score=pvs.pvs_score,
        value_multiplier=pvs.value_multiplier,
        dominant_factor=pvs.dominant_factor.value,
        base_cost=round(total_base_cost, 2),
        quote_mode=quote_mode.value,
        tiers=tiers.to_dict(),
        simple_quote=simple_quote
    )
    log_quote_breakdown(
        title="VALUE-ANCHORED QUOTE",
        summary={
            "PVS score": pvs.pvs_score,
            "Multiplier": pvs.value_multiplier,
            "Dominant factor": pvs.dominant_factor.value,
            "Cost basis": round(total_base_cost, 2),
            "Anchor": round(anchor_price, 2),
            "Mode": quote_mode.value,
        },
        prices=simple_quote if simple_quote is not None else tiers.to_dict(),
    )

    return quote
