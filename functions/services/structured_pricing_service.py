"""Structured base-price model for ValueQuote (H / HH / HHH tiers).

A simpler pricing path driven by categorical tags from the quote form
rather than the PVS scorer:

    base = (hourly_rate x hours + callout)
           x average category weight x multi-category bonus
           x risk multiplier x hardest substrate x materials multiplier

floored at an absolute minimum. Tiers are base x {1.00, 1.45, 2.00}, with
the premium tier also scaled by booking urgency. Each tier is floored at its
own minimum and then rounded to end in 9.

Unknown categories, substrates, risk levels and urgencies are neutral (1.0).
"""

from typing import Dict, Iterable

import structlog

from models.pricing import (
    MaterialsResponsibility,
    StructuredBaseBreakdown,
    StructuredQuoteInputs,
    StructuredTierPricing,
    StructuredUrgency,
    TierName,
    TierPrices,
)
from services.price_rounding import enforce_minimum_then_round, round_half_up
from utils.quote_logger import log_quote_breakdown

logger = structlog.get_logger(__name__)


# =============================================================================
# RATES AND WEIGHTS
# =============================================================================

HOURLY_RATE = 45.0
CALLOUT_FEE = 25.0
DEFAULT_HOURS = 2.0
ABSOLUTE_MINIMUM = 59.0

CATEGORY_WEIGHTS: Dict[str, float] = {
    "mounting": 1.0,           # basic
    "carpentry": 1.15,         # moderate skill
    "painting": 1.1,           # moderate time
    "plaster": 1.2,            # specialist skill
    "plumbing": 1.3,           # regulated / specialist
    "electrical_minor": 1.4,   # highest skill / regulation
}
EXTRA_CATEGORY_BONUS = 0.08    # per category beyond the first

RISK_MULTIPLIERS: Dict[int, float] = {
    1: 1.0,
    2: 1.1,
    3: 1.25,
}

SUBSTRATE_WEIGHTS: Dict[str, float] = {
    "plasterboard": 1.0,
    "brick": 1.1,
    "tile": 1.15,
    "mixed": 1.2,
    "unknown": 1.05,   # contingency buffer
}

MATERIALS_MULTIPLIERS: Dict[MaterialsResponsibility, float] = {
    MaterialsResponsibility.US: 1.15,      # we source and mark up
    MaterialsResponsibility.CLIENT: 0.95,  # client supplies
    MaterialsResponsibility.MIXED: 1.05,
}

TIER_MULTIPLIERS: Dict[TierName, float] = {
    TierName.ENTRY: 1.0,
    TierName.MID: 1.45,
    TierName.PREMIUM: 2.0,
}

# Premium tier only
URGENCY_FACTORS: Dict[StructuredUrgency, float] = {
    StructuredUrgency.SAME_DAY: 1.3,
    StructuredUrgency.NEXT_DAY: 1.15,
    StructuredUrgency.FLEXIBLE: 1.0,
}

TIER_MINIMUMS: Dict[TierName, float] = {
    TierName.ENTRY: 50.0,
    TierName.MID: 70.0,
    TierName.PREMIUM: 100.0,
}


# =============================================================================
# MULTIPLIERS
# =============================================================================


def category_multiplier(categories: Iterable[str]) -> float:
    """Average weight of the selected categories (1.0 when none)."""
    weights = [CATEGORY_WEIGHTS.get(category, 1.0) for category in categories]
    if not weights:
        return 1.0
    return sum(weights) / len(weights)


def multi_category_bonus(category_count: int) -> float:
    """+8% for every category beyond the first."""
    if category_count <= 1:
        return 1.0
    return 1 + (category_count - 1) * EXTRA_CATEGORY_BONUS


def substrate_multiplier(substrates: Iterable[str]) -> float:
    """Weight of the hardest substrate (1.0 when none)."""
    return max((SUBSTRATE_WEIGHTS.get(substrate, 1.0) for substrate in substrates), default=1.0)


# =============================================================================
# PRICING
# =============================================================================


def calculate_structured_base_price(inputs: StructuredQuoteInputs) -> StructuredBaseBreakdown:
    """Calculate the base price from structured inputs.

    Args:
        inputs: Tags from the quote form; missing hours count as two.

    Returns:
        StructuredBaseBreakdown with every multiplier and the floored base.
    """
    hours = inputs.total_estimated_hours if inputs.total_estimated_hours is not None else DEFAULT_HOURS
    labor_and_callout = HOURLY_RATE * hours + CALLOUT_FEE

    cat_multiplier = category_multiplier(inputs.categories)
    bonus = multi_category_bonus(len(inputs.categories))
    risk = RISK_MULTIPLIERS.get(inputs.risk, 1.0)
    substrate = substrate_multiplier(inputs.substrates)
    materials = MATERIALS_MULTIPLIERS.get(inputs.materials_by, 1.0)

    base = labor_and_callout * cat_multiplier * bonus * risk * substrate * materials
    base_price = max(base, ABSOLUTE_MINIMUM)

    logger.debug(
        "structured_base_price_calculated",
        hours=hours,
        categories=inputs.categories,
        risk=inputs.risk,
        base_price=round(base_price, 2)
    )

    return StructuredBaseBreakdown(
        hours=hours,
        labor_and_callout=labor_and_callout,
        category_multiplier=cat_multiplier,
        multi_category_bonus=bonus,
        risk_multiplier=risk,
        substrate_multiplier=substrate,
        materials_multiplier=materials,
        base_price=base_price,
    )


def calculate_structured_tier_prices(inputs: StructuredQuoteInputs) -> StructuredTierPricing:
    """Calculate H / HH / HHH tier prices from structured inputs.

    Args:
        inputs: Tags from the quote form.

    Returns:
        StructuredTierPricing with entry, mid and premium prices ending in 9.
    """
    breakdown = calculate_structured_base_price(inputs)
    base = breakdown.base_price
    urgency_factor = URGENCY_FACTORS.get(inputs.urgency, 1.0)

    raw = {tier: base * multiplier for tier, multiplier in TIER_MULTIPLIERS.items()}
    raw[TierName.PREMIUM] *= urgency_factor

    tiers = TierPrices(**{
        tier.value: enforce_minimum_then_round(price, TIER_MINIMUMS[tier])
        for tier, price in raw.items()
    })

    logger.info(
        "structured_tier_prices_calculated",
        base_price=round(base, 2),
        urgency=inputs.urgency.value if inputs.urgency else None,
        urgency_factor=urgency_factor,
        tiers=tiers.to_dict()
    )
    log_quote_breakdown(
        title="STRUCTURED H/HH/HHH QUOTE",
        summary={
            "Hours": breakdown.hours,
            "Categories": ", ".join(inputs.categories) or "none",
            "Base": round(base, 2),
            "Urgency factor": urgency_factor,
        },
        prices=tiers.to_dict(),
    )

    return StructuredTierPricing(
        tiers=tiers,
        base_price=round_half_up(base),
        urgency_factor=urgency_factor,
        breakdown=breakdown,
    )
