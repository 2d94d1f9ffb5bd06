"""Perceived Value Score (PVS) engine for ValueQuote.

Scores a job on six factors instead of pricing it purely on cost:

- risk_avoided: safety issues, leaks, electrical or water risk
- visual_impact: visible improvements and aesthetic upgrades
- comfort_gain: daily-use improvements
- urgency_signal: time pressure and social deadlines
- trust_premium: past letdowns, worried or particular customers
- property_value_index: property type, client type and postcode

Each factor is the capped sum of the rules below that fire. Rules live in
two declarative tables (KEYWORD_RULES for description text, SIGNAL_RULES for
categorical fields) so a heuristic can be tuned or tested on its own without
touching the scoring flow.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

import structlog

from models.pvs import PVSFactorName, PVSFactors, PVSResult
from models.quote_inputs import ContextSignals, CustomerContext, JobInput

logger = structlog.get_logger(__name__)

RISK = PVSFactorName.RISK_AVOIDED
VISUAL = PVSFactorName.VISUAL_IMPACT
COMFORT = PVSFactorName.COMFORT_GAIN
URGENCY = PVSFactorName.URGENCY_SIGNAL
TRUST = PVSFactorName.TRUST_PREMIUM
PROPERTY = PVSFactorName.PROPERTY_VALUE_INDEX

MAX_FACTOR_SCORE = 100


# =============================================================================
# WEIGHTS, PRIORITY AND MULTIPLIER BANDS
# =============================================================================

FACTOR_WEIGHTS: Dict[PVSFactorName, float] = {
    RISK: 0.30,
    VISUAL: 0.25,
    COMFORT: 0.15,
    URGENCY: 0.15,
    TRUST: 0.05,
    PROPERTY: 0.10,
}

# Dominant-factor tie break: earlier wins
FACTOR_PRIORITY: Tuple[PVSFactorName, ...] = (RISK, VISUAL, COMFORT, URGENCY, TRUST, PROPERTY)

# (inclusive upper score, multiplier); anything above the last band gets TOP_MULTIPLIER
MULTIPLIER_BANDS: Tuple[Tuple[int, float], ...] = (
    (20, 1.0),
    (40, 1.2),
    (60, 1.4),
    (80, 1.6),
)
TOP_MULTIPLIER = 2.0


# =============================================================================
# RULE TABLES
# =============================================================================


@dataclass(frozen=True)
class KeywordRule:
    """Points for a factor when the description mentions any keyword."""

    factor: PVSFactorName
    keywords: Tuple[str, ...]
    points: int

    def matches(self, description: str) -> bool:
        text = description.lower()
        return any(keyword in text for keyword in self.keywords)


@dataclass(frozen=True)
class SignalRule:
    """Points for a factor keyed by the value of one input field.

    source is "job", "customer" or "context". Enum values are looked up by
    their string value, booleans by True. default applies when the value is
    missing or not listed.
    """

    factor: PVSFactorName
    source: str
    field_name: str
    points: Mapping[Any, int] = field(default_factory=dict)
    default: int = 0

    def score(self, value: Any) -> int:
        if isinstance(value, Enum):
            value = value.value
        return self.points.get(value, self.default)


KEYWORD_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(
        RISK,
        ("leak", "water", "electrical", "gas", "fire", "broken",
         "damaged", "dangerous", "unsafe", "emergency"),
        50,
    ),
    KeywordRule(
        VISUAL,
        ("paint", "decorate", "curtain", "flooring", "tile",
         "cabinet", "upgrade", "modern", "polish"),
        20,
    ),
    KeywordRule(
        COMFORT,
        ("heating", "insulation", "draft", "noise", "door",
         "window", "lock", "storage"),
        25,
    ),
)

SIGNAL_RULES: Tuple[SignalRule, ...] = (
    # Risk avoided
    SignalRule(RISK, "job", "category", {"safety": 40}),
    SignalRule(RISK, "context", "urgency", {"emergency": 30, "high": 15}),
    SignalRule(RISK, "context", "motivation", {"safety": 20}),

    # Visual impact
    SignalRule(VISUAL, "job", "visual_upgrade", {True: 40}),
    SignalRule(VISUAL, "job", "category", {"visual": 30}),
    SignalRule(VISUAL, "context", "motivation", {"aesthetic": 25, "resale": 20}),
    SignalRule(VISUAL, "customer", "room_type", {"living": 15, "kitchen": 15, "exterior": 15}),

    # Comfort gain
    SignalRule(COMFORT, "job", "category", {"comfort": 40}),
    SignalRule(COMFORT, "context", "motivation", {"comfort": 30}),
    SignalRule(COMFORT, "customer", "room_type", {"kitchen": 20, "bathroom": 20, "living": 20, "bedroom": 20}),

    # Urgency signal
    SignalRule(URGENCY, "context", "urgency", {"emergency": 80, "high": 50, "normal": 20, "low": 5}),
    SignalRule(URGENCY, "context", "guests_soon", {True: 30}),

    # Trust premium
    SignalRule(TRUST, "context", "past_let_down", {True: 50}),
    SignalRule(TRUST, "context", "narrative_tone", {"frustrated": 30, "worried": 40, "particular": 25}),

    # Property value index: every branch contributes something
    SignalRule(PROPERTY, "customer", "property_type", {"house": 30, "flat": 20, "commercial": 40}, default=25),
    SignalRule(PROPERTY, "customer", "client_type", {"homeowner": 20, "landlord": 10}, default=15),
)

PREMIUM_POSTCODE_PREFIXES: Tuple[str, ...] = ("SW", "W1", "WC", "EC")
PREMIUM_POSTCODE_POINTS = 30
OTHER_POSTCODE_POINTS = 10
NO_POSTCODE_POINTS = 5


def postcode_points(postcode: Optional[str]) -> int:
    """Property-value points from the first two characters of a postcode."""
    if not postcode:
        return NO_POSTCODE_POINTS
    prefix = "".join(postcode.split()).upper()[:2]
    if prefix in PREMIUM_POSTCODE_PREFIXES:
        return PREMIUM_POSTCODE_POINTS
    return OTHER_POSTCODE_POINTS


# =============================================================================
# FACTOR SCORING
# =============================================================================


def _score_factor(
    factor: PVSFactorName,
    job: Optional[JobInput],
    customer: Optional[CustomerContext],
    context: Optional[ContextSignals]
) -> int:
    sources = {"job": job, "customer": customer, "context": context}
    score = 0

    if job is not None:
        for rule in KEYWORD_RULES:
            if rule.factor == factor and rule.matches(job.description):
                score += rule.points

    for rule in SIGNAL_RULES:
        if rule.factor != factor:
            continue
        source = sources[rule.source]
        score += rule.score(getattr(source, rule.field_name, None) if source is not None else None)

    if factor == PROPERTY:
        score += postcode_points(customer.postcode if customer is not None else None)

    return min(MAX_FACTOR_SCORE, score)


def score_risk_avoided(job: JobInput, context: ContextSignals) -> int:
    """Risk avoided: safety keywords, safety category, urgency, safety motivation."""
    return _score_factor(RISK, job, None, context)


def score_visual_impact(job: JobInput, customer: CustomerContext, context: ContextSignals) -> int:
    """Visual impact: upgrade flag, visual category, motivation, visible rooms, cosmetic keywords."""
    return _score_factor(VISUAL, job, customer, context)


def score_comfort_gain(job: JobInput, customer: CustomerContext, context: ContextSignals) -> int:
    """Comfort gain: comfort category and motivation, high-use rooms, comfort keywords."""
    return _score_factor(COMFORT, job, customer, context)


def score_urgency_signal(context: ContextSignals) -> int:
    """Urgency signal: urgency level plus social pressure."""
    return _score_factor(URGENCY, None, None, context)


def score_trust_premium(context: ContextSignals) -> int:
    """Trust premium: past letdowns and narrative tone."""
    return _score_factor(TRUST, None, None, context)


def score_property_value_index(customer: CustomerContext) -> int:
    """Property value index: property type, client type, postcode area."""
    return _score_factor(PROPERTY, None, customer, None)


# =============================================================================
# COMBINATION
# =============================================================================


def pvs_to_multiplier(pvs_score: float) -> float:
    """Map a PVS score to its value multiplier (step function, non-decreasing)."""
    for upper, multiplier in MULTIPLIER_BANDS:
        if pvs_score <= upper:
            return multiplier
    return TOP_MULTIPLIER


def combine_factors(factors: PVSFactors) -> int:
    """Weighted sum of the six factors, rounded half up."""
    weighted = sum(factors.get(name) * weight for name, weight in FACTOR_WEIGHTS.items())
    return int(math.floor(weighted + 0.5))


def dominant_factor(factors: PVSFactors) -> PVSFactorName:
    """Highest sub-score; ties go to the earlier name in FACTOR_PRIORITY."""
    return max(FACTOR_PRIORITY, key=factors.get)


def calculate_factors(
    job: JobInput,
    customer: CustomerContext,
    context: ContextSignals
) -> PVSFactors:
    """Compute all six sub-scores for one job."""
    return PVSFactors(
        risk_avoided=score_risk_avoided(job, context),
        visual_impact=score_visual_impact(job, customer, context),
        comfort_gain=score_comfort_gain(job, customer, context),
        urgency_signal=score_urgency_signal(context),
        trust_premium=score_trust_premium(context),
        property_value_index=score_property_value_index(customer),
    )


def calculate_single_job_pvs(
    job: JobInput,
    customer: Optional[CustomerContext] = None,
    context: Optional[ContextSignals] = None
) -> PVSResult:
    """Calculate the perceived value score for a single job.

    Args:
        job: The job being quoted.
        customer: Customer context (empty when not known).
        context: Conversation signals (empty when not known).

    Returns:
        PVSResult with score, factor breakdown, multiplier and dominant factor.
    """
    customer = customer or CustomerContext()
    context = context or ContextSignals()

    factors = calculate_factors(job, customer, context)
    pvs_score = combine_factors(factors)
    dominant = dominant_factor(factors)
    multiplier = pvs_to_multiplier(pvs_score)

    logger.debug(
        "pvs_calculated",
        pvs_score=pvs_score,
        value_multiplier=multiplier,
        dominant_factor=dominant.value,
        factors=factors.as_dict()
    )

    return PVSResult(
        pvs_score=pvs_score,
        factors=factors,
        value_multiplier=multiplier,
        dominant_factor=dominant,
    )
