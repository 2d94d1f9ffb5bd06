"""Pricing result Pydantic models for ValueQuote.

Cost breakdowns keep full float precision in pounds; tier prices are the
customer-facing whole-pound figures ending in 9.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel, Field, field_validator, model_validator

from models.pvs import PVSResult
from models.quote_inputs import TaggedModel

logger = structlog.get_logger(__name__)


# =============================================================================
# ENUMS
# =============================================================================


class TierName(str, Enum):
    """The three presented price points."""

    ENTRY = "entry"       # Handy Fix
    MID = "mid"           # Hassle-Free
    PREMIUM = "premium"   # High Standard


class QuoteMode(str, Enum):
    """How the quote is presented."""

    SIMPLE = "simple"   # single flat price
    TIERED = "tiered"   # three tiers


class MaterialsResponsibility(str, Enum):
    """Who sources materials for a structured quote."""

    US = "us"
    CLIENT = "client"
    MIXED = "mixed"


class StructuredUrgency(str, Enum):
    """Booking urgency for a structured quote."""

    SAME_DAY = "same_day"
    NEXT_DAY = "next_day"
    FLEXIBLE = "flexible"


class Persona(str, Enum):
    """Customer persona captured on the structured quote form."""

    PRICE = "price"
    HOMEOWNER = "homeowner"
    LANDLORD = "landlord"


# =============================================================================
# COST BREAKDOWNS
# =============================================================================


class RateAdjustments(BaseModel):
    """Labour cost split into base hours and each modifier's share."""

    base_hours_cost: float
    urgency_adjustment: float
    complexity_adjustment: float


class JobCostBreakdown(BaseModel):
    """Cost-plus calculation for a single job."""

    labor_cost: float = Field(..., description="max(hours x adjusted rate, minimum charge)")
    materials_cost: float = Field(..., description="Materials including markup")
    callout_fee: float
    subtotal: float = Field(..., description="Labour + marked-up materials")
    total: int = Field(..., description="Subtotal + callout, psychologically rounded")
    base_rate: float
    urgency_modifier: float
    complexity_modifier: float
    adjusted_rate: float
    breakdown: RateAdjustments


class AggregateCostBreakdown(BaseModel):
    """Shared cost basis for one visit covering one or more jobs."""

    total_labor_cost: float
    total_materials_cost: float
    callout_fee: float = Field(..., description="Charged once per visit")
    subtotal: float
    total_base_cost: float = Field(..., description="Subtotal + one callout fee")
    job_base_costs: List[float] = Field(
        default_factory=list, description="Per-job labour + materials, in input order"
    )


# =============================================================================
# TIER PRICES
# =============================================================================


class TierPrices(BaseModel):
    """Entry / mid / premium prices in whole pounds."""

    entry: int = Field(..., gt=0)
    mid: int = Field(..., gt=0)
    premium: int = Field(..., gt=0)

    @model_validator(mode="after")
    def validate_order(self) -> "TierPrices":
        """Ensure entry <= mid <= premium."""
        if not (self.entry <= self.mid <= self.premium):
            raise ValueError(
                f"Tier prices must be entry <= mid <= premium, got: "
                f"entry={self.entry}, mid={self.mid}, premium={self.premium}"
            )
        return self

    def get(self, tier: TierName) -> int:
        """Price for a tier."""
        return getattr(self, tier.value)

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary for JSON serialization."""
        return {
            "entry": self.entry,
            "mid": self.mid,
            "premium": self.premium
        }


class ValueAnchoredQuote(BaseModel):
    """Result of the scoring path: PVS, cost basis, and tier prices."""

    pvs: PVSResult
    cost_basis: AggregateCostBreakdown
    anchor_price: float = Field(..., description="Cost basis x value multiplier, unrounded")
    quote_mode: QuoteMode
    tiers: TierPrices = Field(..., description="Always computed, shown in tiered mode")
    simple_quote: Optional[int] = Field(default=None, description="Flat price in simple mode")

    @property
    def pvs_score(self) -> int:
        return self.pvs.pvs_score

    @property
    def value_multiplier(self) -> float:
        return self.pvs.value_multiplier


# =============================================================================
# STRUCTURED (H/HH/HHH) MODEL
# =============================================================================


class StructuredQuoteInputs(TaggedModel):
    """Categorical inputs for the structured base-price model."""

    tasks: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list, description="e.g. plumbing, carpentry")
    substrates: List[str] = Field(default_factory=list, description="e.g. plasterboard, tile")
    materials_by: Optional[MaterialsResponsibility] = None
    urgency: Optional[StructuredUrgency] = StructuredUrgency.FLEXIBLE
    persona: Optional[Persona] = None
    risk: Optional[int] = Field(default=1, description="1 = low, 2 = medium, 3 = high")
    total_estimated_hours: Optional[float] = None

    @field_validator("risk", mode="before")
    @classmethod
    def coerce_risk_level(cls, value: Any) -> Optional[int]:
        """Whole-number levels pass through; anything else prices as neutral."""
        level = value
        if isinstance(value, str) and value.strip().isdigit():
            level = int(value)
        elif isinstance(value, float) and value.is_integer():
            level = int(value)

        if isinstance(level, int) and not isinstance(level, bool):
            return level
        if value is not None:
            logger.debug("unknown_tag_ignored", field="risk", value=str(value))
        return None


class StructuredBaseBreakdown(BaseModel):
    """Base price and the multipliers that produced it."""

    hours: float
    labor_and_callout: float
    category_multiplier: float
    multi_category_bonus: float
    risk_multiplier: float
    substrate_multiplier: float
    materials_multiplier: float
    base_price: float = Field(..., description="After the absolute minimum, unrounded")


class StructuredTierPricing(BaseModel):
    """Three tiers from the structured model, plus the base they came from."""

    tiers: TierPrices
    base_price: int = Field(..., description="Base price rounded to whole pounds")
    urgency_factor: float
    breakdown: StructuredBaseBreakdown


# =============================================================================
# PRESENTATION
# =============================================================================


class PersonalizedFeatures(BaseModel):
    """Generated feature copy for the mid and premium tiers."""

    enhanced: List[str] = Field(default_factory=list)
    elite: List[str] = Field(default_factory=list)


class TierPackage(BaseModel):
    """A priced tier ready for the quote page."""

    tier: TierName
    name: str
    price: int
    warranty_months: int
    description: str
    features: List[str] = Field(default_factory=list)
    is_popular: bool = False
    has_aftercare: bool = False
