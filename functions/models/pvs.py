"""Perceived Value Score models for ValueQuote."""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from models.quote_inputs import JobInput


class PVSFactorName(str, Enum):
    """The six perceived-value factors."""

    RISK_AVOIDED = "risk_avoided"
    VISUAL_IMPACT = "visual_impact"
    COMFORT_GAIN = "comfort_gain"
    URGENCY_SIGNAL = "urgency_signal"
    TRUST_PREMIUM = "trust_premium"
    PROPERTY_VALUE_INDEX = "property_value_index"


class PVSFactors(BaseModel):
    """Six sub-scores, each held in [0, 100]."""

    risk_avoided: float = 0
    visual_impact: float = 0
    comfort_gain: float = 0
    urgency_signal: float = 0
    trust_premium: float = 0
    property_value_index: float = 0

    @field_validator("*")
    @classmethod
    def clamp_score(cls, v: float) -> float:
        """Clamp every sub-score into [0, 100]."""
        return max(0.0, min(100.0, float(v)))

    def get(self, factor: PVSFactorName) -> float:
        """Sub-score for a factor name."""
        return getattr(self, factor.value)

    def as_dict(self) -> Dict[str, float]:
        """Sub-scores keyed by factor name."""
        return self.model_dump()


class PVSResult(BaseModel):
    """Combined perceived-value score for a job (or the dominant job of several)."""

    pvs_score: int = Field(..., ge=0, le=100, description="Weighted 0-100 score")
    factors: PVSFactors
    value_multiplier: float = Field(..., description="Step multiplier, 1.0 to 2.0")
    dominant_factor: PVSFactorName = Field(..., description="Sub-score that drove the result")
    dominant_job: Optional[JobInput] = Field(default=None, description="Selected job (multi-job only)")
    dominant_job_index: Optional[int] = Field(default=None, description="Input position of dominant_job")
