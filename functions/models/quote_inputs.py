"""Quote input Pydantic models for ValueQuote.

This module defines the per-request records handed to the pricing engine:
the jobs being quoted, the customer, and the signals picked up from the
conversation. They are transient and never persisted by the engine.

Categorical fields are enums, but values outside the enum are coerced to
None instead of failing validation; the engine treats None as neutral.
"""

from enum import Enum
from typing import Any, Optional, Type

import structlog
from pydantic import BaseModel, Field, ValidationInfo, field_validator

logger = structlog.get_logger(__name__)


# =============================================================================
# ENUMS
# =============================================================================


class Complexity(str, Enum):
    """How involved the work is."""

    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    VERY_COMPLEX = "very_complex"


class JobCategory(str, Enum):
    """Manually classified or AI-derived job category."""

    SAFETY = "safety"
    VISUAL = "visual"
    COMFORT = "comfort"
    FUNCTIONAL = "functional"


class ClientType(str, Enum):
    """Who is paying for the work."""

    HOMEOWNER = "homeowner"
    LANDLORD = "landlord"
    TENANT = "tenant"


class PropertyType(str, Enum):
    """Type of property the work is in."""

    HOUSE = "house"
    FLAT = "flat"
    HMO = "HMO"
    COMMERCIAL = "commercial"


class RoomType(str, Enum):
    """Room the work is in."""

    BATHROOM = "bathroom"
    KITCHEN = "kitchen"
    LIVING = "living"
    BEDROOM = "bedroom"
    HALLWAY = "hallway"
    EXTERIOR = "exterior"
    OTHER = "other"


class TimingPreference(str, Enum):
    """When the customer would like the visit."""

    WEEKDAY = "weekday"
    EVENING = "evening"
    WEEKEND = "weekend"
    ANY = "any"


class Urgency(str, Enum):
    """How urgent the customer says the job is."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    EMERGENCY = "emergency"


class Motivation(str, Enum):
    """Why the customer wants the work done."""

    FUNCTIONAL = "functional"
    AESTHETIC = "aesthetic"
    SAFETY = "safety"
    COMFORT = "comfort"
    RESALE = "resale"


class NarrativeTone(str, Enum):
    """Tone of the customer's description of the problem."""

    NEUTRAL = "neutral"
    FRUSTRATED = "frustrated"
    WORRIED = "worried"
    PARTICULAR = "particular"


def coerce_tag(enum_cls: Type[Enum], value: Any, field_name: str = "") -> Optional[Enum]:
    """Map a raw tag onto enum_cls, or None when it is not recognised.

    Matching is case-insensitive so "hmo" and "HMO" both resolve.
    """
    if value is None or isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        wanted = value.strip().casefold()
        for member in enum_cls:
            if member.value.casefold() == wanted:
                return member

    logger.debug("unknown_tag_ignored", field=field_name, value=str(value))
    return None


class TaggedModel(BaseModel):
    """Base for records whose enum fields fall back to None."""

    @field_validator("*", mode="before")
    @classmethod
    def coerce_unknown_tags(cls, value: Any, info: ValidationInfo) -> Any:
        field_info = cls.model_fields.get(info.field_name)
        enum_cls = _enum_type(field_info.annotation) if field_info else None
        if enum_cls is None:
            return value
        return coerce_tag(enum_cls, value, info.field_name)


def _enum_type(annotation: Any) -> Optional[Type[Enum]]:
    """Extract the Enum class from Optional[SomeEnum] or SomeEnum."""
    candidates = getattr(annotation, "__args__", None) or (annotation,)
    for candidate in candidates:
        if isinstance(candidate, type) and issubclass(candidate, Enum):
            return candidate
    return None


# =============================================================================
# INPUT RECORDS
# =============================================================================


class JobInput(TaggedModel):
    """A single piece of requested work."""

    description: str = Field(default="", description="Free-text description of the work")
    job_type: Optional[str] = Field(default=None, description="Free label, e.g. 'plumbing'")
    estimated_hours: Optional[float] = Field(default=None, description="Estimated labour hours")
    complexity: Optional[Complexity] = Field(default=None, description="Complexity tag")
    materials_cost: float = Field(default=0.0, description="Materials cost before markup (GBP)")
    visual_upgrade: bool = Field(default=False, description="Work visibly upgrades the space")
    category: Optional[JobCategory] = Field(default=None, description="Job category tag")

    @property
    def is_safety(self) -> bool:
        """Tagged as a safety job."""
        return self.category == JobCategory.SAFETY


class CustomerContext(TaggedModel):
    """Who the customer is and where the work happens."""

    client_type: Optional[ClientType] = None
    postcode: Optional[str] = None
    property_type: Optional[PropertyType] = None
    room_type: Optional[RoomType] = None
    timing_preference: Optional[TimingPreference] = None


class ContextSignals(TaggedModel):
    """Signals picked up from the call or message thread."""

    urgency: Optional[Urgency] = None
    motivation: Optional[Motivation] = None
    past_let_down: bool = False
    guests_soon: bool = False
    narrative_tone: Optional[NarrativeTone] = None
