"""Personalised tier feature copy for ValueQuote.

Asks the LLM for outcome-focused bullet points for the mid (Hassle-Free)
and premium (High Standard) tiers. Generation is best-effort: any failure
falls back to fixed copy so a quote can always be presented.
"""

from typing import Dict, List, Optional, Sequence

import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from config.errors import QuoteEngineError
from config.settings import settings
from models.pricing import PersonalizedFeatures
from services.llm_service import LLMService

logger = structlog.get_logger(__name__)


FALLBACK_FEATURES = PersonalizedFeatures(
    enhanced=[
        "Premium materials upgrade",
        "Extended completion guarantee",
        "Detailed quality check",
    ],
    elite=[
        "Top-tier materials selection",
        "White-glove service experience",
        "Lifetime consultation access",
        "VIP priority scheduling",
    ],
)

VALUE_OPPORTUNITY_LABELS: Dict[str, str] = {
    "visual": "Visual improvement (paint, finish, alignment, appearance)",
    "speed": "Speed and convenience (tidy-up, less hassle, efficient process)",
    "durability": "Longevity and durability (better materials, longer-lasting fix)",
    "smart": "Smart or functional upgrade (dimmer, shelving, insulation)",
    "comfort": "Home comfort and lifestyle value (easier to use, looks premium)",
    "peace": "Peace of mind (extra protection, guarantee extension)",
    "addon": "Add-on opportunity (something nearby could be improved too)",
}

EMOTIONAL_ANGLE_LABELS: Dict[str, str] = {
    "looks-brand-new": "Looks brand new again",
    "feels-effortless": "Feels effortless and premium",
    "future-proof": "Future-proof and worry-free",
    "adds-value": "Adds value to their home",
    "proud-to-show": "They'll be proud to show it off",
}

SYSTEM_PROMPT = (
    "You write specific, personalised service features for a handyman "
    "business, based on job details and the customer's value priorities."
)

USER_PROMPT_TEMPLATE = """Write outcome-focused deliverables for two package tiers of a handyman quote.

Job: {job_summary}
Tasks: {tasks}

Value opportunities: {opportunities}
Emotional outcome: {emotion}

1. "enhanced" (Hassle-Free, mid tier): 3-4 outcomes matching the value opportunities.
2. "elite" (High Standard, premium tier): 4-5 outcomes combining the value
   opportunities with the emotional outcome.

Rules:
- Describe the end result the customer gets, not the work we do
  (e.g. "Drip-free tap with smooth operation", not "Replace tap washer")
- Under 10 words per feature
- Specific to this job, no generic platitudes
- No booking or scheduling promises; those are shown separately

Respond as: {{"enhanced": ["..."], "elite": ["..."]}}"""


class FeatureCopyResponse(BaseModel):
    """Expected shape of the LLM reply."""

    enhanced: List[str] = Field(..., min_length=1)
    elite: List[str] = Field(..., min_length=1)


def build_feature_prompt(
    job_summary: str,
    value_opportunities: Sequence[str],
    emotional_angle: Optional[str],
    tasks: Sequence[str]
) -> str:
    """Fill the user prompt; unknown opportunity or angle keys are skipped."""
    opportunities = ", ".join(
        VALUE_OPPORTUNITY_LABELS[key] for key in value_opportunities if key in VALUE_OPPORTUNITY_LABELS
    )
    emotion = EMOTIONAL_ANGLE_LABELS.get(emotional_angle or "", "")

    return USER_PROMPT_TEMPLATE.format(
        job_summary=job_summary,
        tasks=", ".join(tasks) or "Not itemised",
        opportunities=opportunities or "None specified",
        emotion=emotion or "None specified",
    )


class FeatureCopyService:
    """Generates mid and premium tier features, falling back to fixed copy."""

    def __init__(self, llm_service: Optional[LLMService] = None):
        self.llm_service = llm_service or LLMService()

    async def generate_personalized_features(
        self,
        job_summary: str,
        value_opportunities: Sequence[str],
        emotional_angle: Optional[str],
        tasks: Sequence[str]
    ) -> PersonalizedFeatures:
        """Generate feature copy for the mid and premium tiers.

        Args:
            job_summary: One-line description of the job.
            value_opportunities: Keys from VALUE_OPPORTUNITY_LABELS.
            emotional_angle: Key from EMOTIONAL_ANGLE_LABELS, if any.
            tasks: Task descriptions.

        Returns:
            PersonalizedFeatures; FALLBACK_FEATURES when copy generation is
            disabled, the LLM call fails, or the reply has the wrong shape.
        """
        if not settings.feature_copy_enabled or not self.llm_service.api_key:
            logger.info("feature_copy_fallback", reason="disabled")
            return FALLBACK_FEATURES.model_copy(deep=True)

        prompt = build_feature_prompt(job_summary, value_opportunities, emotional_angle, tasks)

        try:
            result = await self.llm_service.generate_json(
                system_prompt=SYSTEM_PROMPT,
                user_message=prompt
            )
            response = FeatureCopyResponse.model_validate(result["content"])
        except QuoteEngineError as e:
            logger.warning("feature_copy_fallback", reason="llm_error", code=e.code, error=e.message)
            return FALLBACK_FEATURES.model_copy(deep=True)
        except PydanticValidationError as e:
            logger.warning("feature_copy_fallback", reason="invalid_shape", errors=e.error_count())
            return FALLBACK_FEATURES.model_copy(deep=True)

        logger.info(
            "feature_copy_generated",
            enhanced_count=len(response.enhanced),
            elite_count=len(response.elite),
            tokens_used=result["tokens_used"]
        )

        return PersonalizedFeatures(enhanced=response.enhanced, elite=response.elite)
