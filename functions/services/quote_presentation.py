"""Quote presentation for ValueQuote.

Turns priced tiers into customer-facing copy: per-tier feature lists, a
plain-text message ready to paste into a chat, and the package cards shown
on the quote page. Nothing here changes a price.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from config.settings import settings
from models.pricing import PersonalizedFeatures, TierName, TierPackage, TierPrices


@dataclass(frozen=True)
class TierDisplay:
    """Customer-facing naming for one tier."""

    name: str
    warranty_months: int
    description: str


TIER_DISPLAY: Dict[TierName, TierDisplay] = {
    TierName.ENTRY: TierDisplay(
        name="Handy Fix",
        warranty_months=3,
        description="Available slots from 14 days onward • 3-month warranty",
    ),
    TierName.MID: TierDisplay(
        name="Hassle-Free",
        warranty_months=12,
        description="Get booked within 7 days (Most Popular) • Everything in Handy Fix +",
    ),
    TierName.PREMIUM: TierDisplay(
        name="High Standard",
        warranty_months=36,
        description="Next-day slots available (limited) • Everything in Hassle-Free +",
    ),
}

FIXED_VALUE_BULLETS: Dict[TierName, List[str]] = {
    TierName.ENTRY: [
        "Fix carried out quickly",
        "Area tidied and swept clean",
    ],
    TierName.MID: [
        "Higher-strength fixing method",
        "Neater finish with attention to detail",
        "6-month workmanship guarantee",
    ],
    TierName.PREMIUM: [
        "Premium strength materials and methods",
        "Millimetre-precision alignment and finish",
        "Priority booking included",
        "12-month extended guarantee",
    ],
}

ENTRY_SERVICE_GUARANTEES = [
    "Turn up on time guarantee",
    "Clean up and leave tidy guarantee",
]
ENTRY_TASKS_SHOWN = 3

MESSAGE_SEPARATOR = "━" * 19
EMPTY_JOB_TOP_LINE = "Job completed professionally"


def generate_job_top_line(tasks: Sequence[str]) -> str:
    """Summarise the task list in one line."""
    if not tasks:
        return EMPTY_JOB_TOP_LINE
    if len(tasks) == 1:
        return tasks[0]
    if len(tasks) == 2:
        return f"{tasks[0]} and {tasks[1].lower()}"

    remaining = len(tasks) - 1
    return f"{tasks[0]} + {remaining} more task{'s' if remaining > 1 else ''}"


def get_tier_features(tier: TierName, tasks: Sequence[str]) -> List[str]:
    """Job top line followed by the tier's fixed bullets."""
    return [generate_job_top_line(tasks), *FIXED_VALUE_BULLETS[tier]]


def format_price(price: float) -> str:
    """Whole-unit price with the configured currency symbol, e.g. £149."""
    return f"{settings.currency_symbol}{price:.0f}"


def _tier_heading(tier: TierName, price: int) -> str:
    heading = f"*{TIER_DISPLAY[tier].name.upper()}* - {format_price(price)}"
    if tier == TierName.MID:
        heading += " ⭐ Most Popular"
    return heading


def generate_quote_message(customer_name: str, tasks: Sequence[str], pricing: TierPrices) -> str:
    """Build the plain-text quote message for all three tiers.

    Args:
        customer_name: Name used in the greeting.
        tasks: Task descriptions, in the order the customer gave them.
        pricing: Tier prices to quote.

    Returns:
        Message text with a greeting, three tier sections between
        separators, and booking instructions.
    """
    entry, mid, premium = TierName.ENTRY, TierName.MID, TierName.PREMIUM

    entry_lines = [
        _tier_heading(entry, pricing.entry),
        *(f"• {bullet}" for bullet in FIXED_VALUE_BULLETS[entry]),
        f"• {TIER_DISPLAY[entry].warranty_months}-month guarantee",
    ]
    mid_lines = [
        _tier_heading(mid, pricing.mid),
        f"• Everything in {TIER_DISPLAY[entry].name} PLUS:",
        *(f"• {bullet}" for bullet in FIXED_VALUE_BULLETS[mid]),
    ]
    premium_lines = [
        _tier_heading(premium, pricing.premium),
        f"• Everything in {TIER_DISPLAY[mid].name} PLUS:",
        *(f"• {bullet}" for bullet in FIXED_VALUE_BULLETS[premium]),
    ]
    booking_options = ", ".join(f'"{TIER_DISPLAY[tier].name}"' for tier in (entry, mid))
    booking_options += f', or "{TIER_DISPLAY[premium].name}"'

    sections = [
        f"Hi {customer_name},",
        "Thanks for getting in touch. Here are three ways we can help with your job:",
        generate_job_top_line(tasks),
        MESSAGE_SEPARATOR,
        "\n".join(entry_lines),
        "\n".join(mid_lines),
        "\n".join(premium_lines),
        MESSAGE_SEPARATOR,
        f"To book, simply reply with:\n{booking_options}",
        "Any questions? Just ask!",
    ]
    return "\n\n".join(sections)


def build_tier_packages(
    tiers: TierPrices,
    tasks: Sequence[str],
    personalized: Optional[PersonalizedFeatures] = None
) -> List[TierPackage]:
    """Build the three package cards for the quote page.

    The entry card lists the first few tasks and the service guarantees.
    Mid and premium cards carry only generated copy, and are empty when
    none was produced.
    """
    entry_features = [*tasks[:ENTRY_TASKS_SHOWN], *ENTRY_SERVICE_GUARANTEES]
    if len(tasks) > ENTRY_TASKS_SHOWN:
        entry_features.append(f"+ {len(tasks) - ENTRY_TASKS_SHOWN} more tasks included")

    features = {
        TierName.ENTRY: entry_features,
        TierName.MID: list(personalized.enhanced) if personalized else [],
        TierName.PREMIUM: list(personalized.elite) if personalized else [],
    }

    return [
        TierPackage(
            tier=tier,
            name=display.name,
            price=tiers.get(tier),
            warranty_months=display.warranty_months,
            description=display.description,
            features=features[tier],
            is_popular=tier == TierName.MID,
            has_aftercare=tier == TierName.PREMIUM,
        )
        for tier, display in TIER_DISPLAY.items()
    ]
