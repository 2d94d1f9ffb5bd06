"""Pricing configuration for ValueQuote.

PricingConfig is an immutable snapshot of the rate table used by the cost
estimator and the value-anchored pricing path. The process-wide store swaps
whole snapshots under a lock; engine functions take an explicit config and
only fall back to the store's current snapshot when none is passed.

Persisted records (admin settings screen) store money in pence and the rate
tables as multipliers (1 + modifier). from_record/to_record convert between
the two shapes.
"""

import threading
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic import ValidationError as PydanticValidationError

from config.errors import ConfigurationError

logger = structlog.get_logger(__name__)


# =============================================================================
# FALLBACK CONSTANTS
# =============================================================================
# Used for built-in defaults and for any field absent from a persisted record.

FALLBACK_BASE_RATE = 78.0
FALLBACK_CALLOUT_FEE = 25.0
FALLBACK_URGENCY_MODIFIERS: Dict[str, float] = {
    "low": -0.1,       # 10% discount
    "medium": 0.0,     # baseline
    "high": 0.3,       # 30% premium
    "emergency": 0.8,  # 80% premium
}
FALLBACK_COMPLEXITY_MODIFIERS: Dict[str, float] = {
    "simple": -0.2,
    "moderate": 0.0,
    "complex": 0.4,
    "very_complex": 1.0,
}
FALLBACK_MATERIAL_MARKUP = 0.15
FALLBACK_MINIMUM_CHARGE = 50.0
FALLBACK_MAX_DAILY_HOURS = 8.0

# Customer-facing urgency tags -> rate table keys
URGENCY_RATE_KEYS: Dict[str, str] = {
    "low": "low",
    "normal": "medium",
    "medium": "medium",
    "high": "high",
    "emergency": "emergency",
}

_NESTED_TABLES = ("urgency_modifiers", "complexity_modifiers")


def _tag_value(tag: Any) -> Optional[str]:
    """Normalize an enum member or raw string tag to its string value."""
    if tag is None:
        return None
    return str(getattr(tag, "value", tag))


class PricingConfig(BaseModel):
    """Immutable rate table for cost-plus and value-anchored pricing."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    base_rate: float = Field(default=FALLBACK_BASE_RATE, description="Hourly labour rate (GBP)")
    callout_fee: float = Field(default=FALLBACK_CALLOUT_FEE, description="Flat fee charged once per visit")
    urgency_modifiers: Mapping[str, float] = Field(
        default_factory=lambda: dict(FALLBACK_URGENCY_MODIFIERS),
        description="Additive rate modifier per urgency key"
    )
    complexity_modifiers: Mapping[str, float] = Field(
        default_factory=lambda: dict(FALLBACK_COMPLEXITY_MODIFIERS),
        description="Additive rate modifier per complexity tag"
    )
    material_markup: float = Field(default=FALLBACK_MATERIAL_MARKUP, description="Fractional markup on materials")
    minimum_charge: float = Field(default=FALLBACK_MINIMUM_CHARGE, description="Labour floor per job (GBP)")
    max_daily_hours: float = Field(default=FALLBACK_MAX_DAILY_HOURS, description="Working hours in one day")

    @field_validator(*_NESTED_TABLES)
    @classmethod
    def freeze_table(cls, table: Mapping[str, float]) -> Mapping[str, float]:
        """Wrap a rate table read-only so snapshots cannot be edited in place."""
        return MappingProxyType(dict(table))

    @field_serializer(*_NESTED_TABLES)
    def dump_table(self, table: Mapping[str, float]) -> Dict[str, float]:
        return dict(table)

    def urgency_modifier(self, urgency: Any) -> float:
        """Rate modifier for an urgency tag; unknown tags are neutral."""
        key = URGENCY_RATE_KEYS.get(_tag_value(urgency) or "", _tag_value(urgency))
        return self.urgency_modifiers.get(key, 0.0) if key else 0.0

    def complexity_modifier(self, complexity: Any) -> float:
        """Rate modifier for a complexity tag; unknown tags are neutral."""
        key = _tag_value(complexity)
        return self.complexity_modifiers.get(key, 0.0) if key else 0.0

    def merged(self, updates: Optional[Mapping[str, Any]]) -> "PricingConfig":
        """Return a new config with top-level fields replaced and nested tables merged.

        Args:
            updates: Partial config, keyed by field name.

        Returns:
            New PricingConfig; self is left untouched.

        Raises:
            ConfigurationError: If the merged values do not form a valid config.
        """
        data = self.model_dump()
        for key, value in (updates or {}).items():
            if key in _NESTED_TABLES and isinstance(value, Mapping):
                data[key] = {**data[key], **value}
            else:
                data[key] = value
        return _build_config(data)

    def rate_multipliers(self) -> Dict[str, Dict[str, float]]:
        """Legacy multiplier view of the rate tables (1 + modifier)."""
        return {
            "urgency": {k: round(1 + v, 6) for k, v in self.urgency_modifiers.items()},
            "complexity": {k: round(1 + v, 6) for k, v in self.complexity_modifiers.items()},
        }

    @classmethod
    def from_record(cls, record: Optional[Mapping[str, Any]]) -> "PricingConfig":
        """Build a config from a persisted settings record.

        Each field absent from the record (missing or null) falls back to its
        FALLBACK_* constant on its own; a present zero is kept.

        Args:
            record: Persisted record (money in pence, rate tables as multipliers).

        Returns:
            PricingConfig in pounds with additive modifiers.
        """
        record = record or {}
        data = {
            "base_rate": _pence_to_pounds(record.get("hourlyRate"), FALLBACK_BASE_RATE),
            "callout_fee": _pence_to_pounds(record.get("calloutFee"), FALLBACK_CALLOUT_FEE),
            "urgency_modifiers": _multipliers_to_modifiers(
                record.get("urgencyMultipliers"), FALLBACK_URGENCY_MODIFIERS
            ),
            "complexity_modifiers": _multipliers_to_modifiers(
                record.get("complexityMultipliers"), FALLBACK_COMPLEXITY_MODIFIERS
            ),
            "material_markup": _or_fallback(record.get("materialMarkup"), FALLBACK_MATERIAL_MARKUP),
            "minimum_charge": _pence_to_pounds(record.get("minimumCharge"), FALLBACK_MINIMUM_CHARGE),
            "max_daily_hours": _or_fallback(record.get("maximumHours"), FALLBACK_MAX_DAILY_HOURS),
        }
        return _build_config(data)

    def to_record(self) -> Dict[str, Any]:
        """Convert to the persisted record shape (inverse of from_record)."""
        multipliers = self.rate_multipliers()
        return {
            "hourlyRate": round(self.base_rate * 100),
            "calloutFee": round(self.callout_fee * 100),
            "urgencyMultipliers": multipliers["urgency"],
            "complexityMultipliers": multipliers["complexity"],
            "materialMarkup": self.material_markup,
            "minimumCharge": round(self.minimum_charge * 100),
            "maximumHours": self.max_daily_hours,
        }


def _build_config(data: Dict[str, Any]) -> PricingConfig:
    try:
        return PricingConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigurationError(
            message=f"Invalid pricing configuration: {e.error_count()} error(s)",
            details={"errors": e.errors(include_url=False)}
        )


def _or_fallback(value: Any, fallback: float) -> float:
    return fallback if value is None else value


def _pence_to_pounds(value: Any, fallback: float) -> float:
    return fallback if value is None else value / 100


def _multipliers_to_modifiers(
    table: Optional[Mapping[str, Any]],
    fallback: Mapping[str, float]
) -> Dict[str, float]:
    table = table or {}
    modifiers = dict(fallback)
    for key, multiplier in table.items():
        if multiplier is not None:
            modifiers[key] = round(multiplier - 1, 6)
    return modifiers


# =============================================================================
# PROCESS-WIDE STORE
# =============================================================================


class PricingConfigStore:
    """Holds the current PricingConfig snapshot.

    Reads return the current immutable snapshot. Writers build a new snapshot
    and swap it in under a lock, so concurrent updates never interleave.
    """

    def __init__(self, initial: Optional[PricingConfig] = None):
        self._lock = threading.Lock()
        self._config = initial or PricingConfig()

    def get(self) -> PricingConfig:
        """Current configuration snapshot."""
        return self._config

    def update(self, updates: Mapping[str, Any]) -> PricingConfig:
        """Merge a partial update (nested tables key-by-key) and swap it in."""
        with self._lock:
            self._config = self._config.merged(updates)
            config = self._config

        logger.info(
            "pricing_config_updated",
            fields=sorted(updates.keys()),
            base_rate=config.base_rate,
            minimum_charge=config.minimum_charge
        )
        return config

    def sync_from_record(self, record: Optional[Mapping[str, Any]]) -> PricingConfig:
        """Replace the snapshot with one built from a persisted record."""
        config = PricingConfig.from_record(record)
        with self._lock:
            self._config = config

        logger.info(
            "pricing_config_synced",
            minimum_charge=config.minimum_charge,
            base_rate=config.base_rate,
            missing_fields=sorted(
                key for key in (
                    "hourlyRate", "calloutFee", "urgencyMultipliers", "complexityMultipliers",
                    "materialMarkup", "minimumCharge", "maximumHours"
                )
                if (record or {}).get(key) is None
            )
        )
        return config

    def reset(self) -> PricingConfig:
        """Restore the built-in defaults."""
        with self._lock:
            self._config = PricingConfig()
        return self._config


# Module-level default store
pricing_config_store = PricingConfigStore()


def get_pricing_config() -> PricingConfig:
    """Get the current process-wide configuration snapshot."""
    return pricing_config_store.get()


def update_pricing_config(updates: Mapping[str, Any]) -> PricingConfig:
    """Apply a partial update to the process-wide configuration."""
    return pricing_config_store.update(updates)


def sync_config_from_record(record: Optional[Mapping[str, Any]]) -> PricingConfig:
    """Synchronize the process-wide configuration from a persisted record."""
    return pricing_config_store.sync_from_record(record)


def resolve_config(config: Optional[PricingConfig] = None) -> PricingConfig:
    """Use the explicit config when given, else one snapshot of the store."""
    return config if config is not None else pricing_config_store.get()
