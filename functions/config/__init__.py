"""ValueQuote configuration.

This package contains:
- settings: Environment variables and runtime flags
- pricing_config: Immutable pricing rate table and its process-wide store
- errors: Custom exceptions and error codes
"""

from config.settings import settings
from config.errors import QuoteEngineError, ValidationError, ConfigurationError
from config.pricing_config import (
    PricingConfig,
    PricingConfigStore,
    get_pricing_config,
    update_pricing_config,
    sync_config_from_record,
)

__all__ = [
    "settings",
    "QuoteEngineError",
    "ValidationError",
    "ConfigurationError",
    "PricingConfig",
    "PricingConfigStore",
    "get_pricing_config",
    "update_pricing_config",
    "sync_config_from_record",
]
