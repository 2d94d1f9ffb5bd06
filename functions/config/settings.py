"""ValueQuote runtime settings.

Loads configuration from environment variables with sensible defaults.
Pricing figures are not settings; they live in config.pricing_config.
"""

import os
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env file for local overrides (LLM model, feature flags, etc.)
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    """Read a boolean flag from the environment."""
    return os.getenv(name, default).lower() == "true"


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    # LLM Configuration (feature copy collaborator)
    llm_model: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "gpt-4o"))
    llm_temperature: float = field(default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.7")))
    openai_api_key: Optional[str] = field(default_factory=lambda: os.getenv("OPENAI_API_KEY"), repr=False)
    feature_copy_enabled: bool = field(default_factory=lambda: _env_flag("FEATURE_COPY_ENABLED", "true"))

    # Presentation
    currency_symbol: str = field(default_factory=lambda: os.getenv("CURRENCY_SYMBOL", "£"))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    verbose_quote_logging: bool = field(default_factory=lambda: _env_flag("VERBOSE_QUOTE_LOGGING", "false"))


# Singleton settings instance
settings = Settings()
