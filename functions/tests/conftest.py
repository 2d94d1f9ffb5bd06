"""Pytest configuration and shared fixtures for ValueQuote tests."""

import os
import sys
import pytest
from unittest.mock import AsyncMock, MagicMock, patch


# ============================================================================
# Ensure local imports work (config/, models/, services/, utils/)
# ============================================================================
#
# The codebase uses absolute imports like `from models...` / `from services...`,
# so `functions/` must be importable as the top-level module root.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


# ============================================================================
# Pricing Config
# ============================================================================

@pytest.fixture(autouse=True)
def reset_pricing_config():
    """Every test starts and ends with the built-in rate table."""
    from config.pricing_config import pricing_config_store

    pricing_config_store.reset()
    yield pricing_config_store
    pricing_config_store.reset()


@pytest.fixture
def default_config():
    """Fresh default PricingConfig."""
    from config.pricing_config import PricingConfig

    return PricingConfig()


# ============================================================================
# LLM Mocks
# ============================================================================

@pytest.fixture
def mock_chat_openai():
    """Mock ChatOpenAI client."""
    mock = AsyncMock()
    mock.ainvoke.return_value = MagicMock(
        content="Mock response content",
        response_metadata={"token_usage": {"total_tokens": 100}}
    )
    return mock


@pytest.fixture
def mock_llm_service(mock_chat_openai):
    """LLMService wired to the mocked ChatOpenAI client."""
    from services.llm_service import LLMService

    with patch('services.llm_service.ChatOpenAI', return_value=mock_chat_openai):
        service = LLMService(api_key="test-api-key")
        service._client = mock_chat_openai
        return service


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def leaking_tap_job():
    """Safety job: a leaking kitchen tap."""
    from models.quote_inputs import JobInput

    return JobInput(
        description="leaking kitchen tap",
        category="safety",
        estimated_hours=1,
        materials_cost=0,
    )


@pytest.fixture
def homeowner_house():
    """Homeowner in a house, no postcode."""
    from models.quote_inputs import CustomerContext

    return CustomerContext(client_type="homeowner", property_type="house")


@pytest.fixture
def urgent_safety_context():
    """High urgency, safety-motivated customer."""
    from models.quote_inputs import ContextSignals

    return ContextSignals(urgency="high", motivation="safety")


@pytest.fixture
def small_job():
    """Half an hour of low-value work."""
    from models.quote_inputs import JobInput

    return JobInput(description="Hang a picture", estimated_hours=0.5)


@pytest.fixture
def sample_config_record():
    """Persisted pricing record (pence and multipliers) with gaps."""
    return {
        "hourlyRate": 6000,
        "calloutFee": None,
        "urgencyMultipliers": {"high": 1.5},
        "minimumCharge": 0,
    }


# ============================================================================
# Environment Setup
# ============================================================================

@pytest.fixture(autouse=True)
def mock_settings():
    """Pin runtime settings for all tests."""
    from config.settings import settings

    with patch.object(settings, "openai_api_key", "test-api-key"), \
            patch.object(settings, "llm_model", "gpt-4o"), \
            patch.object(settings, "llm_temperature", 0.1), \
            patch.object(settings, "feature_copy_enabled", True), \
            patch.object(settings, "currency_symbol", "£"), \
            patch.object(settings, "verbose_quote_logging", False), \
            patch.object(settings, "log_level", "INFO"):
        yield settings
