"""
Unit Tests for the pricing configuration.

Tests:
- Built-in defaults and tag lookups
- Immutable snapshots, merged updates with nested tables
- Sync from persisted records with per-field fallback
- Invalid updates raise ConfigurationError and leave the store untouched
"""

import threading

import pytest
from pydantic import ValidationError as PydanticValidationError

from config.errors import ConfigurationError, ErrorCode
from config.pricing_config import (
    FALLBACK_CALLOUT_FEE,
    FALLBACK_URGENCY_MODIFIERS,
    PricingConfig,
    PricingConfigStore,
    get_pricing_config,
    resolve_config,
    sync_config_from_record,
    update_pricing_config,
)
from models.quote_inputs import Complexity, Urgency


class TestPricingConfigDefaults:
    """Tests for the built-in rate table."""

    def test_defaults(self, default_config):
        assert default_config.base_rate == 78.0
        assert default_config.callout_fee == 25.0
        assert default_config.material_markup == 0.15
        assert default_config.minimum_charge == 50.0
        assert default_config.max_daily_hours == 8.0

    def test_normal_urgency_uses_medium_rate(self, default_config):
        assert default_config.urgency_modifier("normal") == 0.0
        assert default_config.urgency_modifier(Urgency.NORMAL) == 0.0

    @pytest.mark.parametrize("tag,expected", [
        (Urgency.LOW, -0.1),
        ("high", 0.3),
        (Urgency.EMERGENCY, 0.8),
        ("bogus", 0.0),
        (None, 0.0),
    ])
    def test_urgency_modifier(self, default_config, tag, expected):
        assert default_config.urgency_modifier(tag) == pytest.approx(expected)

    @pytest.mark.parametrize("tag,expected", [
        (Complexity.SIMPLE, -0.2),
        ("moderate", 0.0),
        (Complexity.VERY_COMPLEX, 1.0),
        ("heroic", 0.0),
        (None, 0.0),
    ])
    def test_complexity_modifier(self, default_config, tag, expected):
        assert default_config.complexity_modifier(tag) == pytest.approx(expected)

    def test_snapshot_is_frozen(self, default_config):
        with pytest.raises(PydanticValidationError):
            default_config.base_rate = 100.0

    @pytest.mark.parametrize("table", ["urgency_modifiers", "complexity_modifiers"])
    def test_rate_tables_are_read_only(self, table):
        with pytest.raises(TypeError):
            getattr(get_pricing_config(), table)["high"] = 5.0

        assert get_pricing_config().urgency_modifiers["high"] == 0.3
        assert "high" not in get_pricing_config().complexity_modifiers

    def test_dump_gives_plain_dicts(self, default_config):
        data = default_config.model_dump()

        assert data["urgency_modifiers"] == FALLBACK_URGENCY_MODIFIERS
        assert type(data["urgency_modifiers"]) is dict

    def test_rate_multipliers(self, default_config):
        multipliers = default_config.rate_multipliers()

        assert multipliers["urgency"]["emergency"] == pytest.approx(1.8)
        assert multipliers["complexity"]["simple"] == pytest.approx(0.8)


class TestMerged:
    """Tests for PricingConfig.merged."""

    def test_top_level_replace(self, default_config):
        updated = default_config.merged({"base_rate": 90})

        assert updated.base_rate == 90
        assert default_config.base_rate == 78.0

    def test_nested_tables_merge_key_by_key(self, default_config):
        updated = default_config.merged({"urgency_modifiers": {"high": 0.5}})

        assert updated.urgency_modifiers["high"] == 0.5
        assert updated.urgency_modifiers["emergency"] == FALLBACK_URGENCY_MODIFIERS["emergency"]
        assert updated.complexity_modifiers == default_config.complexity_modifiers

    def test_invalid_value_raises(self, default_config):
        with pytest.raises(ConfigurationError) as exc_info:
            default_config.merged({"base_rate": "not a number"})

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID

    def test_unknown_field_raises(self, default_config):
        with pytest.raises(ConfigurationError):
            default_config.merged({"vat_rate": 0.2})


class TestFromRecord:
    """Tests for building a config from a persisted record."""

    def test_record_converted_with_fallbacks(self, sample_config_record):
        config = PricingConfig.from_record(sample_config_record)

        assert config.base_rate == 60.0
        assert config.callout_fee == FALLBACK_CALLOUT_FEE
        assert config.urgency_modifiers["high"] == pytest.approx(0.5)
        assert config.urgency_modifiers["emergency"] == pytest.approx(0.8)
        assert config.material_markup == 0.15

    def test_present_zero_is_kept(self, sample_config_record):
        config = PricingConfig.from_record(sample_config_record)

        assert config.minimum_charge == 0.0

    def test_empty_record_gives_defaults(self, default_config):
        assert PricingConfig.from_record(None) == default_config
        assert PricingConfig.from_record({}) == default_config

    def test_to_record_inverts_from_record(self, default_config):
        record = default_config.to_record()

        assert record["hourlyRate"] == 7800
        assert record["minimumCharge"] == 5000
        assert PricingConfig.from_record(record) == default_config


class TestPricingConfigStore:
    """Tests for the process-wide store."""

    def test_update_swaps_snapshot(self):
        store = PricingConfigStore()
        before = store.get()

        after = store.update({"callout_fee": 30})

        assert store.get() is after
        assert after.callout_fee == 30
        assert before.callout_fee == 25.0

    def test_failed_update_keeps_current_snapshot(self):
        store = PricingConfigStore()
        before = store.get()

        with pytest.raises(ConfigurationError):
            store.update({"minimum_charge": "lots"})

        assert store.get() is before

    def test_sync_from_record(self, sample_config_record):
        store = PricingConfigStore()

        config = store.sync_from_record(sample_config_record)

        assert store.get() is config
        assert config.base_rate == 60.0

    def test_reset(self):
        store = PricingConfigStore()
        store.update({"base_rate": 99})

        assert store.reset().base_rate == 78.0

    def test_concurrent_updates_are_not_lost(self):
        store = PricingConfigStore()

        def bump(key):
            store.update({"urgency_modifiers": {key: 0.01}})

        threads = [threading.Thread(target=bump, args=(f"tag_{i}",)) for i in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        modifiers = store.get().urgency_modifiers
        assert all(f"tag_{i}" in modifiers for i in range(20))


class TestModuleHelpers:
    """Tests for the module-level store helpers."""

    def test_update_and_get(self):
        update_pricing_config({"base_rate": 85})

        assert get_pricing_config().base_rate == 85

    def test_sync(self, sample_config_record):
        sync_config_from_record(sample_config_record)

        assert get_pricing_config().minimum_charge == 0.0

    def test_resolve_prefers_explicit_config(self):
        explicit = PricingConfig(base_rate=120)
        update_pricing_config({"base_rate": 85})

        assert resolve_config(explicit) is explicit
        assert resolve_config().base_rate == 85
