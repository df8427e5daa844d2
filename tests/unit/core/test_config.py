"""
Unit tests for PricingConfig.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from greekboard.core.config import PricingConfig, get_pricing_config


@pytest.fixture
def clear_config_cache() -> Iterator[None]:
    """Reset the cached process config around a test."""
    get_pricing_config.cache_clear()
    yield
    get_pricing_config.cache_clear()


class TestPricingConfig:
    """Tests for PricingConfig."""

    def test_defaults(self) -> None:
        """Library defaults."""
        config = PricingConfig()
        assert config.iv_tolerance == 1e-6
        assert config.iv_max_iterations == 100
        assert config.sigma_min == 1e-6
        assert config.sigma_max == 10.0
        assert config.seconds_per_year == 31_536_000.0
        assert config.contract_multiplier == 1.0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"iv_tolerance": 0.0},
            {"iv_max_iterations": 0},
            {"sigma_min": 0.0},
            {"sigma_min": 2.0, "sigma_max": 1.0},
            {"seconds_per_year": -1.0},
        ],
    )
    def test_invalid(self, kwargs: dict[str, float]) -> None:
        """Nonsensical settings are rejected."""
        with pytest.raises(ValueError):
            PricingConfig(**kwargs)

    def test_frozen(self) -> None:
        """Config is immutable."""
        config = PricingConfig()
        with pytest.raises(AttributeError):
            config.sigma_max = 5.0  # type: ignore[misc]

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Environment variables override defaults."""
        monkeypatch.setenv("GREEKBOARD_IV_TOLERANCE", "1e-8")
        monkeypatch.setenv("GREEKBOARD_SIGMA_MAX", "5")
        monkeypatch.setenv("GREEKBOARD_CONTRACT_MULTIPLIER", "100")
        config = PricingConfig.from_env()
        assert config.iv_tolerance == 1e-8
        assert config.sigma_max == 5.0
        assert config.contract_multiplier == 100.0
        assert config.iv_max_iterations == 100

    def test_process_default_cached(
        self, monkeypatch: pytest.MonkeyPatch, clear_config_cache: None
    ) -> None:
        """get_pricing_config() reads the environment once."""
        monkeypatch.setenv("GREEKBOARD_CONTRACT_MULTIPLIER", "10")
        first = get_pricing_config()
        monkeypatch.setenv("GREEKBOARD_CONTRACT_MULTIPLIER", "50")
        assert get_pricing_config() is first
        assert first.contract_multiplier == 10.0
