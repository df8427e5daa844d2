"""
Configuration for the pricing engine.

Controls the implied volatility solver, the year fraction used to turn
maturities into time to expiry, and the default contract multiplier used
by exposure calculations.
"""

from __future__ import annotations

from functools import lru_cache

import msgspec


class PricingConfig(msgspec.Struct, frozen=True, gc=False):
    """
    Pricing engine configuration.

    Examples:
        # Library defaults
        config = PricingConfig()

        # Tighter solver for a calibration job
        config = PricingConfig(iv_tolerance=1e-9, iv_max_iterations=200)

        # From environment variables
        config = PricingConfig.from_env()
    """

    # Implied volatility solver
    iv_tolerance: float = 1e-6  # absolute, in premium units
    iv_max_iterations: int = 100
    sigma_min: float = 1e-6
    sigma_max: float = 10.0  # 1000% vol

    # Time to expiry
    seconds_per_year: float = 31_536_000.0  # 365 days

    # Exposure
    contract_multiplier: float = 1.0

    def __post_init__(self) -> None:
        if self.iv_tolerance <= 0:
            raise ValueError(f"iv_tolerance must be positive, got {self.iv_tolerance}")
        if self.iv_max_iterations < 1:
            raise ValueError(
                f"iv_max_iterations must be at least 1, got {self.iv_max_iterations}"
            )
        if not 0 < self.sigma_min < self.sigma_max:
            raise ValueError(
                f"Expected 0 < sigma_min < sigma_max, got {self.sigma_min}, {self.sigma_max}"
            )
        if self.seconds_per_year <= 0:
            raise ValueError(
                f"seconds_per_year must be positive, got {self.seconds_per_year}"
            )

    @classmethod
    def from_env(cls) -> PricingConfig:
        """
        Create config from environment variables.

        Environment variables:
        - GREEKBOARD_IV_TOLERANCE (default: 1e-6)
        - GREEKBOARD_IV_MAX_ITERATIONS (default: 100)
        - GREEKBOARD_SIGMA_MIN (default: 1e-6)
        - GREEKBOARD_SIGMA_MAX (default: 10.0)
        - GREEKBOARD_SECONDS_PER_YEAR (default: 31536000)
        - GREEKBOARD_CONTRACT_MULTIPLIER (default: 1.0)

        Returns:
            PricingConfig from environment.
        """
        import os

        return cls(
            iv_tolerance=float(os.getenv("GREEKBOARD_IV_TOLERANCE", "1e-6")),
            iv_max_iterations=int(os.getenv("GREEKBOARD_IV_MAX_ITERATIONS", "100")),
            sigma_min=float(os.getenv("GREEKBOARD_SIGMA_MIN", "1e-6")),
            sigma_max=float(os.getenv("GREEKBOARD_SIGMA_MAX", "10.0")),
            seconds_per_year=float(os.getenv("GREEKBOARD_SECONDS_PER_YEAR", "31536000")),
            contract_multiplier=float(os.getenv("GREEKBOARD_CONTRACT_MULTIPLIER", "1.0")),
        )


@lru_cache(maxsize=1)
def get_pricing_config() -> PricingConfig:
    """Process-wide default config, read once from the environment."""
    return PricingConfig.from_env()
