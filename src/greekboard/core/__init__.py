"""
greekboard Core: Pricing configuration and generic containers.

- PricingConfig: Solver and time-to-expiry settings (msgspec.Struct)
- TimeSeries: Timestamped history of any value (books, quotes, scalars)
- options: Black-Scholes engine, quote models and the book/chain/board hierarchy
"""

from greekboard.core.config import PricingConfig, get_pricing_config
from greekboard.core.time_series import TimeSeries


__all__ = [
    "PricingConfig",
    "TimeSeries",
    "get_pricing_config",
]
