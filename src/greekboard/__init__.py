"""
greekboard: Option analytics on live quote boards.

- Black-Scholes pricing and implied volatility (continuous dividend yield)
- Sixteen analytic Greeks and open-interest-weighted exposures
- Strike book -> maturity chain -> multi-maturity board aggregation
- Timestamped series for turning board snapshots into histories

Quick Start:
    from greekboard import OptionBoard, OptionQuote, StrikeBoard

    board = OptionBoard.of_books()
    for quote in quotes:
        board.upsert(quote)

    atm = board.front_month().atm()
    print(f"ATM IV: {atm.mid().iv():.2%}")
"""

__version__ = "0.1.0"
__author__ = "greekboard Team"

from greekboard.core import PricingConfig, TimeSeries, get_pricing_config
from greekboard.core.options import (
    GreekKind,
    OptionBoard,
    OptionChain,
    OptionQuote,
    OptionSide,
    OptionType,
    OptionsError,
    Price,
    StrikeBoard,
    Volatility,
)


__all__ = [
    # Config
    "PricingConfig",
    "get_pricing_config",
    # Options
    "GreekKind",
    "OptionBoard",
    "OptionChain",
    "OptionQuote",
    "OptionSide",
    "OptionType",
    "OptionsError",
    "Price",
    "StrikeBoard",
    "Volatility",
    # Series
    "TimeSeries",
    "__version__",
]
