"""
Options Analytics.

Black-Scholes pricing and the quote aggregation hierarchy:
- Pricing engine: price, implied volatility, no-arbitrage bounds
- Greeks: sixteen analytic sensitivities and their exposures
- OptionQuote: immutable quote holding a Price or a Volatility
- StrikeBoard: bid/ask book for one strike
- OptionChain: all strikes of one maturity
- OptionBoard: all maturities, with idempotent upsert

Examples:
    from greekboard.core.options import (
        OptionBoard, OptionQuote, OptionSide, OptionType, Price,
        StrikeBoard,
    )

    board = OptionBoard.of_books()
    board.upsert(
        OptionQuote(
            strike=100.0,
            maturity=datetime(2025, 3, 21, tzinfo=timezone.utc),
            asset_price=101.2,
            option_type=OptionType.CALL,
            option_value=Price(3.10),
            side=OptionSide.BID,
        )
    )

    chain = board.front_month()
    wing_vols = chain.otm().map(StrikeBoard.mid).map(OptionQuote.iv)
"""

from greekboard.core.options.board import OptionBoard
from greekboard.core.options.books import StrikeBoard
from greekboard.core.options.chains import OptionChain, OptionElement
from greekboard.core.options.errors import (
    ConvergenceFailureError,
    EmptyChainError,
    EmptyCollectionError,
    EmptySideError,
    InvalidInputError,
    MissingDataError,
    MissingOpenInterestError,
    MissingVolumeError,
    NoArbitrageViolationError,
    OptionsError,
)
from greekboard.core.options.greeks import (
    GreekKind,
    Greeks,
    compute_greeks,
    exposure,
    greek,
)
from greekboard.core.options.models import (
    AdditionalOptionData,
    OptionQuote,
    OptionValue,
    Price,
    Volatility,
    decode_option_quote,
    encode_option_quote,
    option_quote_from_dict,
)
from greekboard.core.options.pricing import implied_volatility, premium_bounds, price
from greekboard.core.options.types import OptionSide, OptionType


__all__ = [
    # Enums
    "OptionType",
    "OptionSide",
    "GreekKind",
    # Pricing engine
    "price",
    "implied_volatility",
    "premium_bounds",
    "greek",
    "exposure",
    "compute_greeks",
    "Greeks",
    # Quote models
    "Price",
    "Volatility",
    "OptionValue",
    "AdditionalOptionData",
    "OptionQuote",
    "option_quote_from_dict",
    # Collections
    "StrikeBoard",
    "OptionElement",
    "OptionChain",
    "OptionBoard",
    # Errors
    "OptionsError",
    "InvalidInputError",
    "NoArbitrageViolationError",
    "ConvergenceFailureError",
    "EmptyCollectionError",
    "EmptySideError",
    "EmptyChainError",
    "MissingDataError",
    "MissingVolumeError",
    "MissingOpenInterestError",
    # Serialization
    "encode_option_quote",
    "decode_option_quote",
]
