"""
Pytest configuration and shared fixtures for greekboard tests.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest

from greekboard.core.options import (
    AdditionalOptionData,
    OptionQuote,
    OptionSide,
    OptionType,
    Price,
    StrikeBoard,
    Volatility,
)


# =============================================================================
# Time fixtures
# =============================================================================

VALUED_AT = datetime(2024, 1, 2, 16, 0, tzinfo=timezone.utc)
MATURITY = VALUED_AT + timedelta(days=91)


@pytest.fixture
def valued_at() -> datetime:
    """Fixed evaluation time so tau does not drift with the wall clock."""
    return VALUED_AT


@pytest.fixture
def maturity() -> datetime:
    """Expiry roughly a quarter after valued_at."""
    return MATURITY


# =============================================================================
# Quote fixtures
# =============================================================================


@pytest.fixture
def make_quote() -> Callable[..., OptionQuote]:
    """Factory for quotes with sensible defaults (ATM call, 20% vol)."""

    def _make(
        strike: float = 100.0,
        *,
        premium: float | None = None,
        sigma: float | None = None,
        option_type: OptionType = OptionType.CALL,
        side: OptionSide | None = None,
        asset_price: float = 100.0,
        maturity: datetime = MATURITY,
        risk_free_rate: float = 0.01,
        dividend_yield: float = 0.0,
        open_interest: float | None = None,
        volume: float | None = None,
    ) -> OptionQuote:
        if premium is not None:
            value: Price | Volatility = Price(premium)
        else:
            value = Volatility(0.2 if sigma is None else sigma)
        additional = None
        if open_interest is not None or volume is not None:
            additional = AdditionalOptionData(open_interest=open_interest, volume=volume)
        return OptionQuote(
            strike=strike,
            maturity=maturity,
            asset_price=asset_price,
            option_type=option_type,
            option_value=value,
            risk_free_rate=risk_free_rate,
            dividend_yield=dividend_yield,
            side=side,
            additional_data=additional,
            valued_at=VALUED_AT,
        )

    return _make


@pytest.fixture
def atm_call(make_quote: Callable[..., OptionQuote]) -> OptionQuote:
    """ATM call quoted as a volatility."""
    return make_quote(100.0, sigma=0.25, open_interest=1000)


@pytest.fixture
def scenario_book(make_quote: Callable[..., OptionQuote]) -> StrikeBoard:
    """Book with bids 200/230 and asks 250/270 on a 27000 call."""
    quotes = [
        make_quote(27000.0, premium=200.0, side=OptionSide.BID, asset_price=26500.0, volume=10),
        make_quote(27000.0, premium=230.0, side=OptionSide.BID, asset_price=26500.0, volume=30),
        make_quote(27000.0, premium=250.0, side=OptionSide.ASK, asset_price=26500.0, volume=10),
        make_quote(27000.0, premium=270.0, side=OptionSide.ASK, asset_price=26500.0, volume=5),
    ]
    return StrikeBoard(quotes)


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
