"""
Unit tests for Option Quote Models.

Tests OptionValue, AdditionalOptionData, OptionQuote and the construction
and serialization helpers.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import msgspec
import pytest

from greekboard.core.config import PricingConfig
from greekboard.core.options import (
    AdditionalOptionData,
    GreekKind,
    InvalidInputError,
    MissingOpenInterestError,
    NoArbitrageViolationError,
    OptionQuote,
    OptionSide,
    OptionType,
    Price,
    Volatility,
    decode_option_quote,
    encode_option_quote,
    greek,
    option_quote_from_dict,
)


# =============================================================================
# Construction Tests
# =============================================================================


class TestOptionQuoteCreation:
    """Tests for OptionQuote validation."""

    def test_defaults(self, maturity: datetime) -> None:
        """Optional fields default to zero rates and no side."""
        quote = OptionQuote(
            strike=100.0,
            maturity=maturity,
            asset_price=101.0,
            option_type=OptionType.CALL,
            option_value=Price(3.5),
        )
        assert quote.risk_free_rate == 0.0
        assert quote.dividend_yield == 0.0
        assert quote.side is None
        assert quote.additional_data is None
        assert quote.open_interest is None
        assert quote.volume is None

    @pytest.mark.parametrize("field", ["strike", "asset_price"])
    @pytest.mark.parametrize("value", [0.0, -5.0])
    def test_non_positive_rejected(self, maturity: datetime, field: str, value: float) -> None:
        """Strike and asset price must be positive."""
        kwargs = {
            "strike": 100.0,
            "maturity": maturity,
            "asset_price": 100.0,
            "option_type": OptionType.PUT,
            "option_value": Price(1.0),
            field: value,
        }
        with pytest.raises(InvalidInputError):
            OptionQuote(**kwargs)

    def test_negative_premium_rejected(self, maturity: datetime) -> None:
        """Premiums are non-negative."""
        with pytest.raises(InvalidInputError):
            OptionQuote(
                strike=100.0,
                maturity=maturity,
                asset_price=100.0,
                option_type=OptionType.CALL,
                option_value=Price(-0.1),
            )

    def test_naive_maturity_rejected(self) -> None:
        """Maturity must carry a timezone."""
        with pytest.raises(InvalidInputError):
            OptionQuote(
                strike=100.0,
                maturity=datetime(2030, 1, 1),
                asset_price=100.0,
                option_type=OptionType.CALL,
                option_value=Volatility(0.2),
            )

    def test_negative_open_interest_rejected(self) -> None:
        """Auxiliary data is non-negative."""
        with pytest.raises(InvalidInputError):
            AdditionalOptionData(open_interest=-1)

    def test_frozen(self, atm_call: OptionQuote) -> None:
        """Quotes are immutable."""
        with pytest.raises(AttributeError):
            atm_call.strike = 90.0  # type: ignore[misc]

    def test_expired_quote_constructs(self, valued_at: datetime) -> None:
        """Expired quotes can be built but not priced."""
        quote = OptionQuote(
            strike=100.0,
            maturity=valued_at - timedelta(days=1),
            asset_price=100.0,
            option_type=OptionType.CALL,
            option_value=Volatility(0.2),
            valued_at=valued_at,
        )
        assert quote.tau() < 0
        with pytest.raises(InvalidInputError):
            quote.premium()
        with pytest.raises(InvalidInputError):
            quote.delta()


# =============================================================================
# Time and Classification Tests
# =============================================================================


class TestOptionQuoteInfo:
    """Tests for tau, classification and intrinsic value."""

    def test_tau_uses_365_day_year(self, atm_call: OptionQuote) -> None:
        """91 days is 91/365 of a year."""
        assert atm_call.tau() == pytest.approx(91 / 365)

    def test_tau_respects_config(self, atm_call: OptionQuote) -> None:
        """seconds_per_year is configurable."""
        config = PricingConfig(seconds_per_year=91 * 86_400)
        assert atm_call.tau(config) == pytest.approx(1.0)

    def test_classification(self, make_quote: Callable[..., OptionQuote]) -> None:
        """is_call / is_put follow option_type."""
        call = make_quote(option_type=OptionType.CALL)
        put = make_quote(option_type=OptionType.PUT)
        assert call.is_call and not call.is_put
        assert put.is_put and not put.is_call

    def test_intrinsic_value(self, make_quote: Callable[..., OptionQuote]) -> None:
        """Intrinsic value at the recorded asset price."""
        assert make_quote(90.0).intrinsic_value() == pytest.approx(10.0)
        assert make_quote(110.0).intrinsic_value() == 0.0
        assert make_quote(110.0, option_type=OptionType.PUT).intrinsic_value() == pytest.approx(10.0)

    def test_is_withdrawn(self, make_quote: Callable[..., OptionQuote]) -> None:
        """Zero premium or zero volatility marks a withdrawn quote."""
        assert make_quote(premium=0.0).is_withdrawn
        assert make_quote(sigma=0.0).is_withdrawn
        assert not make_quote(premium=0.01).is_withdrawn
        assert not make_quote(sigma=0.2).is_withdrawn


# =============================================================================
# Value Conversion Tests
# =============================================================================


class TestValueConversion:
    """Tests for premium / iv conversion."""

    def test_price_quote_premium(self, make_quote: Callable[..., OptionQuote]) -> None:
        """Price quotes return their amount unchanged."""
        assert make_quote(premium=4.2).premium() == 4.2

    def test_volatility_quote_iv(self, atm_call: OptionQuote) -> None:
        """Volatility quotes return their sigma unchanged."""
        assert atm_call.iv() == 0.25

    def test_round_trip_through_quotes(self, atm_call: OptionQuote) -> None:
        """Volatility -> Price -> Volatility recovers sigma."""
        priced = atm_call.get_theoretical_price()
        assert isinstance(priced.option_value, Price)
        solved = priced.get_implied_volatility()
        assert isinstance(solved.option_value, Volatility)
        assert solved.iv() == pytest.approx(0.25, rel=1e-4)

    def test_conversion_does_not_mutate(self, atm_call: OptionQuote) -> None:
        """Conversions return new quotes."""
        priced = atm_call.get_theoretical_price()
        assert isinstance(atm_call.option_value, Volatility)
        assert priced.strike == atm_call.strike
        assert priced.valued_at == atm_call.valued_at

    def test_conversion_is_identity_when_already_converted(
        self, atm_call: OptionQuote
    ) -> None:
        """Solving a Volatility quote is a no-op."""
        assert atm_call.get_implied_volatility() is atm_call

    def test_arbitrage_premium(self, make_quote: Callable[..., OptionQuote]) -> None:
        """A call priced above spot cannot be solved."""
        with pytest.raises(NoArbitrageViolationError):
            make_quote(premium=150.0).iv()

    def test_pattern_matching(self, atm_call: OptionQuote) -> None:
        """OptionValue supports structural pattern matching."""
        match atm_call.option_value:
            case Volatility(sigma=sigma):
                assert sigma == 0.25
            case Price():
                pytest.fail("Expected a Volatility")


# =============================================================================
# Greek and Exposure Tests
# =============================================================================


class TestQuoteGreeks:
    """Tests for Greek and exposure accessors."""

    def test_accessors_match_engine(self, atm_call: OptionQuote) -> None:
        """Quote accessors call the engine with the quote's own fields."""
        expected = greek(
            GreekKind.GAMMA, 100.0, 100.0, 91 / 365, 0.01, 0.0, 0.25, OptionType.CALL
        )
        assert atm_call.gamma() == pytest.approx(expected)
        assert atm_call.greeks().gamma == pytest.approx(expected)

    def test_price_quote_solves_first(self, atm_call: OptionQuote) -> None:
        """Greeks of a Price quote are evaluated at its implied volatility."""
        priced = atm_call.get_theoretical_price()
        assert priced.vega() == pytest.approx(atm_call.vega(), rel=1e-4)

    def test_every_accessor(self, atm_call: OptionQuote) -> None:
        """Each named accessor matches greek(kind)."""
        for kind in GreekKind:
            assert getattr(atm_call, kind.value)() == pytest.approx(atm_call.greek(kind))

    def test_exposure(self, atm_call: OptionQuote) -> None:
        """Exposure = greek * OI * multiplier."""
        assert atm_call.exposure(GreekKind.DELTA, multiplier=100) == pytest.approx(
            atm_call.delta() * 1000 * 100
        )
        assert atm_call.gamma_exposure() == pytest.approx(atm_call.gamma() * 1000)

    def test_exposure_default_multiplier_from_config(self, atm_call: OptionQuote) -> None:
        """Multiplier defaults to config.contract_multiplier."""
        config = PricingConfig(contract_multiplier=10.0)
        assert atm_call.exposure(GreekKind.VEGA, config=config) == pytest.approx(
            atm_call.vega() * 1000 * 10
        )

    def test_exposure_requires_open_interest(
        self, make_quote: Callable[..., OptionQuote]
    ) -> None:
        """Missing OI raises before any Greek is computed."""
        quote = make_quote(volume=5)
        with pytest.raises(MissingOpenInterestError):
            quote.delta_exposure()


# =============================================================================
# Construction Helper Tests
# =============================================================================


class TestOptionQuoteFromDict:
    """Tests for option_quote_from_dict."""

    @pytest.fixture
    def raw(self) -> dict[str, object]:
        """Raw feed record."""
        return {
            "strike": 27000,
            "maturity": "2025-03-28T08:00:00+00:00",
            "asset_price": 26500,
            "option_type": "CALL",
            "premium": 850.0,
            "side": "ask",
            "open_interest": 120,
        }

    def test_parses_fields(self, raw: dict[str, object]) -> None:
        """Strings and numbers are normalized."""
        quote = option_quote_from_dict(raw)
        assert quote.strike == 27000.0
        assert quote.maturity == datetime(2025, 3, 28, 8, tzinfo=timezone.utc)
        assert quote.option_type == OptionType.CALL
        assert quote.side == OptionSide.ASK
        assert quote.option_value == Price(850.0)
        assert quote.open_interest == 120.0
        assert quote.volume is None

    def test_implied_volatility_field(self, raw: dict[str, object]) -> None:
        """implied_volatility produces a Volatility value."""
        del raw["premium"]
        raw["implied_volatility"] = 0.55
        assert option_quote_from_dict(raw).option_value == Volatility(0.55)

    def test_epoch_and_naive_timestamps(self, raw: dict[str, object]) -> None:
        """Epoch seconds and naive datetimes are UTC."""
        raw["maturity"] = 1_743_148_800
        raw["valued_at"] = datetime(2025, 1, 1)
        quote = option_quote_from_dict(raw)
        assert quote.maturity == datetime(2025, 3, 28, 8, tzinfo=timezone.utc)
        assert quote.valued_at == datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_requires_exactly_one_value(self, raw: dict[str, object]) -> None:
        """Both or neither of premium / implied_volatility is an error."""
        raw["implied_volatility"] = 0.5
        with pytest.raises(InvalidInputError):
            option_quote_from_dict(raw)
        del raw["implied_volatility"]
        del raw["premium"]
        with pytest.raises(InvalidInputError):
            option_quote_from_dict(raw)

    def test_missing_field(self, raw: dict[str, object]) -> None:
        """Missing required fields raise InvalidInputError."""
        del raw["strike"]
        with pytest.raises(InvalidInputError, match="strike"):
            option_quote_from_dict(raw)

    def test_unknown_option_type(self, raw: dict[str, object]) -> None:
        """Unknown option types are rejected."""
        raw["option_type"] = "straddle"
        with pytest.raises(InvalidInputError):
            option_quote_from_dict(raw)


# =============================================================================
# Serialization Tests
# =============================================================================


class TestSerialization:
    """Tests for msgspec JSON encoding."""

    def test_round_trip(self, make_quote: Callable[..., OptionQuote]) -> None:
        """Quotes survive a JSON round trip, tagged value included."""
        quote = make_quote(premium=2.5, side=OptionSide.BID, open_interest=10, volume=3)
        decoded = decode_option_quote(encode_option_quote(quote))
        assert decoded == quote
        assert isinstance(decoded.option_value, Price)

    def test_tagged_value(self, atm_call: OptionQuote) -> None:
        """The value union is tagged by class name."""
        payload = msgspec.json.decode(encode_option_quote(atm_call))
        assert payload["option_value"] == {"type": "Volatility", "sigma": 0.25}
