"""
Option Quote Models.

Provides the atomic record of the analytics model:
- OptionValue tagged union (Price or Volatility)
- Auxiliary market data (open interest, volume)
- OptionQuote with lazy pricing, implied volatility and Greek accessors

A quote holds exactly one representation of its value. Converting between
premium and volatility returns a new quote; the original is never mutated.
"""

from __future__ import annotations

import math
import sys
from datetime import datetime, timezone
from typing import Any

import msgspec

from greekboard.core.config import PricingConfig, get_pricing_config
from greekboard.core.options import pricing
from greekboard.core.options.errors import InvalidInputError, MissingOpenInterestError
from greekboard.core.options.greeks import GreekKind, Greeks, compute_greeks, exposure, greek
from greekboard.core.options.types import OptionSide, OptionType


# =============================================================================
# Option Value
# =============================================================================


class Price(msgspec.Struct, frozen=True, gc=False, tag=True):
    """Option value expressed as a premium."""

    amount: float


class Volatility(msgspec.Struct, frozen=True, gc=False, tag=True):
    """Option value expressed as an (implied) volatility."""

    sigma: float


OptionValue = Price | Volatility


class AdditionalOptionData(msgspec.Struct, frozen=True, gc=False, kw_only=True):
    """
    Auxiliary market data attached to a quote.

    Attributes:
        open_interest: Contracts outstanding (required for exposures)
        volume: Traded volume (required for volume-weighted mids)
    """

    open_interest: float | None = None
    volume: float | None = None

    def __post_init__(self) -> None:
        if self.open_interest is not None and not self.open_interest >= 0:
            raise InvalidInputError(
                f"open_interest must be non-negative, got {self.open_interest}"
            )
        if self.volume is not None and not self.volume >= 0:
            raise InvalidInputError(f"volume must be non-negative, got {self.volume}")


# =============================================================================
# Option Quote
# =============================================================================


class OptionQuote(msgspec.Struct, frozen=True, gc=False, kw_only=True):
    """
    One side of one option at one strike, maturity and underlying snapshot.

    Immutable. Pricing and Greek accessors call the Black-Scholes engine with
    the quote's own fields, solving for implied volatility first when the
    quote holds a Price.

    Attributes:
        strike: Strike price (> 0)
        maturity: Expiry timestamp (timezone-aware)
        asset_price: Underlying price (> 0)
        risk_free_rate: Risk-free rate (default 0)
        dividend_yield: Continuous dividend yield (default 0)
        option_type: Call or put
        option_value: Price(amount) or Volatility(sigma)
        side: Bid, ask, or None for synthetic quotes (e.g. a mid)
        additional_data: Open interest and volume, if known
        valued_at: Evaluation time; None means "now" at call time

    Examples:
        quote = OptionQuote(
            strike=100.0,
            maturity=datetime(2025, 1, 17, tzinfo=timezone.utc),
            asset_price=102.5,
            option_type=OptionType.CALL,
            option_value=Price(4.35),
            side=OptionSide.BID,
        )

        solved = quote.get_implied_volatility()
        print(f"IV: {solved.iv():.2%}, delta: {solved.delta():.3f}")
    """

    strike: float
    maturity: datetime
    asset_price: float
    option_type: OptionType
    option_value: OptionValue
    risk_free_rate: float = 0.0
    dividend_yield: float = 0.0
    side: OptionSide | None = None
    additional_data: AdditionalOptionData | None = None
    valued_at: datetime | None = None

    def __post_init__(self) -> None:
        if not (math.isfinite(self.strike) and self.strike > 0):
            raise InvalidInputError(f"strike must be positive, got {self.strike}")
        if not (math.isfinite(self.asset_price) and self.asset_price > 0):
            raise InvalidInputError(f"asset_price must be positive, got {self.asset_price}")
        if self.maturity.tzinfo is None:
            raise InvalidInputError("maturity must be timezone-aware")
        if self.valued_at is not None and self.valued_at.tzinfo is None:
            raise InvalidInputError("valued_at must be timezone-aware")
        match self.option_value:
            case Price(amount=amount):
                if not (math.isfinite(amount) and amount >= 0):
                    raise InvalidInputError(f"premium must be non-negative, got {amount}")
            case Volatility(sigma=sigma):
                if not (math.isfinite(sigma) and sigma >= 0):
                    raise InvalidInputError(f"volatility must be non-negative, got {sigma}")

    # -------------------------------------------------------------------------
    # Classification
    # -------------------------------------------------------------------------

    @property
    def is_call(self) -> bool:
        """True if this is a call option."""
        return self.option_type == OptionType.CALL

    @property
    def is_put(self) -> bool:
        """True if this is a put option."""
        return self.option_type == OptionType.PUT

    @property
    def open_interest(self) -> float | None:
        return self.additional_data.open_interest if self.additional_data else None

    @property
    def volume(self) -> float | None:
        return self.additional_data.volume if self.additional_data else None

    @property
    def is_withdrawn(self) -> bool:
        """True if the quoted amount or volatility is zero (below float epsilon)."""
        match self.option_value:
            case Price(amount=amount):
                return amount < sys.float_info.epsilon
            case Volatility(sigma=sigma):
                return sigma < sys.float_info.epsilon
        return False

    def intrinsic_value(self) -> float:
        """Undiscounted intrinsic value at the recorded asset price."""
        if self.is_call:
            return max(0.0, self.asset_price - self.strike)
        return max(0.0, self.strike - self.asset_price)

    # -------------------------------------------------------------------------
    # Time
    # -------------------------------------------------------------------------

    def tau(self, config: PricingConfig | None = None) -> float:
        """
        Time to expiry in years.

        May be zero or negative for expired quotes; pricing rejects those.
        """
        config = config or get_pricing_config()
        now = self.valued_at or datetime.now(timezone.utc)
        return (self.maturity - now).total_seconds() / config.seconds_per_year

    # -------------------------------------------------------------------------
    # Value conversion
    # -------------------------------------------------------------------------

    def with_value(self, option_value: OptionValue) -> OptionQuote:
        """Copy of this quote holding a different value."""
        return msgspec.structs.replace(self, option_value=option_value)

    def premium(self, config: PricingConfig | None = None) -> float:
        """
        Premium of the quote, pricing it when the quote holds a volatility.

        Raises:
            InvalidInputError: If pricing is needed and inputs are invalid
        """
        match self.option_value:
            case Price(amount=amount):
                return amount
            case Volatility(sigma=sigma):
                return pricing.price(
                    self.asset_price,
                    self.strike,
                    self.tau(config),
                    self.risk_free_rate,
                    self.dividend_yield,
                    sigma,
                    self.option_type,
                )
        raise InvalidInputError(f"Unknown option value {self.option_value!r}")

    def iv(self, config: PricingConfig | None = None) -> float:
        """
        Implied volatility of the quote, solving for it when the quote holds a price.

        Raises:
            InvalidInputError: If inputs are invalid
            NoArbitrageViolationError: If the premium is outside no-arbitrage bounds
            ConvergenceFailureError: If the solver does not converge
        """
        match self.option_value:
            case Volatility(sigma=sigma):
                return sigma
            case Price(amount=amount):
                return pricing.implied_volatility(
                    amount,
                    self.asset_price,
                    self.strike,
                    self.tau(config),
                    self.risk_free_rate,
                    self.dividend_yield,
                    self.option_type,
                    config=config,
                )
        raise InvalidInputError(f"Unknown option value {self.option_value!r}")

    def get_implied_volatility(self, config: PricingConfig | None = None) -> OptionQuote:
        """New quote with the value replaced by the solved Volatility."""
        if isinstance(self.option_value, Volatility):
            return self
        return self.with_value(Volatility(self.iv(config)))

    def get_theoretical_price(self, config: PricingConfig | None = None) -> OptionQuote:
        """New quote with the value replaced by the Black-Scholes Price."""
        if isinstance(self.option_value, Price):
            return self
        return self.with_value(Price(self.premium(config)))

    # -------------------------------------------------------------------------
    # Greeks
    # -------------------------------------------------------------------------

    def greek(self, kind: GreekKind, config: PricingConfig | None = None) -> float:
        """Evaluate one Greek at the quote's (implied) volatility."""
        return greek(
            kind,
            self.asset_price,
            self.strike,
            self.tau(config),
            self.risk_free_rate,
            self.dividend_yield,
            self.iv(config),
            self.option_type,
        )

    def greeks(self, config: PricingConfig | None = None) -> Greeks:
        """All sixteen Greeks at the quote's (implied) volatility."""
        return compute_greeks(
            self.asset_price,
            self.strike,
            self.tau(config),
            self.risk_free_rate,
            self.dividend_yield,
            self.iv(config),
            self.option_type,
        )

    def delta(self) -> float:
        """dV/dS."""
        return self.greek(GreekKind.DELTA)

    def dual_delta(self) -> float:
        """dV/dK."""
        return self.greek(GreekKind.DUAL_DELTA)

    def vega(self) -> float:
        """dV/dsigma."""
        return self.greek(GreekKind.VEGA)

    def theta(self) -> float:
        """Time decay per year."""
        return self.greek(GreekKind.THETA)

    def rho(self) -> float:
        """dV/dr."""
        return self.greek(GreekKind.RHO)

    def epsilon(self) -> float:
        """dV/dq."""
        return self.greek(GreekKind.EPSILON)

    def gamma(self) -> float:
        """d2V/dS2."""
        return self.greek(GreekKind.GAMMA)

    def dual_gamma(self) -> float:
        """d2V/dK2."""
        return self.greek(GreekKind.DUAL_GAMMA)

    def vanna(self) -> float:
        """dDelta/dsigma."""
        return self.greek(GreekKind.VANNA)

    def charm(self) -> float:
        """Delta decay per year."""
        return self.greek(GreekKind.CHARM)

    def vomma(self) -> float:
        """dVega/dsigma."""
        return self.greek(GreekKind.VOMMA)

    def veta(self) -> float:
        """dVega/dT."""
        return self.greek(GreekKind.VETA)

    def speed(self) -> float:
        """dGamma/dS."""
        return self.greek(GreekKind.SPEED)

    def zomma(self) -> float:
        """dGamma/dsigma."""
        return self.greek(GreekKind.ZOMMA)

    def color(self) -> float:
        """dGamma/dT."""
        return self.greek(GreekKind.COLOR)

    def ultima(self) -> float:
        """dVomma/dsigma."""
        return self.greek(GreekKind.ULTIMA)

    # -------------------------------------------------------------------------
    # Exposures
    # -------------------------------------------------------------------------

    def exposure(
        self,
        kind: GreekKind,
        multiplier: float | None = None,
        config: PricingConfig | None = None,
    ) -> float:
        """
        Greek scaled by open interest and contract multiplier.

        Args:
            kind: Which Greek to scale
            multiplier: Contract multiplier (default: config.contract_multiplier)
            config: Pricing settings

        Raises:
            MissingOpenInterestError: If the quote carries no open interest
        """
        config = config or get_pricing_config()
        if self.open_interest is None:
            raise MissingOpenInterestError(
                f"Quote at strike {self.strike} has no open interest"
            )
        if multiplier is None:
            multiplier = config.contract_multiplier
        return exposure(kind, self.greek(kind, config), self.open_interest, multiplier)

    def delta_exposure(self) -> float:
        return self.exposure(GreekKind.DELTA)

    def dual_delta_exposure(self) -> float:
        return self.exposure(GreekKind.DUAL_DELTA)

    def vega_exposure(self) -> float:
        return self.exposure(GreekKind.VEGA)

    def theta_exposure(self) -> float:
        return self.exposure(GreekKind.THETA)

    def rho_exposure(self) -> float:
        return self.exposure(GreekKind.RHO)

    def epsilon_exposure(self) -> float:
        return self.exposure(GreekKind.EPSILON)

    def gamma_exposure(self) -> float:
        return self.exposure(GreekKind.GAMMA)

    def dual_gamma_exposure(self) -> float:
        return self.exposure(GreekKind.DUAL_GAMMA)

    def vanna_exposure(self) -> float:
        return self.exposure(GreekKind.VANNA)

    def charm_exposure(self) -> float:
        return self.exposure(GreekKind.CHARM)

    def vomma_exposure(self) -> float:
        return self.exposure(GreekKind.VOMMA)

    def veta_exposure(self) -> float:
        return self.exposure(GreekKind.VETA)

    def speed_exposure(self) -> float:
        return self.exposure(GreekKind.SPEED)

    def zomma_exposure(self) -> float:
        return self.exposure(GreekKind.ZOMMA)

    def color_exposure(self) -> float:
        return self.exposure(GreekKind.COLOR)

    def ultima_exposure(self) -> float:
        return self.exposure(GreekKind.ULTIMA)


# =============================================================================
# Construction Helpers
# =============================================================================


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    raise InvalidInputError(f"Cannot interpret {value!r} as a timestamp")


def option_quote_from_dict(data: dict[str, Any]) -> OptionQuote:
    """
    Build an OptionQuote from raw feed fields.

    Naive timestamps are taken as UTC; numbers are epoch seconds.

    Args:
        data: Dict with strike, maturity, asset_price, option_type ("call" or
            "put"), and exactly one of premium / implied_volatility. Optional:
            risk_free_rate, dividend_yield, side ("bid" or "ask"),
            open_interest, volume, valued_at

    Returns:
        Validated OptionQuote

    Raises:
        InvalidInputError: If required fields are missing or invalid

    Examples:
        quote = option_quote_from_dict({
            "strike": 27000,
            "maturity": "2025-03-28T08:00:00+00:00",
            "asset_price": 26500,
            "option_type": "call",
            "premium": 850.0,
            "side": "ask",
            "open_interest": 120,
        })
    """
    has_premium = data.get("premium") is not None
    has_iv = data.get("implied_volatility") is not None
    if has_premium == has_iv:
        raise InvalidInputError("Exactly one of premium or implied_volatility is required")
    try:
        option_value: OptionValue = (
            Price(float(data["premium"]))
            if has_premium
            else Volatility(float(data["implied_volatility"]))
        )
        strike = float(data["strike"])
        asset_price = float(data["asset_price"])
        maturity = _parse_timestamp(data["maturity"])
        option_type = OptionType(str(data["option_type"]).lower())
        side = OptionSide(str(data["side"]).lower()) if data.get("side") else None
    except KeyError as e:
        raise InvalidInputError(f"Missing quote field: {e.args[0]}") from e
    except ValueError as e:
        raise InvalidInputError(str(e)) from e

    additional_data = None
    if data.get("open_interest") is not None or data.get("volume") is not None:
        additional_data = AdditionalOptionData(
            open_interest=_optional_float(data.get("open_interest")),
            volume=_optional_float(data.get("volume")),
        )

    valued_at = data.get("valued_at")
    return OptionQuote(
        strike=strike,
        maturity=maturity,
        asset_price=asset_price,
        option_type=option_type,
        option_value=option_value,
        risk_free_rate=float(data.get("risk_free_rate", 0.0)),
        dividend_yield=float(data.get("dividend_yield", 0.0)),
        side=side,
        additional_data=additional_data,
        valued_at=_parse_timestamp(valued_at) if valued_at is not None else None,
    )


def _optional_float(value: Any) -> float | None:
    return None if value is None else float(value)


# =============================================================================
# Serialization Helpers
# =============================================================================

_encoder = msgspec.json.Encoder()
_quote_decoder = msgspec.json.Decoder(OptionQuote)


def encode_option_quote(quote: OptionQuote) -> bytes:
    """Encode OptionQuote to JSON bytes."""
    return _encoder.encode(quote)


def decode_option_quote(data: bytes) -> OptionQuote:
    """Decode OptionQuote from JSON bytes."""
    return _quote_decoder.decode(data)
