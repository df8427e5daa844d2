"""
Option Greeks.

Analytic Black-Scholes sensitivities (continuous dividend yield) and their
open-interest-weighted exposures.

First order:  delta, dual_delta, vega, theta, rho, epsilon
Second order: gamma, dual_gamma, vanna, charm, vomma, veta
Third order:  speed, zomma, color, ultima

Time-based Greeks (theta, charm, veta, color) are expressed per year of time
to expiry. Divide by 365 for a per-day figure. Theta and charm are
sensitivities to the passage of time (-d/dT); veta and color are
derivatives with respect to time to expiry (+d/dT).

Examples:
    value = greek(GreekKind.GAMMA, 100.0, 100.0, 0.25, 0.01, 0.0, 0.2, OptionType.CALL)
    gex = exposure(GreekKind.GAMMA, value, open_interest=1200, multiplier=100)

    snapshot = compute_greeks(100.0, 100.0, 0.25, 0.01, 0.0, 0.2, OptionType.PUT)
    position = snapshot.scale(open_interest=1200, multiplier=100)
"""

from __future__ import annotations

import math
from collections.abc import Callable
from enum import Enum

import msgspec

from greekboard.core.options.errors import MissingOpenInterestError
from greekboard.core.options.pricing import (
    d1,
    norm_cdf,
    norm_pdf,
    validate_market,
    validate_sigma,
)
from greekboard.core.options.types import OptionType


class GreekKind(str, Enum):
    """The sixteen supported sensitivities."""

    DELTA = "delta"
    DUAL_DELTA = "dual_delta"
    VEGA = "vega"
    THETA = "theta"
    RHO = "rho"
    EPSILON = "epsilon"
    GAMMA = "gamma"
    DUAL_GAMMA = "dual_gamma"
    VANNA = "vanna"
    CHARM = "charm"
    VOMMA = "vomma"
    VETA = "veta"
    SPEED = "speed"
    ZOMMA = "zomma"
    COLOR = "color"
    ULTIMA = "ultima"


class _Terms(msgspec.Struct, frozen=True, gc=False):
    """Intermediate values shared by every formula."""

    asset_price: float
    strike: float
    tau: float
    risk_free_rate: float
    dividend_yield: float
    sigma: float
    is_call: bool
    d1: float
    d2: float
    sqrt_tau: float
    div_discount: float  # e^(-qT)
    rate_discount: float  # e^(-rT)


def _terms(
    asset_price: float,
    strike: float,
    tau: float,
    risk_free_rate: float,
    dividend_yield: float,
    sigma: float,
    option_type: OptionType,
) -> _Terms:
    validate_market(asset_price, strike, tau)
    validate_sigma(sigma)
    sqrt_tau = math.sqrt(tau)
    d_1 = d1(asset_price, strike, tau, risk_free_rate, dividend_yield, sigma)
    return _Terms(
        asset_price=asset_price,
        strike=strike,
        tau=tau,
        risk_free_rate=risk_free_rate,
        dividend_yield=dividend_yield,
        sigma=sigma,
        is_call=option_type == OptionType.CALL,
        d1=d_1,
        d2=d_1 - sigma * sqrt_tau,
        sqrt_tau=sqrt_tau,
        div_discount=math.exp(-dividend_yield * tau),
        rate_discount=math.exp(-risk_free_rate * tau),
    )


# =============================================================================
# First Order
# =============================================================================


def _delta(t: _Terms) -> float:
    # Call: e^(-qT) N(d1), put: -e^(-qT) N(-d1)
    if t.is_call:
        return t.div_discount * norm_cdf(t.d1)
    return -t.div_discount * norm_cdf(-t.d1)


def _dual_delta(t: _Terms) -> float:
    if t.is_call:
        return -t.rate_discount * norm_cdf(t.d2)
    return t.rate_discount * norm_cdf(-t.d2)


def _vega(t: _Terms) -> float:
    return t.asset_price * t.div_discount * norm_pdf(t.d1) * t.sqrt_tau


def _theta(t: _Terms) -> float:
    decay = -t.div_discount * t.asset_price * norm_pdf(t.d1) * t.sigma / (2.0 * t.sqrt_tau)
    if t.is_call:
        return (
            decay
            - t.risk_free_rate * t.strike * t.rate_discount * norm_cdf(t.d2)
            + t.dividend_yield * t.asset_price * t.div_discount * norm_cdf(t.d1)
        )
    return (
        decay
        + t.risk_free_rate * t.strike * t.rate_discount * norm_cdf(-t.d2)
        - t.dividend_yield * t.asset_price * t.div_discount * norm_cdf(-t.d1)
    )


def _rho(t: _Terms) -> float:
    if t.is_call:
        return t.strike * t.tau * t.rate_discount * norm_cdf(t.d2)
    return -t.strike * t.tau * t.rate_discount * norm_cdf(-t.d2)


def _epsilon(t: _Terms) -> float:
    if t.is_call:
        return -t.asset_price * t.tau * t.div_discount * norm_cdf(t.d1)
    return t.asset_price * t.tau * t.div_discount * norm_cdf(-t.d1)


# =============================================================================
# Second Order
# =============================================================================


def _gamma(t: _Terms) -> float:
    return t.div_discount * norm_pdf(t.d1) / (t.asset_price * t.sigma * t.sqrt_tau)


def _dual_gamma(t: _Terms) -> float:
    return t.rate_discount * norm_pdf(t.d2) / (t.strike * t.sigma * t.sqrt_tau)


def _vanna(t: _Terms) -> float:
    return -t.div_discount * norm_pdf(t.d1) * t.d2 / t.sigma


def _charm(t: _Terms) -> float:
    drift = (2.0 * (t.risk_free_rate - t.dividend_yield) * t.tau - t.d2 * t.sigma * t.sqrt_tau) / (
        2.0 * t.tau * t.sigma * t.sqrt_tau
    )
    common = t.div_discount * norm_pdf(t.d1) * drift
    if t.is_call:
        return t.dividend_yield * t.div_discount * norm_cdf(t.d1) - common
    return -t.dividend_yield * t.div_discount * norm_cdf(-t.d1) - common


def _vomma(t: _Terms) -> float:
    return _vega(t) * t.d1 * t.d2 / t.sigma


def _veta(t: _Terms) -> float:
    return (
        -t.asset_price
        * t.div_discount
        * norm_pdf(t.d1)
        * t.sqrt_tau
        * (
            t.dividend_yield
            + (t.risk_free_rate - t.dividend_yield) * t.d1 / (t.sigma * t.sqrt_tau)
            - (1.0 + t.d1 * t.d2) / (2.0 * t.tau)
        )
    )


# =============================================================================
# Third Order
# =============================================================================


def _speed(t: _Terms) -> float:
    return -_gamma(t) / t.asset_price * (t.d1 / (t.sigma * t.sqrt_tau) + 1.0)


def _zomma(t: _Terms) -> float:
    return _gamma(t) * (t.d1 * t.d2 - 1.0) / t.sigma


def _color(t: _Terms) -> float:
    sigma_sqrt_tau = t.sigma * t.sqrt_tau
    return (
        -t.div_discount
        * norm_pdf(t.d1)
        / (2.0 * t.asset_price * t.tau * sigma_sqrt_tau)
        * (
            2.0 * t.dividend_yield * t.tau
            + 1.0
            + (2.0 * (t.risk_free_rate - t.dividend_yield) * t.tau - t.d2 * sigma_sqrt_tau)
            / sigma_sqrt_tau
            * t.d1
        )
    )


def _ultima(t: _Terms) -> float:
    d1d2 = t.d1 * t.d2
    return -_vega(t) / (t.sigma * t.sigma) * (d1d2 * (1.0 - d1d2) + t.d1 * t.d1 + t.d2 * t.d2)


_FORMULAS: dict[GreekKind, Callable[[_Terms], float]] = {
    GreekKind.DELTA: _delta,
    GreekKind.DUAL_DELTA: _dual_delta,
    GreekKind.VEGA: _vega,
    GreekKind.THETA: _theta,
    GreekKind.RHO: _rho,
    GreekKind.EPSILON: _epsilon,
    GreekKind.GAMMA: _gamma,
    GreekKind.DUAL_GAMMA: _dual_gamma,
    GreekKind.VANNA: _vanna,
    GreekKind.CHARM: _charm,
    GreekKind.VOMMA: _vomma,
    GreekKind.VETA: _veta,
    GreekKind.SPEED: _speed,
    GreekKind.ZOMMA: _zomma,
    GreekKind.COLOR: _color,
    GreekKind.ULTIMA: _ultima,
}


# =============================================================================
# Public API
# =============================================================================


def greek(
    kind: GreekKind,
    asset_price: float,
    strike: float,
    tau: float,
    risk_free_rate: float,
    dividend_yield: float,
    sigma: float,
    option_type: OptionType,
) -> float:
    """
    Evaluate one analytic Greek.

    Args:
        kind: Which sensitivity to compute
        asset_price: Spot price of the underlying
        strike: Strike price
        tau: Time to expiry in years
        risk_free_rate: Risk-free rate
        dividend_yield: Continuous dividend yield
        sigma: Volatility
        option_type: CALL or PUT

    Returns:
        The sensitivity value

    Raises:
        InvalidInputError: If S, K, T or sigma is non-positive
    """
    terms = _terms(asset_price, strike, tau, risk_free_rate, dividend_yield, sigma, option_type)
    return _FORMULAS[GreekKind(kind)](terms)


def exposure(
    kind: GreekKind,
    greek_value: float,
    open_interest: float | None,
    multiplier: float = 1.0,
) -> float:
    """
    Scale a Greek by position size.

    Args:
        kind: The Greek being scaled (for error reporting)
        greek_value: Per-contract Greek value
        open_interest: Contracts outstanding
        multiplier: Contract multiplier

    Returns:
        greek_value * open_interest * multiplier

    Raises:
        MissingOpenInterestError: If open_interest is None
    """
    if open_interest is None:
        raise MissingOpenInterestError(
            f"Open interest is required for {GreekKind(kind).value} exposure"
        )
    return greek_value * open_interest * multiplier


class Greeks(msgspec.Struct, frozen=True, gc=False):
    """
    Full set of Greeks for one option at one volatility.

    Use scale() for open-interest-weighted exposures.
    """

    delta: float
    dual_delta: float
    vega: float
    theta: float
    rho: float
    epsilon: float
    gamma: float
    dual_gamma: float
    vanna: float
    charm: float
    vomma: float
    veta: float
    speed: float
    zomma: float
    color: float
    ultima: float

    def get(self, kind: GreekKind) -> float:
        """Value for one GreekKind."""
        return getattr(self, GreekKind(kind).value)

    def scale(self, open_interest: float, multiplier: float = 1.0) -> Greeks:
        """
        Exposures for every Greek.

        Args:
            open_interest: Contracts outstanding
            multiplier: Contract multiplier

        Returns:
            New Greeks with each value multiplied by open_interest * multiplier
        """
        factor = open_interest * multiplier
        return Greeks(**{kind.value: self.get(kind) * factor for kind in GreekKind})

    def to_dict(self) -> dict[str, float]:
        return {kind.value: self.get(kind) for kind in GreekKind}


def compute_greeks(
    asset_price: float,
    strike: float,
    tau: float,
    risk_free_rate: float,
    dividend_yield: float,
    sigma: float,
    option_type: OptionType,
) -> Greeks:
    """Evaluate all sixteen Greeks sharing one set of intermediate terms."""
    terms = _terms(asset_price, strike, tau, risk_free_rate, dividend_yield, sigma, option_type)
    return Greeks(**{kind.value: formula(terms) for kind, formula in _FORMULAS.items()})
