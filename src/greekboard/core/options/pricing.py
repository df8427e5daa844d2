"""
Black-Scholes Pricing Engine.

Closed-form European option pricing with a continuous dividend yield and
the inverse problem (implied volatility).

Variables used throughout:
    asset_price (S): spot price of the underlying
    strike (K): strike price
    tau (T): time to expiry in years
    risk_free_rate (r): continuously compounded risk-free rate
    dividend_yield (q): continuous dividend yield
    sigma: volatility (annualized decimal, e.g. 0.35 = 35%)

Formulas:
    d1 = (ln(S/K) + (r - q + sigma^2 / 2) T) / (sigma sqrt(T))
    d2 = d1 - sigma sqrt(T)
    C  = S e^(-qT) N(d1) - K e^(-rT) N(d2)
    P  = K e^(-rT) N(-d2) - S e^(-qT) N(-d1)

Examples:
    premium = price(100.0, 100.0, 0.25, 0.01, 0.0, 0.2, OptionType.CALL)
    sigma = implied_volatility(premium, 100.0, 100.0, 0.25, 0.01, 0.0, OptionType.CALL)
"""

from __future__ import annotations

import logging
import math

from scipy.stats import norm

from greekboard.core.config import PricingConfig, get_pricing_config
from greekboard.core.options.errors import (
    ConvergenceFailureError,
    InvalidInputError,
    NoArbitrageViolationError,
)
from greekboard.core.options.types import OptionType


logger = logging.getLogger(__name__)

# Below this vega a Newton step is meaningless; bisect instead
_VEGA_FLOOR = 1e-12


# =============================================================================
# Building Blocks
# =============================================================================


def norm_pdf(x: float) -> float:
    """Standard normal density phi(x)."""
    return float(norm.pdf(x))


def norm_cdf(x: float) -> float:
    """Standard normal cumulative distribution Phi(x)."""
    return float(norm.cdf(x))


def validate_market(asset_price: float, strike: float, tau: float) -> None:
    """
    Check the market inputs shared by every Black-Scholes evaluation.

    Raises:
        InvalidInputError: If S, K or T is non-positive or not finite.
    """
    if not (math.isfinite(asset_price) and asset_price > 0):
        raise InvalidInputError(f"asset_price must be positive, got {asset_price}")
    if not (math.isfinite(strike) and strike > 0):
        raise InvalidInputError(f"strike must be positive, got {strike}")
    if not (math.isfinite(tau) and tau > 0):
        raise InvalidInputError(f"time to expiry must be positive, got {tau}")


def validate_sigma(sigma: float) -> None:
    """Raise InvalidInputError unless sigma is a finite positive number."""
    if not (math.isfinite(sigma) and sigma > 0):
        raise InvalidInputError(f"volatility must be positive, got {sigma}")


def d1(
    asset_price: float,
    strike: float,
    tau: float,
    risk_free_rate: float,
    dividend_yield: float,
    sigma: float,
) -> float:
    """d1 term of the Black-Scholes formula."""
    return (
        math.log(asset_price / strike)
        + (risk_free_rate - dividend_yield + 0.5 * sigma * sigma) * tau
    ) / (sigma * math.sqrt(tau))


def d2(
    asset_price: float,
    strike: float,
    tau: float,
    risk_free_rate: float,
    dividend_yield: float,
    sigma: float,
) -> float:
    """d2 = d1 - sigma sqrt(T)."""
    return d1(asset_price, strike, tau, risk_free_rate, dividend_yield, sigma) - sigma * math.sqrt(
        tau
    )


# =============================================================================
# Pricing
# =============================================================================


def price(
    asset_price: float,
    strike: float,
    tau: float,
    risk_free_rate: float,
    dividend_yield: float,
    sigma: float,
    option_type: OptionType,
) -> float:
    """
    Black-Scholes premium.

    Args:
        asset_price: Spot price of the underlying
        strike: Strike price
        tau: Time to expiry in years
        risk_free_rate: Risk-free rate
        dividend_yield: Continuous dividend yield
        sigma: Volatility
        option_type: CALL or PUT

    Returns:
        Premium (always >= 0)

    Raises:
        InvalidInputError: If S, K, T or sigma is non-positive
    """
    validate_market(asset_price, strike, tau)
    validate_sigma(sigma)

    d_1 = d1(asset_price, strike, tau, risk_free_rate, dividend_yield, sigma)
    d_2 = d_1 - sigma * math.sqrt(tau)
    spot = asset_price * math.exp(-dividend_yield * tau)
    discounted_strike = strike * math.exp(-risk_free_rate * tau)

    if option_type == OptionType.CALL:
        value = spot * norm_cdf(d_1) - discounted_strike * norm_cdf(d_2)
    else:
        value = discounted_strike * norm_cdf(-d_2) - spot * norm_cdf(-d_1)
    # Cancellation can leave a tiny negative residue for deep OTM options
    return max(value, 0.0)


def premium_bounds(
    asset_price: float,
    strike: float,
    tau: float,
    risk_free_rate: float,
    dividend_yield: float,
    option_type: OptionType,
) -> tuple[float, float]:
    """
    No-arbitrage bounds of a European premium.

    Returns:
        (lower, upper) where lower is the discounted intrinsic value and upper
        is the discounted spot (call) or discounted strike (put)
    """
    spot = asset_price * math.exp(-dividend_yield * tau)
    discounted_strike = strike * math.exp(-risk_free_rate * tau)
    if option_type == OptionType.CALL:
        return max(spot - discounted_strike, 0.0), spot
    return max(discounted_strike - spot, 0.0), discounted_strike


def _vega(
    asset_price: float,
    strike: float,
    tau: float,
    risk_free_rate: float,
    dividend_yield: float,
    sigma: float,
) -> float:
    d_1 = d1(asset_price, strike, tau, risk_free_rate, dividend_yield, sigma)
    return asset_price * math.exp(-dividend_yield * tau) * norm_pdf(d_1) * math.sqrt(tau)


# =============================================================================
# Implied Volatility
# =============================================================================


def implied_volatility(
    target_premium: float,
    asset_price: float,
    strike: float,
    tau: float,
    risk_free_rate: float,
    dividend_yield: float,
    option_type: OptionType,
    *,
    config: PricingConfig | None = None,
) -> float:
    """
    Solve price(sigma) = target_premium for sigma.

    The seed comes from the Brenner-Subrahmanyam approximation
    sigma0 = sqrt(2 pi / T) * premium / (S e^(-qT)). Newton-Raphson steps use
    vega as the derivative inside a shrinking [sigma_min, sigma_max] bracket;
    whenever vega underflows or a step leaves the bracket the solver bisects.

    Args:
        target_premium: Observed premium
        asset_price: Spot price of the underlying
        strike: Strike price
        tau: Time to expiry in years
        risk_free_rate: Risk-free rate
        dividend_yield: Continuous dividend yield
        option_type: CALL or PUT
        config: Solver settings (default: process config)

    Returns:
        Implied volatility

    Raises:
        InvalidInputError: If market inputs or the premium are invalid
        NoArbitrageViolationError: If the premium is outside the no-arbitrage bounds
        ConvergenceFailureError: If no sigma in range reproduces the premium
            within the iteration cap
    """
    config = config or get_pricing_config()
    validate_market(asset_price, strike, tau)
    if not math.isfinite(target_premium) or target_premium < 0:
        raise InvalidInputError(f"premium must be non-negative, got {target_premium}")

    tolerance = config.iv_tolerance
    lower, upper = premium_bounds(
        asset_price, strike, tau, risk_free_rate, dividend_yield, option_type
    )
    if target_premium < lower - tolerance or target_premium > upper + tolerance:
        raise NoArbitrageViolationError(
            f"Premium {target_premium:.6f} outside no-arbitrage bounds "
            f"[{lower:.6f}, {upper:.6f}]"
        )

    def objective(sigma: float) -> float:
        return (
            price(asset_price, strike, tau, risk_free_rate, dividend_yield, sigma, option_type)
            - target_premium
        )

    low, high = config.sigma_min, config.sigma_max

    diff_low = objective(low)
    if abs(diff_low) < tolerance:
        return low
    if diff_low > 0:
        raise ConvergenceFailureError(
            f"Premium {target_premium:.6f} is below the price at sigma_min={low}"
        )
    diff_high = objective(high)
    if abs(diff_high) < tolerance:
        return high
    if diff_high < 0:
        raise ConvergenceFailureError(
            f"Premium {target_premium:.6f} is above the price at sigma_max={high}"
        )

    spot = asset_price * math.exp(-dividend_yield * tau)
    sigma = math.sqrt(2.0 * math.pi / tau) * target_premium / spot
    if not low < sigma < high:
        sigma = 0.5 * (low + high)

    for iteration in range(1, config.iv_max_iterations + 1):
        diff = objective(sigma)
        if abs(diff) < tolerance:
            logger.debug("IV converged to %.6f after %d iterations", sigma, iteration)
            return sigma

        # Premium is increasing in sigma, so the sign of diff shrinks the bracket
        if diff > 0:
            high = sigma
        else:
            low = sigma

        vega = _vega(asset_price, strike, tau, risk_free_rate, dividend_yield, sigma)
        candidate = sigma - diff / vega if vega > _VEGA_FLOOR else math.nan
        if not low < candidate < high:
            logger.debug(
                "Newton step rejected at sigma=%.6f (vega=%.3e), bisecting [%.6f, %.6f]",
                sigma,
                vega,
                low,
                high,
            )
            candidate = 0.5 * (low + high)
        sigma = candidate

    raise ConvergenceFailureError(
        f"IV solver did not converge within {config.iv_max_iterations} iterations "
        f"(last sigma={sigma:.6f})"
    )
