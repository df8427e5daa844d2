"""
Option Analytics Exceptions.

All errors raised by the pricing engine and the quote collections derive
from OptionsError. They describe recoverable conditions: the caller decides
whether to skip the quote, retry with other inputs or abort.
"""

from __future__ import annotations


class OptionsError(Exception):
    """Base exception for option analytics errors."""


class InvalidInputError(OptionsError, ValueError):
    """Non-positive strike, asset price or time to expiry, or inadmissible volatility."""


class NoArbitrageViolationError(OptionsError):
    """Target premium lies outside the theoretical no-arbitrage bounds."""


class ConvergenceFailureError(OptionsError):
    """Implied volatility solver did not reach the tolerance."""


class EmptyCollectionError(OptionsError):
    """Queried collection lacks the required elements."""


class EmptySideError(EmptyCollectionError):
    """Strike book has no quote on the requested side."""


class EmptyChainError(EmptyCollectionError):
    """Option chain has no (matching) elements."""


class MissingDataError(OptionsError):
    """Auxiliary quote data required by the operation is absent."""


class MissingVolumeError(MissingDataError):
    """Volume is required but not set on the quote."""


class MissingOpenInterestError(MissingDataError):
    """Open interest is required but not set on the quote."""
