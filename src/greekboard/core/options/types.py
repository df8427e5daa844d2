"""
Option classification enums.

Shared by the pricing engine and the quote models.
"""

from __future__ import annotations

from enum import Enum


class OptionType(str, Enum):
    """
    Option type (call or put).

    - CALL: Right to buy the underlying at strike price
    - PUT: Right to sell the underlying at strike price
    """

    CALL = "call"
    PUT = "put"


class OptionSide(str, Enum):
    """
    Quote side.

    A quote without a side is synthetic (e.g. a computed mid).
    """

    BID = "bid"
    ASK = "ask"
