"""
Strike Book.

All bid/ask quotes for one strike and one maturity. Provides best bid,
best ask and (volume-weighted) mid prices.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import datetime

import msgspec

from greekboard.core.options.errors import (
    EmptySideError,
    InvalidInputError,
    MissingVolumeError,
)
from greekboard.core.options.models import OptionQuote, Price
from greekboard.core.options.types import OptionSide, OptionType


logger = logging.getLogger(__name__)


class StrikeBoard(msgspec.Struct, gc=False):
    """
    Unordered set of quotes sharing one strike and one maturity.

    Option type is conventionally shared too. Mixed types are accepted (with
    a warning) but moneyness-sensitive queries read the first quote's type.

    Note: Not frozen to allow efficient building during ingestion.

    Examples:
        book = StrikeBoard()
        book.push(bid_quote)
        book.push(ask_quote)

        mid = book.mid()  # synthetic quote, side=None
        print(f"Mid IV: {mid.iv():.2%}")
    """

    quotes: list[OptionQuote] = msgspec.field(default_factory=list)

    def __post_init__(self) -> None:
        # Own a private copy of the caller's list
        given = list(self.quotes)
        self.quotes = []
        for quote in given:
            self.push(quote)

    def __len__(self) -> int:
        return len(self.quotes)

    def __iter__(self) -> Iterator[OptionQuote]:
        return iter(self.quotes)

    @property
    def is_empty(self) -> bool:
        return not self.quotes

    # -------------------------------------------------------------------------
    # Common info (read from the first quote)
    # -------------------------------------------------------------------------

    def _first(self) -> OptionQuote:
        if not self.quotes:
            raise EmptySideError("Strike book is empty")
        return self.quotes[0]

    @property
    def strike(self) -> float:
        return self._first().strike

    @property
    def maturity(self) -> datetime:
        return self._first().maturity

    @property
    def asset_price(self) -> float:
        return self._first().asset_price

    @property
    def option_type(self) -> OptionType:
        return self._first().option_type

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def _check_compatible(self, quote: OptionQuote) -> None:
        if not self.quotes:
            return
        first = self.quotes[0]
        if quote.strike != first.strike or quote.maturity != first.maturity:
            raise InvalidInputError(
                f"Quote (strike={quote.strike}, maturity={quote.maturity.isoformat()}) "
                f"does not belong to book (strike={first.strike}, "
                f"maturity={first.maturity.isoformat()})"
            )
        if quote.option_type != first.option_type:
            logger.warning(
                "Mixing %s and %s quotes in strike book %s",
                first.option_type.value,
                quote.option_type.value,
                first.strike,
            )

    def push(self, quote: OptionQuote) -> None:
        """
        Append a quote. No deduplication.

        Raises:
            InvalidInputError: If strike or maturity differs from the book's
        """
        self._check_compatible(quote)
        self.quotes.append(quote)

    def _find(self, quote: OptionQuote) -> int | None:
        for i, resident in enumerate(self.quotes):
            if resident.side == quote.side and resident.option_type == quote.option_type:
                return i
        return None

    def copy(self) -> StrikeBoard:
        """Independent book holding the same quotes."""
        return StrikeBoard(list(self.quotes))

    def upsert(self, quote: OptionQuote) -> None:
        """
        Replace the quote with the same side and option type, or append it.

        A withdrawn quote (zero amount or volatility) deletes the resident
        quote instead.
        """
        self._check_compatible(quote)
        if quote.is_withdrawn:
            self.delete(quote)
            return
        index = self._find(quote)
        if index is None:
            self.quotes.append(quote)
        else:
            self.quotes[index] = quote

    def delete(self, quote: OptionQuote) -> bool:
        """
        Remove the quote with the same side and option type.

        Returns:
            True if a quote was removed
        """
        index = self._find(quote)
        if index is None:
            return False
        del self.quotes[index]
        return True

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def _side(self, side: OptionSide) -> list[OptionQuote]:
        quotes = [q for q in self.quotes if q.side == side]
        if not quotes:
            raise EmptySideError(f"No {side.value} quotes in strike book")
        return quotes

    def best_bid(self) -> OptionQuote:
        """
        Bid quote with the highest premium.

        Raises:
            EmptySideError: If the book has no bids
        """
        return max(self._side(OptionSide.BID), key=lambda q: q.premium())

    def best_ask(self) -> OptionQuote:
        """
        Ask quote with the lowest premium.

        Raises:
            EmptySideError: If the book has no asks
        """
        return min(self._side(OptionSide.ASK), key=lambda q: q.premium())

    def mid(self) -> OptionQuote:
        """
        Synthetic quote priced at the mean of best bid and best ask.

        The result copies the best bid's fields with side=None.

        Raises:
            EmptySideError: If either side is empty
        """
        bid = self.best_bid()
        ask = self.best_ask()
        mid = (bid.premium() + ask.premium()) / 2.0
        return msgspec.structs.replace(bid, option_value=Price(mid), side=None)

    def mid_weighted(self) -> OptionQuote:
        """
        Synthetic quote priced at the volume-weighted mean of best bid and best ask.

        Raises:
            EmptySideError: If either side is empty
            MissingVolumeError: If either best quote lacks volume, or both volumes are 0
        """
        bid = self.best_bid()
        ask = self.best_ask()
        if bid.volume is None or ask.volume is None:
            raise MissingVolumeError("Volume is required on best bid and best ask")
        total = bid.volume + ask.volume
        if total == 0:
            raise MissingVolumeError("Best bid and best ask both have zero volume")
        mid = (bid.premium() * bid.volume + ask.premium() * ask.volume) / total
        return msgspec.structs.replace(bid, option_value=Price(mid), side=None)

    def spread(self) -> float:
        """Best ask premium minus best bid premium."""
        return self.best_ask().premium() - self.best_bid().premium()
