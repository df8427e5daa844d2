"""
Option Board.

Every maturity of one underlying: one OptionChain per distinct expiry,
kept in maturity order. The board is the ingestion entry point; upsert()
creates chains and strike books on demand.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Callable, Iterable, Iterator
from datetime import datetime, timedelta
from typing import Generic, TypeVar

import msgspec

from greekboard.core.options.books import StrikeBoard
from greekboard.core.options.chains import OptionChain
from greekboard.core.options.errors import EmptyChainError, InvalidInputError
from greekboard.core.options.models import OptionQuote


logger = logging.getLogger(__name__)


T = TypeVar("T")
U = TypeVar("U")


class OptionBoard(Generic[T]):
    """
    Collection of option chains keyed by maturity.

    For a given (maturity, strike, side, option_type) there is at most one
    resident quote: upserting the same key again replaces it.

    Maturities match exactly by default. With a non-zero maturity_tolerance,
    a quote joins the nearest existing chain within the window and its
    maturity is snapped to the chain's.

    Examples:
        board = OptionBoard.of_books()
        for quote in feed:
            board.upsert(quote)

        front = board.front_month()
        atm_iv = front.atm().mid().iv()

        # Per-maturity ATM vega
        vegas = board.map(lambda book: book.mid().vega())
    """

    def __init__(
        self,
        kind: type | None = None,
        chains: Iterable[OptionChain[T]] = (),
        maturity_tolerance: timedelta = timedelta(0),
    ) -> None:
        """
        Initialize board.

        Args:
            kind: StrikeBoard or OptionQuote (element type of new chains)
            chains: Initial chains, one per maturity (copied)
            maturity_tolerance: Window for matching quotes to existing chains

        Raises:
            InvalidInputError: If two chains share a maturity or the
                tolerance is negative
        """
        if maturity_tolerance < timedelta(0):
            raise InvalidInputError(
                f"maturity_tolerance must be non-negative, got {maturity_tolerance}"
            )
        self.kind = kind
        self.maturity_tolerance = maturity_tolerance
        self._chains: dict[datetime, OptionChain[T]] = {}
        self._maturities: list[datetime] = []
        for chain in chains:
            if chain.maturity in self._chains:
                raise InvalidInputError(
                    f"Duplicate chain for maturity {chain.maturity.isoformat()}"
                )
            self._chains[chain.maturity] = OptionChain(chain.maturity, chain, kind=chain.kind)
            bisect.insort(self._maturities, chain.maturity)

    @classmethod
    def of_books(cls, maturity_tolerance: timedelta = timedelta(0)) -> OptionBoard[StrikeBoard]:
        """Empty board whose chains hold one StrikeBoard per strike."""
        return cls(StrikeBoard, maturity_tolerance=maturity_tolerance)

    @classmethod
    def of_quotes(cls, maturity_tolerance: timedelta = timedelta(0)) -> OptionBoard[OptionQuote]:
        """Empty board whose chains hold individual quotes."""
        return cls(OptionQuote, maturity_tolerance=maturity_tolerance)

    # =========================================================================
    # Container protocol
    # =========================================================================

    def __len__(self) -> int:
        return len(self._chains)

    def __iter__(self) -> Iterator[OptionChain[T]]:
        """Chains in ascending maturity order."""
        return (self._chains[m] for m in self._maturities)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OptionBoard):
            return NotImplemented
        return self.chains == other.chains

    def __repr__(self) -> str:
        return f"OptionBoard(kind={getattr(self.kind, '__name__', None)}, chains={len(self)})"

    @property
    def chains(self) -> list[OptionChain[T]]:
        """Chains in ascending maturity order."""
        return list(self)

    @property
    def maturities(self) -> list[datetime]:
        """Sorted maturities."""
        return list(self._maturities)

    # =========================================================================
    # Lookup
    # =========================================================================

    def _resolve(self, maturity: datetime) -> datetime | None:
        """Resident maturity matching the given one, or None."""
        if maturity in self._chains:
            return maturity
        if not self.maturity_tolerance:
            return None

        i = bisect.bisect_left(self._maturities, maturity)
        neighbours = self._maturities[max(i - 1, 0) : i + 1]
        best = min(neighbours, key=lambda m: abs(m - maturity), default=None)
        if best is not None and abs(best - maturity) <= self.maturity_tolerance:
            return best
        return None

    def get(self, maturity: datetime) -> OptionChain[T] | None:
        """Chain for maturity (within tolerance), or None."""
        resident = self._resolve(maturity)
        return self._chains[resident] if resident is not None else None

    def front_month(self) -> OptionChain[T]:
        """
        Nearest-expiry chain.

        Raises:
            EmptyChainError: If the board has no chains
        """
        if not self._maturities:
            raise EmptyChainError("Option board is empty")
        return self._chains[self._maturities[0]]

    # =========================================================================
    # Mutation
    # =========================================================================

    def upsert(self, quote: OptionQuote) -> None:
        """
        Insert or replace a quote, creating its chain and book on demand.

        A withdrawn quote (zero amount or volatility) deletes the resident
        quote instead; no chain is created for it.

        Raises:
            InvalidInputError: If the board's element kind is unknown
        """
        if quote.is_withdrawn:
            if self.kind not in (StrikeBoard, OptionQuote):
                raise InvalidInputError("Board element kind must be StrikeBoard or OptionQuote")
            self.delete(quote)
            return
        resident = self._resolve(quote.maturity)
        if resident is None:
            chain: OptionChain[T] = OptionChain(quote.maturity, kind=self.kind)
            self._chains[quote.maturity] = chain
            bisect.insort(self._maturities, quote.maturity)
            logger.debug("Created chain for maturity %s", quote.maturity.isoformat())
        else:
            chain = self._chains[resident]
            if resident != quote.maturity:
                quote = msgspec.structs.replace(quote, maturity=resident)
        chain.upsert(quote)

    def delete(self, quote: OptionQuote) -> bool:
        """
        Remove the resident quote with the same key.

        Empty books and chains are pruned.

        Returns:
            True if a quote was removed
        """
        resident = self._resolve(quote.maturity)
        if resident is None:
            return False
        chain = self._chains[resident]
        if resident != quote.maturity:
            quote = msgspec.structs.replace(quote, maturity=resident)
        removed = chain.delete(quote)
        if removed and chain.is_empty:
            del self._chains[resident]
            self._maturities.remove(resident)
            logger.debug("Pruned empty chain for maturity %s", resident.isoformat())
        return removed

    # =========================================================================
    # Transformation
    # =========================================================================

    def map(self, f: Callable[[T], U]) -> OptionBoard[U]:
        """
        Apply f to every element of every chain.

        Raises:
            EmptyChainError: If any chain is empty
        """
        return OptionBoard(
            chains=[chain.map(f) for chain in self],
            maturity_tolerance=self.maturity_tolerance,
        )
