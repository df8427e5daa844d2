"""
Option Chain.

All strikes for one maturity, generic over the element kind:
- OptionChain[StrikeBoard]: one bid/ask book per (strike, option type)
- OptionChain[OptionQuote]: one quote per (strike, option type, side)
- OptionChain[U] for anything produced by map() (e.g. float Greeks)

Moneyness queries (otm, atm, n-delta) require elements satisfying the
OptionElement protocol. Elements keep insertion order; strike order is
available through strikes and sort_by_strike().
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from datetime import datetime
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from greekboard.core.config import PricingConfig, get_pricing_config
from greekboard.core.options.books import StrikeBoard
from greekboard.core.options.errors import EmptyChainError, EmptySideError, InvalidInputError
from greekboard.core.options.greeks import GreekKind
from greekboard.core.options.models import OptionQuote
from greekboard.core.options.types import OptionType


logger = logging.getLogger(__name__)


T = TypeVar("T")  # Element type
U = TypeVar("U")  # Mapped element type


@runtime_checkable
class OptionElement(Protocol):
    """Capability shared by OptionQuote and StrikeBoard."""

    @property
    def strike(self) -> float: ...

    @property
    def maturity(self) -> datetime: ...

    @property
    def asset_price(self) -> float: ...

    @property
    def option_type(self) -> OptionType: ...


def _element_kind(elements: list[Any]) -> type | None:
    if elements and isinstance(elements[0], (StrikeBoard, OptionQuote)):
        return type(elements[0])
    return None


def _as_element(element: Any) -> OptionElement:
    if isinstance(element, (OptionQuote, StrikeBoard)):
        return element
    if not isinstance(element, OptionElement):
        raise InvalidInputError(
            f"{type(element).__name__} elements do not carry strike and option type"
        )
    return element


def _own(element: Any) -> Any:
    # Books are mutable; every chain keeps its own
    return element.copy() if isinstance(element, StrikeBoard) else element


def _delta_of(element: Any) -> float | None:
    """Delta of a quote, or of a book's mid; None for a one-sided book."""
    if isinstance(element, StrikeBoard):
        try:
            mid = element.mid()
        except EmptySideError:
            logger.debug("Skipping one-sided strike book %s in delta lookup", element.strike)
            return None
        return mid.delta()
    if isinstance(element, OptionQuote):
        return element.delta()
    raise InvalidInputError(f"Cannot compute delta of {type(element).__name__}")


class OptionChain(Generic[T]):
    """
    All elements for a single maturity.

    Examples:
        chain = OptionChain(maturity, [book_95, book_100, book_105])

        atm_book = chain.atm()
        wings = chain.otm()

        # StrikeBoard -> mid quote -> solved quote -> vega
        vegas = (
            chain.map(StrikeBoard.mid)
            .map(OptionQuote.get_implied_volatility)
            .map(OptionQuote.vega)
        )
    """

    def __init__(
        self,
        maturity: datetime,
        elements: Iterable[T] = (),
        kind: type | None = None,
    ) -> None:
        """
        Initialize chain.

        Args:
            maturity: Expiry shared by every element
            elements: Initial elements (copied, books included; any strike order)
            kind: StrikeBoard or OptionQuote; inferred from the first element
                when omitted. Required for upsert on an empty chain.

        Raises:
            InvalidInputError: If two elements share a key (books: strike and
                option type; quotes: strike, option type and side)
        """
        self.maturity = maturity
        self._elements: list[T] = [_own(e) for e in elements]
        self.kind = kind or _element_kind(self._elements)
        # key -> position; rebuilt lazily after deletes
        self._index: dict[Any, int] | None = None
        if self.kind in (StrikeBoard, OptionQuote):
            self._ensure_index()

    # =========================================================================
    # Container protocol
    # =========================================================================

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[T]:
        return iter(self._elements)

    def __getitem__(self, index: int) -> T:
        return self._elements[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OptionChain):
            return NotImplemented
        return self.maturity == other.maturity and self._elements == other._elements

    def __repr__(self) -> str:
        return f"OptionChain(maturity={self.maturity.isoformat()}, elements={len(self)})"

    @property
    def elements(self) -> list[T]:
        """Copy of the elements in insertion order."""
        return list(self._elements)

    @property
    def is_empty(self) -> bool:
        return not self._elements

    def _derive(self, elements: Iterable[T]) -> OptionChain[T]:
        return OptionChain(self.maturity, elements, kind=self.kind)

    # =========================================================================
    # Common info
    # =========================================================================

    @property
    def strikes(self) -> list[float]:
        """Unique strikes, sorted ascending."""
        return sorted({_as_element(e).strike for e in self._elements})

    @property
    def asset_price(self) -> float:
        """
        Underlying price recorded on the first element.

        Raises:
            EmptyChainError: If the chain is empty
        """
        if not self._elements:
            raise EmptyChainError("Option chain is empty")
        return _as_element(self._elements[0]).asset_price

    def at_strike(self, strike: float) -> list[T]:
        """All elements at one strike, in insertion order."""
        return [e for e in self._elements if _as_element(e).strike == strike]

    def get(self, strike: float) -> T | None:
        """First element at strike, or None."""
        for element in self._elements:
            if _as_element(element).strike == strike:
                return element
        return None

    # =========================================================================
    # Filters
    # =========================================================================

    def call(self) -> OptionChain[T]:
        """Chain restricted to calls."""
        return self._derive(e for e in self._elements if _as_element(e).option_type == OptionType.CALL)

    def put(self) -> OptionChain[T]:
        """Chain restricted to puts."""
        return self._derive(e for e in self._elements if _as_element(e).option_type == OptionType.PUT)

    def sort_by_strike(self) -> OptionChain[T]:
        """Copy ordered by ascending strike (stable for equal strikes)."""
        return self._derive(sorted(self._elements, key=lambda e: _as_element(e).strike))

    def otm(self) -> OptionChain[T]:
        """
        Out-of-the-money elements.

        Calls with strike above, puts with strike below each element's own
        recorded asset price.

        Returns:
            Filtered chain, possibly empty
        """

        def is_otm(element: T) -> bool:
            e = _as_element(element)
            if e.option_type == OptionType.CALL:
                return e.strike > e.asset_price
            return e.strike < e.asset_price

        return self._derive(e for e in self._elements if is_otm(e))

    # =========================================================================
    # Selection
    # =========================================================================

    def atm(self) -> T:
        """
        Element with the strike closest to the asset price.

        Ties go to the first element in insertion order.

        Raises:
            EmptyChainError: If the chain is empty
        """
        if not self._elements:
            raise EmptyChainError("Cannot select ATM element of an empty chain")
        return min(
            self._elements,
            key=lambda e: abs(_as_element(e).strike - _as_element(e).asset_price),
        )

    def _nearest_delta(self, option_type: OptionType, target: float) -> T:
        best: T | None = None
        best_distance = float("inf")
        for element in self._elements:
            if _as_element(element).option_type != option_type:
                continue
            delta = _delta_of(element)
            if delta is None:
                continue
            distance = abs(abs(delta) - target)
            if distance < best_distance:
                best, best_distance = element, distance
        if best is None:
            raise EmptyChainError(f"No priceable {option_type.value} elements in chain")
        return best

    def call_delta(self, n: float) -> T:
        """
        Call whose |delta| is closest to n/100.

        Implied volatility is solved on the fly for quotes holding a price;
        books are evaluated at their mid.

        One-sided books have no mid and are skipped.

        Raises:
            EmptyChainError: If the chain has no priceable calls
        """
        return self._nearest_delta(OptionType.CALL, n / 100.0)

    def put_delta(self, n: float) -> T:
        """Put whose |delta| is closest to n/100."""
        return self._nearest_delta(OptionType.PUT, n / 100.0)

    def call_25delta(self) -> T:
        return self.call_delta(25)

    def call_50delta(self) -> T:
        return self.call_delta(50)

    def put_25delta(self) -> T:
        return self.put_delta(25)

    def put_50delta(self) -> T:
        return self.put_delta(50)

    # =========================================================================
    # Transformation
    # =========================================================================

    def map(self, f: Callable[[T], U]) -> OptionChain[U]:
        """
        Apply f to every element, preserving order and maturity.

        Raises:
            EmptyChainError: If the chain is empty
        """
        if not self._elements:
            raise EmptyChainError("Cannot map an empty chain")
        return OptionChain(self.maturity, [f(e) for e in self._elements])

    # =========================================================================
    # Keyed mutation
    # =========================================================================

    def _key(self, quote: OptionQuote) -> Any:
        if self.kind is StrikeBoard:
            return (quote.strike, quote.option_type)
        return (quote.strike, quote.option_type, quote.side)

    def _element_key(self, element: T) -> Any:
        if isinstance(element, StrikeBoard):
            if element.is_empty:
                raise InvalidInputError("Empty strike books cannot be keyed")
            return (element.strike, element.option_type)
        if isinstance(element, OptionQuote):
            return (element.strike, element.option_type, element.side)
        raise InvalidInputError(f"{type(element).__name__} elements cannot be keyed")

    def _ensure_index(self) -> dict[Any, int]:
        if self._index is None:
            self._index = {}
            for position, element in enumerate(self._elements):
                key = self._element_key(element)
                if key in self._index:
                    raise InvalidInputError(f"Duplicate chain element for key {key}")
                self._index[key] = position
        return self._index

    def upsert(self, quote: OptionQuote) -> None:
        """
        Insert or replace a quote.

        For book chains, the quote goes into the book at its (strike, option
        type) (created on demand) and replaces the resident quote with the
        same side. For quote chains, it replaces the quote with the same
        (strike, option type, side) or is appended.

        A withdrawn quote (zero amount or volatility) deletes the resident
        quote instead, dropping its book once empty.

        Raises:
            InvalidInputError: If the chain's element kind is unknown
        """
        if self.kind not in (StrikeBoard, OptionQuote):
            raise InvalidInputError("Chain element kind must be StrikeBoard or OptionQuote")
        if quote.is_withdrawn:
            self.delete(quote)
            return
        index = self._ensure_index()
        key = self._key(quote)
        position = index.get(key)

        if self.kind is StrikeBoard:
            if position is None:
                book = StrikeBoard()
                book.push(quote)
                index[key] = len(self._elements)
                self._elements.append(book)  # type: ignore[arg-type]
            else:
                self._elements[position].upsert(quote)  # type: ignore[attr-defined]
            return

        if position is None:
            index[key] = len(self._elements)
            self._elements.append(quote)  # type: ignore[arg-type]
        else:
            self._elements[position] = quote  # type: ignore[assignment]

    def delete(self, quote: OptionQuote) -> bool:
        """
        Remove the quote with the same key; empty books are dropped.

        Returns:
            True if a quote was removed
        """
        if self.kind not in (StrikeBoard, OptionQuote):
            return False
        position = self._ensure_index().get(self._key(quote))
        if position is None:
            return False

        if self.kind is StrikeBoard:
            book = self._elements[position]
            if not book.delete(quote):  # type: ignore[attr-defined]
                return False
            if not book.is_empty:  # type: ignore[attr-defined]
                return True
            logger.debug("Dropped empty strike book %s from chain %s", quote.strike, self.maturity)

        del self._elements[position]
        self._index = None
        return True

    # =========================================================================
    # Aggregates
    # =========================================================================

    def net_exposure(
        self,
        kind: GreekKind,
        multiplier: float | None = None,
        config: PricingConfig | None = None,
    ) -> float:
        """
        Chain-wide Greek exposure.

        Sum over quotes of greek * open_interest * asset_price * multiplier,
        with puts counted negatively (the usual dealer GEX convention).

        Args:
            kind: Which Greek to aggregate
            multiplier: Contract multiplier (default: config.contract_multiplier)
            config: Pricing settings

        Raises:
            InvalidInputError: If elements are not OptionQuotes
            MissingOpenInterestError: If any quote lacks open interest
        """
        config = config or get_pricing_config()
        if multiplier is None:
            multiplier = config.contract_multiplier
        total = 0.0
        for element in self._elements:
            if not isinstance(element, OptionQuote):
                raise InvalidInputError("net_exposure requires a chain of OptionQuotes")
            value = element.exposure(kind, multiplier * element.asset_price, config)
            total += -value if element.is_put else value
        return total
