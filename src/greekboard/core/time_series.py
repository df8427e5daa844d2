"""
Time Series.

Append-only sequence of (timestamp, value) pairs, generic over the value
type. Used to turn repeated board snapshots into histories of scalars
(e.g. ATM implied volatility or net gamma exposure per tick).
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Iterable, Iterator
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

import numpy as np

from greekboard.core.options.errors import InvalidInputError


T = TypeVar("T")
U = TypeVar("U")


class TimeSeries(Generic[T]):
    """
    Timestamped values in insertion order.

    Timestamps are never re-sorted: a later push may carry an earlier
    timestamp.

    Examples:
        series: TimeSeries[StrikeBoard] = TimeSeries()
        for snapshot in snapshots:
            series.push(snapshot.book, snapshot.timestamp)

        vegas = series.map(StrikeBoard.mid).map(OptionQuote.vega)
        df = vegas.to_frame()
    """

    def __init__(
        self,
        values: Iterable[T] = (),
        timestamps: Iterable[datetime] = (),
    ) -> None:
        self._values: list[T] = list(values)
        self._timestamps: list[datetime] = list(timestamps)
        if len(self._values) != len(self._timestamps):
            raise InvalidInputError(
                f"Got {len(self._values)} values for {len(self._timestamps)} timestamps"
            )

    def push(self, value: T, timestamp: datetime | None = None) -> None:
        """Append a value; timestamp defaults to the current UTC time."""
        self._values.append(value)
        self._timestamps.append(timestamp or datetime.now(timezone.utc))

    def map(self, f: Callable[[T], U]) -> TimeSeries[U]:
        """New series with f applied to every value, timestamps unchanged."""
        return TimeSeries([f(v) for v in self._values], self._timestamps)

    @property
    def values(self) -> list[T]:
        return list(self._values)

    @property
    def timestamps(self) -> list[datetime]:
        return list(self._timestamps)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[tuple[datetime, T]]:
        return zip(self._timestamps, self._values)

    def __getitem__(self, index: int) -> tuple[datetime, T]:
        return self._timestamps[index], self._values[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeSeries):
            return NotImplemented
        return self._timestamps == other._timestamps and self._values == other._values

    def __repr__(self) -> str:
        return f"TimeSeries(len={len(self)})"

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def _combine(self, other: Any, op: Callable[[Any, Any], Any]) -> TimeSeries[Any]:
        if isinstance(other, TimeSeries):
            if len(other) != len(self):
                raise InvalidInputError(
                    f"Cannot combine series of length {len(self)} and {len(other)}"
                )
            values = [op(a, b) for a, b in zip(self._values, other._values)]
        else:
            values = [op(a, other) for a in self._values]
        return TimeSeries(values, self._timestamps)

    def __add__(self, other: Any) -> TimeSeries[Any]:
        return self._combine(other, operator.add)

    def __sub__(self, other: Any) -> TimeSeries[Any]:
        return self._combine(other, operator.sub)

    def __mul__(self, other: Any) -> TimeSeries[Any]:
        return self._combine(other, operator.mul)

    def __truediv__(self, other: Any) -> TimeSeries[Any]:
        return self._combine(other, operator.truediv)

    def __radd__(self, other: Any) -> TimeSeries[Any]:
        return self._combine(other, lambda a, b: b + a)

    def __rsub__(self, other: Any) -> TimeSeries[Any]:
        return self._combine(other, lambda a, b: b - a)

    def __rmul__(self, other: Any) -> TimeSeries[Any]:
        return self._combine(other, lambda a, b: b * a)

    def __rtruediv__(self, other: Any) -> TimeSeries[Any]:
        return self._combine(other, lambda a, b: b / a)

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def to_numpy(self) -> np.ndarray:
        """Values as a float64 array."""
        return np.asarray(self._values, dtype=np.float64)

    def to_frame(self) -> Any:
        """
        Convert to Polars DataFrame.

        Returns:
            Polars DataFrame with columns:
            - timestamp: datetime
            - value: float
        """
        import polars as pl

        return pl.DataFrame({
            "timestamp": self._timestamps,
            "value": [float(v) for v in self._values],  # type: ignore[arg-type]
        })
