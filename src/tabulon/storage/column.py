"""Typed storage for the values of a column.

A :class:`ColumnStore` keeps an ordered sequence of values, all of
the same :class:`DType`, and a parallel mask that tells which of
the positions are missing::

    values:  [10,    0,    30]
    missing: [False, True, False]

The value at a missing position is a placeholder and is never
read for computations. Reading a missing position returns ``None``.

Positional reads and writes happen in constant time, so the
store can be mutated in place. When the data has to be handed
to the compute functions it is converted to a :class:`pyarrow.Array`,
whose validity bitmap is built from the missing mask.

>>> store = ColumnStore.from_values([10, None, 30])
>>> store.dtype, len(store)
(<DType.INT64: 'int64'>, 3)
>>> store.to_pylist()
[10, None, 30]
>>> store.valid_array().to_pylist()
[10, 30]
"""

from typing import Any, Iterable, Iterator, Self, Sequence

import pyarrow as pa

from ..errors import LengthMismatch
from .dtypes import DType


class ColumnStore:
    """Values of a single type with their missing mask."""

    __slots__ = ("dtype", "_values", "_missing")

    def __init__(
        self,
        dtype: DType,
        values: list[Any] | None = None,
        missing: list[bool] | None = None,
    ) -> None:
        """
        :param dtype: The type of the values.
        :param values: The values, already coerced to the dtype.
        :param missing: The missing mask, same length as values.
                        When not provided no value is missing.
        """
        values = [] if values is None else values
        if missing is None:
            missing = [False] * len(values)
        if len(values) != len(missing):
            raise LengthMismatch(
                f"Values and missing mask differ in length: {len(values)} != {len(missing)}"
            )
        self.dtype = dtype
        self._values = values
        self._missing = missing

    @classmethod
    def from_values(cls, values: Iterable[Any], dtype: DType | str | None = None) -> Self:
        """Build a store from Python values, ``None`` marks missing values.

        :param values: The values of the column.
        :param dtype: The type of the column, inferred from the values if omitted.
        """
        values = list(values)
        dtype = DType.infer(values) if dtype is None else DType.parse(dtype)
        placeholder = dtype.placeholder
        stored = []
        missing = []
        for value in values:
            value = dtype.coerce(value)
            if value is None:
                stored.append(placeholder)
                missing.append(True)
            else:
                stored.append(value)
                missing.append(False)
        return cls(dtype, stored, missing)

    @classmethod
    def from_arrow(cls, array: pa.Array | pa.ChunkedArray) -> Self:
        """Build a store from an Arrow array, nulls become missing values."""
        dtype = DType.from_arrow(array.type)
        if array.type != dtype.arrow_type:
            array = array.cast(dtype.arrow_type)
        return cls.from_values(array.to_pylist(), dtype)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Any]:
        for value, missing in zip(self._values, self._missing):
            yield None if missing else value

    def __str__(self) -> str:
        return f"ColumnStore({self.dtype}, rows={len(self)})"

    __repr__ = __str__

    def get(self, position: int) -> Any:
        """Value at position, ``None`` if it's missing."""
        if self._missing[position]:
            return None
        return self._values[position]

    def set(self, position: int, value: Any) -> None:
        """Replace the value at position, ``None`` marks it missing."""
        value = self.dtype.coerce(value)
        if value is None:
            self.set_missing(position)
        else:
            self._values[position] = value
            self._missing[position] = False

    def is_missing(self, position: int) -> bool:
        return self._missing[position]

    def set_missing(self, position: int) -> None:
        self._values[position] = self.dtype.placeholder
        self._missing[position] = True

    def append(self, value: Any) -> None:
        value = self.dtype.coerce(value)
        if value is None:
            self._values.append(self.dtype.placeholder)
            self._missing.append(True)
        else:
            self._values.append(value)
            self._missing.append(False)

    def missing_mask(self) -> list[bool]:
        """A copy of the missing mask."""
        return list(self._missing)

    def missing_count(self) -> int:
        return sum(self._missing)

    def raw_values(self, start: int = 0, stop: int | None = None) -> list[Any]:
        """Stored values including placeholders, between start and stop."""
        return self._values[start:stop]

    def raw_missing(self, start: int = 0, stop: int | None = None) -> list[bool]:
        return self._missing[start:stop]

    def to_pylist(self) -> list[Any]:
        """The values as a list, with ``None`` at missing positions."""
        return list(self)

    def to_arrow(self) -> pa.Array:
        """The values as an Arrow array with nulls at missing positions."""
        return pa.array(self.to_pylist(), type=self.dtype.arrow_type)

    def valid_values(self, positions: Iterable[int] | None = None) -> list[Any]:
        """The non-missing values, optionally only among a set of positions."""
        if positions is None:
            return [v for v, m in zip(self._values, self._missing) if not m]
        values, missing = self._values, self._missing
        return [values[p] for p in positions if not missing[p]]

    def valid_array(self, positions: Iterable[int] | None = None) -> pa.Array:
        """Contiguous buffer of the non-missing values.

        This is the data that gets handed to the statistics
        functions, which never have to care about missing values.
        """
        return pa.array(self.valid_values(positions), type=self.dtype.arrow_type)

    def take(self, positions: Sequence[int | None]) -> Self:
        """Gather the rows at the given positions in a new store.

        A ``None`` position produces a missing row, which is what
        alignment and outer joins need to pad rows with no match.
        """
        placeholder = self.dtype.placeholder
        values = []
        missing = []
        for position in positions:
            if position is None or self._missing[position]:
                values.append(placeholder)
                missing.append(True)
            else:
                values.append(self._values[position])
                missing.append(False)
        return self.__class__(self.dtype, values, missing)

    def slice(self, start: int = 0, stop: int | None = None) -> Self:
        return self.__class__(self.dtype, self._values[start:stop], self._missing[start:stop])

    def copy(self) -> Self:
        return self.slice()
