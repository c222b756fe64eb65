"""The Series object itself."""

import logging
import math
import numbers
import operator
from typing import Any, Callable, Iterable, Iterator, Self, Sequence

import pyarrow as pa
import pyarrow.compute as pc

from ..compute import stats
from ..compute.parallel import ExecutionStrategy, concat_chunks, resolve_strategy
from ..config import get_engine_defaults
from ..errors import (
    EmptyReduction,
    LengthMismatch,
    NonUniqueIndex,
    RowCountMismatch,
    TypeMismatch,
)
from ..storage import ColumnStore, DType
from ..storage.dtypes import is_nan
from ..utils import tabulate

log = logging.getLogger(__name__)

_ALIGN_JOINS = ("outer", "inner", "left")


def divide(a: Any, b: Any) -> float:
    """Division following IEEE 754 on a zero divisor.

    >>> divide(1, 0), divide(-1.0, 0), divide(0, 0)
    (inf, -inf, nan)
    """
    try:
        return a / b
    except ZeroDivisionError:
        if a == 0 or is_nan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


class Series:
    """A named column of values of the same type.

    The values are kept in a :class:`tabulon.storage.ColumnStore`
    and any of them can be missing. Missing values are skipped by
    reductions and propagate through elementwise operations.
    Division always produces floats, and dividing by zero gives
    ``inf`` or ``nan`` as floating point division does in Arrow.

    >>> s = Series([10, None, 30], name="val")
    >>> s.sum()
    40
    >>> (s * 2).to_list()
    [20, None, 60]

    A Series can optionally have an index, a label for each row
    used to align it with other Series. When no index is provided
    the row position is used as the label.
    """

    def __init__(
        self,
        data: Iterable[Any] | ColumnStore | pa.Array | pa.ChunkedArray | None = None,
        name: str | None = None,
        dtype: DType | str | None = None,
        index: Iterable[Any] | None = None,
    ) -> None:
        """
        :param data: The values, ``None`` marks a missing value.
                     Can also be a ColumnStore or a pyarrow Array.
        :param name: The name of the Series.
        :param dtype: The type of the values, inferred when not provided.
        :param index: The labels of the rows.
        """
        if isinstance(data, Series):
            if name is None:
                name = data.name
            if index is None and data.has_index:
                index = data.index
            data = data.store.copy()
        if isinstance(data, ColumnStore):
            store = data
            if dtype is not None and DType.parse(dtype) is not store.dtype:
                store = ColumnStore.from_values(store.to_pylist(), dtype)
        elif isinstance(data, (pa.Array, pa.ChunkedArray)):
            store = ColumnStore.from_arrow(data)
            if dtype is not None and DType.parse(dtype) is not store.dtype:
                store = _cast_store(store, DType.parse(dtype))
        else:
            store = ColumnStore.from_values([] if data is None else data, dtype)

        self.name = name
        self._store = store
        self._index: list[Any] | None = None
        self._frames = 0
        if index is not None:
            self._index = self._check_index(index)

    @classmethod
    def arange(cls, start: int, stop: int, step: int = 1, name: str | None = None) -> Self:
        """A Series of integers from ``start`` to ``stop`` (excluded).

        >>> Series.arange(0, 5).to_list()
        [0, 1, 2, 3, 4]
        """
        return cls(range(start, stop, step), name=name, dtype=DType.INT64)

    def _check_index(self, index: Iterable[Any]) -> list[Any]:
        index = list(index)
        if len(index) != len(self._store):
            raise LengthMismatch(
                f"Index has {len(index)} labels, but the Series has {len(self._store)} values"
            )
        return index

    def _derive(self, store: ColumnStore, name: str | None = None) -> "Series":
        """New Series with the same name and index of this one."""
        index = None if self._index is None else list(self._index)
        return Series(store, name=self.name if name is None else name, index=index)

    def _require_numeric(self, operation: str) -> None:
        if not self.dtype.is_numeric:
            raise TypeMismatch(f"{operation} requires a numeric Series, got {self.dtype}")

    # The owning DataFrames track themselves, so that the length
    # of a Series can't change while it's part of one.
    def _attach(self) -> None:
        self._frames += 1

    def _detach(self) -> None:
        self._frames = max(0, self._frames - 1)

    @property
    def store(self) -> ColumnStore:
        return self._store

    @property
    def dtype(self) -> DType:
        return self._store.dtype

    @property
    def index(self) -> list[Any]:
        """The row labels, the row positions when no index was provided."""
        if self._index is None:
            return list(range(len(self._store)))
        return list(self._index)

    @property
    def has_index(self) -> bool:
        """If an explicit index was provided."""
        return self._index is not None

    def set_index(self, index: Iterable[Any]) -> "Series":
        """New Series with the given labels as index."""
        return Series(self._store.copy(), name=self.name, index=index)

    def reset_index(self) -> "Series":
        """New Series indexed by row position."""
        return Series(self._store.copy(), name=self.name)

    def __len__(self) -> int:
        return len(self._store)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._store)

    def __getitem__(self, position: int | slice) -> Any:
        if isinstance(position, slice):
            return self.take(range(len(self))[position])
        return self._store.get(position)

    def __setitem__(self, position: int, value: Any) -> None:
        self._store.set(position, value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Series):
            return NotImplemented
        return self.equals(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        header = self.name if self.name is not None else ""
        text = tabulate.tabulate([header], [[v] for v in self], len(self))
        return f"{text}\ndtype: {self.dtype}"

    def equals(self, other: "Series") -> bool:
        """Same type, same missing positions and same values.

        NaN values are considered equal to each other.
        """
        if self.dtype is not other.dtype or len(self) != len(other):
            return False
        for left, right in zip(self, other):
            if left is None or right is None:
                if left is not right:
                    return False
            elif left != right and not (is_nan(left) and is_nan(right)):
                return False
        return True

    def to_list(self) -> list[Any]:
        """The values as a list, missing values are ``None``."""
        return self._store.to_pylist()

    def to_arrow(self) -> pa.Array:
        return self._store.to_arrow()

    def rename(self, name: str) -> "Series":
        return self._derive(self._store.copy(), name=name)

    def copy(self) -> "Series":
        return self._derive(self._store.copy())

    def append(self, value: Any) -> None:
        """Add a value at the end of the Series.

        Not allowed when the Series is part of a DataFrame,
        as all columns of a DataFrame must have the same length.
        """
        if self._frames:
            raise RowCountMismatch(
                "Cannot resize a Series that is part of a DataFrame, replace the column instead"
            )
        if self._index is not None:
            self._index.append(len(self._index))
        self._store.append(value)

    def is_missing(self, position: int) -> bool:
        return self._store.is_missing(position)

    def missing_mask(self) -> list[bool]:
        return self._store.missing_mask()

    def isna(self) -> "Series":
        """Boolean Series, ``True`` where values are missing."""
        return self._derive(ColumnStore(DType.BOOL, self._store.missing_mask()))

    def notna(self) -> "Series":
        return self._derive(
            ColumnStore(DType.BOOL, [not m for m in self._store.missing_mask()])
        )

    def head(self, n: int = 5) -> "Series":
        return self.take(range(min(n, len(self))))

    def take(self, positions: Sequence[int]) -> "Series":
        """New Series with the rows at the given positions."""
        positions = list(positions)
        index = None
        if self._index is not None:
            index = [self._index[p] for p in positions]
        return Series(self._store.take(positions), name=self.name, index=index)

    def map(
        self,
        func: Callable[[Any], Any],
        dtype: DType | str | None = None,
        strategy: ExecutionStrategy | None = None,
    ) -> "Series":
        """Apply a function to each value.

        Missing values are preserved and the function is
        never called on them. When the Series is big enough
        the work is split across the workers of the strategy.

        >>> Series([1, None, 3]).map(lambda v: v + 0.5).to_list()
        [1.5, None, 3.5]

        :param func: Pure function receiving one value and returning the new one.
        :param dtype: Type of the result, inferred from the results when omitted.
        :param strategy: How to run the work, the shared thread pool by default.
        """
        store = self._store

        def _map_chunk(start: int, stop: int) -> list[Any]:
            values = store.raw_values(start, stop)
            missing = store.raw_missing(start, stop)
            return [None if m else func(v) for v, m in zip(values, missing)]

        chunks = resolve_strategy(strategy).map_chunks(_map_chunk, len(store))
        return self._derive(ColumnStore.from_values(concat_chunks(chunks), dtype))

    def zip_with(
        self,
        other: "Series",
        func: Callable[[Any, Any], Any],
        dtype: DType | str | None = None,
        strategy: ExecutionStrategy | None = None,
    ) -> "Series":
        """Combine the values of two Series position by position.

        When any of the two values at a position is missing,
        the result is missing too.

        >>> Series([1, 2, None]).zip_with(Series([10, 20, 30]), max).to_list()
        [10, 20, None]

        :param other: The Series to combine with, must have the same length.
        :param func: Pure function receiving the two values.
        :param dtype: Type of the result, inferred from the results when omitted.
        :param strategy: How to run the work, the shared thread pool by default.
        """
        if len(self) != len(other):
            raise LengthMismatch(
                f"Cannot combine Series of length {len(self)} and {len(other)}"
            )
        left, right = self._store, other._store

        def _zip_chunk(start: int, stop: int) -> list[Any]:
            return [
                None if lm or rm else func(lv, rv)
                for lv, lm, rv, rm in zip(
                    left.raw_values(start, stop),
                    left.raw_missing(start, stop),
                    right.raw_values(start, stop),
                    right.raw_missing(start, stop),
                )
            ]

        chunks = resolve_strategy(strategy).map_chunks(_zip_chunk, len(left))
        return self._derive(ColumnStore.from_values(concat_chunks(chunks), dtype))

    def _arithmetic(
        self, other: Any, op: Callable[[Any, Any], Any], reflected: bool = False
    ) -> "Series":
        name = op.__name__
        self._require_numeric(name)
        if isinstance(other, Series):
            other._require_numeric(name)
            other_dtype = other.dtype
        elif isinstance(other, numbers.Real) and not isinstance(other, bool):
            other_dtype = DType.of(other)
        else:
            return NotImplemented

        if op is divide:
            dtype = DType.FLOAT64
        elif self.dtype is DType.INT64 and other_dtype is DType.INT64:
            dtype = DType.INT64
        else:
            dtype = DType.FLOAT64

        func = (lambda a, b: op(b, a)) if reflected else op
        if isinstance(other, Series):
            return self.zip_with(other, func, dtype=dtype)
        return self.map(lambda v: func(v, other), dtype=dtype)

    def __add__(self, other: Any) -> "Series":
        return self._arithmetic(other, operator.add)

    def __radd__(self, other: Any) -> "Series":
        return self._arithmetic(other, operator.add, reflected=True)

    def __sub__(self, other: Any) -> "Series":
        return self._arithmetic(other, operator.sub)

    def __rsub__(self, other: Any) -> "Series":
        return self._arithmetic(other, operator.sub, reflected=True)

    def __mul__(self, other: Any) -> "Series":
        return self._arithmetic(other, operator.mul)

    def __rmul__(self, other: Any) -> "Series":
        return self._arithmetic(other, operator.mul, reflected=True)

    def __truediv__(self, other: Any) -> "Series":
        return self._arithmetic(other, divide)

    def __rtruediv__(self, other: Any) -> "Series":
        return self._arithmetic(other, divide, reflected=True)

    def reduce(self, reduction: str, ddof: int = 1) -> Any:
        """Reduce the non-missing values to a single value.

        :param reduction: One of ``sum``, ``mean``, ``var``, ``std``,
                          ``median``, ``min``, ``max``, ``count``.
        :param ddof: Delta degrees of freedom for ``var`` and ``std``.
        """
        if reduction in stats.NUMERIC_REDUCTIONS:
            self._require_numeric(reduction)
        elif reduction not in stats.ORDERING_REDUCTIONS:
            raise ValueError(f"Unknown reduction: {reduction}")
        return stats.reduce_values(reduction, self._store.valid_array(), ddof=ddof)

    def sum(self) -> Any:
        return self.reduce("sum")

    def mean(self) -> float:
        return self.reduce("mean")

    def var(self, ddof: int = 1) -> float:
        return self.reduce("var", ddof=ddof)

    def std(self, ddof: int = 1) -> float:
        return self.reduce("std", ddof=ddof)

    def median(self) -> float:
        return self.reduce("median")

    def min(self) -> Any:
        return self.reduce("min")

    def max(self) -> Any:
        return self.reduce("max")

    def count(self) -> int:
        return self.reduce("count")

    def mode(self) -> "Series":
        """All the values that appear the highest number of times, sorted."""
        counts = pc.value_counts(self._store.valid_array())
        if len(counts) == 0:
            raise EmptyReduction("Cannot compute mode of zero values")
        values = counts.field("values").to_pylist()
        frequencies = counts.field("counts").to_pylist()
        top = max(frequencies)
        modes = sorted(v for v, c in zip(values, frequencies) if c == top)
        return Series(modes, name=self.name, dtype=self.dtype)

    def unique(self) -> "Series":
        """Distinct values in order of first appearance.

        >>> Series([2, 1, 2, None, 1]).unique().to_list()
        [2, 1, None]
        """
        return Series(pc.unique(self.to_arrow()), name=self.name, dtype=self.dtype)

    def all(self, predicate: Callable[[Any], bool] | None = None) -> bool:
        """If every non-missing value satisfies the predicate (or is truthy)."""
        predicate = predicate or bool
        return all(predicate(v) for v in self._store.valid_values())

    def any(self, predicate: Callable[[Any], bool] | None = None) -> bool:
        predicate = predicate or bool
        return any(predicate(v) for v in self._store.valid_values())

    def locate(self, value: Any) -> list[int]:
        """Positions of the values equal to the given one."""
        return [
            pos
            for pos, current in enumerate(self._store)
            if current is not None and current == value
        ]

    def astype(self, dtype: DType | str) -> "Series":
        """Convert the values to another type.

        Conversions that would lose information, like ``1.5`` to
        an integer, or that are impossible, like ``"abc"`` to a number,
        raise :class:`TypeMismatch`.
        """
        return self._derive(_cast_store(self._store, DType.parse(dtype)))

    def filter(
        self,
        predicate: Callable[[Any], bool] | Sequence[bool] | "Series",
        keep_missing: bool = False,
    ) -> "Series":
        """New Series with only the values for which predicate is true.

        The resulting Series is indexed by position.

        >>> Series([1, None, 3, 4]).filter(lambda v: v > 1).to_list()
        [3, 4]

        :param predicate: A function receiving each non-missing value,
                          or a mask with one boolean per value.
        :param keep_missing: Keep the missing values instead of dropping them.
                             Only used when predicate is a function.
        """
        if callable(predicate):
            positions = [
                pos
                for pos, value in enumerate(self._store)
                if (keep_missing if value is None else predicate(value))
            ]
        else:
            positions = mask_positions(predicate, len(self))
        return Series(self._store.take(positions), name=self.name)

    def argsort(self, descending: bool = False, missing: str | None = None) -> list[int]:
        """Positions that would sort the Series.

        The sort is stable, equal values keep their relative order.

        :param descending: Sort from the biggest value to the smallest.
        :param missing: ``"first"`` or ``"last"``, where missing values go.
                        Read from :mod:`tabulon.config` when omitted.
        """
        missing = missing or get_engine_defaults().missing_placement
        if missing not in ("first", "last"):
            raise ValueError(f"Missing values can only go first or last, not {missing}")
        indices = pc.array_sort_indices(
            self.to_arrow(),
            order="descending" if descending else "ascending",
            null_placement="at_start" if missing == "first" else "at_end",
        )
        return indices.to_pylist()

    def sort(self, descending: bool = False, missing: str | None = None) -> "Series":
        """New Series with the values sorted, labels follow their values.

        >>> Series([3, None, 1, 2]).sort(missing="last").to_list()
        [1, 2, 3, None]
        """
        positions = self.argsort(descending=descending, missing=missing)
        labels = self.index
        return Series(
            self._store.take(positions),
            name=self.name,
            index=[labels[p] for p in positions],
        )

    def align(
        self, other: "Series", join: str = "outer", strict: bool = False
    ) -> tuple["Series", "Series"]:
        """Reshape two Series so that they share the same index.

        Rows are matched by their index label. With an ``outer`` join
        the labels of this Series come first, followed by the labels
        that only exist in the other one. Rows introduced by the
        alignment are missing.

        >>> a = Series([1, 2], index=["x", "y"])
        >>> b = Series([20, 30], index=["y", "z"])
        >>> left, right = a.align(b)
        >>> left.index, left.to_list(), right.to_list()
        (['x', 'y', 'z'], [1, 2, None], [None, 20, 30])

        :param other: The Series to align with.
        :param join: ``outer``, ``inner`` or ``left``, which labels to keep.
        :param strict: Fail with :class:`LengthMismatch` if the two Series
                       don't have the same labels.
        """
        if join not in _ALIGN_JOINS:
            raise ValueError(f"Unsupported join {join}, expected one of {_ALIGN_JOINS}")
        left_labels = self.index
        right_labels = other.index
        left_positions = _label_positions(left_labels, self.name)
        right_positions = _label_positions(right_labels, other.name)
        if strict and left_positions.keys() != right_positions.keys():
            raise LengthMismatch(
                f"Series have different labels: {len(left_labels)} and {len(right_labels)} labels"
            )

        if join == "outer":
            labels = left_labels + [l for l in right_labels if l not in left_positions]
        elif join == "inner":
            labels = [l for l in left_labels if l in right_positions]
        else:
            labels = left_labels

        aligned_left = Series(
            self._store.take([left_positions.get(l) for l in labels]),
            name=self.name,
            index=labels,
        )
        aligned_right = Series(
            other._store.take([right_positions.get(l) for l in labels]),
            name=other.name,
            index=list(labels),
        )
        return aligned_left, aligned_right

    def rolling(self, window: int) -> "Rolling":
        """Moving window reductions, see :class:`tabulon.series.Rolling`."""
        from .rolling import Rolling

        return Rolling(window, self)


def mask_positions(mask: Sequence[bool] | Series, length: int) -> list[int]:
    """Positions where a boolean mask is true, missing counts as false."""
    if isinstance(mask, Series):
        if mask.dtype is not DType.BOOL:
            raise TypeMismatch(f"A filter mask must be boolean, got {mask.dtype}")
    mask = list(mask)
    if len(mask) != length:
        raise LengthMismatch(f"Mask has {len(mask)} values, expected {length}")
    return [pos for pos, keep in enumerate(mask) if keep]


def _label_positions(labels: list[Any], name: str | None) -> dict[Any, int]:
    positions: dict[Any, int] = {}
    for pos, label in enumerate(labels):
        if label in positions:
            raise NonUniqueIndex(f"Label {label!r} is repeated in the index of {name}")
        positions[label] = pos
    return positions


def _cast_store(store: ColumnStore, dtype: DType) -> ColumnStore:
    if store.dtype is dtype:
        return store.copy()
    try:
        converted = pc.cast(store.to_arrow(), dtype.arrow_type)
    except (pa.ArrowInvalid, pa.ArrowNotImplementedError) as e:
        raise TypeMismatch(f"Cannot convert {store.dtype} to {dtype}: {e}") from e
    return ColumnStore.from_arrow(converted)
