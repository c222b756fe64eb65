"""Group rows and compute aggregations.

Frequently when analysing data is necessary
to compute statistics like the min, max, average, etc...
of the data, separately for each group of rows
sharing the same values in one or more columns.

For example, given the following data::

    city, shop, n_employees
    New York, Shop A, 10
    New York, Shop B, 15
    Los Angeles, Shop C, 8
    Los Angeles, Shop D, 12
    New York, Shop E, 20

We could group by city and compute the sum of the employees
to get::

    city, total_employees
    New York, 45
    Los Angeles, 20

The grouping happens in two phases:

1. The key columns are scanned once, in order, to find the distinct
   keys and the positions of the rows that belong to each of them.
   This is always done on the calling thread, so that the same key
   is never discovered twice.
2. For each group and each aggregation, the non-missing values at the
   positions of the group are extracted and reduced. The groups are
   independent, so this phase is split across workers when there is
   enough data.

Groups are returned in the order in which their key first appeared
in the data, unless sorting is requested. Missing values in the key
columns form a group of their own, as do NaN values.

>>> from tabulon import DataFrame
>>> df = DataFrame({
...    "city": ["New York", "New York", "Los Angeles", "Los Angeles", "New York"],
...    "shop": ["Shop A", "Shop B", "Shop C", "Shop D", "Shop E"],
...    "n_employees": [10, 15, 8, 12, 20],
... })
>>> df.groupby("city").aggregate({"total_employees": SumAggregation("n_employees")}).to_dict()
{'city': ['New York', 'Los Angeles'], 'total_employees': [45, 20]}
"""

import abc
import logging
from typing import TYPE_CHECKING, Any, Callable, Iterator, Mapping, Sequence

import pyarrow as pa

from ..errors import DuplicateColumn, EmptyReduction, KeyNotFound
from ..series import Series
from ..storage import ColumnStore, DType
from ..storage.dtypes import is_nan
from . import stats
from .parallel import ExecutionStrategy, concat_chunks, resolve_strategy

if TYPE_CHECKING:
    from ..dataframe import DataFrame

__all__ = (
    "GroupBy",
    "Aggregation",
    "SumAggregation",
    "MeanAggregation",
    "MinAggregation",
    "MaxAggregation",
    "CountAggregation",
    "VarianceAggregation",
    "StdAggregation",
    "MedianAggregation",
    "FunctionAggregation",
    "AGGREGATIONS",
)

log = logging.getLogger(__name__)

GroupKey = tuple[Any, ...]


class _NaNKey:
    """Stands for NaN in group keys, as NaN is not equal to itself."""

    def __repr__(self) -> str:
        return "NaN"


_NAN_KEY = _NaNKey()


def _hashable(value: Any) -> Any:
    return _NAN_KEY if is_nan(value) else value


def _key_order(value: Any) -> tuple[int, Any]:
    # Values first, then NaN, then missing values.
    if value is None:
        return (2, 0)
    if value is _NAN_KEY or is_nan(value):
        return (1, 0)
    return (0, value)


def partition(key_columns: Sequence[ColumnStore], row_count: int) -> dict[GroupKey, list[int]]:
    """Map each distinct key to the positions of the rows that have it.

    Keys are tuples with one value per key column, missing values
    are ``None`` and all NaN values are represented by the same object.
    The keys are in order of first appearance.

    >>> grp = ColumnStore.from_values(["a", "b", "a", None])
    >>> partition([grp], 4)
    {('a',): [0, 2], ('b',): [1], (None,): [3]}
    """
    groups: dict[GroupKey, list[int]] = {}
    iterators = [iter(column) for column in key_columns]
    for position in range(row_count):
        key = tuple(_hashable(next(values)) for values in iterators)
        rows = groups.get(key)
        if rows is None:
            groups[key] = [position]
        else:
            rows.append(position)
    return groups


class Aggregation(abc.ABC):
    """Base class for aggregations.

    An aggregation reduces the non-missing values of a column
    within a group to a single value. When a group has no
    values to reduce the result for that group is missing.
    """

    #: If the aggregated column must be numeric.
    numeric = False

    def __init__(self, column: str) -> None:
        self.column = column

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.column})"

    __repr__ = __str__

    def check(self, series: Series) -> None:
        """Verify the aggregation can be applied to the column."""
        if self.numeric:
            series._require_numeric(str(self))

    def result_dtype(self, dtype: DType) -> DType | None:
        """Type of the aggregated column, ``None`` to infer it from the results."""
        return dtype

    @abc.abstractmethod
    def reduce(self, values: pa.Array) -> Any:
        """Reduce the non-missing values of one group."""
        ...


class ReductionAggregation(Aggregation):
    """Aggregation that applies one of the :mod:`tabulon.compute.stats` reductions."""

    reduction: str

    def __init__(self, column: str, ddof: int = 1) -> None:
        super().__init__(column)
        self.ddof = ddof

    def reduce(self, values: pa.Array) -> Any:
        return stats.reduce_values(self.reduction, values, ddof=self.ddof)


class SumAggregation(ReductionAggregation):
    """Compute the sum of an aggregated column."""

    reduction = "sum"
    numeric = True


class MinAggregation(ReductionAggregation):
    """Compute the min of an aggregated column."""

    reduction = "min"


class MaxAggregation(ReductionAggregation):
    """Compute the max of an aggregated column."""

    reduction = "max"


class CountAggregation(ReductionAggregation):
    """Count the non-missing values of an aggregated column."""

    reduction = "count"

    def result_dtype(self, dtype: DType) -> DType:
        return DType.INT64


class MeanAggregation(ReductionAggregation):
    """Compute the mean of an aggregated column."""

    reduction = "mean"
    numeric = True

    def result_dtype(self, dtype: DType) -> DType:
        return DType.FLOAT64


class MedianAggregation(MeanAggregation):
    reduction = "median"


class VarianceAggregation(MeanAggregation):
    """Compute the variance, ``ddof=1`` for the sample variance."""

    reduction = "var"

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.column}, ddof={self.ddof})"


class StdAggregation(VarianceAggregation):
    reduction = "std"


class FunctionAggregation(Aggregation):
    """Aggregate a column with a custom function.

    The function receives the non-missing values of
    each group as a list and returns the aggregated value.
    Raise :class:`tabulon.errors.EmptyReduction` from the
    function to mark the result of a group as missing.

    >>> FunctionAggregation("val", lambda values: values[-1]).reduce(pa.array([1, 2]))
    2
    """

    def __init__(
        self,
        column: str,
        func: Callable[[list[Any]], Any],
        dtype: DType | str | None = None,
    ) -> None:
        super().__init__(column)
        self.func = func
        self.dtype = None if dtype is None else DType.parse(dtype)

    def result_dtype(self, dtype: DType) -> DType | None:
        return self.dtype

    def reduce(self, values: pa.Array) -> Any:
        return self.func(values.to_pylist())


#: Aggregations by name, as used by the ``tagg`` command.
AGGREGATIONS: dict[str, type[ReductionAggregation]] = {
    "sum": SumAggregation,
    "mean": MeanAggregation,
    "min": MinAggregation,
    "max": MaxAggregation,
    "count": CountAggregation,
    "var": VarianceAggregation,
    "std": StdAggregation,
    "median": MedianAggregation,
}


class GroupBy:
    """Rows of a DataFrame grouped by the values of one or more columns.

    Usually created through :meth:`tabulon.DataFrame.groupby`.
    The groups are discovered when the GroupBy is created,
    aggregations can then be computed any number of times.

    >>> from tabulon import DataFrame
    >>> df = DataFrame({"grp": ["a", "b", "a"], "val": [1, 2, 3]})
    >>> groups = df.groupby("grp")
    >>> len(groups)
    2
    >>> groups.size().to_dict()
    {'grp': ['a', 'b'], 'size': [2, 1]}
    """

    def __init__(
        self,
        frame: "DataFrame",
        keys: str | Sequence[str],
        sort: bool = False,
        strategy: ExecutionStrategy | None = None,
    ) -> None:
        """
        :param frame: The DataFrame whose rows have to be grouped.
        :param keys: The columns to group by.
        :param sort: Order the groups by key, missing keys last,
                     instead of by first appearance.
        :param strategy: How to run the per group reductions.
        """
        self.frame = frame
        self.keys = [keys] if isinstance(keys, str) else list(keys)
        self.sort = sort
        self.strategy = strategy

        key_columns = [frame.get(key) for key in self.keys]
        groups = partition([column.store for column in key_columns], frame.row_count)
        if sort:
            groups = dict(
                sorted(groups.items(), key=lambda item: [_key_order(v) for v in item[0]])
            )
        self._groups = groups
        log.debug("Grouped %d rows by %s in %d groups", frame.row_count, self.keys, len(groups))

    def __str__(self) -> str:
        return f"GroupBy(keys={self.keys}, groups={len(self._groups)})"

    __repr__ = __str__

    def __len__(self) -> int:
        return len(self._groups)

    def __iter__(self) -> Iterator[tuple[Any, "DataFrame"]]:
        """Iterate over ``(key, rows)`` pairs, one for each group.

        For a single key column the key is the value itself,
        otherwise it's a tuple with a value per key column.
        """
        for positions in self._groups.values():
            yield self._public_key(positions[0]), self.frame.take(positions)

    @property
    def groups(self) -> dict[GroupKey, list[int]]:
        """The positions of the rows of each group, by group key."""
        return {key: list(positions) for key, positions in self._groups.items()}

    def _public_key(self, position: int) -> Any:
        values = tuple(self.frame.get(key)[position] for key in self.keys)
        return values[0] if len(values) == 1 else values

    def _key_frame(self) -> dict[str, Series]:
        first_rows = [positions[0] for positions in self._groups.values()]
        return {key: self.frame.get(key).take(first_rows).reset_index() for key in self.keys}

    def get_group(self, key: Any) -> "DataFrame":
        """The rows of a single group.

        :param key: The value of the key column, or a tuple
                    with a value per key column.
        """
        lookup = key if isinstance(key, tuple) else (key,)
        lookup = tuple(_hashable(v) for v in lookup)
        try:
            positions = self._groups[lookup]
        except KeyError:
            raise KeyNotFound(f"Group {key!r} does not exist") from None
        return self.frame.take(positions)

    def size(self) -> "DataFrame":
        """Number of rows in each group, in a ``size`` column."""
        columns: dict[str, Any] = dict(self._key_frame())
        columns["size"] = Series(
            [len(positions) for positions in self._groups.values()], dtype=DType.INT64
        )
        return self.frame.__class__(columns)

    def aggregate(self, aggregations: Mapping[str, Aggregation]) -> "DataFrame":
        """Compute aggregations for each group.

        The result has a row for each group, with the key columns
        followed by a column for each aggregation.

        :param aggregations: The aggregations to compute in the form of
                             {"new_col_name": Aggregation}.
        """
        sources = {}
        for name, aggregation in aggregations.items():
            series = self.frame.get(aggregation.column)
            aggregation.check(series)
            sources[name] = series

        columns: dict[str, Any] = dict(self._key_frame())
        for name in aggregations:
            if name in columns:
                raise DuplicateColumn(f"Aggregation {name!r} has the name of a key column")

        group_rows = list(self._groups.values())
        strategy = resolve_strategy(self.strategy)
        for name, aggregation in aggregations.items():
            store = sources[name].store

            def _reduce_groups(start: int, stop: int) -> list[Any]:
                results = []
                for positions in group_rows[start:stop]:
                    try:
                        results.append(aggregation.reduce(store.valid_array(positions)))
                    except EmptyReduction:
                        results.append(None)
                return results

            chunks = strategy.map_chunks(_reduce_groups, len(group_rows), size=len(store))
            columns[name] = Series(
                concat_chunks(chunks), dtype=aggregation.result_dtype(store.dtype)
            )
        return self.frame.__class__(columns)

    def _shortcut(
        self, aggregation: type[Aggregation], columns: Sequence[str], numeric: bool, **options
    ) -> "DataFrame":
        if not columns:
            columns = [
                name
                for name, dtype in self.frame.dtypes.items()
                if name not in self.keys and (dtype.is_numeric or not numeric)
            ]
        return self.aggregate({column: aggregation(column, **options) for column in columns})

    def sum(self, *columns: str) -> "DataFrame":
        """Sum of the given columns, every numeric column when none is given.

        >>> from tabulon import DataFrame
        >>> df = DataFrame({"id": [1, 2, 3], "grp": ["a", "b", "a"], "val": [10, None, 30]})
        >>> df.groupby("grp").sum("val").to_dict()
        {'grp': ['a', 'b'], 'val': [40, None]}
        """
        return self._shortcut(SumAggregation, columns, numeric=True)

    def mean(self, *columns: str) -> "DataFrame":
        return self._shortcut(MeanAggregation, columns, numeric=True)

    def median(self, *columns: str) -> "DataFrame":
        return self._shortcut(MedianAggregation, columns, numeric=True)

    def var(self, *columns: str, ddof: int = 1) -> "DataFrame":
        return self._shortcut(VarianceAggregation, columns, numeric=True, ddof=ddof)

    def std(self, *columns: str, ddof: int = 1) -> "DataFrame":
        return self._shortcut(StdAggregation, columns, numeric=True, ddof=ddof)

    def min(self, *columns: str) -> "DataFrame":
        return self._shortcut(MinAggregation, columns, numeric=False)

    def max(self, *columns: str) -> "DataFrame":
        return self._shortcut(MaxAggregation, columns, numeric=False)

    def count(self, *columns: str) -> "DataFrame":
        """Number of non-missing values of the given columns in each group."""
        return self._shortcut(CountAggregation, columns, numeric=False)
