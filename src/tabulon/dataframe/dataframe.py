"""The DataFrame object itself."""

import logging
from typing import Any, Callable, Iterable, Iterator, Mapping, Self, Sequence

import pyarrow as pa
import pyarrow.compute as pc

from ..compute.parallel import ExecutionStrategy
from ..config import get_engine_defaults
from ..errors import DuplicateColumn, KeyNotFound, LengthMismatch, RowCountMismatch
from ..series import Series
from ..series.series import mask_positions
from ..storage import DType
from ..utils import tabulate

log = logging.getLogger(__name__)

ColumnData = Series | Iterable[Any] | pa.Array | pa.ChunkedArray


class DataFrame:
    """Data structure that handles data in rows and columns.

    The DataFrame is an ordered mapping from column names to
    :class:`tabulon.series.Series`. All the columns must have
    the same number of rows, which is checked every time
    a column is added:

    >>> df = DataFrame({"id": [1, 2, 3]})
    >>> df.insert("name", ["Alice", "Bob", "Charlie"])
    >>> df.insert("age", [25, 30])
    Traceback (most recent call last):
        ...
    tabulon.errors.RowCountMismatch: Column 'age' has 2 rows, but the DataFrame has 3 rows
    >>> df.columns
    ['id', 'name']

    Columns keep the order in which they were inserted,
    which is the order used to display and iterate them.

    Adding, removing or renaming columns is not safe while
    a parallel operation is reading the same columns,
    callers are in charge of not doing both at the same time.
    """

    def __init__(self, columns: Mapping[str, ColumnData] | None = None) -> None:
        """
        :param columns: The columns of the DataFrame in the form of {"name": values},
                        values can be a Series, a pyarrow Array or any sequence.
        """
        self._columns: dict[str, Series] = {}
        if columns is not None:
            for name, values in columns.items():
                self.insert(name, values)

    @classmethod
    def from_arrow(cls, table: pa.Table | pa.RecordBatch) -> Self:
        """Create a DataFrame from a :class:`pyarrow.Table` or :class:`pyarrow.RecordBatch`.

        Each column of the table becomes a Series, nulls become missing values.
        """
        return cls({name: table.column(name) for name in table.column_names})

    @classmethod
    def from_rows(
        cls,
        header: Sequence[str],
        rows: Iterable[Sequence[str]],
        dtypes: Mapping[str, DType | str] | None = None,
    ) -> Self:
        """Create a DataFrame from rows of text fields.

        See :func:`tabulon.io.csv.from_rows` for details on
        how the type of the columns is detected.
        """
        from ..io import csv

        return cls(csv.parse_columns(header, rows, dtypes))

    @classmethod
    def read_csv(
        cls,
        filename: str,
        dtypes: Mapping[str, DType | str] | None = None,
        delimiter: str = ",",
    ) -> Self:
        """Load a CSV file, see :func:`tabulon.io.csv.read_csv`."""
        from ..io import csv

        return cls.from_arrow(csv.read_table(filename, dtypes, delimiter))

    @classmethod
    def read_parquet(cls, filename: str) -> Self:
        """Load a Parquet file, see :func:`tabulon.io.persistence.read_parquet`."""
        from ..io import persistence

        return cls.from_arrow(persistence.read_parquet_table(filename))

    @classmethod
    def load(cls, filename: str, compression: str | None = None) -> Self:
        """Load a DataFrame saved with :meth:`save`."""
        from ..io import persistence

        return cls.from_arrow(persistence.load_table(filename, compression))

    @property
    def row_count(self) -> int:
        """Number of rows, defined by the first column inserted."""
        for series in self._columns.values():
            return len(series)
        return 0

    @property
    def columns(self) -> list[str]:
        """Names of the columns, in insertion order."""
        return list(self._columns)

    @property
    def dtypes(self) -> dict[str, DType]:
        return {name: series.dtype for name, series in self._columns.items()}

    @property
    def shape(self) -> tuple[int, int]:
        """Number of rows and number of columns."""
        return self.row_count, len(self._columns)

    def __len__(self) -> int:
        return self.row_count

    def __iter__(self) -> Iterator[str]:
        return iter(self._columns)

    def __contains__(self, name: object) -> bool:
        return name in self._columns

    def __getitem__(self, name: str) -> Series:
        return self.get(name)

    def __setitem__(self, name: str, values: ColumnData) -> None:
        if name in self._columns:
            self.replace(name, values)
        else:
            self.insert(name, values)

    def __delitem__(self, name: str) -> None:
        self.drop(name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DataFrame):
            return NotImplemented
        return self.equals(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        rows = []
        for row in self.rows():
            if len(rows) >= 20:
                break
            rows.append(row)
        return tabulate.tabulate(self.columns, rows, self.row_count, max_rows=20)

    def _as_series(self, name: str, values: ColumnData) -> Series:
        if isinstance(values, Series):
            if values.name == name:
                return values
            return values.rename(name)
        return Series(values, name=name)

    def _check_rows(self, name: str, series: Series) -> None:
        if self._columns and len(series) != self.row_count:
            raise RowCountMismatch(
                f"Column {name!r} has {len(series)} rows, but the DataFrame has {self.row_count} rows"
            )

    def insert(self, name: str, values: ColumnData) -> None:
        """Add a new column at the end of the DataFrame.

        The first column inserted in an empty DataFrame decides
        the number of rows, every other column must have
        the same number of rows.

        :param name: The name of the column, must not already exist.
        :param values: The values of the column.
        """
        if name in self._columns:
            raise DuplicateColumn(f"Column {name!r} already exists")
        series = self._as_series(name, values)
        self._check_rows(name, series)
        series._attach()
        self._columns[name] = series

    def replace(self, name: str, values: ColumnData) -> None:
        """Replace the values of an existing column, keeping its position."""
        current = self.get(name)
        series = self._as_series(name, values)
        if len(self._columns) > 1:
            self._check_rows(name, series)
        current._detach()
        series._attach()
        self._columns[name] = series

    def get(self, name: str) -> Series:
        """The Series of a column."""
        try:
            return self._columns[name]
        except KeyError:
            raise KeyNotFound(f"Column {name!r} does not exist") from None

    def drop(self, name: str) -> None:
        """Remove a column from the DataFrame."""
        series = self.get(name)
        del self._columns[name]
        series._detach()

    def rename(self, old: str, new: str) -> None:
        """Change the name of a column, keeping its position."""
        series = self.get(old)
        if old == new:
            return
        if new in self._columns:
            raise DuplicateColumn(f"Column {new!r} already exists")
        renamed = series.rename(new)
        series._detach()
        renamed._attach()
        self._columns = {
            (new if name == old else name): (renamed if name == old else current)
            for name, current in self._columns.items()
        }

    def select(self, names: Iterable[str]) -> Self:
        """New DataFrame with only the given columns, in the given order.

        The columns are shared with this DataFrame, not copied.
        """
        return self.__class__({name: self.get(name) for name in names})

    def equals(self, other: "DataFrame") -> bool:
        """Same columns, same number of rows and same values.

        The order of the columns doesn't matter, missing values
        must be at the same positions.
        """
        if set(self._columns) != set(other._columns):
            return False
        if self.row_count != other.row_count:
            return False
        return all(
            series.equals(other._columns[name]) for name, series in self._columns.items()
        )

    def rows(self) -> Iterator[tuple[Any, ...]]:
        """Iterate over the rows, each one a tuple with a value per column."""
        return zip(*self._columns.values()) if self._columns else iter(())

    def apply_row(self, func: Callable[[tuple[Any, ...]], Any]) -> Iterator[Any]:
        """Lazily apply a function to each row.

        The function receives a tuple with the values of the row,
        in column order. The returned iterator can only be consumed once.

        >>> df = DataFrame({"price": [2.0, 3.0], "quantity": [3, 5]})
        >>> list(df.apply_row(lambda row: row[0] * row[1]))
        [6.0, 15.0]
        """
        return (func(row) for row in self.rows())

    def to_dict(self) -> dict[str, list[Any]]:
        """The columns as lists of values, missing values are ``None``."""
        return {name: series.to_list() for name, series in self._columns.items()}

    def to_arrow(self) -> pa.Table:
        """The data as a :class:`pyarrow.Table`, missing values become nulls."""
        return pa.table({name: series.to_arrow() for name, series in self._columns.items()})

    def _from_positions(self, positions: Sequence[int], keep_index: bool = True) -> Self:
        if keep_index:
            return self.__class__(
                {name: series.take(positions) for name, series in self._columns.items()}
            )
        return self.__class__(
            {
                name: Series(series.store.take(positions), name=name)
                for name, series in self._columns.items()
            }
        )

    def take(self, positions: Sequence[int]) -> Self:
        """New DataFrame with the rows at the given positions."""
        return self._from_positions(list(positions))

    def head(self, n: int = 5) -> Self:
        return self.take(range(min(n, self.row_count)))

    def filter(
        self, predicate: Callable[[dict[str, Any]], bool] | Sequence[bool] | Series
    ) -> Self:
        """New DataFrame with only the rows matching the predicate.

        :param predicate: A boolean mask with a value per row
                          (missing values count as false), or a function
                          receiving each row as a dictionary.
        """
        if callable(predicate):
            names = self.columns
            positions = [
                pos for pos, row in enumerate(self.rows()) if predicate(dict(zip(names, row)))
            ]
        else:
            positions = mask_positions(predicate, self.row_count)
        return self._from_positions(positions, keep_index=False)

    def sort_by(
        self,
        keys: str | Sequence[str],
        descending: bool | Sequence[bool] = False,
        missing: str | None = None,
    ) -> Self:
        """New DataFrame with the rows sorted by one or more columns.

        The sort is stable, rows with equal keys keep their relative order.

        >>> df = DataFrame({"a": [2, None, 1, 2], "b": ["x", "y", "z", "w"]})
        >>> df.sort_by("a").to_dict()
        {'a': [1, 2, 2, None], 'b': ['z', 'x', 'w', 'y']}

        :param keys: The columns to sort by, in order of priority.
        :param descending: Sort from the biggest to the smallest value,
                           can be provided for each key.
        :param missing: ``"first"`` or ``"last"``, where missing values go.
                        Read from :mod:`tabulon.config` when omitted.
        """
        keys = [keys] if isinstance(keys, str) else list(keys)
        if isinstance(descending, bool):
            descending = [descending] * len(keys)
        descending = list(descending)
        if len(descending) != len(keys):
            raise LengthMismatch(
                f"Got {len(descending)} sort directions for {len(keys)} sort keys"
            )
        missing = missing or get_engine_defaults().missing_placement
        if missing not in ("first", "last"):
            raise ValueError(f"Missing values can only go first or last, not {missing}")
        if not keys:
            return self._from_positions(range(self.row_count))

        sort_table = pa.table(
            {f"k{idx}": self.get(key).to_arrow() for idx, key in enumerate(keys)}
        )
        indices = pc.sort_indices(
            sort_table,
            sort_keys=[
                (f"k{idx}", "descending" if desc else "ascending")
                for idx, desc in enumerate(descending)
            ],
            null_placement="at_start" if missing == "first" else "at_end",
        )
        return self._from_positions(indices.to_pylist())

    def groupby(
        self,
        keys: str | Sequence[str],
        sort: bool = False,
        strategy: ExecutionStrategy | None = None,
    ):
        """Group the rows by the values of one or more columns.

        See :class:`tabulon.compute.aggregate.GroupBy`.

        :param keys: The columns to group by.
        :param sort: Order the groups by key instead of by first appearance.
        :param strategy: How to run the per group reductions,
                         the shared thread pool by default.
        """
        from ..compute.aggregate import GroupBy

        return GroupBy(self, keys, sort=sort, strategy=strategy)

    def join(
        self,
        other: "DataFrame",
        on: str | Sequence[str] | Sequence[tuple[str, str]],
        how: str = "inner",
        suffixes: tuple[str, str] | None = None,
    ) -> Self:
        """Join the rows of this DataFrame with those of another one.

        See :func:`tabulon.compute.join.join`.
        """
        from ..compute.join import join

        return join(self, other, on, how=how, suffixes=suffixes)

    def to_csv(self, filename: str, delimiter: str = ",") -> None:
        """Write the DataFrame to a CSV file, see :func:`tabulon.io.csv.write_csv`."""
        from ..io import csv

        csv.write_csv(self, filename, delimiter=delimiter)

    def to_parquet(self, filename: str) -> None:
        from ..io import persistence

        persistence.write_parquet(self, filename)

    def save(self, filename: str, compression: str | None = None) -> None:
        """Save the DataFrame to a file, see :func:`tabulon.io.persistence.save`."""
        from ..io import persistence

        persistence.save(self, filename, compression)
