"""Delimited text files.

Text files don't carry the type of their columns, every field
is a string. When converting rows of text to a DataFrame,
the type of each column is detected from its first non-empty
field, unless it's explicitly provided:

* ``42`` makes an integer column.
* ``4.2`` makes a float column, integer columns that contain
  a float further down are promoted to float too.
* ``true`` and ``false`` (in any case) make a boolean column.
* Anything else makes a string column.

Empty fields are missing values.

>>> df = from_rows(["id", "name", "score"], [["1", "Alice", "3.5"], ["2", "", ""]])
>>> df.dtypes
{'id': <DType.INT64: 'int64'>, 'name': <DType.STRING: 'string'>, 'score': <DType.FLOAT64: 'float64'>}
>>> df.to_dict()
{'id': [1, 2], 'name': ['Alice', None], 'score': [3.5, None]}

Files are read and written through :mod:`pyarrow.csv`.
"""

import logging
from typing import Any, Iterable, Mapping, Sequence

import pyarrow as pa
import pyarrow.csv
import pyarrow.types as pat

from ..dataframe import DataFrame
from ..errors import DuplicateColumn, KeyNotFound, LengthMismatch, TypeMismatch
from ..series import Series
from ..storage import DType

__all__ = ("from_rows", "parse_columns", "read_csv", "read_table", "write_csv")

log = logging.getLogger(__name__)

_BOOLEANS = {"true": True, "false": False}


def _is_int(field: str) -> bool:
    try:
        int(field)
    except ValueError:
        return False
    return True


def _is_float(field: str) -> bool:
    try:
        float(field)
    except ValueError:
        return False
    return True


def infer_field_dtype(field: str) -> DType:
    """The type of column a single text field suggests.

    >>> infer_field_dtype("12"), infer_field_dtype("1e3"), infer_field_dtype("TRUE")
    (<DType.INT64: 'int64'>, <DType.FLOAT64: 'float64'>, <DType.BOOL: 'bool'>)
    """
    if _is_int(field):
        return DType.INT64
    if _is_float(field):
        return DType.FLOAT64
    if field.lower() in _BOOLEANS:
        return DType.BOOL
    return DType.STRING


def infer_column_dtype(fields: Sequence[str]) -> DType:
    """The type of a column of text fields, from its first non-empty field."""
    dtype = None
    for field in fields:
        if field == "":
            continue
        if dtype is None:
            dtype = infer_field_dtype(field)
            if dtype is not DType.INT64:
                return dtype
        elif not _is_int(field) and _is_float(field):
            return DType.FLOAT64
    return dtype or DType.FLOAT64


def parse_field(field: str, dtype: DType) -> Any:
    """Convert a text field to a value of the given type, ``None`` if empty."""
    if field == "":
        return None
    if dtype is DType.STRING:
        return field
    if dtype is DType.BOOL:
        try:
            return _BOOLEANS[field.lower()]
        except KeyError:
            raise TypeMismatch(f"{field!r} is not a boolean") from None
    try:
        return int(field) if dtype is DType.INT64 else float(field)
    except ValueError:
        raise TypeMismatch(f"{field!r} is not a valid {dtype}") from None


def parse_columns(
    header: Sequence[str],
    rows: Iterable[Sequence[str]],
    dtypes: Mapping[str, DType | str] | None = None,
) -> dict[str, Series]:
    """Convert rows of text fields to a Series for each column.

    :param header: The names of the columns.
    :param rows: The rows, each one with a text field per column.
    :param dtypes: Types of the columns in the form of {"name": dtype},
                   overrides the detected type.
    """
    header = list(header)
    if len(set(header)) != len(header):
        duplicated = sorted({name for name in header if header.count(name) > 1})
        raise DuplicateColumn(f"Header has duplicated columns: {duplicated}")
    dtypes = dict(dtypes or {})
    unknown = set(dtypes) - set(header)
    if unknown:
        raise KeyNotFound(f"Types provided for unknown columns: {sorted(unknown)}")

    fields: list[list[str]] = [[] for _ in header]
    for rownum, row in enumerate(rows):
        if len(row) != len(header):
            raise LengthMismatch(
                f"Row {rownum} has {len(row)} fields, but the header has {len(header)} columns"
            )
        for column, field in zip(fields, row):
            column.append(field)

    columns = {}
    for name, column in zip(header, fields):
        dtype = DType.parse(dtypes[name]) if name in dtypes else infer_column_dtype(column)
        try:
            values = [parse_field(field, dtype) for field in column]
        except TypeMismatch as e:
            raise TypeMismatch(f"Column {name!r}: {e}") from e
        columns[name] = Series(values, name=name, dtype=dtype)
    return columns


def from_rows(
    header: Sequence[str],
    rows: Iterable[Sequence[str]],
    dtypes: Mapping[str, DType | str] | None = None,
) -> DataFrame:
    """Create a DataFrame from rows of text fields, see :func:`parse_columns`."""
    return DataFrame(parse_columns(header, rows, dtypes))


def _supported_column(array: pa.ChunkedArray) -> pa.ChunkedArray:
    try:
        DType.from_arrow(array.type)
    except TypeMismatch:
        # Columns with no values at all are read as the null type.
        target = DType.FLOAT64 if pat.is_null(array.type) else DType.STRING
        log.debug("Converting CSV column of type %s to %s", array.type, target)
        return array.cast(target.arrow_type)
    return array


def read_table(
    filename: str,
    dtypes: Mapping[str, DType | str] | None = None,
    delimiter: str = ",",
) -> pa.Table:
    """Read a CSV file in a :class:`pyarrow.Table` of supported column types.

    Types that are not supported by columns, like dates,
    are converted to strings.
    """
    column_types = {name: DType.parse(dtype).arrow_type for name, dtype in (dtypes or {}).items()}
    table = pa.csv.read_csv(
        str(filename),
        parse_options=pa.csv.ParseOptions(delimiter=delimiter),
        convert_options=pa.csv.ConvertOptions(
            column_types=column_types, strings_can_be_null=True
        ),
    )
    for idx, name in enumerate(table.column_names):
        table = table.set_column(idx, name, _supported_column(table.column(idx)))
    log.debug("Read %d rows and %d columns from %s", table.num_rows, table.num_columns, filename)
    return table


def read_csv(
    filename: str,
    dtypes: Mapping[str, DType | str] | None = None,
    delimiter: str = ",",
) -> DataFrame:
    """Load a CSV file in a DataFrame.

    :param filename: The path of the local CSV file, the first line is the header.
    :param dtypes: Types of the columns in the form of {"name": dtype},
                   overrides the detected type.
    :param delimiter: The character separating the fields.
    """
    return DataFrame.from_arrow(read_table(filename, dtypes, delimiter))


def write_csv(frame: DataFrame, filename: str, delimiter: str = ",") -> None:
    """Write a DataFrame to a CSV file, missing values are written as empty fields."""
    pa.csv.write_csv(
        frame.to_arrow(),
        str(filename),
        write_options=pa.csv.WriteOptions(delimiter=delimiter),
    )
