"""Join the rows of two DataFrames.

The join is implemented as a hash join: the rows of the
right DataFrame are indexed by the value of their keys,
then each row of the left DataFrame looks up the right rows
that have the same key.

Supposing we have two DataFrames::

    left:
    +----+--------+
    | id | name   |
    +----+--------+
    | 1  | Alice  |
    | 2  | Bob    |
    | 3  | Charlie|
    +----+--------+

    right:
    +----+-----+
    | id | age |
    +----+-----+
    | 3  | 25  |
    | 2  | 30  |
    | 3  | 26  |
    +----+-----+

We would perform the following steps:

1. Build phase, scan the right keys and remember
   at which positions each key appears::

    {3: [0, 2], 2: [1]}

2. Probe phase, look up the key of each left row.
   Every match produces a pair of left and right positions,
   in left order and then in right order::

    [(1, 1), (2, 0), (2, 2)]

   With a left join a row without matches produces a pair
   with no right position: ``(0, None)``.

3. Materialize the result taking the rows at the matched
   positions from both sides. The right key columns are not
   included, as they have the same values of the left ones::

    +----+--------+-----+
    | id | name   | age |
    +----+--------+-----+
    | 2  | Bob    | 30  |
    | 3  | Charlie| 25  |
    | 3  | Charlie| 26  |
    +----+--------+-----+

Both phases run on the calling thread. Keys with a missing
or NaN value never match any row.

>>> from tabulon import DataFrame
>>> left = DataFrame({"id": [1, 2, 3], "name": ["Alice", "Bob", "Charlie"]})
>>> right = DataFrame({"id": [3, 2, 3], "age": [25, 30, 26]})
>>> join(left, right, "id").to_dict()
{'id': [2, 3, 3], 'name': ['Bob', 'Charlie', 'Charlie'], 'age': [30, 25, 26]}
"""

import logging
from typing import TYPE_CHECKING, Any, Sequence

from ..errors import DuplicateColumn
from ..series import Series
from ..storage import ColumnStore
from ..storage.dtypes import is_nan

if TYPE_CHECKING:
    from ..dataframe import DataFrame

__all__ = ("join", "JOIN_TYPES")

log = logging.getLogger(__name__)

JOIN_TYPES = ("inner", "left")


def normalize_keys(
    on: str | Sequence[str] | Sequence[tuple[str, str]],
) -> list[tuple[str, str]]:
    """Turn the ``on`` argument of a join into pairs of left and right columns.

    >>> normalize_keys("id")
    [('id', 'id')]
    >>> normalize_keys(["id", ("city", "town")])
    [('id', 'id'), ('city', 'town')]
    """
    if isinstance(on, str):
        return [(on, on)]
    pairs = []
    for key in on:
        if isinstance(key, str):
            pairs.append((key, key))
        else:
            left_key, right_key = key
            pairs.append((left_key, right_key))
    if not pairs:
        raise ValueError("A join requires at least one key")
    return pairs


def _row_keys(columns: Sequence[ColumnStore], row_count: int) -> list[tuple[Any, ...] | None]:
    """The key of each row, ``None`` for keys that can't match."""
    keys: list[tuple[Any, ...] | None] = []
    iterators = [iter(column) for column in columns]
    for _ in range(row_count):
        key = tuple(next(values) for values in iterators)
        if any(v is None or is_nan(v) for v in key):
            keys.append(None)
        else:
            keys.append(key)
    return keys


def build(columns: Sequence[ColumnStore], row_count: int) -> dict[tuple[Any, ...], list[int]]:
    """Map each key to the positions of the rows that have it, in row order."""
    table: dict[tuple[Any, ...], list[int]] = {}
    for position, key in enumerate(_row_keys(columns, row_count)):
        if key is not None:
            table.setdefault(key, []).append(position)
    return table


def probe(
    columns: Sequence[ColumnStore],
    row_count: int,
    table: dict[tuple[Any, ...], list[int]],
    how: str,
) -> tuple[list[int], list[int | None]]:
    """Find the matching right positions for each left row.

    Returns the left and right positions of each output row,
    the right position is ``None`` for unmatched rows of a left join.
    """
    left_positions: list[int] = []
    right_positions: list[int | None] = []
    for position, key in enumerate(_row_keys(columns, row_count)):
        matches = table.get(key) if key is not None else None
        if matches:
            left_positions.extend([position] * len(matches))
            right_positions.extend(matches)
        elif how == "left":
            left_positions.append(position)
            right_positions.append(None)
    return left_positions, right_positions


def _output_names(
    left_names: list[str],
    right_names: list[str],
    suffixes: tuple[str, str] | None,
) -> tuple[dict[str, str], dict[str, str]]:
    collisions = set(left_names) & set(right_names)
    if collisions and suffixes is None:
        raise DuplicateColumn(
            f"Columns {sorted(collisions)} exist on both sides of the join, provide suffixes"
        )
    left_suffix, right_suffix = suffixes or ("", "")
    left_out = {n: n + left_suffix if n in collisions else n for n in left_names}
    right_out = {n: n + right_suffix if n in collisions else n for n in right_names}

    seen: set[str] = set()
    for name in list(left_out.values()) + list(right_out.values()):
        if name in seen:
            raise DuplicateColumn(f"Column {name!r} would appear twice in the join result")
        seen.add(name)
    return left_out, right_out


def join(
    left: "DataFrame",
    right: "DataFrame",
    on: str | Sequence[str] | Sequence[tuple[str, str]],
    how: str = "inner",
    suffixes: tuple[str, str] | None = None,
) -> "DataFrame":
    """Join two DataFrames on equal keys.

    The result contains all the columns of the left DataFrame
    followed by the columns of the right one, except its key columns.
    Rows are in left order, and rows of the left DataFrame matching
    multiple right rows are repeated for each match, in right order.

    >>> from tabulon import DataFrame
    >>> left = DataFrame({"id": [1, 2], "value": [10, 20]})
    >>> right = DataFrame({"key": [2], "value": [200]})
    >>> join(left, right, [("id", "key")], how="left", suffixes=("", "_right")).to_dict()
    {'id': [1, 2], 'value': [10, 20], 'value_right': [None, 200]}

    :param left: The left DataFrame.
    :param right: The right DataFrame.
    :param on: The key columns, a name when it's the same on both sides,
               or a list of names or ``(left, right)`` name pairs.
    :param how: ``inner`` to only keep the matching rows, ``left`` to keep
                all the left rows, with missing values in the right columns
                for the rows that didn't match.
    :param suffixes: Appended to the names of columns that exist on
                     both sides, ``(left_suffix, right_suffix)``.
    """
    if how not in JOIN_TYPES:
        raise ValueError(f"Unsupported join {how}, expected one of {JOIN_TYPES}")
    pairs = normalize_keys(on)
    left_keys = [left.get(l).store for l, _ in pairs]
    right_keys = [right.get(r).store for _, r in pairs]

    right_key_names = {r for _, r in pairs}
    right_names = [n for n in right.columns if n not in right_key_names]
    left_out, right_out = _output_names(left.columns, right_names, suffixes)

    table = build(right_keys, right.row_count)
    left_positions, right_positions = probe(left_keys, left.row_count, table, how)
    log.debug(
        "Joined %d left rows with %d right rows in %d rows",
        left.row_count,
        right.row_count,
        len(left_positions),
    )

    columns: dict[str, Series] = {}
    for name in left.columns:
        store = left.get(name).store.take(left_positions)
        columns[left_out[name]] = Series(store, name=left_out[name])
    for name in right_names:
        store = right.get(name).store.take(right_positions)
        columns[right_out[name]] = Series(store, name=right_out[name])
    return left.__class__(columns)
