"""Format tabular data into a text table for print.

The `tabulate` function takes the names of the columns and the rows
and formats them into a text table.
It will truncate long strings, format floats to 2 decimal places,
show missing values as ``null`` and limit the number of rows to display.
It's used to display DataFrames and Series and by the ``tagg`` command.

Example:

    >>> rows = [["Videogame", 8, 66.5], ["Laptop", None, 38.72]]
    >>> print(tabulate(["Product", "Quantity", "Price"], rows))
    Product   | Quantity | Price
    --------- | -------- | -----
    Videogame | 8        | 66.50
    Laptop    | null     | 38.72
"""

from typing import Any, Sequence


def tabulate(
    cols: Sequence[str],
    rows: Sequence[Sequence[Any]],
    num_rows: int | None = None,
    max_rows: int = 20,
) -> str:
    """Format rows of values into a text table.

    Will produce a string like::

        Product   | Quantity | Price | Total
        --------- | -------- | ----- | ------
        Videogame | 8        | 66.50 | 532.00
        Laptop    | 8        | 38.72 | 309.76
        Laptop    | 7        | 77.46 | 542.22

    :param cols: The names of the columns.
    :param rows: The rows, each one with a value per column.
    :param num_rows: The total number of rows of the data,
                     when ``rows`` only contains the first ones.
    :param max_rows: How many rows to display at most.
    """
    cols = [str(c) for c in cols]
    num_rows = len(rows) if num_rows is None else num_rows
    textrows = [[format_value(v) for v in row] for row in rows[:max_rows]]

    colsizes = compute_max_colsize(cols, textrows)
    header = [maketablerow(cols, colsizes=colsizes)]
    separator = [maketablerow(["-"] * len(cols), colsizes=colsizes, fillvalue="-")]
    body = [maketablerow(row, colsizes=colsizes) for row in textrows]

    table = "\n".join(header + separator + body)
    if num_rows > max_rows:
        table += f"\n... and {num_rows - max_rows} more rows"
    return table


def compute_max_colsize(cols: list[str], rows: list[list[str]]) -> list[int]:
    """Compute the maximum size of each column in a table."""
    return [
        max([len(row[colidx]) for row in rows] + [len(cols[colidx])])
        for colidx, _ in enumerate(cols)
    ]


def maketablerow(cols: list[str], colsizes: list[int], fillvalue: str = " ") -> str:
    """Make a table row with the given column sizes."""
    return " | ".join(
        [col.ljust(colsizes[idx], fillvalue) for idx, col in enumerate(cols)]
    ).rstrip()


def format_value(v: Any) -> str:
    """Format a value to be printed in the table.

    This function will format floats to 2 decimal places,
    and truncate long strings.
    """
    if v is None:
        return "null"
    elif isinstance(v, bool):
        return "true" if v else "false"
    elif isinstance(v, float):
        return f"{v:.2f}"

    v = str(v)
    if len(v) > 30:
        v = v[:27] + "..."
    return v
