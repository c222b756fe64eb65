"""Command line interface for aggregating CSV files.

This module provides a command line interface to group the rows
of a CSV file and aggregate them, based on :meth:`tabulon.DataFrame.groupby`.

The results are then printed to the console in a tabular format
using the :mod:`tabulon.utils.tabulate` module.
"""

import argparse
import logging
import sys

from tabulon import DataFrame
from tabulon.compute.aggregate import AGGREGATIONS, Aggregation
from tabulon.errors import TabulonError
from tabulon.utils import tabulate

log = logging.getLogger(__name__)


def parse_aggregation(value: str) -> tuple[str, Aggregation]:
    """Parse an aggregation in the ``name=function:column`` form.

    >>> parse_aggregation("total=sum:amount")
    ('total', SumAggregation(amount))
    """
    try:
        name, definition = value.split("=", 1)
        function, column = definition.split(":", 1)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid aggregation {value!r}, expected name=function:column"
        ) from None
    try:
        aggregation = AGGREGATIONS[function]
    except KeyError:
        raise argparse.ArgumentTypeError(
            f"Unknown aggregation function {function!r}, expected one of {sorted(AGGREGATIONS)}"
        ) from None
    return name, aggregation(column)


def main(argv: list[str] | None = None) -> int:
    """Parse the command line arguments and print the aggregated table."""
    parser = argparse.ArgumentParser(description="Group and aggregate the rows of a CSV file.")
    parser.add_argument("filename", help="The CSV file to read.")
    parser.add_argument(
        "-b",
        "--by",
        action="append",
        default=[],
        help="Column to group by. Can be provided multiple times.",
    )
    parser.add_argument(
        "-a",
        "--agg",
        action="append",
        type=parse_aggregation,
        default=[],
        help="Aggregation in the form name=function:column. Can be provided multiple times.",
    )
    parser.add_argument("--sort", action="store_true", help="Sort the groups by key.")
    parser.add_argument("-d", "--delimiter", default=",", help="The field delimiter.")
    parser.add_argument("--max-rows", type=int, default=20, help="Rows to display.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        frame = DataFrame.read_csv(args.filename, delimiter=args.delimiter)
        groups = frame.groupby(args.by, sort=args.sort)
        if args.agg:
            result = groups.aggregate(dict(args.agg))
        else:
            result = groups.size()
    except (TabulonError, ValueError, OSError) as e:
        log.debug("Aggregation failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(tabulate_frame(result, max_rows=args.max_rows))
    return 0


def tabulate_frame(frame: DataFrame, max_rows: int) -> str:
    """Format the first rows of a DataFrame as a text table."""
    rows = [row for _, row in zip(range(max_rows), frame.rows())]
    return tabulate.tabulate(frame.columns, rows, frame.row_count, max_rows=max_rows)


if __name__ == "__main__":
    sys.exit(main())
