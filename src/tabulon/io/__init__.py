"""Loading and saving DataFrames.

Two families of formats are supported:

* Text, through :mod:`tabulon.io.csv`, which converts delimited
  text to typed columns and back.
* Binary, through :mod:`tabulon.io.persistence`, which stores the
  columns in the Arrow IPC format, optionally compressed, or in Parquet.

All the formats keep the order of the columns, their types
and the positions of missing values.
"""

from .csv import from_rows, read_csv, write_csv
from .persistence import decode, encode, load, save

__all__ = ("from_rows", "read_csv", "write_csv", "encode", "decode", "save", "load")
