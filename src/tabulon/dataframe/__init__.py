"""Tables of typed columns.

A :class:`DataFrame` is a collection of named :class:`tabulon.series.Series`,
all with the same number of rows. Each column keeps its own type,
so a DataFrame can hold integers, floats, strings and booleans
side by side.

DataFrames allow to load data from various sources (like CSV files),
explore it, apply transformations and analyze it, all in memory::

    >>> from tabulon import DataFrame
    >>> df = DataFrame({"id": [1, 2, 3], "grp": ["a", "b", "a"], "val": [10, None, 30]})
    >>> df.shape
    (3, 3)
    >>> df.filter(df["grp"].map(lambda g: g == "a")).to_dict()
    {'id': [1, 3], 'grp': ['a', 'a'], 'val': [10, 30]}

The DataFrame is eager: every operation computes
its result immediately and returns a new DataFrame,
the only operations changing a DataFrame in place are
the ones that add, remove or rename its columns.
"""

from .dataframe import DataFrame

__all__ = ("DataFrame",)
