"""Tabulon

An in-process engine for analysing tabular data.

Data is organised in named, typed columns, each one represented
by a :class:`Series`. Columns of the same length are collected
in a :class:`DataFrame`, which can be filtered, sorted, grouped,
joined with other DataFrames and persisted.

The engine is made of multiple components, each isolated within
its own package and documented within the package itself:

* The Storage, which keeps the values of a column and its missing values.
* The Series, typed columns supporting arithmetic, reductions and alignment.
* The DataFrame, the collection of columns sharing the same rows.
* The Compute functions, that aggregate, join and parallelise work.
* The IO functions, that load and save DataFrames.

>>> from tabulon import DataFrame
>>> df = DataFrame({"grp": ["a", "b", "a"], "val": [10, None, 30]})
>>> df.groupby("grp").sum("val").to_dict()
{'grp': ['a', 'b'], 'val': [40, None]}
"""

from .dataframe import DataFrame
from .series import Series
from .storage import DType

__all__ = ("DataFrame", "Series", "DType")
