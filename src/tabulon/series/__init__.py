"""Typed columns of data.

A :class:`Series` is a single named column of values,
all of the same type, any of which can be missing.
It's the building block of :class:`tabulon.dataframe.DataFrame`,
but can be used on its own to compute on a column of data:

>>> from tabulon.series import Series
>>> s = Series([1, 2, None, 4], name="amount")
>>> s.mean()
2.3333333333333335
>>> s.map(lambda v: v * 10).to_list()
[10, 20, None, 40]
>>> s.count()
3

Binary operations between Series happen position by position,
to match values by label instead use :meth:`Series.align` first.
"""

from .rolling import Rolling
from .series import Series

__all__ = ("Series", "Rolling")
