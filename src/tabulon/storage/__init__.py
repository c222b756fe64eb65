"""Typed column storage.

Columns of a DataFrame can hold different types of values,
integers, floats, strings or booleans. Each column keeps its
values in a :class:`ColumnStore`, which knows its own
:class:`DType` and which of its positions are missing.

Everything above the storage layer (Series, DataFrame, the
compute functions) only interacts with columns through the
:class:`ColumnStore` interface, so they don't need to know
what type of values they are dealing with until they actually
have to compute something on them.
"""

from .column import ColumnStore
from .dtypes import DType

__all__ = ("ColumnStore", "DType")
