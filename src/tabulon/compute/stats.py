"""Reductions over contiguous buffers of values.

The functions in this module receive a :class:`pyarrow.Array`
that doesn't contain missing values, callers are in charge
of extracting the valid values first
(see :meth:`tabulon.storage.ColumnStore.valid_array`),
and return a Python scalar.

The actual math is delegated to :mod:`pyarrow.compute`.

When there are no values to reduce, or not enough of them
for the requested degrees of freedom, :class:`EmptyReduction`
is raised.

>>> import pyarrow as pa
>>> reduce_values("sum", pa.array([1, 2, 3]))
6
>>> reduce_values("mean", pa.array([1, 2, 3]))
2.0
"""

from typing import Any, Callable

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import EmptyReduction

#: Reductions that only make sense on numeric values.
NUMERIC_REDUCTIONS = frozenset({"sum", "mean", "var", "std", "median"})

#: Reductions defined for every type of value.
ORDERING_REDUCTIONS = frozenset({"min", "max", "count"})


def _as_py(result: pa.Scalar, reduction: str) -> Any:
    value = result.as_py()
    if value is None:
        raise EmptyReduction(f"Not enough values to compute {reduction}")
    return value


def _ensure_values(values: pa.Array, reduction: str) -> None:
    if len(values) == 0:
        raise EmptyReduction(f"Cannot compute {reduction} of zero values")


def total(values: pa.Array) -> Any:
    _ensure_values(values, "sum")
    return _as_py(pc.sum(values), "sum")


def mean(values: pa.Array) -> float:
    _ensure_values(values, "mean")
    return _as_py(pc.mean(values), "mean")


def variance(values: pa.Array, ddof: int = 1) -> float:
    """Variance, ``ddof=0`` for population and ``ddof=1`` for sample variance."""
    _ensure_values(values, "var")
    return _as_py(pc.variance(values, ddof=ddof), "var")


def stddev(values: pa.Array, ddof: int = 1) -> float:
    _ensure_values(values, "std")
    return _as_py(pc.stddev(values, ddof=ddof), "std")


def minimum(values: pa.Array) -> Any:
    _ensure_values(values, "min")
    return _as_py(pc.min(values), "min")


def maximum(values: pa.Array) -> Any:
    _ensure_values(values, "max")
    return _as_py(pc.max(values), "max")


def count(values: pa.Array) -> int:
    _ensure_values(values, "count")
    return len(values)


def median(values: pa.Array) -> float:
    _ensure_values(values, "median")
    return _as_py(pc.quantile(values, q=0.5)[0], "median")


_REDUCTIONS: dict[str, Callable[..., Any]] = {
    "sum": total,
    "mean": mean,
    "var": variance,
    "std": stddev,
    "min": minimum,
    "max": maximum,
    "count": count,
    "median": median,
}


def reduce_values(reduction: str, values: pa.Array, ddof: int = 1) -> Any:
    """Apply a reduction by name to a buffer of values.

    :param reduction: One of ``sum``, ``mean``, ``var``, ``std``,
                      ``min``, ``max``, ``count``, ``median``.
    :param values: The values to reduce, must not contain nulls.
    :param ddof: Delta degrees of freedom for ``var`` and ``std``.
    """
    try:
        func = _REDUCTIONS[reduction]
    except KeyError:
        raise ValueError(f"Unknown reduction: {reduction}") from None
    if reduction in ("var", "std"):
        return func(values, ddof=ddof)
    return func(values)
