"""Moving window reductions over a Series.

A rolling reduction computes, for each position, a reduction
over the ``window`` values ending at that position::

    values:          [1,    2,    3,    1,    2,    6]
    rolling(4).sum:  [None, None, None, 7,    8,    12]

The result has the same length of the source Series.
The first ``window - 1`` positions don't have enough values
and are missing, as is any position whose window contains
a missing value.
"""

from typing import Any

from ..compute import stats
from ..errors import EmptyReduction
from ..storage import DType
from .series import Series


class Rolling:
    """Rolling reductions for a Series.

    Usually created through :meth:`Series.rolling`:

    >>> s = Series([1., 2., 3., 1., 2., 6.])
    >>> s.rolling(4).mean().to_list()
    [None, None, None, 1.75, 2.0, 3.0]
    """

    def __init__(self, window: int, series: Series) -> None:
        """
        :param window: Number of values in each window.
        :param series: The Series to compute the reductions on.
        """
        if window < 1:
            raise ValueError("Rolling window must contain at least one value")
        self.window = window
        self.series = series

    def __str__(self) -> str:
        return f"Rolling(window={self.window}, series={self.series.name})"

    def _apply(self, reduction: str, dtype: DType, ddof: int = 1) -> Series:
        if reduction in stats.NUMERIC_REDUCTIONS and not self.series.dtype.is_numeric:
            self.series._require_numeric(f"rolling {reduction}")

        values = self.series.to_arrow()
        length = len(values)
        results: list[Any] = [None] * min(self.window - 1, length)
        for start in range(length - self.window + 1):
            window_values = values.slice(start, self.window)
            if window_values.null_count:
                results.append(None)
                continue
            try:
                results.append(stats.reduce_values(reduction, window_values, ddof=ddof))
            except EmptyReduction:
                results.append(None)

        index = self.series.index if self.series.has_index else None
        return Series(results, name=self.series.name, dtype=dtype, index=index)

    def sum(self) -> Series:
        return self._apply("sum", self.series.dtype)

    def mean(self) -> Series:
        return self._apply("mean", DType.FLOAT64)

    def min(self) -> Series:
        return self._apply("min", self.series.dtype)

    def max(self) -> Series:
        return self._apply("max", self.series.dtype)

    def var(self, ddof: int = 1) -> Series:
        """Rolling variance, ``ddof=0`` for population and ``ddof=1`` for sample."""
        return self._apply("var", DType.FLOAT64, ddof=ddof)

    def std(self, ddof: int = 1) -> Series:
        return self._apply("std", DType.FLOAT64, ddof=ddof)

    def median(self) -> Series:
        return self._apply("median", DType.FLOAT64)
