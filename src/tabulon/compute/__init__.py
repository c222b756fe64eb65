"""The Tabulon Compute functions

The compute package contains the algorithms that operate on
the values of columns, independently from how the columns
are exposed to users:

* :mod:`tabulon.compute.stats` reduces a buffer of values to a scalar.
* :mod:`tabulon.compute.parallel` splits elementwise work across threads.
* :mod:`tabulon.compute.aggregate` groups rows and reduces each group.
* :mod:`tabulon.compute.join` matches the rows of two DataFrames.

The reductions work on :class:`pyarrow.Array` buffers that
don't contain missing values, which allows to delegate the
actual math to :mod:`pyarrow.compute`:

>>> import pyarrow as pa
>>> from tabulon.compute import reduce_values
>>> reduce_values("max", pa.array([3, 7, 5]))
7

Aggregations and joins are usually invoked through
:meth:`tabulon.DataFrame.groupby` and :meth:`tabulon.DataFrame.join`,
they are not imported here as they depend on the DataFrame itself.
"""

from .parallel import (
    ExecutionStrategy,
    SerialStrategy,
    ThreadPoolStrategy,
    shared_strategy,
)
from .stats import reduce_values

__all__ = (
    "ExecutionStrategy",
    "SerialStrategy",
    "ThreadPoolStrategy",
    "shared_strategy",
    "reduce_values",
)
