"""Splitting work across worker threads.

Elementwise operations on large Series and the per group
reductions of aggregations are data parallel: the same pure
function gets applied to independent pieces of the data.

An :class:`ExecutionStrategy` decides how those pieces are run.
Regardless of the strategy the results are always returned in
the order of the pieces, never in the order they completed,
so the output of an operation doesn't depend on scheduling::

    [0 ... 24999] [25000 ... 49999] [50000 ... 74999] [75000 ... 99999]
          |               |                 |                 |
       worker 1        worker 2          worker 3          worker 4
          |               |                 |                 |
       result 0        result 1          result 2          result 3   -> in this order

The calling thread blocks until every piece completed.
If any of them failed, the error of the first failing piece
(in piece order) is raised and all partial results are discarded.

There is no internal locking: callers must not resize or drop
a column while a parallel operation is reading it.

Two strategies are provided:

* :class:`SerialStrategy` runs everything on the calling thread,
  useful in tests and for small data.
* :class:`ThreadPoolStrategy` runs the pieces on a
  :class:`concurrent.futures.ThreadPoolExecutor`.

Most operations accept a ``strategy`` argument, when it's
not provided they use the process wide pool returned by
:func:`shared_strategy`.

>>> SerialStrategy().map_chunks(lambda start, stop: list(range(start, stop)), 5)
[[0, 1, 2, 3, 4]]
>>> split_ranges(10, 3)
[(0, 4), (4, 7), (7, 10)]
"""

import abc
import atexit
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Callable, Sequence, TypeVar

from ..config import get_engine_defaults

log = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def split_ranges(length: int, parts: int) -> list[tuple[int, int]]:
    """Split ``range(length)`` in contiguous ``(start, stop)`` ranges.

    The number of ranges is bounded by ``parts``, the first
    ranges get one extra element when the split isn't even.
    """
    if length <= 0:
        return []
    parts = max(1, min(parts, length))
    size, extra = divmod(length, parts)
    ranges = []
    start = 0
    for idx in range(parts):
        stop = start + size + (1 if idx < extra else 0)
        ranges.append((start, stop))
        start = stop
    return ranges


class ExecutionStrategy(abc.ABC):
    """Policy to run independent pieces of work.

    Subclasses only have to implement :meth:`run`,
    splitting data in pieces is shared by all strategies.
    """

    def __init__(self, workers: int, threshold: int | None = None) -> None:
        """
        :param workers: How many pieces can run at the same time.
        :param threshold: Below this number of elements work isn't split at all.
        """
        if workers < 1:
            raise ValueError("An execution strategy needs at least one worker")
        self.workers = workers
        self.threshold = (
            get_engine_defaults().parallel_threshold if threshold is None else threshold
        )

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(workers={self.workers}, threshold={self.threshold})"

    __repr__ = __str__

    @abc.abstractmethod
    def run(self, func: Callable[[T], R], tasks: Sequence[T]) -> list[R]:
        """Apply ``func`` to every task and return the results in task order.

        Must only return once all the tasks completed,
        and must raise the error of the first failed task.
        """
        ...

    def should_split(self, length: int) -> bool:
        """If data of the given length is worth splitting."""
        return self.workers > 1 and length >= self.threshold

    def map_chunks(
        self, func: Callable[[int, int], R], length: int, size: int | None = None
    ) -> list[R]:
        """Call ``func(start, stop)`` on contiguous chunks of ``range(length)``.

        Data shorter than the threshold is processed as a single chunk
        on the calling thread, to avoid paying for the dispatch.

        :param func: Pure function computing the result of one chunk.
        :param length: Number of items to split.
        :param size: Number of elements the items cover, compared with
                     the threshold. When items are groups of rows this
                     is the number of rows, defaults to ``length``.
        """
        if length == 0:
            return []
        if not self.should_split(length if size is None else size):
            return [func(0, length)]
        ranges = split_ranges(length, self.workers)
        log.debug("Splitting %d items in %d chunks", length, len(ranges))
        return self.run(lambda bounds: func(*bounds), ranges)


class SerialStrategy(ExecutionStrategy):
    """Run all the work on the calling thread."""

    def __init__(self) -> None:
        super().__init__(workers=1, threshold=0)

    def run(self, func: Callable[[T], R], tasks: Sequence[T]) -> list[R]:
        return [func(task) for task in tasks]


class ThreadPoolStrategy(ExecutionStrategy):
    """Run the work on a pool of worker threads.

    The pool is created on first use, so creating the strategy is cheap.
    """

    def __init__(
        self,
        workers: int | None = None,
        threshold: int | None = None,
        thread_name_prefix: str | None = None,
    ) -> None:
        """
        :param workers: Size of the pool, from :mod:`tabulon.config` when omitted.
        :param threshold: Minimum number of elements to split work.
        :param thread_name_prefix: Name of the worker threads.
        """
        defaults = get_engine_defaults()
        super().__init__(workers or defaults.workers, threshold)
        self.thread_name_prefix = thread_name_prefix or defaults.thread_name_prefix
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.Lock()

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                log.debug("Starting pool of %d workers", self.workers)
                self._executor = ThreadPoolExecutor(
                    max_workers=self.workers, thread_name_prefix=self.thread_name_prefix
                )
            return self._executor

    def run(self, func: Callable[[T], R], tasks: Sequence[T]) -> list[R]:
        if len(tasks) <= 1:
            return [func(task) for task in tasks]
        executor = self._get_executor()
        futures = [executor.submit(func, task) for task in tasks]
        # Barrier: every chunk completes before results are looked at.
        wait(futures)
        return [future.result() for future in futures]

    def shutdown(self) -> None:
        """Stop the worker threads, the pool restarts if used again."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            log.debug("Stopping pool of %d workers", self.workers)
            executor.shutdown(wait=True)


_shared_strategy: ThreadPoolStrategy | None = None
_shared_lock = threading.Lock()


def shared_strategy() -> ThreadPoolStrategy:
    """The process wide thread pool strategy.

    It's created the first time it's requested and
    its threads are stopped when the interpreter exits.
    """
    global _shared_strategy
    with _shared_lock:
        if _shared_strategy is None:
            _shared_strategy = ThreadPoolStrategy()
            atexit.register(_shared_strategy.shutdown)
        return _shared_strategy


def resolve_strategy(strategy: ExecutionStrategy | None) -> ExecutionStrategy:
    """Use the given strategy or fallback to the shared one."""
    return shared_strategy() if strategy is None else strategy


def concat_chunks(chunks: list[list[Any]]) -> list[Any]:
    """Join the results of :meth:`ExecutionStrategy.map_chunks` in one list."""
    result: list[Any] = []
    for chunk in chunks:
        result.extend(chunk)
    return result
