"""Errors raised by the tabulon engine.

All the errors are recoverable conditions that the operation which
detected them surfaces to the caller. They are never retried and
never corrected silently: when an operation fails the DataFrame or
Series it was acting on is left as it was.

Each error is also a subclass of the closest built-in exception,
so callers that already catch ``ValueError`` or ``KeyError``
keep working.
"""

__all__ = (
    "TabulonError",
    "LengthMismatch",
    "RowCountMismatch",
    "DuplicateColumn",
    "EmptyReduction",
    "TypeMismatch",
    "KeyNotFound",
    "NonUniqueIndex",
)


class TabulonError(Exception):
    """Base class for all errors raised by the engine."""


class LengthMismatch(TabulonError, ValueError):
    """Two operands were expected to have the same length, but didn't."""


class RowCountMismatch(TabulonError, ValueError):
    """A column doesn't have the row count of the DataFrame it belongs to."""


class DuplicateColumn(TabulonError, ValueError):
    """A column name is already in use."""


class EmptyReduction(TabulonError, ValueError):
    """A reduction was requested over zero non-missing values."""


class TypeMismatch(TabulonError, TypeError):
    """The operation requires an element type the Series doesn't have."""


class KeyNotFound(TabulonError, KeyError):
    """A column name or a group key doesn't exist."""

    def __str__(self) -> str:
        # KeyError quotes its argument, keep the message readable.
        return str(self.args[0]) if self.args else ""


class NonUniqueIndex(TabulonError, ValueError):
    """Alignment by label requires unique index labels."""
