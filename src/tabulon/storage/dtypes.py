"""Element types supported by columns.

A column can hold only one of a closed set of element types.
Each of them maps to an Arrow type, which is the format used
when the data is handed to the compute functions or persisted.

Only integers and floats are numeric, strings and booleans
can be compared, sorted and grouped but not summed or averaged.

>>> DType.infer([1, None, 2.5])
<DType.FLOAT64: 'float64'>
>>> DType.infer(["a", "b"]).arrow_type
DataType(string)
"""

import enum
import math
import numbers
from typing import Any, Iterable

import pyarrow as pa
import pyarrow.types as pat

from ..errors import TypeMismatch

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class DType(enum.Enum):
    """The type of the values stored in a column."""

    INT64 = "int64"
    FLOAT64 = "float64"
    STRING = "string"
    BOOL = "bool"

    def __str__(self) -> str:
        return self.value

    @property
    def arrow_type(self) -> pa.DataType:
        """The Arrow type used to represent the values."""
        return _ARROW_TYPES[self]

    @property
    def is_numeric(self) -> bool:
        """If arithmetic and numeric reductions are defined for the type."""
        return self in (DType.INT64, DType.FLOAT64)

    @property
    def placeholder(self) -> Any:
        """Value stored at missing positions, it's never read."""
        return _PLACEHOLDERS[self]

    def coerce(self, value: Any) -> Any:
        """Convert a Python value to the representation used by the type.

        ``None`` is returned as is, as it marks a missing value.
        Values that can't be represented by the type raise :class:`TypeMismatch`.
        """
        if value is None:
            return None
        if self is DType.BOOL:
            if isinstance(value, bool):
                return value
        elif self is DType.STRING:
            if isinstance(value, str):
                return value
        elif isinstance(value, bool):
            # bool is an Integral, but True is not a number we want to store.
            pass
        elif self is DType.INT64:
            if isinstance(value, numbers.Integral):
                value = int(value)
                if not INT64_MIN <= value <= INT64_MAX:
                    raise TypeMismatch(f"{value} is out of the range of a {self} column")
                return value
        elif self is DType.FLOAT64:
            if isinstance(value, numbers.Real):
                return float(value)
        raise TypeMismatch(f"Cannot store {value!r} in a {self} column")

    @classmethod
    def of(cls, value: Any) -> "DType":
        """The type that would store a single Python value."""
        if isinstance(value, bool):
            return cls.BOOL
        if isinstance(value, numbers.Integral):
            return cls.INT64
        if isinstance(value, numbers.Real):
            return cls.FLOAT64
        if isinstance(value, str):
            return cls.STRING
        raise TypeMismatch(f"Unsupported value type: {type(value).__name__}")

    @classmethod
    def infer(cls, values: Iterable[Any]) -> "DType":
        """Infer the type of a sequence of values.

        The first non-missing value decides the type,
        integers are promoted to floats if any float shows up.
        Sequences with no values at all are considered floats.
        """
        inferred = None
        for value in values:
            if value is None:
                continue
            if inferred is None:
                inferred = cls.of(value)
                if inferred is not cls.INT64:
                    break
            elif isinstance(value, numbers.Real) and not isinstance(
                value, (bool, numbers.Integral)
            ):
                return cls.FLOAT64
        return inferred or cls.FLOAT64

    @classmethod
    def from_arrow(cls, arrow_type: pa.DataType) -> "DType":
        """Find the type corresponding to an Arrow type."""
        if pat.is_boolean(arrow_type):
            return cls.BOOL
        if pat.is_integer(arrow_type):
            return cls.INT64
        if pat.is_floating(arrow_type):
            return cls.FLOAT64
        if pat.is_string(arrow_type) or pat.is_large_string(arrow_type):
            return cls.STRING
        raise TypeMismatch(f"Unsupported Arrow type: {arrow_type}")

    @classmethod
    def parse(cls, dtype: "DType | str") -> "DType":
        """Accept a DType or its name, like ``"int64"``."""
        if isinstance(dtype, cls):
            return dtype
        try:
            return cls(str(dtype).lower())
        except ValueError:
            raise TypeMismatch(f"Unknown dtype: {dtype!r}") from None


def is_nan(value: Any) -> bool:
    """If the value is a float NaN."""
    return isinstance(value, float) and math.isnan(value)


_ARROW_TYPES = {
    DType.INT64: pa.int64(),
    DType.FLOAT64: pa.float64(),
    DType.STRING: pa.string(),
    DType.BOOL: pa.bool_(),
}

_PLACEHOLDERS = {
    DType.INT64: 0,
    DType.FLOAT64: 0.0,
    DType.STRING: "",
    DType.BOOL: False,
}
