import pyarrow as pa
import pytest

from tabulon.compute import stats
from tabulon.errors import EmptyReduction


@pytest.mark.parametrize(
    "reduction,values,expected",
    [
        ("sum", [1, 2, 3], 6),
        ("mean", [1, 2, 3], 2.0),
        ("min", [3, 1, 2], 1),
        ("max", [3, 1, 2], 3),
        ("count", [3, 1, 2], 3),
        ("median", [5, 1, 3], 3.0),
        ("var", [1, 2, 3, 4], pytest.approx(5 / 3)),
        ("std", [2, 4, 4, 4, 5, 5, 7, 9], pytest.approx(2.138089935299395)),
        ("min", ["b", "a"], "a"),
    ],
)
def test_reduce_values(reduction, values, expected):
    assert stats.reduce_values(reduction, pa.array(values)) == expected


def test_population_variance():
    assert stats.reduce_values("var", pa.array([1, 2, 3, 4]), ddof=0) == 1.25


@pytest.mark.parametrize("reduction", ["sum", "mean", "min", "max", "count", "var", "median"])
def test_empty_reduction(reduction):
    with pytest.raises(EmptyReduction):
        stats.reduce_values(reduction, pa.array([], type=pa.int64()))


def test_not_enough_values_for_ddof():
    with pytest.raises(EmptyReduction):
        stats.reduce_values("var", pa.array([1.0]), ddof=1)


def test_unknown_reduction():
    with pytest.raises(ValueError, match="Unknown reduction"):
        stats.reduce_values("product", pa.array([1]))
