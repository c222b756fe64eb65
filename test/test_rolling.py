import pytest

from tabulon.errors import TypeMismatch
from tabulon.series import Rolling, Series
from tabulon.storage import DType

VALUES = Series([1.0, 2.0, 3.0, 1.0, 2.0, 6.0], name="v")


@pytest.mark.parametrize(
    "reduction,expected",
    [
        ("sum", [None, None, None, 7.0, 8.0, 12.0]),
        ("mean", [None, None, None, 1.75, 2.0, 3.0]),
        ("min", [None, None, None, 1.0, 1.0, 1.0]),
        ("max", [None, None, None, 3.0, 3.0, 6.0]),
    ],
)
def test_rolling_reductions(reduction, expected):
    result = getattr(VALUES.rolling(4), reduction)()
    assert result.name == "v"
    assert len(result) == len(VALUES)
    assert result.to_list() == expected


def test_rolling_median():
    result = Series([1.0, 5.0, 2.0, None, 4.0, 8.0]).rolling(3).median()
    assert result.dtype is DType.FLOAT64
    assert result.to_list() == [None, None, 2.0, None, None, None]
    assert VALUES.rolling(2).median().to_list() == [None, 1.5, 2.5, 2.0, 1.5, 4.0]


def test_rolling_variance():
    result = Series([1.0, 2.0, 3.0, 4.0]).rolling(2).var()
    assert result.to_list() == [None, 0.5, 0.5, 0.5]
    result = Series([1.0, 2.0, 3.0, 4.0]).rolling(2).std(ddof=0)
    assert result.to_list() == [None, 0.5, 0.5, 0.5]


def test_rolling_window_with_missing():
    result = Series([1, 2, None, 4, 5]).rolling(2).sum()
    assert result.dtype is DType.INT64
    assert result.to_list() == [None, 3, None, None, 9]


def test_window_longer_than_series():
    assert Series([1, 2]).rolling(5).sum().to_list() == [None, None]


def test_invalid_window():
    with pytest.raises(ValueError):
        Rolling(0, VALUES)


def test_rolling_requires_numeric():
    with pytest.raises(TypeMismatch):
        Series(["a", "b"]).rolling(1).mean()
    assert Series(["b", "a", "c"]).rolling(2).min().to_list() == [None, "a", "a"]
