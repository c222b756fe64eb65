import math

import pyarrow as pa
import pytest

from tabulon import DataFrame
from tabulon.compute.parallel import SerialStrategy, ThreadPoolStrategy
from tabulon.errors import (
    EmptyReduction,
    LengthMismatch,
    NonUniqueIndex,
    RowCountMismatch,
    TypeMismatch,
)
from tabulon.series import Series
from tabulon.storage import DType


@pytest.fixture
def pool():
    strategy = ThreadPoolStrategy(workers=3, threshold=1)
    yield strategy
    strategy.shutdown()


def test_construct_from_values():
    s = Series([1, None, 3], name="n")
    assert s.dtype is DType.INT64
    assert s.name == "n"
    assert len(s) == 3
    assert s.to_list() == [1, None, 3]
    assert s.index == [0, 1, 2]
    assert not s.has_index


def test_construct_from_arrow_with_dtype():
    s = Series(pa.array([1, 2]), dtype="float64")
    assert s.dtype is DType.FLOAT64
    assert s.to_list() == [1.0, 2.0]


def test_construct_from_series():
    source = Series([1, None], name="n", index=["a", "b"])
    s = Series(source)
    assert s.name == "n"
    assert s.index == ["a", "b"]
    s[0] = 5
    assert source[0] == 1
    renamed = Series(source, name="m", index=[1, 2])
    assert renamed.name == "m"
    assert renamed.index == [1, 2]


def test_construct_index_length_must_match():
    with pytest.raises(LengthMismatch):
        Series([1, 2], index=["a"])


def test_arange():
    assert Series.arange(1, 7, 2).to_list() == [1, 3, 5]


def test_positional_read_write():
    s = Series([1, 2, 3])
    s[1] = None
    s[2] = 30
    assert s[1] is None
    assert s[2] == 30
    assert s[0:2].to_list() == [1, None]


@pytest.mark.parametrize("strategy", [SerialStrategy(), "pool"])
def test_map_preserves_missing(strategy, pool):
    strategy = pool if strategy == "pool" else strategy
    s = Series([1, None, 3, None, 5, 6, 7])
    result = s.map(lambda v: v * 10, strategy=strategy)
    assert len(result) == len(s)
    assert result.missing_mask() == s.missing_mask()
    assert result.to_list() == [10, None, 30, None, 50, 60, 70]


def test_map_never_calls_function_on_missing():
    seen = []
    Series([None, 2]).map(lambda v: seen.append(v) or v, strategy=SerialStrategy())
    assert seen == [2]


def test_map_error_propagates(pool):
    def _fail(v):
        if v == 3:
            raise ZeroDivisionError("boom")
        return v

    with pytest.raises(ZeroDivisionError):
        Series([1, 2, 3, 4, 5, 6]).map(_fail, strategy=pool)


def test_zip_with(pool):
    left = Series([1, 2, None, 4])
    right = Series([10, None, 30, 40])
    assert left.zip_with(right, lambda a, b: a + b, strategy=pool).to_list() == [
        11,
        None,
        None,
        44,
    ]


def test_zip_with_length_mismatch():
    with pytest.raises(LengthMismatch):
        Series([1, 2, 3]).zip_with(Series([1, 2]), max)


def test_arithmetic():
    s = Series([1, 2, None])
    assert (s + 1).to_list() == [2, 3, None]
    assert (s * Series([2, 2, 2])).to_list() == [2, 4, None]
    assert (10 - s).to_list() == [9, 8, None]
    div = s / 2
    assert div.dtype is DType.FLOAT64
    assert div.to_list() == [0.5, 1.0, None]
    assert (s + 0.5).dtype is DType.FLOAT64


def test_division_by_zero():
    result = Series([1.0, -2, 0, None, 3]) / Series([0, 0.0, 0, 1, -0.0])
    values = result.to_list()
    assert values[0] == math.inf
    assert values[1] == -math.inf
    assert math.isnan(values[2])
    assert values[3] is None
    assert values[4] == -math.inf
    assert (1 / Series([0, 2])).to_list() == [math.inf, 0.5]


def test_int_overflow_is_type_mismatch():
    with pytest.raises(TypeMismatch):
        Series([2**62]) * 4
    with pytest.raises(TypeMismatch):
        Series([2**63])


def test_arithmetic_requires_numeric():
    with pytest.raises(TypeMismatch):
        Series(["a", "b"]) + 1
    with pytest.raises(TypeMismatch):
        Series([1, 2]) + Series(["a", "b"])


def test_arithmetic_length_mismatch():
    with pytest.raises(LengthMismatch):
        Series([1, 2]) + Series([1, 2, 3])


def test_reductions_skip_missing():
    s = Series([10, None, 30, None])
    assert s.sum() == 40
    assert s.mean() == 20.0
    assert s.min() == 10
    assert s.max() == 30
    assert s.count() == 2
    assert s.median() == 20.0
    assert s.var() == 200.0
    assert s.std() == pytest.approx(math.sqrt(200))


@pytest.mark.parametrize("reduction", ["sum", "mean", "min", "max", "count"])
def test_reduction_all_missing(reduction):
    with pytest.raises(EmptyReduction):
        Series([None, None], dtype="int64").reduce(reduction)


def test_reduction_requires_numeric():
    s = Series(["b", "a", None])
    assert s.min() == "a"
    assert s.max() == "b"
    assert s.count() == 2
    with pytest.raises(TypeMismatch):
        s.sum()
    with pytest.raises(ValueError):
        s.reduce("product")


def test_mode_and_unique():
    s = Series([3, 1, 3, None, 1, 2])
    assert s.mode().to_list() == [1, 3]
    assert s.unique().to_list() == [3, 1, None, 2]
    with pytest.raises(EmptyReduction):
        Series([None], dtype="int64").mode()


def test_predicates():
    s = Series([2, 4, None, 6])
    assert s.all(lambda v: v % 2 == 0)
    assert not s.any(lambda v: v > 10)
    assert s.locate(4) == [1]
    assert s.isna().to_list() == [False, False, True, False]
    assert s.notna().to_list() == [True, True, False, True]


def test_astype():
    assert Series([1, None]).astype("float64").to_list() == [1.0, None]
    assert Series(["1", "2"]).astype(DType.INT64).to_list() == [1, 2]
    with pytest.raises(TypeMismatch):
        Series([1.5]).astype("int64")
    with pytest.raises(TypeMismatch):
        Series(["abc"]).astype("int64")


def test_filter_reindexes():
    s = Series([1, None, 3, 4], index=["a", "b", "c", "d"])
    result = s.filter(lambda v: v > 1)
    assert result.to_list() == [3, 4]
    assert result.index == [0, 1]
    assert s.filter([True, True, False, False]).to_list() == [1, None]
    assert s.filter(lambda v: v > 1, keep_missing=True).to_list() == [None, 3, 4]


def test_filter_mask_length():
    with pytest.raises(LengthMismatch):
        Series([1, 2]).filter([True])
    with pytest.raises(TypeMismatch):
        Series([1, 2]).filter(Series([1, 0]))


@pytest.mark.parametrize(
    "descending,missing,expected",
    [
        (False, "last", [1, 2, 3, None]),
        (False, "first", [None, 1, 2, 3]),
        (True, "last", [3, 2, 1, None]),
        (True, "first", [None, 3, 2, 1]),
    ],
)
def test_sort_missing_placement(descending, missing, expected):
    s = Series([3, None, 1, 2])
    assert s.sort(descending=descending, missing=missing).to_list() == expected


def test_sort_is_stable_and_keeps_labels():
    s = Series([2, 1, 2, 1], index=["a", "b", "c", "d"])
    result = s.sort()
    assert result.to_list() == [1, 1, 2, 2]
    assert result.index == ["b", "d", "a", "c"]


def test_sort_invalid_placement():
    with pytest.raises(ValueError):
        Series([1]).sort(missing="middle")


def test_align_outer():
    a = Series([1, 2], index=["x", "y"], name="a")
    b = Series([20, 30], index=["y", "z"], name="b")
    left, right = a.align(b)
    assert left.index == right.index == ["x", "y", "z"]
    assert left.to_list() == [1, 2, None]
    assert right.to_list() == [None, 20, 30]
    assert left.dtype is DType.INT64


def test_align_inner_and_left():
    a = Series([1, 2], index=["x", "y"])
    b = Series([20, 30], index=["y", "z"])
    left, right = a.align(b, join="inner")
    assert (left.to_list(), right.to_list()) == ([2], [20])
    left, right = a.align(b, join="left")
    assert (left.to_list(), right.to_list()) == ([1, 2], [None, 20])


def test_align_strict_and_unique():
    a = Series([1, 2], index=["x", "y"])
    with pytest.raises(LengthMismatch):
        a.align(Series([1], index=["x"]), strict=True)
    with pytest.raises(NonUniqueIndex):
        a.align(Series([1, 2], index=["x", "x"]))


def test_equals():
    assert Series([1, None]) == Series([1, None])
    assert Series([float("nan")]) == Series([float("nan")])
    assert Series([1, None]) != Series([1, 2])
    assert Series([1]) != Series([1.0])


def test_append_refused_inside_dataframe():
    s = Series([1, 2], name="a")
    s.append(3)
    assert s.to_list() == [1, 2, 3]
    frame = DataFrame({"a": s})
    with pytest.raises(RowCountMismatch):
        s.append(4)
    assert len(frame) == 3
    frame.drop("a")
    s.append(4)
    assert len(s) == 4


def test_rename_copy_head_take():
    s = Series([1, 2, 3], name="a")
    assert s.rename("b").name == "b"
    copy = s.copy()
    copy[0] = 100
    assert s[0] == 1
    assert s.head(2).to_list() == [1, 2]
    assert s.take([2, 0]).to_list() == [3, 1]


def test_set_and_reset_index():
    s = Series([1, 2]).set_index(["a", "b"])
    assert s.has_index and s.index == ["a", "b"]
    assert s.reset_index().index == [0, 1]
