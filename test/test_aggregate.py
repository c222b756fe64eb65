import math

import pytest

from tabulon import DataFrame, DType, Series
from tabulon.compute.aggregate import (
    CountAggregation,
    FunctionAggregation,
    GroupBy,
    MaxAggregation,
    MeanAggregation,
    MinAggregation,
    StdAggregation,
    SumAggregation,
    VarianceAggregation,
    partition,
)
from tabulon.compute.parallel import SerialStrategy, ThreadPoolStrategy
from tabulon.errors import DuplicateColumn, EmptyReduction, KeyNotFound, TypeMismatch
from tabulon.storage import ColumnStore


@pytest.fixture
def shops():
    return DataFrame(
        {
            "city": ["New York", "New York", "Los Angeles", "Los Angeles", "New York"],
            "shop": ["Shop A", "Shop B", "Shop A", "Shop A2", "Shop B"],
            "n_employees": [10, 15, 8, 12, 20],
        }
    )


@pytest.fixture
def pool():
    strategy = ThreadPoolStrategy(workers=2, threshold=1)
    yield strategy
    strategy.shutdown()


@pytest.mark.parametrize("keys", [["city"], ["city", "shop"]])
def test_basic_aggregation(shops, keys):
    result = shops.groupby(keys).aggregate({"total_employees": SumAggregation("n_employees")})

    if keys == ["city"]:
        assert result.columns == ["city", "total_employees"]
        assert result["city"].to_list() == ["New York", "Los Angeles"]
        assert result["total_employees"].to_list() == [45, 20]
    else:
        assert result.columns == ["city", "shop", "total_employees"]
        assert result["city"].to_list() == [
            "New York",
            "New York",
            "Los Angeles",
            "Los Angeles",
        ]
        assert result["shop"].to_list() == ["Shop A", "Shop B", "Shop A", "Shop A2"]
        assert result["total_employees"].to_list() == [10, 35, 8, 12]


@pytest.mark.parametrize("keys", [["city"], ["city", "shop"]])
def test_groupby_str(shops, keys):
    groups = shops.groupby(keys)
    assert str(groups) == f"GroupBy(keys={keys!r}, groups={len(groups)})"


@pytest.mark.parametrize(
    "aggregation,expected,dtype",
    [
        (MinAggregation("n_employees"), [10, 8], DType.INT64),
        (MaxAggregation("n_employees"), [20, 12], DType.INT64),
        (CountAggregation("n_employees"), [3, 2], DType.INT64),
        (MeanAggregation("n_employees"), [15.0, 10.0], DType.FLOAT64),
        (
            VarianceAggregation("n_employees"),
            [pytest.approx(25.0), pytest.approx(8.0)],
            DType.FLOAT64,
        ),
        (
            StdAggregation("n_employees", ddof=0),
            [pytest.approx(math.sqrt(50 / 3)), pytest.approx(2.0)],
            DType.FLOAT64,
        ),
        (MinAggregation("shop"), ["Shop A", "Shop A"], DType.STRING),
    ],
)
def test_aggregations(shops, aggregation, expected, dtype):
    result = shops.groupby("city").aggregate({"result": aggregation})
    assert result["result"].dtype is dtype
    assert result["result"].to_list() == expected


def test_all_missing_group_is_missing_cell():
    frame = DataFrame({"id": [1, 2, 3], "grp": ["a", "b", "a"], "val": [10, None, 30]})
    result = frame.groupby("grp").sum("val")
    assert result.to_dict() == {"grp": ["a", "b"], "val": [40, None]}
    assert result["val"].dtype is DType.INT64


def test_one_row_per_group_in_first_occurrence_order():
    frame = DataFrame({"k": [3, 1, 3, 2, 1, 3], "v": [1, 1, 1, 1, 1, 1]})
    sizes = frame.groupby("k").size()
    assert sizes["k"].to_list() == [3, 1, 2]
    assert sum(sizes["size"].to_list()) == frame.row_count


def test_sorted_groups_missing_last():
    frame = DataFrame({"k": ["b", None, "a", "b"], "v": [1, 2, 3, 4]})
    result = frame.groupby("k", sort=True).sum("v")
    assert result.to_dict() == {"k": ["a", "b", None], "v": [3, 5, 2]}


def test_missing_and_nan_keys_form_groups():
    nan = float("nan")
    frame = DataFrame({"k": [1.0, nan, None, nan, 1.0], "v": [1, 2, 3, 4, 5]})
    result = frame.groupby("k").sum("v")
    keys = result["k"].to_list()
    assert keys[0] == 1.0 and math.isnan(keys[1]) and keys[2] is None
    assert result["v"].to_list() == [6, 6, 3]


def test_sorted_groups_nan_after_values():
    nan = float("nan")
    frame = DataFrame({"k": [2.0, nan, 1.0, None, nan], "v": [1, 2, 3, 4, 5]})
    result = frame.groupby("k", sort=True).sum("v")
    keys = result["k"].to_list()
    assert keys[:2] == [1.0, 2.0]
    assert math.isnan(keys[2]) and keys[3] is None
    assert result["v"].to_list() == [3, 1, 7, 4]


def test_multi_key_first_occurrence():
    frame = DataFrame({"a": [1, 1, 2, 1], "b": ["x", "y", "x", "x"], "v": [1, 2, 3, 4]})
    result = frame.groupby(["a", "b"]).count("v")
    assert result.to_dict() == {"a": [1, 1, 2], "b": ["x", "y", "x"], "v": [2, 1, 1]}


def test_shortcuts_default_columns(shops):
    assert shops.groupby("city").sum().columns == ["city", "n_employees"]
    assert shops.groupby("city").max().columns == ["city", "shop", "n_employees"]


def test_numeric_aggregation_on_text(shops):
    with pytest.raises(TypeMismatch):
        shops.groupby("city").sum("shop")


def test_unknown_columns(shops):
    with pytest.raises(KeyNotFound):
        shops.groupby("country")
    with pytest.raises(KeyNotFound):
        shops.groupby("city").aggregate({"x": SumAggregation("missing")})


def test_aggregation_named_as_key(shops):
    with pytest.raises(DuplicateColumn):
        shops.groupby("city").aggregate({"city": CountAggregation("shop")})


def test_function_aggregation(shops):
    def _spread(values):
        if len(values) < 2:
            raise EmptyReduction("need two values")
        return max(values) - min(values)

    frame = shops.filter(lambda row: row["shop"] != "Shop A2")
    result = frame.groupby("city").aggregate(
        {"spread": FunctionAggregation("n_employees", _spread, dtype="int64")}
    )
    assert result["spread"].to_list() == [10, None]


@pytest.mark.parametrize("strategy", [SerialStrategy(), "pool"])
def test_parallel_reduction_matches_serial(strategy, pool):
    strategy = pool if strategy == "pool" else strategy
    frame = DataFrame({"k": [i % 7 for i in range(200)], "v": list(range(200))})
    result = frame.groupby("k", strategy=strategy).sum("v")
    expected = [sum(v for v in range(200) if v % 7 == k) for k in range(7)]
    assert result["k"].to_list() == list(range(7))
    assert result["v"].to_list() == expected


def test_get_group_and_iteration(shops):
    groups = shops.groupby("city")
    assert groups.get_group("Los Angeles")["shop"].to_list() == ["Shop A", "Shop A2"]
    with pytest.raises(KeyNotFound):
        groups.get_group("Rome")
    keys = [key for key, _ in groups]
    assert keys == ["New York", "Los Angeles"]

    multi = shops.groupby(["city", "shop"])
    assert multi.get_group(("New York", "Shop B"))["n_employees"].to_list() == [15, 20]
    assert [key for key, _ in multi][0] == ("New York", "Shop A")


def test_groups_positions(shops):
    assert shops.groupby("city").groups == {
        ("New York",): [0, 1, 4],
        ("Los Angeles",): [2, 3],
    }


def test_no_keys_single_group(shops):
    result = GroupBy(shops, []).aggregate({"total": SumAggregation("n_employees")})
    assert result.to_dict() == {"total": [65]}


def test_empty_frame():
    frame = DataFrame({"k": Series([], dtype="string"), "v": Series([], dtype="int64")})
    result = frame.groupby("k").sum("v")
    assert result.row_count == 0
    assert result.dtypes == {"k": DType.STRING, "v": DType.INT64}


def test_partition():
    a = ColumnStore.from_values([1, 2, 1])
    b = ColumnStore.from_values(["x", "x", "x"])
    assert partition([a, b], 3) == {(1, "x"): [0, 2], (2, "x"): [1]}
