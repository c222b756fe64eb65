import pytest

from tabulon import DataFrame, DType
from tabulon.compute.join import build, join, normalize_keys
from tabulon.errors import DuplicateColumn, KeyNotFound
from tabulon.storage import ColumnStore


@pytest.fixture
def left():
    return DataFrame(
        {
            "id": [1, 2, 3, 4],
            "name": ["Alice", "Bob", "Charlie", "David"],
        }
    )


@pytest.fixture
def right():
    return DataFrame(
        {
            "id": [3, 4, 5, 3],
            "age": [25, 30, 35, 26],
        }
    )


def test_inner_join(left, right):
    result = join(left, right, "id")
    assert result.to_dict() == {
        "id": [3, 3, 4],
        "name": ["Charlie", "Charlie", "David"],
        "age": [25, 26, 30],
    }


def test_inner_join_is_cross_product_of_matches():
    left = DataFrame({"k": ["a", "a", "b"], "l": [1, 2, 3]})
    right = DataFrame({"k": ["a", "a", "a"], "r": [10, 20, 30]})
    result = left.join(right, on="k")
    assert result.row_count == 6
    assert list(result.rows()) == [
        ("a", 1, 10),
        ("a", 1, 20),
        ("a", 1, 30),
        ("a", 2, 10),
        ("a", 2, 20),
        ("a", 2, 30),
    ]


def test_left_join(left, right):
    result = left.join(right, on="id", how="left")
    assert result.row_count == left.row_count + 1
    assert result.to_dict() == {
        "id": [1, 2, 3, 3, 4],
        "name": ["Alice", "Bob", "Charlie", "Charlie", "David"],
        "age": [None, None, 25, 26, 30],
    }
    assert result["age"].dtype is DType.INT64


def test_left_join_all_right_columns_missing():
    left = DataFrame({"id": [1]})
    right = DataFrame({"id": [2], "a": ["x"], "b": [1.5]})
    result = left.join(right, "id", how="left")
    assert result.to_dict() == {"id": [1], "a": [None], "b": [None]}


def test_missing_and_nan_keys_never_match():
    left = DataFrame({"k": [1.0, None, float("nan")], "l": [1, 2, 3]})
    right = DataFrame({"k": [None, float("nan"), 1.0], "r": [10, 20, 30]})
    assert left.join(right, "k").to_dict() == {"k": [1.0], "l": [1], "r": [30]}
    assert left.join(right, "k", how="left")["r"].to_list() == [30, None, None]


def test_multiple_keys_with_different_names():
    left = DataFrame({"city": ["Rome", "Rome", "Milan"], "year": [2020, 2021, 2020], "v": [1, 2, 3]})
    right = DataFrame({"town": ["Rome", "Milan"], "y": [2021, 2020], "w": ["a", "b"]})
    result = left.join(right, on=[("city", "town"), ("year", "y")])
    assert result.to_dict() == {
        "city": ["Rome", "Milan"],
        "year": [2021, 2020],
        "v": [2, 3],
        "w": ["a", "b"],
    }


def test_collisions_require_suffixes():
    left = DataFrame({"id": [1, 2], "value": [10, 20]})
    right = DataFrame({"id": [2], "value": [200]})
    with pytest.raises(DuplicateColumn):
        left.join(right, "id")
    result = left.join(right, "id", suffixes=("_l", "_r"))
    assert result.columns == ["id", "value_l", "value_r"]
    assert result.to_dict() == {"id": [2], "value_l": [20], "value_r": [200]}


def test_suffixes_still_colliding():
    left = DataFrame({"id": [1], "value": [1], "value_x": [2]})
    right = DataFrame({"id": [1], "value": [3]})
    with pytest.raises(DuplicateColumn):
        left.join(right, "id", suffixes=("_x", "_y"))


def test_unknown_key_and_join_type(left, right):
    with pytest.raises(KeyNotFound):
        left.join(right, "name")
    with pytest.raises(ValueError):
        left.join(right, "id", how="outer")


def test_join_leaves_inputs_unchanged(left, right):
    before = (left.to_dict(), right.to_dict())
    left.join(right, "id", how="left")
    assert (left.to_dict(), right.to_dict()) == before


def test_normalize_keys():
    assert normalize_keys(["a", "b"]) == [("a", "a"), ("b", "b")]
    with pytest.raises(ValueError):
        normalize_keys([])


def test_build_keeps_right_order():
    keys = ColumnStore.from_values([3, 1, 3, None])
    assert build([keys], 4) == {(3,): [0, 2], (1,): [1]}
