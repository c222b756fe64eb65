from tabulon import Series
from tabulon.utils.tabulate import format_value, tabulate


def test_tabulate_truncates_rows():
    rows = [[i] for i in range(5)]
    text = tabulate(["n"], rows, max_rows=2)
    assert text == "n\n-\n0\n1\n... and 3 more rows"


def test_format_value():
    assert format_value(None) == "null"
    assert format_value(True) == "true"
    assert format_value(1.0) == "1.00"
    assert format_value("x" * 40) == "x" * 27 + "..."


def test_series_repr():
    assert repr(Series([1, None], name="a")) == "a\n----\n1\nnull\ndtype: int64"
