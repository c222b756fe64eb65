import pytest

from tabulon import DataFrame
from tabulon.commands import tagg
from tabulon.compute.aggregate import MeanAggregation, SumAggregation
from tabulon.io import persistence

SALES_CSV = """Product,Quantity,Price,Shop
Videogame,8,66.5,1
Laptop,8,38.72,2
Laptop,7,77.46,1
Phone,,20.0,3
Videogame,2,60.0,2
"""


def test_csv_group_join_persist(tmp_path):
    path = tmp_path / "sales.csv"
    path.write_text(SALES_CSV)
    sales = DataFrame.read_csv(str(path))
    shops = DataFrame({"Shop": [1, 2], "City": ["Rome", "Milan"]})

    sales["Total"] = sales["Quantity"] * sales["Price"]
    joined = sales.join(shops, on="Shop", how="left")
    result = joined.groupby("City", sort=True).aggregate(
        {
            "quantity": SumAggregation("Quantity"),
            "avg_price": MeanAggregation("Price"),
        }
    )
    assert result["City"].to_list() == ["Milan", "Rome", None]
    assert result["quantity"].to_list() == [10, 15, None]
    assert result["avg_price"].to_list() == pytest.approx([49.36, 71.98, 20.0])
    assert persistence.decode(persistence.encode(result, "gzip"), "gzip") == result


def test_tagg_command(tmp_path, capsys):
    path = tmp_path / "sales.csv"
    path.write_text(SALES_CSV)
    status = tagg.main([str(path), "--by", "Product", "--agg", "total=sum:Quantity"])
    assert status == 0
    assert capsys.readouterr().out == (
        "Product   | total\n"
        "--------- | -----\n"
        "Videogame | 10\n"
        "Laptop    | 15\n"
        "Phone     | null\n"
    )


def test_tagg_sizes_without_aggregations(tmp_path, capsys):
    path = tmp_path / "sales.csv"
    path.write_text(SALES_CSV)
    assert tagg.main([str(path), "--by", "Shop", "--sort"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[2:] == ["1    | 2", "2    | 2", "3    | 1"]


def test_tagg_reports_errors(tmp_path, capsys):
    path = tmp_path / "sales.csv"
    path.write_text(SALES_CSV)
    assert tagg.main([str(path), "--by", "Country"]) == 1
    assert "Country" in capsys.readouterr().err
