"""Compare grouping data/shops.csv, generated by generate_test_data.py."""

import sys
import time

import pandas
import psutil

from tabulon import DataFrame
from tabulon.compute import SerialStrategy, ThreadPoolStrategy

try:
    aggregation_type = sys.argv[1]
except IndexError:
    aggregation_type = None

if aggregation_type in ("serial", "threads"):
    strategy = SerialStrategy() if aggregation_type == "serial" else ThreadPoolStrategy()

    def run():
        df = DataFrame.read_csv("data/shops.csv")
        return df.groupby(["City", "Employees"], strategy=strategy).sum("Revenue")

elif aggregation_type == "pandas":

    def run():
        df = pandas.read_csv("data/shops.csv")
        return df.groupby(["City", "Employees"]).agg({"Revenue": "sum"})

else:
    print("Aggregation must be serial, threads or pandas")
    sys.exit(1)

proc = psutil.Process()
start = time.time()
run()
end = time.time()

print(
    "TIME:",
    round(end - start, 1),
    "MEMORY:",
    proc.memory_full_info().rss // (1024 * 1024),
)
