"""Generate a CSV file of shops to play with the examples."""

import random

from tabulon import DataFrame

CITIES = ["Rome", "Milan", "Turin", "Naples", "Florence"]
ROWS = 100_000

random.seed(42)
df = DataFrame(
    {
        "Shop Name": [f"Shop {i}" for i in range(ROWS)],
        "City": [random.choice(CITIES) for _ in range(ROWS)],
        "Employees": [random.randint(1, 50) for _ in range(ROWS)],
        "Revenue": [
            round(random.uniform(1_000, 100_000), 2) if random.random() > 0.05 else None
            for _ in range(ROWS)
        ],
    }
)
df.to_csv("data/shops.csv")
print(df.head())
