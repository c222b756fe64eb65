from tabulon import DataFrame

df = DataFrame.read_csv("data/shops.csv")
rome = df.filter(df["City"].map(lambda city: city == "Rome"))
rome["Revenue per employee"] = rome["Revenue"] / rome["Employees"]

print(rome.sort_by("Revenue per employee", descending=True).head(10))
print(df.groupby("City").mean("Employees"))
