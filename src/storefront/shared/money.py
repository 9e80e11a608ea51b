"""Money arithmetic helpers. Amounts are floats kept at two decimals."""

MONEY_TOLERANCE = 0.01


def round_money(amount) -> float:
    return round(float(amount or 0.0), 2)


def money_equal(a, b) -> bool:
    return abs(float(a or 0.0) - float(b or 0.0)) < MONEY_TOLERANCE
