"""Currency helpers.

Order totals are kept in currency units rounded to cents. The payment
simulator works in integer cents.
"""


def round_money(value: float) -> float:
    return round(value, 2)


def to_cents(value: float) -> int:
    return int(round(value * 100))

