"""Utility helpers for calculator modules."""

from __future__ import annotations


def _group_thousands(integer_part: str) -> str:
    groups: list[str] = []
    while len(integer_part) > 3:
        groups.insert(0, integer_part[-3:])
        integer_part = integer_part[:-3]
    groups.insert(0, integer_part)
    return ".".join(groups)


def format_decimal(value: float, decimals: int = 2) -> str:
    """Return ``value`` in Italian notation (``1.234,56``)."""

    formatted = f"{abs(value):.{decimals}f}"
    integer_part, _, fraction = formatted.partition(".")
    text = _group_thousands(integer_part)
    if fraction:
        text = f"{text},{fraction}"
    if value < 0 and float(formatted) != 0:
        text = f"-{text}"
    return text


def format_currency(value: float, symbol: str = "€") -> str:
    """Return a currency label such as ``1.234,56 €``."""

    return f"{format_decimal(value, 2)} {symbol}"


def format_percentage(value: float) -> str:
    """Return a human-readable percentage label for ``value``."""

    percentage = round(value * 100, 2)
    if percentage.is_integer():
        return f"{int(percentage)}%"
    text = format_decimal(percentage, 2).rstrip("0")
    return f"{text}%"


def round_currency(value: float) -> float:
    """Round monetary amounts to two decimals."""

    return round(value, 2)


def round_rate(value: float) -> float:
    """Round rate values to four decimals."""

    return round(value, 4)
