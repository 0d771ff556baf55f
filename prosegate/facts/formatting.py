"""Deterministic formatters for fact values.

Every formatter returns the placeholder token ``[<Label> TBD]`` when the
value is absent, so a missing fact is never silently dropped.
"""

import datetime

_ONES = [
    "",
    "one",
    "two",
    "three",
    "four",
    "five",
    "six",
    "seven",
    "eight",
    "nine",
    "ten",
    "eleven",
    "twelve",
    "thirteen",
    "fourteen",
    "fifteen",
    "sixteen",
    "seventeen",
    "eighteen",
    "nineteen",
]
_TENS = ["", "", "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety"]
_SCALES = [(1_000_000_000, "billion"), (1_000_000, "million"), (1_000, "thousand")]


def placeholder(label: str) -> str:
    return f"[{label} TBD]"


def is_placeholder(value: str) -> bool:
    return value.startswith("[") and value.endswith(" TBD]")


def format_currency(value: float | None, label: str = "Amount") -> str:
    """$500,000 - whole dollars."""
    if value is None:
        return placeholder(label)
    return f"${value:,.0f}"


def format_currency_detailed(value: float | None, label: str = "Amount") -> str:
    """$3,247.18 - dollars and cents."""
    if value is None:
        return placeholder(label)
    return f"${value:,.2f}"


def format_percent(value: float | None, label: str = "Rate") -> str:
    """0.0625 -> 6.250%"""
    if value is None:
        return placeholder(label)
    return f"{value * 100:.3f}%"


def format_percent_short(value: float | None, label: str = "Rate") -> str:
    """0.0625 -> 6.25%"""
    if value is None:
        return placeholder(label)
    return f"{value * 100:.2f}%"


def format_date(value: datetime.date | None, label: str = "Date") -> str:
    """March 1, 2031"""
    if value is None:
        return placeholder(label)
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def format_number(value: float) -> str:
    """Shortest plain rendering: 1.25 -> '1.25', 2.0 -> '2'."""
    return f"{value:g}"


def _below_thousand(n: int) -> str:
    words: list[str] = []
    if n >= 100:
        words.append(f"{_ONES[n // 100]} hundred")
        n %= 100
    if n >= 20:
        tens = _TENS[n // 10]
        words.append(f"{tens}-{_ONES[n % 10]}" if n % 10 else tens)
    elif n > 0:
        words.append(_ONES[n])
    return " ".join(words)


def number_to_words(value: float | int) -> str:
    """Spell out the whole-number part: 500000 -> 'five hundred thousand'."""
    n = int(value)
    if n == 0:
        return "zero"
    if n < 0:
        return f"negative {number_to_words(-n)}"

    parts: list[str] = []
    for size, name in _SCALES:
        if n >= size:
            parts.append(f"{_below_thousand(n // size)} {name}")
            n %= size
    if n:
        parts.append(_below_thousand(n))
    return " ".join(parts)


__all__ = [
    "placeholder",
    "is_placeholder",
    "format_currency",
    "format_currency_detailed",
    "format_percent",
    "format_percent_short",
    "format_date",
    "format_number",
    "number_to_words",
]
