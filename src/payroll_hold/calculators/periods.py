"""Calendar-month arithmetic for salary months and hold maturity."""

from __future__ import annotations

import calendar
import re
from datetime import date

MONTH_PATTERN = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def parse_month(month: str) -> tuple[int, int]:
    """Parse a 'YYYY-MM' salary month into (year, month).

    Raises ValueError for anything else.
    """
    match = MONTH_PATTERN.match(month or "")
    if match is None:
        raise ValueError(f"Invalid month '{month}', expected YYYY-MM")
    return int(match.group(1)), int(match.group(2))


def days_in_month(month: str) -> int:
    """Number of calendar days in a 'YYYY-MM' month."""
    year, mon = parse_month(month)
    return calendar.monthrange(year, mon)[1]


def add_months(start: date, months: int) -> date:
    """Add calendar months, clamping to the last day of the target month.

    2024-01-31 + 3 months -> 2024-04-30
    2023-11-30 + 3 months -> 2024-02-29
    """
    index = start.year * 12 + (start.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(start.day, last_day))
