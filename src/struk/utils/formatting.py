"""Money and date formatting for receipts.

Amounts are whole currency units (Rupiah has no fractional subunit in
practice), grouped with a dot every three digits: 22000 -> "22.000".
"""

import math
from datetime import datetime
from typing import Union

Number = Union[int, float]


def round_half_up(value: Number) -> int:
    """Round to the nearest integer, halves going towards +infinity."""
    return int(math.floor(value + 0.5))


def format_currency(amount: Number) -> str:
    """Format an amount as a rounded, dot-grouped integer string."""
    return f"{round_half_up(amount):,}".replace(",", ".")


def format_receipt_date(value: Union[datetime, str, None]) -> str:
    """Format a timestamp as ``D/M/YYYY, HH.MM.SS``.

    Aware timestamps are converted to local time first. Empty input
    gives an empty string.
    """
    if not value:
        return ""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is not None:
        value = value.astimezone()
    return (
        f"{value.day}/{value.month}/{value.year}, "
        f"{value.hour:02d}.{value.minute:02d}.{value.second:02d}"
    )
