# backend/plotbook/domain/formatting.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

BILLION = 1_000_000_000
MILLION = 1_000_000

NOT_AVAILABLE = "N/A"


def format_currency(value: Optional[float], *, compact: bool = True) -> str:
    """
    Display string for a dollar amount.

    compact=True:  >= 1B -> "$3.2B", >= 1M -> "$2.5M", else "$500,000"
    compact=False: always comma-grouped whole dollars
    None -> "N/A"
    """
    if value is None:
        return NOT_AVAILABLE

    v = float(value)
    if compact:
        # unit is chosen on the rounded figure: 999,999,999 is "$1.0B"
        a = abs(v)
        if round(a / MILLION, 1) >= 1000:
            return f"${v / BILLION:.1f}B"
        if round(a) >= MILLION:
            return f"${v / MILLION:.1f}M"
    return f"${round(v):,}"


def format_count(n: Optional[int]) -> str:
    return f"{int(n or 0):,}"


def property_age(year_built: Optional[int], *, current_year: Optional[int] = None) -> Optional[int]:
    if year_built is None:
        return None
    year = current_year if current_year is not None else datetime.utcnow().year
    return year - int(year_built)


def price_per_sqft(current_value: Optional[float], square_footage: Optional[float]) -> Optional[int]:
    if current_value is None or not square_footage:
        return None
    return round(float(current_value) / float(square_footage))
