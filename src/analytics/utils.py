"""
Scalar utilities for career metric calculations.

Currency, date and percentage primitives shared by every builder.
All monetary values are integer cents; percentages are plain floats
in the 0-100 range.
"""

import json
import logging
import math
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Optional, Tuple, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

DateLike = Union[str, date, datetime]

SECONDS_PER_DAY = 60 * 60 * 24
DAYS_PER_YEAR = 365.25
DAYS_PER_MONTH = 30.44  # Average days per month


def utc_now() -> datetime:
    """Current time as a naive UTC datetime (the engine's canonical form)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


def to_datetime(value: Optional[DateLike]) -> Optional[datetime]:
    """
    Coerce a date-like value to a naive UTC datetime.

    Accepts datetimes (aware ones are converted to UTC), dates (midnight)
    and ISO 8601 strings, including a trailing "Z".

    Raises:
        ValueError: If a string is not a valid ISO 8601 date
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        return to_datetime(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
    raise ValueError(f"Unsupported date value: {value!r}")


def cents_to_dollars(cents: Optional[int]) -> int:
    """Convert cents to whole dollars for display (0 for None)."""
    return round_half_up(cents / 100) if cents else 0


def dollars_to_cents(dollars: float) -> int:
    """Convert dollars to cents for storage."""
    return round_half_up(dollars * 100)


def years_between(start_date: datetime, end_date: Optional[datetime] = None) -> float:
    """
    Years between two datetimes using a 365.25-day year.

    Negative when end_date precedes start_date. end_date defaults to now.
    """
    end = end_date if end_date is not None else utc_now()
    return (end - start_date).total_seconds() / (SECONDS_PER_DAY * DAYS_PER_YEAR)


def months_between(start_date: datetime, end_date: Optional[datetime] = None) -> float:
    """Months between two datetimes using a 30.44-day month."""
    end = end_date if end_date is not None else utc_now()
    return (end - start_date).total_seconds() / (SECONDS_PER_DAY * DAYS_PER_MONTH)


def calculate_percentage_change(old_value: float, new_value: float) -> float:
    """Percentage change from old_value to new_value; 0 when old_value is 0."""
    if old_value == 0:
        return 0
    return ((new_value - old_value) / old_value) * 100


def calculate_cagr(initial_value: float, final_value: float, years: float) -> float:
    """
    Compound annual growth rate, as a percentage.

    Returns 0 for non-positive values or a non-positive time span, and when
    the span is so short that the annualized rate is not representable.
    """
    if initial_value <= 0 or final_value <= 0 or years <= 0:
        return 0
    try:
        growth = math.exp(math.log(final_value / initial_value) / years)
    except OverflowError:
        logger.debug(f"CAGR out of range over {years:.6f} years; reporting 0")
        return 0
    return (growth - 1) * 100


def get_bonuses_for_year(bonus_history: Optional[Iterable[Any]], year: int) -> int:
    """
    Sum bonus amounts paid within a calendar year.

    Entries are BonusEntry models or raw dicts with "date" and "amount";
    entries without a parseable date are ignored.
    """
    if not bonus_history:
        return 0

    total = 0
    for bonus in bonus_history:
        if isinstance(bonus, dict):
            raw_date, amount = bonus.get("date"), bonus.get("amount")
        else:
            raw_date, amount = bonus.date, bonus.amount
        try:
            bonus_date = to_datetime(raw_date)
        except ValueError:
            continue
        if bonus_date is not None and bonus_date.year == year:
            total += amount or 0
    return total


def get_employment_years(
    start_date: Optional[DateLike],
    end_date: Optional[DateLike] = None,
    now: Optional[datetime] = None,
) -> List[int]:
    """
    Calendar years spanned by an employment period, inclusive.

    An open-ended period runs until now. Returns [] without a start date.
    """
    start = to_datetime(start_date)
    if start is None:
        return []
    end = to_datetime(end_date) or now or utc_now()
    return list(range(start.year, end.year + 1))


def safe_parse_json(json_field: Any, fallback: T) -> T:
    """
    Decode a loosely-typed JSON column without raising.

    Non-string values are returned unchanged; strings are parsed; None,
    blank strings and invalid JSON yield the fallback (invalid JSON is logged).
    """
    if json_field is None:
        return fallback

    if not isinstance(json_field, str):
        return json_field

    if not json_field.strip():
        return fallback

    try:
        return json.loads(json_field)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(f"Failed to parse JSON field: {e}")
        return fallback


def format_currency(cents: Optional[int], currency: str = "USD") -> str:
    """Format cents as whole major units, e.g. 12345678 -> "$123,457"."""
    dollars = cents_to_dollars(cents)
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    sign = "-" if dollars < 0 else ""
    if symbol is None:
        return f"{sign}{currency.upper()} {abs(dollars):,}"
    return f"{sign}{symbol}{abs(dollars):,}"


def format_percentage(value: float, decimals: int = 1) -> str:
    """Format a 0-100 percentage, e.g. 12.345 -> "12.3%"."""
    return f"{value:.{decimals}f}%"


def create_date_range(
    start_date: DateLike,
    end_date: Optional[DateLike] = None,
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """Normalize a (start, end) pair; a missing end means now."""
    start = to_datetime(start_date)
    end = to_datetime(end_date) or now or utc_now()
    return start, end


CURRENCY_SYMBOLS = {
    "USD": "$",
    "CAD": "CA$",
    "AUD": "A$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
}
