"""Date parsing utilities."""

from calendar import monthrange
from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

# Portuguese aliases accepted next to the English relative words
_RELATIVE_ALIASES = {
    "hoje": "today",
    "ontem": "yesterday",
    "amanhã": "tomorrow",
    "amanha": "tomorrow",
}


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - ISO dates: "2024-01-15"
    - Brazilian dates (day first): "15/01/2024"
    - Relative dates: "today", "hoje", "yesterday", "last month", "next month", etc.

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    date_str = _RELATIVE_ALIASES.get(date_str, date_str)
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    for prefix, months in (("last ", -1), ("this ", 0), ("next ", 1)):
        if not date_str.startswith(prefix):
            continue
        period = date_str[len(prefix):]
        if period == "month":
            return (today + relativedelta(months=months)).replace(day=1)
        if period == "year":
            return today.replace(month=1, day=1) + relativedelta(years=months)
        if period == "week":
            return today - timedelta(days=today.weekday()) + timedelta(weeks=months)

    # ISO strings are unambiguous; everything else is read day first
    try:
        if len(date_str) == 10 and date_str[4] == "-":
            return date.fromisoformat(date_str)
        return date_parser.parse(date_str, dayfirst=True).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return the first and last day of a month."""
    return date(year, month, 1), date(year, month, monthrange(year, month)[1])


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a specified period.

    Args:
        period: Period string (this-month, this-quarter, this-year, next-month,
            last-month, last-quarter, last-year)

    Returns:
        Tuple of (start_date, end_date) for the specified period

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = date.today()
    quarter_start = today.replace(month=(today.month - 1) // 3 * 3 + 1, day=1)

    if period == "this-month":
        return (today.replace(day=1), today)

    elif period == "this-quarter":
        return (quarter_start, today)

    elif period == "this-year":
        return (today.replace(month=1, day=1), today)

    elif period == "next-month":
        start_date = (today + relativedelta(months=1)).replace(day=1)
        return month_bounds(start_date.year, start_date.month)

    elif period == "last-month":
        start_date = (today - relativedelta(months=1)).replace(day=1)
        return month_bounds(start_date.year, start_date.month)

    elif period == "last-quarter":
        start_date = quarter_start - relativedelta(months=3)
        return (start_date, quarter_start - timedelta(days=1))

    elif period == "last-year":
        start_date = today.replace(month=1, day=1) - relativedelta(years=1)
        return (start_date, today.replace(month=1, day=1) - timedelta(days=1))

    else:
        raise ValueError(
            f"Unknown period: '{period}'. Supported periods: this-month, this-quarter, "
            "this-year, next-month, last-month, last-quarter, last-year"
        )
