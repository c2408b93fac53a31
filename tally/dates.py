"""Date utilities for tally.

Pure functions for month arithmetic and formatting.
"""

from datetime import date, datetime, timedelta

from tally.domain.models import Month


def month_range(month: Month) -> tuple[str, str, str]:
    """Calculate date range and label for a month.

    Args:
        month: Month in YYYY-MM format.

    Returns:
        Tuple of (since_date, until_date, label) where:
        - since_date: First day of month (YYYY-MM-DD)
        - until_date: First day of next month (YYYY-MM-DD)
        - label: Human-readable month (e.g., "January 2025")
    """
    dt = datetime.strptime(month, "%Y-%m")
    since = dt.strftime("%Y-%m-01")
    next_month = (dt.replace(day=28) + timedelta(days=4)).replace(day=1)
    until = next_month.strftime("%Y-%m-%d")
    label = dt.strftime("%B %Y")
    return since, until, label


def current_month(today: date | None = None) -> Month:
    """Get the month containing today (or the given date)."""
    if today is None:
        today = date.today()
    return Month(today.strftime("%Y-%m"))


def month_of(iso_date: str) -> Month:
    """Get the YYYY-MM month of an ISO date string."""
    return Month(iso_date[:7])


def previous_months(month: Month, count: int) -> list[Month]:
    """List ``count`` months ending at ``month``, oldest first.

    Args:
        month: Last month in the window (YYYY-MM).
        count: Number of months in the window.

    Returns:
        Months in YYYY-MM format, e.g. ["2024-11", "2024-12", "2025-01"].
    """
    dt = datetime.strptime(month, "%Y-%m")
    months: list[Month] = []
    for offset in range(count - 1, -1, -1):
        index = dt.year * 12 + (dt.month - 1) - offset
        year, month_index = divmod(index, 12)
        months.append(Month(f"{year:04d}-{month_index + 1:02d}"))
    return months


def short_month_label(month: Month) -> str:
    """Format a month as a short chart label (e.g., "Jan 25")."""
    return datetime.strptime(month, "%Y-%m").strftime("%b %y")
