"""
Centralized datetime utilities.

Ensures consistent timezone handling across the application.
All timestamps are stored and transmitted as UTC with explicit timezone indicators.
Also holds the calendar arithmetic used for age checks.
"""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Use this instead of datetime.utcnow() to ensure timezone awareness.

    Returns:
        datetime: Current time in UTC with timezone info

    Example:
        >>> now = utc_now()
        >>> now.tzinfo  # timezone.utc
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Current calendar date in UTC."""
    return utc_now().date()


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure datetime is UTC timezone-aware.

    Converts naive datetime (assumed to be UTC) to timezone-aware UTC.
    If datetime is already timezone-aware, converts to UTC.

    Args:
        dt: Datetime object (naive or aware) or None

    Returns:
        datetime | None: UTC timezone-aware datetime or None

    Example:
        >>> naive_dt = datetime(2025, 12, 16, 11, 30)  # Naive
        >>> aware_dt = ensure_utc(naive_dt)
        >>> aware_dt.tzinfo  # timezone.utc
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC (SQLite drops tzinfo)
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def calculate_age(birth_date: date, today: date | None = None) -> int:
    """
    Full years elapsed between ``birth_date`` and ``today``.

    The birthday itself counts, so someone born on 2000-06-15 is 18 on
    2018-06-15. A 29 February birthday rolls over on 1 March in
    non-leap years.

    Example:
        >>> calculate_age(date(2000, 6, 15), date(2018, 6, 14))
        17
    """
    today = today or utc_today()
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def years_before(day: date, years: int) -> date:
    """
    The same calendar day ``years`` earlier (29 Feb maps to 28 Feb).

    ``calculate_age(b, today) >= n`` holds exactly when
    ``b <= years_before(today, n)``.
    """
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)
