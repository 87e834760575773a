"""
Datetime utilities.

Provides timezone-aware datetime functions and analytics period windows.
"""

from datetime import UTC, date, datetime, time, timedelta

from referral_ledger.models.enums import PeriodType


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def utc_today() -> date:
    """Current UTC date."""
    return utc_now().date()


def month_start(moment: datetime) -> datetime:
    """First instant of the UTC calendar month containing ``moment``."""
    return datetime(moment.year, moment.month, 1, tzinfo=UTC)


def period_window(period_date: date, period_type: str) -> tuple[datetime, datetime]:
    """
    Resolve the [start, end) UTC window of an analytics period.

    Args:
        period_date: Any date inside the period
        period_type: daily, weekly (ISO week, Monday start) or monthly

    Returns:
        Tuple of (start, end) timezone-aware datetimes
    """
    kind = PeriodType(period_type)

    if kind is PeriodType.DAILY:
        first = period_date
        last = period_date + timedelta(days=1)
    elif kind is PeriodType.WEEKLY:
        first = period_date - timedelta(days=period_date.weekday())
        last = first + timedelta(days=7)
    else:
        first = period_date.replace(day=1)
        if first.month == 12:
            last = first.replace(year=first.year + 1, month=1)
        else:
            last = first.replace(month=first.month + 1)

    return (
        datetime.combine(first, time.min, tzinfo=UTC),
        datetime.combine(last, time.min, tzinfo=UTC),
    )
