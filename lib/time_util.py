from datetime import date, datetime, timedelta
from typing import Iterator, Union

ONE_HOUR = timedelta(hours=1)


def parse_date(value: Union[str, date]) -> date:
    """Parse a provider ``YYYY-MM-DD`` date (datetimes are truncated to their date)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse an ISO-8601 timestamp; accepts a ``Z`` suffix and ``-0700`` style offsets."""
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def calculation_end_date(service_end_date: date, inclusive_of_end_date: bool) -> date:
    """Return the exclusive end boundary of a calculation window.

    Utilities disagree on whether ``service_end_date`` is the last billed day
    (inclusive) or the first day after the billing period (exclusive). The
    billing provider expects an exclusive boundary, so inclusive windows are
    pushed out by exactly one calendar day.
    """
    if inclusive_of_end_date:
        return service_end_date + timedelta(days=1)
    return service_end_date


def hourly_windows(start: datetime) -> Iterator[tuple[datetime, datetime]]:
    """Yield back-to-back one-hour ``(start, end)`` windows beginning at *start*."""
    cursor = start
    while True:
        end = cursor + ONE_HOUR
        yield cursor, end
        cursor = end
