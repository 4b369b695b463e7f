from datetime import date, datetime, timedelta
import calendar
from utils.constants import DATE_FORMAT, MONTH_FORMAT


def today() -> date:
    return date.today()


class FixedClock:
    """Clock pinned to a single date. Call it like `today`."""

    def __init__(self, current: date | str):
        self.current = parse_date(current) if isinstance(current, str) else current

    def __call__(self) -> date:
        return self.current

    def set(self, current: date | str):
        self.current = parse_date(current) if isinstance(current, str) else current


def parse_date(date_str: str) -> date | None:
    """Parse a YYYY-MM-DD string, returning None on failure.

    Full timestamps ("2024-01-05T12:34:56Z") are accepted; only their
    date portion is kept.
    """
    if not date_str:
        return None
    if isinstance(date_str, datetime):
        return date_str.date()
    if isinstance(date_str, date):
        return date_str
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(date_str[:10], fmt).date()
        except ValueError:
            continue
    return None


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def format_month(d: date) -> str:
    return d.strftime(MONTH_FORMAT)


def normalize_date(value: str) -> str:
    """Return the YYYY-MM-DD form of a date or timestamp string."""
    d = parse_date(value)
    if d is None:
        raise ValueError(f"Invalid date: {value!r}")
    return format_date(d)


def same_day(stored: str, candidate: str) -> bool:
    """True when `stored` is `candidate` or a timestamp on that day.

    Older rows were saved as full ISO timestamps, so a prefix match is
    accepted in either direction.
    """
    if not stored or not candidate:
        return False
    return stored.startswith(candidate) or candidate.startswith(stored)


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    max_day = calendar.monthrange(year, month)[1]
    return min(day, max_day)


def add_months(d: date, n: int) -> date:
    """Add n months to date d, clamping day to month end."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = clamp_day_to_month(year, month, d.day)
    return d.replace(year=year, month=month, day=day)


def add_years(d: date, n: int) -> date:
    """Add n years, mapping Feb 29 to Feb 28 in non-leap years."""
    year = d.year + n
    return d.replace(year=year, day=clamp_day_to_month(year, d.month, d.day))


def advance(d: date, frequency: str, interval: int = 1) -> date:
    """Return the occurrence `interval` periods after `d`.

    Monthly and yearly steps clamp to the last day of a shorter month
    (Jan 31 + 1 month = Feb 29 in 2024, Feb 28 otherwise). Each step
    starts from the previous result, so a Jan 31 series continues on
    the clamped day (Feb 29, Mar 29, ...).
    """
    if interval < 1:
        raise ValueError("Interval must be at least 1.")
    if frequency == "daily":
        return d + timedelta(days=interval)
    if frequency == "weekly":
        return d + timedelta(days=7 * interval)
    if frequency == "monthly":
        return add_months(d, interval)
    if frequency == "yearly":
        return add_years(d, interval)
    raise ValueError(f"Invalid frequency: {frequency}")


def end_after_occurrences(start: date, frequency: str, occurrences: int, interval: int = 1) -> date:
    """Date of the last occurrence when a series stops after `occurrences` runs."""
    if occurrences < 1:
        raise ValueError("Occurrences must be at least 1.")
    current = start
    for _ in range(occurrences - 1):
        current = advance(current, frequency, interval)
    return current


def cycle_bounds(view_date: date, reset_day: int) -> tuple[date, date]:
    """Return (start, end) of the budget cycle containing view_date.

    The cycle starts on `reset_day` of view_date's month, or of the
    previous month when view_date falls before it. End is exclusive and
    exactly one month after start.
    """
    if not 1 <= reset_day <= 31:
        raise ValueError("Reset day must be between 1 and 31.")
    first = view_date.replace(day=1)
    if view_date.day < reset_day:
        first = add_months(first, -1)
    start = first.replace(day=clamp_day_to_month(first.year, first.month, reset_day))
    return start, add_months(start, 1)


def days_between(earlier: date, later: date) -> int:
    return (later - earlier).days


def shift_date(date_str: str, days: int) -> str:
    """Shift a stored date string by `days`, keeping YYYY-MM-DD form."""
    d = parse_date(date_str)
    if d is None:
        raise ValueError(f"Invalid date: {date_str!r}")
    return format_date(d + timedelta(days=days))


def iter_days(start: date, end: date):
    """Yield each day in [start, end)."""
    current = start
    while current < end:
        yield current
        current += timedelta(days=1)

