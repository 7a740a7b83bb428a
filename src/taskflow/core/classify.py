"""Day-relative classification of tasks - no I/O dependencies.

Every view and statistic buckets tasks through this module so a task lands
in the same bucket everywhere. All comparisons are by calendar day in the
frame of ``now``; weeks start on Monday.
"""

from datetime import date, datetime, timedelta
from enum import Enum

from .tasks import Task

UPCOMING_DAYS = 7


class DateBucket(Enum):
    """Day-relative slot a task falls into."""

    OVERDUE = "overdue"
    TODAY = "today"
    YESTERDAY = "yesterday"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"
    OLDER = "older"
    FUTURE = "future"

    @classmethod
    def parse(cls, value: str) -> "DateBucket | None":
        """Parse snake_case or camelCase bucket names. Unknown names give None."""
        value = value.strip()
        if value.isupper():
            value = value.lower()
        normalized = "".join("_" + c.lower() if c.isupper() else c for c in value)
        try:
            return cls(normalized.lstrip("_"))
        except ValueError:
            return None


COMPLETION_BUCKETS = (
    DateBucket.TODAY,
    DateBucket.YESTERDAY,
    DateBucket.THIS_WEEK,
    DateBucket.THIS_MONTH,
    DateBucket.OLDER,
)


def to_local(dt: datetime, now: datetime) -> datetime:
    """
    Express dt as naive wall-clock time in the frame of now.

    Aware timestamps are converted to now's zone (or the host zone when now
    is naive). Naive timestamps are taken as already local.
    """
    if dt.tzinfo is None:
        return dt
    if now.tzinfo is not None:
        return dt.astimezone(now.tzinfo).replace(tzinfo=None)
    return dt.astimezone().replace(tzinfo=None)


def local_date(dt: datetime, now: datetime) -> date:
    return to_local(dt, now).date()


def start_of_week(day: date) -> date:
    """Monday of the week containing day."""
    return day - timedelta(days=day.weekday())


def is_timed(dt: datetime | None, now: datetime | None = None) -> bool:
    """A timestamp at exactly midnight is an all-day date, anything else is timed."""
    if dt is None:
        return False
    if now is not None:
        dt = to_local(dt, now)
    return dt.hour != 0 or dt.minute != 0


def classify_due(due: datetime | None, now: datetime) -> DateBucket | None:
    """Bucket a due date relative to now's calendar day."""
    if due is None:
        return None

    today = now.date()
    due_day = local_date(due, now)
    if due_day < today:
        return DateBucket.OVERDUE
    if due_day == today:
        return DateBucket.TODAY
    if due_day < today + timedelta(days=UPCOMING_DAYS):
        return DateBucket.THIS_WEEK
    return DateBucket.FUTURE


def classify_completion(completed_at: datetime | None, now: datetime) -> DateBucket:
    """
    Bucket a completion time into today/yesterday/this_week/this_month/older.

    A missing completion time is treated as older.
    """
    if completed_at is None:
        return DateBucket.OLDER

    today = now.date()
    done_day = local_date(completed_at, now)
    if done_day == today:
        return DateBucket.TODAY
    if done_day == today - timedelta(days=1):
        return DateBucket.YESTERDAY
    if start_of_week(done_day) == start_of_week(today):
        return DateBucket.THIS_WEEK
    if (done_day.year, done_day.month) == (today.year, today.month):
        return DateBucket.THIS_MONTH
    return DateBucket.OLDER


def classify(task: Task, now: datetime) -> DateBucket | None:
    """
    Assign a task to its day-relative bucket.

    Completed tasks are bucketed by completion time and never come out as
    overdue or future. Pending tasks are bucketed by due date; without one
    they have no bucket (None).
    """
    if task.is_completed:
        return classify_completion(task.completed_at, now)
    return classify_due(task.due_date, now)


# Cumulative completion periods: "this week" includes today and yesterday
COMPLETION_PERIODS = (DateBucket.TODAY, DateBucket.THIS_WEEK, DateBucket.THIS_MONTH)
PERIOD_ALIASES = {"week": DateBucket.THIS_WEEK, "month": DateBucket.THIS_MONTH}


def parse_period(value: str) -> DateBucket | None:
    """Parse a completion period name (today, week, month or bucket spelling)."""
    bucket = PERIOD_ALIASES.get(value.strip().lower()) or DateBucket.parse(value)
    return bucket if bucket in COMPLETION_PERIODS else None


def completed_within(completed_at: datetime | None, period: DateBucket, now: datetime) -> bool:
    """
    Whether a completion time falls in the current day, week or month.

    Unlike classify_completion the periods nest, so anything completed today
    is also within this week and this month.
    """
    if completed_at is None:
        return False

    today = now.date()
    done_day = local_date(completed_at, now)
    if period == DateBucket.TODAY:
        return done_day == today
    if period == DateBucket.THIS_WEEK:
        return start_of_week(done_day) == start_of_week(today)
    if period == DateBucket.THIS_MONTH:
        return (done_day.year, done_day.month) == (today.year, today.month)
    return False
