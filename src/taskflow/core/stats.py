"""Productivity statistics over a task collection - no I/O dependencies.

Everything here is recomputed from scratch on each call: the input is a
user-sized task list and ``now`` is passed in explicitly.
"""

import math
from collections import Counter, defaultdict
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta

from .classify import DateBucket, classify, completed_within, local_date
from .tasks import Priority, Task

DAILY_WINDOW = 30
WEEKLY_WINDOW = 7
MONTHLY_WINDOW = 12

# Upper bound for the backward streak walk (ten years of days)
MAX_STREAK_DAYS = 3650

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass
class SeriesPoint:
    """Completions within one period (a day or a month)."""

    start: date
    label: str
    completed: int


@dataclass
class PriorityLatency:
    """Average creation-to-completion time for one priority."""

    days: float
    completed: int
    total: int


@dataclass
class PriorityShare:
    """How many tasks carry a priority, and their share of all tasks."""

    count: int
    percentage: int


@dataclass
class StatsSnapshot:
    """Aggregate statistics over a task collection at a point in time."""

    completion_rate: int
    daily: list[SeriesPoint]
    weekly: list[SeriesPoint]
    monthly: list[SeriesPoint]
    streak: int
    average_latency: dict[Priority, PriorityLatency] = field(default_factory=dict)
    priority_distribution: dict[Priority, PriorityShare] = field(default_factory=dict)
    total_tasks: int = 0
    total_completed: int = 0
    completed_last_7_days: int = 0
    completed_last_30_days: int = 0

    def to_dict(self) -> dict:
        """JSON-ready representation, keyed by plain strings."""
        data = asdict(self)
        for key in ("daily", "weekly", "monthly"):
            for point in data[key]:
                point["start"] = point["start"].isoformat()
        data["average_latency"] = {p.value: asdict(v) for p, v in self.average_latency.items()}
        data["priority_distribution"] = {
            p.value: asdict(v) for p, v in self.priority_distribution.items()
        }
        return data


@dataclass
class TaskSummary:
    """Coarse counts for a dashboard header."""

    total: int
    completed: int
    pending: int
    overdue: int

    @property
    def completion_rate(self) -> int:
        return percentage(self.completed, self.total)


@dataclass
class TagStats:
    """Per-tag task counts."""

    name: str
    total: int = 0
    completed: int = 0
    pending: int = 0

    @property
    def completion_rate(self) -> int:
        return percentage(self.completed, self.total)


@dataclass
class CompletedCounts:
    """How many tasks were completed today, this week and this month."""

    total: int = 0
    today: int = 0
    week: int = 0
    month: int = 0


def percentage(part: int, whole: int) -> int:
    """Rounded percentage, 0 when whole is 0."""
    if whole == 0:
        return 0
    return _round_half_up(part / whole * 100)


def _round_half_up(value: float, digits: int = 0) -> float | int:
    # .5 always rounds up
    scale = 10**digits
    rounded = math.floor(value * scale + 0.5) / scale
    return int(rounded) if digits == 0 else rounded


def completion_days(tasks: list[Task], now: datetime) -> Counter:
    """Count completions per local calendar day."""
    days: Counter = Counter()
    for task in tasks:
        if task.is_completed and task.completed_at is not None:
            days[local_date(task.completed_at, now)] += 1
    return days


def daily_series(per_day: Counter, today: date, window: int, label_format: str) -> list[SeriesPoint]:
    """Zero-filled per-day counts for the window ending today, oldest first."""
    points = []
    for offset in range(window - 1, -1, -1):
        day = today - timedelta(days=offset)
        points.append(SeriesPoint(start=day, label=_label(day, label_format), completed=per_day[day]))
    return points


def _label(day: date, label_format: str) -> str:
    if label_format == "day":
        return f"{day.day} {day.strftime('%b')}"
    return day.strftime("%a")


def _shift_month(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def monthly_series(per_day: Counter, today: date, window: int = MONTHLY_WINDOW) -> list[SeriesPoint]:
    """
    Zero-filled per-month counts for the calendar months ending this month.

    Months run first-of-month to first-of-next-month.
    """
    per_month: Counter = Counter()
    for day, count in per_day.items():
        per_month[(day.year, day.month)] += count

    points = []
    for offset in range(window - 1, -1, -1):
        month_start = _shift_month(today, -offset)
        points.append(
            SeriesPoint(
                start=month_start,
                label=month_start.strftime("%b"),
                completed=per_month[(month_start.year, month_start.month)],
            )
        )
    return points


def current_streak(per_day: Counter, today: date, limit: int = MAX_STREAK_DAYS) -> int:
    """Consecutive days with a completion, walking back from today."""
    streak = 0
    day = today
    while streak < limit and per_day[day] > 0:
        streak += 1
        day -= timedelta(days=1)
    return streak


def average_latency(tasks: list[Task]) -> dict[Priority, PriorityLatency]:
    """
    Mean creation-to-completion time per priority, in days (1 decimal).

    Priorities without a completed task are left out. Completed tasks missing
    either timestamp do not contribute to the mean.
    """
    totals: Counter = Counter()
    durations: dict[Priority, list[float]] = defaultdict(list)
    completed: Counter = Counter()

    for task in tasks:
        totals[task.priority] += 1
        if not task.is_completed:
            continue
        completed[task.priority] += 1
        if task.created_at is None or task.completed_at is None:
            continue
        try:
            elapsed = (task.completed_at - task.created_at).total_seconds()
        except TypeError:
            # naive vs aware pair
            continue
        durations[task.priority].append(elapsed / SECONDS_PER_DAY)

    result = {}
    for priority in Priority:
        samples = durations.get(priority)
        if not samples:
            continue
        result[priority] = PriorityLatency(
            days=_round_half_up(sum(samples) / len(samples), digits=1),
            completed=completed[priority],
            total=totals[priority],
        )
    return result


def priority_distribution(tasks: list[Task]) -> dict[Priority, PriorityShare]:
    """Count and share of every priority over all tasks. Shares may not sum to 100."""
    if not tasks:
        return {}
    counts = Counter(t.priority for t in tasks)
    return {p: PriorityShare(count=counts[p], percentage=percentage(counts[p], len(tasks))) for p in Priority}


def compute_stats(tasks: list[Task], now: datetime) -> StatsSnapshot:
    """
    Compute a full statistics snapshot.

    Pure function - no I/O. Empty input gives zero rates, a zero streak and
    zero-filled series of full length.
    """
    today = now.date()
    per_day = completion_days(tasks, now)
    total_completed = sum(1 for t in tasks if t.is_completed)

    daily = daily_series(per_day, today, DAILY_WINDOW, "day")
    weekly = daily_series(per_day, today, WEEKLY_WINDOW, "weekday")

    return StatsSnapshot(
        completion_rate=percentage(total_completed, len(tasks)),
        daily=daily,
        weekly=weekly,
        monthly=monthly_series(per_day, today),
        streak=current_streak(per_day, today),
        average_latency=average_latency(tasks),
        priority_distribution=priority_distribution(tasks),
        total_tasks=len(tasks),
        total_completed=total_completed,
        completed_last_7_days=sum(p.completed for p in weekly),
        completed_last_30_days=sum(p.completed for p in daily),
    )


def summarize(tasks: list[Task], now: datetime) -> TaskSummary:
    """Total/completed/pending/overdue counts, overdue as the classifier sees it."""
    completed = sum(1 for t in tasks if t.is_completed)
    overdue = sum(1 for t in tasks if classify(t, now) == DateBucket.OVERDUE)
    return TaskSummary(
        total=len(tasks),
        completed=completed,
        pending=len(tasks) - completed,
        overdue=overdue,
    )


def tag_stats(tasks: list[Task]) -> list[TagStats]:
    """Per-tag counts in first-seen order."""
    by_tag: dict[str, TagStats] = {}
    for task in tasks:
        for tag in dict.fromkeys(task.tags):
            entry = by_tag.setdefault(tag, TagStats(name=tag))
            entry.total += 1
            if task.is_completed:
                entry.completed += 1
            else:
                entry.pending += 1
    return list(by_tag.values())


def completed_counts(tasks: list[Task], now: datetime) -> CompletedCounts:
    """Completed-task totals for the current day, week and month (nested)."""
    done = [t for t in tasks if t.is_completed]
    return CompletedCounts(
        total=len(done),
        today=sum(1 for t in done if completed_within(t.completed_at, DateBucket.TODAY, now)),
        week=sum(1 for t in done if completed_within(t.completed_at, DateBucket.THIS_WEEK, now)),
        month=sum(1 for t in done if completed_within(t.completed_at, DateBucket.THIS_MONTH, now)),
    )
