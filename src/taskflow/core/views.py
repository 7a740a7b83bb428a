"""Filtering and grouping of tasks for display - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum

from .classify import (
    COMPLETION_BUCKETS,
    UPCOMING_DAYS,
    DateBucket,
    classify,
    classify_due,
    completed_within,
    is_timed,
    local_date,
    parse_period,
    to_local,
)
from .tasks import Task, sort_by_position

# Buckets a due date can fall into
DUE_BUCKETS = (DateBucket.OVERDUE, DateBucket.TODAY, DateBucket.THIS_WEEK, DateBucket.FUTURE)

# Query-string shorthands for due-date filters
BUCKET_ALIASES = {
    "week": {DateBucket.TODAY, DateBucket.THIS_WEEK},
}

# Timed tasks due within this window are flagged as imminent
IMMINENT_WINDOW = timedelta(hours=2)


class View(Enum):
    """Screens that group tasks differently."""

    TODAY = "today"
    COMPLETED = "completed"
    INBOX = "inbox"
    PROJECT = "project"
    UPCOMING = "upcoming"


def _clean(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    if not value or value.lower() == "all":
        return None
    return value


@dataclass
class FilterSpec:
    """
    Active narrowing predicates. Every set option must match (logical AND).

    Values are the raw strings a view or query string supplies; a value that
    names no real status, priority or bucket matches nothing.

    date_bucket narrows by due date whatever the status, except that
    "overdue" only keeps unfinished tasks. completed_period narrows by
    completion time to the current day, week or month.
    """

    status: str | None = None
    priority: str | None = None
    project_id: str | None = None
    tag: str | None = None
    date_bucket: str | None = None
    search_text: str | None = None
    completed_period: str | None = None

    @classmethod
    def from_params(cls, params: dict) -> "FilterSpec":
        """Build from REST query names. Empty strings and "all" mean no filter."""
        return cls(
            status=_clean(params.get("status")),
            priority=_clean(params.get("priority")),
            project_id=_clean(params.get("projectId")),
            tag=_clean(params.get("tag")),
            date_bucket=_clean(params.get("dueDate")),
            search_text=_clean(params.get("search")),
            completed_period=_clean(params.get("period")),
        )

    def wanted_buckets(self) -> set[DateBucket]:
        if self.date_bucket is None:
            return set()
        alias = BUCKET_ALIASES.get(self.date_bucket.lower())
        if alias is not None:
            return alias
        bucket = DateBucket.parse(self.date_bucket)
        return {bucket} if bucket in DUE_BUCKETS else set()

    def _matches_due(self, task: Task, now: datetime) -> bool:
        due = classify_due(task.due_date, now)
        if due not in self.wanted_buckets():
            return False
        return not (due == DateBucket.OVERDUE and task.is_completed)

    def _matches_period(self, task: Task, now: datetime) -> bool:
        period = parse_period(self.completed_period)
        if period is None or not task.is_completed:
            return False
        return completed_within(task.completed_at, period, now)

    def matches(self, task: Task, now: datetime) -> bool:
        if self.status is not None and task.status.value != self.status:
            return False
        if self.priority is not None and task.priority.value != self.priority:
            return False
        if self.project_id is not None and task.project_id != self.project_id:
            return False
        if self.tag is not None and not task.has_tag(self.tag):
            return False
        if self.search_text is not None and not task.matches_text(self.search_text):
            return False
        if self.date_bucket is not None and not self._matches_due(task, now):
            return False
        if self.completed_period is not None and not self._matches_period(task, now):
            return False
        return True


@dataclass
class DayGroup:
    """Tasks due on one calendar day, split by whether they have a time."""

    day: date
    all_day: list[Task] = field(default_factory=list)
    timed: list[Task] = field(default_factory=list)

    @property
    def tasks(self) -> list[Task]:
        return self.all_day + self.timed


@dataclass
class GroupedTasks:
    """Filtered tasks partitioned into named groups for one view."""

    view: View
    groups: dict[str, list[Task]]
    days: list[DayGroup] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(len(g) for g in self.groups.values())

    def all_tasks(self) -> list[Task]:
        return [t for g in self.groups.values() for t in g]


def filter_tasks(tasks: list[Task], filters: FilterSpec, now: datetime) -> list[Task]:
    """Keep tasks matching every active filter. Pure function - no I/O."""
    return [t for t in tasks if filters.matches(t, now)]


def group_by_status(tasks: list[Task]) -> dict[str, list[Task]]:
    return {
        "pending": sort_by_position([t for t in tasks if not t.is_completed]),
        "completed": sort_by_position([t for t in tasks if t.is_completed]),
    }


def is_today_relevant(task: Task, now: datetime) -> bool:
    """Due today (any status), or overdue and still pending."""
    due = classify_due(task.due_date, now)
    if due == DateBucket.TODAY:
        return True
    return due == DateBucket.OVERDUE and not task.is_completed


def group_today(tasks: list[Task], now: datetime) -> dict[str, list[Task]]:
    """Overdue / pending / completed, over today-relevant tasks only."""
    groups: dict[str, list[Task]] = {"overdue": [], "pending": [], "completed": []}
    for task in tasks:
        if not is_today_relevant(task, now):
            continue
        if task.is_completed:
            groups["completed"].append(task)
        elif classify(task, now) == DateBucket.OVERDUE:
            groups["overdue"].append(task)
        else:
            groups["pending"].append(task)
    return {name: sort_by_position(members) for name, members in groups.items()}


def group_completed(tasks: list[Task], now: datetime) -> dict[str, list[Task]]:
    """Completed tasks by when they were completed."""
    groups: dict[str, list[Task]] = {bucket.value: [] for bucket in COMPLETION_BUCKETS}
    for task in tasks:
        if task.is_completed:
            groups[classify(task, now).value].append(task)
    return {name: sort_by_position(members) for name, members in groups.items()}


def _time_of_day(task: Task, now: datetime):
    return to_local(task.due_date, now).time()


def group_upcoming(tasks: list[Task], now: datetime, days: int = UPCOMING_DAYS) -> list[DayGroup]:
    """
    One group per calendar day for the window starting today.

    Each day splits into all-day tasks (due at midnight) and timed tasks,
    the latter ordered by time of day.
    """
    today = now.date()
    by_day = {today + timedelta(days=i): DayGroup(day=today + timedelta(days=i)) for i in range(days)}

    for task in tasks:
        if task.due_date is None:
            continue
        group = by_day.get(local_date(task.due_date, now))
        if group is None:
            continue
        if is_timed(task.due_date, now):
            group.timed.append(task)
        else:
            group.all_day.append(task)

    for group in by_day.values():
        group.all_day = sort_by_position(group.all_day)
        group.timed = sorted(sort_by_position(group.timed), key=lambda t: _time_of_day(t, now))
    return list(by_day.values())


def filter_and_group(
    tasks: list[Task],
    filters: FilterSpec,
    now: datetime,
    view: View = View.INBOX,
) -> GroupedTasks:
    """
    Filter tasks and partition them into the groups a view displays.

    Pure function - no I/O. Empty input yields every group, empty.
    """
    filtered = filter_tasks(tasks, filters, now)

    if view == View.TODAY:
        return GroupedTasks(view=view, groups=group_today(filtered, now))
    if view == View.COMPLETED:
        return GroupedTasks(view=view, groups=group_completed(filtered, now))
    if view == View.UPCOMING:
        days = group_upcoming(filtered, now)
        return GroupedTasks(
            view=view,
            groups={d.day.isoformat(): d.tasks for d in days},
            days=days,
        )
    return GroupedTasks(view=view, groups=group_by_status(filtered))


class NotificationKind(Enum):
    OVERDUE = "overdue"
    UPCOMING = "upcoming"


@dataclass
class Notification:
    """An alert about a pending task due today."""

    kind: NotificationKind
    task: Task

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "task": self.task.to_api()}


def notifications(tasks: list[Task], now: datetime) -> list[Notification]:
    """
    Alerts for unfinished tasks with a time of day due today.

    A task whose time has passed is overdue; one due within the next two
    hours is upcoming. All-day tasks are never flagged. Ordered by due time.
    """
    current = to_local(now, now)
    due_today = [
        t
        for t in sort_by_position(tasks)
        if not t.is_completed
        and classify_due(t.due_date, now) == DateBucket.TODAY
        and is_timed(t.due_date, now)
    ]

    alerts: list[Notification] = []
    for task in sorted(due_today, key=lambda t: to_local(t.due_date, now)):
        remaining = to_local(task.due_date, now) - current
        if remaining < timedelta(0):
            alerts.append(Notification(NotificationKind.OVERDUE, task))
        elif remaining < IMMINENT_WINDOW:
            alerts.append(Notification(NotificationKind.UPCOMING, task))
    return alerts
