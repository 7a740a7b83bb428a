"""Tests for view filtering and grouping."""

from datetime import date, datetime, time, timedelta

import pytest

from taskflow.core.tasks import Priority, Status, Task
from taskflow.core.views import (
    FilterSpec,
    NotificationKind,
    View,
    filter_and_group,
    filter_tasks,
    notifications,
)


@pytest.fixture
def now():
    # Wednesday
    return datetime(2025, 1, 15, 12, 0)


@pytest.fixture
def sample_tasks(now):
    """Tasks covering every status and day-relative bucket."""
    today = now.date()
    return [
        Task(
            id="overdue",
            title="Renew passport",
            priority=Priority.URGENT,
            due_date=datetime.combine(today - timedelta(days=2), time(0, 0)),
            tags=["admin"],
            created_at=now - timedelta(days=10),
        ),
        Task(
            id="today-timed",
            title="Dentist appointment",
            priority=Priority.HIGH,
            due_date=datetime.combine(today, time(14, 30)),
            tags=["health"],
            project_id="home",
            created_at=now - timedelta(days=3),
        ),
        Task(
            id="today-done",
            title="Send invoice",
            status=Status.COMPLETED,
            due_date=datetime.combine(today, time(0, 0)),
            completed_at=now - timedelta(hours=2),
            project_id="work",
            tags=["admin"],
            created_at=now - timedelta(days=5),
        ),
        Task(
            id="week",
            title="Plan sprint",
            status=Status.IN_PROGRESS,
            description="Review the BACKLOG first",
            due_date=datetime.combine(today + timedelta(days=3), time(9, 0)),
            project_id="work",
            created_at=now - timedelta(days=1),
        ),
        Task(
            id="future",
            title="Book holiday",
            priority=Priority.LOW,
            due_date=datetime.combine(today + timedelta(days=30), time(0, 0)),
            created_at=now - timedelta(days=2),
        ),
        Task(
            id="someday",
            title="Learn piano",
            priority=Priority.LOW,
            created_at=now - timedelta(days=20),
        ),
        Task(
            id="done-last-month",
            title="File taxes",
            status=Status.COMPLETED,
            completed_at=datetime(2024, 12, 20, 10, 0),
            created_at=datetime(2024, 12, 1, 10, 0),
        ),
    ]


def ids(tasks: list[Task]) -> list[str]:
    return [t.id for t in tasks]


class TestFilterSpec:
    def test_no_filters_keeps_everything(self, sample_tasks, now):
        assert filter_tasks(sample_tasks, FilterSpec(), now) == sample_tasks

    def test_status(self, sample_tasks, now):
        result = filter_tasks(sample_tasks, FilterSpec(status="completed"), now)
        assert set(ids(result)) == {"today-done", "done-last-month"}

    def test_priority(self, sample_tasks, now):
        result = filter_tasks(sample_tasks, FilterSpec(priority="low"), now)
        assert set(ids(result)) == {"future", "someday"}

    def test_project(self, sample_tasks, now):
        result = filter_tasks(sample_tasks, FilterSpec(project_id="work"), now)
        assert set(ids(result)) == {"today-done", "week"}

    def test_tag(self, sample_tasks, now):
        result = filter_tasks(sample_tasks, FilterSpec(tag="admin"), now)
        assert set(ids(result)) == {"overdue", "today-done"}

    def test_search_title_and_description(self, sample_tasks, now):
        assert ids(filter_tasks(sample_tasks, FilterSpec(search_text="PASSPORT"), now)) == ["overdue"]
        assert ids(filter_tasks(sample_tasks, FilterSpec(search_text="backlog"), now)) == ["week"]

    def test_filters_combine_with_and(self, sample_tasks, now):
        result = filter_tasks(sample_tasks, FilterSpec(tag="admin", status="todo"), now)
        assert ids(result) == ["overdue"]

    def test_date_bucket(self, sample_tasks, now):
        overdue = filter_tasks(sample_tasks, FilterSpec(date_bucket="overdue"), now)
        assert ids(overdue) == ["overdue"]

    def test_date_bucket_camel_case(self, sample_tasks, now):
        result = filter_tasks(sample_tasks, FilterSpec(date_bucket="thisWeek"), now)
        assert ids(result) == ["week"]

    def test_week_alias_includes_today(self, sample_tasks, now):
        result = filter_tasks(sample_tasks, FilterSpec(date_bucket="week", status="todo"), now)
        assert set(ids(result)) == {"today-timed"}
        result = filter_tasks(sample_tasks, FilterSpec(date_bucket="week"), now)
        assert set(ids(result)) == {"today-timed", "today-done", "week"}

    @pytest.mark.parametrize(
        "filters",
        [
            FilterSpec(priority="critical"),
            FilterSpec(status="archived"),
            FilterSpec(date_bucket="someday"),
            FilterSpec(project_id="nope"),
        ],
    )
    def test_unknown_values_match_nothing(self, sample_tasks, now, filters):
        assert filter_tasks(sample_tasks, filters, now) == []

    def test_from_params(self):
        filters = FilterSpec.from_params(
            {"status": "all", "priority": "high", "projectId": "", "dueDate": "today", "search": " milk "}
        )
        assert filters == FilterSpec(priority="high", date_bucket="today", search_text="milk")

    def test_from_params_period(self):
        assert FilterSpec.from_params({"period": "week"}) == FilterSpec(completed_period="week")


class TestDueDateFilter:
    @pytest.fixture
    def completed_tasks(self, now):
        return [
            Task(id="no-due", title="No due date", status=Status.COMPLETED, completed_at=now),
            Task(
                id="due-today",
                title="Due today",
                status=Status.COMPLETED,
                due_date=datetime.combine(now.date(), time(0, 0)),
                completed_at=now - timedelta(days=1),
            ),
            Task(
                id="past-due",
                title="Past due",
                status=Status.COMPLETED,
                due_date=now - timedelta(days=3),
                completed_at=now - timedelta(days=1),
            ),
        ]

    def test_today_uses_due_date_for_completed_tasks(self, completed_tasks, now):
        result = filter_tasks(completed_tasks, FilterSpec.from_params({"dueDate": "today"}), now)
        assert ids(result) == ["due-today"]

    def test_week_uses_due_date_for_completed_tasks(self, completed_tasks, now):
        result = filter_tasks(completed_tasks, FilterSpec.from_params({"dueDate": "week"}), now)
        assert ids(result) == ["due-today"]

    def test_overdue_skips_completed_tasks(self, completed_tasks, now):
        assert filter_tasks(completed_tasks, FilterSpec(date_bucket="overdue"), now) == []

    @pytest.mark.parametrize("bucket", ["yesterday", "this_month", "older"])
    def test_completion_only_buckets_match_nothing(self, completed_tasks, sample_tasks, now, bucket):
        assert filter_tasks(completed_tasks + sample_tasks, FilterSpec(date_bucket=bucket), now) == []


class TestEmptyInput:
    @pytest.mark.parametrize("view", list(View))
    def test_every_group_empty(self, now, view):
        grouped = filter_and_group([], FilterSpec(), now, view)

        assert grouped.groups
        assert all(members == [] for members in grouped.groups.values())
        assert grouped.total == 0

    def test_group_names(self, now):
        assert list(filter_and_group([], FilterSpec(), now, View.TODAY).groups) == [
            "overdue",
            "pending",
            "completed",
        ]
        assert list(filter_and_group([], FilterSpec(), now, View.COMPLETED).groups) == [
            "today",
            "yesterday",
            "this_week",
            "this_month",
            "older",
        ]
        assert list(filter_and_group([], FilterSpec(), now, View.INBOX).groups) == ["pending", "completed"]
        assert len(filter_and_group([], FilterSpec(), now, View.UPCOMING).days) == 7


class TestStatusViews:
    def test_status_filter_partition(self, sample_tasks, now):
        grouped = filter_and_group(sample_tasks, FilterSpec(status="completed"), now)

        assert all(t.status == Status.COMPLETED for t in grouped.all_tasks())
        assert grouped.total == 2
        assert grouped.groups["pending"] == []

    def test_every_task_in_exactly_one_group(self, sample_tasks, now):
        grouped = filter_and_group(sample_tasks, FilterSpec(), now, View.INBOX)

        assert sorted(ids(grouped.all_tasks())) == sorted(ids(sample_tasks))
        assert grouped.total == len(sample_tasks)

    def test_project_view(self, sample_tasks, now):
        grouped = filter_and_group(sample_tasks, FilterSpec(project_id="work"), now, View.PROJECT)

        assert ids(grouped.groups["pending"]) == ["week"]
        assert ids(grouped.groups["completed"]) == ["today-done"]


class TestTodayView:
    def test_groups(self, sample_tasks, now):
        grouped = filter_and_group(sample_tasks, FilterSpec(), now, View.TODAY)

        assert ids(grouped.groups["overdue"]) == ["overdue"]
        assert ids(grouped.groups["pending"]) == ["today-timed"]
        assert ids(grouped.groups["completed"]) == ["today-done"]

    def test_excludes_tasks_not_relevant_today(self, sample_tasks, now):
        grouped = filter_and_group(sample_tasks, FilterSpec(), now, View.TODAY)
        assert not {"week", "future", "someday", "done-last-month"} & set(ids(grouped.all_tasks()))

    def test_partition_covers_today_relevant_tasks(self, now):
        tasks = [
            Task(id=str(i), title=f"T{i}", due_date=now - timedelta(days=i % 3), status=status)
            for i, status in enumerate([Status.TODO, Status.IN_PROGRESS, Status.TODO, Status.TODO])
        ]
        grouped = filter_and_group(tasks, FilterSpec(), now, View.TODAY)

        assert sorted(ids(grouped.all_tasks())) == sorted(ids(tasks))


class TestCompletedView:
    def test_groups_by_completion(self, sample_tasks, now):
        grouped = filter_and_group(sample_tasks, FilterSpec(), now, View.COMPLETED)

        assert ids(grouped.groups["today"]) == ["today-done"]
        assert ids(grouped.groups["older"]) == ["done-last-month"]
        assert grouped.total == 2

    def test_period_filter(self, sample_tasks, now):
        grouped = filter_and_group(
            sample_tasks, FilterSpec(status="completed", completed_period="month"), now, View.COMPLETED
        )
        assert ids(grouped.all_tasks()) == ["today-done"]

    def test_week_period_includes_today_and_yesterday(self, now):
        tasks = [
            Task(id="now", title="Now", status=Status.COMPLETED, completed_at=now),
            Task(id="yesterday", title="Yesterday", status=Status.COMPLETED, completed_at=now - timedelta(days=1)),
            Task(id="last-week", title="Last week", status=Status.COMPLETED, completed_at=datetime(2025, 1, 10, 9, 0)),
        ]
        grouped = filter_and_group(tasks, FilterSpec(status="completed", completed_period="week"), now, View.COMPLETED)

        assert set(ids(grouped.all_tasks())) == {"now", "yesterday"}
        assert ids(grouped.groups["today"]) == ["now"]
        assert ids(grouped.groups["yesterday"]) == ["yesterday"]

    def test_month_period_includes_current_week(self, now):
        tasks = [Task(id="now", title="Now", status=Status.COMPLETED, completed_at=now)]
        grouped = filter_and_group(tasks, FilterSpec(completed_period="this_month"), now, View.COMPLETED)

        assert ids(grouped.all_tasks()) == ["now"]

    def test_unknown_period_matches_nothing(self, sample_tasks, now):
        assert filter_tasks(sample_tasks, FilterSpec(completed_period="older"), now) == []


class TestUpcomingView:
    def test_seven_days_from_today(self, sample_tasks, now):
        grouped = filter_and_group(sample_tasks, FilterSpec(), now, View.UPCOMING)

        assert [d.day for d in grouped.days] == [date(2025, 1, 15) + timedelta(days=i) for i in range(7)]
        assert list(grouped.groups) == [d.day.isoformat() for d in grouped.days]

    def test_all_day_and_timed_split(self, sample_tasks, now):
        grouped = filter_and_group(sample_tasks, FilterSpec(), now, View.UPCOMING)
        today = grouped.days[0]

        assert ids(today.all_day) == ["today-done"]
        assert ids(today.timed) == ["today-timed"]
        assert ids(grouped.days[3].timed) == ["week"]

    def test_outside_window_excluded(self, sample_tasks, now):
        grouped = filter_and_group(sample_tasks, FilterSpec(), now, View.UPCOMING)
        assert not {"overdue", "future", "someday"} & set(ids(grouped.all_tasks()))

    def test_timed_sorted_by_time_of_day(self, now):
        day = now.date() + timedelta(days=1)
        tasks = [
            Task(id="late", title="Late", due_date=datetime.combine(day, time(18, 0)), position=0),
            Task(id="early", title="Early", due_date=datetime.combine(day, time(8, 15)), position=5),
            Task(id="noon", title="Noon", due_date=datetime.combine(day, time(12, 0)), position=1),
        ]
        grouped = filter_and_group(tasks, FilterSpec(), now, View.UPCOMING)

        assert ids(grouped.days[1].timed) == ["early", "noon", "late"]


class TestOrdering:
    def test_position_then_newest(self, now):
        tasks = [
            Task(id="p2", title="P2", position=2, created_at=now),
            Task(id="p1-old", title="P1 old", position=1, created_at=now - timedelta(days=3)),
            Task(id="p1-new", title="P1 new", position=1, created_at=now - timedelta(days=1)),
        ]
        grouped = filter_and_group(tasks, FilterSpec(), now, View.INBOX)

        assert ids(grouped.groups["pending"]) == ["p1-new", "p1-old", "p2"]


class TestNotifications:
    def test_overdue_and_imminent(self, now):
        today = now.date()
        tasks = [
            Task(id="later", title="Later", due_date=datetime.combine(today, time(15, 0))),
            Task(id="soon", title="Soon", due_date=datetime.combine(today, time(13, 30))),
            Task(id="missed", title="Missed", due_date=datetime.combine(today, time(9, 0))),
            Task(id="all-day", title="All day", due_date=datetime.combine(today, time(0, 0))),
            Task(
                id="done",
                title="Done",
                status=Status.COMPLETED,
                due_date=datetime.combine(today, time(11, 0)),
                completed_at=now,
            ),
            Task(id="yesterday", title="Yesterday", due_date=now - timedelta(days=1)),
        ]
        alerts = notifications(tasks, now)

        assert [(a.kind, a.task.id) for a in alerts] == [
            (NotificationKind.OVERDUE, "missed"),
            (NotificationKind.UPCOMING, "soon"),
        ]

    def test_in_progress_tasks_notify(self, now):
        task = Task(id="ip", title="Call", status=Status.IN_PROGRESS, due_date=now + timedelta(minutes=30))
        assert [a.kind for a in notifications([task], now)] == [NotificationKind.UPCOMING]

    def test_empty(self, now):
        assert notifications([], now) == []

    def test_to_dict(self, now):
        task = Task(id="x", title="Standup", due_date=now - timedelta(minutes=5))
        data = notifications([task], now)[0].to_dict()

        assert data["kind"] == "overdue"
        assert data["task"]["id"] == "x"
