"""Functional core - pure business logic with no I/O."""

from .tasks import Task, Status, Priority, toggle_completion, sort_by_position
from .classify import DateBucket, classify, classify_due, classify_completion, is_timed
from .stats import (
    StatsSnapshot,
    TaskSummary,
    TagStats,
    CompletedCounts,
    compute_stats,
    summarize,
    tag_stats,
    completed_counts,
)
from .views import FilterSpec, GroupedTasks, View, Notification, filter_and_group, filter_tasks, notifications

__all__ = [
    # Tasks
    "Task",
    "Status",
    "Priority",
    "toggle_completion",
    "sort_by_position",
    # Classification
    "DateBucket",
    "classify",
    "classify_due",
    "classify_completion",
    "is_timed",
    # Stats
    "StatsSnapshot",
    "TaskSummary",
    "TagStats",
    "compute_stats",
    "summarize",
    "tag_stats",
    "CompletedCounts",
    "completed_counts",
    # Views
    "FilterSpec",
    "GroupedTasks",
    "View",
    "filter_and_group",
    "filter_tasks",
    "Notification",
    "notifications",
]
