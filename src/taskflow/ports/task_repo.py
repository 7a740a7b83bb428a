"""Task repository interface."""

from typing import Protocol

from taskflow.core.stats import TaskSummary
from taskflow.core.tasks import Task


class TaskRepository(Protocol):
    """Interface for fetching and updating tasks from any backend."""

    def fetch_all(self) -> list[Task]:
        """Fetch all tasks."""
        ...

    def fetch_summary(self) -> TaskSummary:
        """Fetch total/completed/pending/overdue counts."""
        ...

    def toggle(self, task_id: str) -> Task:
        """Flip a task between completed and todo, returning the updated task."""
        ...
