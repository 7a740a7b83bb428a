"""JSON file task storage adapter."""

import json
import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from taskflow.core.stats import TaskSummary, summarize
from taskflow.core.tasks import Task, toggle_completion

logger = logging.getLogger(__name__)


class JsonFileTaskRepository:
    """
    Tasks exported to a JSON file.

    Implements TaskRepository protocol. Accepts either a bare list of task
    records or the API's {"tasks": [...]} envelope.
    """

    def __init__(self, path: Path | str, now: Callable[[], datetime] | None = None):
        self.path = Path(path).expanduser()
        self._now = now or datetime.now

    def _read_records(self) -> list[dict]:
        """Raises ValueError when the file is not a task export."""
        try:
            data = json.loads(self.path.read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"{self.path} is not valid JSON: {e}") from e
        if isinstance(data, dict):
            data = data.get("tasks", [])
        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise ValueError(f"{self.path} does not hold a list of task records")
        return data

    def fetch_all(self) -> list[Task]:
        """Load all tasks from the file."""
        records = self._read_records()
        logger.debug(f"Loaded {len(records)} tasks from {self.path}")
        return [Task.from_api(r) for r in records]

    def fetch_summary(self) -> TaskSummary:
        """Compute counts locally."""
        return summarize(self.fetch_all(), self._now())

    def toggle(self, task_id: str) -> Task:
        """Flip completion and write the file back."""
        tasks = self.fetch_all()
        for i, task in enumerate(tasks):
            if task.id == task_id:
                tasks[i] = toggle_completion(task, self._now())
                self.path.write_text(json.dumps([t.to_api() for t in tasks], indent=2))
                return tasks[i]
        raise KeyError(f"Task not found: {task_id}")
