"""Pure task domain logic - no I/O dependencies."""

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum

logger = logging.getLogger(__name__)


class Status(Enum):
    """Task workflow status."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Priority(Enum):
    """Task priority, lowest first."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def label(self) -> str:
        return self.value.capitalize()


def parse_timestamp(value) -> datetime | None:
    """
    Parse an ISO-8601 timestamp.

    Accepts strings (trailing "Z" allowed), datetimes and dates. A bare date
    becomes midnight. Anything else, or an unparseable string, yields None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        logger.warning(f"Ignoring non-string timestamp: {value!r}")
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.warning(f"Ignoring malformed timestamp: {value!r}")
        return None


def _format_timestamp(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


@dataclass
class Task:
    """A task record as supplied by the persistence layer."""

    id: str
    title: str
    status: Status = Status.TODO
    priority: Priority = Priority.MEDIUM
    due_date: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    tags: list[str] = field(default_factory=list)
    project_id: str | None = None
    description: str | None = None
    position: int = 0

    @property
    def is_completed(self) -> bool:
        return self.status == Status.COMPLETED

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def matches_text(self, text: str) -> bool:
        """Case-insensitive substring match on title or description."""
        needle = text.lower()
        if needle in self.title.lower():
            return True
        return bool(self.description) and needle in self.description.lower()

    @classmethod
    def from_api(cls, data: dict) -> "Task":
        """Create Task from a REST API task record."""
        status_raw = data.get("status") or Status.TODO.value
        try:
            status = Status(status_raw)
        except ValueError:
            logger.warning(f"Unknown status {status_raw!r} on task {data.get('id')}, using todo")
            status = Status.TODO

        priority_raw = data.get("priority") or Priority.MEDIUM.value
        try:
            priority = Priority(priority_raw)
        except ValueError:
            logger.warning(f"Unknown priority {priority_raw!r} on task {data.get('id')}, using medium")
            priority = Priority.MEDIUM

        try:
            position = int(data.get("position") or 0)
        except (TypeError, ValueError):
            position = 0

        tags = data.get("tags") or []
        if not isinstance(tags, (list, tuple)):
            logger.warning(f"Ignoring non-list tags {tags!r} on task {data.get('id')}")
            tags = []

        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            status=status,
            priority=priority,
            due_date=parse_timestamp(data.get("dueDate")),
            completed_at=parse_timestamp(data.get("completedAt")),
            created_at=parse_timestamp(data.get("createdAt")),
            tags=[str(t) for t in tags],
            project_id=data.get("projectId") or None,
            description=data.get("description"),
            position=position,
        )

    def to_api(self) -> dict:
        """Serialize back to the REST API record shape."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "dueDate": _format_timestamp(self.due_date),
            "completedAt": _format_timestamp(self.completed_at),
            "createdAt": _format_timestamp(self.created_at),
            "tags": list(self.tags),
            "projectId": self.project_id,
            "position": self.position,
        }


def toggle_completion(task: Task, now: datetime) -> Task:
    """
    Flip a task between completed and todo.

    Completing stamps completed_at with now; reopening clears it.
    Returns a new Task - the input is left untouched.
    """
    if task.is_completed:
        return replace(task, status=Status.TODO, completed_at=None)
    return replace(task, status=Status.COMPLETED, completed_at=now)


def sort_by_position(tasks: list[Task]) -> list[Task]:
    """
    Sort by explicit position (ascending), newest first on ties.

    Tasks without a creation time sort last within their position.
    """
    by_newest = sorted(
        tasks,
        key=lambda t: t.created_at.timestamp() if t.created_at else float("-inf"),
        reverse=True,
    )
    return sorted(by_newest, key=lambda t: t.position)
