"""REST API adapter - HTTP client for the task backend."""

import logging

import requests

from taskflow.config import Config, load_config
from taskflow.core.stats import TaskSummary
from taskflow.core.tasks import Task

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when the API rejects our credentials."""

    pass


class ApiError(Exception):
    """Raised when an API call fails."""

    pass


class RestTaskRepository:
    """
    Task backend REST adapter.

    Implements TaskRepository protocol. Pages through the task list and wraps
    transport errors. No business logic - just I/O.
    """

    def __init__(self, config: Config | None = None, session: requests.Session | None = None):
        self.config = config or load_config()
        self._session = session or requests.Session()

    def _request(self, method: str, endpoint: str, params: dict | None = None) -> dict:
        """Make authenticated API request."""
        if not self.config.api_token:
            raise AuthenticationError("No API token. Set API_TOKEN in taskflow.conf or TASKFLOW_API_TOKEN.")

        url = f"{self.config.api_base_url}{endpoint}"
        logger.debug(f"{method} {url} {params or ''}")
        try:
            resp = self._session.request(
                method,
                url,
                params=params,
                headers={"Authorization": f"Bearer {self.config.api_token}"},
                timeout=30,
            )
        except requests.RequestException as e:
            raise ApiError(f"Request to {endpoint} failed: {e}") from e

        if resp.status_code in (401, 403):
            raise AuthenticationError(f"API rejected credentials ({resp.status_code})")
        if resp.status_code >= 400:
            raise ApiError(f"{method} {endpoint} returned {resp.status_code}: {resp.text}")
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(f"{method} {endpoint} returned invalid JSON: {e}") from e

    def fetch_page(self, limit: int, offset: int, **filters: str) -> tuple[list[Task], int]:
        """Fetch one page of tasks. Returns (tasks, total)."""
        params = {"limit": limit, "offset": offset, **filters}
        data = self._request("GET", "/tasks", params=params)
        tasks = [Task.from_api(t) for t in data.get("tasks", [])]
        return tasks, int(data.get("total", len(tasks)))

    def fetch_all(self) -> list[Task]:
        """Fetch every task, following limit/offset pagination."""
        tasks: list[Task] = []
        offset = 0
        while True:
            page, total = self.fetch_page(self.config.page_size, offset)
            tasks.extend(page)
            offset += len(page)
            if not page or offset >= total:
                break
        logger.debug(f"Fetched {len(tasks)} tasks")
        return tasks

    def fetch_summary(self) -> TaskSummary:
        """Fetch the server-side count summary."""
        stats = self._request("GET", "/tasks/stats").get("stats", {})
        return TaskSummary(
            total=stats.get("total", 0),
            completed=stats.get("completed", 0),
            pending=stats.get("pending", 0),
            overdue=stats.get("overdue", 0),
        )

    def toggle(self, task_id: str) -> Task:
        """Flip completion on the server."""
        data = self._request("PATCH", f"/tasks/{task_id}/toggle")
        return Task.from_api(data["task"])
