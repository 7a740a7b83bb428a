"""Taskflow CLI - task views and productivity stats."""

import json
import logging
import sys
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import click

from .adapters.json_file import JsonFileTaskRepository
from .adapters.rest_api import ApiError, AuthenticationError, RestTaskRepository
from .config import Config, load_config
from .core.classify import classify, is_timed, to_local
from .core.stats import completed_counts, compute_stats, summarize, tag_stats
from .core.tasks import Task
from .core.views import FilterSpec, GroupedTasks, View, filter_and_group, filter_tasks, notifications
from .ports.task_repo import TaskRepository

logger = logging.getLogger(__name__)

PRIORITY_MARKERS = {"low": "", "medium": "!", "high": "!!", "urgent": "!!!"}

GROUP_TITLES = {
    "overdue": "Overdue",
    "pending": "Pending",
    "completed": "Completed",
    "today": "Today",
    "yesterday": "Yesterday",
    "this_week": "This week",
    "this_month": "This month",
    "older": "Older",
}

# Failures a repository reports for unreachable or unreadable task sources
REPO_ERRORS = (AuthenticationError, ApiError, FileNotFoundError, ValueError)


class Context:
    """Per-invocation state shared by all commands."""

    def __init__(self, config: Config, tasks_file: str | None):
        self.config = config
        try:
            self.tz = ZoneInfo(config.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone {config.timezone!r}, using UTC")
            self.tz = timezone.utc
        self.repo: TaskRepository
        path = tasks_file or config.tasks_file
        if path:
            self.repo = JsonFileTaskRepository(path, now=self.now)
        else:
            self.repo = RestTaskRepository(config)

    def now(self) -> datetime:
        return datetime.now(self.tz)


pass_context = click.make_pass_decorator(Context)


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _load_tasks(ctx: Context) -> list[Task]:
    try:
        return ctx.repo.fetch_all()
    except REPO_ERRORS as e:
        _fail(str(e))


def _format_task(task: Task, now: datetime) -> str:
    marker = PRIORITY_MARKERS.get(task.priority.value, "")
    check = "x" if task.is_completed else " "
    due = ""
    if task.due_date:
        fmt = "%Y-%m-%d %H:%M" if is_timed(task.due_date, now) else "%Y-%m-%d"
        due = f" (due {to_local(task.due_date, now).strftime(fmt)})"
    tags = "".join(f" #{t}" for t in task.tags)
    return f"[{check}] {marker:3} {task.title}{due}{tags}"


def _show_grouped(grouped: GroupedTasks, now: datetime, as_json: bool, header: str | None = None) -> None:
    """Shared grouped-view display logic."""
    if as_json:
        click.echo(
            json.dumps(
                {name: [t.to_api() for t in members] for name, members in grouped.groups.items()},
                indent=2,
            )
        )
        return

    if header:
        click.echo(header)
        click.echo()

    if grouped.total == 0:
        click.echo("No tasks.")
        return

    if grouped.view == View.UPCOMING:
        for day in grouped.days:
            click.echo(f"### {day.day.strftime('%A, %B %d')}")
            if not day.tasks:
                click.echo("  -")
            for task in day.all_day:
                click.echo(f"  {'All day':8} {task.title}")
            for task in day.timed:
                click.echo(f"  {to_local(task.due_date, now).strftime('%H:%M'):8} {task.title}")
            click.echo()
        return

    for name, members in grouped.groups.items():
        if not members:
            continue
        click.echo(f"### {GROUP_TITLES.get(name, name)} ({len(members)})")
        for task in members:
            click.echo(f"  {_format_task(task, now)}")
        click.echo()


def _run_view(ctx: Context, view: View, filters: FilterSpec, as_json: bool) -> None:
    tasks = _load_tasks(ctx)
    now = ctx.now()
    _show_grouped(filter_and_group(tasks, filters, now, view), now, as_json)


@click.group()
@click.version_option()
@click.option("--file", "tasks_file", default=None, type=click.Path(dir_okay=False),
              help="Read tasks from a JSON export instead of the API")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(click_ctx, tasks_file: str | None, debug: bool):
    """Taskflow - task views and productivity stats."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )
    click_ctx.obj = Context(load_config(), tasks_file)


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_context
def stats(ctx: Context, as_json: bool):
    """Show completion rate, streak and completion history."""
    snapshot = compute_stats(_load_tasks(ctx), ctx.now())

    if as_json:
        click.echo(json.dumps(snapshot.to_dict(), indent=2))
        return

    click.echo(f"Completion rate: {snapshot.completion_rate}% "
               f"({snapshot.total_completed}/{snapshot.total_tasks})")
    click.echo(f"Current streak:  {snapshot.streak} day(s)")
    click.echo(f"Last 7 days:     {snapshot.completed_last_7_days} completed")
    click.echo(f"Last 30 days:    {snapshot.completed_last_30_days} completed")

    click.echo("\nThis week:")
    for point in snapshot.weekly:
        click.echo(f"  {point.label:4} {'#' * point.completed} {point.completed}")

    click.echo("\nBy month:")
    for point in snapshot.monthly:
        click.echo(f"  {point.start.strftime('%b %Y'):9} {point.completed}")

    if snapshot.priority_distribution:
        click.echo("\nPriorities:")
        for priority, share in snapshot.priority_distribution.items():
            latency = snapshot.average_latency.get(priority)
            avg = f", avg {latency.days}d to complete" if latency else ""
            click.echo(f"  {priority.label:7} {share.count} ({share.percentage}%){avg}")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--remote", is_flag=True, help="Ask the server instead of counting locally")
@pass_context
def summary(ctx: Context, as_json: bool, remote: bool):
    """Show total, completed, pending and overdue counts."""
    if remote:
        try:
            result = ctx.repo.fetch_summary()
        except REPO_ERRORS as e:
            _fail(str(e))
    else:
        result = summarize(_load_tasks(ctx), ctx.now())

    if as_json:
        click.echo(json.dumps(vars(result), indent=2))
        return

    click.echo(f"Total:     {result.total}")
    click.echo(f"Completed: {result.completed}")
    click.echo(f"Pending:   {result.pending}")
    click.echo(f"Overdue:   {result.overdue}")


@main.command()
@click.option("--status", default=None, help="todo, in_progress or completed")
@click.option("--priority", default=None, help="low, medium, high or urgent")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_context
def today(ctx: Context, status: str | None, priority: str | None, as_json: bool):
    """Tasks due today, plus anything overdue."""
    _run_view(ctx, View.TODAY, FilterSpec(status=status, priority=priority), as_json)


@main.command()
@click.option("--priority", default=None, help="low, medium, high or urgent")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_context
def upcoming(ctx: Context, priority: str | None, as_json: bool):
    """Tasks due over the next seven days."""
    _run_view(ctx, View.UPCOMING, FilterSpec(priority=priority), as_json)


@main.command()
@click.option("--period", type=click.Choice(["today", "week", "month"]), default=None,
              help="Only tasks completed today, this week or this month")
@click.option("--priority", default=None, help="low, medium, high or urgent")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_context
def completed(ctx: Context, period: str | None, priority: str | None, as_json: bool):
    """Completed tasks grouped by when they were done."""
    tasks = _load_tasks(ctx)
    now = ctx.now()
    filters = FilterSpec(status="completed", priority=priority, completed_period=period)
    counts = completed_counts(tasks, now)
    header = (f"{counts.total} completed: {counts.today} today, "
              f"{counts.week} this week, {counts.month} this month")
    _show_grouped(filter_and_group(tasks, filters, now, View.COMPLETED), now, as_json, header)


@main.command()
@click.option("--status", default=None, help="todo, in_progress or completed")
@click.option("--priority", default=None, help="low, medium, high or urgent")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_context
def inbox(ctx: Context, status: str | None, priority: str | None, as_json: bool):
    """All tasks, pending then completed."""
    _run_view(ctx, View.INBOX, FilterSpec(status=status, priority=priority), as_json)


@main.command()
@click.argument("project_id")
@click.option("--status", default=None, help="todo, in_progress or completed")
@click.option("--priority", default=None, help="low, medium, high or urgent")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_context
def project(ctx: Context, project_id: str, status: str | None, priority: str | None, as_json: bool):
    """Tasks in one project."""
    tasks = _load_tasks(ctx)
    now = ctx.now()
    counts = summarize(filter_tasks(tasks, FilterSpec(project_id=project_id), now), now)
    header = (f"{counts.total} tasks: {counts.completed} completed, {counts.pending} pending "
              f"({counts.completion_rate}% done)")
    filters = FilterSpec(status=status, priority=priority, project_id=project_id)
    _show_grouped(filter_and_group(tasks, filters, now, View.PROJECT), now, as_json, header)


@main.command("list")
@click.option("--status", default=None)
@click.option("--priority", default=None)
@click.option("--project", "project_id", default=None)
@click.option("--tag", default=None)
@click.option("--due", "due", default=None, help="Due date: overdue, today, week, this_week or future")
@click.option("--search", default=None, help="Case-insensitive text in title or description")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_context
def list_tasks(ctx: Context, status, priority, project_id, tag, due, search, as_json: bool):
    """List tasks matching arbitrary filters."""
    filters = FilterSpec(
        status=status,
        priority=priority,
        project_id=project_id,
        tag=tag,
        date_bucket=due,
        search_text=search,
    )
    _run_view(ctx, View.INBOX, filters, as_json)


@main.command()
@click.option("--tag", default=None, help="Show the tasks carrying this tag")
@click.option("--search", default=None, help="Case-insensitive text in title or description")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_context
def tags(ctx: Context, tag: str | None, search: str | None, as_json: bool):
    """Tag overview, or the tasks for one tag."""
    if tag or search:
        _run_view(ctx, View.INBOX, FilterSpec(tag=tag, search_text=search), as_json)
        return

    entries = tag_stats(_load_tasks(ctx))
    if as_json:
        click.echo(
            json.dumps(
                [{**vars(e), "completion_rate": e.completion_rate} for e in entries],
                indent=2,
            )
        )
        return

    if not entries:
        click.echo("No tags.")
        return

    for entry in entries:
        click.echo(f"#{entry.name:20} {entry.total:3} tasks  {entry.completion_rate:3}% done")


@main.command("notifications")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_context
def notifications_cmd(ctx: Context, as_json: bool):
    """Overdue and imminent tasks due today."""
    now = ctx.now()
    alerts = notifications(_load_tasks(ctx), now)

    if as_json:
        click.echo(json.dumps([a.to_dict() for a in alerts], indent=2))
        return

    if not alerts:
        click.echo("No notifications.")
        return

    for alert in alerts:
        due = to_local(alert.task.due_date, now).strftime("%H:%M")
        click.echo(f"{alert.kind.value.capitalize():9} {due}  {alert.task.title}")


@main.command()
@click.argument("task_id")
@pass_context
def toggle(ctx: Context, task_id: str):
    """Mark a task completed, or reopen it."""
    try:
        task = ctx.repo.toggle(task_id)
    except REPO_ERRORS as e:
        _fail(str(e))
    except KeyError:
        _fail(f"Task not found: {task_id}")

    bucket = classify(task, ctx.now())
    state = "completed" if task.is_completed else "reopened"
    where = f" [{bucket.value}]" if bucket else ""
    click.echo(f"✓ {task.title} {state}{where}")


if __name__ == "__main__":
    main()
