# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Scheduled pipeline commands."""

from typing import List, Optional

import typer

from circleci_ng.commands.pipeline import parse_parameters
from circleci_ng.core.errors import NotFoundError
from circleci_ng.core.output import format_and_output
from circleci_ng.core.schedules import DAYS_OF_WEEK, ScheduleRestClient, Timetable
from circleci_ng.core.slug import parse_project_slug
from circleci_ng.utils import prompt
from circleci_ng.utils.cli_utils import OUTPUT_FORMAT_HELP, console, fail, rest_client

schedule_app = typer.Typer(
    name="schedule",
    help="Operate on scheduled pipelines",
    no_args_is_help=True,
)

SCHEDULES_TABLE = {
    "title": "Schedules",
    "columns": [
        {"name": "ID", "field": "id", "style": "cyan", "no_wrap": True},
        {"name": "Name", "field": "name", "style": "green"},
        {"name": "Per Hour", "field": "timetable.per-hour"},
        {"name": "Hours", "field": "timetable.hours-of-day"},
        {"name": "Days", "field": "timetable.days-of-week"},
        {"name": "Actor", "field": "actor.login"},
    ],
}


def parse_hours(values: Optional[List[str]]) -> List[int]:
    """Accept hours given as repeated options or comma separated lists."""
    hours: List[int] = []
    for value in values or []:
        for item in value.split(","):
            item = item.strip()
            if not item:
                continue
            if not item.isdigit() or int(item) > 23:
                raise typer.BadParameter(f"invalid hour of day {item!r}, expected 0-23")
            hours.append(int(item))
    return hours


def parse_days(values: Optional[List[str]]) -> List[str]:
    days: List[str] = []
    for value in values or []:
        for item in value.split(","):
            day = item.strip().upper()
            if not day:
                continue
            if day not in DAYS_OF_WEEK:
                raise typer.BadParameter(f"invalid day of week {item!r}, expected one of {', '.join(DAYS_OF_WEEK)}")
            days.append(day)
    return days


@schedule_app.command("list")
def list_schedules(
    ctx: typer.Context,
    project_slug: str = typer.Argument(..., help="Project slug, <vcs>/<org>/<repo>"),
    output_format: str = typer.Option("table", "--format", "-f", help=OUTPUT_FORMAT_HELP),
) -> None:
    """List every schedule of a project."""
    try:
        slug = parse_project_slug(project_slug)
        schedules = ScheduleRestClient(rest_client(ctx)).schedules(slug.vcs, slug.org, slug.repo)
        format_and_output([s.to_dict() for s in schedules], output_format, SCHEDULES_TABLE)
    except Exception as e:
        fail(e)


@schedule_app.command("get")
def get_schedule(
    ctx: typer.Context,
    schedule: str = typer.Argument(..., help="Schedule ID, or name when --project is given"),
    project_slug: Optional[str] = typer.Option(None, "--project", help="Look the schedule up by name in this project"),
    output_format: str = typer.Option("yaml", "--format", "-f", help=OUTPUT_FORMAT_HELP),
) -> None:
    """Show a single schedule."""
    try:
        client = ScheduleRestClient(rest_client(ctx))
        if project_slug:
            slug = parse_project_slug(project_slug)
            found = client.schedule_by_name(slug.vcs, slug.org, slug.repo, schedule)
            if found is None:
                raise NotFoundError(f"no schedule named '{schedule}' in {slug}")
        else:
            found = client.schedule_by_id(schedule)
        record = found.to_dict()
        format_and_output([record] if output_format in ("table", "tsv") else record, output_format, SCHEDULES_TABLE)
    except Exception as e:
        fail(e)


@schedule_app.command("create")
def create_schedule(
    ctx: typer.Context,
    project_slug: str = typer.Argument(..., help="Project slug, <vcs>/<org>/<repo>"),
    name: Optional[str] = typer.Option(None, "--name", help="Name of the schedule"),
    description: str = typer.Option("", "--description", help="Description of the schedule"),
    per_hour: int = typer.Option(1, "--per-hour", min=1, max=60, help="How many times per hour to run"),
    hours_of_day: Optional[List[str]] = typer.Option(None, "--hours-of-day", help="Hours (0-23, UTC) to run, repeatable or comma separated"),
    days_of_week: Optional[List[str]] = typer.Option(None, "--days-of-week", help="Days to run (MON..SUN), repeatable or comma separated"),
    parameters: Optional[List[str]] = typer.Option(None, "--parameters", help="Pipeline parameters in key=value format (repeatable)"),
    use_scheduling_system: bool = typer.Option(
        False, "--use-scheduling-system", help="Attribute runs to the scheduling system instead of the current user"
    ),
    output_format: str = typer.Option("yaml", "--format", "-f", help=OUTPUT_FORMAT_HELP),
) -> None:
    """Create a schedule for a project."""
    try:
        timetable = Timetable(
            per_hour=per_hour,
            hours_of_day=parse_hours(hours_of_day),
            days_of_week=parse_days(days_of_week),
        )
        if not timetable.hours_of_day or not timetable.days_of_week:
            raise typer.BadParameter("a schedule needs at least one --hours-of-day and one --days-of-week")

        name = name or prompt.read_string("Enter a name for the schedule")
        slug = parse_project_slug(project_slug)
        created = ScheduleRestClient(rest_client(ctx)).create_schedule(
            slug.vcs,
            slug.org,
            slug.repo,
            name,
            description,
            use_scheduling_system,
            timetable,
            parse_parameters(parameters),
        )
        console.print(f"[green]Created schedule {created.name} ({created.id})[/green]")
        if output_format != "table":
            format_and_output(created.to_dict(), output_format)
    except typer.BadParameter:
        raise
    except Exception as e:
        fail(e)


@schedule_app.command("update")
def update_schedule(
    ctx: typer.Context,
    schedule_id: str = typer.Argument(..., help="Schedule ID"),
    name: str = typer.Option("", "--name", help="New name of the schedule"),
    description: str = typer.Option("", "--description", help="New description of the schedule"),
    per_hour: int = typer.Option(0, "--per-hour", min=0, max=60, help="How many times per hour to run"),
    hours_of_day: Optional[List[str]] = typer.Option(None, "--hours-of-day", help="Hours (0-23, UTC) to run"),
    days_of_week: Optional[List[str]] = typer.Option(None, "--days-of-week", help="Days to run (MON..SUN)"),
    parameters: Optional[List[str]] = typer.Option(None, "--parameters", help="Pipeline parameters in key=value format (repeatable)"),
    use_scheduling_system: bool = typer.Option(
        False, "--use-scheduling-system", help="Attribute runs to the scheduling system instead of the current user"
    ),
) -> None:
    """Update a schedule. Options left out keep their current value."""
    try:
        timetable = Timetable(
            per_hour=per_hour,
            hours_of_day=parse_hours(hours_of_day),
            days_of_week=parse_days(days_of_week),
        )
        updated = ScheduleRestClient(rest_client(ctx)).update_schedule(
            schedule_id,
            name=name,
            description=description,
            use_scheduling_system=use_scheduling_system,
            timetable=timetable,
            parameters=parse_parameters(parameters),
        )
        console.print(f"[green]Updated schedule {updated.name} ({updated.id})[/green]")
    except typer.BadParameter:
        raise
    except Exception as e:
        fail(e)


@schedule_app.command("delete")
def delete_schedule(
    ctx: typer.Context,
    schedule_id: str = typer.Argument(..., help="Schedule ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Delete without asking for confirmation."),
) -> None:
    """Delete a schedule."""
    try:
        if not force and not prompt.ask_confirm(f"Are you sure that you want to delete schedule {schedule_id}?"):
            console.print("[yellow]OK, cancelling[/yellow]")
            raise typer.Exit(1)
        ScheduleRestClient(rest_client(ctx)).delete_schedule(schedule_id)
        console.print(f"[green]Deleted schedule {schedule_id}[/green]")
    except typer.Exit:
        raise
    except Exception as e:
        fail(e)
