# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Main CLI entry point for circleci-ng."""

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from circleci_ng import __version__
from circleci_ng.commands.config import config_app
from circleci_ng.commands.context import context_app
from circleci_ng.commands.info import info_app
from circleci_ng.commands.orb import namespace_app, orb_app
from circleci_ng.commands.pipeline import pipeline_app
from circleci_ng.commands.policy import policy_app
from circleci_ng.commands.project import project_app
from circleci_ng.commands.schedule import schedule_app
from circleci_ng.commands.setup import setup
from circleci_ng.commands.trigger import trigger_app
from circleci_ng.commands.update import update_app
from circleci_ng.core.settings import Settings, UpdateCheck
from circleci_ng.core.update import automatic_update_check
from circleci_ng.utils.cli_utils import err_console

app = typer.Typer(
    name="circleci",
    help="Use CircleCI from the command line",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()

# Add subcommand groups
app.command("setup")(setup)
app.add_typer(info_app, name="info", help="Check information associated with your user account")
app.add_typer(context_app, name="context", help="For securing and sharing environment variables across projects")
app.add_typer(project_app, name="project", help="Operate on projects")
app.add_typer(pipeline_app, name="pipeline", help="Operate on pipelines")
app.add_typer(trigger_app, name="trigger", help="Operate on pipeline triggers")
app.add_typer(schedule_app, name="schedule", help="Operate on scheduled pipelines")
app.add_typer(orb_app, name="orb", help="Operate on orbs")
app.add_typer(namespace_app, name="namespace", help="Operate on orb namespaces")
app.add_typer(config_app, name="config", help="Operate on build config files")
app.add_typer(policy_app, name="policy", help="Manage security policies")
app.add_typer(update_app, name="update", help="Update the tool to the latest version")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None, "--version", "-v", help="Show version information"
    ),
    verbose: Optional[bool] = typer.Option(
        False, "--verbose", "-V", help="Enable verbose logging"
    ),
    host: Optional[str] = typer.Option(None, "--host", help="URL to your CircleCI host"),
    token: Optional[str] = typer.Option(None, "--token", help="Your API token"),
    debug: bool = typer.Option(False, "--debug", help="Log API requests and responses"),
    skip_update_check: bool = typer.Option(
        False,
        "--skip-update-check",
        envvar="CIRCLECI_CLI_SKIP_UPDATE_CHECK",
        help="Skip the check for updates",
    ),
) -> None:
    """Use CircleCI from the command line."""
    if verbose or debug:
        logging.basicConfig(level=logging.DEBUG)

    if version:
        table = Table(title="circleci-ng Information")
        table.add_column("Property", style="cyan", no_wrap=True)
        table.add_column("Value", style="magenta")

        table.add_row("Version", __version__)
        table.add_row("Purpose", "Command line client for the CircleCI REST and GraphQL APIs")
        table.add_row("License", "Apache-2.0")

        console.print(table)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit()

    if ctx.obj is None:
        ctx.obj = Settings.load()
    settings: Settings = ctx.obj
    if host:
        settings.host = host
    if token:
        settings.token = token
    settings.debug = settings.debug or debug
    settings.skip_update_check = settings.skip_update_check or skip_update_check

    if ctx.invoked_subcommand != "update" and not settings.skip_update_check:
        update = automatic_update_check(settings, UpdateCheck.load())
        if update is not None:
            err_console.print(
                f"[yellow]A new release of circleci-ng is available: {update.current} -> {update.latest}[/yellow]"
            )
            if update.html_url:
                err_console.print(update.html_url)


if __name__ == "__main__":
    app()
