# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Settings and client plumbing for the circleci-ng commands."""

import logging

import typer
from rich.console import Console

from circleci_ng.core.errors import ConfigurationError
from circleci_ng.core.graphql import GraphQLClient
from circleci_ng.core.rest import RestClient, set_command_str
from circleci_ng.core.settings import Settings

logger = logging.getLogger(__name__)
console = Console()
err_console = Console(stderr=True)

OUTPUT_FORMAT_HELP = "Output format (table, json, json-pretty, yaml, tsv)"

TOKEN_MISSING_MESSAGE = (
    "please set a token with 'circleci setup'\n"
    "You can create a new personal API token here:\n"
    "https://circleci.com/account/api"
)


def get_settings(ctx: typer.Context, require_token: bool = True) -> Settings:
    """Return the settings of the invocation, loading them if no parent did.

    Also records the command path sent with every API request.
    """
    set_command_str(ctx.command_path)
    if ctx.obj is None:
        ctx.obj = Settings.load()
    settings: Settings = ctx.obj
    if require_token and not settings.token:
        raise ConfigurationError(TOKEN_MISSING_MESSAGE)
    return settings


def rest_client(ctx: typer.Context) -> RestClient:
    return RestClient.from_settings(get_settings(ctx))


def graphql_client(ctx: typer.Context, require_token: bool = True) -> GraphQLClient:
    return GraphQLClient.from_settings(get_settings(ctx, require_token=require_token))


def fail(error: Exception) -> None:
    """Print an error the way every command reports failures and exit 1."""
    logger.debug(f"Command failed: {error!r}")
    console.print(f"[red]Error: {error}[/red]")
    raise typer.Exit(1)
