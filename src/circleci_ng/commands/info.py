# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Account information commands."""

import typer

from circleci_ng.core.info import InfoClient
from circleci_ng.core.output import format_and_output
from circleci_ng.utils.cli_utils import OUTPUT_FORMAT_HELP, fail, rest_client

info_app = typer.Typer(
    name="info",
    help="Check information associated with your user account",
    no_args_is_help=True,
)


@info_app.command("org")
def org(
    ctx: typer.Context,
    output_format: str = typer.Option("table", "--format", "-f", help=OUTPUT_FORMAT_HELP),
) -> None:
    """Show the organizations you have access to."""
    try:
        orgs = InfoClient(rest_client(ctx)).get_info()
        format_and_output(
            [o.to_dict() for o in orgs],
            output_format,
            {
                "title": "Organizations",
                "columns": [
                    {"name": "ID", "field": "id", "style": "cyan", "no_wrap": True},
                    {"name": "Name", "field": "name", "style": "green"},
                    {"name": "Slug", "field": "slug"},
                ],
            },
        )
    except Exception as e:
        fail(e)
