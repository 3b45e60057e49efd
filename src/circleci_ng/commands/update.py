# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Self-update commands."""

import typer

from circleci_ng import __version__
from circleci_ng.core.update import check_for_updates
from circleci_ng.utils.cli_utils import console, fail, get_settings

update_app = typer.Typer(
    name="update",
    help="Update the tool to the latest version",
    no_args_is_help=True,
)


@update_app.command("check")
def check(ctx: typer.Context) -> None:
    """Check if there are any updates available."""
    try:
        info = check_for_updates(get_settings(ctx, require_token=False), current=__version__)
        if info.available:
            console.print(f"A new release is available ({info.latest}); you are running {info.current}.")
            if info.html_url:
                console.print(f"Release notes: {info.html_url}")
        else:
            console.print(f"Already up-to-date ({info.current}).")
    except Exception as e:
        fail(e)
