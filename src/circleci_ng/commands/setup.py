# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""The ``setup`` command: store a token and host in the settings file."""

from typing import Optional

import typer

from circleci_ng.core.settings import DEFAULT_HOST
from circleci_ng.utils import prompt
from circleci_ng.utils.cli_utils import console, fail, get_settings


def _mask(token: str) -> str:
    if len(token) <= 4:
        return "*" * len(token)
    return "*" * (len(token) - 4) + token[-4:]


def setup(
    ctx: typer.Context,
    token: Optional[str] = typer.Option(None, "--token", help="CircleCI API token"),
    host: Optional[str] = typer.Option(None, "--host", help="CircleCI host URL"),
    no_prompt: bool = typer.Option(
        False, "--no-prompt", help="Do not prompt; requires --token and --host"
    ),
) -> None:
    """Set up the CLI with your token and host."""
    try:
        settings = get_settings(ctx, require_token=False)

        if no_prompt:
            if not token or not host:
                raise typer.BadParameter("--no-prompt requires both --token and --host")
            settings.token = token
            settings.host = host
        else:
            if token is None:
                if settings.token and not prompt.ask_confirm(
                    f"A CircleCI token is already set ({_mask(settings.token)}). Do you want to change it?"
                ):
                    token = settings.token
                else:
                    token = prompt.read_secret("CircleCI API Token")
            settings.token = token

            settings.host = host or prompt.read_string("CircleCI Host", default=settings.host or DEFAULT_HOST)

        settings.write_to_disk()
        console.print(f"[green]Setup complete.[/green] Your configuration has been saved to {settings.file_used}.")
    except typer.BadParameter:
        raise
    except Exception as e:
        fail(e)
