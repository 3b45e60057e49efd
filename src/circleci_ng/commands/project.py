# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Project commands."""

from typing import Optional

import typer

from circleci_ng.core.output import format_and_output
from circleci_ng.core.projects import ProjectEnvironmentVariable, ProjectRestClient
from circleci_ng.core.slug import parse_project_slug
from circleci_ng.utils import prompt
from circleci_ng.utils.cli_utils import OUTPUT_FORMAT_HELP, console, fail, rest_client

project_app = typer.Typer(
    name="project",
    help="Operate on projects",
    no_args_is_help=True,
)

secret_app = typer.Typer(
    name="secret",
    help="Operate on environment variables of projects",
    no_args_is_help=True,
)
project_app.add_typer(secret_app, name="secret")

ENV_VAR_TABLE = {
    "columns": [
        {"name": "Environment Variable", "field": "name", "style": "cyan"},
        {"name": "Value", "field": "value"},
    ]
}


@secret_app.command("list")
def list_secrets(
    ctx: typer.Context,
    vcs_type: str = typer.Argument(..., help="VCS type"),
    org_name: str = typer.Argument(..., help="Organization name"),
    project_name: str = typer.Argument(..., help="Project name"),
    output_format: str = typer.Option("table", "--format", "-f", help=OUTPUT_FORMAT_HELP),
) -> None:
    """List all environment variables of a project."""
    try:
        client = ProjectRestClient(rest_client(ctx))
        env_vars = client.list_all_environment_variables(vcs_type, org_name, project_name)
        format_and_output([v.to_dict() for v in env_vars], output_format, ENV_VAR_TABLE)
    except Exception as e:
        fail(e)


@secret_app.command("create")
def create_secret(
    ctx: typer.Context,
    vcs_type: str = typer.Argument(..., help="VCS type"),
    org_name: str = typer.Argument(..., help="Organization name"),
    project_name: str = typer.Argument(..., help="Project name"),
    env_name: str = typer.Argument(..., help="Environment variable name"),
    env_value: Optional[str] = typer.Option(
        None, "--env-value", help="Value of the variable. Read from stdin when omitted."
    ),
    output_format: str = typer.Option("table", "--format", "-f", help=OUTPUT_FORMAT_HELP),
) -> None:
    """Create an environment variable of a project."""
    try:
        value = env_value
        if not value:
            value = prompt.read_secret("Enter an environment variable value and press enter")
            if not value:
                raise ValueError("the environment variable value must not be empty")
        value = value.strip("\r\n")

        client = ProjectRestClient(rest_client(ctx))
        existing = client.get_environment_variable(vcs_type, org_name, project_name, env_name)
        if existing is not None:
            message = (
                f"The environment variable name={existing.name} value={existing.value} "
                "already exists. Do you overwrite it?"
            )
            if not prompt.ask_confirm(message):
                console.print("Canceled")
                return

        created = client.create_environment_variable(
            vcs_type, org_name, project_name, ProjectEnvironmentVariable(name=env_name, value=value)
        )
        format_and_output([created.to_dict()], output_format, ENV_VAR_TABLE)
    except Exception as e:
        fail(e)


@project_app.command("create")
def create_project(
    ctx: typer.Context,
    vcs_type: str = typer.Argument(..., help="VCS type (github, bitbucket or circleci)"),
    org_slug: str = typer.Argument(..., help="Organization name or slug"),
    name: Optional[str] = typer.Option(None, "--name", help="Name of the project to create"),
) -> None:
    """Create a new project in an organization."""
    try:
        project_name = name or prompt.read_string("Enter a name for the project")
        info = ProjectRestClient(rest_client(ctx)).create_project(vcs_type, org_slug, project_name)
        console.print(f"Project '{project_name}' successfully created in organization '{info.org_name}'")
        console.print(f"You may view your new project at: https://app.circleci.com/projects/{info.slug}")
    except Exception as e:
        fail(e)


@project_app.command("id")
def project_id(
    ctx: typer.Context,
    project_slug: str = typer.Argument(..., help="Project slug, <vcs>/<org>/<repo>"),
) -> None:
    """Print the project ID (UUID) for a project slug."""
    try:
        slug = parse_project_slug(project_slug)
        info = ProjectRestClient(rest_client(ctx)).project_info(slug.vcs, slug.org, slug.repo)
        console.print(info.id)
    except Exception as e:
        fail(e)
