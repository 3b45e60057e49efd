# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Context commands: secure and share environment variables across projects."""

from typing import List, Optional

import typer

from circleci_ng.core.contexts import ORG_OWNER_TYPE, ContextClient, new_context_client
from circleci_ng.core.output import format_and_output
from circleci_ng.utils import prompt
from circleci_ng.utils.cli_utils import OUTPUT_FORMAT_HELP, console, fail, get_settings

context_app = typer.Typer(
    name="context",
    help="For securing and sharing environment variables across projects",
    no_args_is_help=True,
)

ORG_ID_HELP = "The id of your organization, used instead of <vcs-type> <org-name>"


def _client(ctx: typer.Context, vcs_type: Optional[str], org_name: Optional[str], org_id: Optional[str]) -> ContextClient:
    settings = get_settings(ctx)
    return new_context_client(settings, org_id=org_id, vcs_type=vcs_type, org_name=org_name)


@context_app.command("list")
def list_contexts(
    ctx: typer.Context,
    vcs_type: Optional[str] = typer.Argument(None, help="VCS type (github, bitbucket or circleci)"),
    org_name: Optional[str] = typer.Argument(None, help="Organization name"),
    org_id: Optional[str] = typer.Option(None, "--org-id", help=ORG_ID_HELP),
    output_format: str = typer.Option("table", "--format", "-f", help=OUTPUT_FORMAT_HELP),
) -> None:
    """List all contexts of an organization."""
    try:
        contexts = _client(ctx, vcs_type, org_name, org_id).contexts()
        rows = [
            {"provider": vcs_type or "", "organization": org_name or org_id or "", "name": c.name, "created_at": c.created_at, "id": c.id}
            for c in contexts
        ]
        format_and_output(
            rows,
            output_format,
            {
                "title": "Contexts",
                "columns": [
                    {"name": "Provider", "field": "provider"},
                    {"name": "Organization", "field": "organization"},
                    {"name": "Name", "field": "name", "style": "green"},
                    {"name": "Created At", "field": "created_at"},
                ],
            },
        )
    except Exception as e:
        fail(e)


@context_app.command("show")
def show_context(
    ctx: typer.Context,
    vcs_type: str = typer.Argument(..., help="VCS type"),
    org_name: str = typer.Argument(..., help="Organization name"),
    context_name: str = typer.Argument(..., help="Context name"),
    output_format: str = typer.Option("table", "--format", "-f", help=OUTPUT_FORMAT_HELP),
) -> None:
    """Show a context and the names of its environment variables."""
    try:
        client = _client(ctx, vcs_type, org_name, None)
        context = client.context_by_name(context_name)
        env_vars = client.environment_variables(context.id)

        if output_format == "table":
            console.print(f"Context: {context.name}")
        rows = [{"variable": v.variable, "value": "••••", "created_at": v.created_at} for v in env_vars]
        format_and_output(
            rows,
            output_format,
            {"columns": [{"name": "Environment Variable", "field": "variable"}, {"name": "Value", "field": "value"}]},
        )
    except Exception as e:
        fail(e)


@context_app.command("store-secret")
def store_secret(
    ctx: typer.Context,
    vcs_type: str = typer.Argument(..., help="VCS type"),
    org_name: str = typer.Argument(..., help="Organization name"),
    context_name: str = typer.Argument(..., help="Context name"),
    secret_name: str = typer.Argument(..., help="Environment variable name"),
) -> None:
    """Store a new environment variable in the named context. The value is read from stdin."""
    try:
        client = _client(ctx, vcs_type, org_name, None)
        context = client.context_by_name(context_name)
        value = prompt.read_secret("Enter secret value and press enter")
        client.create_environment_variable(context.id, secret_name, value)
        console.print(f"[green]Stored {secret_name} in context {context_name}[/green]")
    except Exception as e:
        fail(e)


@context_app.command("remove-secret")
def remove_secret(
    ctx: typer.Context,
    vcs_type: str = typer.Argument(..., help="VCS type"),
    org_name: str = typer.Argument(..., help="Organization name"),
    context_name: str = typer.Argument(..., help="Context name"),
    secret_name: str = typer.Argument(..., help="Environment variable name"),
) -> None:
    """Remove an environment variable from the named context."""
    try:
        client = _client(ctx, vcs_type, org_name, None)
        context = client.context_by_name(context_name)
        client.delete_environment_variable(context.id, secret_name)
        console.print(f"[green]Removed {secret_name} from context {context_name}[/green]")
    except Exception as e:
        fail(e)


@context_app.command("create")
def create_context(
    ctx: typer.Context,
    args: List[str] = typer.Argument(..., help="[<vcs-type> <org-name>] <context-name>"),
    org_id: Optional[str] = typer.Option(None, "--org-id", help="The id of your organization."),
    owner_type: str = typer.Option(ORG_OWNER_TYPE, "--owner-type", help="organization or account"),
) -> None:
    """Create a new context."""
    try:
        if org_id and len(args) == 1:
            client = _client(ctx, None, None, org_id)
        elif len(args) == 3:
            client = _client(ctx, args[0], args[1], None)
        else:
            raise typer.BadParameter("expected <context-name> with --org-id, or <vcs-type> <org-name> <context-name>")

        context = client.create_context(args[-1], owner_type)
        console.print(f"[green]Created context {context.name}[/green]")
    except typer.BadParameter:
        raise
    except Exception as e:
        fail(e)


@context_app.command("delete")
def delete_context(
    ctx: typer.Context,
    vcs_type: str = typer.Argument(..., help="VCS type"),
    org_name: str = typer.Argument(..., help="Organization name"),
    context_name: str = typer.Argument(..., help="Context name"),
    force: bool = typer.Option(False, "--force", "-f", help="Delete the context without asking for confirmation."),
) -> None:
    """Delete the named context."""
    try:
        client = _client(ctx, vcs_type, org_name, None)
        context = client.context_by_name(context_name)

        message = f"Are you sure that you want to delete this context: {vcs_type}/{org_name} {context.name}?"
        if not force and not prompt.ask_confirm(message):
            console.print("[yellow]OK, cancelling[/yellow]")
            raise typer.Exit(1)

        client.delete_context(context.id)
        console.print(f"[green]Deleted context {context.name}[/green]")
    except typer.Exit:
        raise
    except Exception as e:
        fail(e)
