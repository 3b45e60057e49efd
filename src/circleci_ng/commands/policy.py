# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Config policy commands."""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from circleci_ng.core.policy import DEFAULT_CONTEXT, PolicyClient
from circleci_ng.utils.cli_utils import console, fail, get_settings

policy_app = typer.Typer(
    name="policy",
    help="Manage security policies",
    no_args_is_help=True,
)

OWNER_ID_HELP = "The id of the organization owning the policies"
CONTEXT_HELP = "Policy context for decision"


def _client(ctx: typer.Context) -> PolicyClient:
    return PolicyClient.from_settings(get_settings(ctx))


def _print_json(value: Any) -> None:
    typer.echo(json.dumps(value, indent=2))


@policy_app.command("list")
def list_policies(
    ctx: typer.Context,
    owner_id: str = typer.Option(..., "--owner-id", help=OWNER_ID_HELP),
    active: Optional[bool] = typer.Option(None, "--active/--inactive", help="Only active or only inactive policies"),
) -> None:
    """List the policies of an organization."""
    try:
        typer.echo(_client(ctx).list_policies(owner_id, active))
    except Exception as e:
        fail(e)


@policy_app.command("fetch")
def fetch_policy(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Only fetch the named policy"),
    owner_id: str = typer.Option(..., "--owner-id", help=OWNER_ID_HELP),
    context: str = typer.Option(DEFAULT_CONTEXT, "--context", help=CONTEXT_HELP),
) -> None:
    """Fetch the policy bundle, or a single policy from it."""
    try:
        _print_json(_client(ctx).fetch_policy_bundle(owner_id, context, name))
    except Exception as e:
        fail(e)


@policy_app.command("settings")
def policy_settings(
    ctx: typer.Context,
    owner_id: str = typer.Option(..., "--owner-id", help=OWNER_ID_HELP),
    context: str = typer.Option(DEFAULT_CONTEXT, "--context", help=CONTEXT_HELP),
    enabled: Optional[bool] = typer.Option(
        None, "--enabled/--disabled", help="Enable or disable policy based decisions"
    ),
) -> None:
    """Show or change the decision settings of a policy context."""
    try:
        client = _client(ctx)
        if enabled is None:
            _print_json(client.get_settings(owner_id, context))
        else:
            _print_json(client.set_settings(owner_id, context, enabled))
    except Exception as e:
        fail(e)


@policy_app.command("logs")
def decision_logs(
    ctx: typer.Context,
    owner_id: str = typer.Option(..., "--owner-id", help=OWNER_ID_HELP),
    context: str = typer.Option(DEFAULT_CONTEXT, "--context", help=CONTEXT_HELP),
    after: Optional[str] = typer.Option(None, "--after", help="Only decisions made after this date"),
    before: Optional[str] = typer.Option(None, "--before", help="Only decisions made before this date"),
    branch: Optional[str] = typer.Option(None, "--branch", help="Only decisions on this branch"),
    project_id: Optional[str] = typer.Option(None, "--project-id", help="Only decisions for this project"),
    status: Optional[str] = typer.Option(None, "--status", help="Only decisions with this status"),
    out: Optional[Path] = typer.Option(None, "--out", help="Write the logs to this file instead of stdout"),
) -> None:
    """Get policy decision logs."""
    try:
        filters: Dict[str, Any] = {
            "after": after,
            "before": before,
            "branch": branch,
            "project_id": project_id,
            "status": status,
        }
        logs = _client(ctx).decision_logs(owner_id, context, {k: v for k, v in filters.items() if v})
        if out is None:
            _print_json(logs)
            return
        out.write_text(json.dumps(logs, indent=2))
        console.print(f"Wrote {len(logs)} decision logs to {out}")
    except Exception as e:
        fail(e)
