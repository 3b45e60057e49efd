# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Trigger commands."""

from typing import Optional

import typer

from circleci_ng.core.pipelines import PipelineRestClient
from circleci_ng.core.triggers import EVENT_PRESETS, CreateTriggerOptions, TriggerRestClient
from circleci_ng.utils import prompt
from circleci_ng.utils.cli_utils import console, fail, rest_client

trigger_app = typer.Typer(
    name="trigger",
    help="Operate on pipeline triggers",
    no_args_is_help=True,
)


@trigger_app.command("create")
def create_trigger(
    ctx: typer.Context,
    project_id: str = typer.Argument(..., help="Project ID"),
    pipeline_definition_id: Optional[str] = typer.Option(
        None, "--pipeline-definition-id", help="Pipeline definition ID you wish to create a trigger for"
    ),
    repo_id: Optional[str] = typer.Option(
        None, "--repo-id", help="Repository ID of the codebase you wish to create a trigger for"
    ),
    event_preset: Optional[str] = typer.Option(
        None, "--event-preset", help=f"Event preset filtering events for this trigger ({', '.join(EVENT_PRESETS)})"
    ),
    config_ref: str = typer.Option("", "--config-ref", help="Git ref used when fetching config"),
    checkout_ref: str = typer.Option("", "--checkout-ref", help="Git ref used when checking out code"),
) -> None:
    """Create a GitHub App trigger for a pipeline definition.

    Missing ids are prompted for. When the trigger repository differs from
    the definition's config or checkout repository, the matching ref is
    prompted for too.
    """
    try:
        definition_id = pipeline_definition_id or prompt.read_string(
            "Enter the pipeline definition ID you wish to create a trigger for"
        )
        repo_id = repo_id or prompt.read_string("Enter the ID of the triggering github repository")

        rest = rest_client(ctx)
        definition = PipelineRestClient(rest).get_pipeline_definition(project_id, definition_id)

        if not config_ref and definition.config_source_id != repo_id:
            config_ref = prompt.read_string(
                "Your pipeline repo and config source repo are different. "
                "Enter the branch or tag to use when fetching config for pipeline runs"
            )
        if not checkout_ref and definition.checkout_source_id != repo_id:
            checkout_ref = prompt.read_string(
                "Your pipeline repo and checkout source repo are different. "
                "Enter the branch or tag to use when checking out code for pipeline runs"
            )

        trigger = TriggerRestClient(rest).create_trigger(
            CreateTriggerOptions(
                project_id=project_id,
                pipeline_definition_id=definition_id,
                repo_id=repo_id,
                event_preset=event_preset or "",
                config_ref=config_ref,
                checkout_ref=checkout_ref,
            )
        )
        console.print(f"[green]Trigger created successfully[/green] ({trigger.id})")
    except Exception as e:
        fail(e)
