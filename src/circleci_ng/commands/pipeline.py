# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Pipeline commands: definitions, runs and workflows."""

from pathlib import Path
from typing import Dict, List, Optional

import typer

from circleci_ng.core.output import format_and_output
from circleci_ng.core.pipelines import PipelineRestClient, PipelineRunOptions
from circleci_ng.core.projects import ProjectRestClient
from circleci_ng.core.slug import parse_project_slug
from circleci_ng.utils import prompt
from circleci_ng.utils.cli_utils import OUTPUT_FORMAT_HELP, console, fail, rest_client

pipeline_app = typer.Typer(
    name="pipeline",
    help="Operate on pipelines",
    no_args_is_help=True,
)

definitions_app = typer.Typer(name="definitions", help="Operate on pipeline definitions", no_args_is_help=True)
runs_app = typer.Typer(name="runs", help="Inspect pipeline runs", no_args_is_help=True)
pipeline_app.add_typer(definitions_app, name="definitions")
pipeline_app.add_typer(runs_app, name="runs")

DEFINITIONS_TABLE = {
    "title": "Pipeline Definitions",
    "columns": [
        {"name": "ID", "field": "id", "style": "cyan", "no_wrap": True},
        {"name": "Name", "field": "name", "style": "green"},
        {"name": "Config Source", "field": "config_source_repo"},
        {"name": "Config Path", "field": "config_file_path"},
        {"name": "Checkout Source", "field": "checkout_source_repo"},
    ],
}

PIPELINES_TABLE = {
    "title": "Pipelines",
    "columns": [
        {"name": "ID", "field": "id", "style": "cyan", "no_wrap": True},
        {"name": "Number", "field": "number"},
        {"name": "State", "field": "state"},
        {"name": "Branch", "field": "branch"},
        {"name": "Created At", "field": "created_at"},
    ],
}


def parse_parameters(values: Optional[List[str]]) -> Dict[str, str]:
    """Turn repeated ``key=value`` options into a dict."""
    params: Dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"invalid parameter {item!r}, expected key=value")
        params[key] = value
    return params


def _print_definitions(client: PipelineRestClient, project_id: str, output_format: str) -> None:
    definitions = client.list_pipeline_definitions(project_id)
    if not definitions and output_format == "table":
        console.print("No pipeline definitions found for this project.")
        return
    format_and_output([d.to_dict() for d in definitions], output_format, DEFINITIONS_TABLE)


@pipeline_app.command("list")
def list_definitions(
    ctx: typer.Context,
    project_id: str = typer.Argument(..., help="Project ID"),
    output_format: str = typer.Option("table", "--format", "-f", help=OUTPUT_FORMAT_HELP),
) -> None:
    """List pipeline definitions for a project."""
    try:
        _print_definitions(PipelineRestClient(rest_client(ctx)), project_id, output_format)
    except Exception as e:
        fail(e)


@definitions_app.command("list")
def list_definitions_by_slug(
    ctx: typer.Context,
    project_slug: str = typer.Argument(..., help="Project slug, <vcs>/<org>/<repo>"),
    output_format: str = typer.Option("table", "--format", "-f", help=OUTPUT_FORMAT_HELP),
) -> None:
    """List pipeline definitions for a project slug."""
    try:
        rest = rest_client(ctx)
        slug = parse_project_slug(project_slug)
        info = ProjectRestClient(rest).project_info(slug.vcs, slug.org, slug.repo)
        _print_definitions(PipelineRestClient(rest), info.id, output_format)
    except Exception as e:
        fail(e)


@pipeline_app.command("create")
def create_definition(
    ctx: typer.Context,
    project_id: str = typer.Argument(..., help="Project ID"),
    name: Optional[str] = typer.Option(None, "--name", help="Name of the pipeline to create"),
    description: str = typer.Option("", "--description", help="Description of the pipeline to create"),
    repo_id: Optional[str] = typer.Option(
        None, "--repo-id", help="Repository ID of the codebase you wish to build a pipeline for"
    ),
    file_path: Optional[str] = typer.Option(None, "--file-path", help="Path to the circleci config file"),
    config_repo_id: Optional[str] = typer.Option(
        None, "--config-repo-id", help="Repository ID of the CircleCI config file"
    ),
) -> None:
    """Create a new pipeline definition for a project."""
    try:
        name = name or prompt.read_string("Enter a name for the pipeline")
        repo_id = repo_id or prompt.read_string(
            "Enter the ID of your github repository"
        )
        if not config_repo_id:
            if prompt.ask_confirm("Does your CircleCI config file exist in a different repository?"):
                config_repo_id = prompt.read_string("Enter the ID of the GitHub repository where the CircleCI config file is located")
            else:
                config_repo_id = repo_id
        file_path = file_path or prompt.read_string(
            "Enter the path to your circleci config file", default=".circleci/config.yml"
        )

        definition = PipelineRestClient(rest_client(ctx)).create_pipeline_definition(
            project_id, name, description, repo_id, config_repo_id, file_path
        )
        console.print(
            f"Pipeline '{definition.name}' successfully created for repository '{definition.checkout_source_repo}'"
        )
        if config_repo_id != repo_id:
            console.print(
                f"Config is successfully referenced from '{definition.config_source_repo}' repository at path '{file_path}'"
            )
    except Exception as e:
        fail(e)


@pipeline_app.command("run")
def run_pipeline(
    ctx: typer.Context,
    org_slug: str = typer.Argument(..., help="Organization slug"),
    project_id: str = typer.Argument(..., help="Project ID"),
    pipeline_definition_id: Optional[str] = typer.Option(
        None, "--pipeline-definition-id", help="Pipeline definition ID to run"
    ),
    config_branch: str = typer.Option("", "--config-branch", help="Branch to use for config"),
    config_tag: str = typer.Option("", "--config-tag", help="Tag to use for config"),
    checkout_branch: str = typer.Option("", "--checkout-branch", help="Branch to checkout"),
    checkout_tag: str = typer.Option("", "--checkout-tag", help="Tag to checkout"),
    local_config_file: str = typer.Option("", "--local-config-file", help="Path to a local config file to use"),
    parameters: Optional[List[str]] = typer.Option(
        None, "--parameters", help="Pipeline parameters in key=value format (repeatable)"
    ),
    repo_config: bool = typer.Option(False, "--repo-config", help="Use repository config"),
) -> None:
    """Run a pipeline, optionally with a local config file."""
    try:
        definition_id = pipeline_definition_id or prompt.read_string(
            "Enter the pipeline definition ID for your pipeline"
        )

        use_local_config = False
        if bool(local_config_file) == repo_config:
            if prompt.ask_confirm("Do you want to test run with a local config file?"):
                local_config_file = prompt.read_string("Enter the path to your local config file")
                use_local_config = True
            else:
                local_config_file = ""
        elif local_config_file:
            use_local_config = True

        if use_local_config and local_config_file:
            config_branch = "cli-run"
            if not Path(local_config_file).read_text():
                raise ValueError(
                    "The supplied config file is empty. Please provide a valid CircleCI config file, and try again."
                )
        else:
            while not config_branch and not config_tag:
                config_branch = prompt.read_string(
                    "You must specify either a config branch or tag. Enter a branch (or leave blank to enter a tag)"
                )
                if not config_branch:
                    config_tag = prompt.read_string("Enter a config tag")

        while not checkout_branch and not checkout_tag:
            checkout_branch = prompt.read_string(
                "You must specify either a checkout branch or tag. Enter a branch (or leave blank to enter a tag)"
            )
            if not checkout_branch:
                checkout_tag = prompt.read_string("Enter a checkout tag")

        organization = org_slug[len("circleci/"):] if org_slug.startswith("circleci/") else org_slug
        options = PipelineRunOptions(
            organization=organization,
            project=project_id,
            pipeline_definition_id=definition_id,
            config_branch=config_branch,
            config_tag=config_tag,
            checkout_branch=checkout_branch,
            checkout_tag=checkout_tag,
            config_file_path=local_config_file if use_local_config else "",
            parameters=parse_parameters(parameters),
        )
        response = PipelineRestClient(rest_client(ctx)).run_pipeline(options)

        if response.created:
            console.print("[green]Pipeline created successfully[/green]")
            console.print(f"Pipeline ID: {response.id}")
            console.print(f"Pipeline Number: {response.number}")
            console.print(f"State: {response.state}")
            console.print(f"Created at: {response.created_at}")
            console.print(
                f"You may view your pipeline run on the pipelines page: https://app.circleci.com/pipelines/circleci/{organization}"
            )
        else:
            console.print(f"Message: {response.message}")
    except typer.BadParameter:
        raise
    except Exception as e:
        fail(e)


@pipeline_app.command("workflows")
def list_workflows(
    ctx: typer.Context,
    pipeline_id: str = typer.Argument(..., help="Pipeline ID"),
    output_format: str = typer.Option("tsv", "--format", "-f", help=OUTPUT_FORMAT_HELP),
) -> None:
    """List workflows for a pipeline."""
    try:
        workflows = PipelineRestClient(rest_client(ctx)).list_workflows(pipeline_id)
        format_and_output(
            [w.to_dict() for w in workflows],
            output_format,
            {"title": "Workflows", "columns": ["id", "name", "status"]},
        )
    except Exception as e:
        fail(e)


@runs_app.command("latest")
def latest_run(
    ctx: typer.Context,
    project_slug: str = typer.Argument(..., help="Project slug, <vcs>/<org>/<repo>"),
    branch: Optional[str] = typer.Option(None, "--branch", help="The name of a vcs branch."),
    output_format: str = typer.Option("tsv", "--format", "-f", help=OUTPUT_FORMAT_HELP),
) -> None:
    """Print the latest pipeline run for a project."""
    try:
        slug = parse_project_slug(project_slug)
        latest = PipelineRestClient(rest_client(ctx)).latest_pipeline(str(slug), branch)
        format_and_output([latest.to_dict()], output_format, {"columns": ["id", "number"]})
    except Exception as e:
        fail(e)


@runs_app.command("list")
def list_runs(
    ctx: typer.Context,
    project_slug: str = typer.Argument(..., help="Project slug, <vcs>/<org>/<repo>"),
    branch: Optional[str] = typer.Option(None, "--branch", help="The name of a vcs branch."),
    output_format: str = typer.Option("table", "--format", "-f", help=OUTPUT_FORMAT_HELP),
) -> None:
    """List every pipeline run of a project, newest first."""
    try:
        slug = parse_project_slug(project_slug)
        pipelines = PipelineRestClient(rest_client(ctx)).list_all_pipelines(str(slug), branch)
        format_and_output([p.to_dict() for p in pipelines], output_format, PIPELINES_TABLE)
    except Exception as e:
        fail(e)
