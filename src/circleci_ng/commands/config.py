# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Config commands backed by the server-side compiler."""

from typing import Optional

import typer

from circleci_ng.core.config_compile import CompileResult, ConfigCompiler, load_pipeline_parameters
from circleci_ng.core.errors import APIError
from circleci_ng.core.orbs import load_yaml
from circleci_ng.utils.cli_utils import console, fail, rest_client

config_app = typer.Typer(
    name="config",
    help="Operate on build config files",
    no_args_is_help=True,
)

DEFAULT_CONFIG_PATH = ".circleci/config.yml"

ORG_SLUG_HELP = "Organization slug (for example: github/example-org), used when a config depends on private orbs"
ORG_ID_HELP = "Organization id used when a config depends on private orbs belonging to that org"


def _compile(
    ctx: typer.Context,
    path: str,
    org_slug: Optional[str],
    org_id: Optional[str],
    pipeline_parameters: Optional[str],
) -> CompileResult:
    params = load_pipeline_parameters(pipeline_parameters) if pipeline_parameters else None
    result = ConfigCompiler(rest_client(ctx)).compile(
        load_yaml(path),
        org_slug=org_slug,
        owner_id=org_id,
        pipeline_parameters=params,
    )
    if result.errors:
        raise APIError("config compilation contains errors:\n" + "\n".join(f"\t- {e}" for e in result.errors))
    if not result.valid:
        raise APIError("config is invalid")
    return result


@config_app.command("validate")
def validate(
    ctx: typer.Context,
    path: str = typer.Argument(DEFAULT_CONFIG_PATH, help="Path to the config file, or - for stdin"),
    org_slug: Optional[str] = typer.Option(None, "--org-slug", help=ORG_SLUG_HELP),
    org_id: Optional[str] = typer.Option(None, "--org-id", help=ORG_ID_HELP),
    pipeline_parameters: Optional[str] = typer.Option(
        None, "--pipeline-parameters", help="YAML/JSON map of pipeline parameters, or a path to a file holding one"
    ),
) -> None:
    """Check that the config file is well formed."""
    try:
        _compile(ctx, path, org_slug, org_id, pipeline_parameters)
        console.print(f"Config file at {'config input' if path == '-' else path} is valid.")
    except Exception as e:
        fail(e)


@config_app.command("process")
def process(
    ctx: typer.Context,
    path: str = typer.Argument(DEFAULT_CONFIG_PATH, help="Path to the config file, or - for stdin"),
    org_slug: Optional[str] = typer.Option(None, "--org-slug", help=ORG_SLUG_HELP),
    org_id: Optional[str] = typer.Option(None, "--org-id", help=ORG_ID_HELP),
    pipeline_parameters: Optional[str] = typer.Option(
        None, "--pipeline-parameters", help="YAML/JSON map of pipeline parameters, or a path to a file holding one"
    ),
) -> None:
    """Validate config and display the expanded configuration."""
    try:
        result = _compile(ctx, path, org_slug, org_id, pipeline_parameters)
        typer.echo(result.output_yaml, nl=False)
    except Exception as e:
        fail(e)
