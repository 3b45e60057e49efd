# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
Orb commands.

Orbs are reusable packages of CircleCI config. These commands browse the
registry, reserve names, publish and promote versions, and validate or
expand orb source through the GraphQL API.
"""

import json
import logging
from typing import Optional, Tuple

import typer
import yaml

from circleci_ng.core.errors import CircleCIError
from circleci_ng.core.filetree import pack
from circleci_ng.core.orbs import VERSION_SEGMENTS, OrbClient, split_orb_name
from circleci_ng.core.output import format_and_output
from circleci_ng.utils import prompt
from circleci_ng.utils.cli_utils import OUTPUT_FORMAT_HELP, console, fail, graphql_client

logger = logging.getLogger(__name__)

orb_app = typer.Typer(
    name="orb",
    help="Operate on orbs",
    no_args_is_help=True,
)

namespace_app = typer.Typer(
    name="namespace",
    help="Operate on orb namespaces (create, etc.)",
    no_args_is_help=True,
)

ORBS_TABLE = {
    "title": "Orbs",
    "columns": [
        {"name": "Name", "field": "name", "style": "cyan"},
        {"name": "Version", "field": "version", "style": "green"},
        {"name": "Commands", "field": "commands", "format": "count"},
        {"name": "Jobs", "field": "jobs", "format": "count"},
        {"name": "Executors", "field": "executors", "format": "count"},
    ],
}


def _orb_client(ctx: typer.Context, require_token: bool = True) -> OrbClient:
    return OrbClient(graphql_client(ctx, require_token=require_token))


def parse_orb_version_ref(ref: str) -> Tuple[str, str, str]:
    """Split ``<namespace>/<orb>@<version>`` into its three parts."""
    name, sep, version = ref.partition("@")
    if not sep or not version:
        raise CircleCIError(f"Invalid orb {ref}. Expected a namespace, orb and version in the form 'namespace/orb@version'")
    namespace, orb = split_orb_name(name)
    return namespace, orb, version


def _check_segment(segment: str) -> str:
    if segment not in VERSION_SEGMENTS:
        raise typer.BadParameter(f"expected one of {', '.join(VERSION_SEGMENTS)}, got {segment!r}")
    return segment


@orb_app.command("list")
def list_orbs(
    ctx: typer.Context,
    namespace: Optional[str] = typer.Argument(None, help="Only list the orbs of this namespace"),
    uncertified: bool = typer.Option(False, "--uncertified", "-u", help="Include uncertified orbs"),
    details: bool = typer.Option(False, "--details", "-d", help="Show the commands, jobs and executors of each orb"),
    output_format: str = typer.Option("table", "--format", "-f", help=OUTPUT_FORMAT_HELP),
) -> None:
    """List orbs in the registry."""
    try:
        client = _orb_client(ctx, require_token=False)
        collection = client.list_namespace_orbs(namespace) if namespace else client.list_orbs(uncertified)
        rows = [orb.to_dict() for orb in collection.orbs]

        if output_format != "table":
            format_and_output(rows, output_format, ORBS_TABLE)
            return

        if not rows:
            console.print(f"No orbs found in namespace {namespace}" if namespace else "No orbs found")
            return
        format_and_output(rows, output_format, ORBS_TABLE)
        if details:
            for orb in collection.orbs:
                console.print(f"\n[bold]{orb.name}[/bold] ({orb.highest_version})")
                if orb.description:
                    console.print(f"  {orb.description}")
                for label, names in (("Commands", orb.commands), ("Jobs", orb.jobs), ("Executors", orb.executors)):
                    if names:
                        console.print(f"  {label}: {', '.join(names)}")
        console.print("\nIn order to see more details about each orb, type: `circleci orb info orb-namespace/orb-name`")
    except Exception as e:
        fail(e)


@orb_app.command("source")
def orb_source(
    ctx: typer.Context,
    orb: str = typer.Argument(..., help="Orb reference, <namespace>/<orb>[@<version>]"),
) -> None:
    """Show the source of an orb."""
    try:
        typer.echo(_orb_client(ctx, require_token=False).orb_source(orb), nl=False)
    except Exception as e:
        fail(e)


@orb_app.command("info")
def orb_info(
    ctx: typer.Context,
    orb: str = typer.Argument(..., help="Orb reference, <namespace>/<orb>[@<version>]"),
) -> None:
    """Show the meta-data of an orb."""
    try:
        info = _orb_client(ctx, require_token=False).orb_info(orb)
        details = info.get("orb") or {}
        versions = details.get("versions") or []
        stats = details.get("statistics") or {}

        console.print(f"Latest: {details.get('name', orb)}@{info.get('version', '')}")
        console.print(f"Last-updated: {info.get('createdAt', '')}")
        console.print(f"Created: {details.get('createdAt', '')}")
        if versions:
            console.print(f"First-release: {versions[-1].get('version', '')} @ {versions[-1].get('createdAt', '')}")
        console.print(f"Total-revisions: {len(versions)}")
        console.print("")
        console.print(f"Total-commands: {len(_source_keys(info, 'commands'))}")
        console.print(f"Total-executors: {len(_source_keys(info, 'executors'))}")
        console.print(f"Total-jobs: {len(_source_keys(info, 'jobs'))}")
        console.print("")
        console.print("## Statistics (30 days):")
        console.print(f"Builds: {stats.get('last30DaysBuildCount', 0)}")
        console.print(f"Projects: {stats.get('last30DaysProjectCount', 0)}")
        console.print(f"Orgs: {stats.get('last30DaysOrganizationCount', 0)}")

        categories = details.get("categories") or []
        if categories:
            console.print("")
            console.print("## Categories:")
            for category in categories:
                console.print(category.get("name", ""))
    except Exception as e:
        fail(e)


def _source_keys(info: dict, section: str) -> list:
    try:
        source = yaml.safe_load(info.get("source") or "") or {}
    except yaml.YAMLError as e:
        logger.debug(f"Unparsable orb source: {e}")
        return []
    if not isinstance(source, dict):
        return []
    return list((source.get(section) or {}).keys())


@orb_app.command("create")
def create_orb(
    ctx: typer.Context,
    orb: str = typer.Argument(..., help="<namespace>/<orb>"),
    private: bool = typer.Option(False, "--private", help="Create a private orb"),
    no_prompt: bool = typer.Option(False, "--no-prompt", help="Disable prompt to bypass interactive UI"),
) -> None:
    """Create an orb in the specified namespace."""
    try:
        namespace, name = split_orb_name(orb)
        if not no_prompt:
            console.print(
                "If you change your mind about the name, you will have to create a new orb with the new name."
            )
            if not prompt.ask_confirm(f"Are you sure you wish to create the orb: `{namespace}/{name}`"):
                console.print("[yellow]Orb creation has been cancelled[/yellow]")
                return
        _orb_client(ctx).create_orb(namespace, name, private)
        console.print(f"[green]Orb `{namespace}/{name}` created.[/green]")
        console.print(
            "Please note that any versions you publish of this orb are world-readable unless you create it with the --private flag."
        )
        console.print(f"You can now register versions of `{namespace}/{name}` using `circleci orb publish`.")
    except Exception as e:
        fail(e)


@orb_app.command("publish")
def publish_orb(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path to the orb file, or - for stdin"),
    orb: str = typer.Argument(..., help="<namespace>/<orb>@<version>"),
) -> None:
    """Publish a version of an orb."""
    try:
        namespace, name, version = parse_orb_version_ref(orb)
        published = _orb_client(ctx).publish_orb(path, namespace, name, version)
        console.print(f"[green]Orb `{namespace}/{name}@{published}` was published.[/green]")
        console.print("Please note that versions of an orb are world-readable unless it was created with the --private flag.")
        if published.startswith("dev:"):
            console.print(f"Note that your dev label `{published}` can be overwritten by anyone in your organization.")
            console.print(f"Your dev orb will expire in 90 days unless a new version is published on the label `{published}`.")
    except Exception as e:
        fail(e)


@orb_app.command("increment")
def increment_orb(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path to the orb file, or - for stdin"),
    orb: str = typer.Argument(..., help="<namespace>/<orb>"),
    segment: str = typer.Argument(..., help="Version segment to bump: major, minor or patch"),
) -> None:
    """Increment a released version of an orb and publish it."""
    try:
        _check_segment(segment)
        namespace, name = split_orb_name(orb)
        published = _orb_client(ctx).increment_orb(path, namespace, name, segment)
        console.print(f"[green]Orb `{namespace}/{name}` has been incremented to `{namespace}/{name}@{published}`.[/green]")
    except typer.BadParameter:
        raise
    except Exception as e:
        fail(e)


@orb_app.command("promote")
def promote_orb(
    ctx: typer.Context,
    orb: str = typer.Argument(..., help="<namespace>/<orb>@dev:<label>"),
    segment: str = typer.Argument(..., help="Version segment to bump: major, minor or patch"),
) -> None:
    """Promote a development version of an orb to a semantic release."""
    try:
        _check_segment(segment)
        namespace, name, label = parse_orb_version_ref(orb)
        if not label.startswith("dev:"):
            raise CircleCIError(f"The version '{label}' must be a dev version (the string should begin `dev:`)")
        promoted = _orb_client(ctx).promote_orb(namespace, name, label, segment)
        console.print(
            f"[green]Orb `{namespace}/{name}` was promoted to `{namespace}/{name}@{promoted.get('version', '')}`.[/green]"
        )
    except typer.BadParameter:
        raise
    except Exception as e:
        fail(e)


@orb_app.command("unlist")
def unlist_orb(
    ctx: typer.Context,
    orb: str = typer.Argument(..., help="<namespace>/<orb>"),
    value: str = typer.Argument(..., help="true to unlist the orb, false to list it again"),
) -> None:
    """Disable or enable an orb's listing in the registry."""
    try:
        if value.lower() not in ("true", "false"):
            raise typer.BadParameter(f"expected \"true\" or \"false\", got \"{value}\"")
        namespace, name = split_orb_name(orb)
        listed = _orb_client(ctx).set_orb_listing(namespace, name, value.lower() == "false")
        state = "enabled" if listed else "disabled"
        console.print(f"The listing of orb `{namespace}/{name}` is now {state}.")
    except typer.BadParameter:
        raise
    except Exception as e:
        fail(e)


@orb_app.command("pack")
def pack_orb(
    path: str = typer.Argument(..., help="Directory holding the orb source tree"),
) -> None:
    """Pack the contents of an orb directory into a single YAML document."""
    try:
        typer.echo(pack(path), nl=False)
    except Exception as e:
        fail(e)


@orb_app.command("validate")
def validate_orb(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path to the orb file, or - for stdin"),
    org_id: str = typer.Option("", "--org-id", help="Organization id, for orbs that use private orbs"),
) -> None:
    """Validate an orb."""
    try:
        _orb_client(ctx, require_token=False).validate_orb(path, org_id)
        console.print(f"Orb at `{'Orb input' if path == '-' else path}` is valid.")
    except Exception as e:
        fail(e)


@orb_app.command("process")
def process_orb(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path to the orb file, or - for stdin"),
    org_id: str = typer.Option("", "--org-id", help="Organization id, for orbs that use private orbs"),
) -> None:
    """Validate an orb and print its expanded source."""
    try:
        typer.echo(_orb_client(ctx, require_token=False).process_orb(path, org_id), nl=False)
    except Exception as e:
        fail(e)


@orb_app.command("list-categories")
def list_categories(
    ctx: typer.Context,
    output_format: str = typer.Option("tsv", "--format", "-f", help=OUTPUT_FORMAT_HELP),
) -> None:
    """List every orb category."""
    try:
        categories = _orb_client(ctx, require_token=False).list_categories()
        rows = [{"id": c.id, "name": c.name} for c in categories]
        if output_format == "json":
            typer.echo(json.dumps(rows))
            return
        format_and_output(rows, output_format, {"title": "Categories", "columns": ["name"]})
    except Exception as e:
        fail(e)


def _change_category(ctx: typer.Context, orb: str, category: str, add: bool) -> None:
    namespace, name = split_orb_name(orb)
    _orb_client(ctx).add_or_remove_category(namespace, name, category, add)
    if add:
        console.print(f"[green]{namespace}/{name} is successfully added to the \"{category}\" category.[/green]")
    else:
        console.print(f"[green]{namespace}/{name} is successfully removed from the \"{category}\" category.[/green]")


@orb_app.command("add-to-category")
def add_to_category(
    ctx: typer.Context,
    orb: str = typer.Argument(..., help="<namespace>/<orb>"),
    category: str = typer.Argument(..., help="Category name"),
) -> None:
    """Add an orb to a category."""
    try:
        _change_category(ctx, orb, category, add=True)
    except Exception as e:
        fail(e)


@orb_app.command("remove-from-category")
def remove_from_category(
    ctx: typer.Context,
    orb: str = typer.Argument(..., help="<namespace>/<orb>"),
    category: str = typer.Argument(..., help="Category name"),
) -> None:
    """Remove an orb from a category."""
    try:
        _change_category(ctx, orb, category, add=False)
    except Exception as e:
        fail(e)


@namespace_app.command("create")
def create_namespace(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Namespace to reserve"),
    vcs_type: Optional[str] = typer.Argument(None, help="VCS type (github or bitbucket)"),
    org_name: Optional[str] = typer.Argument(None, help="Organization name"),
    org_id: Optional[str] = typer.Option(None, "--org-id", help="The id of your organization"),
    no_prompt: bool = typer.Option(False, "--no-prompt", help="Disable prompt to bypass interactive UI"),
) -> None:
    """Create an orb namespace owned by an organization."""
    try:
        if not org_id and not (vcs_type and org_name):
            raise typer.BadParameter("expected <vcs-type> <org-name>, or --org-id")

        owner = org_id or f"{vcs_type}/{org_name}"
        if not no_prompt:
            console.print(
                "You are creating a namespace called \"%s\".\n\n"
                "This is the only namespace permitted for your organization, %s.\n\n"
                "To change the namespace, you will have to contact CircleCI customer support." % (name, owner)
            )
            if not prompt.ask_confirm(f"Are you sure you wish to create the namespace: `{name}`"):
                console.print("[yellow]Namespace creation has been cancelled[/yellow]")
                return

        client = _orb_client(ctx)
        if org_id:
            client.create_namespace_with_owner_id(name, org_id)
        else:
            client.create_namespace(name, org_name, vcs_type)
        console.print(f"[green]Namespace `{name}` created.[/green]")
        console.print("Please note that any orbs you publish in this namespace are open orbs and are world-readable.")
    except typer.BadParameter:
        raise
    except Exception as e:
        fail(e)
