# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Remote config compilation through ``compile-config-with-defaults``."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from circleci_ng.core import git
from circleci_ng.core.errors import CircleCIError
from circleci_ng.core.info import InfoClient
from circleci_ng.core.rest import RestClient

logger = logging.getLogger(__name__)

COMPILE_PATH = "compile-config-with-defaults"


@dataclass
class CompileResult:
    valid: bool
    output_yaml: str = ""
    source_yaml: str = ""
    errors: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompileResult":
        return cls(
            valid=bool(data.get("valid")),
            output_yaml=data.get("output_yaml", "") or "",
            source_yaml=data.get("source_yaml", "") or "",
            errors=[str(e.get("message", "")) for e in data.get("errors") or []],
        )


def load_pipeline_parameters(src: str) -> Dict[str, Any]:
    """Load pipeline parameters from a file path, or from inline YAML.

    If ``src`` cannot be read as a file it is parsed as YAML directly.
    """
    try:
        raw = Path(src).read_text()
    except OSError:
        raw = src
    try:
        params = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise CircleCIError(f"invalid 'pipeline-parameters' provided: {e}") from e
    if params is None:
        return {}
    if not isinstance(params, dict):
        raise CircleCIError("invalid 'pipeline-parameters' provided: expected a mapping")
    return params


def _value_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ConfigCompiler:
    """Sends config to the server for compilation and validation."""

    def __init__(self, rest: RestClient, info: Optional[InfoClient] = None) -> None:
        self.rest = rest
        self.info = info or InfoClient(rest)

    def resolve_org_id(self, org_id: Optional[str] = None, org_slug: Optional[str] = None) -> str:
        """Return ``org_id`` if given, else look ``org_slug`` up in the user's collaborations.

        An unknown slug resolves to an empty id; private orb resolution will
        then not work, which is logged as a warning.
        """
        if org_id and org_id.strip():
            return org_id
        if not org_slug or not org_slug.strip():
            return ""
        resolved = self.info.org_id_from_slug(org_slug)
        if not resolved:
            logger.warning(
                f"Could not fetch a valid org-id for {org_slug} from the collaborations endpoint; "
                "private orb resolution will not work as intended"
            )
        return resolved

    def compile(
        self,
        config_yaml: str,
        org_slug: Optional[str] = None,
        owner_id: Optional[str] = None,
        pipeline_parameters: Optional[Dict[str, Any]] = None,
        pipeline_values: Optional[Dict[str, Any]] = None,
    ) -> CompileResult:
        """Compile a config document on the server.

        Args:
            config_yaml: Raw config YAML
            org_slug: Organization slug used to resolve the owner id
            owner_id: Organization id; wins over ``org_slug``
            pipeline_parameters: Values for the config's pipeline parameters
            pipeline_values: ``pipeline.*`` values; fabricated from git and the
                pipeline parameters if omitted
        """
        options: Dict[str, Any] = {}
        resolved = self.resolve_org_id(owner_id, org_slug)
        if resolved:
            options["owner_id"] = resolved
        if pipeline_parameters:
            options["pipeline_parameters"] = yaml.safe_dump(pipeline_parameters)
        values = pipeline_values if pipeline_values is not None else git.pipeline_values(pipeline_parameters)
        if values:
            options["pipeline_values"] = {k: _value_str(v) for k, v in values.items()}

        body = self.rest.post(COMPILE_PATH, {"config_yaml": config_yaml, "options": options})
        return CompileResult.from_dict(body or {})
