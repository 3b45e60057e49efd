# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
Pipeline client for the v2 REST API.

Pipeline definitions, pipeline listing, workflows and pipeline runs.
"""

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from circleci_ng.core.errors import APIError, NotFoundError
from circleci_ng.core.pagination import collect_pages, split_page
from circleci_ng.core.rest import RestClient

logger = logging.getLogger(__name__)

GITHUB_APP_PROVIDER = "github_app"


@dataclass
class PipelineDefinition:
    """A pipeline definition and the repositories it builds from."""
    id: str
    name: str = ""
    description: str = ""
    created_at: str = ""
    config_source_id: str = ""
    config_source_repo: str = ""
    config_file_path: str = ""
    checkout_source_id: str = ""
    checkout_source_repo: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineDefinition":
        config_source = data.get("config_source") or {}
        checkout_source = data.get("checkout_source") or {}
        config_repo = config_source.get("repo") or {}
        checkout_repo = checkout_source.get("repo") or {}
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            description=data.get("description", "") or "",
            created_at=data.get("created_at", ""),
            config_source_id=config_repo.get("external_id", ""),
            config_source_repo=config_repo.get("full_name", ""),
            config_file_path=config_source.get("file_path", ""),
            checkout_source_id=checkout_repo.get("external_id", ""),
            checkout_source_repo=checkout_repo.get("full_name", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Pipeline:
    id: str
    number: int = 0
    state: str = ""
    created_at: str = ""
    branch: str = ""
    revision: str = ""
    trigger_type: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pipeline":
        vcs = data.get("vcs") or {}
        trigger = data.get("trigger") or {}
        return cls(
            id=data.get("id", ""),
            number=int(data.get("number") or 0),
            state=data.get("state", ""),
            created_at=data.get("created_at", ""),
            branch=vcs.get("branch", "") or "",
            revision=vcs.get("revision", "") or "",
            trigger_type=trigger.get("type", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Workflow:
    id: str
    name: str = ""
    status: str = ""
    created_at: str = ""
    stopped_at: str = ""
    pipeline_number: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Workflow":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            status=data.get("status", ""),
            created_at=data.get("created_at", ""),
            stopped_at=data.get("stopped_at", "") or "",
            pipeline_number=int(data.get("pipeline_number") or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PipelineRunOptions:
    """Inputs for triggering a pipeline run."""
    organization: str
    project: str
    pipeline_definition_id: str
    config_branch: str = ""
    config_tag: str = ""
    checkout_branch: str = ""
    checkout_tag: str = ""
    config_file_path: str = ""
    parameters: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PipelineRunResponse:
    """Either a message (nothing to run) or the created pipeline."""
    message: Optional[str] = None
    id: str = ""
    number: int = 0
    state: str = ""
    created_at: str = ""

    @property
    def created(self) -> bool:
        return self.message is None


def _ref(branch: str, tag: str) -> Dict[str, str]:
    ref = {}
    if branch:
        ref["branch"] = branch
    if tag:
        ref["tag"] = tag
    return ref


class PipelineRestClient:
    """Pipeline operations on the v2 REST API."""

    def __init__(self, rest: RestClient) -> None:
        self.rest = rest

    def create_pipeline_definition(
        self,
        project_id: str,
        name: str,
        description: str,
        repo_id: str,
        config_repo_id: str,
        file_path: str,
    ) -> PipelineDefinition:
        """Create a pipeline definition backed by GitHub App repositories.

        Args:
            project_id: Project UUID
            name: Definition name
            description: Free-form description
            repo_id: External id of the repository to check out
            config_repo_id: External id of the repository holding the config
            file_path: Path of the config file within ``config_repo_id``
        """
        payload = {
            "name": name,
            "description": description,
            "config_source": {
                "provider": GITHUB_APP_PROVIDER,
                "repo": {"external_id": config_repo_id},
                "file_path": file_path,
            },
            "checkout_source": {
                "provider": GITHUB_APP_PROVIDER,
                "repo": {"external_id": repo_id},
            },
        }
        body = self.rest.post(f"projects/{project_id}/pipeline-definitions", payload)
        return PipelineDefinition.from_dict(body or {})

    def get_pipeline_definition(self, project_id: str, definition_id: str) -> PipelineDefinition:
        body = self.rest.get(f"projects/{project_id}/pipeline-definitions/{definition_id}")
        return PipelineDefinition.from_dict(body or {})

    def _list_definitions_page(
        self, project_id: str, page_token: Optional[str]
    ) -> Tuple[List[PipelineDefinition], Optional[str]]:
        params = {"page-token": page_token} if page_token else None
        body = self.rest.get(f"projects/{project_id}/pipeline-definitions", params=params)
        items, next_token = split_page(body)
        return [PipelineDefinition.from_dict(item) for item in items], next_token

    def list_pipeline_definitions(self, project_id: str) -> List[PipelineDefinition]:
        return collect_pages(lambda token: self._list_definitions_page(project_id, token))

    def list_pipelines(
        self, project_slug: str, branch: Optional[str] = None, page_token: Optional[str] = None
    ) -> Tuple[List[Pipeline], Optional[str]]:
        """Fetch one page of a project's pipelines, newest first."""
        body = self.rest.get(
            f"project/{project_slug}/pipeline",
            params={"branch": branch, "page-token": page_token},
        )
        items, next_token = split_page(body)
        return [Pipeline.from_dict(item) for item in items], next_token

    def list_all_pipelines(self, project_slug: str, branch: Optional[str] = None) -> List[Pipeline]:
        return collect_pages(lambda token: self.list_pipelines(project_slug, branch, token))

    def latest_pipeline(self, project_slug: str, branch: Optional[str] = None) -> Pipeline:
        """Return the most recent pipeline of a project, optionally on a branch."""
        pipelines, _ = self.list_pipelines(project_slug, branch)
        if not pipelines:
            where = f" on branch {branch}" if branch else ""
            raise NotFoundError(f"no pipelines found for {project_slug}{where}")
        return pipelines[0]

    def _list_workflows_page(
        self, pipeline_id: str, page_token: Optional[str]
    ) -> Tuple[List[Workflow], Optional[str]]:
        params = {"page-token": page_token} if page_token else None
        items, next_token = split_page(self.rest.get(f"pipeline/{pipeline_id}/workflow", params=params))
        return [Workflow.from_dict(item) for item in items], next_token

    def list_workflows(self, pipeline_id: str) -> List[Workflow]:
        return collect_pages(lambda token: self._list_workflows_page(pipeline_id, token))

    def run_pipeline(self, options: PipelineRunOptions) -> PipelineRunResponse:
        """Trigger a pipeline run for a definition.

        Returns:
            A message response when the server answers 200 with a message,
            or the created pipeline when it answers 201

        Raises:
            APIError: On any other successful status
            OSError: If the inline config file cannot be read
        """
        config = _ref(options.config_branch, options.config_tag)
        if options.config_file_path:
            content = Path(options.config_file_path).read_text()
            if content:
                config["content"] = content

        payload: Dict[str, Any] = {"definition_id": options.pipeline_definition_id}
        if config:
            payload["config"] = config
        checkout = _ref(options.checkout_branch, options.checkout_tag)
        if checkout:
            payload["checkout"] = checkout
        if options.parameters:
            payload["parameters"] = options.parameters

        path = f"project/circleci/{options.organization}/{options.project}/pipeline/run"
        status, body = self.rest.do_request(self.rest.new_request("POST", path, payload=payload))
        body = body or {}

        if status == 200 and "message" in body:
            return PipelineRunResponse(message=str(body["message"]))
        if status == 201:
            return PipelineRunResponse(
                id=body.get("id", ""),
                number=int(body.get("number") or 0),
                state=body.get("state", ""),
                created_at=body.get("created_at", ""),
            )
        raise APIError(f"unexpected status code or response: {status}")
