# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
Project client for the v2 REST API.

Covers project environment variables, project lookup and project creation.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

from circleci_ng.core.errors import HTTPError
from circleci_ng.core.pagination import collect_pages, split_page
from circleci_ng.core.rest import RestClient

logger = logging.getLogger(__name__)


@dataclass
class ProjectEnvironmentVariable:
    """A project-level environment variable. Values come back masked."""
    name: str
    value: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectEnvironmentVariable":
        return cls(name=data.get("name", ""), value=data.get("value", "") or "")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProjectInfo:
    """Identity of a project as returned by the API."""
    id: str
    slug: str = ""
    name: str = ""
    org_name: str = ""
    org_id: str = ""
    vcs_url: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectInfo":
        vcs_info = data.get("vcs_info") or {}
        return cls(
            id=data.get("id", ""),
            slug=data.get("slug", ""),
            name=data.get("name", ""),
            org_name=data.get("organization_name", ""),
            org_id=data.get("organization_id", ""),
            vcs_url=vcs_info.get("vcs_url", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def project_path(vcs: str, org: str, project: str) -> str:
    return f"project/{vcs}/{org}/{project}"


class ProjectRestClient:
    """Project operations on the v2 REST API."""

    def __init__(self, rest: RestClient) -> None:
        self.rest = rest

    def _list_environment_variables_page(
        self, vcs: str, org: str, project: str, page_token: Optional[str]
    ) -> Tuple[List[ProjectEnvironmentVariable], Optional[str]]:
        params = {"page-token": page_token} if page_token else None
        body = self.rest.get(f"{project_path(vcs, org, project)}/envvar", params=params)
        items, next_token = split_page(body)
        return [ProjectEnvironmentVariable.from_dict(item) for item in items], next_token

    def list_all_environment_variables(self, vcs: str, org: str, project: str) -> List[ProjectEnvironmentVariable]:
        """List every environment variable of a project."""
        return collect_pages(lambda token: self._list_environment_variables_page(vcs, org, project, token))

    def get_environment_variable(
        self, vcs: str, org: str, project: str, name: str
    ) -> Optional[ProjectEnvironmentVariable]:
        """Fetch one environment variable.

        Returns:
            The variable, or None if the project has no variable by that name
        """
        try:
            body = self.rest.get(f"{project_path(vcs, org, project)}/envvar/{name}")
        except HTTPError as e:
            if e.code == 404:
                return None
            raise
        return ProjectEnvironmentVariable.from_dict(body or {"name": name})

    def create_environment_variable(
        self, vcs: str, org: str, project: str, variable: ProjectEnvironmentVariable
    ) -> ProjectEnvironmentVariable:
        body = self.rest.post(
            f"{project_path(vcs, org, project)}/envvar",
            {"name": variable.name, "value": variable.value},
        )
        return ProjectEnvironmentVariable.from_dict(body or {"name": variable.name})

    def project_info(self, vcs: str, org: str, project: str) -> ProjectInfo:
        return ProjectInfo.from_dict(self.rest.get(project_path(vcs, org, project)) or {})

    def create_project(self, vcs: str, org: str, name: str) -> ProjectInfo:
        """Create a project in an organization.

        Args:
            vcs: VCS type (``github``, ``bitbucket`` or ``circleci``)
            org: Organization name or slug
            name: Name of the new project
        """
        logger.info(f"Creating project {name} in {vcs}/{org}")
        body = self.rest.post(f"organization/{vcs}/{org}/project", {"name": name})
        return ProjectInfo.from_dict(body or {})
