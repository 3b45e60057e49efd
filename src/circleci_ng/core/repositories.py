# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""GitHub App repository listing through the BFF service."""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from circleci_ng.core.errors import APIError
from circleci_ng.core.rest import REST_TIMEOUT, default_headers, error_message
from circleci_ng.core.settings import Settings

logger = logging.getLogger(__name__)

BFF_HOST = "https://bff.circleci.com"


@dataclass
class Repository:
    id: int
    name: str
    full_name: str = ""
    private: bool = False
    html_url: str = ""
    default_branch: str = ""
    description: str = ""
    language: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Repository":
        return cls(
            id=int(data.get("id") or 0),
            name=data.get("name", ""),
            full_name=data.get("full_name", ""),
            private=bool(data.get("private", False)),
            html_url=data.get("html_url", ""),
            default_branch=data.get("default_branch", ""),
            description=data.get("description", "") or "",
            language=data.get("language", "") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RepositoriesResponse:
    repositories: List[Repository] = field(default_factory=list)
    total_count: int = 0


class RepositoryRestClient:
    """Lists repositories an organization's GitHub App can see."""

    def __init__(self, token: str, http_client: Optional[httpx.Client] = None, base_url: str = BFF_HOST) -> None:
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.client = http_client or httpx.Client(timeout=REST_TIMEOUT)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RepositoryRestClient":
        return cls(settings.token, settings.http_client(timeout=REST_TIMEOUT))

    def get_github_repositories(self, org_id: str) -> RepositoriesResponse:
        """Fetch the GitHub repositories available to an organization.

        Raises:
            APIError: If the service answers with a status of 400 or more
        """
        url = f"{self.base_url}/private/soc/github-app/organization/{org_id}/repositories"
        response = self.client.get(url, headers=default_headers(self.token))

        if response.status_code >= 400:
            message = error_message(response, "message", "error") or f"HTTP {response.status_code}"
            raise APIError(f"API request failed: {message}")

        try:
            body = response.json()
        except ValueError as e:
            raise APIError(f"failed to decode response: {e}") from e

        repositories = [Repository.from_dict(item) for item in body or []]
        return RepositoriesResponse(repositories=repositories, total_count=len(repositories))
