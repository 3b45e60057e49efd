# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
Context and context environment variable clients.

Contexts are managed through the REST API. Server installations that do not
expose the ``/context`` REST endpoint fall back to the GraphQL API.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx

from circleci_ng.core.errors import APIError, CircleCIError, GraphQLResponseError, NotFoundError
from circleci_ng.core.graphql import GraphQLClient
from circleci_ng.core.pagination import collect_pages, find_in_pages, split_page
from circleci_ng.core.rest import RestClient
from circleci_ng.core.settings import DEFAULT_HOST, Settings

logger = logging.getLogger(__name__)

ORG_OWNER_TYPE = "organization"
ACCOUNT_OWNER_TYPE = "account"


@dataclass
class Context:
    """The owner of environment variables."""
    id: str
    name: str
    created_at: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Context":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            created_at=data.get("created_at") or data.get("createdAt") or "",
        )


@dataclass
class EnvironmentVariable:
    """A secret stored in a context."""
    variable: str
    context_id: str = ""
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any], context_id: str = "") -> "EnvironmentVariable":
        return cls(
            variable=data.get("variable", ""),
            context_id=data.get("context_id") or context_id,
            created_at=data.get("created_at") or data.get("createdAt") or "",
            updated_at=data.get("updated_at") or "",
        )


def to_slug(vcs: str, org: str) -> str:
    return f"{vcs}/{org}"


class ContextRestClient:
    """Manage contexts through the v2 REST API."""

    def __init__(
        self,
        rest: RestClient,
        org_id: Optional[str] = None,
        vcs_type: Optional[str] = None,
        org_name: Optional[str] = None,
    ) -> None:
        self.rest = rest
        self.org_id = org_id or ""
        self.vcs_type = vcs_type or ""
        self.org_name = org_name or ""

    def _owner_params(self) -> Dict[str, str]:
        if self.org_id:
            return {"owner-id": self.org_id}
        if self.vcs_type and self.org_name:
            return {"owner-slug": to_slug(self.vcs_type, self.org_name)}
        raise CircleCIError("to list context, need either org ID or couple vcs/orgName but got neither")

    def list_contexts_page(
        self, params: Dict[str, str], page_token: Optional[str] = None
    ) -> Tuple[List[Context], Optional[str]]:
        """Fetch one page of contexts for an owner."""
        query = dict(params)
        if page_token:
            query["page-token"] = page_token
        items, next_token = split_page(self.rest.get("context", params=query))
        return [Context.from_dict(item) for item in items], next_token

    def contexts(self) -> List[Context]:
        """Return all contexts of the owner, across every page."""
        params = self._owner_params()
        return collect_pages(lambda token: self.list_contexts_page(params, token))

    def context_by_name(self, name: str) -> Context:
        params = self._owner_params()
        context = find_in_pages(
            lambda token: self.list_contexts_page(params, token),
            lambda c: c.name == name,
        )
        if context is None:
            raise NotFoundError(f"context with name {name} not found")
        return context

    def create_context(self, name: str, owner_type: str = ORG_OWNER_TYPE) -> Context:
        owner: Dict[str, str] = {"type": owner_type or ORG_OWNER_TYPE}
        if self.org_id:
            owner["id"] = self.org_id
        elif self.vcs_type and self.org_name:
            owner["slug"] = to_slug(self.vcs_type, self.org_name)
        else:
            raise CircleCIError("need either org ID or vcs type and org name to create a context, received none")

        if owner["type"] not in (ORG_OWNER_TYPE, ACCOUNT_OWNER_TYPE):
            raise CircleCIError(
                'only owner.type values allowed to create a context are "organization" or "account", '
                f"received: {owner['type']}"
            )
        if owner["type"] == ACCOUNT_OWNER_TYPE and "id" not in owner:
            raise CircleCIError(
                'when creating a context, owner.type with value "account" is only allowed '
                "when using owner.id and not when using owner.slug"
            )

        body = self.rest.post("context", {"name": name, "owner": owner})
        return Context.from_dict(body or {})

    def delete_context(self, context_id: str) -> None:
        self.rest.delete(f"context/{context_id}")

    def list_environment_variables_page(
        self, context_id: str, page_token: Optional[str] = None
    ) -> Tuple[List[EnvironmentVariable], Optional[str]]:
        params = {"page-token": page_token} if page_token else None
        items, next_token = split_page(self.rest.get(f"context/{context_id}/environment-variable", params=params))
        return [EnvironmentVariable.from_dict(item, context_id) for item in items], next_token

    def environment_variables(self, context_id: str) -> List[EnvironmentVariable]:
        return collect_pages(lambda token: self.list_environment_variables_page(context_id, token))

    def create_environment_variable(self, context_id: str, variable: str, value: str) -> EnvironmentVariable:
        body = self.rest.put(f"context/{context_id}/environment-variable/{variable}", {"value": value})
        return EnvironmentVariable.from_dict(body or {"variable": variable}, context_id)

    def delete_environment_variable(self, context_id: str, variable: str) -> None:
        self.rest.delete(f"context/{context_id}/environment-variable/{variable}")

    def is_rest_api_available(self) -> bool:
        """Check the server's OpenAPI document for the context endpoint."""
        try:
            spec = self.rest.get("openapi.json")
        except (APIError, httpx.HTTPError) as e:
            logger.debug(f"Context REST API probe failed: {e}")
            return False
        paths = (spec or {}).get("paths") or {}
        return paths.get("/context") is not None


def improve_vcs_type_error(error: Exception) -> Exception:
    """Rewrite the GraphQL VCSType enum error into something readable."""
    if isinstance(error, GraphQLResponseError):
        details = error.first_extensions or {}
        if details.get("enum-type") == "VCSType":
            allowed = ", ".join(details.get("allowed-values") or []).lower()
            value = str(details.get("value", "")).lower()
            return CircleCIError(f"Invalid vcs-type '{value}' provided, expected one of {allowed}")
    return error


class ContextGraphQLClient:
    """Manage contexts through the GraphQL API, for older server installs."""

    def __init__(
        self,
        gql: GraphQLClient,
        org_id: Optional[str] = None,
        vcs_type: Optional[str] = None,
        org_name: Optional[str] = None,
    ) -> None:
        self.gql = gql
        self.org_id = org_id or ""
        self.vcs_type = vcs_type or ""
        self.org_name = org_name or ""

    def _run(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        request = self.gql.new_request(query)
        for key, value in variables.items():
            request.var(key, value)
        try:
            return self.gql.run(request)
        except GraphQLResponseError as e:
            improved = improve_vcs_type_error(e)
            if improved is e:
                raise
            raise improved from e

    def _organization_id(self) -> str:
        if self.org_id:
            return self.org_id

        query = """
        query($orgName: String!, $vcsType: VCSType!) {
            organization(name: $orgName, vcsType: $vcsType) {
                id
            }
        }"""
        data = self._run(query, {"orgName": self.org_name, "vcsType": self.vcs_type.upper()})
        org_id = (data.get("organization") or {}).get("id")
        if not org_id:
            raise NotFoundError(f"Unable to find organization {self.org_name} of vcs-type {self.vcs_type}")
        self.org_id = org_id
        return org_id

    def contexts(self) -> List[Context]:
        query = """
        query ContextsQuery($orgId: ID!) {
            organization(id: $orgId) {
                id
                contexts {
                    edges {
                        node {
                            id
                            name
                            createdAt
                        }
                    }
                }
            }
        }"""
        data = self._run(query, {"orgId": self._organization_id()})
        edges = ((data.get("organization") or {}).get("contexts") or {}).get("edges") or []
        return [Context.from_dict(edge.get("node") or {}) for edge in edges]

    def context_by_name(self, name: str) -> Context:
        for context in self.contexts():
            if context.name == name:
                return context
        raise NotFoundError(f"context with name {name} not found")

    def create_context(self, name: str, owner_type: str = ORG_OWNER_TYPE) -> Context:
        query = """
        mutation CreateContext($input: CreateContextInput!) {
            createContext(input: $input) {
                error {
                    type
                }
            }
        }"""
        data = self._run(query, {
            "input": {
                "ownerId": self._organization_id(),
                "ownerType": owner_type.upper(),
                "contextName": name,
            }
        })
        error_type = ((data.get("createContext") or {}).get("error") or {}).get("type")
        if error_type:
            raise APIError(f"Error creating context: {error_type}")
        return Context(id="", name=name)

    def delete_context(self, context_id: str) -> None:
        query = """
        mutation DeleteContext($input: DeleteContextInput!) {
            deleteContext(input: $input) {
                clientMutationId
            }
        }"""
        self._run(query, {"input": {"contextId": context_id}})

    def environment_variables(self, context_id: str) -> List[EnvironmentVariable]:
        query = """
        query Context($id: ID!) {
            context(id: $id) {
                resources {
                    variable
                    createdAt
                }
            }
        }"""
        data = self._run(query, {"id": context_id})
        resources = (data.get("context") or {}).get("resources") or []
        return [EnvironmentVariable.from_dict(r, context_id) for r in resources]

    def create_environment_variable(self, context_id: str, variable: str, value: str) -> EnvironmentVariable:
        query = """
        mutation CreateEnvVar($input: StoreEnvironmentVariableInput!) {
            storeEnvironmentVariable(input: $input) {
                context {
                    id
                }
                error {
                    type
                }
            }
        }"""
        data = self._run(query, {"input": {"contextId": context_id, "variable": variable, "value": value}})
        error_type = ((data.get("storeEnvironmentVariable") or {}).get("error") or {}).get("type")
        if error_type:
            raise APIError(f"Error storing environment variable: {error_type}")
        return EnvironmentVariable(variable=variable, context_id=context_id)

    def delete_environment_variable(self, context_id: str, variable: str) -> None:
        query = """
        mutation DeleteEnvVar($input: RemoveEnvironmentVariableInput!) {
            removeEnvironmentVariable(input: $input) {
                context {
                    id
                }
            }
        }"""
        self._run(query, {"input": {"contextId": context_id, "variable": variable}})


ContextClient = Union[ContextRestClient, ContextGraphQLClient]


def new_context_client(
    settings: Settings,
    org_id: Optional[str] = None,
    vcs_type: Optional[str] = None,
    org_name: Optional[str] = None,
) -> ContextClient:
    """Pick the REST client, or the GraphQL one when REST is unavailable."""
    rest_client = ContextRestClient(RestClient.from_settings(settings), org_id, vcs_type, org_name)

    if settings.host.rstrip("/") == DEFAULT_HOST:
        return rest_client

    if rest_client.is_rest_api_available():
        return rest_client

    logger.info("Context REST API unavailable on this host, using the GraphQL API")
    return ContextGraphQLClient(GraphQLClient.from_settings(settings), org_id, vcs_type, org_name)
