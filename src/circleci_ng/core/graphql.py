# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""GraphQL client for the orb registry and the legacy context API."""

import json
import logging
from typing import Any, Dict, Optional

import httpx

from circleci_ng.core.errors import APIError, ConfigurationError, GraphQLResponseError
from circleci_ng.core.rest import default_headers
from circleci_ng.core.settings import Settings

logger = logging.getLogger(__name__)


class GraphQLRequest:
    """A GraphQL query or mutation with its variables."""

    def __init__(self, query: str) -> None:
        self.query = query
        self.variables: Dict[str, Any] = {}
        self.headers: Dict[str, str] = default_headers()

    def var(self, key: str, value: Any) -> "GraphQLRequest":
        self.variables[key] = value
        return self

    def set_token(self, token: str) -> None:
        """Set the Authorization header for the request."""
        if token:
            self.headers["Authorization"] = token

    def encode(self) -> bytes:
        return json.dumps({"query": self.query, "variables": self.variables}).encode()


def server_address(host: str, endpoint: str) -> str:
    """Resolve the GraphQL endpoint against the host.

    An absolute endpoint wins over the host, which keeps older settings that
    stored the full GraphQL URL in ``endpoint`` working.
    """
    host_url = httpx.URL(host)
    if not host_url.is_absolute_url:
        raise ConfigurationError(f"Host ({host}) must be absolute URL, including scheme")
    return str(host_url.join(endpoint))


class GraphQLClient:
    """HTTP client for the GraphQL endpoint."""

    def __init__(
        self,
        http_client: httpx.Client,
        host: str,
        endpoint: str,
        token: str = "",
        debug: bool = False,
    ) -> None:
        self.http_client = http_client
        self.host = host
        self.endpoint = endpoint
        self.token = token
        self.debug = debug

    @classmethod
    def from_settings(cls, settings: Settings, http_client: Optional[httpx.Client] = None) -> "GraphQLClient":
        return cls(
            http_client or settings.http_client(),
            settings.host,
            settings.endpoint,
            settings.token,
            settings.debug,
        )

    def new_request(self, query: str, authorized: bool = True) -> GraphQLRequest:
        request = GraphQLRequest(query)
        if authorized:
            request.set_token(self.token)
        return request

    def run(self, request: GraphQLRequest) -> Dict[str, Any]:
        """Send the request and return its ``data`` member.

        Raises:
            APIError: If the server does not answer with HTTP 200
            GraphQLResponseError: If the response carries GraphQL errors
        """
        address = server_address(self.host, self.endpoint)

        headers = dict(request.headers)
        headers["Content-Type"] = "application/json; charset=utf-8"
        headers["Accept"] = "application/json; charset=utf-8"

        if self.debug:
            logger.debug(f">> variables: {request.variables}")
            logger.debug(f">> query: {request.query}")

        response = self.http_client.post(address, content=request.encode(), headers=headers)

        if self.debug:
            logger.debug(f"<< request id: {response.headers.get('X-Request-Id', '')}")
            logger.debug(f"<< result status: {response.status_code}")

        if response.status_code != 200:
            raise APIError(f"failure calling GraphQL API: {response.status_code} {response.reason_phrase}")

        try:
            body = response.json()
        except ValueError as e:
            raise APIError(f"unable to decode GraphQL response: {e}") from e

        errors = body.get("errors") or []
        if errors:
            raise GraphQLResponseError(errors)

        return body.get("data") or {}
