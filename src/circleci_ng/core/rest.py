# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Generic REST client used by every per-resource API client."""

import json
import logging
import platform
from typing import Any, Dict, Optional, Tuple

import httpx

from circleci_ng import __version__
from circleci_ng.core.errors import APIError, HTTPError
from circleci_ng.core.settings import Settings

logger = logging.getLogger(__name__)

REST_TIMEOUT = 10.0

_command_str = ""


def set_command_str(command: str) -> None:
    """Record the invoking command path, sent along with every request."""
    global _command_str
    _command_str = command


def get_command_str() -> str:
    return _command_str


def user_agent() -> str:
    return f"circleci-ng/{__version__} ({platform.system().lower()}; {platform.machine()})"


def default_headers(token: Optional[str] = None, token_header: str = "Circle-Token") -> Dict[str, str]:
    """Headers shared by REST and GraphQL requests."""
    headers = {
        "Accept": "application/json",
        "User-Agent": user_agent(),
    }
    if token:
        headers[token_header] = token
    command = get_command_str()
    if command:
        headers["Circleci-Cli-Command"] = command
    return headers


def error_message(response: httpx.Response, *fields: str) -> str:
    """Pull the first non-empty error field out of a JSON error body."""
    try:
        body = response.json()
    except ValueError:
        return ""
    if not isinstance(body, dict):
        return ""
    for name in fields or ("message",):
        value = body.get(name)
        if value:
            return str(value)
    return ""


class RestClient:
    """Thin REST client that resolves paths against a base URL."""

    def __init__(self, base_url: Any, token: str = "", http_client: Optional[httpx.Client] = None) -> None:
        """Initialize the REST client.

        Args:
            base_url: Base URL every request path is resolved against. It
                should end with a slash.
            token: API token sent in the ``Circle-Token`` header
            http_client: Optional pre-configured ``httpx.Client``
        """
        self.base_url = httpx.URL(str(base_url))
        self.token = token
        self.client = http_client or httpx.Client(timeout=REST_TIMEOUT)

    @classmethod
    def from_settings(cls, settings: Settings, http_client: Optional[httpx.Client] = None) -> "RestClient":
        """Build a client for the REST endpoint named in the settings."""
        return cls(settings.server_url(), settings.token, http_client or settings.http_client(timeout=REST_TIMEOUT))

    def url(self, path: str) -> httpx.URL:
        return self.base_url.join(path)

    def new_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Any = None,
    ) -> httpx.Request:
        """Build an authenticated request for ``path``."""
        headers = default_headers(self.token)
        content = None
        if payload is not None:
            headers["Content-Type"] = "application/json"
            content = json.dumps(payload).encode()

        query = {k: v for k, v in (params or {}).items() if v not in (None, "")}
        return self.client.build_request(
            method,
            self.url(path),
            params=query or None,
            headers=headers,
            content=content,
        )

    def do_request(self, request: httpx.Request) -> Tuple[int, Any]:
        """Send a request and decode the JSON response.

        Returns:
            Tuple of (status code, decoded body or None)

        Raises:
            HTTPError: If the server answers with a status of 300 or more
            APIError: If a successful response is not JSON
        """
        logger.debug(f"{request.method} {request.url}")
        try:
            response = self.client.send(request)
        except httpx.RequestError as e:
            logger.error(f"failed to make http request: {e}")
            raise

        if response.status_code >= 300:
            raise HTTPError(response.status_code, error_message(response))

        if not response.content:
            return response.status_code, None

        if "application/json" not in response.headers.get("Content-Type", ""):
            raise APIError("wrong content type received")

        try:
            return response.status_code, response.json()
        except ValueError as e:
            raise APIError(f"unable to decode response: {e}") from e

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.do_request(self.new_request("GET", path, params=params))[1]

    def post(self, path: str, payload: Any = None) -> Any:
        return self.do_request(self.new_request("POST", path, payload=payload))[1]

    def put(self, path: str, payload: Any = None) -> Any:
        return self.do_request(self.new_request("PUT", path, payload=payload))[1]

    def patch(self, path: str, payload: Any = None) -> Any:
        return self.do_request(self.new_request("PATCH", path, payload=payload))[1]

    def delete(self, path: str) -> Any:
        return self.do_request(self.new_request("DELETE", path))[1]
