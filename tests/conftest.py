# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Common test fixtures for circleci-ng."""

import json
import pathlib
from typing import Any, Callable, Dict, List, Tuple

import httpx
import pytest

from circleci_ng.core.graphql import GraphQLClient
from circleci_ng.core.rest import RestClient
from circleci_ng.core.settings import Settings

TEST_TOKEN = "test-token"
TEST_HOST = "https://circleci.com"
TEST_DATE_CREATED = "2025-01-01T10:00:00Z"

Handler = Callable[[httpx.Request], httpx.Response]


class Recorder:
    """An httpx transport handler that records requests and replays canned responses.

    Routes map ``(method, path)`` to either a response, a list of responses
    served in order, or a callable taking the request.
    """

    def __init__(self, routes: Dict[Tuple[str, str], Any]) -> None:
        self.routes = routes
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": f"no route for {request.method} {request.url.path}"})
        if callable(route):
            return route(request)
        if isinstance(route, list):
            return route.pop(0)
        return route

    def json_body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)


def mock_http_client(handler: Handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture
def settings(tmp_path: pathlib.Path) -> Settings:
    """Settings with a token that never touch the real home directory."""
    return Settings(
        host=TEST_HOST,
        token=TEST_TOKEN,
        skip_update_check=True,
        file_used=tmp_path / "cli.yml",
    )


@pytest.fixture
def make_rest() -> Callable[[Handler], RestClient]:
    """Build a RestClient on ``api/v2`` backed by a mock transport."""

    def _make(handler: Handler) -> RestClient:
        return RestClient(f"{TEST_HOST}/api/v2/", TEST_TOKEN, mock_http_client(handler))

    return _make


@pytest.fixture
def make_graphql() -> Callable[[Handler], GraphQLClient]:
    """Build a GraphQLClient backed by a mock transport."""

    def _make(handler: Handler) -> GraphQLClient:
        return GraphQLClient(mock_http_client(handler), TEST_HOST, "graphql-unstable", TEST_TOKEN)

    return _make


def graphql_responder(*payloads: Dict[str, Any]) -> Tuple[Handler, List[Dict[str, Any]]]:
    """Serve ``{"data": payload}`` bodies in order and record the sent queries."""
    sent: List[Dict[str, Any]] = []
    queue = list(payloads)

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content))
        return httpx.Response(200, json={"data": queue.pop(0)})

    return handler, sent


@pytest.fixture
def recorder() -> Callable[[Dict[Tuple[str, str], Any]], Recorder]:
    """Build a Recorder for a route table."""
    return Recorder


@pytest.fixture
def graphql_responses() -> Callable[..., Tuple[Handler, List[Dict[str, Any]]]]:
    """Build a GraphQL handler serving the given ``data`` payloads in order."""
    return graphql_responder


@pytest.fixture
def mock_client() -> Callable[[Handler], httpx.Client]:
    """Build an httpx.Client answering through a handler."""
    return mock_http_client
