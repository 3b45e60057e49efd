# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
Config policy client.

The policy service lives under ``api/v1`` on the host rather than the v2
REST endpoint, and reports failures in an ``error`` field.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from circleci_ng.core.errors import HTTPError
from circleci_ng.core.rest import REST_TIMEOUT, default_headers, error_message
from circleci_ng.core.settings import Settings

logger = logging.getLogger(__name__)

POLICY_ENDPOINT = "api/v1/"
DEFAULT_CONTEXT = "config"


class PolicyClient:
    """Client for the owner-scoped policy API."""

    def __init__(self, base_url: Any, token: str = "", http_client: Optional[httpx.Client] = None) -> None:
        self.base_url = httpx.URL(str(base_url))
        self.token = token
        self.client = http_client or httpx.Client(timeout=REST_TIMEOUT)

    @classmethod
    def from_settings(cls, settings: Settings, http_client: Optional[httpx.Client] = None) -> "PolicyClient":
        base_url = httpx.URL(settings.host).join(POLICY_ENDPOINT)
        return cls(base_url, settings.token, http_client or settings.http_client(timeout=REST_TIMEOUT))

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Any = None,
    ) -> Any:
        headers = default_headers(self.token)
        headers["Content-Type"] = "application/json"
        query = {k: v for k, v in (params or {}).items() if v not in (None, "")}
        response = self.client.request(
            method,
            self.base_url.join(path),
            params=query or None,
            headers=headers,
            content=json.dumps(payload).encode() if payload is not None else None,
        )
        logger.debug(f"{method} {response.request.url} -> {response.status_code}")

        if response.status_code >= 300:
            raise HTTPError(response.status_code, error_message(response, "error", "message"))
        if not response.content:
            return None
        return response.json()

    def list_policies(self, owner_id: str, active: Optional[bool] = None) -> str:
        """List policies of an owner, rendered as indented JSON."""
        params = {"active": str(active).lower()} if active is not None else None
        body = self._request("GET", f"owner/{owner_id}/policy", params=params)
        return json.dumps(body, indent="\t")

    def fetch_policy_bundle(self, owner_id: str, context: str = DEFAULT_CONTEXT, name: Optional[str] = None) -> Any:
        """Fetch the whole policy bundle, or a single named policy from it."""
        path = f"owner/{owner_id}/context/{context}/policy-bundle"
        if name:
            path += f"/{name}"
        return self._request("GET", path)

    def get_settings(self, owner_id: str, context: str = DEFAULT_CONTEXT) -> Dict[str, Any]:
        return self._request("GET", f"owner/{owner_id}/context/{context}/decision/settings") or {}

    def set_settings(self, owner_id: str, context: str, enabled: bool) -> Dict[str, Any]:
        return self._request(
            "PATCH",
            f"owner/{owner_id}/context/{context}/decision/settings",
            payload={"enabled": enabled},
        ) or {}

    def decision_logs(
        self,
        owner_id: str,
        context: str = DEFAULT_CONTEXT,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Return every decision log matching ``filters``.

        The endpoint is offset paginated; pages are requested until one
        comes back empty.
        """
        logs: List[Dict[str, Any]] = []
        params = dict(filters or {})
        while True:
            params["offset"] = len(logs)
            page = self._request("GET", f"owner/{owner_id}/context/{context}/decision", params=params) or []
            if not page:
                return logs
            logs.extend(page)
