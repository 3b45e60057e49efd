# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Pipeline trigger client."""

import logging
from dataclasses import dataclass
from typing import Any, Dict

from circleci_ng.core.pipelines import GITHUB_APP_PROVIDER
from circleci_ng.core.rest import RestClient

logger = logging.getLogger(__name__)

EVENT_PRESETS = ["all-pushes", "only-tags", "default-branch-pushes", "only-build-prs"]


@dataclass
class CreateTriggerOptions:
    project_id: str
    pipeline_definition_id: str
    repo_id: str
    event_preset: str
    config_ref: str = ""
    checkout_ref: str = ""


@dataclass
class Trigger:
    id: str
    created_at: str = ""
    event_preset: str = ""


class TriggerRestClient:
    """Creates GitHub App triggers on pipeline definitions."""

    def __init__(self, rest: RestClient) -> None:
        self.rest = rest

    def create_trigger(self, options: CreateTriggerOptions) -> Trigger:
        payload: Dict[str, Any] = {
            "event_source": {
                "provider": GITHUB_APP_PROVIDER,
                "repo": {"external_id": options.repo_id},
            },
            "event_preset": options.event_preset,
        }
        if options.config_ref:
            payload["config_ref"] = options.config_ref
        if options.checkout_ref:
            payload["checkout_ref"] = options.checkout_ref

        path = f"projects/{options.project_id}/pipeline-definitions/{options.pipeline_definition_id}/triggers"
        logger.debug(f"Creating trigger for definition {options.pipeline_definition_id}")
        body = self.rest.post(path, payload) or {}
        return Trigger(
            id=body.get("id", ""),
            created_at=body.get("created_at", ""),
            event_preset=body.get("event_preset", options.event_preset),
        )
