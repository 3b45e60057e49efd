# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Scheduled pipeline client for the v2 REST API."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from circleci_ng.core.errors import HTTPError
from circleci_ng.core.pagination import collect_pages, find_in_pages, split_page
from circleci_ng.core.rest import RestClient

logger = logging.getLogger(__name__)

DAYS_OF_WEEK = ["MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN"]


@dataclass
class Timetable:
    """When a schedule fires."""
    per_hour: int = 1
    hours_of_day: List[int] = field(default_factory=list)
    days_of_week: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Timetable":
        return cls(
            per_hour=int(data.get("per-hour") or 0),
            hours_of_day=list(data.get("hours-of-day") or []),
            days_of_week=list(data.get("days-of-week") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "per-hour": self.per_hour,
            "hours-of-day": self.hours_of_day,
            "days-of-week": self.days_of_week,
        }

    def is_empty(self) -> bool:
        return not (self.per_hour or self.hours_of_day or self.days_of_week)


@dataclass
class Actor:
    id: str = ""
    login: str = ""
    name: str = ""


@dataclass
class Schedule:
    """A pipeline schedule attached to a project."""
    id: str
    project_slug: str
    name: str
    description: str = ""
    timetable: Timetable = field(default_factory=Timetable)
    actor: Actor = field(default_factory=Actor)
    parameters: Dict[str, Any] = field(default_factory=dict)
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Schedule":
        actor = data.get("actor") or {}
        return cls(
            id=data.get("id", ""),
            project_slug=data.get("project-slug", ""),
            name=data.get("name", ""),
            description=data.get("description", "") or "",
            timetable=Timetable.from_dict(data.get("timetable") or {}),
            actor=Actor(actor.get("id", ""), actor.get("login", ""), actor.get("name", "")),
            parameters=dict(data.get("parameters") or {}),
            created_at=data.get("created-at", ""),
            updated_at=data.get("updated-at", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project-slug": self.project_slug,
            "name": self.name,
            "description": self.description,
            "timetable": self.timetable.to_dict(),
            "actor": {"id": self.actor.id, "login": self.actor.login, "name": self.actor.name},
            "parameters": self.parameters,
            "created-at": self.created_at,
            "updated-at": self.updated_at,
        }


def attribution_actor(use_scheduling_system: bool) -> str:
    return "system" if use_scheduling_system else "current"


class ScheduleRestClient:
    """Create, list, update and delete pipeline schedules."""

    def __init__(self, rest: RestClient) -> None:
        self.rest = rest

    def _list_page(self, vcs: str, org: str, project: str, page_token: Optional[str]) -> Tuple[List[Schedule], Optional[str]]:
        params = {"page-token": page_token} if page_token else None
        body = self.rest.get(f"project/{vcs}/{org}/{project}/schedule", params=params)
        items, next_token = split_page(body)
        return [Schedule.from_dict(item) for item in items], next_token

    def schedules(self, vcs: str, org: str, project: str) -> List[Schedule]:
        """Return all schedules of a project, across every page."""
        return collect_pages(lambda token: self._list_page(vcs, org, project, token))

    def schedule_by_id(self, schedule_id: str) -> Schedule:
        return Schedule.from_dict(self.rest.get(f"schedule/{schedule_id}") or {})

    def schedule_by_name(self, vcs: str, org: str, project: str, name: str) -> Optional[Schedule]:
        """Find a schedule by name, or None if the project has none by that name."""
        return find_in_pages(
            lambda token: self._list_page(vcs, org, project, token),
            lambda s: s.name == name,
        )

    def create_schedule(
        self,
        vcs: str,
        org: str,
        project: str,
        name: str,
        description: str,
        use_scheduling_system: bool,
        timetable: Timetable,
        parameters: Dict[str, Any],
    ) -> Schedule:
        body: Dict[str, Any] = {
            "name": name,
            "attribution-actor": attribution_actor(use_scheduling_system),
            "parameters": parameters,
            "timetable": timetable.to_dict(),
        }
        if description:
            body["description"] = description

        request = self.rest.new_request("POST", f"project/{vcs}/{org}/{project}/schedule", payload=body)
        status, response = self.rest.do_request(request)
        if status != 201:
            raise HTTPError(status, (response or {}).get("message", ""))
        return Schedule.from_dict(response or {})

    def update_schedule(
        self,
        schedule_id: str,
        name: str = "",
        description: str = "",
        use_scheduling_system: bool = False,
        timetable: Optional[Timetable] = None,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> Schedule:
        """Update a schedule; empty fields are left unchanged."""
        body: Dict[str, Any] = {"attribution-actor": attribution_actor(use_scheduling_system)}
        if name:
            body["name"] = name
        if description:
            body["description"] = description
        if parameters:
            body["parameters"] = parameters
        if timetable is not None and not timetable.is_empty():
            body["timetable"] = timetable.to_dict()

        return Schedule.from_dict(self.rest.patch(f"schedule/{schedule_id}", body) or {})

    def delete_schedule(self, schedule_id: str) -> None:
        self.rest.delete(f"schedule/{schedule_id}")
