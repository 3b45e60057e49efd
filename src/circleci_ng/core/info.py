# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Organization lookups through ``me/collaborations``."""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from circleci_ng.core.rest import RestClient

logger = logging.getLogger(__name__)

COLLABORATIONS_PATH = "me/collaborations"


@dataclass
class Organization:
    """An organization the token's user collaborates with."""
    id: str
    name: str
    slug: str = ""
    vcs_type: str = ""
    avatar_url: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Organization":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            slug=data.get("slug", ""),
            vcs_type=data.get("vcs_type", ""),
            avatar_url=data.get("avatar_url", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class InfoClient:
    def __init__(self, rest: RestClient) -> None:
        self.rest = rest

    def get_info(self) -> List[Organization]:
        """Return the organizations of the authenticated user."""
        body = self.rest.get(COLLABORATIONS_PATH) or []
        return [Organization.from_dict(item) for item in body]

    def collaboration_by_slug(self, slug: str) -> Optional[Organization]:
        """Find an organization by ``<vcs>/<org>`` slug.

        The API always answers with the short VCS name (``gh/org``), so the
        long form (``github/org``) is matched against the VCS type too.
        """
        slug_parts = slug.split("/")
        for org in self.get_info():
            if org.slug == slug:
                return org
            parts = org.slug.split("/")
            if len(slug_parts) >= 2 and len(parts) >= 2 and slug_parts[0] == org.vcs_type and slug_parts[1] == parts[1]:
                return org
        return None

    def org_id_from_slug(self, slug: str) -> str:
        """Return the organization id for ``slug``, or an empty string."""
        org = self.collaboration_by_slug(slug)
        return org.id if org else ""
