# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Project slug parsing."""

from dataclasses import dataclass

from circleci_ng.core.errors import CircleCIError


@dataclass
class ProjectSlug:
    vcs: str
    org: str
    repo: str

    def __str__(self) -> str:
        return f"{self.vcs}/{self.org}/{self.repo}"


def parse_project_slug(project_slug: str) -> ProjectSlug:
    """Parse ``<vcs>/<org>/<repo>`` into its three segments."""
    slug = project_slug.strip().strip("/")
    parts = slug.split("/")
    if len(parts) != 3:
        raise CircleCIError(f"invalid project slug {project_slug!r} (expected <vcs>/<org>/<repo>)")
    if any(not part for part in parts):
        raise CircleCIError(f"invalid project slug {project_slug!r} (empty segment)")
    return ProjectSlug(*parts)
