# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
Local git introspection.

Used to infer the project from the ``origin`` remote and to fabricate the
``pipeline.*`` values sent when compiling config locally.
"""

import logging
import re
import shutil
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from circleci_ng.core.errors import CircleCIError

logger = logging.getLogger(__name__)

GITHUB = "GITHUB"
BITBUCKET = "BITBUCKET"

DEFAULT_BRANCH = "main"
DEFAULT_REVISION = "0" * 40

_VCS_PARSERS = {
    GITHUB: [
        re.compile(r"^(?:ssh://)?git@github\.com[:/](.*)"),
        re.compile(r"https://(?:.*@)?github\.com/(.*)"),
    ],
    BITBUCKET: [
        re.compile(r"^(?:ssh://)?git@bitbucket\.org[:/](.*)"),
        re.compile(r"https://(?:.*@)?bitbucket\.org/(.*)"),
    ],
}

_PROJECT_URLS = {
    GITHUB: ("https://github.com", "github"),
    BITBUCKET: ("https://bitbucket.org", "bitbucket"),
}


@dataclass
class Remote:
    vcs_type: str
    organization: str
    project: str


def find_remote(url: str) -> Remote:
    """Parse a GitHub or Bitbucket remote URL.

    Args:
        url: An ssh or https remote URL

    Returns:
        Remote with the VCS type, organization and project (``.git`` stripped)

    Raises:
        CircleCIError: If the URL matches no known provider
    """
    url = url.strip()
    for vcs_type, patterns in _VCS_PARSERS.items():
        for pattern in patterns:
            match = pattern.search(url)
            if not match:
                continue
            slug = match.group(1)
            parts = slug.split("/")
            if len(parts) != 2:
                raise CircleCIError(f"Splitting '{slug}' into organization and project failed")
            project = parts[1][:-4] if parts[1].endswith(".git") else parts[1]
            return Remote(vcs_type=vcs_type, organization=parts[0], project=project)
    raise CircleCIError(f"Unknown git remote: {url}")


def _git(args: List[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        ["git"] + args,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        timeout=10,
    )


def remote_url(remote_name: str = "origin") -> str:
    if shutil.which("git") is None:
        raise CircleCIError("Could not find 'git' on the path; this command requires git to be installed.")

    status = _git(["status"])
    if status.returncode != 0 and "not a git repository" in status.stdout:
        raise CircleCIError("This command must be run from inside a git repository")

    result = _git(["remote", "get-url", remote_name])
    if result.returncode != 0:
        raise CircleCIError(f"Error finding the {remote_name} git remote: {result.stdout.strip()}")
    return result.stdout.strip()


def infer_project_from_git_remotes() -> Remote:
    """Infer the project from the ``origin`` remote of the current directory."""
    return find_remote(remote_url("origin"))


def _output_or_default(args: List[str], default: str) -> str:
    try:
        result = _git(args)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"git {' '.join(args)} failed: {e}")
        return default
    if result.returncode != 0:
        return default
    return result.stdout.strip()


def branch() -> str:
    return _output_or_default(["rev-parse", "--abbrev-ref", "HEAD"], DEFAULT_BRANCH)


def revision() -> str:
    return _output_or_default(["rev-parse", "HEAD"], DEFAULT_REVISION)


def tag() -> str:
    return _output_or_default(["tag", "--points-at", "HEAD"], "")


PLACEHOLDER_ID = "00000000-0000-0000-0000-000000000001"
PLACEHOLDER_TIME = "2020-01-01T00:00:00Z"


def pipeline_values(parameters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Fabricate ``pipeline.*`` values for a local config compile.

    Git-derived values come from the working directory; anything git cannot
    answer falls back to placeholders. Each entry of ``parameters`` is added
    as ``pipeline.parameters.<name>``.
    """
    git_url = "https://github.com/CircleCI-Public/circleci-cli"
    project_type = "github"
    try:
        remote = infer_project_from_git_remotes()
    except CircleCIError as e:
        logger.debug(f"Could not infer project from git remotes: {e}")
    else:
        base, project_type = _PROJECT_URLS[remote.vcs_type]
        git_url = f"{base}/{remote.organization}/{remote.project}"

    rev = revision()
    values: Dict[str, Any] = {
        "pipeline.id": PLACEHOLDER_ID,
        "pipeline.number": 1,
        "pipeline.name": "",
        "pipeline.project.git_url": git_url,
        "pipeline.project.type": project_type,
        "pipeline.git.tag": tag(),
        "pipeline.git.branch": branch(),
        "pipeline.git.revision": rev,
        "pipeline.git.base_revision": rev,
        "pipeline.git.branch.is_default": False,
        "pipeline.git.commit.author_avatar_url": "",
        "pipeline.git.commit.author_email": "",
        "pipeline.git.commit.author_login": "",
        "pipeline.git.commit.author_name": "",
        "pipeline.git.commit.body": "",
        "pipeline.git.commit.subject": "",
        "pipeline.git.commit.url": "",
        "pipeline.git.repo_id": "",
        "pipeline.git.repo_name": "",
        "pipeline.git.repo_owner": "",
        "pipeline.git.repo_url": git_url,
        "pipeline.git.ssh_checkout_url": "",
        "pipeline.trigger_parameters.circleci.event_time": PLACEHOLDER_TIME,
        "pipeline.trigger_parameters.webhook.body": "",
        "pipeline.trigger_parameters.github_app.branch": DEFAULT_BRANCH,
        "pipeline.trigger_parameters.github_app.checkout_sha": rev,
        "pipeline.trigger_parameters.github_app.commit_sha": rev,
        "pipeline.trigger_parameters.github_app.commit_title": "",
        "pipeline.trigger_parameters.github_app.commit_message": "",
        "pipeline.trigger_parameters.github_app.commit_timestamp": PLACEHOLDER_TIME,
        "pipeline.trigger_parameters.github_app.commit_author_name": "",
        "pipeline.trigger_parameters.github_app.ref": "refs/heads/master",
        "pipeline.trigger_parameters.github_app.repo_name": "",
        "pipeline.trigger_parameters.github_app.repo_url": "",
        "pipeline.trigger_parameters.github_app.total_commits_count": 1,
        "pipeline.trigger_parameters.github_app.user_avatar": "",
        "pipeline.trigger_parameters.github_app.user_id": PLACEHOLDER_ID,
        "pipeline.trigger_parameters.github_app.user_name": "",
        "pipeline.trigger_parameters.github_app.user_username": "",
        "pipeline.trigger_parameters.github_app.web_url": "",
        "pipeline.trigger_parameters.gitlab.commit_sha": rev,
        "pipeline.trigger_parameters.gitlab.default_branch": DEFAULT_BRANCH,
        "pipeline.trigger_parameters.gitlab.x_gitlab_event_id": PLACEHOLDER_ID,
        "pipeline.trigger_parameters.gitlab.is_fork_merge_request": False,
        "pipeline.trigger.type": "",
        "pipeline.trigger.id": PLACEHOLDER_ID,
        "pipeline.trigger.name": "",
        "pipeline.event.name": "",
        "pipeline.event.action": "",
    }
    for name, value in (parameters or {}).items():
        values[f"pipeline.parameters.{name}"] = value
    return values
