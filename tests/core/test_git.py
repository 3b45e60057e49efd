# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Tests for git remote introspection."""

import subprocess
from unittest.mock import patch

import pytest

from circleci_ng.core import git
from circleci_ng.core.errors import CircleCIError


class TestFindRemote:
    @pytest.mark.parametrize(
        "url, expected",
        [
            ("git@github.com:acme/app.git", ("GITHUB", "acme", "app")),
            ("ssh://git@github.com/acme/app.git", ("GITHUB", "acme", "app")),
            ("https://github.com/acme/app", ("GITHUB", "acme", "app")),
            ("https://user@github.com/acme/app.git", ("GITHUB", "acme", "app")),
            ("git@bitbucket.org:team/repo.git", ("BITBUCKET", "team", "repo")),
            ("https://bitbucket.org/team/repo", ("BITBUCKET", "team", "repo")),
        ],
    )
    def test_known_remotes(self, url, expected) -> None:
        remote = git.find_remote(url)
        assert (remote.vcs_type, remote.organization, remote.project) == expected

    def test_unknown_remote(self) -> None:
        with pytest.raises(CircleCIError, match="Unknown git remote"):
            git.find_remote("https://gitlab.com/acme/app.git")

    def test_too_many_segments(self) -> None:
        with pytest.raises(CircleCIError, match="Splitting 'acme/sub/app' into organization and project failed"):
            git.find_remote("https://github.com/acme/sub/app")


def _completed(returncode: int, stdout: str) -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=["git"], returncode=returncode, stdout=stdout)


class TestPipelineValues:
    @patch("circleci_ng.core.git._git")
    def test_defaults_when_git_fails(self, mock_git) -> None:
        mock_git.return_value = _completed(128, "fatal: not a git repository")
        assert git.branch() == git.DEFAULT_BRANCH
        assert git.revision() == "0" * 40
        assert git.tag() == ""

    @patch("circleci_ng.core.git.revision", return_value="abc123")
    @patch("circleci_ng.core.git.branch", return_value="feature")
    @patch("circleci_ng.core.git.tag", return_value="")
    @patch("circleci_ng.core.git.infer_project_from_git_remotes")
    def test_values_from_remote(self, mock_infer, mock_tag, mock_branch, mock_revision) -> None:
        mock_infer.return_value = git.Remote(git.BITBUCKET, "team", "repo")

        values = git.pipeline_values()

        assert values["pipeline.project.git_url"] == "https://bitbucket.org/team/repo"
        assert values["pipeline.project.type"] == "bitbucket"
        assert values["pipeline.git.branch"] == "feature"
        assert values["pipeline.git.revision"] == "abc123"
        assert values["pipeline.git.base_revision"] == "abc123"

    @patch("circleci_ng.core.git.infer_project_from_git_remotes", side_effect=CircleCIError("no remote"))
    @patch("circleci_ng.core.git._git", return_value=_completed(1, ""))
    def test_values_without_remote(self, mock_git, mock_infer) -> None:
        values = git.pipeline_values()
        assert values["pipeline.project.type"] == "github"
        assert values["pipeline.git.branch"] == "main"

    @patch("circleci_ng.core.git.revision", return_value="abc123")
    @patch("circleci_ng.core.git.branch", return_value="main")
    @patch("circleci_ng.core.git.tag", return_value="")
    @patch("circleci_ng.core.git.infer_project_from_git_remotes", side_effect=CircleCIError("no remote"))
    def test_trigger_and_event_values(self, mock_infer, mock_tag, mock_branch, mock_revision) -> None:
        values = git.pipeline_values()

        assert values["pipeline.name"] == ""
        assert values["pipeline.git.branch.is_default"] is False
        assert values["pipeline.git.commit.subject"] == ""
        assert values["pipeline.git.ssh_checkout_url"] == ""
        assert values["pipeline.trigger_parameters.circleci.event_time"] == "2020-01-01T00:00:00Z"
        assert values["pipeline.trigger_parameters.webhook.body"] == ""
        assert values["pipeline.trigger_parameters.github_app.branch"] == "main"
        assert values["pipeline.trigger_parameters.github_app.checkout_sha"] == "abc123"
        assert values["pipeline.trigger_parameters.gitlab.commit_sha"] == "abc123"
        assert values["pipeline.trigger_parameters.gitlab.is_fork_merge_request"] is False
        assert values["pipeline.trigger.id"] == "00000000-0000-0000-0000-000000000001"
        assert values["pipeline.event.action"] == ""
        assert not any(key.startswith("pipeline.parameters.") for key in values)

    @patch("circleci_ng.core.git.infer_project_from_git_remotes", side_effect=CircleCIError("no remote"))
    @patch("circleci_ng.core.git._git", return_value=_completed(1, ""))
    def test_parameters_are_prefixed(self, mock_git, mock_infer) -> None:
        values = git.pipeline_values({"deploy": True, "env": "prod"})

        assert values["pipeline.parameters.deploy"] is True
        assert values["pipeline.parameters.env"] == "prod"
