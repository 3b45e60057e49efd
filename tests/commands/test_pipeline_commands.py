# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Tests for pipeline CLI commands."""

from unittest.mock import Mock, patch

import pytest
import typer
from typer.testing import CliRunner

from circleci_ng.commands.pipeline import parse_parameters, pipeline_app
from circleci_ng.core.pipelines import Pipeline, PipelineDefinition, PipelineRunResponse, Workflow
from circleci_ng.core.projects import ProjectInfo


class TestParseParameters:
    def test_key_values(self) -> None:
        assert parse_parameters(["env=prod", "url=a=b"]) == {"env": "prod", "url": "a=b"}
        assert parse_parameters(None) == {}

    def test_invalid(self) -> None:
        with pytest.raises(typer.BadParameter):
            parse_parameters(["novalue"])


class TestPipelineCommands:
    """Test cases for pipeline CLI commands."""

    def setup_method(self) -> None:
        self.runner = CliRunner()

    @patch("circleci_ng.commands.pipeline.PipelineRestClient")
    def test_list_definitions(self, mock_client_class: Mock, settings) -> None:
        mock_client_class.return_value.list_pipeline_definitions.return_value = [
            PipelineDefinition(id="def-1", name="build", config_file_path=".circleci/config.yml")
        ]

        result = self.runner.invoke(pipeline_app, ["list", "proj-1"], obj=settings)

        assert result.exit_code == 0
        assert "def-1" in result.output
        assert "build" in result.output

    @patch("circleci_ng.commands.pipeline.PipelineRestClient")
    def test_list_definitions_empty(self, mock_client_class: Mock, settings) -> None:
        mock_client_class.return_value.list_pipeline_definitions.return_value = []

        result = self.runner.invoke(pipeline_app, ["list", "proj-1"], obj=settings)

        assert result.exit_code == 0
        assert "No pipeline definitions found" in result.output

    @patch("circleci_ng.commands.pipeline.ProjectRestClient")
    @patch("circleci_ng.commands.pipeline.PipelineRestClient")
    def test_definitions_by_slug(self, mock_client_class: Mock, mock_project_class: Mock, settings) -> None:
        mock_project_class.return_value.project_info.return_value = ProjectInfo(id="proj-1")
        mock_client_class.return_value.list_pipeline_definitions.return_value = []

        result = self.runner.invoke(pipeline_app, ["definitions", "list", "gh/acme/app", "-f", "json"], obj=settings)

        assert result.exit_code == 0
        assert result.output.strip() == "[]"
        mock_client_class.return_value.list_pipeline_definitions.assert_called_once_with("proj-1")

    @patch("circleci_ng.commands.pipeline.prompt")
    @patch("circleci_ng.commands.pipeline.PipelineRestClient")
    def test_create_definition_with_flags(self, mock_client_class: Mock, mock_prompt: Mock, settings) -> None:
        mock_client_class.return_value.create_pipeline_definition.return_value = PipelineDefinition(
            id="def-1", name="build", checkout_source_repo="acme/app", config_source_repo="acme/app"
        )

        result = self.runner.invoke(
            pipeline_app,
            ["create", "proj-1", "--name", "build", "--repo-id", "123", "--config-repo-id", "123", "--file-path", "ci.yml"],
            obj=settings,
        )

        assert result.exit_code == 0
        assert "Pipeline 'build' successfully created for repository 'acme/app'" in result.output
        mock_prompt.ask_confirm.assert_not_called()
        mock_client_class.return_value.create_pipeline_definition.assert_called_once_with(
            "proj-1", "build", "", "123", "123", "ci.yml"
        )

    @patch("circleci_ng.commands.pipeline.prompt")
    @patch("circleci_ng.commands.pipeline.PipelineRestClient")
    def test_create_definition_prompts(self, mock_client_class: Mock, mock_prompt: Mock, settings) -> None:
        mock_prompt.ask_confirm.return_value = False
        mock_prompt.read_string.side_effect = ["build", "123", ".circleci/config.yml"]
        mock_client_class.return_value.create_pipeline_definition.return_value = PipelineDefinition(
            id="def-1", name="build", checkout_source_repo="acme/app"
        )

        result = self.runner.invoke(pipeline_app, ["create", "proj-1"], obj=settings)

        assert result.exit_code == 0
        mock_client_class.return_value.create_pipeline_definition.assert_called_once_with(
            "proj-1", "build", "", "123", "123", ".circleci/config.yml"
        )

    @patch("circleci_ng.commands.pipeline.PipelineRestClient")
    def test_run_with_local_config(self, mock_client_class: Mock, settings, tmp_path) -> None:
        config = tmp_path / "config.yml"
        config.write_text("version: 2.1\n")
        mock_client_class.return_value.run_pipeline.return_value = PipelineRunResponse(
            id="pipe-1", number=42, state="created", created_at="2025-01-01"
        )

        result = self.runner.invoke(
            pipeline_app,
            [
                "run", "circleci/acme", "proj-1",
                "--pipeline-definition-id", "def-1",
                "--local-config-file", str(config),
                "--checkout-branch", "main",
                "--parameters", "env=prod",
            ],
            obj=settings,
        )

        assert result.exit_code == 0
        assert "Pipeline created successfully" in result.output
        assert "Pipeline Number: 42" in result.output
        options = mock_client_class.return_value.run_pipeline.call_args[0][0]
        assert options.organization == "acme"
        assert options.config_branch == "cli-run"
        assert options.config_file_path == str(config)
        assert options.parameters == {"env": "prod"}

    @patch("circleci_ng.commands.pipeline.PipelineRestClient")
    def test_run_with_empty_local_config(self, mock_client_class: Mock, settings, tmp_path) -> None:
        config = tmp_path / "config.yml"
        config.write_text("")

        result = self.runner.invoke(
            pipeline_app,
            ["run", "acme", "proj-1", "--pipeline-definition-id", "def-1", "--local-config-file", str(config)],
            obj=settings,
        )

        assert result.exit_code == 1
        assert "config file is empty" in result.output
        mock_client_class.return_value.run_pipeline.assert_not_called()

    @patch("circleci_ng.commands.pipeline.prompt")
    @patch("circleci_ng.commands.pipeline.PipelineRestClient")
    def test_run_with_repo_config_prompts_for_refs(self, mock_client_class: Mock, mock_prompt: Mock, settings) -> None:
        mock_prompt.read_string.side_effect = ["", "v1.0", "main"]
        mock_client_class.return_value.run_pipeline.return_value = PipelineRunResponse(message="No workflows to run")

        result = self.runner.invoke(
            pipeline_app,
            ["run", "acme", "proj-1", "--pipeline-definition-id", "def-1", "--repo-config"],
            obj=settings,
        )

        assert result.exit_code == 0
        assert "Message: No workflows to run" in result.output
        options = mock_client_class.return_value.run_pipeline.call_args[0][0]
        assert (options.config_branch, options.config_tag) == ("", "v1.0")
        assert options.checkout_branch == "main"
        assert options.config_file_path == ""

    @patch("circleci_ng.commands.pipeline.PipelineRestClient")
    def test_workflows_default_tsv(self, mock_client_class: Mock, settings) -> None:
        mock_client_class.return_value.list_workflows.return_value = [
            Workflow(id="wf-1", name="build", status="success")
        ]

        result = self.runner.invoke(pipeline_app, ["workflows", "pipe-1"], obj=settings)

        assert result.exit_code == 0
        assert result.output == "wf-1\tbuild\tsuccess\n"

    @patch("circleci_ng.commands.pipeline.PipelineRestClient")
    def test_latest_run(self, mock_client_class: Mock, settings) -> None:
        mock_client_class.return_value.latest_pipeline.return_value = Pipeline(id="pipe-9", number=9)

        result = self.runner.invoke(pipeline_app, ["runs", "latest", "gh/acme/app", "--branch", "main"], obj=settings)

        assert result.exit_code == 0
        assert result.output == "pipe-9\t9\n"
        mock_client_class.return_value.latest_pipeline.assert_called_once_with("gh/acme/app", "main")

    @patch("circleci_ng.commands.pipeline.PipelineRestClient")
    def test_list_runs(self, mock_client_class: Mock, settings) -> None:
        mock_client_class.return_value.list_all_pipelines.return_value = [
            Pipeline(id="pipe-2", number=2, state="created", branch="main")
        ]

        result = self.runner.invoke(pipeline_app, ["runs", "list", "gh/acme/app", "-f", "tsv"], obj=settings)

        assert result.exit_code == 0
        assert result.output.startswith("pipe-2\t2\tcreated\tmain\t")
