# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Tests for the top-level CLI."""

from unittest.mock import Mock, patch

from typer.testing import CliRunner

from circleci_ng import __version__
from circleci_ng.cli import app
from circleci_ng.core.update import UpdateInfo


class TestCLI:
    """Test cases for the main CLI application."""

    def setup_method(self) -> None:
        self.runner = CliRunner()

    def test_help(self) -> None:
        result = self.runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "Use CircleCI from the command line" in result.output
        for group in ("context", "pipeline", "orb", "config", "policy"):
            assert group in result.output

    def test_version(self) -> None:
        result = self.runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "circleci-ng Information" in result.output
        assert __version__ in result.output

    def test_global_overrides(self, settings) -> None:
        with patch("circleci_ng.commands.info.InfoClient") as mock_client_class:
            mock_client_class.return_value.get_info.return_value = []
            result = self.runner.invoke(
                app,
                ["--host", "https://circleci.example.com", "--token", "cli-token", "info", "org", "-f", "json"],
                obj=settings,
            )

        assert result.exit_code == 0
        assert settings.host == "https://circleci.example.com"
        assert settings.token == "cli-token"

    @patch("circleci_ng.cli.UpdateCheck")
    @patch("circleci_ng.cli.automatic_update_check")
    def test_update_notice(self, mock_check: Mock, mock_update_check: Mock, settings) -> None:
        settings.skip_update_check = False
        mock_check.return_value = UpdateInfo(current="0.1.0", latest="0.2.0")

        with patch("circleci_ng.commands.info.InfoClient"):
            result = self.runner.invoke(app, ["info", "org", "-f", "json"], obj=settings)

        assert result.exit_code == 0
        mock_check.assert_called_once()

    @patch("circleci_ng.cli.automatic_update_check")
    def test_skip_update_check(self, mock_check: Mock, settings) -> None:
        with patch("circleci_ng.commands.info.InfoClient"):
            self.runner.invoke(app, ["info", "org", "-f", "json"], obj=settings)

        mock_check.assert_not_called()
