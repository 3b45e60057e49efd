# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Tests for schedule CLI commands."""

from unittest.mock import Mock, patch

import pytest
import typer
import yaml
from typer.testing import CliRunner

from circleci_ng.commands.schedule import parse_days, parse_hours, schedule_app
from circleci_ng.core.schedules import Schedule, Timetable

NIGHTLY = Schedule(
    id="sched-1",
    project_slug="gh/acme/app",
    name="nightly",
    timetable=Timetable(per_hour=1, hours_of_day=[3], days_of_week=["MON"]),
)


class TestTimetableOptions:
    def test_parse_hours(self) -> None:
        assert parse_hours(["1,2", "23"]) == [1, 2, 23]
        with pytest.raises(typer.BadParameter):
            parse_hours(["24"])
        with pytest.raises(typer.BadParameter):
            parse_hours(["-1"])

    def test_parse_days(self) -> None:
        assert parse_days(["mon,TUE"]) == ["MON", "TUE"]
        with pytest.raises(typer.BadParameter):
            parse_days(["funday"])


class TestScheduleCommands:
    """Test cases for schedule CLI commands."""

    def setup_method(self) -> None:
        self.runner = CliRunner()

    @patch("circleci_ng.commands.schedule.ScheduleRestClient")
    def test_list(self, mock_client_class: Mock, settings) -> None:
        mock_client_class.return_value.schedules.return_value = [NIGHTLY]

        result = self.runner.invoke(schedule_app, ["list", "gh/acme/app", "-f", "tsv"], obj=settings)

        assert result.exit_code == 0
        assert result.output.startswith("sched-1\tnightly\t1\t3\tMON")
        mock_client_class.return_value.schedules.assert_called_once_with("gh", "acme", "app")

    @patch("circleci_ng.commands.schedule.ScheduleRestClient")
    def test_get_by_id(self, mock_client_class: Mock, settings) -> None:
        mock_client_class.return_value.schedule_by_id.return_value = NIGHTLY

        result = self.runner.invoke(schedule_app, ["get", "sched-1"], obj=settings)

        assert result.exit_code == 0
        assert yaml.safe_load(result.output)["name"] == "nightly"

    @patch("circleci_ng.commands.schedule.ScheduleRestClient")
    def test_get_by_name_missing(self, mock_client_class: Mock, settings) -> None:
        mock_client_class.return_value.schedule_by_name.return_value = None

        result = self.runner.invoke(schedule_app, ["get", "weekly", "--project", "gh/acme/app"], obj=settings)

        assert result.exit_code == 1
        assert "no schedule named 'weekly'" in result.output

    @patch("circleci_ng.commands.schedule.ScheduleRestClient")
    def test_create(self, mock_client_class: Mock, settings) -> None:
        mock_client_class.return_value.create_schedule.return_value = NIGHTLY

        result = self.runner.invoke(
            schedule_app,
            [
                "create", "gh/acme/app",
                "--name", "nightly",
                "--hours-of-day", "3",
                "--days-of-week", "mon",
                "--parameters", "env=prod",
                "--use-scheduling-system",
                "--format", "table",
            ],
            obj=settings,
        )

        assert result.exit_code == 0
        assert "Created schedule nightly (sched-1)" in result.output
        args = mock_client_class.return_value.create_schedule.call_args[0]
        assert args[:6] == ("gh", "acme", "app", "nightly", "", True)
        assert args[6] == Timetable(per_hour=1, hours_of_day=[3], days_of_week=["MON"])
        assert args[7] == {"env": "prod"}

    @patch("circleci_ng.commands.schedule.ScheduleRestClient")
    def test_create_needs_timetable(self, mock_client_class: Mock, settings) -> None:
        result = self.runner.invoke(schedule_app, ["create", "gh/acme/app", "--name", "nightly"], obj=settings)

        assert result.exit_code == 2
        mock_client_class.return_value.create_schedule.assert_not_called()

    @patch("circleci_ng.commands.schedule.ScheduleRestClient")
    def test_update(self, mock_client_class: Mock, settings) -> None:
        mock_client_class.return_value.update_schedule.return_value = NIGHTLY

        result = self.runner.invoke(schedule_app, ["update", "sched-1", "--description", "3am"], obj=settings)

        assert result.exit_code == 0
        kwargs = mock_client_class.return_value.update_schedule.call_args[1]
        assert kwargs["description"] == "3am"
        assert kwargs["timetable"].is_empty()

    @patch("circleci_ng.commands.schedule.prompt.ask_confirm", return_value=False)
    @patch("circleci_ng.commands.schedule.ScheduleRestClient")
    def test_delete_cancelled(self, mock_client_class: Mock, mock_confirm: Mock, settings) -> None:
        result = self.runner.invoke(schedule_app, ["delete", "sched-1"], obj=settings)

        assert result.exit_code == 1
        assert "OK, cancelling" in result.output
        mock_client_class.return_value.delete_schedule.assert_not_called()

    @patch("circleci_ng.commands.schedule.ScheduleRestClient")
    def test_delete_forced(self, mock_client_class: Mock, settings) -> None:
        result = self.runner.invoke(schedule_app, ["delete", "sched-1", "--force"], obj=settings)

        assert result.exit_code == 0
        mock_client_class.return_value.delete_schedule.assert_called_once_with("sched-1")
