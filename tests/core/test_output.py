# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Tests for core output module."""

import json
from unittest.mock import patch

import pytest
import yaml

from circleci_ng.core.output import _format_field_value, _get_field_value, format_and_output

ROWS = [
    {"name": "deploy", "created_at": "2025-01-01", "owner": {"slug": "gh/acme"}},
    {"name": "test", "created_at": "2025-01-02", "owner": {"slug": "gh/other"}},
]


class TestOutputFormatting:
    """Test output formatting functionality."""

    def test_format_and_output_table(self) -> None:
        with patch("rich.console.Console.print") as mock_print:
            format_and_output(ROWS, "table", {"title": "Contexts", "columns": ["name"]})
            mock_print.assert_called_once()

    def test_empty_table(self) -> None:
        with patch("rich.console.Console.print") as mock_print:
            format_and_output([], "table")
            mock_print.assert_called_once_with("[yellow]No data to display[/yellow]")

    def test_format_and_output_json(self, capsys) -> None:
        format_and_output(ROWS, "json")
        assert json.loads(capsys.readouterr().out) == ROWS

    def test_format_and_output_json_pretty(self, capsys) -> None:
        format_and_output(ROWS, "json-pretty")
        out = capsys.readouterr().out
        assert '\n  {\n    "name": "deploy"' in out

    def test_format_and_output_yaml(self, capsys) -> None:
        format_and_output({"name": "nightly"}, "yaml")
        assert yaml.safe_load(capsys.readouterr().out) == {"name": "nightly"}

    def test_format_and_output_tsv(self, capsys) -> None:
        config = {"columns": [{"name": "Name", "field": "name"}, {"name": "Owner", "field": "owner.slug"}]}
        format_and_output(ROWS, "tsv", config)
        assert capsys.readouterr().out == "deploy\tgh/acme\ntest\tgh/other\n"

    def test_unknown_format(self) -> None:
        with pytest.raises(ValueError, match="Unsupported output format: xml"):
            format_and_output(ROWS, "xml")


class TestFieldHelpers:
    def test_nested_field_value(self) -> None:
        assert _get_field_value(ROWS[0], "owner.slug") == "gh/acme"
        assert _get_field_value(ROWS[0], "owner.missing.deeper") == ""

    def test_format_field_value(self) -> None:
        assert _format_field_value(True) == "Yes"
        assert _format_field_value([1, 2]) == "1, 2"
        assert _format_field_value([1, 2], "count") == "2"
        assert _format_field_value({"a": 1}) == '{"a": 1}'
        assert _format_field_value(None) == ""
