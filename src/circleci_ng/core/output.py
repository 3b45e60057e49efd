# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Output formatting shared by the circleci-ng commands."""

import json
import sys
from typing import Any, Dict, List, Optional, Union

import yaml
from rich.console import Console
from rich.table import Table

console = Console()


def format_and_output(
    data: Union[List[Dict[str, Any]], Dict[str, Any]],
    output_format: str = "table",
    table_config: Optional[Dict[str, Any]] = None,
) -> None:
    """Render a list of records in the requested format.

    Args:
        data: Records to output
        output_format: One of table, json, json-pretty, yaml or tsv
        table_config: Columns and title for table and tsv output. Columns
            are either field names or dicts with ``name``, ``field`` and
            optional ``style``/``format`` keys.
    """
    if output_format == "json":
        print(json.dumps(data, separators=(",", ":")), file=sys.stdout)
    elif output_format == "json-pretty":
        print(json.dumps(data, indent=2), file=sys.stdout)
    elif output_format == "yaml":
        print(yaml.safe_dump(data, default_flow_style=False), end="", file=sys.stdout)
    elif output_format == "tsv":
        _output_tsv(data, table_config or {})
    elif output_format == "table":
        _output_table(data, table_config or {})
    else:
        raise ValueError(f"Unsupported output format: {output_format}")


def _columns(data: List[Dict[str, Any]], config: Dict[str, Any]) -> List[Any]:
    columns = config.get("columns", [])
    if not columns and data:
        columns = _auto_detect_columns(data)
    return columns


def _column_field(col: Any) -> str:
    if isinstance(col, dict):
        return col.get("field", col.get("name", "")) or ""
    return str(col)


def _column_title(col: Any) -> str:
    if isinstance(col, dict):
        return col.get("name", "")
    return str(col).replace("_", " ").title()


def _row(item: Dict[str, Any], columns: List[Any]) -> List[str]:
    return [
        _format_field_value(_get_field_value(item, _column_field(col)), col.get("format") if isinstance(col, dict) else None)
        for col in columns
    ]


def _output_table(data: List[Dict[str, Any]], config: Dict[str, Any]) -> None:
    """Output data as a rich table."""
    columns = _columns(data, config)
    if not data and not columns:
        console.print("[yellow]No data to display[/yellow]")
        return

    table = Table(title=config.get("title", ""))
    for col in columns:
        if isinstance(col, dict):
            table.add_column(
                _column_title(col),
                style=col.get("style", ""),
                no_wrap=col.get("no_wrap", False),
                justify=col.get("justify", "left"),
            )
        else:
            table.add_column(_column_title(col))

    for item in data:
        table.add_row(*_row(item, columns))

    console.print(table)


def _output_tsv(data: List[Dict[str, Any]], config: Dict[str, Any]) -> None:
    """Output data as tab separated values, one record per line, no header."""
    columns = _columns(data, config)
    for item in data:
        print("\t".join(_row(item, columns)), file=sys.stdout)


def _auto_detect_columns(data: List[Dict[str, Any]]) -> List[str]:
    all_keys: set = set()
    for item in data:
        all_keys.update(item.keys())
    return sorted(all_keys)


def _get_field_value(item: Dict[str, Any], field_path: str) -> Any:
    """Get field value with support for nested fields using dot notation."""
    if "." not in field_path:
        return item.get(field_path, "")

    current: Any = item
    for part in field_path.split("."):
        if not isinstance(current, dict):
            return ""
        current = current.get(part)
        if current is None:
            return ""
    return current


def _format_field_value(value: Any, format_type: Optional[str] = None) -> str:
    if value is None:
        return ""

    if isinstance(value, list):
        if format_type == "count":
            return str(len(value))
        return ", ".join(str(v) for v in value)

    if isinstance(value, dict):
        if format_type == "keys":
            return ", ".join(value.keys())
        if format_type == "count":
            return str(len(value))
        return json.dumps(value)

    if isinstance(value, bool):
        return "Yes" if value else "No"

    return str(value)
