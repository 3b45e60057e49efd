# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Interactive input for flags the user did not pass."""

import sys

from rich.prompt import Confirm, Prompt


def read_string(message: str, default: str = "") -> str:
    """Ask for a value, returning ``default`` on an empty answer."""
    return Prompt.ask(message, default=default or None) or ""


def ask_confirm(message: str, default: bool = False) -> bool:
    return Confirm.ask(message, default=default)


def read_secret(message: str) -> str:
    """Read a secret from piped stdin, or prompt for it without echo.

    Trailing newlines are stripped either way.
    """
    if not sys.stdin.isatty():
        value = sys.stdin.read()
    else:
        value = Prompt.ask(message, password=True)
    return value.strip("\r\n")
