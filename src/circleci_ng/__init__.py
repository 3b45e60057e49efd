# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""circleci-ng: command-line client for the CircleCI REST and GraphQL APIs."""

__version__ = "0.1.0"
__author__ = "circleci-ng developers"

from circleci_ng.core.rest import RestClient
from circleci_ng.core.settings import Settings

__all__ = ["RestClient", "Settings"]
