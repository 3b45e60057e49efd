# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Command modules for circleci-ng."""

from circleci_ng.commands.context import context_app
from circleci_ng.commands.orb import namespace_app, orb_app
from circleci_ng.commands.pipeline import pipeline_app
from circleci_ng.commands.project import project_app

__all__ = ["context_app", "namespace_app", "orb_app", "pipeline_app", "project_app"]
