# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Core modules for circleci-ng."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from circleci_ng.core.graphql import GraphQLClient
    from circleci_ng.core.orbs import OrbClient

__all__ = ["GraphQLClient", "OrbClient"]


def __getattr__(name: str) -> Any:
    """Lazy import for core modules."""
    if name == "GraphQLClient":
        from circleci_ng.core.graphql import GraphQLClient
        return GraphQLClient
    elif name == "OrbClient":
        from circleci_ng.core.orbs import OrbClient
        return OrbClient
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
