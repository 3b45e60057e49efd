# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Exception types raised by the API clients."""

from http import HTTPStatus
from typing import Any, Dict, List, Optional


class CircleCIError(Exception):
    """Base class for all circleci-ng errors."""


class ConfigurationError(CircleCIError):
    """Raised when local settings are invalid."""


class APIError(CircleCIError):
    """Raised when the API returns an unexpected or malformed response."""


class NotFoundError(CircleCIError):
    """Raised when a named resource cannot be found."""


class HTTPError(APIError):
    """An HTTP error status returned by the REST API."""

    def __init__(self, code: int, message: str = "") -> None:
        self.code = code or HTTPStatus.INTERNAL_SERVER_ERROR
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.message:
            return self.message
        try:
            reason = HTTPStatus(self.code).phrase
        except ValueError:
            reason = "Unknown"
        return f"response {self.code} ({reason})"


class GraphQLResponseError(APIError):
    """Errors returned by the GraphQL server out-of-band from the data."""

    def __init__(self, errors: List[Dict[str, Any]]) -> None:
        self.errors = errors
        super().__init__("\n".join(str(e.get("message", "")) for e in errors))

    @property
    def first_extensions(self) -> Optional[Dict[str, Any]]:
        if not self.errors:
            return None
        extensions = self.errors[0].get("extensions")
        return extensions if isinstance(extensions, dict) else None
