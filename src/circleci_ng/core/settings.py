# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
Settings management for circleci-ng.

Settings are read from ``~/.circleci/cli.yml`` and may be overridden by
``CIRCLECI_CLI_*`` environment variables and command line flags.
"""

import logging
import os
import ssl
import stat
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import httpx
import yaml

from circleci_ng.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_HOST = "https://circleci.com"
DEFAULT_ENDPOINT = "graphql-unstable"
DEFAULT_REST_ENDPOINT = "api/v2"
DEFAULT_GITHUB_API = "https://api.github.com/"

ENV_PREFIX = "circleci_cli"
CONFIG_FILENAME = "cli.yml"
UPDATE_CHECK_FILENAME = "update_check.yml"


def settings_path() -> Path:
    """Return the directory holding the CLI settings files."""
    return Path.home() / ".circleci"


def read_from_env(prefix: str, name: str) -> str:
    """Read ``<PREFIX>_<NAME>`` from the environment, upper-cased."""
    return os.environ.get(f"{prefix}_{name}".upper(), "")


def ensure_settings_file_exists(path: Path) -> None:
    """Create an empty settings file (and its directory) if it is missing."""
    if path.exists():
        return

    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    path.touch()
    path.chmod(0o600)


@dataclass
class OrbPublishingInfo:
    """Defaults used when publishing orbs."""
    default_namespace: str = ""
    default_vcs_provider: str = ""
    default_owner: str = ""


@dataclass
class Settings:
    """Current state of a CLI instance."""

    host: str = DEFAULT_HOST
    endpoint: str = DEFAULT_ENDPOINT
    rest_endpoint: str = DEFAULT_REST_ENDPOINT
    token: str = ""
    tls_cert: str = ""
    tls_insecure: bool = False
    orb_publishing: OrbPublishingInfo = field(default_factory=OrbPublishingInfo)

    # Runtime only, never written to disk
    debug: bool = False
    skip_update_check: bool = False
    github_api: str = DEFAULT_GITHUB_API
    file_used: Optional[Path] = None

    @classmethod
    def load(cls, settings_dir: Optional[Path] = None) -> "Settings":
        """Read settings from disk, then overlay the environment."""
        settings = cls()
        settings.load_from_disk(settings_dir)
        settings.load_from_env(ENV_PREFIX)
        return settings

    def load_from_disk(self, settings_dir: Optional[Path] = None) -> None:
        """Deserialize the YAML settings file into this instance."""
        path = (settings_dir or settings_path()) / CONFIG_FILENAME
        ensure_settings_file_exists(path)
        self.file_used = path

        try:
            content = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            logger.warning(f"Ignoring unreadable settings file {path}: {e}")
            return

        if isinstance(content, dict):
            self._apply(content)

    def _apply(self, content: Dict[str, Any]) -> None:
        for key in ("host", "endpoint", "rest_endpoint", "token", "tls_cert"):
            value = content.get(key)
            if value:
                setattr(self, key, str(value))
        self.tls_insecure = bool(content.get("tls_insecure", self.tls_insecure))

        publishing = content.get("orb_publishing") or {}
        if isinstance(publishing, dict):
            self.orb_publishing = OrbPublishingInfo(
                default_namespace=publishing.get("default_namespace", "") or "",
                default_vcs_provider=publishing.get("default_vcs_provider", "") or "",
                default_owner=publishing.get("default_owner", "") or "",
            )

    def load_from_env(self, prefix: str) -> None:
        """Override host, endpoints and token from environment variables."""
        for name in ("host", "rest_endpoint", "endpoint", "token"):
            value = read_from_env(prefix, name)
            if value:
                setattr(self, name, value)

    def to_dict(self) -> Dict[str, Any]:
        """Return the fields persisted to the settings file."""
        return {
            "host": self.host,
            "endpoint": self.endpoint,
            "token": self.token,
            "rest_endpoint": self.rest_endpoint,
            "tls_cert": self.tls_cert,
            "tls_insecure": self.tls_insecure,
            "orb_publishing": {
                "default_namespace": self.orb_publishing.default_namespace,
                "default_vcs_provider": self.orb_publishing.default_vcs_provider,
                "default_owner": self.orb_publishing.default_owner,
            },
        }

    def write_to_disk(self) -> None:
        """Serialize the persisted fields back to the settings file."""
        path = self.file_used or settings_path() / CONFIG_FILENAME
        ensure_settings_file_exists(path)
        path.write_text(yaml.safe_dump(self.to_dict(), default_flow_style=False))
        path.chmod(0o600)
        self.file_used = path

    def server_url(self) -> httpx.URL:
        """Resolve the REST endpoint against the host."""
        endpoint = self.rest_endpoint
        if not endpoint.endswith("/"):
            endpoint += "/"
        return httpx.URL(self.host).join(endpoint)

    def http_client(self, timeout: float = 60.0) -> httpx.Client:
        """Build an HTTP client honouring the TLS settings."""
        verify: Any = True
        if self.tls_insecure:
            verify = False
        elif self.tls_cert:
            validate_tls_cert_path(self.tls_cert)
            try:
                verify = ssl.create_default_context(cafile=self.tls_cert)
            except (OSError, ssl.SSLError) as e:
                raise ConfigurationError(f"unable to read tls cert: {e}") from e

        return httpx.Client(
            timeout=httpx.Timeout(timeout, connect=10.0),
            verify=verify,
            limits=httpx.Limits(max_keepalive_connections=10, keepalive_expiry=90.0),
        )


def validate_tls_cert_path(cert_path: str) -> None:
    """Ensure a TLS certificate path is a file that nobody else can rewrite."""
    path = Path(cert_path)
    if not path.exists():
        raise ConfigurationError(f"invalid tls cert provided: {cert_path} does not exist")
    if path.is_dir():
        raise ConfigurationError("invalid tls cert provided: provided TLSCert path must be a file")

    if sys.platform == "win32":
        return

    current = path
    while str(current) not in (".", "/", ""):
        if current.stat().st_mode & stat.S_IWOTH:
            raise ConfigurationError(f"invalid tls cert provided: {current} cannot be world-writable")
        if current.parent == current:
            break
        current = current.parent


@dataclass
class UpdateCheck:
    """Bookkeeping for the self-update check."""

    last_update_check: Optional[datetime] = None
    file_used: Optional[Path] = None

    @classmethod
    def load(cls, settings_dir: Optional[Path] = None) -> "UpdateCheck":
        path = (settings_dir or settings_path()) / UPDATE_CHECK_FILENAME
        ensure_settings_file_exists(path)
        check = cls(file_used=path)

        try:
            content = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            logger.warning(f"Ignoring unreadable update check file {path}: {e}")
            return check

        if isinstance(content, dict):
            value = content.get("last_update_check")
            if isinstance(value, datetime):
                check.last_update_check = value
            elif isinstance(value, str):
                try:
                    check.last_update_check = datetime.fromisoformat(value)
                except ValueError:
                    logger.debug(f"Unparsable last_update_check value: {value}")
        return check

    def write_to_disk(self) -> None:
        if self.file_used is None:
            self.file_used = settings_path() / UPDATE_CHECK_FILENAME
        ensure_settings_file_exists(self.file_used)
        stamp = self.last_update_check.isoformat() if self.last_update_check else None
        self.file_used.write_text(yaml.safe_dump({"last_update_check": stamp}))
        self.file_used.chmod(0o600)
