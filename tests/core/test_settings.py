# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Tests for settings loading and persistence."""

import pathlib

import pytest
import yaml

from circleci_ng.core.errors import ConfigurationError
from circleci_ng.core.settings import DEFAULT_HOST, Settings, validate_tls_cert_path


class TestSettings:
    def test_load_creates_missing_file(self, tmp_path: pathlib.Path, monkeypatch) -> None:
        monkeypatch.delenv("CIRCLECI_CLI_TOKEN", raising=False)
        monkeypatch.delenv("CIRCLECI_CLI_HOST", raising=False)

        settings = Settings.load(tmp_path / "home")

        assert settings.host == DEFAULT_HOST
        assert settings.token == ""
        assert (tmp_path / "home" / "cli.yml").exists()

    def test_load_from_disk_and_env(self, tmp_path: pathlib.Path, monkeypatch) -> None:
        (tmp_path / "cli.yml").write_text(
            yaml.safe_dump({
                "host": "https://circleci.example.com",
                "token": "disk-token",
                "orb_publishing": {"default_namespace": "acme"},
            })
        )
        monkeypatch.setenv("CIRCLECI_CLI_TOKEN", "env-token")
        monkeypatch.delenv("CIRCLECI_CLI_HOST", raising=False)

        settings = Settings.load(tmp_path)

        assert settings.host == "https://circleci.example.com"
        assert settings.token == "env-token"
        assert settings.orb_publishing.default_namespace == "acme"

    def test_unreadable_file_is_ignored(self, tmp_path: pathlib.Path, monkeypatch) -> None:
        monkeypatch.delenv("CIRCLECI_CLI_HOST", raising=False)
        (tmp_path / "cli.yml").write_text("host: [unterminated\n")
        assert Settings.load(tmp_path).host == DEFAULT_HOST

    def test_write_to_disk(self, tmp_path: pathlib.Path) -> None:
        settings = Settings(token="abc", file_used=tmp_path / "cli.yml", debug=True)
        settings.write_to_disk()

        written = yaml.safe_load((tmp_path / "cli.yml").read_text())
        assert written["token"] == "abc"
        assert "debug" not in written
        assert (tmp_path / "cli.yml").stat().st_mode & 0o777 == 0o600

    def test_server_url(self) -> None:
        assert str(Settings(host="https://example.com", rest_endpoint="api/v2").server_url()) == "https://example.com/api/v2/"


class TestTLSCert:
    def test_missing_cert(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(ConfigurationError):
            validate_tls_cert_path(str(tmp_path / "missing.pem"))

    def test_world_writable_cert(self, tmp_path: pathlib.Path) -> None:
        cert = tmp_path / "ca.pem"
        cert.write_text("cert")
        cert.chmod(0o666)
        with pytest.raises(ConfigurationError, match="cannot be world-writable"):
            validate_tls_cert_path(str(cert))
