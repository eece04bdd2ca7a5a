"""Tests for configuration loading."""

import textwrap

import pytest

from tagproxy.config_loader import (
    DEFAULT_CONFIG_PATH,
    _substitute_env_vars,
    load_config,
    resolve_config_path,
    resolve_env_path,
)
from tagproxy.core.gateway import Gateway
from tagproxy.database import create_database
from tagproxy.credentials import CredentialStore
from tagproxy.testing.proxy_harness import IN_MEMORY_DATABASE


class TestLoadConfig:
    """Tests for load_config."""

    def test_env_file_substitution(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TP_TEST_URL", raising=False)
        config_file = tmp_path / "config_local.yaml"
        config_file.write_text(
            textwrap.dedent(
                """
                upstream:
                  api_url: ${TP_TEST_URL}
                  timeout: 60
                """
            )
        )
        (tmp_path / ".env_local").write_text("TP_TEST_URL=http://from-env-file/drivers/call\n")

        config = load_config(str(config_file))

        assert config["upstream"]["api_url"] == "http://from-env-file/drivers/call"
        assert config["upstream"]["timeout"] == 60

    def test_env_file_wins_over_process_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TP_TEST_MODEL", "from-process")
        config_file = tmp_path / "config.yaml"
        config_file.write_text("upstream:\n  default_model: $TP_TEST_MODEL\n")
        (tmp_path / ".env").write_text("TP_TEST_MODEL=from-file\n")

        assert load_config(str(config_file))["upstream"]["default_model"] == "from-file"

    def test_process_env_is_used(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TP_TEST_MODEL", "from-process")
        config_file = tmp_path / "config.yaml"
        config_file.write_text("upstream:\n  default_model: ${TP_TEST_MODEL}\n")

        assert load_config(str(config_file))["upstream"]["default_model"] == "from-process"

    def test_substitution_can_be_disabled(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TP_TEST_MODEL", "from-process")
        config_file = tmp_path / "config.yaml"
        config_file.write_text("upstream:\n  default_model: ${TP_TEST_MODEL}\n")

        config = load_config(str(config_file), substitute_env=False)
        assert config["upstream"]["default_model"] == "${TP_TEST_MODEL}"

    def test_config_path_from_environment(self, tmp_path, monkeypatch):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("models: [a, b]\n")
        monkeypatch.setenv("TAGPROXY_CONFIG", str(config_file))

        assert load_config()["models"] == ["a", "b"]

    def test_empty_file_is_empty_config(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")
        assert load_config(str(config_file)) == {}

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(RuntimeError, match="Config file not found"):
            load_config(str(tmp_path / "missing.yaml"))

    def test_default_config_builds_a_gateway(self, monkeypatch):
        monkeypatch.delenv("TAGPROXY_CONFIG", raising=False)
        config = load_config()
        database = create_database(dict(IN_MEMORY_DATABASE))
        try:
            gateway = Gateway.from_config(config, CredentialStore(database))
        finally:
            database.close()

        assert gateway.default_model in gateway.models
        assert gateway.max_context_chars == 700_000
        assert gateway.resolver.default.driver == "claude"


class TestSubstituteEnvVars:
    """Tests for _substitute_env_vars."""

    def test_nested_structures(self, monkeypatch):
        monkeypatch.setenv("TP_A", "1")
        data = {"a": ["x-$TP_A", {"b": "${TP_A}"}], "n": 5, "none": None}
        assert _substitute_env_vars(data) == {"a": ["x-1", {"b": "1"}], "n": 5, "none": None}

    def test_unset_variable_is_kept(self, monkeypatch):
        monkeypatch.delenv("TP_UNSET", raising=False)
        assert _substitute_env_vars("${TP_UNSET}") == "${TP_UNSET}"


class TestPaths:
    """Tests for path resolution."""

    def test_default_config_path_exists(self):
        assert resolve_config_path(DEFAULT_CONFIG_PATH).exists()

    def test_absolute_path_unchanged(self, tmp_path):
        assert resolve_config_path(str(tmp_path)) == tmp_path

    def test_env_path_pairing(self, tmp_path):
        assert resolve_env_path(tmp_path / "config_prod.yaml") == tmp_path / ".env_prod"
        assert resolve_env_path(tmp_path / "settings.yaml") == tmp_path / ".env"
