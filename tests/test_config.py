"""Tests for configuration loading and precedence."""

import pytest

from minibank_console.core.config import (
    DEFAULT_API_URL,
    DEFAULT_TIMEOUT,
    AppConfig,
    BackendProfile,
    load_config,
    resolve_config,
)
from minibank_console.core.exceptions import ConfigError

SAMPLE_CONFIG = """\
api_url = "http://bank.internal:9000/"
default_format = "json"
default_profile = "staging"

[profiles.staging]
api_url = "https://staging.bank.example"
timeout = 10

[profiles.local]
api_url = "http://127.0.0.1:8080"
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(SAMPLE_CONFIG)
    return path


@pytest.mark.unit
class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "nope.toml")
        assert config.api_url == DEFAULT_API_URL
        assert config.profiles == {}

    def test_reads_toml(self, config_file):
        config = load_config(config_file)
        assert config.api_url == "http://bank.internal:9000"
        assert config.default_format == "json"
        assert config.profiles["staging"].timeout == 10.0

    def test_malformed_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("api_url = [unclosed")
        with pytest.raises(ConfigError, match="Malformed TOML"):
            load_config(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text('api_url = "ftp://bank"\n')
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)


@pytest.mark.unit
class TestValidation:
    def test_rejects_url_without_host(self):
        with pytest.raises(ValueError, match="Invalid API URL"):
            BackendProfile(api_url="http://")

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValueError, match="Must be greater than 0"):
            BackendProfile(timeout=0)


@pytest.mark.unit
class TestResolveConfig:
    def test_builtin_defaults(self):
        resolved = resolve_config(AppConfig())
        assert resolved.api_url == DEFAULT_API_URL
        assert resolved.timeout == DEFAULT_TIMEOUT
        assert resolved.sources["api_url"] == "default"
        assert resolved.active_profile is None

    def test_config_file_layer(self):
        resolved = resolve_config(AppConfig(api_url="http://bank:1"))
        assert resolved.api_url == "http://bank:1"
        assert resolved.sources["api_url"] == "config"
        assert resolved.sources["timeout"] == "default"

    def test_default_profile_applies(self, config_file):
        resolved = resolve_config(load_config(config_file))
        assert resolved.active_profile == "staging"
        assert resolved.api_url == "https://staging.bank.example"
        assert resolved.timeout == 10.0
        assert resolved.sources["api_url"] == "profile: staging"

    def test_profile_only_overrides_what_it_sets(self, config_file):
        resolved = resolve_config(load_config(config_file), profile_name="local")
        assert resolved.api_url == "http://127.0.0.1:8080"
        assert resolved.timeout == DEFAULT_TIMEOUT
        assert resolved.sources["timeout"] == "default"

    def test_profile_from_env(self, config_file, monkeypatch):
        monkeypatch.setenv("MINIBANK_PROFILE", "local")
        resolved = resolve_config(load_config(config_file))
        assert resolved.active_profile == "local"

    def test_unknown_profile(self, config_file):
        with pytest.raises(ConfigError, match="Unknown profile: 'prod'"):
            resolve_config(load_config(config_file), profile_name="prod")

    def test_env_beats_profile(self, config_file, monkeypatch):
        monkeypatch.setenv("MINIBANK_API_URL", "http://env-host:1234/")
        monkeypatch.setenv("MINIBANK_TIMEOUT", "2.5")
        resolved = resolve_config(load_config(config_file))
        assert resolved.api_url == "http://env-host:1234"
        assert resolved.timeout == 2.5
        assert resolved.sources["api_url"] == "env: MINIBANK_API_URL"

    def test_bad_env_value(self, monkeypatch):
        monkeypatch.setenv("MINIBANK_TIMEOUT", "soon")
        with pytest.raises(ConfigError, match="Invalid MINIBANK_TIMEOUT value"):
            resolve_config(AppConfig())

    def test_cli_beats_env(self, monkeypatch):
        monkeypatch.setenv("MINIBANK_API_URL", "http://env-host:1234")
        resolved = resolve_config(AppConfig(), api_url="http://cli-host", timeout=3)
        assert resolved.api_url == "http://cli-host"
        assert resolved.timeout == 3.0
        assert resolved.sources["api_url"] == "cli: --api-url"
        assert resolved.sources["timeout"] == "cli: --timeout"

    def test_bad_cli_url(self):
        with pytest.raises(ConfigError, match="Invalid API URL"):
            resolve_config(AppConfig(), api_url="localhost:8080")

    def test_sentry_dsn_from_env(self, monkeypatch):
        monkeypatch.setenv("SENTRY_DSN", "https://key@sentry.example/1")
        resolved = resolve_config(AppConfig())
        assert resolved.sentry_dsn == "https://key@sentry.example/1"
        assert resolved.sources["sentry_dsn"] == "env: SENTRY_DSN"
