"""Tests for buildhooks.settings — profile precedence and env overrides."""

from pathlib import Path

import pytest
import tomlkit
import typer

import buildhooks.settings as settings_module
from buildhooks.settings import _list_profiles, get_broker_settings, get_scm_settings


def _write_config(tmp_path: Path, config: dict) -> Path:
    config_path = tmp_path / "config.toml"
    config_path.write_text(tomlkit.dumps(config))
    return config_path


@pytest.fixture(autouse=True)
def reset_lru_cache():
    """Clear the lru_cache before each test."""
    settings_module._load_toml.cache_clear()
    yield
    settings_module._load_toml.cache_clear()


_CONFIG = {
    "default_profile": "staging",
    "prod": {
        "scm": {"url": "https://scm.prod", "api_token": "tok_prod", "namespace": "team", "repository": "app"},
        "activemq": {"host": "mq.prod", "port": 8162, "broker_name": "amq-prod"},
    },
    "staging": {
        "scm": {"url": "https://scm.staging", "api_token": "tok_staging"},
    },
}


class TestListProfiles:
    def test_returns_section_keys(self) -> None:
        assert _list_profiles(_CONFIG) == ["prod", "staging"]

    def test_empty_config(self) -> None:
        assert _list_profiles({}) == []


class TestGetScmSettings:
    def test_profile_arg_takes_precedence(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings_module, "CONFIG_PATH", _write_config(tmp_path, _CONFIG))

        s = get_scm_settings("prod")
        assert s.url == "https://scm.prod"
        assert s.api_token is not None
        assert s.api_token.get_secret_value() == "tok_prod"
        assert s.namespace == "team"

    def test_env_profile_over_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings_module, "CONFIG_PATH", _write_config(tmp_path, _CONFIG))
        monkeypatch.setenv("BUILDHOOKS_PROFILE", "prod")

        assert get_scm_settings().url == "https://scm.prod"

    def test_default_profile_used(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings_module, "CONFIG_PATH", _write_config(tmp_path, _CONFIG))

        assert get_scm_settings().url == "https://scm.staging"

    def test_first_profile_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config = {"only": {"scm": {"url": "https://scm.only"}}}
        monkeypatch.setattr(settings_module, "CONFIG_PATH", _write_config(tmp_path, config))

        assert get_scm_settings().url == "https://scm.only"

    def test_env_overrides_profile(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings_module, "CONFIG_PATH", _write_config(tmp_path, _CONFIG))
        monkeypatch.setenv("SCM_URL", "https://scm.from-env")

        s = get_scm_settings("prod")
        assert s.url == "https://scm.from-env"
        assert s.namespace == "team"

    def test_missing_profile_exits(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings_module, "CONFIG_PATH", _write_config(tmp_path, _CONFIG))

        with pytest.raises((SystemExit, typer.Exit)):
            get_scm_settings("nonexistent")

    def test_no_config_file_uses_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings_module, "CONFIG_PATH", tmp_path / "nonexistent.toml")
        monkeypatch.setenv("SCM_URL", "https://scm.env")
        monkeypatch.setenv("SCM_API_TOKEN", "tok_env")

        s = get_scm_settings()
        assert s.url == "https://scm.env"
        assert s.api_token is not None
        assert s.namespace is None


class TestGetBrokerSettings:
    def test_profile_section(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings_module, "CONFIG_PATH", _write_config(tmp_path, _CONFIG))

        s = get_broker_settings("prod")
        assert s.host == "mq.prod"
        assert s.port == 8162
        assert s.broker_name == "amq-prod"

    def test_defaults_without_section(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings_module, "CONFIG_PATH", _write_config(tmp_path, _CONFIG))

        s = get_broker_settings("staging")
        assert s.host == "localhost"
        assert s.port == 8161
        assert s.broker_name == "localhost"
        assert s.username is None

    def test_env_credentials(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings_module, "CONFIG_PATH", tmp_path / "nonexistent.toml")
        monkeypatch.setenv("ACTIVEMQ_USERNAME", "admin")
        monkeypatch.setenv("ACTIVEMQ_PASSWORD", "admin")

        s = get_broker_settings()
        assert s.username == "admin"
        assert s.password is not None
