"""Settings resolution with named profiles from ~/.config/buildhooks/config.toml."""

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import SecretStr
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

CONFIG_PATH = Path.home() / ".config" / "buildhooks" / "config.toml"


class _EnvFirstSettings(BaseSettings):
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Profile values arrive as init kwargs; env vars and .env win over them.
        return env_settings, dotenv_settings, init_settings, file_secret_settings


class ScmSettings(_EnvFirstSettings):
    model_config = SettingsConfigDict(
        env_prefix="SCM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str | None = None  # e.g. https://scm.example.com/scm
    api_token: SecretStr | None = None
    namespace: str | None = None
    repository: str | None = None


class BrokerSettings(_EnvFirstSettings):
    model_config = SettingsConfigDict(
        env_prefix="ACTIVEMQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = "localhost"
    port: int = 8161  # Jolokia lives on the web console port
    broker_name: str = "localhost"
    username: str | None = None
    password: SecretStr | None = None
    scheme: str = "http"


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Parsed profile file; an empty document when there is none yet."""
    return tomlkit.parse(CONFIG_PATH.read_text()) if CONFIG_PATH.is_file() else tomlkit.document()


def _list_profiles(config: Mapping) -> list[str]:
    """Names of the top-level tables; scalar keys such as default_profile are skipped."""
    return [name for name, section in config.items() if isinstance(section, Mapping)]


def _resolve_profile(profile: str | None) -> str | None:
    """Return the active profile name.

    Precedence (highest to lowest):
    1. profile argument (--profile CLI flag)
    2. BUILDHOOKS_PROFILE env var
    3. default_profile key in ~/.config/buildhooks/config.toml
    4. First profile defined in ~/.config/buildhooks/config.toml
    """
    toml_config = _load_toml()
    active = (
        profile
        or os.environ.get("BUILDHOOKS_PROFILE")
        or toml_config.get("default_profile")
        or ((_profiles := _list_profiles(toml_config)) and _profiles[0] or None)
    )
    if active and not isinstance(toml_config.get(active), Mapping):
        profiles = _list_profiles(toml_config)
        typer.echo(f"Profile '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")
        raise typer.Exit(1)
    return active


def _section(profile: str | None, name: str) -> dict:
    if not profile:
        return {}
    section = _load_toml()[profile].get(name)
    return section.unwrap() if isinstance(section, Mapping) else {}


def get_scm_settings(profile: str | None = None) -> ScmSettings:
    """Return SCM-Manager settings: [<profile>.scm] overlaid with SCM_* env vars."""
    return ScmSettings(**_section(_resolve_profile(profile), "scm"))


def get_broker_settings(profile: str | None = None) -> BrokerSettings:
    """Return ActiveMQ settings: [<profile>.activemq] overlaid with ACTIVEMQ_* env vars."""
    return BrokerSettings(**_section(_resolve_profile(profile), "activemq"))
