"""Configuration management for MiniBank Console.

Handles TOML config files, environment variables, named profiles,
and configuration precedence resolution.

Precedence order (highest to lowest):
1. CLI flags (--api-url, --timeout)
2. Environment variables (MINIBANK_API_URL, MINIBANK_TIMEOUT)
3. Named profile (--profile or MINIBANK_PROFILE env var)
4. Config file defaults
5. Built-in defaults
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ValidationError, field_validator

from minibank_console.core.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "minibank-console" / "config.toml"

DEFAULT_API_URL = "http://localhost:8080"
DEFAULT_TIMEOUT = 30.0
DEFAULT_FORMAT = "table"

_ENV_VARS: dict[str, str] = {
    "MINIBANK_API_URL": "api_url",
    "MINIBANK_TIMEOUT": "timeout",
    "SENTRY_DSN": "sentry_dsn",
}


def validate_api_url(v: str) -> str:
    parsed = urlparse(v)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        msg = f"Invalid API URL: '{v}'. Expected http:// or https:// with a host"
        raise ValueError(msg)
    return v.rstrip("/")


def validate_timeout(v: float) -> float:
    if v <= 0:
        msg = f"Invalid timeout: {v}. Must be greater than 0"
        raise ValueError(msg)
    return v


class BackendProfile(BaseModel):
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT

    @field_validator("api_url")
    @classmethod
    def check_api_url(cls, v: str) -> str:
        return validate_api_url(v)

    @field_validator("timeout")
    @classmethod
    def check_timeout(cls, v: float) -> float:
        return validate_timeout(v)


class AppConfig(BaseModel):
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    default_format: str = DEFAULT_FORMAT
    default_profile: str | None = None
    sentry_dsn: str | None = None
    environment: str = "local"
    profiles: dict[str, BackendProfile] = {}

    @field_validator("api_url")
    @classmethod
    def check_api_url(cls, v: str) -> str:
        return validate_api_url(v)

    @field_validator("timeout")
    @classmethod
    def check_timeout(cls, v: float) -> float:
        return validate_timeout(v)


class ResolvedConfig(BaseModel):
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    default_format: str = DEFAULT_FORMAT
    sentry_dsn: str | None = None
    environment: str = "local"
    active_profile: str | None = None
    sources: dict[str, str] = {}


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file.

    Returns default AppConfig if file doesn't exist.
    Raises ConfigError on malformed TOML or invalid config.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return AppConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Malformed TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid configuration in {config_path}: {e}"
        raise ConfigError(msg) from e


def resolve_config(
    config: AppConfig,
    profile_name: str | None = None,
    **cli_overrides: Any,
) -> ResolvedConfig:
    """Resolve configuration using precedence chain.

    CLI > env > profile > config defaults > built-in defaults.
    """
    sources: dict[str, str] = {}
    resolved: dict[str, Any] = {
        "api_url": DEFAULT_API_URL,
        "timeout": DEFAULT_TIMEOUT,
        "default_format": DEFAULT_FORMAT,
        "sentry_dsn": None,
        "environment": "local",
    }
    for key in resolved:
        sources[key] = "default"

    # Layer 2: Config file global defaults
    for key in config.model_fields_set & set(resolved):
        resolved[key] = getattr(config, key)
        sources[key] = "config"

    # Layer 3: Named profile
    effective_profile = profile_name
    if not effective_profile:
        effective_profile = os.environ.get("MINIBANK_PROFILE")
    if not effective_profile:
        effective_profile = config.default_profile

    if effective_profile:
        if effective_profile not in config.profiles:
            available = (
                ", ".join(sorted(config.profiles.keys())) if config.profiles else "none"
            )
            msg = f"Unknown profile: '{effective_profile}'. Available profiles: {available}"
            raise ConfigError(msg)
        profile = config.profiles[effective_profile]
        for key in profile.model_fields_set:
            resolved[key] = getattr(profile, key)
            sources[key] = f"profile: {effective_profile}"

    # Layer 4: Environment variables
    for env_var, field_name in _ENV_VARS.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        try:
            if field_name == "api_url":
                resolved[field_name] = validate_api_url(value)
            elif field_name == "timeout":
                resolved[field_name] = validate_timeout(float(value))
            else:
                resolved[field_name] = value
        except ValueError as e:
            msg = f"Invalid {env_var} value: '{value}'. {e}"
            raise ConfigError(msg) from None
        sources[field_name] = f"env: {env_var}"

    # Layer 5: CLI flags (highest priority)
    cli_to_field = {
        "api_url": "api_url",
        "timeout": "timeout",
    }
    for cli_name, field_name in cli_to_field.items():
        value = cli_overrides.get(cli_name)
        if value is None:
            continue
        try:
            if field_name == "api_url":
                value = validate_api_url(value)
            else:
                value = validate_timeout(float(value))
        except ValueError as e:
            raise ConfigError(str(e)) from None
        resolved[field_name] = value
        sources[field_name] = f"cli: --{cli_name.replace('_', '-')}"

    resolved["active_profile"] = effective_profile
    resolved["sources"] = sources
    return ResolvedConfig(**resolved)
