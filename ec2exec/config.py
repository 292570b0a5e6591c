"""TOML-based run configuration.

Loads ~/.ec2exec/defaults.toml (global) and ec2exec.toml (project), merges
them with environment variables and command-line overrides, and resolves the
result into a frozen ``Settings``.

Precedence, lowest first: defaults, global file, project file, environment,
overrides.

Example ``ec2exec.toml``::

    [aws]
    region = "us-west-2"
    key_name = "my-key"
    security_group_ids = ["sg-0123456789abcdef0"]

    [ssh]
    username = "ubuntu"
    max_attempts = 5
    retry_interval = 10.0

    [run]
    commands_file = "cmd"
    on_failure = "abort"
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ec2exec.api.model import FailurePolicy, RetryPolicy
from ec2exec.constants import (
    DEFAULT_COMMANDS_FILE,
    DEFAULT_USERNAME,
    PEM_PATH_ENV,
    SSH_PORT,
)
from ec2exec.core.exceptions import ConfigurationError
from ec2exec.logging import LogConfig
from ec2exec.providers.aws.config import AWS

type RawConfig = dict[str, Any]

GLOBAL_CONFIG_PATH = Path.home() / ".ec2exec" / "defaults.toml"
PROJECT_CONFIG_NAME = "ec2exec.toml"

_SECTIONS = ("aws", "ssh", "run", "logging")
_SSH_KEYS = frozenset({
    "username", "port", "key_path", "max_attempts", "retry_interval", "connect_timeout",
})
_RUN_KEYS = frozenset({"commands_file", "on_failure", "command_timeout"})


@dataclass(frozen=True, slots=True)
class Settings:
    """Everything one run needs, resolved from files, env and flags."""

    aws: AWS = field(default_factory=AWS)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    username: str = DEFAULT_USERNAME
    port: int = SSH_PORT
    key_path: Path | None = None
    commands_file: Path = Path(DEFAULT_COMMANDS_FILE)
    on_failure: FailurePolicy = FailurePolicy.ABORT
    command_timeout: float | None = None
    log: LogConfig | None = None


def _deep_merge(base: RawConfig, override: RawConfig) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e


def load_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
    config_path: Path | None = None,
) -> RawConfig:
    """Read and merge the global and project config files.

    ``config_path`` replaces the project file lookup and must exist.
    """
    global_cfg = _read_toml(global_path or GLOBAL_CONFIG_PATH)
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigurationError(f"Config file {config_path} not found")
        project_cfg = _read_toml(config_path)
    else:
        project_cfg = _read_toml((project_dir or Path.cwd()) / PROJECT_CONFIG_NAME)

    merged = _deep_merge(global_cfg, project_cfg)
    unknown = set(merged) - set(_SECTIONS)
    if unknown:
        raise ConfigurationError(
            f"Unknown config section(s): {', '.join(sorted(unknown))}. "
            f"Valid: {', '.join(_SECTIONS)}"
        )
    for section in _SECTIONS:
        merged.setdefault(section, {})
    return merged


def env_config(env: Mapping[str, str]) -> RawConfig:
    """Config fragment contributed by environment variables."""
    raw: RawConfig = {}
    if key_path := env.get(PEM_PATH_ENV):
        raw["ssh"] = {"key_path": key_path}
    if region := env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION"):
        raw["aws"] = {"region": region}
    return raw


def _check_keys(section: str, raw: RawConfig, allowed: frozenset[str]) -> None:
    unknown = set(raw) - allowed
    if unknown:
        raise ConfigurationError(
            f"Unknown key(s) in [{section}]: {', '.join(sorted(unknown))}"
        )


def _build_aws(raw: RawConfig) -> AWS:
    raw = dict(raw)
    if "security_group_ids" in raw:
        groups = raw["security_group_ids"]
        raw["security_group_ids"] = (groups,) if isinstance(groups, str) else tuple(groups)
    return AWS(**raw)


def _build_retry(raw: RawConfig) -> RetryPolicy:
    mapping = {
        "max_attempts": "max_attempts",
        "retry_interval": "interval",
        "connect_timeout": "connect_timeout",
    }
    return RetryPolicy(**{mapping[k]: v for k, v in raw.items() if k in mapping})


def build_settings(raw: RawConfig) -> Settings:
    """Turn a merged raw config into ``Settings``.

    Raises:
        ConfigurationError: Unknown keys or invalid values.
    """
    ssh = dict(raw.get("ssh", {}))
    run = dict(raw.get("run", {}))
    logging_raw = raw.get("logging", {})
    _check_keys("ssh", ssh, _SSH_KEYS)
    _check_keys("run", run, _RUN_KEYS)

    try:
        key_path = ssh.get("key_path")
        return Settings(
            aws=_build_aws(raw.get("aws", {})),
            retry=_build_retry(ssh),
            username=ssh.get("username", DEFAULT_USERNAME),
            port=int(ssh.get("port", SSH_PORT)),
            key_path=Path(key_path).expanduser() if key_path else None,
            commands_file=Path(run.get("commands_file", DEFAULT_COMMANDS_FILE)),
            on_failure=FailurePolicy(run.get("on_failure", FailurePolicy.ABORT)),
            command_timeout=run.get("command_timeout"),
            log=LogConfig(**logging_raw) if logging_raw else None,
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def load_settings(
    *,
    overrides: RawConfig | None = None,
    env: Mapping[str, str] | None = None,
    project_dir: Path | None = None,
    global_path: Path | None = None,
    config_path: Path | None = None,
) -> Settings:
    """Resolve settings from files, environment and explicit overrides."""
    raw = load_config(
        project_dir=project_dir, global_path=global_path, config_path=config_path,
    )
    raw = _deep_merge(raw, env_config(os.environ if env is None else env))
    raw = _deep_merge(raw, overrides or {})
    return build_settings(raw)
