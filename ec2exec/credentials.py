"""Private key loading.

The key file is read once per run and parsed into an asyncssh key object;
nothing is written back.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

import asyncssh
from loguru import logger

from ec2exec.api.model import Credential
from ec2exec.constants import PEM_PASSPHRASE_ENV, PEM_PATH_ENV
from ec2exec.core.exceptions import AuthError, ConfigurationError

log = logger.bind(component="credentials")


def resolve_key_path(
    key_path: str | Path | None,
    env: Mapping[str, str] | None = None,
) -> Path:
    """Explicit path first, then ``PEM_PATH`` from the environment."""
    env = os.environ if env is None else env
    raw = key_path or env.get(PEM_PATH_ENV)
    if not raw:
        raise ConfigurationError(
            f"No private key given; set {PEM_PATH_ENV} or pass --key"
        )
    return Path(raw).expanduser()


def load_credential(
    key_path: str | Path | None,
    username: str,
    *,
    env: Mapping[str, str] | None = None,
) -> Credential:
    """Read and parse the PEM private key for ``username``.

    Raises:
        ConfigurationError: The key path is unset or unreadable.
        AuthError: The file does not hold a usable private key.
    """
    env = os.environ if env is None else env
    path = resolve_key_path(key_path, env)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ConfigurationError(f"Cannot read private key {path}: {e.strerror or e}") from e

    passphrase = env.get(PEM_PASSPHRASE_ENV) or None
    try:
        key = asyncssh.import_private_key(data, passphrase)
    except (asyncssh.KeyImportError, asyncssh.KeyEncryptionError, ValueError) as e:
        raise AuthError(f"Invalid private key {path}: {e}") from e

    log.debug("Loaded {alg} key from {path}", alg=key.get_algorithm(), path=path)
    return Credential(username=username, key=key)
