"""Command file parsing.

One command per line, run in file order. Blank lines and lines starting
with ``#`` are skipped.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from ec2exec.constants import COMMENT_PREFIX
from ec2exec.core.exceptions import ConfigurationError


def parse_commands(lines: Iterable[str]) -> list[str]:
    commands = []
    for line in lines:
        text = line.rstrip("\r\n").strip()
        if not text or text.startswith(COMMENT_PREFIX):
            continue
        commands.append(text)
    return commands


def read_commands(path: str | Path) -> list[str]:
    """Load the commands from ``path``.

    Raises:
        ConfigurationError: The file is missing, unreadable, or holds no commands.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot read command file {path}: {e}") from e

    commands = parse_commands(text.splitlines())
    if not commands:
        raise ConfigurationError(f"Command file {path} contains no commands")
    return commands
