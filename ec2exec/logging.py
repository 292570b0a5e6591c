"""Logging configuration for ec2exec.

Structured logging via loguru. Library code logs through
``logger.bind(component=...)``; output is disabled by default and turned on
by the CLI when ``--log-level``/``--log-file`` or a ``[logging]`` config
section is given.

Example:
    from ec2exec.logging import LogConfig, _setup_logging, _teardown_logging

    handler_ids = _setup_logging(LogConfig(level="DEBUG", file="ec2exec.log"))
    try:
        ...
    finally:
        _teardown_logging(handler_ids)
"""

from __future__ import annotations

import contextlib
import sys
from dataclasses import dataclass
from typing import Literal

from loguru import logger

# Disable by default (library behavior)
logger.disable("ec2exec")

type LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{name}:{function}:{line} - {message}"
)


@dataclass(frozen=True, slots=True)
class LogConfig:
    """Logging configuration.

    Attributes:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR).
        file: Path to log file. If provided, logs are written to this file.
        console: Whether to log to stderr. Defaults to True.
        rotation: File rotation policy (e.g., "50 MB", "1 day"). Defaults to "50 MB".
        retention: Number of old log files to keep. Defaults to 10.
        compression: Archive format for closed log files, or None to keep them as is.
    """

    level: LogLevel = "INFO"
    file: str | None = None
    console: bool = True
    rotation: str = "50 MB"
    retention: int = 10
    compression: str | None = "zip"

    def __post_init__(self) -> None:
        if self.level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(f"Unknown log level '{self.level}'")


def _setup_logging(config: LogConfig) -> list[int]:
    """Configure logging and return handler IDs for cleanup."""
    logger.enable("ec2exec")
    logger.configure(extra={"component": "ec2exec"})
    # Default stderr sink would duplicate every record
    with contextlib.suppress(ValueError):
        logger.remove(0)
    handler_ids: list[int] = []

    if config.console:
        hid = logger.add(
            sys.stderr,
            level=config.level,
            format=CONSOLE_FORMAT,
            colorize=True,
            filter="ec2exec",
        )
        handler_ids.append(hid)

    if config.file:
        hid = logger.add(
            config.file,
            level="DEBUG",  # File always captures everything
            format=FILE_FORMAT,
            rotation=config.rotation,
            retention=config.retention,
            compression=config.compression,
            diagnose=False,  # Don't expose key material in tracebacks
            filter="ec2exec",
        )
        handler_ids.append(hid)

    return handler_ids


def _teardown_logging(handler_ids: list[int]) -> None:
    """Remove handlers and disable logging."""
    for hid in handler_ids:
        logger.remove(hid)
    logger.disable("ec2exec")
