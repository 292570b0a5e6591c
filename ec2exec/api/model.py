"""Core value types shared by the provisioner and the remote executor."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from ec2exec.constants import (
    CONNECT_MAX_ATTEMPTS,
    CONNECT_RETRY_INTERVAL,
    CONNECT_TIMEOUT,
    InstanceState,
)

if TYPE_CHECKING:
    import asyncssh


@dataclass(frozen=True, slots=True)
class Instance:
    """One compute node as reported by the control plane.

    ``public_ip`` stays ``None`` until the node has been assigned an
    address, which normally happens on the transition to ``running``.
    """

    id: str
    state: str
    public_ip: str | None = None
    instance_type: str = ""

    @property
    def is_running(self) -> bool:
        return self.state == InstanceState.RUNNING

    @property
    def is_ready(self) -> bool:
        return self.is_running and bool(self.public_ip)

    @classmethod
    def from_ec2(cls, raw: dict[str, Any]) -> Instance:
        return cls(
            id=raw["InstanceId"],
            state=raw.get("State", {}).get("Name", InstanceState.PENDING),
            public_ip=raw.get("PublicIpAddress") or None,
            instance_type=raw.get("InstanceType", ""),
        )


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured output of one remote command.

    ``signal`` names the signal that killed the remote process, if any.
    """

    command: str
    output: str
    exit_status: int | None = 0
    stderr: str = ""
    signal: str | None = None

    @property
    def success(self) -> bool:
        return self.exit_status == 0 and self.signal is None


@dataclass(frozen=True, slots=True)
class Credential:
    """Private key plus the login identity it authenticates."""

    username: str
    key: asyncssh.SSHKey = field(repr=False)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Fixed-interval dial retry policy.

    Attributes:
        max_attempts: Total dial attempts, including the first one.
        interval: Seconds to wait between two attempts.
        connect_timeout: Per-attempt dial timeout in seconds.
    """

    max_attempts: int = CONNECT_MAX_ATTEMPTS
    interval: float = CONNECT_RETRY_INTERVAL
    connect_timeout: float = CONNECT_TIMEOUT

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.interval < 0 or self.connect_timeout <= 0:
            raise ValueError("interval must be >= 0 and connect_timeout > 0")


class FailurePolicy(StrEnum):
    """What a batch does after a command fails."""

    ABORT = "abort"
    CONTINUE = "continue"
