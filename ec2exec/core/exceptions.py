"""Custom exception hierarchy for ec2exec.

All ec2exec-specific exceptions inherit from Ec2ExecError, so the CLI can
turn any of them into a diagnostic and a non-zero exit status with a single
except clause.
"""

from __future__ import annotations


class Ec2ExecError(Exception):
    """Base exception for all ec2exec errors."""


class ConfigurationError(Ec2ExecError):
    """Raised for invalid configuration or missing required settings."""


class ProvisionError(Ec2ExecError):
    """Raised when the control plane rejects or fails an instance request.

    Never retried: repeating a creation request may leave duplicate
    billable instances behind.
    """


class WaitTimeoutError(ProvisionError):
    """Raised when an instance does not reach ``running`` before the deadline."""

    def __init__(self, instance_id: str, timeout: float) -> None:
        self.instance_id = instance_id
        self.timeout = timeout
        super().__init__(f"Instance {instance_id} not running after {timeout:.0f}s")


class DiscoveryError(Ec2ExecError):
    """Raised when listing instances fails at the transport level.

    Callers treat it as "no running instance", which leads to creation.
    """


class ExecutorError(Ec2ExecError):
    """Raised when the remote executor is used incorrectly."""


class ConnectTimeout(Ec2ExecError):
    """Raised when every dial attempt failed."""

    def __init__(self, host: str, attempts: int, last_error: BaseException | None) -> None:
        self.host = host
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Could not connect to {host} after {attempts} attempt(s): {last_error}"
        )


class AuthError(Ec2ExecError):
    """Raised when the remote host rejects the credential. Not retried."""


class CommandError(Ec2ExecError):
    """Raised when a remote command fails or exits non-zero."""

    def __init__(
        self,
        command: str,
        exit_status: int | None,
        stdout: str = "",
        stderr: str = "",
        reason: str | None = None,
        signal: str | None = None,
    ) -> None:
        self.command = command
        self.exit_status = exit_status
        self.stdout = stdout
        self.stderr = stderr
        self.reason = reason
        self.signal = signal
        detail = reason or (stderr.strip() if stderr else "") or "no diagnostic"
        if signal:
            status = f"signal {signal}"
        elif exit_status is None:
            status = "no exit status"
        else:
            status = f"exit status {exit_status}"
        super().__init__(f"Command {command!r} failed ({status}): {detail}")
