"""AsyncSSH-based remote executor.

Service class pattern - host, credential and retry policy are bound at
construction, not passed on every call.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field

import asyncssh
from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from ec2exec.api.model import CommandResult, Credential, FailurePolicy, RetryPolicy
from ec2exec.constants import SSH_PORT
from ec2exec.core.exceptions import AuthError, CommandError, ConnectTimeout, ExecutorError

log = logger.bind(component="ssh")

type Sleep = Callable[[float], Awaitable[None]]
type OnRetry = Callable[[int, int, BaseException, float], None]
type OnResult = Callable[[CommandResult], None]


def is_dial_failure(exc: BaseException) -> bool:
    """Transport-level failures that may go away once sshd is up.

    Authentication failures are excluded: retrying cannot change them.
    """
    if isinstance(exc, asyncssh.PermissionDenied):
        return False
    return isinstance(exc, (OSError, asyncssh.DisconnectError))


def _preview(command: str) -> str:
    return command[:80] + "..." if len(command) > 80 else command


@dataclass
class RemoteExecutor:
    """Runs shell commands on one host over a single SSH connection.

    ``connect()`` retries dial failures with a fixed interval, as configured
    by ``retry``. Each ``run()`` opens its own exec session on the shared
    connection.

    Example:
        >>> executor = RemoteExecutor(host="203.0.113.7", credential=cred)
        >>> await executor.connect()
        >>> result = await executor.run("whoami")
        >>> await executor.close()

    As context manager:
        >>> async with RemoteExecutor(host=..., credential=cred) as ex:
        ...     results = await ex.run_batch(["whoami", "pwd"])
    """

    host: str
    credential: Credential
    port: int = SSH_PORT
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    sleep: Sleep = asyncio.sleep
    on_retry: OnRetry | None = None

    _conn: asyncssh.SSHClientConnection | None = field(default=None, repr=False)

    async def _dial(self) -> asyncssh.SSHClientConnection:
        log.debug(
            "SSH: dialing {host}:{port} ({user})",
            host=self.host, port=self.port, user=self.credential.username,
        )
        return await asyncssh.connect(
            self.host,
            port=self.port,
            username=self.credential.username,
            client_keys=[self.credential.key],
            known_hosts=None,
            connect_timeout=self.retry.connect_timeout,
        )

    def _before_sleep(self, state: RetryCallState) -> None:
        error = state.outcome.exception() if state.outcome else None
        delay = state.next_action.sleep if state.next_action else self.retry.interval
        log.warning(
            "{err} ({n}/{max}), trying again in {delay:.1f}s...",
            err=error, n=state.attempt_number, max=self.retry.max_attempts, delay=delay,
        )
        if self.on_retry is not None and error is not None:
            self.on_retry(state.attempt_number, self.retry.max_attempts, error, delay)

    async def connect(self) -> None:
        """Open and authenticate the connection, retrying dial failures.

        Raises:
            ConnectTimeout: Every attempt failed at the transport level.
            AuthError: The host rejected the credential.
        """
        if self._conn is not None:
            return

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_fixed(self.retry.interval),
            retry=retry_if_exception(is_dial_failure),
            sleep=self.sleep,
            before_sleep=self._before_sleep,
        )
        try:
            self._conn = await retrying(self._dial)
        except RetryError as e:
            last = e.last_attempt.exception()
            raise ConnectTimeout(self.host, self.retry.max_attempts, last) from last
        except asyncssh.PermissionDenied as e:
            raise AuthError(
                f"{self.credential.username}@{self.host} rejected the key: {e.reason}"
            ) from e
        log.info("SSH: connected to {host}", host=self.host)

    async def close(self) -> None:
        """Close SSH connection."""
        if self._conn is not None:
            self._conn.close()
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._conn.wait_closed(), timeout=5.0)
            self._conn = None

    async def __aenter__(self) -> RemoteExecutor:
        await self.connect()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    def _require_connection(self) -> asyncssh.SSHClientConnection:
        if self._conn is None:
            raise ExecutorError("Not connected. Call connect() first.")
        return self._conn

    async def run(self, command: str, timeout: float | None = None) -> CommandResult:
        """Run one command to completion and return its captured stdout.

        Raises:
            CommandError: Non-zero exit, termination by signal, or a channel
                failure while running.
        """
        conn = self._require_connection()
        log.debug("SSH.run: {cmd}", cmd=_preview(command))

        try:
            result = await conn.run(
                command, check=False, timeout=timeout, encoding="utf-8", errors="replace",
            )
        except (asyncssh.Error, asyncssh.ProcessError, OSError) as e:
            raise CommandError(command, None, reason=str(e) or type(e).__name__) from e

        stdout = str(result.stdout or "")
        stderr = str(result.stderr or "")
        code = result.exit_status
        log.debug("SSH.run: exit_status={code}", code=code)

        signal = result.exit_signal[0] if result.exit_signal else None
        if code != 0 or signal:
            reason = f"terminated by signal {signal}" if signal else None
            raise CommandError(
                command, code, stdout=stdout, stderr=stderr, reason=reason, signal=signal,
            )

        return CommandResult(command=command, output=stdout, exit_status=0, stderr=stderr)

    async def run_batch(
        self,
        commands: Iterable[str],
        on_failure: FailurePolicy = FailurePolicy.ABORT,
        on_result: OnResult | None = None,
        timeout: float | None = None,
    ) -> list[CommandResult]:
        """Run commands strictly in order, one finishing before the next starts.

        With ``FailurePolicy.ABORT`` the first ``CommandError`` propagates and
        the remaining commands are skipped. With ``FailurePolicy.CONTINUE`` the
        failure is recorded as an unsuccessful result.
        """
        results: list[CommandResult] = []
        for command in commands:
            try:
                result = await self.run(command, timeout=timeout)
            except CommandError as e:
                if on_failure is FailurePolicy.ABORT:
                    raise
                log.warning("Continuing after failure: {err}", err=e)
                result = CommandResult(
                    command=command,
                    output=e.stdout,
                    exit_status=e.exit_status,
                    stderr=e.stderr or (e.reason or ""),
                    signal=e.signal,
                )
            results.append(result)
            if on_result is not None:
                on_result(result)
        return results
