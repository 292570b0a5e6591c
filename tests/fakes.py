"""Fakes for the EC2 control plane and the SSH transport."""

from __future__ import annotations

import io
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from typing import Any

import asyncssh

from ec2exec.console import RunConsole


def ec2_instance(
    instance_id: str,
    state: str = "running",
    ip: str | None = "203.0.113.10",
    instance_type: str = "t2.micro",
) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "InstanceId": instance_id,
        "State": {"Name": state},
        "InstanceType": instance_type,
    }
    if ip:
        raw["PublicIpAddress"] = ip
    return raw


class FakeWaiter:
    def __init__(self, ec2: FakeEC2) -> None:
        self._ec2 = ec2

    async def wait(self, **kwargs: Any) -> None:
        self._ec2.wait_calls.append(kwargs)
        if self._ec2.waiter_error is not None:
            raise self._ec2.waiter_error
        if self._ec2.waiter_hook is not None:
            await self._ec2.waiter_hook()
        ids = kwargs["Filters"][0]["Values"]
        for raw in self._ec2.instances:
            if raw["InstanceId"] in ids:
                raw["State"] = {"Name": "running"}
                raw.setdefault("PublicIpAddress", self._ec2.assigned_ip)


@dataclass
class FakeEC2:
    """In-memory stand-in for an aioboto3 EC2 client.

    ``reservations`` groups instances the way describe_instances does; each
    inner list is one reservation. ``page_size`` splits the reservation list
    into NextToken pages.
    """

    reservations: list[list[dict[str, Any]]] = field(default_factory=list)
    page_size: int | None = None
    describe_error: Exception | None = None
    run_error: Exception | None = None
    waiter_error: Exception | None = None
    waiter_hook: Callable[[], Any] | None = None
    assigned_ip: str | None = "198.51.100.20"
    describe_calls: list[dict[str, Any]] = field(default_factory=list)
    run_calls: list[dict[str, Any]] = field(default_factory=list)
    wait_calls: list[dict[str, Any]] = field(default_factory=list)

    @property
    def instances(self) -> list[dict[str, Any]]:
        return [i for r in self.reservations for i in r]

    async def describe_instances(self, **kwargs: Any) -> dict[str, Any]:
        self.describe_calls.append(kwargs)
        if self.describe_error is not None:
            raise self.describe_error

        reservations = self.reservations
        filters = kwargs.get("Filters")
        if filters:
            ids = set(filters[0]["Values"])
            reservations = [
                [i for i in r if i["InstanceId"] in ids] for r in reservations
            ]
            reservations = [r for r in reservations if r]

        if self.page_size is None:
            return {"Reservations": [{"Instances": r} for r in reservations]}

        start = int(kwargs.get("NextToken", 0))
        end = start + self.page_size
        response: dict[str, Any] = {
            "Reservations": [{"Instances": r} for r in reservations[start:end]],
        }
        if end < len(reservations):
            response["NextToken"] = str(end)
        return response

    async def run_instances(self, **kwargs: Any) -> dict[str, Any]:
        self.run_calls.append(kwargs)
        if self.run_error is not None:
            raise self.run_error
        raw = ec2_instance(f"i-new{len(self.run_calls)}", state="pending", ip=None)
        self.reservations.append([raw])
        return {"Instances": [dict(raw)]}

    def get_waiter(self, name: str) -> FakeWaiter:
        assert name == "instance_running"
        return FakeWaiter(self)


def client_factory(client: FakeEC2) -> Callable[[], Any]:
    @asynccontextmanager
    async def factory() -> AsyncIterator[FakeEC2]:
        yield client
    return factory


def _decode(data: str | bytes, encoding: str, errors: str) -> str:
    return data.decode(encoding, errors) if isinstance(data, bytes) else data


@dataclass
class FakeProcess:
    stdout: str | bytes = ""
    stderr: str | bytes = ""
    exit_status: int | None = 0
    exit_signal: tuple[str, bool, str, str] | None = None


class FakeConnection:
    """Answers ``run`` from a command -> FakeProcess table.

    Byte output is decoded with the ``encoding`` and ``errors`` passed to
    ``run``. A decode failure drops the whole connection, as asyncssh does.
    """

    def __init__(self, responses: dict[str, FakeProcess | Exception] | None = None) -> None:
        self.responses = responses or {}
        self.commands: list[str] = []
        self.closed = False
        self.lost = False

    async def run(
        self,
        command: str,
        check: bool = False,
        timeout: float | None = None,
        encoding: str = "utf-8",
        errors: str = "strict",
    ) -> FakeProcess:
        self.commands.append(command)
        if self.lost:
            raise asyncssh.ConnectionLost("Connection lost")
        response = self.responses.get(command, FakeProcess())
        if isinstance(response, Exception):
            raise response
        try:
            return replace(
                response,
                stdout=_decode(response.stdout, encoding, errors),
                stderr=_decode(response.stderr, encoding, errors),
            )
        except UnicodeDecodeError as e:
            self.lost = True
            raise asyncssh.ProtocolError("Unicode decode error") from e

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        return None


class ScriptedConnect:
    """Replacement for ``asyncssh.connect`` that fails a scripted number of times."""

    def __init__(
        self,
        connection: FakeConnection,
        failures: list[Exception] | None = None,
    ) -> None:
        self.connection = connection
        self.failures = list(failures or [])
        self.calls: list[tuple[tuple[Any, ...], dict[str, Any]]] = []

    async def __call__(self, *args: Any, **kwargs: Any) -> FakeConnection:
        self.calls.append((args, kwargs))
        if self.failures:
            raise self.failures.pop(0)
        return self.connection


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@dataclass
class CapturedConsole:
    console: RunConsole
    out: io.StringIO
    err: io.StringIO
