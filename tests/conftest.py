from __future__ import annotations

import io

import asyncssh
import pytest
from rich.console import Console

from ec2exec.api.model import Credential
from ec2exec.console import RunConsole
from tests.fakes import CapturedConsole, SleepRecorder


@pytest.fixture(scope="session")
def ssh_key() -> asyncssh.SSHKey:
    return asyncssh.generate_private_key("ssh-ed25519")


@pytest.fixture
def credential(ssh_key: asyncssh.SSHKey) -> Credential:
    return Credential(username="ubuntu", key=ssh_key)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def captured_console() -> CapturedConsole:
    out, err = io.StringIO(), io.StringIO()
    console = RunConsole(
        out=Console(file=out, width=200, highlight=False, color_system=None),
        err=Console(file=err, width=200, highlight=False, color_system=None),
    )
    return CapturedConsole(console=console, out=out, err=err)
