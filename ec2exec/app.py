"""One run: acquire an instance, connect, execute the command file."""

from __future__ import annotations

from typing import Any

from injector import Injector
from loguru import logger

from ec2exec.api.model import CommandResult, Credential
from ec2exec.commands import read_commands
from ec2exec.config import Settings
from ec2exec.console import RunConsole
from ec2exec.core.exceptions import ProvisionError
from ec2exec.credentials import load_credential
from ec2exec.infra.ssh import RemoteExecutor
from ec2exec.providers.aws.clients import AWSModule, Client, EC2ClientFactory
from ec2exec.providers.aws.config import AWS
from ec2exec.providers.aws.provisioner import InstanceProvisioner

log = logger.bind(component="app")


def create_injector(config: AWS) -> Injector:
    return Injector([AWSModule(config)])


async def run(
    settings: Settings,
    console: RunConsole,
    *,
    ec2: Client[Any] | None = None,
    credential: Credential | None = None,
) -> list[CommandResult]:
    """Execute ``settings.commands_file`` on a running instance.

    Local inputs are read before anything is provisioned, so a missing key or
    command file never leaves a fresh instance behind.
    """
    commands = read_commands(settings.commands_file)
    credential = credential or load_credential(settings.key_path, settings.username)
    log.info("Loaded {n} command(s) from {path}", n=len(commands), path=settings.commands_file)

    if ec2 is None:
        ec2 = create_injector(settings.aws).get(EC2ClientFactory)

    provisioner = InstanceProvisioner(settings.aws, ec2, notify=console.status)
    instance = await provisioner.acquire_instance()
    if not instance.public_ip:
        raise ProvisionError(f"Instance {instance.id} has no public address")
    console.using(instance)

    console.status(f"Connecting to {instance.public_ip}...")
    async with RemoteExecutor(
        host=instance.public_ip,
        credential=credential,
        port=settings.port,
        retry=settings.retry,
        on_retry=console.retry,
    ) as executor:
        return await executor.run_batch(
            commands,
            on_failure=settings.on_failure,
            on_result=console.result,
            timeout=settings.command_timeout,
        )
