"""ec2exec - run shell commands on an EC2 instance over SSH.

Example:

    import asyncio

    from ec2exec import AWS, InstanceProvisioner, RemoteExecutor, load_credential
    from ec2exec.app import create_injector
    from ec2exec.providers.aws import EC2ClientFactory

    async def main():
        config = AWS(region="us-west-2", key_name="my-key")
        ec2 = create_injector(config).get(EC2ClientFactory)
        instance = await InstanceProvisioner(config, ec2).acquire_instance()

        credential = load_credential("~/.ssh/my-key.pem", "ubuntu")
        async with RemoteExecutor(instance.public_ip, credential) as ex:
            for result in await ex.run_batch(["whoami", "pwd"]):
                print(result.output, end="")

    asyncio.run(main())
"""

from ec2exec.api.model import (
    CommandResult,
    Credential,
    FailurePolicy,
    Instance,
    RetryPolicy,
)
from ec2exec.commands import parse_commands, read_commands
from ec2exec.config import Settings, load_settings
from ec2exec.core.exceptions import (
    AuthError,
    CommandError,
    ConfigurationError,
    ConnectTimeout,
    DiscoveryError,
    Ec2ExecError,
    ExecutorError,
    ProvisionError,
    WaitTimeoutError,
)
from ec2exec.credentials import load_credential
from ec2exec.infra.ssh import RemoteExecutor
from ec2exec.logging import LogConfig
from ec2exec.providers.aws.config import AWS
from ec2exec.providers.aws.provisioner import InstanceProvisioner

__all__ = [
    "AWS",
    "AuthError",
    "CommandError",
    "CommandResult",
    "ConfigurationError",
    "ConnectTimeout",
    "Credential",
    "DiscoveryError",
    "Ec2ExecError",
    "ExecutorError",
    "FailurePolicy",
    "Instance",
    "InstanceProvisioner",
    "LogConfig",
    "ProvisionError",
    "RemoteExecutor",
    "RetryPolicy",
    "Settings",
    "WaitTimeoutError",
    "load_credential",
    "load_settings",
    "parse_commands",
    "read_commands",
]
