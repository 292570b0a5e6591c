"""Who Am I - one command on an EC2 instance.

Reuses the first running instance in the region, or creates a t2.micro
from the default AMI and waits for it. Then connects over SSH and runs
``whoami`` and ``pwd``.

    PEM_PATH=~/.ssh/my-key.pem python examples/01_whoami.py my-key
"""
import asyncio
import os
import sys

from ec2exec import AWS, InstanceProvisioner, RemoteExecutor, RetryPolicy, load_credential
from ec2exec.app import create_injector
from ec2exec.providers.aws import EC2ClientFactory


async def main(key_name: str) -> None:
    config = AWS(key_name=key_name)
    ec2 = create_injector(config).get(EC2ClientFactory)

    instance = await InstanceProvisioner(config, ec2, notify=print).acquire_instance()
    print(f"Using instance {instance.id} ({instance.public_ip})")

    credential = load_credential(os.environ.get("PEM_PATH"), "ubuntu")
    async with RemoteExecutor(
        instance.public_ip,
        credential,
        retry=RetryPolicy(max_attempts=10, interval=6.0),
        on_retry=lambda n, total, err, delay: print(f"{err} ({n}/{total}), retrying..."),
    ) as executor:
        for result in await executor.run_batch(["whoami", "pwd"]):
            print(f"> {result.command}\n{result.output}", end="")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "default"))
