"""EC2 instance acquisition.

Finds a running instance to reuse, or creates one with a fixed launch configuration and
blocks until the control plane reports it as running.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from math import ceil
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError, WaiterError
from loguru import logger

from ec2exec.api.model import Instance
from ec2exec.core.exceptions import (
    ConfigurationError,
    DiscoveryError,
    ProvisionError,
    WaitTimeoutError,
)

from .clients import Client
from .config import AWS

log = logger.bind(component="aws-provisioner")

type Notify = Callable[[str], None]


def _iter_instances(response: dict[str, Any]) -> list[Instance]:
    return [
        Instance.from_ec2(raw)
        for reservation in response.get("Reservations", [])
        for raw in reservation.get("Instances", [])
    ]


def _error_code(exc: BaseException) -> str:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code", "")
    return type(exc).__name__


class InstanceProvisioner:
    """Yields exactly one running instance, creating it if needed.

    Args:
        config: AWS configuration (region, launch parameters, waiter timing).
        ec2: Factory returning an async context manager for an EC2 client.
        notify: Receives a short progress message before each blocking phase.
    """

    def __init__(
        self,
        config: AWS,
        ec2: Client[Any],
        notify: Notify | None = None,
    ) -> None:
        self._config = config
        self._ec2 = ec2
        self._notify = notify or (lambda _msg: None)

    async def _list_instances(self, **kwargs: Any) -> list[Instance]:
        instances: list[Instance] = []
        try:
            async with self._ec2() as client:
                while True:
                    response = await client.describe_instances(**kwargs)
                    instances.extend(_iter_instances(response))
                    token = response.get("NextToken")
                    if not token:
                        return instances
                    kwargs = {**kwargs, "NextToken": token}
        except (ClientError, BotoCoreError) as e:
            raise DiscoveryError(f"describe_instances failed: {e}") from e

    async def find_running_instance(self) -> Instance | None:
        """Return the first running instance in control-plane order, if any."""
        self._notify("Looking for a running instance...")
        try:
            instances = await self._list_instances()
        except DiscoveryError as e:
            log.warning("Instance discovery failed, will create one: {err}", err=e)
            return None

        log.debug("Discovered {n} instance(s)", n=len(instances))
        return next((i for i in instances if i.is_running), None)

    async def create_instance(self) -> Instance:
        """Issue a single creation request with the configured launch parameters."""
        cfg = self._config
        if not cfg.key_name:
            raise ConfigurationError(
                "No key pair configured; set [aws] key_name or pass --key-name"
            )

        run_args: dict[str, Any] = {
            "ImageId": cfg.ami,
            "InstanceType": cfg.instance_type,
            "MinCount": 1,
            "MaxCount": 1,
            "KeyName": cfg.key_name,
        }
        if cfg.security_group_ids:
            run_args["SecurityGroupIds"] = list(cfg.security_group_ids)

        self._notify("No running instance found, creating one...")
        log.info(
            "Creating {itype} instance from {ami} in {region}",
            itype=cfg.instance_type, ami=cfg.ami, region=cfg.region,
        )
        try:
            async with self._ec2() as client:
                response = await client.run_instances(**run_args)
        except (ClientError, BotoCoreError) as e:
            raise ProvisionError(
                f"Instance creation rejected ({_error_code(e)}): {e}"
            ) from e

        created = _iter_instances({"Reservations": [response]})
        if not created:
            raise ProvisionError("run_instances returned no instance")
        log.info("Created instance {id}", id=created[0].id)
        return created[0]

    async def wait_until_running(self, instance_id: str, timeout: float | None = None) -> None:
        """Block until the instance is running or the deadline passes."""
        deadline = timeout if timeout is not None else self._config.wait_timeout
        if deadline <= 0:
            raise ValueError(f"timeout must be positive, got {deadline}")
        delay = min(self._config.wait_delay, deadline)
        waiter_config = {"Delay": delay, "MaxAttempts": max(1, ceil(deadline / delay))}

        self._notify(f"Waiting for instance {instance_id} to be running...")
        try:
            async with asyncio.timeout(deadline):
                async with self._ec2() as client:
                    waiter = client.get_waiter("instance_running")
                    await waiter.wait(
                        Filters=[{"Name": "instance-id", "Values": [instance_id]}],
                        WaiterConfig=waiter_config,
                    )
        except TimeoutError as e:
            raise WaitTimeoutError(instance_id, deadline) from e
        except WaiterError as e:
            if "max attempts exceeded" in str(e.kwargs.get("reason", "")).lower():
                raise WaitTimeoutError(instance_id, deadline) from e
            raise ProvisionError(f"Instance {instance_id} did not start: {e}") from e
        except (ClientError, BotoCoreError) as e:
            raise ProvisionError(f"Waiting for {instance_id} failed: {e}") from e
        log.info("Instance {id} is running", id=instance_id)

    async def describe_instance(self, instance_id: str) -> Instance:
        """Fetch the current record of one instance."""
        try:
            instances = await self._list_instances(
                Filters=[{"Name": "instance-id", "Values": [instance_id]}],
            )
        except DiscoveryError as e:
            raise ProvisionError(f"Could not describe {instance_id}: {e}") from e
        if not instances:
            raise ProvisionError(f"Instance {instance_id} not found")
        return instances[0]

    async def acquire_instance(self) -> Instance:
        """Reuse a running instance or create one and wait until it is usable.

        Raises:
            ProvisionError: Creation was rejected, the instance never started,
                or it has no public address.
            ConfigurationError: Creation was needed but no key pair is set.
        """
        instance = await self.find_running_instance()
        if instance is not None:
            log.info("Reusing running instance {id}", id=instance.id)
        else:
            created = await self.create_instance()
            await self.wait_until_running(created.id)
            instance = await self.describe_instance(created.id)

        if not instance.is_running:
            raise ProvisionError(f"Instance {instance.id} is {instance.state}, not running")
        if not instance.public_ip:
            raise ProvisionError(f"Instance {instance.id} has no public address")
        return instance
