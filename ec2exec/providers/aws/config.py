"""AWS provider configuration.

Immutable configuration dataclass for the EC2 control plane.
"""

from __future__ import annotations

from dataclasses import dataclass

from ec2exec.constants import (
    DEFAULT_AMI,
    DEFAULT_INSTANCE_TYPE,
    DEFAULT_REGION,
    INSTANCE_RUNNING_TIMEOUT,
    INSTANCE_RUNNING_WAIT_DELAY,
)


@dataclass(frozen=True, slots=True)
class AWS:
    """AWS provider configuration.

    Defines where instances are looked up and the fixed launch parameters
    used when one has to be created.

    Example:
        >>> from ec2exec.providers.aws import AWS
        >>> config = AWS(region="us-west-2", key_name="my-key")

    Args:
        region: AWS region for lookups and creation. Default: us-west-2
        ami: Machine image for new instances.
        instance_type: Size/class for new instances.
        key_name: Key pair registered in EC2. Required to create an instance.
        security_group_ids: Security groups for new instances. Optional.
        profile: Named profile from the shared AWS credentials files. Optional.
        wait_delay: Seconds between waiter polls.
        wait_timeout: Overall deadline for an instance to reach ``running``.
    """

    region: str = DEFAULT_REGION
    ami: str = DEFAULT_AMI
    instance_type: str = DEFAULT_INSTANCE_TYPE
    key_name: str | None = None
    security_group_ids: tuple[str, ...] = ()
    profile: str | None = None
    wait_delay: float = INSTANCE_RUNNING_WAIT_DELAY
    wait_timeout: float = INSTANCE_RUNNING_TIMEOUT

    def __post_init__(self) -> None:
        if self.wait_delay <= 0 or self.wait_timeout <= 0:
            raise ValueError("wait_delay and wait_timeout must be positive")
