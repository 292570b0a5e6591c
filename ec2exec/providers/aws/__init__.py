"""AWS control plane: configuration, client wiring and instance provisioning."""

from ec2exec.providers.aws.clients import AWSModule, Client, EC2ClientFactory
from ec2exec.providers.aws.config import AWS
from ec2exec.providers.aws.provisioner import InstanceProvisioner

__all__ = [
    "AWS",
    "AWSModule",
    "Client",
    "EC2ClientFactory",
    "InstanceProvisioner",
]
