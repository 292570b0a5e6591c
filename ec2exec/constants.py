"""Centralized constants and enums for ec2exec."""

from __future__ import annotations

from enum import StrEnum
from typing import Final

# =============================================================================
# EC2 Instance States
# =============================================================================


class InstanceState(StrEnum):
    """EC2 instance state names."""

    PENDING = "pending"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    SHUTTING_DOWN = "shutting-down"
    TERMINATED = "terminated"


# =============================================================================
# Control Plane Defaults
# =============================================================================

DEFAULT_REGION: Final = "us-west-2"
DEFAULT_AMI: Final = "ami-d732f0b7"  # Ubuntu
DEFAULT_INSTANCE_TYPE: Final = "t2.micro"

INSTANCE_RUNNING_WAIT_DELAY: Final = 5.0
INSTANCE_RUNNING_TIMEOUT: Final = 600.0

# =============================================================================
# SSH Defaults
# =============================================================================

SSH_PORT: Final = 22
DEFAULT_USERNAME: Final = "ubuntu"
CONNECT_MAX_ATTEMPTS: Final = 5
CONNECT_RETRY_INTERVAL: Final = 10.0
CONNECT_TIMEOUT: Final = 5.0

# =============================================================================
# Local Inputs
# =============================================================================

DEFAULT_COMMANDS_FILE: Final = "./cmd"
PEM_PATH_ENV: Final = "PEM_PATH"
PEM_PASSPHRASE_ENV: Final = "PEM_PASSPHRASE"
COMMENT_PREFIX: Final = "#"
