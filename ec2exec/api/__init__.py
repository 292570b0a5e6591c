from ec2exec.api.model import (
    CommandResult,
    Credential,
    FailurePolicy,
    Instance,
    RetryPolicy,
)

__all__ = [
    "CommandResult",
    "Credential",
    "FailurePolicy",
    "Instance",
    "RetryPolicy",
]
