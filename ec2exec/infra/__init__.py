from ec2exec.infra.ssh import RemoteExecutor, is_dial_failure

__all__ = ["RemoteExecutor", "is_dial_failure"]
