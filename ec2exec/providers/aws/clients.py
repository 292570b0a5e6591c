"""EC2 client wiring.

``AWSModule`` turns a resolved ``AWS`` config into an ``EC2ClientFactory``.
Every call to the factory opens a fresh aioboto3 EC2 client pinned to the
configured region and, when one is set, the named credentials profile.
The provisioner only ever sees the factory, so tests hand it an in-memory
client instead.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any

import aioboto3
from injector import Binder, Module, provider, singleton
from loguru import logger

from .config import AWS

log = logger.bind(component="aws-clients")

type Client[T] = Callable[[], AbstractAsyncContextManager[T]]
"""Factory that returns an async context manager for a client."""


class EC2ClientFactory:
    """Opens EC2 clients for one region.

    Callable as ``Client[Any]``: ``async with factory() as ec2: ...``.
    """

    def __init__(self, open_client: Client[Any], region: str) -> None:
        self._open_client = open_client
        self.region = region

    def __call__(self) -> AbstractAsyncContextManager[Any]:
        return self._open_client()

    def __repr__(self) -> str:
        return f"EC2ClientFactory(region={self.region!r})"


def _session(config: AWS) -> aioboto3.Session:
    if config.profile:
        log.debug("Using AWS profile {profile}", profile=config.profile)
        return aioboto3.Session(profile_name=config.profile)
    return aioboto3.Session()


class AWSModule(Module):
    """Binds the run's ``AWS`` config and provides the EC2 client factory.

    Usage:
        >>> injector = Injector([AWSModule(AWS(region="eu-west-1", key_name="ops"))])
        >>> ec2 = injector.get(EC2ClientFactory)
        >>> async with ec2() as client:
        ...     await client.describe_instances()
    """

    def __init__(self, config: AWS | None = None) -> None:
        self._config = config

    def configure(self, binder: Binder) -> None:
        if self._config is not None:
            binder.bind(AWS, to=self._config)

    @singleton
    @provider
    def provide_ec2(self, config: AWS) -> EC2ClientFactory:
        """One session per run, shared by every client the factory opens."""
        session = _session(config)
        region = config.region

        @asynccontextmanager
        async def open_client() -> AsyncIterator[Any]:
            log.debug("Opening EC2 client in {region}", region=region)
            async with session.client("ec2", region_name=region) as client:
                yield client

        return EC2ClientFactory(open_client, region)


__all__ = [
    "AWSModule",
    "Client",
    "EC2ClientFactory",
]
