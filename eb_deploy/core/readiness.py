"""Waiting for a new application version before the environment update.

Elastic Beanstalk processes new application versions asynchronously. The
default strategy waits a fixed settle interval. ``VersionStatusPoller`` polls
the version status instead and fails when the version does not reach
``PROCESSED`` in time.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Protocol

from eb_deploy.core.exceptions import VersionNotReadyError
from eb_deploy.models.deployment import ArtifactDescriptor, DeployTarget
from eb_deploy.utils.logging import get_logger

SleepFunc = Callable[[float], Awaitable[None]]

PROCESSED = "PROCESSED"
FAILED = "FAILED"


class VersionStatusSource(Protocol):
    """Anything that can report an application version's status."""

    async def get_version_status(
        self, eb_application_name: str, version_label: str
    ) -> str | None: ...


class ReadinessWaiter(ABC):
    """Strategy for waiting until an application version can be deployed."""

    @abstractmethod
    async def wait(self, target: DeployTarget, artifact: ArtifactDescriptor) -> None:
        """Return once the version is usable, or raise VersionNotReadyError."""
        pass


class FixedDelayWaiter(ReadinessWaiter):
    """Waits a fixed number of seconds."""

    def __init__(self, seconds: float = 10.0, sleep: SleepFunc = asyncio.sleep):
        self.seconds = seconds
        self._sleep = sleep
        self.logger = get_logger("readiness")

    async def wait(self, target: DeployTarget, artifact: ArtifactDescriptor) -> None:
        self.logger.info(
            "deploy.readiness.sleeping",
            app=target.app_name,
            version_label=artifact.version_label,
            seconds=self.seconds,
        )
        await self._sleep(self.seconds)


class VersionStatusPoller(ReadinessWaiter):
    """Polls the version status until it is processed or the timeout elapses."""

    def __init__(
        self,
        source: VersionStatusSource,
        interval: float = 5.0,
        timeout: float = 300.0,
        sleep: SleepFunc = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.interval = interval
        self.timeout = timeout
        self._sleep = sleep
        self._clock = clock
        self.logger = get_logger("readiness")

    async def wait(self, target: DeployTarget, artifact: ArtifactDescriptor) -> None:
        deadline = self._clock() + self.timeout
        status: str | None = None

        while True:
            try:
                status = await self.source.get_version_status(
                    target.eb_application_name, artifact.version_label
                )
            except Exception as e:
                # Poll failures are retried until the deadline
                self.logger.warning(
                    "deploy.readiness.poll_failed",
                    app=target.app_name,
                    version_label=artifact.version_label,
                    error=str(e),
                )
                status = None

            if status == PROCESSED:
                self.logger.info(
                    "deploy.readiness.processed",
                    app=target.app_name,
                    version_label=artifact.version_label,
                )
                return

            if status == FAILED:
                raise VersionNotReadyError(
                    f"Application version {artifact.version_label} failed processing",
                    target.app_name,
                    target.env_name,
                )

            if self._clock() >= deadline:
                raise VersionNotReadyError(
                    f"Application version {artifact.version_label} not processed "
                    f"after {self.timeout:g}s (last status: {status or 'unknown'})",
                    target.app_name,
                    target.env_name,
                )

            self.logger.debug(
                "deploy.readiness.waiting",
                app=target.app_name,
                version_label=artifact.version_label,
                status=status,
            )
            await self._sleep(self.interval)
