"""Core functionality for eb-deploy."""

from eb_deploy.core.bundle import BundleBuilder
from eb_deploy.core.commit import CommitResolver
from eb_deploy.core.exceptions import (
    ArgumentError,
    CommitMismatchError,
    ConfigurationError,
    EbDeployError,
    EnvironmentUpdateError,
    PreHookError,
    RepositoryError,
    StageError,
    TargetNotFoundError,
    UploadError,
    VersionCreationError,
    VersionNotReadyError,
)
from eb_deploy.core.readiness import (
    FixedDelayWaiter,
    ReadinessWaiter,
    VersionStatusPoller,
)

__all__ = [
    "BundleBuilder",
    "CommitResolver",
    "ArgumentError",
    "CommitMismatchError",
    "ConfigurationError",
    "EbDeployError",
    "EnvironmentUpdateError",
    "PreHookError",
    "RepositoryError",
    "StageError",
    "TargetNotFoundError",
    "UploadError",
    "VersionCreationError",
    "VersionNotReadyError",
    "FixedDelayWaiter",
    "ReadinessWaiter",
    "VersionStatusPoller",
]
