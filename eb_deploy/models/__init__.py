"""Data models for eb-deploy."""

from eb_deploy.models.config import (
    AwsCredentials,
    DeployConfig,
    DeployCredentials,
    DeployFolders,
    EbApplicationConfig,
    EbEnvironmentConfig,
)
from eb_deploy.models.deployment import (
    ArtifactDescriptor,
    DeployOutcome,
    DeployRequest,
    DeployStatus,
    DeployTarget,
    StageInfo,
    StageStatus,
)

__all__ = [
    # Configuration models
    "AwsCredentials",
    "DeployConfig",
    "DeployCredentials",
    "DeployFolders",
    "EbApplicationConfig",
    "EbEnvironmentConfig",
    # Deployment models
    "ArtifactDescriptor",
    "DeployOutcome",
    "DeployRequest",
    "DeployStatus",
    "DeployTarget",
    "StageInfo",
    "StageStatus",
]
