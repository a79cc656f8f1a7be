"""Deployment data models."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DeployTarget(BaseModel):
    """Everything an execution unit needs to deploy one app/env pair."""

    model_config = ConfigDict(frozen=True)

    region: str
    s3_bucket: str

    app_name: str
    eb_application_name: str

    env_name: str
    eb_environment_name: str
    eb_environment_id: str

    git_branch: str | None = None
    commit_hash: str | None = None

    @property
    def dashboard_url(self) -> str:
        """Elastic Beanstalk console page for the environment."""
        return (
            f"https://console.aws.amazon.com/elasticbeanstalk/home?region={self.region}"
            f"#/environment/dashboard?applicationName={self.eb_application_name}"
            f"&environmentId={self.eb_environment_id}"
        )


class DeployRequest(BaseModel):
    """One invocation of the deploy tool."""

    model_config = ConfigDict(frozen=True)

    app_names: list[str] = Field(..., min_length=1)
    env_name: str
    commit_hash: str | None = None
    run_pre_hook: bool = False


class ArtifactDescriptor(BaseModel):
    """S3 location and version label of an application bundle."""

    model_config = ConfigDict(frozen=True)

    commit_hash: str
    version_label: str
    s3_key: str

    @classmethod
    def for_commit(cls, eb_application_name: str, commit_hash: str) -> "ArtifactDescriptor":
        """Derive the descriptor for an application and commit."""
        version_label = f"app-{commit_hash}"
        return cls(
            commit_hash=commit_hash,
            version_label=version_label,
            s3_key=f"{eb_application_name}/{version_label}.zip",
        )


class DeployStatus(str, Enum):
    """Overall status of one target's deploy."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class StageStatus(str, Enum):
    """Status of a single deploy stage."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class StageInfo(BaseModel):
    """Information about a deploy stage."""

    status: StageStatus = StageStatus.PENDING
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None


class DeployOutcome(BaseModel):
    """Result of one target's deploy."""

    app_name: str
    env_name: str
    status: DeployStatus = DeployStatus.PENDING

    commit_hash: str | None = None
    artifact: ArtifactDescriptor | None = None
    version_created: bool | None = None
    dashboard_url: str | None = None

    current_stage: str | None = None
    stages: dict[str, StageInfo] = Field(default_factory=dict)

    error: str | None = None
    error_stage: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == DeployStatus.SUCCEEDED

    def update_stage(
        self,
        stage: str,
        status: StageStatus,
        metadata: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> None:
        """Update a stage's status."""
        now = datetime.now()

        if stage not in self.stages:
            self.stages[stage] = StageInfo()

        stage_info = self.stages[stage]
        stage_info.status = status

        if status == StageStatus.IN_PROGRESS:
            stage_info.started_at = now
            self.current_stage = stage
        elif status in (StageStatus.COMPLETED, StageStatus.FAILED):
            stage_info.completed_at = now
            if stage_info.started_at:
                stage_info.duration_ms = int(
                    (now - stage_info.started_at).total_seconds() * 1000
                )
            if status == StageStatus.FAILED:
                stage_info.error = error
                self.status = DeployStatus.FAILED
                self.error = error
                self.error_stage = stage

        if metadata:
            stage_info.metadata.update(metadata)
