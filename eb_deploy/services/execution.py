"""Deploy Execution Service.

Drives one target's deploy through its stages:

1. validate - a commit hash or a git branch must be configured
2. resolve_and_build - resolve the commit and build the bundle, concurrently
3. upload - put the bundle in S3
4. create_version - register a new Elastic Beanstalk application version
5. await_readiness - wait until the version can be deployed
6. update_environment - point the environment at the new version

The first failing stage ends the deploy; nothing is rolled back.
"""

import asyncio
from typing import Protocol

from eb_deploy.config import Settings
from eb_deploy.core.bundle import BundleBuilder
from eb_deploy.core.commit import CommitResolver
from eb_deploy.core.exceptions import (
    ConfigurationError,
    EnvironmentUpdateError,
    UploadError,
    VersionCreationError,
)
from eb_deploy.core.readiness import (
    FixedDelayWaiter,
    ReadinessWaiter,
    VersionStatusPoller,
)
from eb_deploy.models.config import DeployCredentials, DeployFolders
from eb_deploy.models.deployment import (
    ArtifactDescriptor,
    DeployOutcome,
    DeployStatus,
    DeployTarget,
    StageStatus,
)
from eb_deploy.services.aws import (
    BeanstalkClient,
    S3BundleStore,
    create_beanstalk_client,
    create_s3_client,
)
from eb_deploy.utils.logging import get_logger


class BundleStore(Protocol):
    async def put(self, key: str, body: bytes) -> object: ...


class Platform(Protocol):
    async def create_application_version(
        self,
        eb_application_name: str,
        version_label: str,
        s3_bucket: str,
        s3_key: str,
        description: str = "",
    ) -> bool: ...

    async def update_environment(
        self,
        eb_application_name: str,
        eb_environment_id: str,
        eb_environment_name: str,
        version_label: str,
    ) -> object: ...


class DeployExecutionService:
    """Deploys a single application/environment target."""

    def __init__(
        self,
        storage: BundleStore,
        platform: Platform,
        target: DeployTarget,
        bundle_builder: BundleBuilder,
        commit_resolver: CommitResolver,
        waiter: ReadinessWaiter,
    ):
        self.storage = storage
        self.platform = platform
        self.target = target
        self.bundle_builder = bundle_builder
        self.commit_resolver = commit_resolver
        self.waiter = waiter
        self.outcome: DeployOutcome | None = None
        self.logger = get_logger("deploy.execution").bind(
            app=target.app_name,
            env=target.env_name,
        )

    @classmethod
    def create(
        cls,
        credentials: DeployCredentials,
        target: DeployTarget,
        folders: DeployFolders,
        settings: Settings,
    ) -> "DeployExecutionService":
        """Build a unit with its own S3 and Elastic Beanstalk clients."""
        aws_credentials = credentials.aws_credentials
        storage = S3BundleStore(
            create_s3_client(aws_credentials, target.region), target.s3_bucket
        )
        platform = BeanstalkClient(create_beanstalk_client(aws_credentials, target.region))

        waiter: ReadinessWaiter
        if settings.polls_for_readiness:
            waiter = VersionStatusPoller(
                platform,
                interval=settings.poll_interval_seconds,
                timeout=settings.poll_timeout_seconds,
            )
        else:
            waiter = FixedDelayWaiter(settings.settle_seconds)

        return cls(
            storage=storage,
            platform=platform,
            target=target,
            bundle_builder=BundleBuilder(
                folders.apps,
                template_name=settings.template_name,
                placeholder=settings.tag_placeholder,
            ),
            commit_resolver=CommitResolver(
                folders.git_root, git_executable=settings.git_executable
            ),
            waiter=waiter,
        )

    def validate_settings(self) -> None:
        """Require a commit hash or a git branch before any network call."""
        if not self.target.commit_hash and not self.target.git_branch:
            raise ConfigurationError(
                f"Invalid configuration: application {self.target.app_name} environment "
                f"{self.target.env_name} needs a gitBranch when no commit hash is given",
                {"app_name": self.target.app_name, "env_name": self.target.env_name},
            )

    async def get_commit_hash(self) -> str:
        """Resolve the commit this target deploys."""
        return await self.commit_resolver.resolve(self.target)

    async def deploy(self, commit_hash: str | None = None) -> DeployOutcome:
        """Run every stage of the deploy.

        Args:
            commit_hash: Commit already resolved by the caller. When omitted the
                commit is resolved here.

        Returns:
            The succeeded outcome

        Raises:
            EbDeployError: The first stage failure; ``self.outcome`` records it
        """
        outcome = DeployOutcome(
            app_name=self.target.app_name,
            env_name=self.target.env_name,
            status=DeployStatus.IN_PROGRESS,
        )
        self.outcome = outcome

        self.logger.info("deploy.started", target=self.target.model_dump())

        stage = "validate"
        try:
            outcome.update_stage(stage, StageStatus.IN_PROGRESS)
            self.validate_settings()
            outcome.update_stage(stage, StageStatus.COMPLETED)

            stage = "resolve_and_build"
            outcome.update_stage(stage, StageStatus.IN_PROGRESS)
            commit, bundle = await self._resolve_and_build(commit_hash)
            artifact = ArtifactDescriptor.for_commit(
                self.target.eb_application_name, commit
            )
            outcome.commit_hash = commit
            outcome.artifact = artifact
            outcome.update_stage(
                stage, StageStatus.COMPLETED, metadata={"bundle_bytes": len(bundle)}
            )
            self.logger.info("deploy.commit", commit=commit)

            stage = "upload"
            outcome.update_stage(stage, StageStatus.IN_PROGRESS)
            await self._upload_bundle(artifact, bundle)
            outcome.update_stage(
                stage, StageStatus.COMPLETED, metadata={"s3_key": artifact.s3_key}
            )

            stage = "create_version"
            outcome.update_stage(stage, StageStatus.IN_PROGRESS)
            outcome.version_created = await self._create_application_version(artifact)
            outcome.update_stage(
                stage,
                StageStatus.COMPLETED,
                metadata={"version_label": artifact.version_label},
            )

            stage = "await_readiness"
            outcome.update_stage(stage, StageStatus.IN_PROGRESS)
            await self.wait_for_version(artifact)
            outcome.update_stage(stage, StageStatus.COMPLETED)

            stage = "update_environment"
            outcome.update_stage(stage, StageStatus.IN_PROGRESS)
            await self._update_environment(artifact)
            outcome.update_stage(stage, StageStatus.COMPLETED)

        except Exception as e:
            outcome.update_stage(stage, StageStatus.FAILED, error=str(e))
            self.logger.error("deploy.failed", stage=stage, error=str(e))
            raise

        outcome.status = DeployStatus.SUCCEEDED
        outcome.dashboard_url = self.target.dashboard_url
        outcome.current_stage = None
        self.logger.info(
            "deploy.succeeded",
            version_label=artifact.version_label,
            dashboard_url=outcome.dashboard_url,
        )
        return outcome

    async def _resolve_and_build(self, commit_hash: str | None) -> tuple[str, bytes]:
        """Resolve the commit while the bundle template is read."""

        async def resolve() -> str:
            if commit_hash is not None:
                return commit_hash
            return await self.get_commit_hash()

        commit, template = await asyncio.gather(
            resolve(),
            asyncio.to_thread(self.bundle_builder.read_template, self.target.app_name),
        )
        bundle = self.bundle_builder.package(self.bundle_builder.render(template, commit))
        return commit, bundle

    async def _upload_bundle(self, artifact: ArtifactDescriptor, bundle: bytes) -> None:
        self.logger.info(
            "deploy.upload.started",
            bucket=self.target.s3_bucket,
            key=artifact.s3_key,
        )
        try:
            await self.storage.put(artifact.s3_key, bundle)
        except Exception as e:
            self.logger.error("deploy.upload.failed", key=artifact.s3_key, error=str(e))
            raise UploadError(
                f"Failed uploading application bundle to s3://{self.target.s3_bucket}/"
                f"{artifact.s3_key}: {e}",
                self.target.app_name,
                self.target.env_name,
            ) from e

        self.logger.info("deploy.upload.completed", key=artifact.s3_key)

    async def _create_application_version(self, artifact: ArtifactDescriptor) -> bool:
        """Create the application version; an existing one counts as success."""
        self.logger.info(
            "deploy.version.creating",
            eb_application=self.target.eb_application_name,
            version_label=artifact.version_label,
        )
        try:
            created = await self.platform.create_application_version(
                self.target.eb_application_name,
                artifact.version_label,
                self.target.s3_bucket,
                artifact.s3_key,
            )
        except Exception as e:
            self.logger.error(
                "deploy.version.failed",
                version_label=artifact.version_label,
                error=str(e),
            )
            raise VersionCreationError(
                f"Failed to create application version {artifact.version_label}: {e}",
                self.target.app_name,
                self.target.env_name,
            ) from e

        if created:
            self.logger.info("deploy.version.created", version_label=artifact.version_label)
        else:
            # The existing version's bundle is not compared with the new one
            self.logger.warning(
                "deploy.version.already_exists",
                version_label=artifact.version_label,
            )
        return created

    async def wait_for_version(self, artifact: ArtifactDescriptor) -> None:
        """Wait until the application version can be deployed."""
        await self.waiter.wait(self.target, artifact)

    async def _update_environment(self, artifact: ArtifactDescriptor) -> None:
        self.logger.info(
            "deploy.environment.updating",
            eb_environment=self.target.eb_environment_name,
            eb_environment_id=self.target.eb_environment_id,
            version_label=artifact.version_label,
        )
        try:
            await self.platform.update_environment(
                self.target.eb_application_name,
                self.target.eb_environment_id,
                self.target.eb_environment_name,
                artifact.version_label,
            )
        except Exception as e:
            self.logger.error("deploy.environment.failed", error=str(e))
            raise EnvironmentUpdateError(
                f"Failed updating environment {self.target.eb_environment_name}: {e}",
                self.target.app_name,
                self.target.env_name,
            ) from e

        self.logger.info(
            "deploy.environment.updated",
            message="Check the Elastic Beanstalk dashboard to monitor deploy progress",
            dashboard_url=self.target.dashboard_url,
        )
