"""Deploy Service.

Resolves named applications and environments from the deploy configuration
and runs one execution unit per target. A multi-target deploy is all or
nothing up to the first upload: every target is validated, every target must
resolve to the same commit, and the pre-deploy hook must pass before any
unit starts.
"""

import asyncio
import inspect
from typing import Awaitable, Callable

from botocore.exceptions import BotoCoreError

from eb_deploy.config import Settings, settings as default_settings
from eb_deploy.core.exceptions import (
    ArgumentError,
    CommitMismatchError,
    ConfigurationError,
    PreHookError,
    TargetNotFoundError,
)
from eb_deploy.models.config import (
    DeployConfig,
    DeployCredentials,
    DeployFolders,
    EbApplicationConfig,
    EbEnvironmentConfig,
)
from eb_deploy.models.deployment import DeployOutcome, DeployRequest, DeployTarget
from eb_deploy.services.execution import DeployExecutionService
from eb_deploy.utils.logging import get_logger

# Called with the resolved targets and the commit they will all deploy
PreDeployHook = Callable[[list[DeployTarget], str], Awaitable[None] | None]


class DeployService:
    """Orchestrates single and multi-target deploys."""

    def __init__(
        self,
        credentials: DeployCredentials,
        config: DeployConfig,
        folders: DeployFolders,
        pre_hook: PreDeployHook | None = None,
        settings: Settings | None = None,
    ):
        self.credentials = credentials
        self.config = config
        self.folders = folders
        self.pre_hook = pre_hook
        self.settings = settings or default_settings
        self.logger = get_logger("deploy")

    async def deploy_request(self, request: DeployRequest) -> list[DeployOutcome]:
        """Deploy a request naming one or several applications."""
        if len(request.app_names) == 1:
            return [await self.deploy(request)]
        return await self.deploy_multiple(request)

    async def deploy(self, request: DeployRequest) -> DeployOutcome:
        """Deploy a single application to an environment.

        Raises:
            ArgumentError: If the request names more than one application
            ConfigurationError: If the target is missing, ambiguous or has no commit source
            PreHookError: If the pre-deploy hook fails; nothing is deployed
            EbDeployError: If the deploy itself fails
        """
        if len(request.app_names) != 1:
            raise ArgumentError(
                f"Expected exactly one application, got {len(request.app_names)}; "
                "use deploy_multiple",
                {"app_names": request.app_names},
            )

        target = self.resolve_target(request.app_names[0], request)
        service = self._get_deploy_execution_service(target)
        service.validate_settings()

        commit = await service.get_commit_hash()
        await self._run_pre_hook(request, [service.target], commit)

        return await service.deploy(commit)

    async def deploy_multiple(self, request: DeployRequest) -> list[DeployOutcome]:
        """Deploy several applications sharing one environment name at one commit.

        Every unit is validated and every commit resolved before the hook runs,
        and the hook runs before any unit starts. Units then deploy
        concurrently; all of them run to completion and the first failure (in
        request order) is raised afterwards.

        Returns:
            One outcome per application, in request order
        """
        if len(set(request.app_names)) != len(request.app_names):
            raise ArgumentError(
                "Each application may only be deployed once per request",
                {"app_names": request.app_names},
            )

        targets = [self.resolve_target(name, request) for name in request.app_names]
        services = [self._get_deploy_execution_service(target) for target in targets]

        for service in services:
            service.validate_settings()

        commit = await self._agree_on_commit(services)
        await self._run_pre_hook(request, [service.target for service in services], commit)

        self.logger.info(
            "deploy.multiple.started",
            apps=request.app_names,
            env=request.env_name,
            commit=commit,
        )

        results = await asyncio.gather(
            *(service.deploy(commit) for service in services),
            return_exceptions=True,
        )

        failures: list[BaseException] = []
        for service, result in zip(services, results):
            if isinstance(result, BaseException):
                self.logger.error(
                    "deploy.multiple.target_failed",
                    app=service.target.app_name,
                    env=service.target.env_name,
                    error=str(result),
                )
                failures.append(result)

        if failures:
            # Targets that already succeeded are left in place
            raise failures[0]

        self.logger.info("deploy.multiple.completed", apps=request.app_names)
        return list(results)

    def find_app(self, app_name: str) -> EbApplicationConfig:
        """Find the one configured application with this name."""
        apps = [app for app in self.config.eb_applications if app.name == app_name]
        if len(apps) > 1:
            raise TargetNotFoundError(
                f"Invalid configuration: multiple applications with name {app_name}",
                app_name,
                len(apps),
            )
        if not apps:
            raise TargetNotFoundError(
                f"Invalid configuration: no applications with name {app_name}",
                app_name,
                0,
            )
        return apps[0]

    def find_env(self, app: EbApplicationConfig, env_name: str) -> EbEnvironmentConfig:
        """Find the one environment of ``app`` with this name."""
        envs = [env for env in app.eb_environments if env.name == env_name]
        if len(envs) > 1:
            raise TargetNotFoundError(
                f"Invalid configuration: application {app.name} has multiple "
                f"environments with name {env_name}",
                env_name,
                len(envs),
            )
        if not envs:
            raise TargetNotFoundError(
                f"Invalid configuration: application {app.name} has no environment "
                f"named {env_name}",
                env_name,
                0,
            )
        return envs[0]

    def resolve_target(self, app_name: str, request: DeployRequest) -> DeployTarget:
        """Look up the target for one application of a request."""
        app = self.find_app(app_name)
        env = self.find_env(app, request.env_name)
        return self.create_target(app, env, request.commit_hash)

    def create_target(
        self,
        app: EbApplicationConfig,
        env: EbEnvironmentConfig,
        commit_hash: str | None = None,
    ) -> DeployTarget:
        return DeployTarget(
            region=self.config.region,
            s3_bucket=self.config.s3_bucket,
            app_name=app.name,
            eb_application_name=app.eb_application_name,
            env_name=env.name,
            eb_environment_name=env.eb_environment_name,
            eb_environment_id=env.eb_environment_id,
            git_branch=env.git_branch,
            commit_hash=commit_hash,
        )

    def _get_deploy_execution_service(self, target: DeployTarget) -> DeployExecutionService:
        try:
            return DeployExecutionService.create(
                self.credentials, target, self.folders, self.settings
            )
        except (BotoCoreError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid configuration: unable to set up deploy of application "
                f"{target.app_name} environment {target.env_name}: {e}",
                {"app_name": target.app_name, "env_name": target.env_name},
            ) from e

    async def _agree_on_commit(self, services: list[DeployExecutionService]) -> str:
        """Resolve every unit's commit and require they are all the same."""
        commits = await asyncio.gather(*(service.get_commit_hash() for service in services))

        first = commits[0]
        for other in commits[1:]:
            if other != first:
                self.logger.error("deploy.commit_mismatch", first=first, other=other)
                raise CommitMismatchError(first, other)
        return first

    async def _run_pre_hook(
        self,
        request: DeployRequest,
        targets: list[DeployTarget],
        commit: str,
    ) -> None:
        if not request.run_pre_hook:
            return

        if self.pre_hook is None:
            self.logger.warning("deploy.pre_hook.not_configured")
            return

        self.logger.info(
            "deploy.pre_hook.started",
            apps=[target.app_name for target in targets],
            commit=commit,
        )
        try:
            result = self.pre_hook(list(targets), commit)
            if inspect.isawaitable(result):
                await result
        except PreHookError:
            raise
        except Exception as e:
            self.logger.error("deploy.pre_hook.failed", error=str(e))
            raise PreHookError(
                f"Pre-deploy hook failed: {e}",
                {"commit": commit},
            ) from e

        self.logger.info("deploy.pre_hook.completed")
