"""Commit resolution from an explicit hash or a git branch tip."""

import asyncio
import os
from pathlib import Path

from eb_deploy.core.exceptions import ConfigurationError, RepositoryError
from eb_deploy.models.deployment import DeployTarget
from eb_deploy.utils.logging import get_logger


class CommitResolver:
    """Resolves the commit a target should be deployed at."""

    def __init__(self, git_root: str | Path, git_executable: str = "git"):
        self.git_root = Path(git_root)
        self.git_executable = git_executable
        self.logger = get_logger("commit")

    async def resolve(self, target: DeployTarget) -> str:
        """Return the explicit commit hash, or the tip of the target's branch.

        An explicit hash is returned as given, without checking the repository.

        Raises:
            ConfigurationError: If the target has neither a commit nor a branch
            RepositoryError: If the repository or branch cannot be read
        """
        if target.commit_hash:
            return target.commit_hash

        if not target.git_branch:
            raise ConfigurationError(
                f"Invalid configuration: application {target.app_name} environment "
                f"{target.env_name} has no gitBranch and no commit hash was given",
                {"app_name": target.app_name, "env_name": target.env_name},
            )

        return await self.branch_tip(target.git_branch)

    async def branch_tip(self, branch: str) -> str:
        """Read the commit at the tip of a branch."""
        repository = str(self.git_root)
        if not self.git_root.is_dir():
            raise RepositoryError(
                f"Unable to open git repository {repository}: directory not found",
                repository,
                branch,
            )

        try:
            process = await asyncio.create_subprocess_exec(
                self.git_executable,
                "-C",
                repository,
                "rev-parse",
                "--verify",
                "--quiet",
                f"{branch}^{{commit}}",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._git_env(),
            )
        except FileNotFoundError as e:
            raise RepositoryError(
                f"Unable to open git repository {repository}: "
                f"{self.git_executable} executable not found",
                repository,
                branch,
            ) from e

        stdout, stderr = await process.communicate()
        stdout_text = stdout.decode().strip() if stdout else ""
        stderr_text = stderr.decode().strip() if stderr else ""

        if process.returncode != 0:
            # --quiet leaves stderr empty when only the ref is missing
            if stderr_text:
                self.logger.error(
                    "commit.repository_error",
                    repository=repository,
                    error=stderr_text,
                )
                raise RepositoryError(
                    f"Unable to open git repository {repository}: {stderr_text}",
                    repository,
                    branch,
                )
            raise RepositoryError(
                f"Branch {branch} not found in git repository {repository}",
                repository,
                branch,
            )

        self.logger.debug("commit.resolved", branch=branch, commit=stdout_text)
        return stdout_text

    def _git_env(self) -> dict[str, str]:
        # git must not fall back to a repository enclosing git_root
        root = self.git_root.resolve()
        return {**os.environ, "GIT_CEILING_DIRECTORIES": str(root.parent)}
