"""Custom exceptions for eb-deploy."""

from typing import Any


class EbDeployError(Exception):
    """Base exception for eb-deploy."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(EbDeployError):
    """Deploy configuration is missing, invalid or ambiguous."""

    pass


class TargetNotFoundError(ConfigurationError):
    """Application or environment lookup did not find exactly one match."""

    def __init__(self, message: str, name: str, matches: int):
        super().__init__(message, {"name": name, "matches": matches})
        self.name = name
        self.matches = matches


class ArgumentError(EbDeployError):
    """Malformed command line input."""

    pass


class RepositoryError(EbDeployError):
    """Git repository could not be opened or the branch does not exist."""

    def __init__(self, message: str, repository: str, branch: str | None = None):
        details = {"repository": repository}
        if branch is not None:
            details["branch"] = branch
        super().__init__(message, details)


class StageError(EbDeployError):
    """A deploy stage failed for one target."""

    stage: str = ""

    def __init__(self, message: str, app_name: str, env_name: str):
        super().__init__(
            message,
            {"stage": self.stage, "app_name": app_name, "env_name": env_name},
        )
        self.app_name = app_name
        self.env_name = env_name


class UploadError(StageError):
    """Uploading the application bundle to S3 failed."""

    stage = "upload"


class VersionCreationError(StageError):
    """Creating the Elastic Beanstalk application version failed."""

    stage = "create_version"


class VersionNotReadyError(StageError):
    """The application version did not finish processing."""

    stage = "await_readiness"


class EnvironmentUpdateError(StageError):
    """Updating the Elastic Beanstalk environment failed."""

    stage = "update_environment"


class CommitMismatchError(EbDeployError):
    """Targets of a multi-target deploy resolved to different commits."""

    def __init__(self, first: str, second: str):
        super().__init__(
            "All commit hashes must be equal when deploying multiple environments "
            f"simultaneously ({first} vs {second})",
            {"commits": [first, second]},
        )
        self.first = first
        self.second = second


class PreHookError(EbDeployError):
    """The pre-deploy hook rejected the deploy."""

    pass
