"""Deploy configuration models.

These mirror the JSON files kept in the config folder
(``deployCredentials.json`` and ``deployConfig.json``), which use camelCase keys.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ConfigModel(BaseModel):
    """Immutable model that reads camelCase JSON keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class AwsCredentials(ConfigModel):
    """AWS access key pair."""

    access_key_id: str
    secret_access_key: str


class DeployCredentials(ConfigModel):
    """Contents of deployCredentials.json."""

    aws_credentials: AwsCredentials


class EbEnvironmentConfig(ConfigModel):
    """One Elastic Beanstalk environment of an application."""

    name: str
    eb_environment_name: str
    eb_environment_id: str
    git_branch: str | None = None


class EbApplicationConfig(ConfigModel):
    """One Elastic Beanstalk application and its environments."""

    name: str
    eb_application_name: str
    eb_environments: list[EbEnvironmentConfig] = Field(default_factory=list)


class DeployConfig(ConfigModel):
    """Contents of deployConfig.json."""

    region: str
    s3_bucket: str
    eb_applications: list[EbApplicationConfig] = Field(default_factory=list)


class DeployFolders(ConfigModel):
    """Filesystem roots used during a deploy."""

    config: str
    apps: str
    git_root: str
