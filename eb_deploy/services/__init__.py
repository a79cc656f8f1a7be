"""Services for eb-deploy."""

from eb_deploy.services.aws import BeanstalkClient, S3BundleStore
from eb_deploy.services.deploy import DeployService, PreDeployHook
from eb_deploy.services.execution import DeployExecutionService
from eb_deploy.services.factory import (
    create_deploy_service,
    load_deploy_config,
    load_deploy_credentials,
    load_pre_hook,
)

__all__ = [
    "BeanstalkClient",
    "S3BundleStore",
    "DeployService",
    "PreDeployHook",
    "DeployExecutionService",
    "create_deploy_service",
    "load_deploy_config",
    "load_deploy_credentials",
    "load_pre_hook",
]
